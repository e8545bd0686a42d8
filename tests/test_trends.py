from datetime import date, timedelta

from coach.models import WeightEntry
from coach.services.trends import plateau_detected, rolling_average, split_fortnight, weekly_loss_rate

START = date(2024, 1, 1)


def _entries(weights):
    return [WeightEntry(START + timedelta(days=i), w) for i, w in enumerate(weights)]


def test_weekly_loss_rate():
    entries = _entries([200.0] * 7 + [198.0] * 7)
    assert weekly_loss_rate(entries) == 2.0
    # input order does not matter
    assert weekly_loss_rate(list(reversed(entries))) == 2.0


def test_weekly_loss_rate_needs_data():
    assert weekly_loss_rate(_entries([200.0] * 6)) is None
    # only one entry before the latest 7
    assert weekly_loss_rate(_entries([200.0] * 8)) is None
    assert weekly_loss_rate(_entries([201.0] * 3 + [200.0] * 7)) == 1.0


def test_weight_gain_is_negative_rate():
    assert weekly_loss_rate(_entries([180.0] * 7 + [181.0] * 7)) == -1.0


def test_rolling_average():
    points = rolling_average(_entries([200.0, 202.0, 204.0]))
    assert [p.avg for p in points] == [200.0, 201.0, 202.0]
    assert [p.weight for p in points] == [200.0, 202.0, 204.0]


def test_rolling_average_window():
    points = rolling_average(_entries([100.0 + i for i in range(8)]))
    assert len(points) == 8
    assert points[-1].avg == 104.0


def test_rolling_average_short_series():
    assert rolling_average([]) == []
    (only,) = rolling_average(_entries([190.0]))
    assert only.avg is None


def test_rolling_average_is_deterministic():
    entries = _entries([199.2, 198.8, 199.0, 198.4, 198.6])
    assert rolling_average(entries) == rolling_average(list(reversed(entries)))


def test_split_fortnight():
    assert split_fortnight(_entries([200.0] * 13)) is None
    first, last = split_fortnight(_entries([210.0] * 3 + [200.0] * 7 + [198.0] * 7))
    assert first == 200.0
    assert last == 198.0


def test_plateau_with_good_adherence():
    entries = _entries([180.0] * 7 + [179.6] * 7)
    assert plateau_detected(entries, 90) is True
    assert plateau_detected(entries, 70) is False


def test_no_plateau_while_losing():
    assert plateau_detected(_entries([182.0] * 7 + [180.0] * 7), 95) is False


def test_plateau_needs_twelve_entries():
    assert plateau_detected(_entries([180.0] * 11), 100) is False
    assert plateau_detected(_entries([180.0] * 12), 100) is True
