from datetime import date, datetime

import pytest

from coach.services.units import (
    cm_to_feet_inches, days_between, lbs_to_kg, parse_day, round_half_up, today,
)


def test_weight_conversion():
    assert lbs_to_kg(100) == pytest.approx(45.3592)


def test_feet_inches():
    assert cm_to_feet_inches(180) == "5'11\""


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(62.5) == 63
    assert round_half_up(-2.5) == -2
    assert round_half_up(1.25, 1) == 1.3
    assert isinstance(round_half_up(4.0), int)


def test_days():
    assert parse_day("2024-02-29") == date(2024, 2, 29)
    assert parse_day(datetime(2024, 2, 29, 23, 59)) == date(2024, 2, 29)
    assert days_between("2024-01-01", "2024-03-01") == 60
    assert days_between(date(2024, 1, 2), date(2024, 1, 1)) == -1


def test_today_is_a_date():
    assert isinstance(today("UTC"), date)
