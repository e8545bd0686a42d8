from datetime import date, timedelta

from coach.models import CheckIn, Profile, Targets, WeightEntry
from coach.services.summary import progress, recent_checkins, weekly_summary

TODAY = date(2024, 3, 1)
TARGETS = Targets(calories=2000, protein=150, carbs=224, fat=56, weekly_loss_target=1.0, daily_deficit=500, tdee=2500)


def _profile(**kw):
    base = dict(name="Sam", age=35, sex="male", height_cm=178, weight_lbs=200, goal_weight_lbs=180,
                goal_weeks=20, activity="light", training_days=4, session_min=60, equipment="full",
                experience="intermediate", created_at=TODAY - timedelta(days=60))
    base.update(kw)
    return Profile(**base)


def _day(n):
    return TODAY - timedelta(days=n)


def test_progress():
    p = progress(_profile(), [WeightEntry(_day(3), 195.0), WeightEntry(_day(0), 190.0)])
    assert p.current == 190.0
    assert p.lost == 10.0
    assert p.remaining == 10.0
    assert p.percent == 50


def test_progress_without_weights():
    p = progress(_profile(), [])
    assert p.current == 200
    assert p.percent == 0
    assert progress(_profile(goal_weight_lbs=200), []).percent == 0


def test_progress_is_capped():
    assert progress(_profile(), [WeightEntry(TODAY, 175.0)]).percent == 100


def test_recent_checkins():
    checkins = [CheckIn(_day(n)) for n in range(10)]
    assert len(recent_checkins(checkins, TODAY)) == 7


def test_weekly_summary():
    checkins = [CheckIn(_day(n), calories=2000, protein=150, workout_completed=True) for n in range(5)]
    s = weekly_summary(_profile(), TARGETS, checkins, [], TODAY)
    assert s.avg_calories == 2000
    assert s.avg_protein == 150
    assert s.workouts_done == 5
    assert s.avg_adherence == 100
    assert s.checkin_count == 5
    assert s.ready
    assert s.weekly_loss is None
    assert s.plateau is False
    assert s.days_in_deficit == 60
    assert s.diet_break_eligible


def test_weekly_summary_uses_latest_seven():
    old = [CheckIn(_day(n), calories=3000) for n in range(7, 10)]
    week = [CheckIn(_day(n), calories=2000) for n in range(7)]
    s = weekly_summary(_profile(created_at=_day(10)), TARGETS, old + week, [], TODAY)
    assert s.checkin_count == 7
    assert s.avg_calories == 2000
    assert not s.diet_break_eligible


def test_not_ready_with_few_checkins():
    s = weekly_summary(_profile(), TARGETS, [CheckIn(TODAY, calories=1900)], [], TODAY)
    assert not s.ready
