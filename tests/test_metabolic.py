import pytest

from coach.models import Profile
from coach.services.metabolic import (
    compute_targets, compute_tdee, macro_warnings, mifflin_st_jeor, split_macros,
)


def _profile(**kw):
    base = dict(name="Sam", age=30, sex="male", height_cm=180, weight_lbs=200, goal_weight_lbs=180,
                goal_weeks=10, activity="moderate", training_days=3, session_min=60,
                equipment="full", experience="intermediate")
    base.update(kw)
    return Profile(**base)


def test_bmr_formula():
    assert mifflin_st_jeor("male", 80, 180, 30) == 1780
    assert mifflin_st_jeor("female", 80, 180, 30) == 1614


def test_bmr_monotonic():
    base = mifflin_st_jeor("female", 70, 165, 40)
    assert mifflin_st_jeor("female", 71, 165, 40) > base
    assert mifflin_st_jeor("female", 70, 166, 40) > base
    assert mifflin_st_jeor("female", 70, 165, 41) < base


def test_tdee():
    assert compute_tdee(1780, "moderate") == 2759
    assert compute_tdee(1000, "sedentary") == 1200
    with pytest.raises(ValueError):
        compute_tdee(1780, "couch")


def test_targets_from_profile():
    t = compute_targets(_profile())
    assert t.tdee == 2925
    assert t.daily_deficit == 1000
    assert t.calories == 1925
    assert t.protein == 153          # 0.85 x goal weight
    assert t.fat == 53
    assert t.carbs == 209
    assert t.weekly_loss_target == 2.0


def test_calorie_floor():
    t = compute_targets(_profile(sex="female", age=60, height_cm=150, weight_lbs=150,
                                 goal_weight_lbs=100, goal_weeks=2, activity="sedentary"))
    assert t.calories == 1200
    assert t.fat == 33
    assert t.carbs == 141


def test_gain_goal_is_a_surplus():
    t = compute_targets(_profile(weight_lbs=150, goal_weight_lbs=160, goal_weeks=20))
    assert t.daily_deficit < 0
    assert t.calories > t.tdee


def test_negative_carbs_are_surfaced():
    t = compute_targets(_profile(weight_lbs=500, goal_weight_lbs=460, goal_weeks=1))
    assert t.calories == 1200
    assert t.protein == 391
    assert t.carbs == -165
    assert macro_warnings(t) == ["negative_carbs"]
    assert macro_warnings(compute_targets(_profile())) == []


def test_split_macros():
    assert split_macros(2000, 150) == (56, 224)
