from dataclasses import replace
from datetime import date, timedelta

import pytest

from coach.models import Targets, WeightEntry
from coach.services.recalibration import (
    TdeeEstimate, apply_calorie_adjustment, data_driven_tdee, retarget_from_tdee,
)

TARGETS = Targets(calories=2000, protein=150, carbs=224, fat=56, weekly_loss_target=1.0, daily_deficit=500, tdee=2500)


def _entries(weights):
    start = date(2024, 1, 1)
    return [WeightEntry(start + timedelta(days=i), w) for i, w in enumerate(weights)]


def test_data_driven_tdee():
    est = data_driven_tdee(TARGETS, _entries([200.0] * 7 + [199.0] * 7))
    assert est == TdeeEstimate(tdee=2500, weekly_rate=1.0)
    assert data_driven_tdee(TARGETS, _entries([200.0] * 13)) is None


def test_stalled_weight_means_tdee_equals_intake():
    est = data_driven_tdee(TARGETS, _entries([200.0] * 14))
    assert est.tdee == 2000


def test_maintain_is_a_noop():
    assert apply_calorie_adjustment(TARGETS, "maintain", 150) == TARGETS
    assert apply_calorie_adjustment(TARGETS, "decrease", 0) == TARGETS


def test_decrease_resplits_macros():
    t = apply_calorie_adjustment(TARGETS, "decrease", 100)
    assert t.calories == 1900
    assert t.protein == 150
    assert t.fat == 53
    assert t.carbs == 206


def test_amount_sign_is_ignored():
    t = apply_calorie_adjustment(TARGETS, "increase", -100)
    assert t.calories == 2100
    assert t.fat == 58
    assert t.carbs == 245


def test_calorie_floor():
    low = Targets(calories=1500, protein=120, carbs=150, fat=42, weekly_loss_target=1.0, daily_deficit=500, tdee=2000)
    assert apply_calorie_adjustment(low, "decrease", 1000).calories == 1200


def test_unknown_action():
    with pytest.raises(ValueError):
        apply_calorie_adjustment(TARGETS, "double", 100)


def test_retarget_from_tdee():
    stored = replace(TARGETS, daily_deficit=480)
    t = retarget_from_tdee(stored, TdeeEstimate(tdee=2700, weekly_rate=0.4))
    assert t.tdee == 2700
    # calories come from the weekly target; the stored deficit is left as is
    assert t.daily_deficit == 480
    assert t.calories == 2200
    assert t.protein == TARGETS.protein
