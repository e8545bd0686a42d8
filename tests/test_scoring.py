from datetime import date

from coach.models import CheckIn, Profile, Targets
from coach.services.scoring import adherence_label, adherence_score, average_adherence, recovery_score

DAY = date(2024, 3, 1)
TARGETS = Targets(calories=2000, protein=150, carbs=200, fat=56, weekly_loss_target=1.0, daily_deficit=500, tdee=2500)


def test_calories_on_target():
    a = adherence_score(CheckIn(DAY, calories=2000), TARGETS)
    assert a.breakdown == {"calories": 100}
    assert a.total == 100


def test_calorie_bands():
    assert adherence_score(CheckIn(DAY, calories=2100), TARGETS).breakdown["calories"] == 100
    assert adherence_score(CheckIn(DAY, calories=2150), TARGETS).breakdown["calories"] == 75
    assert adherence_score(CheckIn(DAY, calories=2300), TARGETS).breakdown["calories"] == 50
    assert adherence_score(CheckIn(DAY, calories=1500), TARGETS).breakdown["calories"] == 25


def test_workout_only():
    a = adherence_score(CheckIn(DAY, workout_completed=True), TARGETS)
    assert a.total == 100
    assert a.breakdown == {"workout": 100}


def test_missed_workout_counts_when_reported():
    a = adherence_score(CheckIn(DAY, calories=2000, workout_completed=False), TARGETS)
    assert a.breakdown == {"calories": 100, "workout": 0}
    assert a.total == 50


def test_mean_rounds_half_up():
    # 75 and 50 -> 62.5
    a = adherence_score(CheckIn(DAY, calories=2150, protein=190), TARGETS)
    assert a.total == 63


def test_steps_use_profile_target():
    profile = Profile("A", 30, "female", 165, 160, 140, 20, "light", 3, 45, "minimal", "beginner",
                      step_target=10000)
    assert adherence_score(CheckIn(DAY, steps=8000), TARGETS, profile).breakdown["steps"] == 75
    assert adherence_score(CheckIn(DAY, steps=8000), TARGETS).breakdown["steps"] == 100


def test_nothing_to_score():
    assert adherence_score(None, TARGETS).total == 0
    assert adherence_score(CheckIn(DAY, calories=2000), None).total == 0
    empty = adherence_score(CheckIn(DAY), TARGETS)
    assert empty.total == 0
    assert empty.breakdown == {}


def test_average_adherence():
    days = [CheckIn(DAY, calories=2000), CheckIn(DAY, workout_completed=False)]
    assert average_adherence(days, TARGETS) == 50
    assert average_adherence([], TARGETS) == 0


def test_recovery_optimal():
    r = recovery_score(CheckIn(DAY, sleep_hours=8, stress=2, energy=8))
    assert r.score == 100
    assert r.status == "OPTIMAL"


def test_recovery_needed():
    r = recovery_score(CheckIn(DAY, sleep_hours=5, stress=9, energy=2))
    assert r.score <= 10
    assert r.status == "RECOVERY NEEDED"


def test_recovery_stress_boundaries():
    def score(stress):
        return recovery_score(CheckIn(DAY, sleep_hours=7, stress=stress, energy=5))

    assert score(5).score == 70
    assert score(5).status == "ADEQUATE"
    assert score(6).score == 55
    assert score(8).score == 45
    assert score(8).status == "FATIGUED"


def test_recovery_unknown():
    r = recovery_score(None)
    assert (r.score, r.status) == (0, "UNKNOWN")


def test_adherence_label():
    assert adherence_label(95) == "EXCELLENT"
    assert adherence_label(75) == "GOOD"
    assert adherence_label(60) == "FAIR"
    assert adherence_label(40) == "NEEDS WORK"
    assert adherence_label(10) == "OFF TRACK"
