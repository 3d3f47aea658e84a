import random
from dataclasses import replace
from datetime import date, timedelta

import pytest

from lernpfad.core.clock import week_start
from lernpfad.engagement.levels import DEFAULT_CONFIG, XPAction, config_from_dict
from lernpfad.engagement.tracker import (
    EngagementState,
    award_xp,
    compute_level,
    create_initial_engagement,
)


def make_state(**overrides) -> EngagementState:
    return replace(create_initial_engagement(), **overrides)


# ---------------------------------------------------------------------------
# XP and daily bonus
# ---------------------------------------------------------------------------

def test_first_action_pays_reward_plus_daily_bonus():
    updated = award_xp(make_state(), XPAction.ONBOARDING_COMPLETE, "2026-02-19")
    assert updated.total_xp == 70
    assert updated.weekly_xp == 70


def test_same_day_follow_up_has_no_second_bonus():
    first = award_xp(make_state(), "onboarding_complete", "2026-02-19")
    second = award_xp(first, "station_start", "2026-02-19")
    assert second.total_xp == 80
    assert second.weekly_xp == 80


def test_new_day_pays_bonus_again():
    state = make_state(last_active_date="2026-02-19", total_xp=100, current_streak=1)
    updated = award_xp(state, "station_start", "2026-02-20")
    assert updated.total_xp == 130


def test_daily_login_is_not_double_counted():
    state = make_state(last_active_date="2026-02-19", total_xp=100, current_streak=1)
    updated = award_xp(state, XPAction.DAILY_LOGIN, "2026-02-20")
    assert updated.total_xp == 120


def test_daily_login_on_active_day_adds_nothing():
    state = make_state(last_active_date="2026-02-19", total_xp=100, current_streak=1,
                       week_start_date="2026-02-16", weekly_xp=100)
    updated = award_xp(state, XPAction.DAILY_LOGIN, "2026-02-19")
    assert updated.total_xp == 100
    assert updated.weekly_xp == 100
    assert updated.current_streak == 1


@pytest.mark.parametrize("action, reward", [
    ("station_complete", 100),
    ("quiz_correct", 10),
    ("profile_view", 5),
    ("vuca_module_complete", 30),
    ("intro_demo_complete", 25),
])
def test_action_rewards_on_active_day(action, reward):
    state = make_state(last_active_date="2026-02-19", total_xp=50, current_streak=1,
                       week_start_date="2026-02-16")
    assert award_xp(state, action, "2026-02-19").total_xp == 50 + reward


def test_unknown_action_is_rejected():
    with pytest.raises(ValueError):
        award_xp(make_state(), "teleport", "2026-02-19")


def test_rewards_come_from_injected_config():
    config = config_from_dict({"rewards": {"station_start": 1, "daily_login": 2}})
    updated = award_xp(make_state(), "station_start", "2026-02-19", config)
    assert updated.total_xp == 3


# ---------------------------------------------------------------------------
# Streak
# ---------------------------------------------------------------------------

def test_first_activity_starts_streak():
    updated = award_xp(make_state(), "station_start", "2026-02-19")
    assert updated.current_streak == 1
    assert updated.longest_streak == 1
    assert updated.last_active_date == "2026-02-19"


def test_same_day_leaves_streak_untouched():
    state = make_state(last_active_date="2026-02-19", current_streak=4, longest_streak=9,
                       streak_freeze_available=True)
    updated = award_xp(state, "quiz_correct", "2026-02-19")
    assert updated.current_streak == 4
    assert updated.longest_streak == 9
    assert updated.streak_freeze_available is True
    assert updated.last_active_date == "2026-02-19"


def test_consecutive_day_increments_streak_by_one():
    state = make_state(last_active_date="2026-02-19", current_streak=3, longest_streak=3)
    updated = award_xp(state, "station_start", "2026-02-20")
    assert updated.current_streak == 4
    assert updated.longest_streak == 4
    assert updated.last_active_date == "2026-02-20"


def test_longest_streak_kept_when_current_is_shorter():
    state = make_state(last_active_date="2026-02-19", current_streak=2, longest_streak=10)
    updated = award_xp(state, "station_start", "2026-02-20")
    assert updated.longest_streak == 10


def test_missed_days_halve_streak():
    state = make_state(last_active_date="2026-02-19", current_streak=6, longest_streak=6)
    updated = award_xp(state, "station_start", "2026-02-22")
    assert updated.current_streak == 4
    assert updated.longest_streak == 6
    assert updated.last_active_date == "2026-02-22"


@pytest.mark.parametrize("streak, expected", [(0, 1), (1, 1), (2, 2), (3, 2), (9, 5), (20, 11)])
def test_halving_rule(streak, expected):
    state = make_state(last_active_date="2026-02-01", current_streak=streak, longest_streak=streak)
    assert award_xp(state, "station_start", "2026-02-19").current_streak == expected


def test_two_day_gap_without_freeze_halves():
    state = make_state(last_active_date="2026-02-19", current_streak=6, longest_streak=6)
    updated = award_xp(state, "station_start", "2026-02-21")
    assert updated.current_streak == 4
    assert updated.streak_freeze_available is False


def test_freeze_bridges_exactly_one_missed_day():
    state = make_state(last_active_date="2026-02-19", current_streak=7, longest_streak=7,
                       streak_freeze_available=True)
    updated = award_xp(state, "station_start", "2026-02-21")
    assert updated.current_streak == 8
    assert updated.longest_streak == 8
    assert updated.streak_freeze_available is False
    assert updated.last_active_date == "2026-02-21"


@pytest.mark.parametrize("streak, expected", [(7, 4), (8, 5)])
def test_freeze_not_used_for_longer_gaps(streak, expected):
    state = make_state(last_active_date="2026-02-19", current_streak=streak, longest_streak=streak,
                       streak_freeze_available=True)
    updated = award_xp(state, "station_start", "2026-02-23")
    assert updated.current_streak == expected
    assert updated.streak_freeze_available is False


def test_reaching_seven_grants_freeze_and_it_stays():
    state = make_state(last_active_date="2026-02-19", current_streak=6, longest_streak=6)
    day7 = award_xp(state, "station_start", "2026-02-20")
    assert day7.current_streak == 7
    assert day7.streak_freeze_available is True

    day8 = award_xp(day7, "station_start", "2026-02-21")
    day9 = award_xp(day8, "station_start", "2026-02-22")
    assert day8.streak_freeze_available is True
    assert day9.streak_freeze_available is True


def test_no_freeze_below_seven():
    state = make_state(last_active_date="2026-02-19", current_streak=5, longest_streak=5)
    assert award_xp(state, "station_start", "2026-02-20").streak_freeze_available is False


def test_spent_freeze_is_earned_back_on_next_consecutive_day():
    state = make_state(last_active_date="2026-02-19", current_streak=7, longest_streak=7,
                       streak_freeze_available=True)
    bridged = award_xp(state, "station_start", "2026-02-21")
    assert bridged.streak_freeze_available is False
    next_day = award_xp(bridged, "station_start", "2026-02-22")
    assert next_day.current_streak == 9
    assert next_day.streak_freeze_available is True


def test_date_before_last_activity_restarts_streak():
    state = make_state(last_active_date="2026-02-20", current_streak=5, longest_streak=5)
    updated = award_xp(state, "station_start", "2026-02-19")
    assert updated.current_streak == 1
    assert updated.longest_streak == 5
    assert updated.last_active_date == "2026-02-19"


# ---------------------------------------------------------------------------
# Weekly window
# ---------------------------------------------------------------------------

def test_weekly_xp_resets_when_week_changes():
    state = make_state(total_xp=500, weekly_xp=150, week_start_date="2026-02-09",
                       last_active_date="2026-02-15", current_streak=3, longest_streak=3)
    updated = award_xp(state, "station_start", "2026-02-16")
    assert updated.weekly_xp == 30
    assert updated.week_start_date == "2026-02-16"
    assert updated.total_xp == 530


def test_weekly_xp_accumulates_within_week():
    state = make_state(total_xp=500, weekly_xp=150, week_start_date="2026-02-16",
                       last_active_date="2026-02-17", current_streak=2, longest_streak=2)
    updated = award_xp(state, "station_start", "2026-02-19")
    assert updated.weekly_xp == 150 + 10 + 20
    assert updated.week_start_date == "2026-02-16"


def test_fresh_state_gets_week_start():
    updated = award_xp(make_state(), "station_start", "2026-02-19")
    assert updated.week_start_date == "2026-02-16"


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------

def test_crossing_threshold_levels_up():
    state = make_state(total_xp=90, last_active_date="2026-02-19", current_streak=1,
                       week_start_date="2026-02-16")
    updated = award_xp(state, "quiz_correct", "2026-02-19")
    assert updated.total_xp == 100
    assert (updated.level, updated.level_title) == (2, "Reisender")


def test_wrong_stored_level_is_corrected_on_next_award():
    state = make_state(total_xp=650, level=1, level_title="Entdecker",
                       last_active_date="2026-02-19", current_streak=1)
    updated = award_xp(state, "profile_view", "2026-02-19")
    assert (updated.level, updated.level_title) == (4, "Wegbereiter")


# ---------------------------------------------------------------------------
# Purity and invariants
# ---------------------------------------------------------------------------

def test_input_state_is_not_modified():
    state = make_state(last_active_date="2026-02-19", current_streak=3)
    snapshot = replace(state)
    award_xp(state, "station_complete", "2026-02-20")
    assert state == snapshot


def test_same_inputs_same_output():
    state = make_state(last_active_date="2026-02-17", current_streak=8, streak_freeze_available=True)
    assert award_xp(state, "quiz_correct", "2026-02-19") == award_xp(state, "quiz_correct", "2026-02-19")


@pytest.mark.parametrize("seed", range(10))
def test_invariants_hold_over_random_activity(seed):
    rng = random.Random(seed)
    actions = list(XPAction)
    state = create_initial_engagement()
    day = date(2026, 1, 1)

    for _ in range(150):
        day += timedelta(days=rng.choice([0, 0, 1, 1, 1, 2, 3, 9]))
        today = day.isoformat()
        before = state
        state = award_xp(state, rng.choice(actions), today)

        assert state.total_xp >= before.total_xp
        assert 0 <= state.weekly_xp <= state.total_xp
        assert state.longest_streak >= state.current_streak >= 1
        assert state.last_active_date == today
        assert state.week_start_date == week_start(today)
        assert (state.level, state.level_title) == compute_level(state.total_xp, DEFAULT_CONFIG)


# ---------------------------------------------------------------------------
# Wire format
# ---------------------------------------------------------------------------

def test_round_trip_through_dict():
    state = award_xp(make_state(), "onboarding_complete", "2026-02-19")
    data = state.to_dict()
    assert data["totalXP"] == 70
    assert data["lastActiveDate"] == "2026-02-19"
    assert EngagementState.from_dict(data) == state


def test_from_dict_fills_defaults_and_rederives_level():
    state = EngagementState.from_dict({"totalXP": 350, "level": 1, "currentStreak": 4})
    assert (state.level, state.level_title) == (3, "Abenteurer")
    assert state.longest_streak == 4
    assert state.last_active_date == ""
    assert state.streak_freeze_available is False


def test_from_empty_dict_is_fresh_state():
    assert EngagementState.from_dict({}) == create_initial_engagement()
    assert EngagementState.from_dict(None) == create_initial_engagement()
