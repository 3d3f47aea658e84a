"""
Level and XP reward tables.

These are data, not logic: the tracker only consumes them. Swapping the
tables (e.g. to rebalance XP) changes product behaviour without touching
the algorithms in tracker.py.
"""
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping


class XPAction(str, Enum):
    ONBOARDING_COMPLETE = "onboarding_complete"
    STATION_START = "station_start"
    STATION_COMPLETE = "station_complete"
    VUCA_MODULE_COMPLETE = "vuca_module_complete"
    QUIZ_CORRECT = "quiz_correct"
    DAILY_LOGIN = "daily_login"
    PROFILE_VIEW = "profile_view"
    INTRO_DEMO_COMPLETE = "intro_demo_complete"


@dataclass(frozen=True)
class LevelDefinition:
    level: int
    title: str
    xp_required: int


LEVELS: tuple[LevelDefinition, ...] = (
    LevelDefinition(1, "Entdecker", 0),
    LevelDefinition(2, "Reisender", 100),
    LevelDefinition(3, "Abenteurer", 300),
    LevelDefinition(4, "Wegbereiter", 600),
    LevelDefinition(5, "Weltenbummler", 1000),
)

XP_REWARDS: dict[XPAction, int] = {
    XPAction.ONBOARDING_COMPLETE: 50,
    XPAction.STATION_START: 10,
    XPAction.STATION_COMPLETE: 100,
    XPAction.VUCA_MODULE_COMPLETE: 30,
    XPAction.QUIZ_CORRECT: 10,
    XPAction.DAILY_LOGIN: 20,
    XPAction.PROFILE_VIEW: 5,
    XPAction.INTRO_DEMO_COMPLETE: 25,
}


@dataclass(frozen=True)
class GamificationConfig:
    """
    Validated pair of level table + reward table.

    Rules:
      - levels non-empty, first threshold is 0
      - thresholds strictly increasing
      - every XPAction has a non-negative reward
    """
    levels: tuple[LevelDefinition, ...] = LEVELS
    rewards: Mapping[XPAction, int] = field(default_factory=lambda: dict(XP_REWARDS))

    def __post_init__(self) -> None:
        levels = tuple(self.levels)
        object.__setattr__(self, "levels", levels)
        if not levels:
            raise ValueError("level table must not be empty")
        if levels[0].xp_required != 0:
            raise ValueError(
                f"first level must start at 0 XP, got {levels[0].xp_required}"
            )
        for prev, cur in zip(levels, levels[1:]):
            if cur.xp_required <= prev.xp_required:
                raise ValueError(
                    f"level thresholds must be strictly increasing "
                    f"({prev.level}:{prev.xp_required} -> {cur.level}:{cur.xp_required})"
                )

        rewards = {XPAction(k): int(v) for k, v in self.rewards.items()}
        missing = [a.value for a in XPAction if a not in rewards]
        if missing:
            raise ValueError(f"missing XP rewards for: {', '.join(missing)}")
        negative = [a.value for a, v in rewards.items() if v < 0]
        if negative:
            raise ValueError(f"XP rewards must not be negative: {', '.join(negative)}")
        object.__setattr__(self, "rewards", rewards)

    @property
    def daily_bonus(self) -> int:
        """Bonus granted on the first action of each day."""
        return self.rewards[XPAction.DAILY_LOGIN]

    def action_reward(self, action: XPAction) -> int:
        # daily_login is paid out through the daily bonus only
        if action is XPAction.DAILY_LOGIN:
            return 0
        return self.rewards[action]


DEFAULT_CONFIG = GamificationConfig()


def config_from_dict(data: dict) -> GamificationConfig:
    """Build a config from the JSON shape used by GAMIFICATION_CONFIG_FILE."""
    levels = DEFAULT_CONFIG.levels
    if "levels" in data:
        levels = tuple(
            LevelDefinition(
                level=int(row["level"]),
                title=str(row["title"]),
                xp_required=int(row.get("xpRequired", row.get("xp_required", 0))),
            )
            for row in data["levels"]
        )
    rewards = dict(DEFAULT_CONFIG.rewards)
    for key, value in (data.get("rewards") or {}).items():
        rewards[XPAction(key)] = int(value)
    return GamificationConfig(levels=levels, rewards=rewards)


def load_config(path: str = "") -> GamificationConfig:
    """Load tables from *path*, or return the built-in defaults when empty."""
    if not path:
        return DEFAULT_CONFIG
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return config_from_dict(data)
