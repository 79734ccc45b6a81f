from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


ROLL_MIN = 1
ROLL_MAX = 5
LUCK_BONUS_DIVISOR = 5
MAX_LUCK_BONUS = 2


@dataclass(frozen=True)
class SkillBonus:
    value: int
    item_id: Optional[str] = None
    flag_name: Optional[str] = None


@dataclass(frozen=True)
class SkillCheck:
    ability: str
    difficulty: int
    bonus: Optional[SkillBonus] = None


@dataclass(frozen=True)
class SkillCheckResult:
    success: bool
    ability: str
    ability_value: int
    difficulty: int
    roll: int
    luck_bonus: int
    bonus_applied: int = 0

    @property
    def total(self) -> int:
        return self.ability_value + self.bonus_applied + self.roll + self.luck_bonus
