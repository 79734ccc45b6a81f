from __future__ import annotations

from dataclasses import dataclass
import logging
import random
from typing import Callable, List, Optional

from storycore.application.services.effect_engine import effective_ability
from storycore.application.services.seed_policy import RollSource
from storycore.domain.events import SkillCheckResolved
from storycore.domain.models.player_state import PlayerState
from storycore.domain.models.skill_check import (
    LUCK_BONUS_DIVISOR,
    MAX_LUCK_BONUS,
    ROLL_MAX,
    ROLL_MIN,
    SkillBonus,
    SkillCheck,
    SkillCheckResult,
)
from storycore.domain.models.stats import ABILITY_MIN, DEFAULT_ABILITY_SCORE, ability_rank_label


logger = logging.getLogger(__name__)

AfterCheckHook = Callable[[SkillCheckResult, PlayerState], PlayerState]


def random_roll_source(low: int, high: int) -> int:
    return random.randint(int(low), int(high))


def luck_bonus_for(luck: int) -> int:
    return max(0, min(MAX_LUCK_BONUS, int(luck) // LUCK_BONUS_DIVISOR))


@dataclass(frozen=True)
class SkillCheckOutcome:
    result: SkillCheckResult
    state: PlayerState


class SkillResolver:
    def __init__(
        self,
        *,
        roll_source: Optional[RollSource] = None,
        event_publisher: Optional[Callable[[object], None]] = None,
    ) -> None:
        self.roll_source = roll_source or random_roll_source
        self.event_publisher = event_publisher
        self._after_check_hooks: List[AfterCheckHook] = []

    def register_after_check(self, hook: AfterCheckHook) -> None:
        self._after_check_hooks.append(hook)

    def effective_ability(self, ability: str, state: PlayerState) -> int:
        value = effective_ability(state, ability)
        if value is None:
            logger.warning("Unknown ability %s; treating as %s", ability, ABILITY_MIN)
            return ABILITY_MIN
        return value

    def luck_bonus(self, state: PlayerState) -> int:
        luck = effective_ability(state, "luck")
        return luck_bonus_for(DEFAULT_ABILITY_SCORE if luck is None else luck)

    def bonus_for(self, bonus: Optional[SkillBonus], state: PlayerState) -> int:
        if bonus is None:
            return 0
        if bonus.item_id and state.has_item(bonus.item_id):
            return int(bonus.value)
        if bonus.flag_name and state.flags.get(bonus.flag_name):
            return int(bonus.value)
        return 0

    def resolve_check(self, check: SkillCheck, state: PlayerState) -> SkillCheckResult:
        ability_value = self.effective_ability(check.ability, state)
        bonus_applied = self.bonus_for(check.bonus, state)
        roll = int(self.roll_source(ROLL_MIN, ROLL_MAX))
        if roll < ROLL_MIN or roll > ROLL_MAX:
            raise ValueError(f"Roll source returned {roll}, outside {ROLL_MIN}..{ROLL_MAX}")
        luck_bonus = self.luck_bonus(state)
        total = ability_value + bonus_applied + roll + luck_bonus
        return SkillCheckResult(
            success=total >= int(check.difficulty),
            ability=check.ability,
            ability_value=ability_value,
            difficulty=int(check.difficulty),
            roll=roll,
            luck_bonus=luck_bonus,
            bonus_applied=bonus_applied,
        )

    def perform_check(self, check: SkillCheck, state: PlayerState) -> SkillCheckOutcome:
        """Resolve ``check`` then let after-check hooks react to the result.

        Hooks may change the state (e.g. triggered effects) but never the
        result that was already decided.
        """

        result = self.resolve_check(check, state)
        for hook in self._after_check_hooks:
            state = hook(result, state)
        if self.event_publisher is not None:
            self.event_publisher(
                SkillCheckResolved(
                    ability=result.ability,
                    difficulty=result.difficulty,
                    roll=result.roll,
                    total=result.total,
                    success=result.success,
                )
            )
        return SkillCheckOutcome(result=result, state=state)

    @staticmethod
    def success_probability(ability: int, difficulty: int) -> int:
        successes = 0
        cases = 0
        for roll in range(ROLL_MIN, ROLL_MAX + 1):
            for luck in range(0, MAX_LUCK_BONUS + 1):
                cases += 1
                if int(ability) + roll + luck >= int(difficulty):
                    successes += 1
        return round(successes * 100 / cases)

    @staticmethod
    def can_ever_succeed(ability: int, difficulty: int) -> bool:
        return int(ability) + ROLL_MAX + MAX_LUCK_BONUS >= int(difficulty)

    @staticmethod
    def rank_label(value: int) -> str:
        return ability_rank_label(value)
