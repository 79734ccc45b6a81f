from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, List, Mapping, Optional

from storycore.application.services.condition_evaluator import ConditionEvaluator
from storycore.application.services.skill_resolver import SkillResolver
from storycore.application.services.state_mutations import (
    add_item,
    modify_ability,
    modify_stat,
    remove_item,
    set_flag,
)
from storycore.domain.models.flags import FlagValue
from storycore.domain.models.player_state import PlayerState
from storycore.domain.models.scene import SceneOption
from storycore.domain.models.skill_check import SkillCheckResult


@dataclass(frozen=True)
class ChoiceOutcome:
    state: PlayerState
    success: bool
    text: str
    next_episode_id: Optional[str] = None
    check: Optional[SkillCheckResult] = None


class ChoiceService:
    def __init__(self, evaluator: ConditionEvaluator, skill_resolver: SkillResolver) -> None:
        self.evaluator = evaluator
        self.skill_resolver = skill_resolver

    def available_options(self, options: Iterable[SceneOption], state: PlayerState) -> List[SceneOption]:
        return [option for option in options if self.evaluator.evaluate(option.condition, state)]

    def choose(self, option: SceneOption, state: PlayerState) -> ChoiceOutcome:
        check: Optional[SkillCheckResult] = None
        if option.skill_check is not None:
            outcome = self.skill_resolver.perform_check(option.skill_check, state)
            check, state = outcome.result, outcome.state

        if check is not None and not check.success:
            state = _apply_flags(state, option.failure_flags)
            state = _apply_stats(state, option.failure_stats)
            next_episode_id = option.failure_episode_id
            text = option.failure_text or f"Failed: {option.text}"
        else:
            state = _apply_flags(state, option.set_flags)
            state = _apply_stats(state, option.modify_stats)
            for ability, delta in option.modify_abilities.items():
                state = modify_ability(state, ability, delta)
            for item in option.add_items:
                state = add_item(state, item)
            for item_id in option.remove_items:
                state = remove_item(state, item_id, 1)
            next_episode_id = option.next_episode_id
            text = (option.success_text or option.text) if check is not None else option.text

        if next_episode_id:
            state = replace(state, current_episode_id=next_episode_id)
        return ChoiceOutcome(
            state=state,
            success=check is None or check.success,
            text=text,
            next_episode_id=next_episode_id,
            check=check,
        )


def _apply_flags(state: PlayerState, flags: Mapping[str, FlagValue]) -> PlayerState:
    for name, value in flags.items():
        state = set_flag(state, name, value)
    return state


def _apply_stats(state: PlayerState, stats: Mapping[str, float]) -> PlayerState:
    for name, delta in stats.items():
        state = modify_stat(state, name, delta)
    return state
