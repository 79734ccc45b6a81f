from __future__ import annotations

from dataclasses import replace
import logging
from typing import Callable, List, Optional

from storycore.application.services.condition_evaluator import flags_hold
from storycore.application.services.effect_engine import EffectEngine, effective_ability
from storycore.application.services.state_mutations import remove_flag, set_flag
from storycore.domain.events import PerkUnlocked
from storycore.domain.models.condition import Requirement
from storycore.domain.models.effect import Conditional, EffectSource, EffectTemplate, Permanent
from storycore.domain.models.perk import Perk, PerkModifiers
from storycore.domain.models.player_state import PlayerState
from storycore.domain.repositories import PerkRepository


logger = logging.getLogger(__name__)

ARTIFACT_UNEQUIP_FLAG = "artifact_unequipped"


class PerkManager:
    """Perk point spending, rank tracking and artifact slots.

    Regular perks apply their modifiers through a permanent effect per rank.
    Artifact perks apply theirs (effects plus drawbacks) only while equipped.
    """

    def __init__(
        self,
        perk_repo: PerkRepository,
        effect_engine: EffectEngine,
        *,
        event_publisher: Optional[Callable[[object], None]] = None,
    ) -> None:
        self.perk_repo = perk_repo
        self.effect_engine = effect_engine
        self.event_publisher = event_publisher

    def get_perk(self, perk_id: str) -> Optional[Perk]:
        return self.perk_repo.get(perk_id)

    def all_perks(self) -> List[Perk]:
        return list(self.perk_repo.list_all())

    def available_perks(self, state: PlayerState) -> List[Perk]:
        return [
            perk
            for perk in self.perk_repo.list_all()
            if state.perks.rank(perk.id) < perk.max_rank and self.meets_requirements(perk, state)
        ]

    def meets_requirements(self, perk: Perk, state: PlayerState) -> bool:
        requirements = perk.requirements
        if requirements is None:
            return True
        if requirements.level is not None and int(state.level) < int(requirements.level):
            return False
        for ability, minimum in requirements.abilities.items():
            value = effective_ability(state, ability)
            if value is None or value < int(minimum):
                return False
        for required in requirements.perks:
            if not state.perks.has_perk(required):
                return False
        if requirements.flags and not flags_hold(requirements.flags, state):
            return False
        for exclusive in requirements.mutually_exclusive:
            if state.perks.has_perk(exclusive):
                return False
        return True

    def unlock(self, perk_id: str, state: PlayerState) -> PlayerState:
        perk = self.perk_repo.get(perk_id)
        if perk is None:
            logger.warning("Unknown perk %s; unlock ignored", perk_id)
            return state
        progress = state.perks
        if int(progress.points) <= 0:
            return state
        rank = progress.rank(perk_id)
        if rank >= perk.max_rank:
            return state

        progress = replace(
            progress,
            points=int(progress.points) - 1,
            unlocked={**progress.unlocked, perk_id: rank + 1},
        )
        state = replace(state, perks=progress)
        if not perk.is_artifact:
            state = self.effect_engine.add(self._unlock_template(perk), state)

        if self.event_publisher is not None:
            self.event_publisher(PerkUnlocked(perk_id=perk_id, rank=rank + 1, points_remaining=progress.points))
        return state

    def add_perk_points(self, amount: int, state: PlayerState) -> PlayerState:
        points = max(0, int(state.perks.points) + int(amount))
        return replace(state, perks=replace(state.perks, points=points))

    def equip_artifact(self, perk_id: str, state: PlayerState) -> PlayerState:
        perk = self.perk_repo.get(perk_id)
        if perk is None or not perk.is_artifact:
            logger.warning("Perk %s is not a known artifact; equip ignored", perk_id)
            return state
        progress = state.perks
        if not progress.has_perk(perk_id):
            return state
        if perk_id in progress.equipped_artifacts or progress.open_artifact_slots <= 0:
            return state

        state = replace(state, perks=replace(progress, equipped_artifacts=progress.equipped_artifacts + (perk_id,)))
        return self.effect_engine.add(self._artifact_template(perk), state)

    def unequip_artifact(self, perk_id: str, state: PlayerState) -> PlayerState:
        progress = state.perks
        if perk_id not in progress.equipped_artifacts:
            return state
        equipped = tuple(row for row in progress.equipped_artifacts if row != perk_id)
        state = replace(state, perks=replace(progress, equipped_artifacts=equipped))
        state = set_flag(state, ARTIFACT_UNEQUIP_FLAG, perk_id)
        state = self.effect_engine.expire_conditional(state)
        return remove_flag(state, ARTIFACT_UNEQUIP_FLAG)

    def rank_description(self, perk_id: str, rank: int) -> str:
        perk = self.perk_repo.get(perk_id)
        if perk is None:
            return ""
        return perk.rank_description(rank)

    @staticmethod
    def _unlock_template(perk: Perk) -> EffectTemplate:
        return _template_for(perk, perk.effects, duration=Permanent(), tags=("perk", perk.id))

    @staticmethod
    def _artifact_template(perk: Perk) -> EffectTemplate:
        return _template_for(
            perk,
            perk.effects.combined_with(perk.drawbacks),
            duration=Conditional(condition=Requirement(flags={ARTIFACT_UNEQUIP_FLAG: perk.id})),
            tags=("artifact", perk.id),
            name=f"{perk.name} (Equipped)",
        )


def _template_for(
    perk: Perk,
    modifiers: PerkModifiers,
    *,
    duration: Permanent | Conditional,
    tags: tuple[str, ...],
    name: Optional[str] = None,
) -> EffectTemplate:
    return EffectTemplate(
        name=name or perk.name,
        source=EffectSource.PERK,
        source_id=perk.id,
        duration=duration,
        description=perk.description,
        stat_modifiers=dict(modifiers.stats),
        ability_modifiers=dict(modifiers.abilities),
        flag_modifiers=dict(modifiers.flags),
        tags=tags,
    )
