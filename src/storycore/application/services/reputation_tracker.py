from __future__ import annotations

from dataclasses import replace
from datetime import datetime
import logging
from typing import Callable, Iterable, Optional

from storycore.application.services.effect_engine import rebuild_factions, utc_now
from storycore.domain.events import ReputationChanged
from storycore.domain.models.faction import (
    DEFAULT_REPUTATION_RULES,
    Alignment,
    FactionReputation,
    ReputationData,
    ReputationEvent,
    ReputationLevel,
    ReputationRules,
    clamp_reputation,
    level_description,
)
from storycore.domain.models.player_state import PlayerState


logger = logging.getLogger(__name__)


class ReputationTracker:
    def __init__(
        self,
        rules: ReputationRules = DEFAULT_REPUTATION_RULES,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        event_publisher: Optional[Callable[[object], None]] = None,
    ) -> None:
        self.rules = rules
        self.clock = clock or utc_now
        self.event_publisher = event_publisher

    def default_reputation(self) -> ReputationData:
        return self.rules.default_reputation()

    def change_reputation(self, faction_id: str, delta: int, reason: str, state: PlayerState) -> PlayerState:
        """Shift a faction's stored standing by ``delta`` and re-derive its level.

        With effects active the change lands in the effect baseline so that
        reputation modifiers stay layered on top of it.
        """

        reputation = self.rules.resolve(state.reputation)
        faction = reputation.get(faction_id)
        if faction is None:
            logger.warning("Faction %s not found in reputation data; change ignored", faction_id)
            return state

        event = ReputationEvent(faction_id=faction_id, timestamp=self.clock(), delta=int(delta), reason=reason)
        reputation = replace(reputation, events=reputation.events + (event,))
        baseline = state.effects.baseline

        if baseline is None:
            updated = self.rules.with_value(faction, int(faction.value) + int(delta))
            state = replace(state, reputation=reputation.with_faction(updated))
        else:
            base = int(baseline.faction_values.get(faction_id, faction.value))
            faction_values = {**baseline.faction_values, faction_id: clamp_reputation(base + int(delta))}
            state = replace(
                state,
                reputation=reputation,
                effects=replace(state.effects, baseline=replace(baseline, faction_values=faction_values)),
            )
            state = rebuild_factions(state, self.rules)
            updated = state.reputation.get(faction_id)  # type: ignore[union-attr]

        if self.event_publisher is not None and updated is not None:
            self.event_publisher(
                ReputationChanged(
                    faction_id=faction_id,
                    delta=int(delta),
                    value_after=int(updated.value),
                    level_before=faction.level.value,
                    level_after=updated.level.value,
                    reason=reason,
                )
            )
        return state

    def calculate_alignment(self, state: PlayerState) -> Alignment:
        reputation = self.rules.resolve(state.reputation)
        cooperative = self._average(reputation, self.rules.cooperative_factions)
        hostile = self._average(reputation, self.rules.hostile_factions)
        margin = self.rules.alignment_margin
        if cooperative > margin and hostile < -margin:
            return Alignment.LAWFUL
        if hostile > margin and cooperative < -margin:
            return Alignment.CHAOTIC
        return Alignment.NEUTRAL

    def update_alignment(self, state: PlayerState) -> PlayerState:
        alignment = self.calculate_alignment(state)
        reputation = self.rules.resolve(state.reputation)
        if reputation.alignment == alignment and state.reputation is not None:
            return state
        return replace(state, reputation=replace(reputation, alignment=alignment))

    def get_reputation(self, faction_id: str, state: PlayerState) -> Optional[FactionReputation]:
        if state.reputation is None:
            return None
        return state.reputation.get(faction_id)

    def has_reputation_level(self, faction_id: str, level: ReputationLevel | str, state: PlayerState) -> bool:
        faction = self.get_reputation(faction_id, state)
        if faction is None:
            return False
        return faction.level.ordinal >= ReputationLevel.parse(level).ordinal

    def discover_faction(self, faction_id: str, state: PlayerState) -> PlayerState:
        faction = self.get_reputation(faction_id, state)
        if faction is None or not faction.hidden:
            return state
        reputation = state.reputation.with_faction(replace(faction, hidden=False))  # type: ignore[union-attr]
        return replace(state, reputation=reputation)

    def trade_price_modifier(self, faction_id: str, state: PlayerState) -> int:
        faction = self.get_reputation(faction_id, state)
        if faction is None:
            return 0
        return int(faction.effects.trade_price_modifier)

    @staticmethod
    def level_description(level: ReputationLevel | str) -> str:
        return level_description(ReputationLevel.parse(level))

    @staticmethod
    def _average(reputation: ReputationData, faction_ids: Iterable[str]) -> float:
        ids = list(faction_ids)
        if not ids:
            return 0.0
        total = 0
        for faction_id in ids:
            faction = reputation.get(faction_id)
            total += 0 if faction is None else int(faction.value)
        return total / len(ids)
