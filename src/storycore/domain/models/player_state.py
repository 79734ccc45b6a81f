from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from storycore.domain.models.dialogue import DialogueState, NpcMemory
from storycore.domain.models.effect import EffectsState
from storycore.domain.models.faction import ReputationData
from storycore.domain.models.flags import FlagValue
from storycore.domain.models.item import Item
from storycore.domain.models.progression import PerkProgress
from storycore.domain.models.stats import DEFAULT_STATS, AbilityScores


@dataclass(frozen=True)
class PlayerState:
    """Root value threaded through every rules operation.

    Instances are never changed in place. Operations build a new value with
    ``dataclasses.replace`` and copy only the sub-record they touch, so
    untouched mappings and tuples are shared between successive states.

    ``stats``, ``abilities``, ``flags`` and faction values hold the current
    values with every active effect applied; the pre-effect values live in
    ``effects.baseline`` while any effect is active.
    """

    flags: Mapping[str, FlagValue] = field(default_factory=dict)
    stats: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_STATS))
    abilities: AbilityScores = field(default_factory=AbilityScores)
    inventory: tuple[Item, ...] = ()
    perks: PerkProgress = field(default_factory=PerkProgress)
    reputation: Optional[ReputationData] = None
    effects: EffectsState = field(default_factory=EffectsState)
    dialogue: DialogueState = field(default_factory=DialogueState)
    npc_memory: Mapping[str, NpcMemory] = field(default_factory=dict)
    level: int = 1
    current_episode_id: Optional[str] = None

    def find_item(self, item_id: str) -> Optional[Item]:
        for item in self.inventory:
            if item.id == item_id:
                return item
        return None

    def has_item(self, item_id: str) -> bool:
        item = self.find_item(item_id)
        return item is not None and int(item.quantity) >= 1
