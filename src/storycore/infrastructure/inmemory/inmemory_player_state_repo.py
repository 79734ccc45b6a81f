from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

from storycore.application.mappers.player_state_mapper import from_dict, to_dict
from storycore.domain.models.player_state import PlayerState
from storycore.domain.repositories import PlayerStateRepository


class InMemoryPlayerStateRepository(PlayerStateRepository):
    """Keeps mapped snapshots, so a loaded state never aliases a saved one."""

    def __init__(self) -> None:
        self._slots: Dict[str, Dict[str, Any]] = {}

    def load(self, slot: str) -> Optional[PlayerState]:
        payload = self._slots.get(str(slot))
        if payload is None:
            return None
        return from_dict(copy.deepcopy(payload))

    def save(self, slot: str, state: PlayerState) -> None:
        key = str(slot or "").strip()
        if not key:
            raise ValueError("Save slot name is required")
        self._slots[key] = to_dict(state)

    def list_slots(self) -> List[str]:
        return sorted(self._slots)

    def delete(self, slot: str) -> bool:
        return self._slots.pop(str(slot), None) is not None
