from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from storycore.domain.models.dialogue import Npc
from storycore.domain.repositories import NpcRepository


class InMemoryNpcRepository(NpcRepository):
    def __init__(self, npcs: Iterable[Npc] | None = None) -> None:
        self._npcs: Dict[str, Npc] = {npc.id: npc for npc in npcs or ()}

    def get(self, npc_id: str) -> Optional[Npc]:
        return self._npcs.get(str(npc_id or "").strip())

    def list_all(self) -> List[Npc]:
        return list(self._npcs.values())

    def add(self, npc: Npc) -> None:
        self._npcs[npc.id] = npc
