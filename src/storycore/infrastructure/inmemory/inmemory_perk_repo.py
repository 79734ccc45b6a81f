from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from storycore.domain.models.perk import Perk
from storycore.domain.repositories import PerkRepository
from storycore.infrastructure.inmemory.default_perks import DEFAULT_PERKS


class InMemoryPerkRepository(PerkRepository):
    def __init__(self, perks: Iterable[Perk] | None = None) -> None:
        rows = DEFAULT_PERKS if perks is None else tuple(perks)
        self._perks: Dict[str, Perk] = {perk.id: perk for perk in rows}

    def get(self, perk_id: str) -> Optional[Perk]:
        return self._perks.get(str(perk_id or "").strip())

    def list_all(self) -> List[Perk]:
        return list(self._perks.values())

    def add(self, perk: Perk) -> None:
        self._perks[perk.id] = perk
