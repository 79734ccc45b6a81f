from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping


DEFAULT_ARTIFACT_SLOTS = 2


@dataclass(frozen=True)
class PerkProgress:
    unlocked: Mapping[str, int] = field(default_factory=dict)
    points: int = 0
    artifact_slots: int = DEFAULT_ARTIFACT_SLOTS
    equipped_artifacts: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if int(self.points) < 0:
            raise ValueError("Perk points cannot be negative")
        if int(self.artifact_slots) < 0:
            raise ValueError("Artifact slots cannot be negative")

    def rank(self, perk_id: str) -> int:
        return int(self.unlocked.get(perk_id, 0) or 0)

    def has_perk(self, perk_id: str) -> bool:
        return self.rank(perk_id) > 0

    @property
    def open_artifact_slots(self) -> int:
        return max(0, int(self.artifact_slots) - len(self.equipped_artifacts))
