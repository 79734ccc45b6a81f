from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional

from storycore.domain.models.flags import FlagValue


class PerkCategory(str, Enum):
    COMBAT = "combat"
    SURVIVAL = "survival"
    EXPLORATION = "exploration"
    SOCIAL = "social"
    ANOMALY = "anomaly"
    MUTATION = "mutation"
    TECHNICAL = "technical"


class PerkRarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    LEGENDARY = "legendary"


@dataclass(frozen=True)
class PerkModifiers:
    stats: Mapping[str, float] = field(default_factory=dict)
    abilities: Mapping[str, int] = field(default_factory=dict)
    flags: Mapping[str, FlagValue] = field(default_factory=dict)

    def combined_with(self, other: Optional["PerkModifiers"]) -> "PerkModifiers":
        """Sum numeric modifiers; the other bundle's flags win on conflict."""

        if other is None:
            return self
        stats: Dict[str, float] = dict(self.stats)
        for name, value in other.stats.items():
            stats[name] = stats.get(name, 0) + value
        abilities: Dict[str, int] = dict(self.abilities)
        for name, value in other.abilities.items():
            abilities[name] = abilities.get(name, 0) + int(value)
        return PerkModifiers(stats=stats, abilities=abilities, flags={**self.flags, **other.flags})


@dataclass(frozen=True)
class PerkRequirement:
    level: Optional[int] = None
    abilities: Mapping[str, int] = field(default_factory=dict)
    perks: tuple[str, ...] = ()
    flags: Mapping[str, FlagValue] = field(default_factory=dict)
    mutually_exclusive: tuple[str, ...] = ()


@dataclass(frozen=True)
class Perk:
    id: str
    name: str
    description: str = ""
    category: PerkCategory = PerkCategory.SURVIVAL
    rarity: PerkRarity = PerkRarity.COMMON
    effects: PerkModifiers = field(default_factory=PerkModifiers)
    drawbacks: Optional[PerkModifiers] = None
    requirements: Optional[PerkRequirement] = None
    max_rank: int = 1
    is_artifact: bool = False

    def __post_init__(self) -> None:
        if int(self.max_rank) < 1:
            raise ValueError(f"Perk {self.id} must allow at least one rank")

    def rank_description(self, rank: int) -> str:
        if self.max_rank <= 1:
            return self.description
        return f"{self.description} (Rank {int(rank)}/{self.max_rank})"
