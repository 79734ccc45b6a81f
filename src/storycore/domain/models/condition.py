from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Union

from storycore.domain.models.faction import ReputationLevel
from storycore.domain.models.flags import FlagValue


@dataclass(frozen=True)
class Range:
    min: Optional[float] = None
    max: Optional[float] = None

    def contains(self, value: float) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True


NumericRequirement = Union[int, float, Range]


@dataclass(frozen=True)
class ReputationRange:
    min: ReputationLevel
    max: Optional[ReputationLevel] = None

    def contains(self, level: ReputationLevel) -> bool:
        if level.ordinal < self.min.ordinal:
            return False
        if self.max is not None and level.ordinal > self.max.ordinal:
            return False
        return True


ReputationRequirement = Union[ReputationLevel, ReputationRange]


@dataclass(frozen=True)
class SceneLocation:
    episode_id: Optional[str] = None
    scene_id: Optional[str] = None


@dataclass(frozen=True)
class Requirement:
    """Conjunction of optional predicate groups; an absent group always passes.

    ``episode_id``/``scene_id`` only take part when a :class:`SceneLocation`
    is supplied to the evaluator (scene-change expiry).
    """

    flags: Optional[Mapping[str, FlagValue]] = None
    stats: Optional[Mapping[str, NumericRequirement]] = None
    abilities: Optional[Mapping[str, NumericRequirement]] = None
    items: Optional[tuple[str, ...]] = None
    perks: Optional[Mapping[str, bool]] = None
    reputation: Optional[Mapping[str, ReputationRequirement]] = None
    episode_id: Optional[str] = None
    scene_id: Optional[str] = None

    @property
    def references_location(self) -> bool:
        return bool(self.episode_id or self.scene_id)

    def references_ability(self, ability: str) -> bool:
        return bool(self.abilities) and ability in self.abilities

    def references_item(self, item_id: str) -> bool:
        return bool(self.items) and item_id in self.items

    def matches_location(self, location: SceneLocation) -> bool:
        if self.episode_id and self.episode_id != location.episode_id:
            return False
        if self.scene_id and self.scene_id != location.scene_id:
            return False
        return True
