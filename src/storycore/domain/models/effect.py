from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Mapping, Optional, Union

from storycore.domain.models.condition import Requirement
from storycore.domain.models.flags import FlagValue


class EffectSource(str, Enum):
    PERK = "perk"
    ITEM = "item"
    QUEST = "quest"
    EVENT = "event"
    DIALOGUE = "dialogue"
    SKILL = "skill"
    SCENE = "scene"


@dataclass(frozen=True)
class Permanent:
    kind = "permanent"


@dataclass(frozen=True)
class Temporary:
    """Counts down once per scene change; removed when it reaches zero."""

    remaining: int
    kind = "temporary"

    def __post_init__(self) -> None:
        if int(self.remaining) < 0:
            raise ValueError("Temporary effect duration cannot be negative")


@dataclass(frozen=True)
class Timed:
    expires_at: datetime
    kind = "timed"

    def __post_init__(self) -> None:
        if self.expires_at.tzinfo is None:
            object.__setattr__(self, "expires_at", self.expires_at.replace(tzinfo=timezone.utc))


@dataclass(frozen=True)
class Conditional:
    condition: Requirement
    kind = "conditional"


EffectDuration = Union[Permanent, Temporary, Timed, Conditional]


@dataclass(frozen=True)
class EffectTemplate:
    name: str
    source: EffectSource
    source_id: str
    duration: EffectDuration = field(default_factory=Permanent)
    description: str = ""
    stat_modifiers: Mapping[str, float] = field(default_factory=dict)
    ability_modifiers: Mapping[str, int] = field(default_factory=dict)
    reputation_modifiers: Mapping[str, int] = field(default_factory=dict)
    flag_modifiers: Mapping[str, FlagValue] = field(default_factory=dict)
    apply_condition: Optional[Requirement] = None
    on_apply: Optional[str] = None
    on_remove: Optional[str] = None
    on_trigger: Optional[str] = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class Effect:
    id: str
    name: str
    source: EffectSource
    source_id: str
    duration: EffectDuration = field(default_factory=Permanent)
    description: str = ""
    stat_modifiers: Mapping[str, float] = field(default_factory=dict)
    ability_modifiers: Mapping[str, int] = field(default_factory=dict)
    reputation_modifiers: Mapping[str, int] = field(default_factory=dict)
    flag_modifiers: Mapping[str, FlagValue] = field(default_factory=dict)
    apply_condition: Optional[Requirement] = None
    on_apply: Optional[str] = None
    on_remove: Optional[str] = None
    on_trigger: Optional[str] = None
    tags: tuple[str, ...] = ()
    active: bool = True
    applied_at: Optional[datetime] = None
    last_triggered: Optional[datetime] = None
    trigger_count: int = 0

    @classmethod
    def from_template(cls, template: EffectTemplate, *, effect_id: str, applied_at: datetime) -> "Effect":
        return cls(
            id=effect_id,
            name=template.name,
            source=template.source,
            source_id=template.source_id,
            duration=template.duration,
            description=template.description,
            stat_modifiers=dict(template.stat_modifiers),
            ability_modifiers=dict(template.ability_modifiers),
            reputation_modifiers=dict(template.reputation_modifiers),
            flag_modifiers=dict(template.flag_modifiers),
            apply_condition=template.apply_condition,
            on_apply=template.on_apply,
            on_remove=template.on_remove,
            on_trigger=template.on_trigger,
            tags=tuple(template.tags),
            active=True,
            applied_at=applied_at,
            trigger_count=0,
        )


@dataclass(frozen=True)
class EffectHistoryEntry:
    effect_id: str
    applied_at: datetime
    source: EffectSource
    source_id: str
    removed_at: Optional[datetime] = None


@dataclass(frozen=True)
class EffectBaseline:
    """Values the player state would hold with no effect active."""

    stats: Mapping[str, float] = field(default_factory=dict)
    abilities: Mapping[str, int] = field(default_factory=dict)
    faction_values: Mapping[str, int] = field(default_factory=dict)
    flags: Mapping[str, FlagValue] = field(default_factory=dict)


@dataclass(frozen=True)
class EffectsState:
    active: tuple[Effect, ...] = ()
    history: tuple[EffectHistoryEntry, ...] = ()
    baseline: Optional[EffectBaseline] = None

    def find(self, effect_id: str) -> Optional[Effect]:
        for effect in self.active:
            if effect.id == effect_id:
                return effect
        return None
