from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from storycore.domain.models.condition import Requirement
from storycore.domain.models.flags import FlagValue
from storycore.domain.models.item import Item
from storycore.domain.models.skill_check import SkillCheck


@dataclass(frozen=True)
class SceneOption:
    """One authored choice; failure fields apply only when its check fails."""

    id: str
    text: str
    next_episode_id: Optional[str] = None
    failure_episode_id: Optional[str] = None
    condition: Optional[Requirement] = None
    skill_check: Optional[SkillCheck] = None
    set_flags: Mapping[str, FlagValue] = field(default_factory=dict)
    modify_stats: Mapping[str, float] = field(default_factory=dict)
    modify_abilities: Mapping[str, int] = field(default_factory=dict)
    add_items: tuple[Item, ...] = ()
    remove_items: tuple[str, ...] = ()
    success_text: Optional[str] = None
    failure_text: Optional[str] = None
    failure_flags: Mapping[str, FlagValue] = field(default_factory=dict)
    failure_stats: Mapping[str, float] = field(default_factory=dict)
