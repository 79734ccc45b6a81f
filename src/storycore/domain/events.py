from dataclasses import dataclass
from typing import Optional


class RulesEvent:
    """Base for events published by the rules services."""


@dataclass
class EffectApplied(RulesEvent):
    effect_id: str
    name: str
    source: str
    source_id: str


@dataclass
class EffectRemoved(RulesEvent):
    effect_id: str
    name: str
    reason: str


@dataclass
class ReputationChanged(RulesEvent):
    faction_id: str
    delta: int
    value_after: int
    level_before: str
    level_after: str
    reason: str


@dataclass
class PerkUnlocked(RulesEvent):
    perk_id: str
    rank: int
    points_remaining: int


@dataclass
class DialogueAdvanced(RulesEvent):
    npc_id: str
    from_node_id: Optional[str]
    to_node_id: Optional[str]
    ended: bool


@dataclass
class SkillCheckResolved(RulesEvent):
    ability: str
    difficulty: int
    roll: int
    total: int
    success: bool
