from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Dict, Mapping, Optional


REPUTATION_MIN = -100
REPUTATION_MAX = 100


class ReputationLevel(str, Enum):
    HATED = "hated"
    HOSTILE = "hostile"
    UNFRIENDLY = "unfriendly"
    NEUTRAL = "neutral"
    FRIENDLY = "friendly"
    RESPECTED = "respected"
    HONORED = "honored"
    EXALTED = "exalted"

    @property
    def ordinal(self) -> int:
        return LEVEL_ORDER.index(self)

    @classmethod
    def parse(cls, value: "str | ReputationLevel") -> "ReputationLevel":
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        for level in cls:
            if level.value == normalized:
                return level
        raise ValueError(f"Unknown reputation level: {value}")


LEVEL_ORDER: tuple[ReputationLevel, ...] = tuple(ReputationLevel)


class Alignment(str, Enum):
    LAWFUL = "lawful"
    NEUTRAL = "neutral"
    CHAOTIC = "chaotic"


@dataclass(frozen=True)
class ReputationEffects:
    trade_price_modifier: int = 0
    dialogue_options: bool = False
    quest_availability: bool = False
    safe_passage: bool = True
    companions: bool = False


@dataclass(frozen=True)
class FactionReputation:
    id: str
    name: str
    description: str = ""
    value: int = 0
    level: ReputationLevel = ReputationLevel.NEUTRAL
    effects: ReputationEffects = field(default_factory=ReputationEffects)
    hidden: bool = False


@dataclass(frozen=True)
class ReputationEvent:
    faction_id: str
    timestamp: datetime
    delta: int
    reason: str


@dataclass(frozen=True)
class ReputationData:
    factions: Mapping[str, FactionReputation] = field(default_factory=dict)
    alignment: Alignment = Alignment.NEUTRAL
    events: tuple[ReputationEvent, ...] = ()

    def get(self, faction_id: str) -> Optional[FactionReputation]:
        return self.factions.get(str(faction_id))

    def with_faction(self, faction: FactionReputation) -> "ReputationData":
        return replace(self, factions={**self.factions, faction.id: faction})


# Inclusive lower bounds, lowest first.
DEFAULT_THRESHOLDS: tuple[tuple[ReputationLevel, int], ...] = (
    (ReputationLevel.HATED, -100),
    (ReputationLevel.HOSTILE, -75),
    (ReputationLevel.UNFRIENDLY, -25),
    (ReputationLevel.NEUTRAL, -10),
    (ReputationLevel.FRIENDLY, 10),
    (ReputationLevel.RESPECTED, 50),
    (ReputationLevel.HONORED, 75),
    (ReputationLevel.EXALTED, 90),
)

DEFAULT_LEVEL_EFFECTS: Dict[ReputationLevel, ReputationEffects] = {
    ReputationLevel.HATED: ReputationEffects(trade_price_modifier=50, safe_passage=False),
    ReputationLevel.HOSTILE: ReputationEffects(trade_price_modifier=30, safe_passage=False),
    ReputationLevel.UNFRIENDLY: ReputationEffects(trade_price_modifier=15, safe_passage=False),
    ReputationLevel.NEUTRAL: ReputationEffects(trade_price_modifier=0),
    ReputationLevel.FRIENDLY: ReputationEffects(
        trade_price_modifier=-10,
        dialogue_options=True,
        quest_availability=True,
    ),
    ReputationLevel.RESPECTED: ReputationEffects(
        trade_price_modifier=-20,
        dialogue_options=True,
        quest_availability=True,
        companions=True,
    ),
    ReputationLevel.HONORED: ReputationEffects(
        trade_price_modifier=-30,
        dialogue_options=True,
        quest_availability=True,
        companions=True,
    ),
    ReputationLevel.EXALTED: ReputationEffects(
        trade_price_modifier=-40,
        dialogue_options=True,
        quest_availability=True,
        companions=True,
    ),
}

LEVEL_DESCRIPTIONS: Dict[ReputationLevel, str] = {
    ReputationLevel.HATED: "They will attack you on sight.",
    ReputationLevel.HOSTILE: "They are openly hostile toward you.",
    ReputationLevel.UNFRIENDLY: "They distrust you and may refuse service.",
    ReputationLevel.NEUTRAL: "They neither like nor dislike you.",
    ReputationLevel.FRIENDLY: "They are willing to help you.",
    ReputationLevel.RESPECTED: "They hold you in high regard.",
    ReputationLevel.HONORED: "They consider you a valuable ally.",
    ReputationLevel.EXALTED: "They revere you as a hero.",
}

DEFAULT_FACTIONS: tuple[tuple[str, str, str, int], ...] = (
    (
        "wasteland-survivors",
        "Wasteland Survivors",
        "Scattered groups of survivors trying to rebuild civilization in the wasteland.",
        0,
    ),
    (
        "tech-brotherhood",
        "Tech Brotherhood",
        "A secretive organization dedicated to preserving pre-war technology.",
        0,
    ),
    ("raiders", "Raiders", "Violent gangs that prey on the weak and vulnerable.", -20),
    ("mutants", "Mutant Collective", "Communities of mutated humans with their own culture and goals.", -10),
    ("merchants-guild", "Merchants Guild", "A network of traders who control most commerce in the wasteland.", 0),
)


def clamp_reputation(value: int) -> int:
    return max(REPUTATION_MIN, min(REPUTATION_MAX, int(value)))


@dataclass(frozen=True)
class ReputationRules:
    """Threshold, effects and alignment tables for faction standing.

    Built once at startup and handed to every component that derives levels,
    so an alternate rule set can be swapped in without touching the services.
    """

    thresholds: tuple[tuple[ReputationLevel, int], ...] = DEFAULT_THRESHOLDS
    level_effects: Mapping[ReputationLevel, ReputationEffects] = field(
        default_factory=lambda: dict(DEFAULT_LEVEL_EFFECTS)
    )
    factions: tuple[tuple[str, str, str, int], ...] = DEFAULT_FACTIONS
    cooperative_factions: tuple[str, ...] = ("wasteland-survivors", "tech-brotherhood", "merchants-guild")
    hostile_factions: tuple[str, ...] = ("raiders", "mutants")
    alignment_margin: int = 25

    def level_for(self, value: int) -> ReputationLevel:
        score = clamp_reputation(value)
        level = self.thresholds[0][0]
        for candidate, lower_bound in self.thresholds:
            if score >= lower_bound:
                level = candidate
        return level

    def effects_for(self, level: ReputationLevel) -> ReputationEffects:
        return self.level_effects.get(level, ReputationEffects())

    def with_value(self, faction: FactionReputation, value: int) -> FactionReputation:
        score = clamp_reputation(value)
        level = self.level_for(score)
        return replace(faction, value=score, level=level, effects=self.effects_for(level))

    def default_reputation(self) -> ReputationData:
        factions: Dict[str, FactionReputation] = {}
        for faction_id, name, description, value in self.factions:
            factions[faction_id] = self.with_value(
                FactionReputation(id=faction_id, name=name, description=description),
                value,
            )
        return ReputationData(factions=factions)

    def resolve(self, reputation: Optional[ReputationData]) -> ReputationData:
        return reputation if reputation is not None else self.default_reputation()


DEFAULT_REPUTATION_RULES = ReputationRules()


def level_description(level: ReputationLevel) -> str:
    return LEVEL_DESCRIPTIONS.get(level, "")
