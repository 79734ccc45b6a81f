from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping


ABILITY_NAMES: tuple[str, ...] = ("strength", "intelligence", "charisma", "perception", "agility", "luck")
ABILITY_MIN = 1
ABILITY_MAX = 10
DEFAULT_ABILITY_SCORE = 5

DEFAULT_STATS: dict[str, float] = {
    "health": 100,
    "energy": 100,
    "maxHealth": 100,
    "maxEnergy": 100,
    "healthRegen": 1,
    "energyRegen": 1,
    "radiationResistance": 0,
    "toxinResistance": 0,
    "carryWeight": 100,
}


def clamp_ability(value: int | float | None) -> int:
    try:
        score = int(value)  # type: ignore[arg-type]
    except Exception:
        score = ABILITY_MIN
    return max(ABILITY_MIN, min(ABILITY_MAX, score))


@dataclass(frozen=True)
class AbilityScores:
    strength: int = DEFAULT_ABILITY_SCORE
    intelligence: int = DEFAULT_ABILITY_SCORE
    charisma: int = DEFAULT_ABILITY_SCORE
    perception: int = DEFAULT_ABILITY_SCORE
    agility: int = DEFAULT_ABILITY_SCORE
    luck: int = DEFAULT_ABILITY_SCORE

    def __post_init__(self) -> None:
        for name in ABILITY_NAMES:
            object.__setattr__(self, name, clamp_ability(getattr(self, name)))

    def get(self, name: str) -> int | None:
        if name not in ABILITY_NAMES:
            return None
        return int(getattr(self, name))

    def with_value(self, name: str, value: int) -> "AbilityScores":
        if name not in ABILITY_NAMES:
            return self
        return replace(self, **{name: value})

    def as_dict(self) -> dict[str, int]:
        return {name: int(getattr(self, name)) for name in ABILITY_NAMES}


def ability_scores_from_mapping(abilities: Mapping[str, Any] | None) -> AbilityScores:
    values = abilities or {}

    def _score(name: str) -> int:
        raw = values.get(name)
        if raw is None:
            return DEFAULT_ABILITY_SCORE
        return clamp_ability(raw)

    return AbilityScores(**{name: _score(name) for name in ABILITY_NAMES})


def normalize_stat_map(values: Mapping[str, Any] | None) -> dict[str, float]:
    if not isinstance(values, Mapping):
        return {}
    normalized: dict[str, float] = {}
    for raw_key, raw in values.items():
        key = str(raw_key or "").strip()
        if not key or isinstance(raw, bool):
            continue
        try:
            normalized[key] = int(raw) if float(raw).is_integer() else float(raw)
        except Exception:
            continue
    return normalized


def ability_rank_label(value: int) -> str:
    if value <= 2:
        return "Novice"
    if value <= 4:
        return "Apprentice"
    if value <= 6:
        return "Adept"
    if value <= 8:
        return "Expert"
    return "Master"
