"""Baseline-aware edits to flags, stats, abilities and inventory.

While effects are active the visible fields carry effect modifiers on top of
``effects.baseline``. Every helper here writes the baseline first and then
re-derives the visible value, so a later effect removal restores the edited
value instead of the stale pre-effect one.
"""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import Optional

from storycore.application.services.effect_engine import (
    effective_stat,
    rebuild_abilities,
    rebuild_flags,
    rebuild_stats,
)
from storycore.domain.models.flags import FlagValue, is_flag_value
from storycore.domain.models.item import Item
from storycore.domain.models.player_state import PlayerState
from storycore.domain.models.stats import ABILITY_NAMES, clamp_ability


logger = logging.getLogger(__name__)

STAT_COMPARISONS = ("greater", "less", "equal")


def set_flag(state: PlayerState, name: str, value: FlagValue) -> PlayerState:
    if not is_flag_value(value):
        raise ValueError(f"Unsupported flag value for {name}: {value!r}")
    baseline = state.effects.baseline
    if baseline is None:
        return replace(state, flags={**state.flags, name: value})
    baseline = replace(baseline, flags={**baseline.flags, name: value})
    return rebuild_flags(replace(state, effects=replace(state.effects, baseline=baseline)))


def remove_flag(state: PlayerState, name: str) -> PlayerState:
    baseline = state.effects.baseline
    if baseline is None:
        if name not in state.flags:
            return state
        return replace(state, flags={key: value for key, value in state.flags.items() if key != name})
    flags = {key: value for key, value in baseline.flags.items() if key != name}
    baseline = replace(baseline, flags=flags)
    return rebuild_flags(replace(state, effects=replace(state.effects, baseline=baseline)))


def get_flag(state: PlayerState, name: str) -> Optional[FlagValue]:
    return state.flags.get(name)


def check_flag(state: PlayerState, name: str, expected: Optional[FlagValue] = None) -> bool:
    actual = state.flags.get(name)
    if expected is None:
        return bool(actual)
    return actual == expected


def _write_stat(state: PlayerState, stat: str, value: float) -> PlayerState:
    baseline = state.effects.baseline
    if baseline is None:
        return replace(state, stats={**state.stats, stat: value})
    baseline = replace(baseline, stats={**baseline.stats, stat: value})
    return rebuild_stats(replace(state, effects=replace(state.effects, baseline=baseline)))


def _stored_stat(state: PlayerState, stat: str) -> Optional[float]:
    baseline = state.effects.baseline
    if baseline is not None and stat in baseline.stats:
        return baseline.stats[stat]
    return state.stats.get(stat)


def modify_stat(state: PlayerState, stat: str, delta: float) -> PlayerState:
    current = _stored_stat(state, stat)
    if current is None:
        logger.warning("Ignoring change to unknown stat %s", stat)
        return state
    return _write_stat(state, stat, max(0, current + delta))


def set_stat(state: PlayerState, stat: str, value: float) -> PlayerState:
    return _write_stat(state, stat, max(0, value))


def check_stat_threshold(state: PlayerState, stat: str, threshold: float, comparison: str = "greater") -> bool:
    value = effective_stat(state, stat)
    if value is None:
        return False
    if comparison == "greater":
        return value > threshold
    if comparison == "less":
        return value < threshold
    if comparison == "equal":
        return value == threshold
    raise ValueError(f"Unknown stat comparison: {comparison}")


def set_ability(state: PlayerState, ability: str, value: int) -> PlayerState:
    if ability not in ABILITY_NAMES:
        logger.warning("Ignoring change to unknown ability %s", ability)
        return state
    score = clamp_ability(value)
    baseline = state.effects.baseline
    if baseline is None:
        return replace(state, abilities=state.abilities.with_value(ability, score))
    baseline = replace(baseline, abilities={**baseline.abilities, ability: score})
    return rebuild_abilities(replace(state, effects=replace(state.effects, baseline=baseline)))


def modify_ability(state: PlayerState, ability: str, delta: int) -> PlayerState:
    if ability not in ABILITY_NAMES:
        logger.warning("Ignoring change to unknown ability %s", ability)
        return state
    baseline = state.effects.baseline
    if baseline is not None and ability in baseline.abilities:
        current = int(baseline.abilities[ability])
    else:
        current = int(state.abilities.get(ability) or 0)
    return set_ability(state, ability, current + int(delta))


def add_item(state: PlayerState, item: Item) -> PlayerState:
    existing = state.find_item(item.id)
    if existing is None:
        return replace(state, inventory=state.inventory + (item,))
    merged = replace(existing, quantity=int(existing.quantity) + int(item.quantity))
    return replace_item(state, merged)


def remove_item(state: PlayerState, item_id: str, quantity: int = 1) -> PlayerState:
    existing = state.find_item(item_id)
    if existing is None:
        return state
    if int(existing.quantity) <= int(quantity):
        return replace(state, inventory=tuple(row for row in state.inventory if row.id != item_id))
    return replace_item(state, replace(existing, quantity=int(existing.quantity) - int(quantity)))


def replace_item(state: PlayerState, item: Item) -> PlayerState:
    return replace(state, inventory=tuple(item if row.id == item.id else row for row in state.inventory))


def has_item(state: PlayerState, item_id: str) -> bool:
    return state.has_item(item_id)


def item_quantity(state: PlayerState, item_id: str) -> int:
    item = state.find_item(item_id)
    return 0 if item is None else int(item.quantity)
