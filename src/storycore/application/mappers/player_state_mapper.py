from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from storycore.application.mappers.content_mapper import (
    duration_from_dict,
    duration_to_dict,
    item_from_dict,
    item_to_dict,
    parse_enum,
    require_mapping,
    requirement_from_dict,
    requirement_to_dict,
)
from storycore.domain.models.dialogue import DialogueState, NpcMemory
from storycore.domain.models.effect import Effect, EffectBaseline, EffectHistoryEntry, EffectSource, EffectsState
from storycore.domain.models.faction import (
    Alignment,
    FactionReputation,
    ReputationData,
    ReputationEffects,
    ReputationEvent,
    ReputationLevel,
)
from storycore.domain.models.flags import normalize_flag_map
from storycore.domain.models.player_state import PlayerState
from storycore.domain.models.progression import DEFAULT_ARTIFACT_SLOTS, PerkProgress
from storycore.domain.models.stats import ability_scores_from_mapping, normalize_stat_map


def _dt_to(value: Optional[datetime]) -> Optional[str]:
    return None if value is None else value.isoformat()


def _dt_from(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO timestamp, got {value!r}")
    return datetime.fromisoformat(value)


def _effect_to(effect: Effect) -> Dict[str, Any]:
    return {
        "id": effect.id,
        "name": effect.name,
        "source": effect.source.value,
        "source_id": effect.source_id,
        "duration": duration_to_dict(effect.duration),
        "description": effect.description,
        "stat_modifiers": dict(effect.stat_modifiers),
        "ability_modifiers": dict(effect.ability_modifiers),
        "reputation_modifiers": dict(effect.reputation_modifiers),
        "flag_modifiers": dict(effect.flag_modifiers),
        "apply_condition": requirement_to_dict(effect.apply_condition),
        "on_apply": effect.on_apply,
        "on_remove": effect.on_remove,
        "on_trigger": effect.on_trigger,
        "tags": list(effect.tags),
        "active": effect.active,
        "applied_at": _dt_to(effect.applied_at),
        "last_triggered": _dt_to(effect.last_triggered),
        "trigger_count": int(effect.trigger_count),
    }


def _effect_from(payload: Any) -> Effect:
    data = require_mapping(payload, "effect")
    return Effect(
        id=str(data["id"]),
        name=str(data.get("name") or ""),
        source=parse_enum(EffectSource, data.get("source"), "effect source"),
        source_id=str(data.get("source_id") or ""),
        duration=duration_from_dict(data.get("duration")),
        description=str(data.get("description") or ""),
        stat_modifiers=dict(data.get("stat_modifiers") or {}),
        ability_modifiers={k: int(v) for k, v in (data.get("ability_modifiers") or {}).items()},
        reputation_modifiers={k: int(v) for k, v in (data.get("reputation_modifiers") or {}).items()},
        flag_modifiers=normalize_flag_map(data.get("flag_modifiers")),
        apply_condition=requirement_from_dict(data.get("apply_condition")),
        on_apply=data.get("on_apply"),
        on_remove=data.get("on_remove"),
        on_trigger=data.get("on_trigger"),
        tags=tuple(data.get("tags") or ()),
        active=bool(data.get("active", True)),
        applied_at=_dt_from(data.get("applied_at")),
        last_triggered=_dt_from(data.get("last_triggered")),
        trigger_count=int(data.get("trigger_count", 0)),
    )


def _effects_to(effects: EffectsState) -> Dict[str, Any]:
    baseline = effects.baseline
    return {
        "active": [_effect_to(effect) for effect in effects.active],
        "history": [
            {
                "effect_id": entry.effect_id,
                "applied_at": _dt_to(entry.applied_at),
                "removed_at": _dt_to(entry.removed_at),
                "source": entry.source.value,
                "source_id": entry.source_id,
            }
            for entry in effects.history
        ],
        "baseline": (
            None
            if baseline is None
            else {
                "stats": dict(baseline.stats),
                "abilities": dict(baseline.abilities),
                "faction_values": dict(baseline.faction_values),
                "flags": dict(baseline.flags),
            }
        ),
    }


def _effects_from(payload: Any) -> EffectsState:
    if payload is None:
        return EffectsState()
    data = require_mapping(payload, "effects")
    history = []
    for row in data.get("history") or []:
        entry = require_mapping(row, "effect history entry")
        history.append(
            EffectHistoryEntry(
                effect_id=str(entry["effect_id"]),
                applied_at=_dt_from(entry.get("applied_at")),  # type: ignore[arg-type]
                removed_at=_dt_from(entry.get("removed_at")),
                source=parse_enum(EffectSource, entry.get("source"), "effect source"),
                source_id=str(entry.get("source_id") or ""),
            )
        )
    baseline_payload = data.get("baseline")
    baseline = None
    if baseline_payload is not None:
        raw = require_mapping(baseline_payload, "effects.baseline")
        baseline = EffectBaseline(
            stats=normalize_stat_map(raw.get("stats")),
            abilities={k: int(v) for k, v in (raw.get("abilities") or {}).items()},
            faction_values={k: int(v) for k, v in (raw.get("faction_values") or {}).items()},
            flags=normalize_flag_map(raw.get("flags")),
        )
    return EffectsState(
        active=tuple(_effect_from(row) for row in data.get("active") or []),
        history=tuple(history),
        baseline=baseline,
    )


def _reputation_to(reputation: Optional[ReputationData]) -> Optional[Dict[str, Any]]:
    if reputation is None:
        return None
    return {
        "factions": {
            faction_id: {
                "id": faction.id,
                "name": faction.name,
                "description": faction.description,
                "value": int(faction.value),
                "level": faction.level.value,
                "effects": {
                    "trade_price_modifier": faction.effects.trade_price_modifier,
                    "dialogue_options": faction.effects.dialogue_options,
                    "quest_availability": faction.effects.quest_availability,
                    "safe_passage": faction.effects.safe_passage,
                    "companions": faction.effects.companions,
                },
                "hidden": faction.hidden,
            }
            for faction_id, faction in reputation.factions.items()
        },
        "alignment": reputation.alignment.value,
        "events": [
            {
                "faction_id": event.faction_id,
                "timestamp": _dt_to(event.timestamp),
                "delta": int(event.delta),
                "reason": event.reason,
            }
            for event in reputation.events
        ],
    }


def _reputation_from(payload: Any) -> Optional[ReputationData]:
    if payload is None:
        return None
    data = require_mapping(payload, "reputation")
    factions: Dict[str, FactionReputation] = {}
    for faction_id, row in (data.get("factions") or {}).items():
        faction = require_mapping(row, f"reputation.factions.{faction_id}")
        effects = faction.get("effects") or {}
        factions[str(faction_id)] = FactionReputation(
            id=str(faction.get("id") or faction_id),
            name=str(faction.get("name") or faction_id),
            description=str(faction.get("description") or ""),
            value=int(faction.get("value", 0)),
            level=ReputationLevel.parse(faction.get("level", ReputationLevel.NEUTRAL.value)),
            effects=ReputationEffects(**{key: effects[key] for key in effects}),
            hidden=bool(faction.get("hidden", False)),
        )
    events = tuple(
        ReputationEvent(
            faction_id=str(row["faction_id"]),
            timestamp=_dt_from(row.get("timestamp")),  # type: ignore[arg-type]
            delta=int(row.get("delta", 0)),
            reason=str(row.get("reason") or ""),
        )
        for row in data.get("events") or []
    )
    return ReputationData(
        factions=factions,
        alignment=parse_enum(Alignment, data.get("alignment", Alignment.NEUTRAL.value), "alignment"),
        events=events,
    )


def _npc_memory_to(memory: Mapping[str, NpcMemory]) -> Dict[str, Any]:
    return {
        npc_id: {
            "met": row.met,
            "last_interaction": _dt_to(row.last_interaction),
            "remembered": dict(row.remembered),
        }
        for npc_id, row in memory.items()
    }


def _npc_memory_from(payload: Any) -> Dict[str, NpcMemory]:
    data = require_mapping(payload or {}, "npc_memory")
    return {
        str(npc_id): NpcMemory(
            met=bool(row.get("met", False)),
            last_interaction=_dt_from(row.get("last_interaction")),
            remembered=normalize_flag_map(row.get("remembered")),
        )
        for npc_id, row in data.items()
    }


def to_dict(state: PlayerState) -> Dict[str, Any]:
    return {
        "flags": dict(state.flags),
        "stats": dict(state.stats),
        "abilities": state.abilities.as_dict(),
        "inventory": [item_to_dict(item) for item in state.inventory],
        "perks": {
            "unlocked": dict(state.perks.unlocked),
            "points": int(state.perks.points),
            "artifact_slots": int(state.perks.artifact_slots),
            "equipped_artifacts": list(state.perks.equipped_artifacts),
        },
        "reputation": _reputation_to(state.reputation),
        "effects": _effects_to(state.effects),
        "dialogue": {
            "active": state.dialogue.active,
            "npc_id": state.dialogue.npc_id,
            "node_id": state.dialogue.node_id,
        },
        "npc_memory": _npc_memory_to(state.npc_memory),
        "level": int(state.level),
        "current_episode_id": state.current_episode_id,
    }


def from_dict(payload: Any) -> PlayerState:
    data = require_mapping(payload, "player state")
    perks = require_mapping(data.get("perks") or {}, "perks")
    dialogue = require_mapping(data.get("dialogue") or {}, "dialogue")
    return PlayerState(
        flags=normalize_flag_map(data.get("flags")),
        stats=normalize_stat_map(data.get("stats")),
        abilities=ability_scores_from_mapping(data.get("abilities")),
        inventory=tuple(item_from_dict(row) for row in data.get("inventory") or []),
        perks=PerkProgress(
            unlocked={str(k): int(v) for k, v in (perks.get("unlocked") or {}).items()},
            points=int(perks.get("points", 0)),
            artifact_slots=int(perks.get("artifact_slots", DEFAULT_ARTIFACT_SLOTS)),
            equipped_artifacts=tuple(perks.get("equipped_artifacts") or ()),
        ),
        reputation=_reputation_from(data.get("reputation")),
        effects=_effects_from(data.get("effects")),
        dialogue=DialogueState(
            active=bool(dialogue.get("active", False)),
            npc_id=dialogue.get("npc_id"),
            node_id=dialogue.get("node_id"),
        ),
        npc_memory=_npc_memory_from(data.get("npc_memory")),
        level=int(data.get("level", 1)),
        current_episode_id=data.get("current_episode_id"),
    )
