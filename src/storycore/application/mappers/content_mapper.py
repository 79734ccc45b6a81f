"""Mapping between authored dict/JSON payloads and read-only content models.

Readers raise ``ValueError`` for structurally invalid payloads; writers emit
plain JSON-compatible dicts that the readers accept unchanged.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from storycore.domain.models.condition import (
    NumericRequirement,
    Range,
    ReputationRange,
    ReputationRequirement,
    Requirement,
)
from storycore.domain.models.dialogue import DialogueNode, DialogueResponse, Npc, SpeakerRole
from storycore.domain.models.effect import (
    Conditional,
    EffectDuration,
    EffectSource,
    EffectTemplate,
    Permanent,
    Temporary,
    Timed,
)
from storycore.domain.models.faction import ReputationLevel
from storycore.domain.models.flags import FlagValue, is_flag_value
from storycore.domain.models.item import Item
from storycore.domain.models.perk import Perk, PerkCategory, PerkModifiers, PerkRarity, PerkRequirement
from storycore.domain.models.scene import SceneOption
from storycore.domain.models.skill_check import SkillBonus, SkillCheck


def require_mapping(payload: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValueError(f"{what} must be an object, got {type(payload).__name__}")
    return payload


def _required_str(payload: Mapping[str, Any], key: str, what: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{what} requires a non-empty '{key}'")
    return value


def _optional_mapping(payload: Mapping[str, Any], key: str, what: str) -> Optional[Mapping[str, Any]]:
    value = payload.get(key)
    if value is None:
        return None
    return require_mapping(value, f"{what}.{key}")


def _flags(payload: Mapping[str, Any], key: str, what: str) -> Dict[str, FlagValue]:
    raw = _optional_mapping(payload, key, what) or {}
    flags: Dict[str, FlagValue] = {}
    for name, value in raw.items():
        if not is_flag_value(value):
            raise ValueError(f"{what}.{key}.{name} must be a bool, string or number")
        flags[str(name)] = value
    return flags


def _numbers(payload: Mapping[str, Any], key: str, what: str) -> Dict[str, Any]:
    raw = _optional_mapping(payload, key, what) or {}
    numbers: Dict[str, Any] = {}
    for name, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{what}.{key}.{name} must be a number")
        numbers[str(name)] = value
    return numbers


def _string_tuple(payload: Mapping[str, Any], key: str, what: str) -> tuple[str, ...]:
    raw = payload.get(key)
    if raw is None:
        return ()
    if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
        raise ValueError(f"{what}.{key} must be a list of strings")
    return tuple(str(value) for value in raw)


def parse_enum(enum_type: Any, value: Any, what: str) -> Any:
    try:
        return enum_type(str(value).strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unknown {what}: {value}") from exc


# Requirements


def _numeric_requirement_from(value: Any, what: str) -> NumericRequirement:
    if isinstance(value, Mapping):
        return Range(min=value.get("min"), max=value.get("max"))
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{what} must be a number or a {{min, max}} range")
    return value


def _numeric_requirement_to(value: NumericRequirement) -> Any:
    if isinstance(value, Range):
        return {"min": value.min, "max": value.max}
    return value


def _reputation_requirement_from(value: Any, what: str) -> ReputationRequirement:
    if isinstance(value, Mapping):
        if value.get("min") is None:
            raise ValueError(f"{what} range requires 'min'")
        upper = value.get("max")
        return ReputationRange(
            min=ReputationLevel.parse(value["min"]),
            max=None if upper is None else ReputationLevel.parse(upper),
        )
    return ReputationLevel.parse(value)


def _reputation_requirement_to(value: ReputationRequirement) -> Any:
    if isinstance(value, ReputationRange):
        return {"min": value.min.value, "max": None if value.max is None else value.max.value}
    return value.value


def requirement_from_dict(payload: Any) -> Optional[Requirement]:
    if payload is None:
        return None
    data = require_mapping(payload, "requirement")
    stats = _optional_mapping(data, "stats", "requirement")
    abilities = _optional_mapping(data, "abilities", "requirement")
    perks = _optional_mapping(data, "perks", "requirement")
    reputation = _optional_mapping(data, "reputation", "requirement")
    return Requirement(
        flags=_flags(data, "flags", "requirement") if data.get("flags") is not None else None,
        stats=(
            None
            if stats is None
            else {str(k): _numeric_requirement_from(v, f"requirement.stats.{k}") for k, v in stats.items()}
        ),
        abilities=(
            None
            if abilities is None
            else {str(k): _numeric_requirement_from(v, f"requirement.abilities.{k}") for k, v in abilities.items()}
        ),
        items=_string_tuple(data, "items", "requirement") if data.get("items") is not None else None,
        perks=None if perks is None else {str(k): bool(v) for k, v in perks.items()},
        reputation=(
            None
            if reputation is None
            else {
                str(k): _reputation_requirement_from(v, f"requirement.reputation.{k}")
                for k, v in reputation.items()
            }
        ),
        episode_id=data.get("episode_id"),
        scene_id=data.get("scene_id"),
    )


def requirement_to_dict(requirement: Optional[Requirement]) -> Optional[Dict[str, Any]]:
    if requirement is None:
        return None
    payload: Dict[str, Any] = {}
    if requirement.flags is not None:
        payload["flags"] = dict(requirement.flags)
    if requirement.stats is not None:
        payload["stats"] = {k: _numeric_requirement_to(v) for k, v in requirement.stats.items()}
    if requirement.abilities is not None:
        payload["abilities"] = {k: _numeric_requirement_to(v) for k, v in requirement.abilities.items()}
    if requirement.items is not None:
        payload["items"] = list(requirement.items)
    if requirement.perks is not None:
        payload["perks"] = dict(requirement.perks)
    if requirement.reputation is not None:
        payload["reputation"] = {k: _reputation_requirement_to(v) for k, v in requirement.reputation.items()}
    if requirement.episode_id is not None:
        payload["episode_id"] = requirement.episode_id
    if requirement.scene_id is not None:
        payload["scene_id"] = requirement.scene_id
    return payload


# Effects


def duration_from_dict(payload: Any) -> EffectDuration:
    if payload is None:
        return Permanent()
    data = require_mapping(payload, "duration")
    kind = str(data.get("type") or "").strip().lower()
    if kind == "permanent":
        return Permanent()
    if kind == "temporary":
        remaining = data.get("remaining")
        if isinstance(remaining, bool) or not isinstance(remaining, int):
            raise ValueError("temporary duration requires an integer 'remaining'")
        return Temporary(remaining=remaining)
    if kind == "timed":
        expires_at = data.get("expires_at")
        if not isinstance(expires_at, str):
            raise ValueError("timed duration requires an ISO 'expires_at'")
        return Timed(expires_at=datetime.fromisoformat(expires_at))
    if kind == "conditional":
        condition = requirement_from_dict(data.get("condition"))
        if condition is None:
            raise ValueError("conditional duration requires a 'condition'")
        return Conditional(condition=condition)
    raise ValueError(f"Unknown effect duration type: {data.get('type')}")


def duration_to_dict(duration: EffectDuration) -> Dict[str, Any]:
    if isinstance(duration, Temporary):
        return {"type": duration.kind, "remaining": int(duration.remaining)}
    if isinstance(duration, Timed):
        return {"type": duration.kind, "expires_at": duration.expires_at.isoformat()}
    if isinstance(duration, Conditional):
        return {"type": duration.kind, "condition": requirement_to_dict(duration.condition)}
    return {"type": Permanent.kind}


def effect_template_from_dict(payload: Any) -> EffectTemplate:
    data = require_mapping(payload, "effect")
    return EffectTemplate(
        name=_required_str(data, "name", "effect"),
        source=parse_enum(EffectSource, data.get("source"), "effect source"),
        source_id=_required_str(data, "source_id", "effect"),
        duration=duration_from_dict(data.get("duration")),
        description=str(data.get("description") or ""),
        stat_modifiers=_numbers(data, "stat_modifiers", "effect"),
        ability_modifiers={k: int(v) for k, v in _numbers(data, "ability_modifiers", "effect").items()},
        reputation_modifiers={k: int(v) for k, v in _numbers(data, "reputation_modifiers", "effect").items()},
        flag_modifiers=_flags(data, "flag_modifiers", "effect"),
        apply_condition=requirement_from_dict(data.get("apply_condition")),
        on_apply=data.get("on_apply"),
        on_remove=data.get("on_remove"),
        on_trigger=data.get("on_trigger"),
        tags=_string_tuple(data, "tags", "effect"),
    )


def effect_template_to_dict(template: EffectTemplate) -> Dict[str, Any]:
    return {
        "name": template.name,
        "source": template.source.value,
        "source_id": template.source_id,
        "duration": duration_to_dict(template.duration),
        "description": template.description,
        "stat_modifiers": dict(template.stat_modifiers),
        "ability_modifiers": dict(template.ability_modifiers),
        "reputation_modifiers": dict(template.reputation_modifiers),
        "flag_modifiers": dict(template.flag_modifiers),
        "apply_condition": requirement_to_dict(template.apply_condition),
        "on_apply": template.on_apply,
        "on_remove": template.on_remove,
        "on_trigger": template.on_trigger,
        "tags": list(template.tags),
    }


# Items and scene options


def item_from_dict(payload: Any) -> Item:
    data = require_mapping(payload, "item")
    use_effect = data.get("use_effect")
    equip_effect = data.get("equip_effect")
    charges = data.get("charges")
    return Item(
        id=_required_str(data, "id", "item"),
        name=str(data.get("name") or ""),
        description=str(data.get("description") or ""),
        quantity=int(data.get("quantity", 1)),
        consumable=bool(data.get("consumable", False)),
        charges=None if charges is None else int(charges),
        equippable=bool(data.get("equippable", False)),
        equipped=bool(data.get("equipped", False)),
        use_effect=None if use_effect is None else effect_template_from_dict(use_effect),
        equip_effect=None if equip_effect is None else effect_template_from_dict(equip_effect),
    )


def item_to_dict(item: Item) -> Dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "quantity": int(item.quantity),
        "consumable": item.consumable,
        "charges": item.charges,
        "equippable": item.equippable,
        "equipped": item.equipped,
        "use_effect": None if item.use_effect is None else effect_template_to_dict(item.use_effect),
        "equip_effect": None if item.equip_effect is None else effect_template_to_dict(item.equip_effect),
    }


def skill_check_from_dict(payload: Any) -> Optional[SkillCheck]:
    if payload is None:
        return None
    data = require_mapping(payload, "skill_check")
    difficulty = data.get("difficulty")
    if isinstance(difficulty, bool) or not isinstance(difficulty, int):
        raise ValueError("skill_check requires an integer 'difficulty'")
    bonus_payload = data.get("bonus")
    bonus = None
    if bonus_payload is not None:
        bonus_data = require_mapping(bonus_payload, "skill_check.bonus")
        bonus = SkillBonus(
            value=int(bonus_data.get("value", 0)),
            item_id=bonus_data.get("item_id"),
            flag_name=bonus_data.get("flag_name"),
        )
    return SkillCheck(ability=_required_str(data, "ability", "skill_check"), difficulty=difficulty, bonus=bonus)


def scene_option_from_dict(payload: Any) -> SceneOption:
    data = require_mapping(payload, "option")
    add_items = data.get("add_items") or []
    if not isinstance(add_items, list):
        raise ValueError("option.add_items must be a list")
    return SceneOption(
        id=_required_str(data, "id", "option"),
        text=str(data.get("text") or ""),
        next_episode_id=data.get("next_episode_id"),
        failure_episode_id=data.get("failure_episode_id"),
        condition=requirement_from_dict(data.get("condition")),
        skill_check=skill_check_from_dict(data.get("skill_check")),
        set_flags=_flags(data, "set_flags", "option"),
        modify_stats=_numbers(data, "modify_stats", "option"),
        modify_abilities={k: int(v) for k, v in _numbers(data, "modify_abilities", "option").items()},
        add_items=tuple(item_from_dict(row) for row in add_items),
        remove_items=_string_tuple(data, "remove_items", "option"),
        success_text=data.get("success_text"),
        failure_text=data.get("failure_text"),
        failure_flags=_flags(data, "failure_flags", "option"),
        failure_stats=_numbers(data, "failure_stats", "option"),
    )


# Perks


def _perk_modifiers_from(payload: Any, what: str) -> PerkModifiers:
    if payload is None:
        return PerkModifiers()
    data = require_mapping(payload, what)
    return PerkModifiers(
        stats=_numbers(data, "stats", what),
        abilities={k: int(v) for k, v in _numbers(data, "abilities", what).items()},
        flags=_flags(data, "flags", what),
    )


def perk_from_dict(payload: Any) -> Perk:
    data = require_mapping(payload, "perk")
    perk_id = _required_str(data, "id", "perk")
    drawbacks = data.get("drawbacks")
    requirements = None
    if data.get("requirements") is not None:
        req = require_mapping(data["requirements"], "perk.requirements")
        level = req.get("level")
        requirements = PerkRequirement(
            level=None if level is None else int(level),
            abilities={k: int(v) for k, v in _numbers(req, "abilities", "perk.requirements").items()},
            perks=_string_tuple(req, "perks", "perk.requirements"),
            flags=_flags(req, "flags", "perk.requirements"),
            mutually_exclusive=_string_tuple(req, "mutually_exclusive", "perk.requirements"),
        )
    return Perk(
        id=perk_id,
        name=_required_str(data, "name", "perk"),
        description=str(data.get("description") or ""),
        category=parse_enum(PerkCategory, data.get("category", PerkCategory.SURVIVAL.value), "perk category"),
        rarity=parse_enum(PerkRarity, data.get("rarity", PerkRarity.COMMON.value), "perk rarity"),
        effects=_perk_modifiers_from(data.get("effects"), "perk.effects"),
        drawbacks=None if drawbacks is None else _perk_modifiers_from(drawbacks, "perk.drawbacks"),
        requirements=requirements,
        max_rank=int(data.get("max_rank") or 1),
        is_artifact=bool(data.get("is_artifact", False)),
    )


# NPCs


def _response_from(payload: Any, node_id: str) -> DialogueResponse:
    what = f"node {node_id} response"
    data = require_mapping(payload, what)
    return DialogueResponse(
        id=_required_str(data, "id", what),
        text=str(data.get("text") or ""),
        next_node_id=_required_str(data, "next_node_id", what),
        condition=requirement_from_dict(data.get("condition")),
        set_flags=_flags(data, "set_flags", what),
        on_select=data.get("on_select"),
    )


def _node_from(node_id: str, payload: Any) -> DialogueNode:
    data = require_mapping(payload, f"node {node_id}")
    responses = data.get("responses") or []
    if not isinstance(responses, list):
        raise ValueError(f"node {node_id} responses must be a list")
    role = data.get("speaker_role")
    return DialogueNode(
        id=str(data.get("id") or node_id),
        text=str(data.get("text") or ""),
        speaker_name=data.get("speaker_name"),
        speaker_role=None if role is None else parse_enum(SpeakerRole, role, "speaker role"),
        responses=tuple(_response_from(row, node_id) for row in responses),
        on_enter=data.get("on_enter"),
    )


def npc_from_dict(payload: Any) -> Npc:
    data = require_mapping(payload, "npc")
    nodes = _optional_mapping(data, "nodes", "npc") or {}
    return Npc(
        id=_required_str(data, "id", "npc"),
        name=_required_str(data, "name", "npc"),
        initial_node_id=_required_str(data, "initial_node_id", "npc"),
        nodes={str(node_id): _node_from(str(node_id), node) for node_id, node in nodes.items()},
        description=str(data.get("description") or ""),
        memory_flags=_string_tuple(data, "memory_flags", "npc"),
    )
