from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from storycore.application.services.effect_engine import effective_stat
from storycore.application.services.state_mutations import modify_stat, remove_flag, set_flag
from storycore.domain.models.dialogue import close_dialogue
from storycore.domain.models.player_state import PlayerState


logger = logging.getLogger(__name__)

ARGUMENT_SEPARATOR = ":"


@dataclass(frozen=True)
class BehaviorContext:
    handler_id: str
    trigger: str
    argument: str = ""
    effect_id: Optional[str] = None
    npc_id: Optional[str] = None
    node_id: Optional[str] = None
    payload: Mapping[str, Any] = field(default_factory=dict)


BehaviorHandler = Callable[[PlayerState, BehaviorContext], PlayerState]


def _normalize_key(value: str) -> str:
    return str(value or "").strip().lower()


class BehaviorRegistry:
    """Named state transformers referenced from authored content.

    A handler id is either an exact registered name (``"end_dialogue"``) or a
    registered prefix followed by ``:`` and an argument (``"goto:gate"``).
    Unknown ids are logged and leave the state untouched.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, BehaviorHandler] = {}
        self._prefix_handlers: Dict[str, BehaviorHandler] = {}

    def register(self, handler_id: str, handler: BehaviorHandler) -> None:
        key = _normalize_key(handler_id)
        if not key:
            return
        self._handlers[key] = handler

    def register_prefix(self, prefix: str, handler: BehaviorHandler) -> None:
        key = _normalize_key(prefix)
        if not key:
            return
        self._prefix_handlers[key] = handler

    def resolve(self, handler_id: str) -> tuple[Optional[BehaviorHandler], str]:
        raw = str(handler_id or "").strip()
        key = _normalize_key(raw)
        handler = self._handlers.get(key)
        if handler is not None:
            return handler, ""
        prefix, separator, argument = raw.partition(ARGUMENT_SEPARATOR)
        if separator:
            handler = self._prefix_handlers.get(_normalize_key(prefix))
            if handler is not None:
                return handler, argument.strip()
        return None, ""

    def has(self, handler_id: str) -> bool:
        return self.resolve(handler_id)[0] is not None

    def run(
        self,
        handler_id: str,
        state: PlayerState,
        *,
        trigger: str,
        effect_id: Optional[str] = None,
        npc_id: Optional[str] = None,
        node_id: Optional[str] = None,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> PlayerState:
        handler, argument = self.resolve(handler_id)
        if handler is None:
            logger.warning("Unknown behavior handler %s (%s); state left unchanged", handler_id, trigger)
            return state
        context = BehaviorContext(
            handler_id=str(handler_id),
            trigger=trigger,
            argument=argument,
            effect_id=effect_id,
            npc_id=npc_id,
            node_id=node_id,
            payload=dict(payload or {}),
        )
        return handler(state, context)


def _amount(context: BehaviorContext, default: int) -> int:
    if not context.argument:
        return default
    try:
        return int(context.argument)
    except ValueError:
        logger.warning("Handler %s has a non-numeric amount; using %s", context.handler_id, default)
        return default


def _restore(state: PlayerState, stat: str, cap_stat: str, amount: int) -> PlayerState:
    current = effective_stat(state, stat)
    if current is None:
        return state
    cap = effective_stat(state, cap_stat)
    if cap is not None:
        amount = int(max(0, min(amount, cap - current)))
    return modify_stat(state, stat, amount)


def _restore_health_handler(state: PlayerState, context: BehaviorContext) -> PlayerState:
    return _restore(state, "health", "maxHealth", _amount(context, 20))


def _restore_energy_handler(state: PlayerState, context: BehaviorContext) -> PlayerState:
    return _restore(state, "energy", "maxEnergy", _amount(context, 15))


def _set_flag_handler(state: PlayerState, context: BehaviorContext) -> PlayerState:
    if not context.argument:
        return state
    return set_flag(state, context.argument, True)


def _clear_flag_handler(state: PlayerState, context: BehaviorContext) -> PlayerState:
    if not context.argument:
        return state
    return remove_flag(state, context.argument)


def _goto_handler(state: PlayerState, context: BehaviorContext) -> PlayerState:
    if not state.dialogue.active or not context.argument:
        return state
    return replace(state, dialogue=replace(state.dialogue, node_id=context.argument))


def _goto_if_remembered_handler(state: PlayerState, context: BehaviorContext) -> PlayerState:
    """``goto_if_remembered:<key>:<node>`` redirects when the current NPC remembers ``key``."""

    key, _, target = context.argument.partition(ARGUMENT_SEPARATOR)
    key, target = key.strip(), target.strip()
    if not state.dialogue.active or not key or not target or context.npc_id is None:
        return state
    memory = state.npc_memory.get(context.npc_id)
    if memory is None or not memory.remembered.get(key):
        return state
    return replace(state, dialogue=replace(state.dialogue, node_id=target))


def _end_dialogue_handler(state: PlayerState, _context: BehaviorContext) -> PlayerState:
    if not state.dialogue.active:
        return state
    return replace(state, dialogue=close_dialogue(state.dialogue))


def redirect_target(handler_id: str) -> Optional[str]:
    """Node id a default redirect handler may move the cursor to, if any."""

    prefix, separator, argument = str(handler_id or "").strip().partition(ARGUMENT_SEPARATOR)
    if not separator:
        return None
    prefix = _normalize_key(prefix)
    if prefix == "goto":
        return argument.strip() or None
    if prefix == "goto_if_remembered":
        return argument.partition(ARGUMENT_SEPARATOR)[2].strip() or None
    return None


def default_behavior_registry() -> BehaviorRegistry:
    registry = BehaviorRegistry()
    registry.register("restore_health", _restore_health_handler)
    registry.register("restore_energy", _restore_energy_handler)
    registry.register("end_dialogue", _end_dialogue_handler)
    registry.register_prefix("restore_health", _restore_health_handler)
    registry.register_prefix("restore_energy", _restore_energy_handler)
    registry.register_prefix("set_flag", _set_flag_handler)
    registry.register_prefix("clear_flag", _clear_flag_handler)
    registry.register_prefix("goto", _goto_handler)
    registry.register_prefix("goto_if_remembered", _goto_if_remembered_handler)
    return registry
