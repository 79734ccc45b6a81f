from __future__ import annotations

from dataclasses import replace
from datetime import datetime
import logging
from typing import Callable, List, Optional

from storycore.application.services.behavior_registry import BehaviorRegistry
from storycore.application.services.condition_evaluator import ConditionEvaluator
from storycore.application.services.effect_engine import utc_now
from storycore.application.services.state_mutations import set_flag
from storycore.domain.events import DialogueAdvanced
from storycore.domain.models.dialogue import (
    END_OF_CONVERSATION,
    DialogueNode,
    DialogueResponse,
    DialogueState,
    Npc,
    NpcMemory,
    close_dialogue,
)
from storycore.domain.models.flags import FlagValue
from storycore.domain.models.player_state import PlayerState


logger = logging.getLogger(__name__)


class DialogueWalker:
    def __init__(
        self,
        evaluator: ConditionEvaluator,
        registry: BehaviorRegistry,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        event_publisher: Optional[Callable[[object], None]] = None,
    ) -> None:
        self.evaluator = evaluator
        self.registry = registry
        self.clock = clock or utc_now
        self.event_publisher = event_publisher

    def start(self, npc: Npc, state: PlayerState) -> PlayerState:
        state = self._touch_memory(npc, state)
        node = npc.node(npc.initial_node_id)
        if node is None:
            logger.warning("NPC %s has no initial node %s; dialogue not opened", npc.id, npc.initial_node_id)
            return state
        state = replace(state, dialogue=DialogueState(active=True, npc_id=npc.id, node_id=node.id))
        state = self._enter(npc, node, state)
        self._publish(npc.id, None, state)
        return state

    def end(self, state: PlayerState) -> PlayerState:
        if not state.dialogue.active:
            return state
        return replace(state, dialogue=close_dialogue(state.dialogue))

    def current_node(self, npc: Npc, state: PlayerState) -> Optional[DialogueNode]:
        dialogue = state.dialogue
        if not dialogue.active or dialogue.npc_id != npc.id:
            return None
        return npc.node(dialogue.node_id)

    def available_responses(self, npc: Npc, state: PlayerState) -> List[DialogueResponse]:
        node = self.current_node(npc, state)
        if node is None:
            return []
        return [response for response in node.responses if self.evaluator.evaluate(response.condition, state)]

    def select_response(self, npc: Npc, response_id: str, state: PlayerState) -> PlayerState:
        """Apply a response's consequences and move along the graph.

        The response's own condition is not re-checked here; callers pick
        from :meth:`available_responses`.
        """

        node = self.current_node(npc, state)
        if node is None:
            return state
        response = node.response(response_id)
        if response is None:
            logger.warning("Response %s not found on node %s of %s", response_id, node.id, npc.id)
            return state

        for name, value in response.set_flags.items():
            state = set_flag(state, name, value)
            if npc.remembers(name):
                state = self._remember(npc.id, name, value, state)

        if response.on_select:
            state = self.registry.run(
                response.on_select,
                state,
                trigger="select",
                npc_id=npc.id,
                node_id=node.id,
                payload={"response_id": response.id},
            )
            if not state.dialogue.active:
                self._publish(npc.id, node.id, state)
                return state

        if response.ends_conversation:
            state = self.end(state)
        else:
            next_node = npc.node(response.next_node_id)
            if next_node is None:
                logger.warning("Dangling dialogue target %s on %s; closing", response.next_node_id, npc.id)
                state = self.end(state)
            else:
                state = replace(state, dialogue=replace(state.dialogue, node_id=next_node.id))
                state = self._enter(npc, next_node, state)
        self._publish(npc.id, node.id, state)
        return state

    def has_met(self, npc_id: str, state: PlayerState) -> bool:
        memory = state.npc_memory.get(npc_id)
        return bool(memory and memory.met)

    def memory_value(self, npc_id: str, key: str, state: PlayerState) -> Optional[FlagValue]:
        memory = state.npc_memory.get(npc_id)
        if memory is None:
            return None
        return memory.remembered.get(key)

    def _enter(self, npc: Npc, node: DialogueNode, state: PlayerState) -> PlayerState:
        # A redirect from on_enter only moves the cursor; the target's on_enter does not run.
        if not node.on_enter:
            return state
        state = self.registry.run(node.on_enter, state, trigger="enter", npc_id=npc.id, node_id=node.id)
        if state.dialogue.active and npc.node(state.dialogue.node_id) is None:
            logger.warning(
                "Redirect from %s on %s reached missing node %s; closing", node.id, npc.id, state.dialogue.node_id
            )
            state = self.end(state)
        return state

    def _touch_memory(self, npc: Npc, state: PlayerState) -> PlayerState:
        now = self.clock()
        memory = state.npc_memory.get(npc.id)
        if memory is None:
            memory = NpcMemory(met=True, last_interaction=now)
        else:
            memory = replace(memory, met=True, last_interaction=now)
        return replace(state, npc_memory={**state.npc_memory, npc.id: memory})

    @staticmethod
    def _remember(npc_id: str, key: str, value: FlagValue, state: PlayerState) -> PlayerState:
        memory = state.npc_memory.get(npc_id) or NpcMemory(met=True)
        memory = replace(memory, remembered={**memory.remembered, key: value})
        return replace(state, npc_memory={**state.npc_memory, npc_id: memory})

    def _publish(self, npc_id: str, from_node_id: Optional[str], state: PlayerState) -> None:
        if self.event_publisher is None:
            return
        self.event_publisher(
            DialogueAdvanced(
                npc_id=npc_id,
                from_node_id=from_node_id,
                to_node_id=state.dialogue.node_id if state.dialogue.active else None,
                ended=not state.dialogue.active,
            )
        )
