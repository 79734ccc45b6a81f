import sys
from datetime import datetime, timezone
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from storycore.application.services.behavior_registry import default_behavior_registry
from storycore.application.services.condition_evaluator import ConditionEvaluator
from storycore.application.services.dialogue_walker import DialogueWalker
from storycore.domain.events import DialogueAdvanced
from storycore.domain.models.condition import Requirement
from storycore.domain.models.dialogue import DialogueNode, DialogueResponse, Npc
from storycore.domain.models.player_state import PlayerState
from storycore.infrastructure.content_loader import load_content_file
from storycore.infrastructure.dialogue_content_validator import DEFAULT_CONTENT_FILE


NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


def _mara() -> Npc:
    greeting = DialogueNode(
        id="greeting",
        text="Another wanderer. What do you want?",
        responses=(
            DialogueResponse(id="ask", text="Heard any rumors?", next_node_id="rumors", set_flags={"asked-mara": True}),
            DialogueResponse(
                id="spare",
                text="I let you go last time.",
                next_node_id="grateful",
                condition=Requirement(flags={"spared-mara": True}),
            ),
            DialogueResponse(id="patch-up", text="Patch me up?", next_node_id="greeting", on_select="restore_health:10"),
            DialogueResponse(id="shoo", text="Get lost.", next_node_id="rumors", on_select="end_dialogue"),
            DialogueResponse(id="wander", text="Which way is north?", next_node_id="nowhere"),
            DialogueResponse(id="bye", text="Nothing.", next_node_id="EXIT"),
        ),
    )
    rumors = DialogueNode(
        id="rumors",
        text="Raiders moved into the old mill.",
        on_enter="set_flag:heard-mill-rumor",
        responses=(DialogueResponse(id="back", text="Anything else?", next_node_id="greeting"),),
    )
    grateful = DialogueNode(id="grateful", text="I won't forget it.")
    return Npc(
        id="scav-mara",
        name="Mara",
        initial_node_id="greeting",
        nodes={"greeting": greeting, "rumors": rumors, "grateful": grateful},
        memory_flags=("asked-mara",),
    )


class DialogueWalkerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.events: list[object] = []
        self.walker = DialogueWalker(
            ConditionEvaluator(),
            default_behavior_registry(),
            clock=lambda: NOW,
            event_publisher=self.events.append,
        )
        self.npc = _mara()

    def test_start_opens_session_and_marks_met(self) -> None:
        state = self.walker.start(self.npc, PlayerState())

        self.assertTrue(state.dialogue.active)
        self.assertEqual(("scav-mara", "greeting"), (state.dialogue.npc_id, state.dialogue.node_id))
        self.assertTrue(self.walker.has_met("scav-mara", state))
        self.assertEqual(NOW, state.npc_memory["scav-mara"].last_interaction)
        self.assertEqual("greeting", self.walker.current_node(self.npc, state).id)
        self.assertEqual(DialogueAdvanced("scav-mara", None, "greeting", False), self.events[0])

    def test_available_responses_filter_on_conditions(self) -> None:
        state = self.walker.start(self.npc, PlayerState())
        ids = [row.id for row in self.walker.available_responses(self.npc, state)]
        self.assertNotIn("spare", ids)

        state = self.walker.start(self.npc, PlayerState(flags={"spared-mara": True}))
        ids = [row.id for row in self.walker.available_responses(self.npc, state)]
        self.assertEqual(["ask", "spare", "patch-up", "shoo", "wander", "bye"], ids)

    def test_select_sets_flags_remembers_and_enters_next_node(self) -> None:
        state = self.walker.start(self.npc, PlayerState())

        state = self.walker.select_response(self.npc, "ask", state)

        self.assertEqual("rumors", state.dialogue.node_id)
        self.assertTrue(state.flags["asked-mara"])
        self.assertTrue(state.flags["heard-mill-rumor"])
        self.assertTrue(self.walker.memory_value("scav-mara", "asked-mara", state))
        self.assertIsNone(self.walker.memory_value("scav-mara", "heard-mill-rumor", state))
        self.assertEqual(DialogueAdvanced("scav-mara", "greeting", "rumors", False), self.events[-1])

    def test_on_select_handler_runs_before_moving(self) -> None:
        state = PlayerState(stats={**PlayerState().stats, "health": 70})
        state = self.walker.start(self.npc, state)

        state = self.walker.select_response(self.npc, "patch-up", state)

        self.assertEqual(80, state.stats["health"])
        self.assertEqual("greeting", state.dialogue.node_id)

    def test_end_of_conversation_closes_session(self) -> None:
        state = self.walker.start(self.npc, PlayerState())

        state = self.walker.select_response(self.npc, "bye", state)

        self.assertFalse(state.dialogue.active)
        self.assertEqual("scav-mara", state.dialogue.npc_id)
        self.assertIsNone(state.dialogue.node_id)
        self.assertEqual([], self.walker.available_responses(self.npc, state))
        self.assertTrue(self.events[-1].ended)

    def test_handler_that_ends_dialogue_wins_over_target(self) -> None:
        state = self.walker.start(self.npc, PlayerState())

        state = self.walker.select_response(self.npc, "shoo", state)

        self.assertFalse(state.dialogue.active)
        self.assertNotIn("heard-mill-rumor", state.flags)

    def test_dangling_target_closes_session(self) -> None:
        state = self.walker.start(self.npc, PlayerState())

        with self.assertLogs("storycore.application.services.dialogue_walker", level="WARNING"):
            state = self.walker.select_response(self.npc, "wander", state)

        self.assertFalse(state.dialogue.active)

    def test_unknown_response_or_closed_session_is_noop(self) -> None:
        state = self.walker.start(self.npc, PlayerState())
        with self.assertLogs("storycore.application.services.dialogue_walker", level="WARNING"):
            unchanged = self.walker.select_response(self.npc, "dance", state)
        self.assertIs(state, unchanged)

        closed = self.walker.end(state)
        self.assertIs(closed, self.walker.select_response(self.npc, "ask", closed))
        self.assertIs(closed, self.walker.end(closed))

    def test_on_enter_redirect_moves_cursor_once(self) -> None:
        gate = DialogueNode(
            id="gate",
            text="Who goes there?",
            on_enter="goto:welcome-back",
            responses=(DialogueResponse(id="leave", text="Nobody.", next_node_id="EXIT"),),
        )
        welcome = DialogueNode(id="welcome-back", text="Oh, it's you.", on_enter="set_flag:welcome-entered")
        npc = Npc(id="gatekeeper", name="Gatekeeper", initial_node_id="gate", nodes={"gate": gate, "welcome-back": welcome})

        state = self.walker.start(npc, PlayerState())

        self.assertEqual("welcome-back", state.dialogue.node_id)
        self.assertNotIn("welcome-entered", state.flags)

    def test_missing_initial_node_does_not_open(self) -> None:
        npc = Npc(id="ghost", name="Ghost", initial_node_id="void")

        with self.assertLogs("storycore.application.services.dialogue_walker", level="WARNING"):
            state = self.walker.start(npc, PlayerState())

        self.assertFalse(state.dialogue.active)
        self.assertTrue(self.walker.has_met("ghost", state))

    def test_memory_persists_across_sessions(self) -> None:
        state = self.walker.start(self.npc, PlayerState())
        state = self.walker.select_response(self.npc, "ask", state)
        state = self.walker.end(state)

        state = self.walker.start(self.npc, state)

        self.assertTrue(self.walker.memory_value("scav-mara", "asked-mara", state))
        self.assertEqual("greeting", state.dialogue.node_id)
        self.assertFalse(self.walker.has_met("stranger", state))

    def test_redirect_to_missing_node_closes_session(self) -> None:
        gate = DialogueNode(
            id="gate",
            text="Who goes there?",
            on_enter="goto:nowhere",
            responses=(DialogueResponse(id="leave", text="Nobody.", next_node_id="EXIT"),),
        )
        npc = Npc(id="gatekeeper", name="Gatekeeper", initial_node_id="gate", nodes={"gate": gate})

        with self.assertLogs("storycore.application.services.dialogue_walker", level="WARNING"):
            state = self.walker.start(npc, PlayerState())

        self.assertFalse(state.dialogue.active)
        self.assertIsNone(state.dialogue.node_id)
        self.assertEqual([], self.walker.available_responses(npc, state))
        self.assertTrue(self.events[-1].ended)

    def test_guard_remembers_paid_toll_on_next_visit(self) -> None:
        guard = next(npc for npc in load_content_file(DEFAULT_CONTENT_FILE).npcs if npc.id == "outpost-guard")

        state = self.walker.start(guard, PlayerState())
        self.assertEqual("halt", state.dialogue.node_id)
        state = self.walker.select_response(guard, "pay-toll", state)
        self.assertEqual("pass", state.dialogue.node_id)
        state = self.walker.end(state)

        state = self.walker.start(guard, state)

        self.assertEqual("welcome-back", state.dialogue.node_id)
        self.assertEqual(["nod"], [row.id for row in self.walker.available_responses(guard, state)])
        self.assertEqual("halt", self.walker.start(guard, PlayerState()).dialogue.node_id)


if __name__ == "__main__":
    unittest.main()
