import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from storycore.application.services.event_bus import EventBus
from storycore.bootstrap import create_rules_engine
from storycore.domain.events import PerkUnlocked, ReputationChanged, RulesEvent, SkillCheckResolved
from storycore.domain.models.skill_check import SkillCheck


class EventBusTests(unittest.TestCase):
    def test_publish_notifies_all_handlers_for_event_type(self) -> None:
        bus = EventBus()
        seen: list[str] = []

        class ExampleEvent:
            pass

        bus.subscribe(ExampleEvent, lambda evt: seen.append("first"))
        bus.subscribe(ExampleEvent, lambda evt: seen.append("second"))

        bus.publish(ExampleEvent())

        self.assertEqual(["first", "second"], seen)

    def test_publish_filters_handlers_by_event_class(self) -> None:
        bus = EventBus()
        seen: list[str] = []

        class Alpha:
            pass

        class Beta:
            pass

        bus.subscribe(Alpha, lambda evt: seen.append("alpha"))
        bus.subscribe(Beta, lambda evt: seen.append("beta"))

        bus.publish(Alpha())

        self.assertEqual(["alpha"], seen)

    def test_publish_honors_priority_order(self) -> None:
        bus = EventBus()
        seen: list[str] = []

        class ExampleEvent:
            pass

        bus.subscribe(ExampleEvent, lambda evt: seen.append("normal"), priority=100)
        bus.subscribe(ExampleEvent, lambda evt: seen.append("early"), priority=10)
        bus.subscribe(ExampleEvent, lambda evt: seen.append("late"), priority=200)

        bus.publish(ExampleEvent())

        self.assertEqual(["early", "normal", "late"], seen)

    def test_publish_continues_when_one_handler_raises(self) -> None:
        bus = EventBus()
        seen: list[str] = []

        class ExampleEvent:
            pass

        def _broken(_evt) -> None:
            raise RuntimeError("boom")

        bus.subscribe(ExampleEvent, _broken, priority=10)
        bus.subscribe(ExampleEvent, lambda evt: seen.append("still-runs"), priority=20)

        bus.publish(ExampleEvent())

        self.assertEqual(["still-runs"], seen)
        self.assertEqual(1, len(bus.last_publish_errors()))

    def test_unsubscribe_stops_delivery(self) -> None:
        bus = EventBus()
        seen: list[str] = []

        class ExampleEvent:
            pass

        def _handler(_evt) -> None:
            seen.append("hit")

        bus.subscribe(ExampleEvent, _handler)
        self.assertTrue(bus.unsubscribe(ExampleEvent, _handler))
        self.assertFalse(bus.unsubscribe(ExampleEvent, _handler))

        bus.publish(ExampleEvent())

        self.assertEqual([], seen)
        self.assertEqual(1, bus.published_count)

    def test_base_class_subscribers_receive_subclass_events_in_priority_order(self) -> None:
        bus = EventBus()
        seen: list[str] = []

        bus.subscribe(RulesEvent, lambda evt: seen.append("audit"), priority=200)
        bus.subscribe(PerkUnlocked, lambda evt: seen.append("perk"), priority=50)
        bus.subscribe(RulesEvent, lambda evt: seen.append("first"), priority=10)

        bus.publish(PerkUnlocked(perk_id="toughness", rank=1, points_remaining=0))
        bus.publish(object())

        self.assertEqual(["first", "perk", "audit"], seen)

    def test_journal_keeps_most_recent_events(self) -> None:
        bus = EventBus(history_limit=2)
        first = PerkUnlocked(perk_id="toughness", rank=1, points_remaining=2)
        second = ReputationChanged("raiders", -5, -25, "unfriendly", "unfriendly", "Ambush")
        third = PerkUnlocked(perk_id="toughness", rank=2, points_remaining=1)

        for event in (first, second, third):
            bus.publish(event)

        self.assertEqual([second, third], bus.recent_events())
        self.assertEqual([third], bus.recent_events(PerkUnlocked))
        self.assertEqual(3, bus.published_count)

        with self.assertRaises(ValueError):
            EventBus(history_limit=-1)


class RulesEventWiringTests(unittest.TestCase):
    def test_services_publish_to_engine_bus(self) -> None:
        engine = create_rules_engine(roll_source=lambda low, high: 3)
        seen: list[object] = []
        for event_type in (SkillCheckResolved, ReputationChanged, PerkUnlocked):
            engine.event_bus.subscribe(event_type, seen.append)

        state = engine.new_player_state()
        engine.skills.perform_check(SkillCheck(ability="strength", difficulty=6), state)
        state = engine.reputation.change_reputation("raiders", -10, "Cleared the toll bridge", state)
        state = engine.perks.add_perk_points(1, state)
        engine.perks.unlock("toughness", state)

        self.assertEqual(
            [SkillCheckResolved, ReputationChanged, PerkUnlocked],
            [type(event) for event in seen],
        )
        self.assertEqual("unfriendly", seen[1].level_before)
        self.assertEqual("hostile", seen[1].level_after)
        self.assertEqual(-30, seen[1].value_after)


if __name__ == "__main__":
    unittest.main()
