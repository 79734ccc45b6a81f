import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from storycore.application.services.behavior_registry import default_behavior_registry
from storycore.application.services.condition_evaluator import ConditionEvaluator
from storycore.application.services.effect_engine import EffectEngine, effective_ability
from storycore.application.services.state_mutations import set_flag, set_stat
from storycore.domain.events import EffectApplied, EffectRemoved
from storycore.domain.models.condition import Range, Requirement
from storycore.domain.models.effect import Conditional, EffectSource, EffectTemplate, Temporary, Timed
from storycore.domain.models.player_state import PlayerState
from storycore.domain.models.skill_check import SkillCheckResult
from storycore.domain.models.stats import AbilityScores


NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


def _template(name: str = "Buffout", **overrides) -> EffectTemplate:
    values = {"name": name, "source": EffectSource.ITEM, "source_id": name.lower()}
    values.update(overrides)
    return EffectTemplate(**values)


class EffectEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.events: list[object] = []
        self._ids = iter(f"fx-{index}" for index in range(1, 100))
        self.evaluator = ConditionEvaluator()
        self.engine = EffectEngine(
            self.evaluator,
            default_behavior_registry(),
            clock=lambda: NOW,
            id_factory=lambda: next(self._ids),
            event_publisher=self.events.append,
        )

    def test_ability_modifier_applies_and_restores_on_removal(self) -> None:
        state = PlayerState(abilities=AbilityScores(strength=4))
        requirement = Requirement(abilities={"strength": Range(min=6)})
        self.assertFalse(self.evaluator.evaluate(requirement, state))

        state = self.engine.add(_template(ability_modifiers={"strength": 2}), state)

        self.assertEqual(6, state.abilities.strength)
        self.assertTrue(self.evaluator.evaluate(requirement, state))
        self.assertIsNotNone(state.effects.baseline)

        state = self.engine.remove("fx-1", state)

        self.assertEqual(4, state.abilities.strength)
        self.assertIsNone(state.effects.baseline)
        self.assertEqual((), state.effects.active)

    def test_abilities_stay_clamped_for_any_modifier_sequence(self) -> None:
        state = PlayerState(abilities=AbilityScores(strength=9))
        modifiers = [5, -15, 3, -2, 20, -30]
        ids = []

        running = 9
        for delta in modifiers:
            state = self.engine.add(_template(f"Shift {delta}", ability_modifiers={"strength": delta}), state)
            ids.append(state.effects.active[-1].id)
            running += delta
            expected = max(1, min(10, running))
            self.assertEqual(expected, state.abilities.strength)
            self.assertEqual(expected, effective_ability(state, "strength"))

        for effect_id in ids:
            state = self.engine.remove(effect_id, state)
            self.assertGreaterEqual(state.abilities.strength, 1)
            self.assertLessEqual(state.abilities.strength, 10)
            self.assertEqual(state.abilities.strength, effective_ability(state, "strength"))

        self.assertEqual(9, state.abilities.strength)
        self.assertIsNone(state.effects.baseline)

    def test_stacked_stat_modifiers_sum(self) -> None:
        state = self.engine.add(_template(stat_modifiers={"maxHealth": 10}), PlayerState())
        state = self.engine.add(_template("Toughness", stat_modifiers={"maxHealth": 5}), state)

        self.assertEqual(115, state.stats["maxHealth"])
        self.assertEqual(15, self.engine.total_stat_modifier("maxHealth", state))
        self.assertEqual(2, len(self.engine.effects_for_stat("maxHealth", state)))

        state = self.engine.remove("fx-1", state)
        self.assertEqual(105, state.stats["maxHealth"])

    def test_temporary_effect_expires_after_scene_changes(self) -> None:
        state = self.engine.add(_template(duration=Temporary(remaining=1), stat_modifiers={"carryWeight": 25}), PlayerState())
        state = self.engine.add(_template("Jet", duration=Temporary(remaining=2)), state)

        state = self.engine.on_scene_change("wasteland", "crossroads", state)

        self.assertEqual(["fx-2"], [effect.id for effect in state.effects.active])
        self.assertEqual(Temporary(remaining=1), state.effects.active[0].duration)
        self.assertEqual(100, state.stats["carryWeight"])
        removed = [event for event in self.events if isinstance(event, EffectRemoved)]
        self.assertEqual(["scene_change"], [event.reason for event in removed])

    def test_timed_effect_expires_strictly_after_deadline(self) -> None:
        state = self.engine.add(_template(duration=Timed(expires_at=NOW + timedelta(minutes=5))), PlayerState())

        state = self.engine.on_time_check(state, now=NOW + timedelta(minutes=5))
        self.assertEqual(1, len(state.effects.active))

        state = self.engine.on_time_check(state, now=NOW + timedelta(minutes=6))
        self.assertEqual((), state.effects.active)

    def test_conditional_location_effect_expires_on_matching_scene(self) -> None:
        template = _template(
            "Rad Storm",
            source=EffectSource.SCENE,
            duration=Conditional(condition=Requirement(episode_id="vault-interior")),
            stat_modifiers={"radiationResistance": -10},
        )
        state = self.engine.add(template, PlayerState())

        state = self.engine.on_scene_change("wasteland", "ridge", state)
        self.assertEqual(1, len(state.effects.active))

        state = self.engine.on_scene_change("vault-interior", "airlock", state)
        self.assertEqual((), state.effects.active)
        self.assertEqual(0, state.stats["radiationResistance"])

    def test_conditional_flag_effect_expires_when_condition_holds(self) -> None:
        template = _template(duration=Conditional(condition=Requirement(flags={"antidote-taken": True})))
        state = self.engine.add(template, PlayerState())

        state = self.engine.expire_conditional(state)
        self.assertEqual(1, len(state.effects.active))

        state = self.engine.expire_conditional(set_flag(state, "antidote-taken", True))
        self.assertEqual((), state.effects.active)
        self.assertEqual({"antidote-taken": True}, dict(state.flags))

    def test_apply_condition_blocks_effect(self) -> None:
        template = _template(apply_condition=Requirement(flags={"chem-user": True}))

        state = self.engine.add(template, PlayerState())

        self.assertEqual((), state.effects.active)
        self.assertEqual([], self.events)

    def test_on_apply_handler_runs_once(self) -> None:
        state = PlayerState(stats={**PlayerState().stats, "health": 50})
        state = self.engine.add(_template("Stimpak", on_apply="restore_health:5"), state)
        self.assertEqual(55, state.stats["health"])

        state = self.engine.add(_template("Rad-X", stat_modifiers={"radiationResistance": 25}), state)
        state = self.engine.remove("fx-2", state)

        self.assertEqual(55, state.stats["health"])

    def test_manual_edit_survives_effect_removal(self) -> None:
        state = self.engine.add(_template(stat_modifiers={"maxHealth": 20}), PlayerState())
        state = set_stat(state, "maxHealth", 150)
        self.assertEqual(170, state.stats["maxHealth"])

        state = self.engine.remove("fx-1", state)

        self.assertEqual(150, state.stats["maxHealth"])

    def test_flag_modifiers_are_reverted(self) -> None:
        state = set_flag(PlayerState(), "night-vision", False)
        state = self.engine.add(_template("Cat Eye", flag_modifiers={"night-vision": True}), state)
        self.assertTrue(state.flags["night-vision"])

        state = self.engine.remove("fx-1", state)

        self.assertFalse(state.flags["night-vision"])

    def test_reputation_modifiers_shift_faction_level(self) -> None:
        state = self.engine.add(_template("Raider Tattoo", reputation_modifiers={"raiders": 30}), PlayerState())

        raiders = state.reputation.factions["raiders"]
        self.assertEqual(10, raiders.value)
        self.assertEqual("friendly", raiders.level.value)

        state = self.engine.remove("fx-1", state)
        raiders = state.reputation.factions["raiders"]
        self.assertEqual(-20, raiders.value)
        self.assertEqual("unfriendly", raiders.level.value)

    def test_trigger_runs_handler_and_counts(self) -> None:
        state = PlayerState(stats={**PlayerState().stats, "health": 60})
        state = self.engine.add(_template("Regen", on_trigger="restore_health:10"), state)

        state = self.engine.trigger("fx-1", {"type": "manual"}, state)
        state = self.engine.trigger("fx-1", None, state)

        effect = state.effects.find("fx-1")
        self.assertEqual(2, effect.trigger_count)
        self.assertEqual(NOW, effect.last_triggered)
        self.assertEqual(80, state.stats["health"])
        self.assertIs(state, self.engine.trigger("missing", None, state))

    def test_skill_check_triggers_effects_referencing_the_ability(self) -> None:
        state = PlayerState(stats={**PlayerState().stats, "health": 50})
        state = self.engine.add(
            _template(
                "Adrenaline",
                apply_condition=Requirement(abilities={"strength": Range(min=1)}),
                on_trigger="restore_health:5",
            ),
            state,
        )
        result = SkillCheckResult(
            success=True, ability="strength", ability_value=5, difficulty=7, roll=2, luck_bonus=1
        )

        state = self.engine.on_skill_check(result, state)
        state = self.engine.on_skill_check(replace(result, ability="agility"), state)

        self.assertEqual(1, state.effects.find("fx-1").trigger_count)
        self.assertEqual(55, state.stats["health"])

    def test_history_records_application_and_removal(self) -> None:
        state = self.engine.add(_template(), PlayerState())
        state = self.engine.remove("fx-1", state, reason="cured")

        self.assertEqual(1, len(state.effects.history))
        entry = state.effects.history[0]
        self.assertEqual(NOW, entry.applied_at)
        self.assertEqual(NOW, entry.removed_at)
        self.assertEqual([EffectApplied, EffectRemoved], [type(event) for event in self.events])
        self.assertEqual("cured", self.events[1].reason)

    def test_queries_filter_by_source(self) -> None:
        state = self.engine.add(_template(), PlayerState())
        state = self.engine.add(_template("Gunslinger", source=EffectSource.PERK, source_id="gunslinger"), state)

        self.assertEqual(["fx-2"], [effect.id for effect in self.engine.effects_by_source(EffectSource.PERK, state)])
        self.assertEqual([], self.engine.effects_by_source(EffectSource.PERK, state, source_id="sniper"))

        state = self.engine.remove_matching(self.engine.active_effects(state), state, reason="cleared")
        self.assertEqual([], self.engine.active_effects(state))


if __name__ == "__main__":
    unittest.main()
