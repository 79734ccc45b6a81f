import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from storycore.application.services.behavior_registry import default_behavior_registry
from storycore.application.services.condition_evaluator import ConditionEvaluator
from storycore.application.services.effect_engine import EffectEngine
from storycore.application.services.item_service import ITEM_UNEQUIP_FLAG, ItemService
from storycore.application.services.state_mutations import set_stat
from storycore.domain.models.condition import Requirement
from storycore.domain.models.effect import EffectSource, EffectTemplate, Temporary
from storycore.domain.models.item import Item
from storycore.domain.models.player_state import PlayerState


STIMPAK = Item(
    id="stimpak",
    name="Stimpak",
    quantity=2,
    consumable=True,
    use_effect=EffectTemplate(name="Stimpak", source=EffectSource.ITEM, source_id="stimpak", on_apply="restore_health:20"),
)

POWER_ARMOR = Item(
    id="power-armor",
    name="Power Armor",
    equippable=True,
    equip_effect=EffectTemplate(
        name="Power Armor",
        source=EffectSource.ITEM,
        source_id="power-armor",
        stat_modifiers={"carryWeight": 50},
        ability_modifiers={"agility": -1},
    ),
)


class ItemServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.effects = EffectEngine(ConditionEvaluator(), default_behavior_registry())
        self.items = ItemService(self.effects)

    def test_using_consumable_spends_one_and_applies_effect(self) -> None:
        state = set_stat(PlayerState(inventory=(STIMPAK,)), "health", 50)

        state = self.items.use_item("stimpak", state)

        self.assertEqual(70, state.stats["health"])
        self.assertEqual(1, state.find_item("stimpak").quantity)

    def test_charges_are_spent_before_quantity(self) -> None:
        kit = Item(
            id="doctors-bag",
            consumable=True,
            charges=3,
            use_effect=EffectTemplate(name="Splint", source=EffectSource.ITEM, source_id="doctors-bag"),
        )
        state = self.items.use_item("doctors-bag", PlayerState(inventory=(kit,)))

        self.assertEqual(2, state.find_item("doctors-bag").charges)
        self.assertEqual(1, state.find_item("doctors-bag").quantity)

    def test_last_unit_is_removed(self) -> None:
        state = PlayerState(inventory=(Item(id="stimpak", consumable=True, use_effect=STIMPAK.use_effect),))

        state = self.items.use_item("stimpak", state)

        self.assertFalse(state.has_item("stimpak"))

    def test_item_without_use_effect_or_missing_is_unchanged(self) -> None:
        state = PlayerState(inventory=(Item(id="pipe"),))
        self.assertIs(state, self.items.use_item("pipe", state))
        with self.assertLogs("storycore.application.services.item_service", level="WARNING"):
            self.assertIs(state, self.items.use_item("nuka-cola", state))

    def test_using_item_triggers_effects_that_reference_it(self) -> None:
        jet = Item(
            id="jet",
            quantity=2,
            consumable=True,
            use_effect=EffectTemplate(
                name="Jet",
                source=EffectSource.ITEM,
                source_id="jet",
                duration=Temporary(remaining=2),
                ability_modifiers={"agility": 1},
            ),
        )
        addiction = EffectTemplate(
            name="Jet Addiction",
            source=EffectSource.EVENT,
            source_id="jet-addiction",
            apply_condition=Requirement(items=("jet",)),
            on_trigger="restore_energy:5",
        )
        state = set_stat(PlayerState(inventory=(jet,)), "energy", 50)
        state = self.effects.add(addiction, state)

        state = self.items.use_item("jet", state)

        addicted = self.effects.effects_by_source(EffectSource.EVENT, state)[0]
        self.assertEqual(1, addicted.trigger_count)
        self.assertEqual(55, state.stats["energy"])
        self.assertEqual(6, state.abilities.agility)

    def test_equip_and_unequip_toggle_effect(self) -> None:
        state = self.items.equip_item("power-armor", PlayerState(inventory=(POWER_ARMOR,)))

        self.assertTrue(state.find_item("power-armor").equipped)
        self.assertEqual(150, state.stats["carryWeight"])
        self.assertEqual(4, state.abilities.agility)
        self.assertIn("equipped_item", self.effects.active_effects(state)[0].tags)
        self.assertEqual([POWER_ARMOR.id], [item.id for item in self.items.equipped_items(state)])
        self.assertIs(state, self.items.equip_item("power-armor", state))

        state = self.items.unequip_item("power-armor", state)

        self.assertFalse(state.find_item("power-armor").equipped)
        self.assertEqual(100, state.stats["carryWeight"])
        self.assertEqual(5, state.abilities.agility)
        self.assertEqual([], self.effects.active_effects(state))
        self.assertNotIn(ITEM_UNEQUIP_FLAG, state.flags)

    def test_non_equippable_item_is_rejected(self) -> None:
        state = PlayerState(inventory=(STIMPAK,))
        with self.assertLogs("storycore.application.services.item_service", level="WARNING"):
            self.assertIs(state, self.items.equip_item("stimpak", state))


if __name__ == "__main__":
    unittest.main()
