from __future__ import annotations

from dataclasses import replace
import logging
from typing import List

from storycore.application.services.effect_engine import EffectEngine
from storycore.application.services.state_mutations import remove_flag, remove_item, replace_item, set_flag
from storycore.domain.models.condition import Requirement
from storycore.domain.models.effect import Conditional, EffectTemplate
from storycore.domain.models.item import Item
from storycore.domain.models.player_state import PlayerState


logger = logging.getLogger(__name__)

ITEM_UNEQUIP_FLAG = "item_unequipped"


class ItemService:
    def __init__(self, effect_engine: EffectEngine) -> None:
        self.effect_engine = effect_engine

    def use_item(self, item_id: str, state: PlayerState) -> PlayerState:
        item = state.find_item(item_id)
        if item is None:
            logger.warning("Item %s not in inventory; use ignored", item_id)
            return state
        if item.use_effect is None:
            return state

        if item.consumable:
            if item.charges is not None and int(item.charges) > 0:
                state = replace_item(state, replace(item, charges=int(item.charges) - 1))
            else:
                state = remove_item(state, item_id, 1)

        state = self.effect_engine.add(item.use_effect, state)
        return self.effect_engine.on_item_used(item_id, state)

    def equip_item(self, item_id: str, state: PlayerState) -> PlayerState:
        item = state.find_item(item_id)
        if item is None or not item.equippable:
            logger.warning("Item %s cannot be equipped", item_id)
            return state
        if item.equipped:
            return state

        state = replace_item(state, replace(item, equipped=True))
        if item.equip_effect is not None:
            state = self.effect_engine.add(self._equip_template(item, item.equip_effect), state)
        return state

    def unequip_item(self, item_id: str, state: PlayerState) -> PlayerState:
        item = state.find_item(item_id)
        if item is None or not item.equipped:
            return state
        state = replace_item(state, replace(item, equipped=False))
        state = set_flag(state, ITEM_UNEQUIP_FLAG, item_id)
        state = self.effect_engine.expire_conditional(state)
        return remove_flag(state, ITEM_UNEQUIP_FLAG)

    @staticmethod
    def equipped_items(state: PlayerState) -> List[Item]:
        return [item for item in state.inventory if item.equipped]

    @staticmethod
    def _equip_template(item: Item, template: EffectTemplate) -> EffectTemplate:
        tags = tuple(template.tags)
        if "equipped_item" not in tags:
            tags = tags + ("equipped_item",)
        return replace(
            template,
            duration=Conditional(condition=Requirement(flags={ITEM_UNEQUIP_FLAG: item.id})),
            tags=tags,
        )
