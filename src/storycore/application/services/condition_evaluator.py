from __future__ import annotations

import logging
from typing import Mapping, Optional

from storycore.application.services.effect_engine import effective_ability, effective_stat
from storycore.domain.models.condition import (
    NumericRequirement,
    Range,
    ReputationRange,
    ReputationRequirement,
    Requirement,
    SceneLocation,
)
from storycore.domain.models.faction import DEFAULT_REPUTATION_RULES, ReputationLevel, ReputationRules
from storycore.domain.models.flags import FlagValue
from storycore.domain.models.player_state import PlayerState


logger = logging.getLogger(__name__)


def _matches_number(requirement: NumericRequirement, value: float) -> bool:
    if isinstance(requirement, Range):
        return requirement.contains(value)
    return value == requirement


def flags_hold(flags: Mapping[str, FlagValue], state: PlayerState) -> bool:
    for name, expected in flags.items():
        if name not in state.flags:
            return False
        actual = state.flags[name]
        # True must not match 1 and vice versa.
        if type(actual) is bool or type(expected) is bool:
            if type(actual) is not type(expected):
                return False
        if actual != expected:
            return False
    return True


class ConditionEvaluator:
    """Decides whether a :class:`Requirement` holds for a player state.

    Stats and abilities are compared on their effective values (stored base
    plus every active modifier). Groups are checked in a fixed order and the
    first failing group ends evaluation.
    """

    def __init__(self, reputation_rules: ReputationRules = DEFAULT_REPUTATION_RULES) -> None:
        self.reputation_rules = reputation_rules

    def evaluate(
        self,
        requirement: Optional[Requirement],
        state: PlayerState,
        *,
        location: Optional[SceneLocation] = None,
    ) -> bool:
        if requirement is None:
            return True
        if requirement.flags is not None and not flags_hold(requirement.flags, state):
            return False
        if requirement.stats is not None and not self._stats_hold(requirement.stats, state):
            return False
        if requirement.abilities is not None and not self._abilities_hold(requirement.abilities, state):
            return False
        if requirement.items is not None and not all(state.has_item(item_id) for item_id in requirement.items):
            return False
        if requirement.perks is not None and not self._perks_hold(requirement.perks, state):
            return False
        if requirement.reputation is not None and not self._reputation_holds(requirement.reputation, state):
            return False
        if location is not None and requirement.references_location:
            return requirement.matches_location(location)
        return True

    @staticmethod
    def _stats_hold(stats: Mapping[str, NumericRequirement], state: PlayerState) -> bool:
        for name, requirement in stats.items():
            value = effective_stat(state, name)
            if value is None or not _matches_number(requirement, value):
                return False
        return True

    @staticmethod
    def _abilities_hold(abilities: Mapping[str, NumericRequirement], state: PlayerState) -> bool:
        for name, requirement in abilities.items():
            value = effective_ability(state, name)
            if value is None or not _matches_number(requirement, value):
                return False
        return True

    @staticmethod
    def _perks_hold(perks: Mapping[str, bool], state: PlayerState) -> bool:
        for perk_id, required in perks.items():
            if state.perks.has_perk(perk_id) != bool(required):
                return False
        return True

    def _reputation_holds(self, requirements: Mapping[str, ReputationRequirement], state: PlayerState) -> bool:
        reputation = self.reputation_rules.resolve(state.reputation)
        for faction_id, requirement in requirements.items():
            faction = reputation.get(faction_id)
            if faction is None or faction.hidden:
                return False
            if isinstance(requirement, ReputationRange):
                if not requirement.contains(faction.level):
                    return False
            elif faction.level.ordinal < ReputationLevel.parse(requirement).ordinal:
                return False
        return True
