from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Mapping, Optional
import uuid

from storycore.domain.events import EffectApplied, EffectRemoved
from storycore.domain.models.condition import SceneLocation
from storycore.domain.models.effect import (
    Conditional,
    Effect,
    EffectBaseline,
    EffectHistoryEntry,
    EffectSource,
    EffectTemplate,
    EffectsState,
    Temporary,
    Timed,
)
from storycore.domain.models.faction import DEFAULT_REPUTATION_RULES, ReputationRules, clamp_reputation
from storycore.domain.models.player_state import PlayerState
from storycore.domain.models.skill_check import SkillCheckResult
from storycore.domain.models.stats import ABILITY_NAMES, clamp_ability

if TYPE_CHECKING:
    from storycore.application.services.behavior_registry import BehaviorRegistry
    from storycore.application.services.condition_evaluator import ConditionEvaluator


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_effect_id() -> str:
    return str(uuid.uuid4())


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _active(state: PlayerState) -> tuple[Effect, ...]:
    return tuple(effect for effect in state.effects.active if effect.active)


def total_stat_modifier(state: PlayerState, stat: str) -> float:
    return sum(effect.stat_modifiers.get(stat, 0) for effect in _active(state))


def total_ability_modifier(state: PlayerState, ability: str) -> int:
    return int(sum(effect.ability_modifiers.get(ability, 0) for effect in _active(state)))


def total_reputation_modifier(state: PlayerState, faction_id: str) -> int:
    return int(sum(effect.reputation_modifiers.get(faction_id, 0) for effect in _active(state)))


def base_stat(state: PlayerState, stat: str) -> Optional[float]:
    baseline = state.effects.baseline
    if baseline is not None and stat in baseline.stats:
        return baseline.stats[stat]
    return state.stats.get(stat)


def base_ability(state: PlayerState, ability: str) -> Optional[int]:
    baseline = state.effects.baseline
    if baseline is not None and ability in baseline.abilities:
        return int(baseline.abilities[ability])
    return state.abilities.get(ability)


def base_faction_value(state: PlayerState, faction_id: str) -> Optional[int]:
    baseline = state.effects.baseline
    if baseline is not None and faction_id in baseline.faction_values:
        return int(baseline.faction_values[faction_id])
    if state.reputation is None:
        return None
    faction = state.reputation.get(faction_id)
    return None if faction is None else int(faction.value)


def effective_stat(state: PlayerState, stat: str) -> Optional[float]:
    base = base_stat(state, stat)
    if base is None:
        return None
    return base + total_stat_modifier(state, stat)


def effective_ability(state: PlayerState, ability: str) -> Optional[int]:
    base = base_ability(state, ability)
    if base is None:
        return None
    return clamp_ability(base + total_ability_modifier(state, ability))


def capture_baseline(state: PlayerState) -> EffectBaseline:
    faction_values: Dict[str, int] = {}
    if state.reputation is not None:
        faction_values = {faction_id: int(row.value) for faction_id, row in state.reputation.factions.items()}
    return EffectBaseline(
        stats=dict(state.stats),
        abilities=state.abilities.as_dict(),
        faction_values=faction_values,
        flags=dict(state.flags),
    )


def rebuild_stats(state: PlayerState) -> PlayerState:
    baseline = state.effects.baseline
    if baseline is None:
        return state
    stats = dict(state.stats)
    for name, base in baseline.stats.items():
        stats[name] = base + total_stat_modifier(state, name)
    return replace(state, stats=stats)


def rebuild_abilities(state: PlayerState) -> PlayerState:
    baseline = state.effects.baseline
    if baseline is None:
        return state
    abilities = state.abilities
    for name in ABILITY_NAMES:
        base = baseline.abilities.get(name, abilities.get(name))
        abilities = abilities.with_value(name, clamp_ability(int(base) + total_ability_modifier(state, name)))
    return replace(state, abilities=abilities)


def rebuild_flags(state: PlayerState) -> PlayerState:
    baseline = state.effects.baseline
    if baseline is None:
        return state
    flags = dict(baseline.flags)
    for effect in _active(state):
        flags.update(effect.flag_modifiers)
    return replace(state, flags=flags)


def rebuild_factions(state: PlayerState, rules: ReputationRules = DEFAULT_REPUTATION_RULES) -> PlayerState:
    baseline = state.effects.baseline
    if baseline is None:
        return state
    touches_reputation = any(effect.reputation_modifiers for effect in _active(state))
    if state.reputation is None and not touches_reputation:
        return state
    reputation = rules.resolve(state.reputation)
    faction_values = dict(baseline.faction_values)
    factions = dict(reputation.factions)
    for faction_id, faction in reputation.factions.items():
        base = faction_values.setdefault(faction_id, int(faction.value))
        value = clamp_reputation(base + total_reputation_modifier(state, faction_id))
        if value != faction.value or faction.level != rules.level_for(value):
            factions[faction_id] = rules.with_value(faction, value)
    baseline = replace(baseline, faction_values=faction_values)
    return replace(
        state,
        reputation=replace(reputation, factions=factions),
        effects=replace(state.effects, baseline=baseline),
    )


def rebuild_modifiers(state: PlayerState, rules: ReputationRules = DEFAULT_REPUTATION_RULES) -> PlayerState:
    """Recompute every effect-driven field from the baseline.

    Drops the baseline once no effect remains active, leaving the fields at
    their pre-effect values.
    """

    if state.effects.baseline is None:
        return state
    state = rebuild_stats(state)
    state = rebuild_abilities(state)
    state = rebuild_factions(state, rules)
    state = rebuild_flags(state)
    if not _active(state):
        state = replace(state, effects=replace(state.effects, baseline=None))
    return state


class EffectEngine:
    """Owns the lifecycle of active effects on a player state.

    Handlers named by ``on_apply``/``on_remove``/``on_trigger`` are run through
    the behavior registry exactly once per lifecycle event; recomputing
    modifiers never replays them.
    """

    def __init__(
        self,
        evaluator: "ConditionEvaluator",
        registry: "BehaviorRegistry",
        *,
        reputation_rules: ReputationRules = DEFAULT_REPUTATION_RULES,
        clock: Optional[Clock] = None,
        id_factory: Optional[Callable[[], str]] = None,
        event_publisher: Optional[Callable[[object], None]] = None,
    ) -> None:
        self.evaluator = evaluator
        self.registry = registry
        self.reputation_rules = reputation_rules
        self.clock = clock or utc_now
        self.id_factory = id_factory or _new_effect_id
        self.event_publisher = event_publisher

    def add(self, template: EffectTemplate, state: PlayerState) -> PlayerState:
        if template.apply_condition is not None and not self.evaluator.evaluate(template.apply_condition, state):
            logger.debug("Effect %s not applied: apply condition unmet", template.name)
            return state

        effect = Effect.from_template(template, effect_id=self.id_factory(), applied_at=_as_utc(self.clock()))
        effects = state.effects
        baseline = effects.baseline if effects.baseline is not None else capture_baseline(state)
        entry = EffectHistoryEntry(
            effect_id=effect.id,
            applied_at=effect.applied_at or _as_utc(self.clock()),
            source=effect.source,
            source_id=effect.source_id,
        )
        state = replace(
            state,
            effects=EffectsState(
                active=effects.active + (effect,),
                history=effects.history + (entry,),
                baseline=baseline,
            ),
        )
        state = rebuild_modifiers(state, self.reputation_rules)
        logger.debug("Effect %s applied from %s:%s", effect.id, effect.source.value, effect.source_id)

        if effect.on_apply:
            state = self.registry.run(effect.on_apply, state, trigger="apply", effect_id=effect.id)
        self._publish(
            EffectApplied(
                effect_id=effect.id,
                name=effect.name,
                source=effect.source.value,
                source_id=effect.source_id,
            )
        )
        return state

    def remove(self, effect_id: str, state: PlayerState, *, reason: str = "removed") -> PlayerState:
        effect = state.effects.find(effect_id)
        if effect is None:
            return state

        removed_at = _as_utc(self.clock())
        history = tuple(
            replace(entry, removed_at=removed_at)
            if entry.effect_id == effect_id and entry.removed_at is None
            else entry
            for entry in state.effects.history
        )
        active = tuple(row for row in state.effects.active if row.id != effect_id)
        state = replace(state, effects=replace(state.effects, active=active, history=history))

        if effect.on_remove:
            state = self.registry.run(effect.on_remove, state, trigger="remove", effect_id=effect.id)
        state = rebuild_modifiers(state, self.reputation_rules)
        logger.debug("Effect %s removed (%s)", effect_id, reason)
        self._publish(EffectRemoved(effect_id=effect_id, name=effect.name, reason=reason))
        return state

    def trigger(
        self,
        effect_id: str,
        context: Optional[Mapping[str, Any]],
        state: PlayerState,
    ) -> PlayerState:
        effect = state.effects.find(effect_id)
        if effect is None or not effect.active or not effect.on_trigger:
            return state

        updated = replace(
            effect,
            last_triggered=_as_utc(self.clock()),
            trigger_count=int(effect.trigger_count) + 1,
        )
        active = tuple(updated if row.id == effect_id else row for row in state.effects.active)
        state = replace(state, effects=replace(state.effects, active=active))
        return self.registry.run(
            effect.on_trigger,
            state,
            trigger="trigger",
            effect_id=effect_id,
            payload=dict(context or {}),
        )

    def on_scene_change(self, episode_id: Optional[str], scene_id: Optional[str], state: PlayerState) -> PlayerState:
        location = SceneLocation(episode_id=episode_id, scene_id=scene_id)
        expired: list[str] = []
        active: list[Effect] = []
        for effect in state.effects.active:
            duration = effect.duration
            if isinstance(duration, Temporary):
                remaining = int(duration.remaining) - 1
                if remaining <= 0:
                    expired.append(effect.id)
                else:
                    effect = replace(effect, duration=Temporary(remaining=remaining))
            elif isinstance(duration, Conditional) and duration.condition.references_location:
                if self.evaluator.evaluate(duration.condition, state, location=location):
                    expired.append(effect.id)
            active.append(effect)

        state = replace(state, effects=replace(state.effects, active=tuple(active)))
        for effect_id in expired:
            state = self.remove(effect_id, state, reason="scene_change")
        return state

    def on_time_check(self, state: PlayerState, now: Optional[datetime] = None) -> PlayerState:
        current = _as_utc(now or self.clock())
        expired = [
            effect.id
            for effect in state.effects.active
            if isinstance(effect.duration, Timed) and effect.duration.expires_at < current
        ]
        for effect_id in expired:
            state = self.remove(effect_id, state, reason="expired")
        return state

    def expire_conditional(self, state: PlayerState) -> PlayerState:
        """Remove conditional effects whose (location-free) condition now holds."""

        expired = [
            effect.id
            for effect in state.effects.active
            if isinstance(effect.duration, Conditional)
            and not effect.duration.condition.references_location
            and self.evaluator.evaluate(effect.duration.condition, state)
        ]
        for effect_id in expired:
            state = self.remove(effect_id, state, reason="condition_met")
        return state

    def on_skill_check(self, result: SkillCheckResult, state: PlayerState) -> PlayerState:
        context = {
            "type": "skill_check",
            "ability": result.ability,
            "success": result.success,
            "roll": result.roll,
            "total": result.total,
            "difficulty": result.difficulty,
        }
        for effect in self._triggerable(state):
            if effect.apply_condition is not None and effect.apply_condition.references_ability(result.ability):
                state = self.trigger(effect.id, context, state)
        return state

    def on_item_used(self, item_id: str, state: PlayerState) -> PlayerState:
        context = {"type": "item_use", "item_id": item_id}
        for effect in self._triggerable(state):
            if effect.apply_condition is not None and effect.apply_condition.references_item(item_id):
                state = self.trigger(effect.id, context, state)
        return state

    def active_effects(self, state: PlayerState) -> list[Effect]:
        return list(_active(state))

    def effects_by_source(self, source: EffectSource, state: PlayerState, source_id: Optional[str] = None) -> list[Effect]:
        return [
            effect
            for effect in _active(state)
            if effect.source == source and (source_id is None or effect.source_id == source_id)
        ]

    def effects_for_stat(self, stat: str, state: PlayerState) -> list[Effect]:
        return [effect for effect in _active(state) if effect.stat_modifiers.get(stat)]

    def effects_for_ability(self, ability: str, state: PlayerState) -> list[Effect]:
        return [effect for effect in _active(state) if effect.ability_modifiers.get(ability)]

    def total_stat_modifier(self, stat: str, state: PlayerState) -> float:
        return total_stat_modifier(state, stat)

    def total_ability_modifier(self, ability: str, state: PlayerState) -> int:
        return total_ability_modifier(state, ability)

    def total_reputation_modifier(self, faction_id: str, state: PlayerState) -> int:
        return total_reputation_modifier(state, faction_id)

    def remove_matching(self, effects: Iterable[Effect], state: PlayerState, *, reason: str) -> PlayerState:
        for effect in list(effects):
            state = self.remove(effect.id, state, reason=reason)
        return state

    def _triggerable(self, state: PlayerState) -> list[Effect]:
        return [effect for effect in _active(state) if effect.on_trigger]

    def _publish(self, event: object) -> None:
        if self.event_publisher is not None:
            self.event_publisher(event)
