from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
import os
from typing import Callable, Optional

from storycore.application.services.behavior_registry import BehaviorRegistry, default_behavior_registry
from storycore.application.services.choice_service import ChoiceService
from storycore.application.services.condition_evaluator import ConditionEvaluator
from storycore.application.services.dialogue_walker import DialogueWalker
from storycore.application.services.effect_engine import EffectEngine
from storycore.application.services.event_bus import DEFAULT_HISTORY_LIMIT, EventBus
from storycore.application.services.item_service import ItemService
from storycore.application.services.perk_manager import PerkManager
from storycore.application.services.reputation_tracker import ReputationTracker
from storycore.application.services.seed_policy import RollSource, roll_source_for
from storycore.application.services.skill_resolver import SkillResolver
from storycore.domain.models.faction import DEFAULT_REPUTATION_RULES, ReputationRules
from storycore.domain.models.player_state import PlayerState
from storycore.domain.models.progression import DEFAULT_ARTIFACT_SLOTS, PerkProgress
from storycore.infrastructure.content_loader import load_content_file
from storycore.infrastructure.inmemory.inmemory_npc_repo import InMemoryNpcRepository
from storycore.infrastructure.inmemory.inmemory_perk_repo import InMemoryPerkRepository
from storycore.infrastructure.inmemory.inmemory_player_state_repo import InMemoryPlayerStateRepository


logger = logging.getLogger(__name__)


@dataclass
class RulesEngine:
    event_bus: EventBus
    registry: BehaviorRegistry
    reputation_rules: ReputationRules
    evaluator: ConditionEvaluator
    effects: EffectEngine
    skills: SkillResolver
    reputation: ReputationTracker
    perks: PerkManager
    dialogue: DialogueWalker
    items: ItemService
    choices: ChoiceService
    perk_repo: InMemoryPerkRepository
    npc_repo: InMemoryNpcRepository
    state_repo: InMemoryPlayerStateRepository
    artifact_slots: int = DEFAULT_ARTIFACT_SLOTS

    def new_player_state(self) -> PlayerState:
        return PlayerState(
            perks=PerkProgress(artifact_slots=self.artifact_slots),
            reputation=self.reputation_rules.default_reputation(),
        )


def _roll_source_from_env() -> Optional[RollSource]:
    raw = os.getenv("STORYCORE_RNG_SEED", "").strip()
    if not raw:
        return None
    return roll_source_for("skill_checks", {"seed": int(raw)})


def _artifact_slots_from_env() -> int:
    slots = int(os.getenv("STORYCORE_ARTIFACT_SLOTS", str(DEFAULT_ARTIFACT_SLOTS)))
    if slots < 0:
        raise ValueError("STORYCORE_ARTIFACT_SLOTS cannot be negative")
    return slots


def _event_history_from_env() -> int:
    raw = os.getenv("STORYCORE_EVENT_HISTORY", "").strip()
    if not raw:
        return DEFAULT_HISTORY_LIMIT
    limit = int(raw)
    if limit < 0:
        raise ValueError("STORYCORE_EVENT_HISTORY cannot be negative")
    return limit


def create_rules_engine(
    *,
    roll_source: Optional[RollSource] = None,
    clock: Optional[Callable[[], datetime]] = None,
    content_path: Optional[str] = None,
    reputation_rules: ReputationRules = DEFAULT_REPUTATION_RULES,
    registry: Optional[BehaviorRegistry] = None,
) -> RulesEngine:
    event_bus = EventBus(history_limit=_event_history_from_env())
    registry = registry or default_behavior_registry()
    evaluator = ConditionEvaluator(reputation_rules)

    perk_repo = InMemoryPerkRepository()
    npc_repo = InMemoryNpcRepository()
    path = content_path or os.getenv("STORYCORE_CONTENT_PATH", "").strip()
    if path:
        bundle = load_content_file(path)
        for perk in bundle.perks:
            perk_repo.add(perk)
        for npc in bundle.npcs:
            npc_repo.add(npc)

    effects = EffectEngine(
        evaluator,
        registry,
        reputation_rules=reputation_rules,
        clock=clock,
        event_publisher=event_bus.publish,
    )
    skills = SkillResolver(roll_source=roll_source or _roll_source_from_env(), event_publisher=event_bus.publish)
    skills.register_after_check(effects.on_skill_check)

    engine = RulesEngine(
        event_bus=event_bus,
        registry=registry,
        reputation_rules=reputation_rules,
        evaluator=evaluator,
        effects=effects,
        skills=skills,
        reputation=ReputationTracker(reputation_rules, clock=clock, event_publisher=event_bus.publish),
        perks=PerkManager(perk_repo, effects, event_publisher=event_bus.publish),
        dialogue=DialogueWalker(evaluator, registry, clock=clock, event_publisher=event_bus.publish),
        items=ItemService(effects),
        choices=ChoiceService(evaluator, skills),
        perk_repo=perk_repo,
        npc_repo=npc_repo,
        state_repo=InMemoryPlayerStateRepository(),
        artifact_slots=_artifact_slots_from_env(),
    )
    logger.debug("Rules engine ready with %s perks and %s npcs", len(perk_repo.list_all()), len(npc_repo.list_all()))
    return engine
