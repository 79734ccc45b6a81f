from abc import ABC, abstractmethod
from typing import List, Optional

from storycore.domain.models.dialogue import Npc
from storycore.domain.models.perk import Perk
from storycore.domain.models.player_state import PlayerState


class PlayerStateRepository(ABC):
    @abstractmethod
    def load(self, slot: str) -> Optional[PlayerState]:
        raise NotImplementedError

    @abstractmethod
    def save(self, slot: str, state: PlayerState) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_slots(self) -> List[str]:
        raise NotImplementedError


class PerkRepository(ABC):
    @abstractmethod
    def get(self, perk_id: str) -> Optional[Perk]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> List[Perk]:
        raise NotImplementedError


class NpcRepository(ABC):
    @abstractmethod
    def get(self, npc_id: str) -> Optional[Npc]:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> List[Npc]:
        raise NotImplementedError
