from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional

from storycore.domain.models.condition import Requirement
from storycore.domain.models.flags import FlagValue


END_OF_CONVERSATION = "EXIT"


class SpeakerRole(str, Enum):
    PLAYER = "player"
    NPC = "npc"
    NARRATOR = "narrator"


@dataclass(frozen=True)
class DialogueResponse:
    id: str
    text: str
    next_node_id: str
    condition: Optional[Requirement] = None
    set_flags: Mapping[str, FlagValue] = field(default_factory=dict)
    on_select: Optional[str] = None

    @property
    def ends_conversation(self) -> bool:
        return self.next_node_id == END_OF_CONVERSATION


@dataclass(frozen=True)
class DialogueNode:
    id: str
    text: str
    speaker_name: Optional[str] = None
    speaker_role: Optional[SpeakerRole] = None
    responses: tuple[DialogueResponse, ...] = ()
    on_enter: Optional[str] = None

    def response(self, response_id: str) -> Optional[DialogueResponse]:
        for row in self.responses:
            if row.id == response_id:
                return row
        return None


@dataclass(frozen=True)
class Npc:
    id: str
    name: str
    initial_node_id: str
    nodes: Mapping[str, DialogueNode] = field(default_factory=dict)
    description: str = ""
    memory_flags: tuple[str, ...] = ()

    def node(self, node_id: Optional[str]) -> Optional[DialogueNode]:
        if not node_id:
            return None
        return self.nodes.get(node_id)

    def remembers(self, flag: str) -> bool:
        return flag in self.memory_flags


@dataclass(frozen=True)
class DialogueState:
    active: bool = False
    npc_id: Optional[str] = None
    node_id: Optional[str] = None


@dataclass(frozen=True)
class NpcMemory:
    met: bool = False
    last_interaction: Optional[datetime] = None
    remembered: Mapping[str, FlagValue] = field(default_factory=dict)


def close_dialogue(dialogue: DialogueState) -> DialogueState:
    """Closed session that still names the last NPC spoken to."""

    return DialogueState(active=False, npc_id=dialogue.npc_id, node_id=None)
