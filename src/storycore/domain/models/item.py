from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from storycore.domain.models.effect import EffectTemplate


@dataclass(frozen=True)
class Item:
    id: str
    name: str = ""
    description: str = ""
    quantity: int = 1
    consumable: bool = False
    charges: Optional[int] = None
    equippable: bool = False
    equipped: bool = False
    use_effect: Optional[EffectTemplate] = None
    equip_effect: Optional[EffectTemplate] = None

    def __post_init__(self) -> None:
        if not str(self.id or "").strip():
            raise ValueError("Item id is required")
        if int(self.quantity) < 0:
            raise ValueError("Item quantity cannot be negative")
