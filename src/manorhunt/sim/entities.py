from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from manorhunt.sim.errors import InventoryFull
from manorhunt.sim.world import ItemRecord

DEFAULT_MAX_ITEMS = 5


@dataclass
class TargetCharacterState:
    name: str
    health: int
    room_index: int = 0
    previous_health: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("target.name must be a non-empty string")
        if isinstance(self.health, bool) or not isinstance(self.health, int):
            raise ValueError("target.health must be an integer")
        self.health = max(0, self.health)
        if self.previous_health is None:
            self.previous_health = self.health

    def is_alive(self) -> bool:
        return self.health > 0

    def take_damage(self, amount: int) -> None:
        self.previous_health = self.health
        self.health = max(0, self.health - int(amount))

    def move_to_space(self, room_index: int) -> None:
        # Bounds are checked by the caller.
        self.room_index = room_index

    def move_to_next_space(self) -> None:
        self.room_index += 1
        if self.room_index < 0:
            self.room_index = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "health": self.health,
            "previous_health": self.previous_health,
            "room_index": self.room_index,
        }


@dataclass
class PetState:
    """Companion of the target; its room is opaque to observers next door."""

    name: str
    room_index: int = 0
    owner_name: str | None = None

    def move_to(self, room_index: int) -> None:
        self.room_index = room_index

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "room_index": self.room_index, "owner_name": self.owner_name}


@dataclass
class PlayerState:
    name: str
    room_index: int
    max_items: int = DEFAULT_MAX_ITEMS
    is_ai: bool = False
    inventory: list[ItemRecord] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("player.name must be a non-empty string")
        if isinstance(self.max_items, bool) or not isinstance(self.max_items, int) or self.max_items < 0:
            raise ValueError("player.max_items must be a non-negative integer")
        if len(self.inventory) > self.max_items:
            raise ValueError("player.inventory exceeds max_items")

    def can_carry_more_items(self) -> bool:
        return len(self.inventory) < self.max_items

    def pick_up_item(self, item: ItemRecord) -> None:
        if not self.can_carry_more_items():
            raise InventoryFull(f"{self.name} cannot carry more than {self.max_items} items")
        self.inventory.append(item)

    def remove_item(self, item: ItemRecord) -> None:
        self.inventory.remove(item)

    def best_item(self) -> ItemRecord | None:
        best: ItemRecord | None = None
        for item in self.inventory:
            if best is None or item.damage > best.damage:
                best = item
        return best

    def move_to(self, room_index: int) -> None:
        self.room_index = room_index

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "room_index": self.room_index,
            "max_items": self.max_items,
            "is_ai": self.is_ai,
            "inventory": [item.item_id for item in self.inventory],
        }
