from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from manorhunt.sim.errors import InvalidRoomIndex, ItemNotFound


def _require_int(value: Any, *, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    return value


def _require_non_negative_int(value: Any, *, field_name: str) -> int:
    _require_int(value, field_name=field_name)
    if value < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return value


def _require_name(value: Any, *, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string")
    return value


@dataclass(frozen=True)
class RoomRecord:
    """Rectangular room on the world grid, inclusive row/col bounds."""

    room_id: int
    name: str
    upper_left_row: int
    upper_left_col: int
    lower_right_row: int
    lower_right_col: int

    def __post_init__(self) -> None:
        _require_non_negative_int(self.room_id, field_name="room.room_id")
        _require_name(self.name, field_name="room.name")
        _require_int(self.upper_left_row, field_name="room.upper_left_row")
        _require_int(self.upper_left_col, field_name="room.upper_left_col")
        _require_int(self.lower_right_row, field_name="room.lower_right_row")
        _require_int(self.lower_right_col, field_name="room.lower_right_col")

    def contains_cell(self, row: int, col: int) -> bool:
        return self.upper_left_row <= row <= self.lower_right_row and self.upper_left_col <= col <= self.lower_right_col

    def to_dict(self) -> dict[str, Any]:
        return {
            "room_id": self.room_id,
            "name": self.name,
            "upper_left_row": self.upper_left_row,
            "upper_left_col": self.upper_left_col,
            "lower_right_row": self.lower_right_row,
            "lower_right_col": self.lower_right_col,
        }


@dataclass(frozen=True)
class ItemRecord:
    item_id: str
    name: str
    damage: int

    def __post_init__(self) -> None:
        _require_name(self.item_id, field_name="item.item_id")
        _require_name(self.name, field_name="item.name")
        _require_non_negative_int(self.damage, field_name="item.damage")

    def label(self) -> str:
        return f"{self.name} (Damage: {self.damage})"

    def to_dict(self) -> dict[str, Any]:
        return {"item_id": self.item_id, "name": self.name, "damage": self.damage}


def rooms_are_adjacent(a: RoomRecord, b: RoomRecord) -> bool:
    """Rooms touch along a full grid edge: overlapping span on one axis, consecutive rows/cols on the other."""
    if a.room_id == b.room_id:
        return False
    columns_overlap = a.upper_left_col <= b.lower_right_col and a.lower_right_col >= b.upper_left_col
    rows_touch = a.lower_right_row + 1 == b.upper_left_row or b.lower_right_row + 1 == a.upper_left_row
    rows_overlap = a.upper_left_row <= b.lower_right_row and a.lower_right_row >= b.upper_left_row
    cols_touch = a.lower_right_col + 1 == b.upper_left_col or b.lower_right_col + 1 == a.upper_left_col
    return (columns_overlap and rows_touch) or (rows_overlap and cols_touch)


def build_adjacency(rooms: Sequence[RoomRecord]) -> dict[int, tuple[int, ...]]:
    adjacency: dict[int, tuple[int, ...]] = {}
    for room in rooms:
        adjacency[room.room_id] = tuple(
            candidate.room_id for candidate in rooms if rooms_are_adjacent(room, candidate)
        )
    return adjacency


@dataclass
class WorldState:
    """Room graph plus the room-side item containers.

    Adjacency is computed once from room geometry at construction and is not
    mutated afterwards. Items sit in exactly one room container here or in
    exactly one player's inventory.
    """

    rows: int
    cols: int
    name: str
    rooms: list[RoomRecord]
    items: dict[str, ItemRecord] = field(default_factory=dict)
    room_items: dict[int, list[str]] = field(default_factory=dict)
    _adjacency: dict[int, tuple[int, ...]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        _require_non_negative_int(self.rows, field_name="world.rows")
        _require_non_negative_int(self.cols, field_name="world.cols")
        _require_name(self.name, field_name="world.name")
        if not self.rooms:
            raise ValueError("world must contain at least one room")
        for index, room in enumerate(self.rooms):
            if room.room_id != index:
                raise ValueError(f"rooms[{index}].room_id must equal its index (got {room.room_id})")
        self.rooms = list(self.rooms)
        self.items = dict(self.items)
        self.room_items = {room_index: list(item_ids) for room_index, item_ids in self.room_items.items()}
        seen: set[str] = set()
        for room_index in sorted(self.room_items):
            self.validate_room_index(room_index)
            for item_id in self.room_items[room_index]:
                if item_id not in self.items:
                    raise ValueError(f"room {room_index} references unknown item '{item_id}'")
                if item_id in seen:
                    raise ValueError(f"item '{item_id}' placed in more than one room")
                seen.add(item_id)
        for index in range(len(self.rooms)):
            self.room_items.setdefault(index, [])
        self._adjacency = build_adjacency(self.rooms)

    @property
    def room_count(self) -> int:
        return len(self.rooms)

    def validate_room_index(self, room_index: Any) -> int:
        if isinstance(room_index, bool) or not isinstance(room_index, int):
            raise InvalidRoomIndex(f"room index must be an integer, got {room_index!r}")
        if room_index < 0 or room_index >= len(self.rooms):
            raise InvalidRoomIndex(f"room index {room_index} outside 0..{len(self.rooms) - 1}")
        return room_index

    def room(self, room_index: int) -> RoomRecord:
        return self.rooms[self.validate_room_index(room_index)]

    def neighbors(self, room_index: int) -> tuple[int, ...]:
        return self._adjacency[self.validate_room_index(room_index)]

    def is_neighbor(self, a: int, b: int) -> bool:
        return self.validate_room_index(b) in self.neighbors(a)

    def items_in_room(self, room_index: int) -> list[ItemRecord]:
        return [self.items[item_id] for item_id in self.room_items[self.validate_room_index(room_index)]]

    def find_item_in_room(self, room_index: int, item_name: str) -> ItemRecord:
        for item in self.items_in_room(room_index):
            if item.name == item_name or item.item_id == item_name:
                return item
        raise ItemNotFound(f"no item named '{item_name}' in {self.room(room_index).name}")

    def remove_item_from_room(self, room_index: int, item: ItemRecord) -> None:
        container = self.room_items[self.validate_room_index(room_index)]
        if item.item_id not in container:
            raise ItemNotFound(f"item '{item.item_id}' is not in {self.room(room_index).name}")
        container.remove(item.item_id)

    def place_item(self, room_index: int, item: ItemRecord) -> None:
        self.validate_room_index(room_index)
        for container in self.room_items.values():
            if item.item_id in container:
                raise ValueError(f"item '{item.item_id}' is already placed in a room")
        self.items.setdefault(item.item_id, item)
        self.room_items[room_index].append(item.item_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows": self.rows,
            "cols": self.cols,
            "name": self.name,
            "rooms": [room.to_dict() for room in self.rooms],
            "items": [self.items[item_id].to_dict() for item_id in sorted(self.items)],
            "room_items": {str(index): list(self.room_items[index]) for index in sorted(self.room_items)},
            "adjacency": {str(index): list(self._adjacency[index]) for index in sorted(self._adjacency)},
        }
