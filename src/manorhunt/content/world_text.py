from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from manorhunt.sim.core import Game, GameConfig
from manorhunt.sim.entities import PetState, TargetCharacterState
from manorhunt.sim.world import ItemRecord, RoomRecord, WorldState

logger = logging.getLogger(__name__)

DEFAULT_WORLD_PATH = "content/worlds/mansion.txt"


class WorldFormatError(ValueError):
    """Malformed world description; ``line`` is 1-based when known."""

    def __init__(self, message: str, *, line: int | None = None) -> None:
        self.line = line
        super().__init__(f"line {line}: {message}" if line is not None else message)


@dataclass(frozen=True)
class LoadedWorld:
    world: WorldState
    target: TargetCharacterState
    pet_name: str | None = None


class _LineCursor:
    def __init__(self, text: str) -> None:
        self._lines = [
            (number, raw.strip())
            for number, raw in enumerate(text.splitlines(), start=1)
            if raw.strip()
        ]
        self._position = 0

    def peek(self) -> tuple[int, str] | None:
        if self._position >= len(self._lines):
            return None
        return self._lines[self._position]

    def next(self, what: str) -> tuple[int, str]:
        current = self.peek()
        if current is None:
            last_line = self._lines[-1][0] if self._lines else None
            raise WorldFormatError(f"unexpected end of input, expected {what}", line=last_line)
        self._position += 1
        return current


def _parse_int(token: str, *, field_name: str, line: int) -> int:
    try:
        return int(token)
    except ValueError:
        raise WorldFormatError(f"{field_name} must be an integer, got {token!r}", line=line) from None


def _split_fields(text: str, count: int, *, what: str, line: int) -> tuple[list[str], str]:
    parts = text.split()
    if len(parts) <= count:
        raise WorldFormatError(f"{what} needs {count} numbers followed by a name", line=line)
    return parts[:count], " ".join(parts[count:])


def _is_count_line(text: str) -> bool:
    try:
        int(text)
    except ValueError:
        return False
    return True


def parse_world_text(text: str) -> LoadedWorld:
    cursor = _LineCursor(text)

    line, raw = cursor.next("world header")
    (rows_token, cols_token), world_name = _split_fields(raw, 2, what="world header", line=line)
    rows = _parse_int(rows_token, field_name="rows", line=line)
    cols = _parse_int(cols_token, field_name="cols", line=line)

    line, raw = cursor.next("target character")
    (health_token,), target_name = _split_fields(raw, 1, what="target character", line=line)
    health = _parse_int(health_token, field_name="target health", line=line)
    if health <= 0:
        raise WorldFormatError("target health must be > 0", line=line)

    pet_name: str | None = None
    upcoming = cursor.peek()
    if upcoming is not None and not _is_count_line(upcoming[1]):
        _, pet_name = cursor.next("pet name")

    line, raw = cursor.next("room count")
    room_count = _parse_int(raw, field_name="room count", line=line)
    if room_count <= 0:
        raise WorldFormatError("room count must be > 0", line=line)

    rooms: list[RoomRecord] = []
    for room_id in range(room_count):
        line, raw = cursor.next(f"room {room_id}")
        coords, room_name = _split_fields(raw, 4, what="room", line=line)
        ul_row, ul_col, lr_row, lr_col = (
            _parse_int(token, field_name="room coordinate", line=line) for token in coords
        )
        rooms.append(
            RoomRecord(
                room_id=room_id,
                name=room_name,
                upper_left_row=ul_row,
                upper_left_col=ul_col,
                lower_right_row=lr_row,
                lower_right_col=lr_col,
            )
        )

    items: dict[str, ItemRecord] = {}
    room_items: dict[int, list[str]] = {}
    if cursor.peek() is not None:
        line, raw = cursor.next("item count")
        item_count = _parse_int(raw, field_name="item count", line=line)
        if item_count < 0:
            raise WorldFormatError("item count must be >= 0", line=line)
        for index in range(item_count):
            line, raw = cursor.next(f"item {index}")
            (room_token, damage_token), item_name = _split_fields(raw, 2, what="item", line=line)
            room_index = _parse_int(room_token, field_name="item room index", line=line)
            damage = _parse_int(damage_token, field_name="item damage", line=line)
            if room_index < 0 or room_index >= room_count:
                raise WorldFormatError(f"item room index {room_index} outside 0..{room_count - 1}", line=line)
            if damage < 0:
                raise WorldFormatError("item damage must be >= 0", line=line)
            item = ItemRecord(item_id=f"item-{index}", name=item_name, damage=damage)
            items[item.item_id] = item
            room_items.setdefault(room_index, []).append(item.item_id)

    trailing = cursor.peek()
    if trailing is not None:
        raise WorldFormatError(f"unexpected trailing content {trailing[1]!r}", line=trailing[0])

    world = WorldState(rows=rows, cols=cols, name=world_name, rooms=rooms, items=items, room_items=room_items)
    logger.debug("parsed world %s: %d rooms, %d items", world_name, len(rooms), len(items))
    return LoadedWorld(
        world=world,
        target=TargetCharacterState(name=target_name, health=health, room_index=0),
        pet_name=pet_name,
    )


def load_world_text(path: str | Path) -> LoadedWorld:
    return parse_world_text(Path(path).read_text(encoding="utf-8"))


def build_game(loaded: LoadedWorld, config: GameConfig | None = None) -> Game:
    """Create a game with the pet, when the world names one, next to its owner."""
    pet = None
    if loaded.pet_name is not None:
        pet = PetState(name=loaded.pet_name, room_index=loaded.target.room_index, owner_name=loaded.target.name)
    return Game(world=loaded.world, target=loaded.target, pet=pet, config=config)
