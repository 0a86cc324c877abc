"""Read-only text and layout projections of a game for presentation layers."""

from __future__ import annotations

from dataclasses import dataclass

from manorhunt.sim.core import RESULT_TARGET_ESCAPED, RESULT_TARGET_KILLED, Game
from manorhunt.sim.visibility import is_room_blocked, visible_neighbors

TARGET_LABEL = "T"
PET_LABEL = "p"


@dataclass(frozen=True)
class RoomTile:
    room_index: int
    name: str
    upper_left_row: int
    upper_left_col: int
    lower_right_row: int
    lower_right_col: int
    labels: tuple[str, ...]
    has_target: bool
    has_pet: bool


def describe_room(game: Game, room_index: int) -> str:
    world = game.world
    room = world.room(room_index)
    lines = [f"Space Name: {room.name}"]

    items = world.items_in_room(room_index)
    lines.append("Items: " + (", ".join(item.label() for item in items) if items else "None"))

    visible = visible_neighbors(world, game.pet, room_index)
    lines.append("Visible Neighbors: " + (", ".join(world.room(index).name for index in visible) if visible else "None"))
    hidden = [index for index in world.neighbors(room_index) if is_room_blocked(game.pet, index)]
    if hidden:
        lines.append("Blocked Neighbors: " + ", ".join(world.room(index).name for index in hidden))

    players = game.players_in_room(room_index)
    if players:
        lines.append("Players: " + ", ".join(player.name for player in players))
    if game.target.room_index == room_index:
        lines.append(f"Target character: {game.target.name} (Health: {game.target.health})")
    if game.pet is not None and game.pet.room_index == room_index:
        lines.append(f"Pet: {game.pet.name}")
    return "\n".join(lines)


def describe_player(game: Game, name: str) -> str:
    player = game.get_player(name)
    weapons = ", ".join(item.label() for item in player.inventory) if player.inventory else "None"
    kind = "AI" if player.is_ai else "Human"
    return "\n".join(
        [
            f"Name: {player.name} ({kind})",
            f"Room: {game.world.room(player.room_index).name}",
            f"Weapon: {weapons}",
            f"Capacity: {len(player.inventory)}/{player.max_items}",
        ]
    )


def describe_target(game: Game) -> str:
    target = game.target
    return f"{target.name} is in {game.world.room(target.room_index).name} with health {target.health}"


def game_status_text(game: Game) -> str:
    state = game.state
    if state.result == RESULT_TARGET_KILLED:
        return f"Game over: {game.target.name} was killed on turn {state.current_turn - 1}."
    if state.result == RESULT_TARGET_ESCAPED:
        unit = "turn" if state.max_turns == 1 else "turns"
        return f"Game over: {game.target.name} escaped after {state.max_turns} {unit}."
    if not game.players:
        return f"Turn {state.current_turn}: waiting for players"
    player = game.current_player()
    return (
        f"Turn {state.current_turn}/{state.max_turns}: {player.name}'s turn "
        f"in {game.world.room(player.room_index).name}"
    )


def room_layout(game: Game) -> list[RoomTile]:
    tiles: list[RoomTile] = []
    for room in game.world.rooms:
        has_target = game.target.room_index == room.room_id
        has_pet = game.pet is not None and game.pet.room_index == room.room_id
        labels: list[str] = []
        if has_target:
            labels.append(TARGET_LABEL)
        if has_pet:
            labels.append(PET_LABEL)
        labels.extend(player.name for player in game.players_in_room(room.room_id))
        tiles.append(
            RoomTile(
                room_index=room.room_id,
                name=room.name,
                upper_left_row=room.upper_left_row,
                upper_left_col=room.upper_left_col,
                lower_right_row=room.lower_right_row,
                lower_right_col=room.lower_right_col,
                labels=tuple(labels),
                has_target=has_target,
                has_pet=has_pet,
            )
        )
    return tiles
