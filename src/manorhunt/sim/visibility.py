from __future__ import annotations

from typing import Iterable

from manorhunt.sim.entities import PetState, PlayerState
from manorhunt.sim.world import WorldState


def is_room_blocked(pet: PetState | None, room_index: int) -> bool:
    """The pet's room cannot be seen into from any adjacent room."""
    return pet is not None and pet.room_index == room_index


def visible_neighbors(world: WorldState, pet: PetState | None, room_index: int) -> list[int]:
    return [neighbor for neighbor in world.neighbors(room_index) if not is_room_blocked(pet, neighbor)]


def blocked_neighbors(world: WorldState, pet: PetState | None, room_index: int) -> list[int]:
    return [neighbor for neighbor in world.neighbors(room_index) if is_room_blocked(pet, neighbor)]


def players_in_room(players: Iterable[PlayerState], room_index: int) -> list[PlayerState]:
    return [player for player in players if player.room_index == room_index]


def other_players_in_room(players: Iterable[PlayerState], player: PlayerState) -> list[PlayerState]:
    return [other for other in players if other is not player and other.room_index == player.room_index]


def is_attack_observable(attacker: PlayerState, players: Iterable[PlayerState]) -> bool:
    """Same-room presence is the only witness rule; the pet never hides an attack."""
    return bool(other_players_in_room(players, attacker))
