from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from manorhunt.sim.entities import PlayerState
from manorhunt.sim.errors import ActionError, AttackNotPermitted, InvalidChoice, InvalidMove
from manorhunt.sim.visibility import (
    blocked_neighbors,
    is_attack_observable,
    other_players_in_room,
    players_in_room,
    visible_neighbors,
)

if TYPE_CHECKING:
    from manorhunt.sim.core import Game

logger = logging.getLogger(__name__)

MOVE_ACTION = "move"
PICK_UP_ACTION = "pick_up"
LOOK_AROUND_ACTION = "look_around"
ATTACK_ACTION = "attack"
MOVE_PET_ACTION = "move_pet"
ACTION_TYPES = (MOVE_ACTION, PICK_UP_ACTION, LOOK_AROUND_ACTION, ATTACK_ACTION, MOVE_PET_ACTION)

RESOLVED_REASON = "resolved"
TARGET_NOT_PRESENT_REASON = "target_not_present"
ATTACK_OBSERVED_REASON = "attack_observed"
POKE_DAMAGE = 1


def _is_json_primitive(value: Any) -> bool:
    return value is None or isinstance(value, (bool, int, float, str))


def _validate_json_value(value: Any, *, field_name: str) -> None:
    if _is_json_primitive(value):
        return
    if isinstance(value, list):
        for item in value:
            _validate_json_value(item, field_name=field_name)
        return
    if isinstance(value, dict):
        for key, nested_value in value.items():
            if not isinstance(key, str):
                raise ValueError(f"{field_name} keys must be strings")
            _validate_json_value(nested_value, field_name=field_name)
        return
    raise ValueError(f"{field_name} must contain only canonical JSON primitives")


@dataclass(frozen=True)
class ActionCommand:
    action_type: str
    params: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.action_type not in ACTION_TYPES:
            raise ValueError(f"unknown action_type: {self.action_type!r}")
        if not isinstance(self.params, dict):
            raise ValueError("params must be a dict")
        _validate_json_value(self.params, field_name="params")

    @classmethod
    def move(cls, room_index: int) -> "ActionCommand":
        return cls(MOVE_ACTION, {"room_index": room_index})

    @classmethod
    def pick_up(cls, item_name: str) -> "ActionCommand":
        return cls(PICK_UP_ACTION, {"item_name": item_name})

    @classmethod
    def look_around(cls) -> "ActionCommand":
        return cls(LOOK_AROUND_ACTION)

    @classmethod
    def attack(cls) -> "ActionCommand":
        return cls(ATTACK_ACTION)

    @classmethod
    def move_pet(cls, room_index: int) -> "ActionCommand":
        return cls(MOVE_PET_ACTION, {"room_index": room_index})

    def to_dict(self) -> dict[str, Any]:
        return {"action_type": self.action_type, "params": copy.deepcopy(self.params)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActionCommand":
        return cls(action_type=str(data["action_type"]), params=dict(data.get("params", {})))


@dataclass
class ActionOutcome:
    turn: int
    player_name: str
    action_type: str
    applied: bool
    reason: str
    details: dict[str, Any] = field(default_factory=dict)
    target_killed: bool = False

    def __post_init__(self) -> None:
        _validate_json_value(self.details, field_name="outcome.details")

    def to_dict(self) -> dict[str, Any]:
        return {
            "turn": self.turn,
            "player_name": self.player_name,
            "action_type": self.action_type,
            "applied": self.applied,
            "reason": self.reason,
            "details": copy.deepcopy(self.details),
            "target_killed": self.target_killed,
        }


class ActionResolver:
    """Validates and applies one player action against the game state.

    Handlers raise ``ActionError`` before mutating anything, so a failed action
    always leaves rooms, players, target and pet untouched.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[Game, PlayerState, ActionCommand, dict[str, Any]], None]] = {
            MOVE_ACTION: self._resolve_move,
            PICK_UP_ACTION: self._resolve_pick_up,
            LOOK_AROUND_ACTION: self._resolve_look_around,
            ATTACK_ACTION: self._resolve_attack,
            MOVE_PET_ACTION: self._resolve_move_pet,
        }

    def resolve(self, game: Game, player: PlayerState, command: ActionCommand) -> ActionOutcome:
        details: dict[str, Any] = {"room_index": player.room_index}
        applied = True
        reason = RESOLVED_REASON
        try:
            self._handlers[command.action_type](game, player, command, details)
        except ActionError as exc:
            applied = False
            reason = exc.reason
            details = {"room_index": player.room_index, "message": str(exc)}
            logger.debug("%s %s rejected: %s", player.name, command.action_type, exc)

        return ActionOutcome(
            turn=game.state.current_turn,
            player_name=player.name,
            action_type=command.action_type,
            applied=applied,
            reason=reason,
            details=details,
            target_killed=applied and command.action_type == ATTACK_ACTION and not game.target.is_alive(),
        )

    @staticmethod
    def _room_index_param(command: ActionCommand) -> Any:
        return command.params.get("room_index")

    def _resolve_move(self, game: Game, player: PlayerState, command: ActionCommand, details: dict[str, Any]) -> None:
        destination = game.world.validate_room_index(self._room_index_param(command))
        if destination not in game.world.neighbors(player.room_index):
            raise InvalidMove(
                f"{game.world.room(destination).name} is not next to {game.world.room(player.room_index).name}"
            )
        details["from_room_index"] = player.room_index
        player.move_to(destination)
        details["room_index"] = destination
        details["room_name"] = game.world.room(destination).name

    def _resolve_pick_up(self, game: Game, player: PlayerState, command: ActionCommand, details: dict[str, Any]) -> None:
        item_name = command.params.get("item_name")
        if not isinstance(item_name, str) or not item_name:
            raise InvalidChoice("pick_up requires an item_name")
        item = game.world.find_item_in_room(player.room_index, item_name)
        # Inventory is checked before the room container changes.
        player.pick_up_item(item)
        game.world.remove_item_from_room(player.room_index, item)
        details["item"] = item.to_dict()
        details["inventory_size"] = len(player.inventory)

    def _resolve_look_around(
        self, game: Game, player: PlayerState, command: ActionCommand, details: dict[str, Any]
    ) -> None:
        world = game.world
        visible = visible_neighbors(world, game.pet, player.room_index)
        details["visible_neighbors"] = [
            {
                "room_index": index,
                "name": world.room(index).name,
                "players": [other.name for other in players_in_room(game.players, index)],
                "items": [item.name for item in world.items_in_room(index)],
                "target_present": game.target.room_index == index,
            }
            for index in visible
        ]
        details["blocked_neighbors"] = [
            {"room_index": index, "name": world.room(index).name}
            for index in blocked_neighbors(world, game.pet, player.room_index)
        ]
        details["players_here"] = [other.name for other in other_players_in_room(game.players, player)]
        details["attack_would_be_seen"] = bool(details["players_here"])
        details["target_present"] = game.target.room_index == player.room_index

    def _resolve_attack(self, game: Game, player: PlayerState, command: ActionCommand, details: dict[str, Any]) -> None:
        target = game.target
        if target.room_index != player.room_index:
            raise AttackNotPermitted(f"{target.name} is not in this room", reason=TARGET_NOT_PRESENT_REASON)
        if is_attack_observable(player, game.players):
            witnesses = ", ".join(other.name for other in other_players_in_room(game.players, player))
            raise AttackNotPermitted(f"attack seen by {witnesses}", reason=ATTACK_OBSERVED_REASON)

        weapon = player.best_item()
        damage = POKE_DAMAGE
        if weapon is not None:
            damage = weapon.damage
            player.remove_item(weapon)
        health_before = target.health
        target.take_damage(damage)
        details["weapon"] = weapon.to_dict() if weapon is not None else None
        details["damage"] = damage
        details["health_before"] = health_before
        details["health_after"] = target.health
        logger.info("%s hit %s for %d (health %d -> %d)", player.name, target.name, damage, health_before, target.health)

    def _resolve_move_pet(
        self, game: Game, player: PlayerState, command: ActionCommand, details: dict[str, Any]
    ) -> None:
        pet = game.pet
        if pet is None:
            raise InvalidChoice("there is no pet in this world")
        destination = self._room_index_param(command)
        candidates = game.world.neighbors(pet.room_index)
        if isinstance(destination, bool) or not isinstance(destination, int) or destination not in candidates:
            raise InvalidChoice(f"pet cannot move from room {pet.room_index} to {destination!r}")
        details["pet_from_room_index"] = pet.room_index
        pet.move_to(destination)
        details["pet_room_index"] = destination
