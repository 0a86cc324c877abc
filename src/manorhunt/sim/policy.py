from __future__ import annotations

import random
from collections import deque
from typing import TYPE_CHECKING

from manorhunt.sim.actions import ActionCommand
from manorhunt.sim.entities import PlayerState

if TYPE_CHECKING:
    from manorhunt.sim.core import Game


class ActionSource:
    """Supplies one action per turn for a player; the turn engine only sees this interface."""

    def next_action(self, game: Game, player: PlayerState) -> ActionCommand | None:
        raise NotImplementedError


class HumanActionSource(ActionSource):
    """Queue of externally submitted actions; ``None`` means the engine keeps waiting."""

    def __init__(self) -> None:
        self._queue: deque[ActionCommand] = deque()

    def submit(self, command: ActionCommand) -> None:
        self._queue.append(command)

    def pending(self) -> int:
        return len(self._queue)

    def next_action(self, game: Game, player: PlayerState) -> ActionCommand | None:
        if not self._queue:
            return None
        return self._queue.popleft()


class AiActionSource(ActionSource):
    """Computer player.

    Attacks whenever it shares the target's room, arms itself when unarmed and
    the room holds a weapon, otherwise wanders to a random neighbouring room.
    """

    def __init__(self, rng: random.Random) -> None:
        self.rng = rng

    def next_action(self, game: Game, player: PlayerState) -> ActionCommand | None:
        if game.target.room_index == player.room_index:
            return ActionCommand.attack()

        if not player.inventory and player.can_carry_more_items():
            items = game.world.items_in_room(player.room_index)
            if items:
                best = max(items, key=lambda item: item.damage)
                return ActionCommand.pick_up(best.name)

        neighbors = game.world.neighbors(player.room_index)
        if not neighbors:
            return ActionCommand.look_around()
        return ActionCommand.move(neighbors[self.rng.randrange(len(neighbors))])
