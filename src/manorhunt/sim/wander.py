from __future__ import annotations

from typing import TYPE_CHECKING

from manorhunt.sim.rules import RuleModule

if TYPE_CHECKING:
    from manorhunt.sim.core import Game


class TargetWanderModule(RuleModule):
    """Walks the living target through the rooms in index order, one per turn."""

    name = "target_wander"

    def on_turn_end(self, game: Game, turn: int) -> None:
        target = game.target
        if not target.is_alive():
            return
        target.move_to_next_space()
        if target.room_index >= game.world.room_count:
            target.move_to_space(0)
