from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from manorhunt.sim.actions import ActionOutcome
    from manorhunt.sim.core import Game
    from manorhunt.sim.entities import PlayerState


class RuleModule:
    """Turn-engine rule-module substrate.

    Rule modules are registered on a ``Game`` instance and are executed in
    stable registration order for every lifecycle hook.
    """

    name: str

    def on_game_start(self, game: Game) -> None:
        """Called once, immediately when the module is registered."""

    def on_turn_start(self, game: Game, turn: int) -> None:
        """Called once per turn, before the acting player's action is resolved."""

    def on_action_resolved(self, game: Game, player: PlayerState, outcome: ActionOutcome) -> None:
        """Called after an action that uses up the turn.

        That includes a rejected computer-player action, so check ``outcome.applied``.
        """

    def on_turn_end(self, game: Game, turn: int) -> None:
        """Called after kill and escape checks, before the turn counter advances."""
