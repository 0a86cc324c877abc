from __future__ import annotations

from typing import Callable

from manorhunt.sim.actions import (
    ATTACK_ACTION,
    MOVE_ACTION,
    MOVE_PET_ACTION,
    PICK_UP_ACTION,
    ActionCommand,
    ActionOutcome,
)
from manorhunt.sim.core import Game, GameState
from manorhunt.sim.describe import describe_player, describe_room, game_status_text, room_layout

ROOM_GLYPHS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
EMPTY_GLYPH = " "
CONSOLE_HELP = "commands: move N | pick ITEM | look | attack | pet N | help | quit"


def _room_glyph(room_index: int) -> str:
    return ROOM_GLYPHS[room_index % len(ROOM_GLYPHS)]


class AsciiViewer:
    """Read-only projection of game state for terminal display."""

    def render(self, game: Game) -> str:
        world = game.world
        lines: list[str] = [game_status_text(game)]

        grid = [[EMPTY_GLYPH for _ in range(world.cols)] for _ in range(world.rows)]
        tiles = room_layout(game)
        for tile in tiles:
            glyph = _room_glyph(tile.room_index)
            for row in range(max(tile.upper_left_row, 0), min(tile.lower_right_row, world.rows - 1) + 1):
                for col in range(max(tile.upper_left_col, 0), min(tile.lower_right_col, world.cols - 1) + 1):
                    grid[row][col] = glyph

        border = "+" + "-" * world.cols + "+"
        lines.append(border)
        lines.extend("|" + "".join(row) + "|" for row in grid)
        lines.append(border)

        for tile in tiles:
            occupants = " ".join(tile.labels)
            suffix = f" [{occupants}]" if occupants else ""
            lines.append(f"{_room_glyph(tile.room_index)} {tile.room_index:>2} {tile.name}{suffix}")
        return "\n".join(lines)


class GameController:
    """Small command adapter; submits actions for the current human but does not own state."""

    def __init__(self, game: Game) -> None:
        self.game = game

    def submit(self, command: ActionCommand) -> ActionOutcome | None:
        self.game.submit_action(command)
        return self.game.play_turn()

    def move(self, room_index: int) -> ActionOutcome | None:
        return self.submit(ActionCommand.move(room_index))

    def pick_up(self, item_name: str) -> ActionOutcome | None:
        return self.submit(ActionCommand.pick_up(item_name))

    def look_around(self) -> ActionOutcome | None:
        return self.submit(ActionCommand.look_around())

    def attack(self) -> ActionOutcome | None:
        return self.submit(ActionCommand.attack())

    def move_pet(self, room_index: int) -> ActionOutcome | None:
        return self.submit(ActionCommand.move_pet(room_index))

    def advance(self) -> ActionOutcome | None:
        """Let a computer player take its turn."""
        return self.game.play_turn()


def format_outcome(game: Game, outcome: ActionOutcome) -> str:
    details = outcome.details
    if not outcome.applied:
        return f"{outcome.player_name}: {outcome.action_type} failed ({outcome.reason}): {details.get('message', '')}"
    if outcome.action_type == MOVE_ACTION:
        return f"{outcome.player_name} moved to {details['room_name']}"
    if outcome.action_type == PICK_UP_ACTION:
        return f"{outcome.player_name} picked up {details['item']['name']}"
    if outcome.action_type == ATTACK_ACTION:
        weapon = details["weapon"]["name"] if details["weapon"] is not None else "a poke in the eye"
        return (
            f"{outcome.player_name} attacked {game.target.name} with {weapon} for {details['damage']} "
            f"(health {details['health_before']} -> {details['health_after']})"
        )
    if outcome.action_type == MOVE_PET_ACTION:
        return f"{outcome.player_name} moved the pet to {game.world.room(details['pet_room_index']).name}"
    visible = ", ".join(entry["name"] for entry in details["visible_neighbors"]) or "nothing"
    return f"{outcome.player_name} looked around and saw {visible}"


def _parse_console_command(line: str) -> ActionCommand | None:
    verb, _, rest = line.strip().partition(" ")
    rest = rest.strip()
    verb = verb.lower()
    if verb == "move" and rest.lstrip("-").isdigit():
        return ActionCommand.move(int(rest))
    if verb == "pick" and rest:
        return ActionCommand.pick_up(rest)
    if verb == "look":
        return ActionCommand.look_around()
    if verb == "attack":
        return ActionCommand.attack()
    if verb == "pet" and rest.lstrip("-").isdigit():
        return ActionCommand.move_pet(int(rest))
    return None


def run_console(
    game: Game,
    *,
    input_fn: Callable[[str], str] = input,
    output: Callable[[str], None] = print,
) -> GameState:
    """Text loop: computer players act on their own, humans are prompted for a command."""
    viewer = AsciiViewer()
    controller = GameController(game)
    while not game.is_game_over():
        player = game.current_player()
        if player.is_ai:
            outcome = controller.advance()
            if outcome is not None:
                output(format_outcome(game, outcome))
            continue

        output(viewer.render(game))
        output(describe_player(game, player.name))
        output(describe_room(game, player.room_index))
        try:
            line = input_fn(f"{player.name}> ")
        except EOFError:
            break
        if line.strip().lower() in ("quit", "exit"):
            break
        if line.strip().lower() == "help":
            output(CONSOLE_HELP)
            continue
        command = _parse_console_command(line)
        if command is None:
            output(f"unrecognised command {line.strip()!r}; {CONSOLE_HELP}")
            continue
        outcome = controller.submit(command)
        if outcome is not None:
            output(format_outcome(game, outcome))

    output(game_status_text(game))
    return game.state
