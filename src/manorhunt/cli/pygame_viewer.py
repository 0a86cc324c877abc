from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass
from typing import Any

from manorhunt.cli.viewer import GameController, format_outcome
from manorhunt.content.world_text import DEFAULT_WORLD_PATH, build_game, load_world_text
from manorhunt.sim.actions import MOVE_PET_ACTION, PICK_UP_ACTION, ActionOutcome
from manorhunt.sim.core import DEFAULT_SEED, Game, GameConfig
from manorhunt.sim.describe import RoomTile, describe_room, game_status_text, room_layout

pygame: Any | None = None

CELL_SIZE = 32
HUD_HEIGHT = 132
MARGIN = 12
WINDOW_MIN_WIDTH = 640
FRAME_RATE = 30

ROOM_COLOR = (58, 58, 64)
ROOM_BORDER_COLOR = (35, 35, 40)
CURRENT_ROOM_COLOR = (84, 104, 74)
NEIGHBOR_ROOM_COLOR = (70, 74, 96)
PET_ROOM_COLOR = (40, 40, 44)
TARGET_COLOR = (220, 70, 70)
TEXT_COLOR = (240, 240, 240)
BACKGROUND_COLOR = (17, 18, 25)


def _window_size(game: Game) -> tuple[int, int]:
    width = max(WINDOW_MIN_WIDTH, game.world.cols * CELL_SIZE + 2 * MARGIN)
    height = game.world.rows * CELL_SIZE + 2 * MARGIN + HUD_HEIGHT
    return width, height


def _tile_pixel_rect(tile: RoomTile) -> tuple[int, int, int, int]:
    x = MARGIN + tile.upper_left_col * CELL_SIZE
    y = HUD_HEIGHT + MARGIN + tile.upper_left_row * CELL_SIZE
    width = (tile.lower_right_col - tile.upper_left_col + 1) * CELL_SIZE
    height = (tile.lower_right_row - tile.upper_left_row + 1) * CELL_SIZE
    return x, y, width, height


def _room_at_pixel(game: Game, pixel_pos: tuple[int, int]) -> int | None:
    col = (pixel_pos[0] - MARGIN) // CELL_SIZE
    row = (pixel_pos[1] - HUD_HEIGHT - MARGIN) // CELL_SIZE
    if pixel_pos[0] < MARGIN or pixel_pos[1] < HUD_HEIGHT + MARGIN:
        return None
    for room in game.world.rooms:
        if room.contains_cell(row, col):
            return room.room_id
    return None


def _ensure_pygame_imported() -> Any:
    global pygame
    if pygame is None:
        import pygame as pygame_module

        pygame = pygame_module
    return pygame


def _draw_world(screen: Any, game: Game, font: Any) -> None:
    player = game.current_player() if game.players else None
    neighbors = game.world.neighbors(player.room_index) if player is not None else ()
    for tile in room_layout(game):
        rect = pygame.Rect(*_tile_pixel_rect(tile))
        color = ROOM_COLOR
        if tile.has_pet:
            color = PET_ROOM_COLOR
        elif player is not None and tile.room_index == player.room_index:
            color = CURRENT_ROOM_COLOR
        elif tile.room_index in neighbors:
            color = NEIGHBOR_ROOM_COLOR
        pygame.draw.rect(screen, color, rect)
        pygame.draw.rect(screen, ROOM_BORDER_COLOR, rect, 2)
        screen.blit(font.render(f"{tile.room_index} {tile.name}", True, TEXT_COLOR), (rect.x + 4, rect.y + 4))
        if tile.labels:
            label_color = TARGET_COLOR if tile.has_target else TEXT_COLOR
            screen.blit(font.render(" ".join(tile.labels), True, label_color), (rect.x + 4, rect.y + 20))


def _draw_hud(screen: Any, game: Game, font: Any, status_message: str | None) -> None:
    lines = [
        game_status_text(game),
        "LMB move | P pick up | L look | A attack | M pet | ENTER confirm | SPACE advance AI | ESC quit",
    ]
    if game.players and not game.is_game_over():
        lines.append(describe_room(game, game.current_player().room_index).splitlines()[1])
    if status_message:
        lines.append(f"status: {status_message}")
    y = MARGIN
    for line in lines:
        screen.blit(font.render(line, True, TEXT_COLOR), (MARGIN, y))
        y += 24


@dataclass
class PendingChoice:
    """Candidates the human is cycling through before confirming with ENTER."""

    action_type: str
    options: tuple[Any, ...] = ()
    index: int = 0

    def current(self) -> Any:
        return self.options[self.index]

    def advance(self) -> None:
        self.index = (self.index + 1) % len(self.options)


@dataclass
class ViewerInputState:
    pending: PendingChoice | None = None


def _choice_prompt(game: Game, choice: PendingChoice) -> str:
    position = f"[{choice.index + 1}/{len(choice.options)}]"
    if choice.action_type == PICK_UP_ACTION:
        item = game.world.find_item_in_room(game.current_player().room_index, choice.current())
        return f"pick up {item.label()} {position} | P next | ENTER take | BACKSPACE cancel"
    room_name = game.world.room(choice.current()).name
    return f"move pet to {room_name} {position} | M next or click a room | ENTER confirm | BACKSPACE cancel"


def _start_or_cycle(game: Game, state: ViewerInputState, action_type: str, options: tuple[Any, ...]) -> str:
    if state.pending is not None and state.pending.action_type == action_type:
        state.pending.advance()
    else:
        state.pending = PendingChoice(action_type=action_type, options=options)
    return _choice_prompt(game, state.pending)


def _confirm_choice(controller: GameController, choice: PendingChoice) -> ActionOutcome | None:
    if choice.action_type == PICK_UP_ACTION:
        return controller.pick_up(choice.current())
    return controller.move_pet(choice.current())


def _handle_key(controller: GameController, key_name: str, state: ViewerInputState) -> str | None:
    """Map a key to an action for the current player and return a status line."""
    game = controller.game
    if game.is_game_over() or not game.players:
        return None
    player = game.current_player()
    if key_name == "space":
        if not player.is_ai:
            return f"{player.name} is waiting for input"
        outcome = controller.advance()
    elif player.is_ai:
        return f"{player.name} is a computer player; press SPACE"
    elif key_name == "p":
        items = game.world.items_in_room(player.room_index)
        if not items:
            state.pending = None
            return "nothing to pick up here"
        return _start_or_cycle(game, state, PICK_UP_ACTION, tuple(item.name for item in items))
    elif key_name == "m":
        if game.pet is None:
            return "there is no pet"
        pet_neighbors = game.world.neighbors(game.pet.room_index)
        if not pet_neighbors:
            state.pending = None
            return "the pet has nowhere to go"
        return _start_or_cycle(game, state, MOVE_PET_ACTION, pet_neighbors)
    elif key_name == "return":
        if state.pending is None:
            return None
        choice, state.pending = state.pending, None
        outcome = _confirm_choice(controller, choice)
    elif key_name == "backspace":
        if state.pending is None:
            return None
        state.pending = None
        return "choice cancelled"
    elif key_name == "l":
        state.pending = None
        outcome = controller.look_around()
    elif key_name == "a":
        state.pending = None
        outcome = controller.attack()
    else:
        return None
    return format_outcome(game, outcome) if outcome is not None else None


def _handle_click(controller: GameController, pixel_pos: tuple[int, int], state: ViewerInputState) -> str | None:
    """Click moves the current human, or places the pet while a pet move is pending."""
    game = controller.game
    if game.is_game_over() or not game.players or game.current_player().is_ai:
        return None
    room_index = _room_at_pixel(game, pixel_pos)
    if room_index is None:
        return None
    if state.pending is not None and state.pending.action_type == MOVE_PET_ACTION:
        state.pending = None
        outcome = controller.move_pet(room_index)
    else:
        state.pending = None
        outcome = controller.move(room_index)
    return format_outcome(game, outcome) if outcome is not None else None


def run_pygame_viewer(
    world_path: str = DEFAULT_WORLD_PATH,
    *,
    headless: bool = False,
    seed: int = DEFAULT_SEED,
    game: Game | None = None,
) -> int:
    if headless:
        os.environ["SDL_VIDEODRIVER"] = "dummy"

    if game is None:
        game = build_game(load_world_text(world_path), GameConfig(seed=seed))
        game.new_player("Player", 0)
        game.new_player("Computer", 0, is_ai=True)

    try:
        pygame_module = _ensure_pygame_imported()
    except ImportError as exc:
        print(f"[manorhunt.viewer] pygame unavailable: {exc}", file=sys.stderr)
        return 1

    try:
        pygame_module.init()
        screen = pygame_module.display.set_mode(_window_size(game))
    except Exception as exc:
        print(f"[manorhunt.viewer] display init failed: {exc}", file=sys.stderr)
        return 1
    pygame_module.display.set_caption(f"Manor Hunt: {game.world.name}")

    if headless:
        pygame_module.quit()
        return 0

    clock = pygame_module.time.Clock()
    font = pygame_module.font.SysFont("consolas", 18)
    room_font = pygame_module.font.SysFont("consolas", 13)
    controller = GameController(game)
    input_state = ViewerInputState()
    status_message: str | None = None

    running = True
    while running:
        clock.tick(FRAME_RATE)
        for event in pygame_module.event.get():
            if event.type == pygame_module.QUIT:
                running = False
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_ESCAPE:
                running = False
            elif event.type == pygame_module.KEYDOWN:
                status_message = _handle_key(controller, pygame_module.key.name(event.key), input_state) or status_message
            elif event.type == pygame_module.MOUSEBUTTONDOWN and event.button == 1:
                status_message = _handle_click(controller, event.pos, input_state) or status_message

        screen.fill(BACKGROUND_COLOR)
        _draw_world(screen, game, room_font)
        _draw_hud(screen, game, font, status_message)
        pygame_module.display.flip()

    pygame_module.quit()
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m manorhunt.cli.pygame_viewer",
        description="Run the Manor Hunt pygame viewer.",
    )
    parser.add_argument("--world", default=DEFAULT_WORLD_PATH, help="Path to the world description text file.")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Master seed for escape and AI choices.")
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Force SDL dummy video driver for CI/testing and exit without opening a real window.",
    )
    return parser


def _env_flag_enabled(var_name: str) -> bool:
    return os.environ.get(var_name, "").strip().lower() in {"1", "true", "yes", "on"}


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    headless = args.headless or _env_flag_enabled("MANORHUNT_HEADLESS")
    raise SystemExit(run_pygame_viewer(args.world, headless=headless, seed=args.seed))


if __name__ == "__main__":
    main()
