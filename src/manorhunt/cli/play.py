from __future__ import annotations

import argparse
import logging
from typing import Sequence

from manorhunt.cli.pygame_viewer import run_pygame_viewer
from manorhunt.cli.viewer import run_console
from manorhunt.content.world_text import DEFAULT_WORLD_PATH, build_game, load_world_text
from manorhunt.sim.core import DEFAULT_MAX_TURNS, DEFAULT_SEED, Game, GameConfig

DEFAULT_PLAYERS = ("Player", "Computer:ai")
VIEWER_CHOICES = ("ascii", "pygame")
LOG_LEVEL_CHOICES = ("DEBUG", "INFO", "WARNING", "ERROR")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="manorhunt", description="Manor Hunt turn-based launcher.")
    parser.add_argument("--world", default=DEFAULT_WORLD_PATH, help="Path to the world description text file.")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Master seed for escape and AI choices.")
    parser.add_argument("--max-turns", type=int, default=DEFAULT_MAX_TURNS, help="Turns before the target escapes.")
    parser.add_argument(
        "--player",
        action="append",
        metavar="NAME[:ai]",
        help="Add a player starting in room 0; suffix ':ai' for a computer player. Repeatable.",
    )
    parser.add_argument("--viewer", choices=VIEWER_CHOICES, default="ascii", help="Presentation layer.")
    parser.add_argument(
        "--target-wanders",
        action="store_true",
        help="Move the target one room per turn in index order.",
    )
    parser.add_argument("--headless", action="store_true", help="Run the pygame startup path without a window.")
    parser.add_argument("--log-level", choices=LOG_LEVEL_CHOICES, default="WARNING", type=str.upper, help="Logging level.")
    return parser


def _parse_player_spec(spec: str) -> tuple[str, bool]:
    name, separator, kind = spec.partition(":")
    name = name.strip()
    if not name:
        raise ValueError(f"player name missing in {spec!r}")
    if separator and kind.strip().lower() != "ai":
        raise ValueError(f"unknown player kind {kind!r} in {spec!r}; use NAME or NAME:ai")
    return name, bool(separator)


def _build_game(args: argparse.Namespace) -> Game:
    config = GameConfig(max_turns=args.max_turns, seed=args.seed, target_wanders=args.target_wanders)
    game = build_game(load_world_text(args.world), config)
    for spec in args.player or DEFAULT_PLAYERS:
        name, is_ai = _parse_player_spec(spec)
        game.new_player(name, 0, is_ai=is_ai)
    return game


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    try:
        game = _build_game(args)
    except (OSError, ValueError) as exc:
        parser.error(str(exc))

    if args.viewer == "pygame":
        return run_pygame_viewer(args.world, headless=args.headless, seed=args.seed, game=game)
    run_console(game)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
