from __future__ import annotations

import copy
import logging
import random
from dataclasses import dataclass
from typing import Any

from manorhunt.sim.actions import ATTACK_ACTION, ActionCommand, ActionOutcome, ActionResolver
from manorhunt.sim.entities import DEFAULT_MAX_ITEMS, PetState, PlayerState, TargetCharacterState
from manorhunt.sim.policy import ActionSource, AiActionSource, HumanActionSource
from manorhunt.sim.rng import named_stream
from manorhunt.sim.rules import RuleModule
from manorhunt.sim.wander import TargetWanderModule
from manorhunt.sim.world import WorldState

logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS = 20
DEFAULT_MAX_ALLOWED_ESCAPES = 1
DEFAULT_SEED = 7
MAX_OUTCOME_TRACE = 256

RNG_ESCAPE_STREAM_NAME = "rng_escape"
RNG_AI_STREAM_PREFIX = "rng_ai"

PHASE_AWAITING_ACTION = "awaiting_action"
PHASE_ACTION_RESOLVED = "action_resolved"
PHASE_POST_TURN_CLEANUP = "post_turn_cleanup"
PHASE_GAME_OVER = "game_over"

RESULT_TARGET_KILLED = "target_killed"
RESULT_TARGET_ESCAPED = "target_escaped"


@dataclass
class GameConfig:
    max_turns: int = DEFAULT_MAX_TURNS
    max_allowed_escapes: int = DEFAULT_MAX_ALLOWED_ESCAPES
    default_max_items: int = DEFAULT_MAX_ITEMS
    target_wanders: bool = False
    seed: int = DEFAULT_SEED

    def __post_init__(self) -> None:
        for field_name in ("max_turns", "max_allowed_escapes", "default_max_items", "seed"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"config.{field_name} must be an integer")
        if self.max_turns <= 0:
            raise ValueError("config.max_turns must be > 0")
        if self.max_allowed_escapes < 0:
            raise ValueError("config.max_allowed_escapes must be >= 0")
        if self.default_max_items < 0:
            raise ValueError("config.default_max_items must be >= 0")


@dataclass
class GameState:
    """Per-game counters; only ``Game`` mutates them."""

    max_turns: int
    max_allowed_escapes: int = DEFAULT_MAX_ALLOWED_ESCAPES
    current_turn: int = 0
    target_killed: bool = False
    escape_count: int = 0
    phase: str = PHASE_AWAITING_ACTION
    result: str | None = None

    @property
    def is_over(self) -> bool:
        return self.result is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_turns": self.max_turns,
            "max_allowed_escapes": self.max_allowed_escapes,
            "current_turn": self.current_turn,
            "target_killed": self.target_killed,
            "escape_count": self.escape_count,
            "phase": self.phase,
            "result": self.result,
        }


class Game:
    def __init__(
        self,
        world: WorldState,
        target: TargetCharacterState,
        pet: PetState | None = None,
        config: GameConfig | None = None,
    ) -> None:
        self.config = config if config is not None else GameConfig()
        world.validate_room_index(target.room_index)
        if pet is not None:
            world.validate_room_index(pet.room_index)
            if pet.owner_name is None:
                pet.owner_name = target.name
        self.world = world
        self.target = target
        self.pet = pet
        self.players: list[PlayerState] = []
        self.action_sources: dict[str, ActionSource] = {}
        self.state = GameState(
            max_turns=self.config.max_turns,
            max_allowed_escapes=self.config.max_allowed_escapes,
        )
        self.master_seed = self.config.seed
        self._rng_streams: dict[str, random.Random] = {}
        self.rng_escape = self.rng_stream(RNG_ESCAPE_STREAM_NAME)
        self.resolver = ActionResolver()
        self.rule_modules: list[RuleModule] = []
        self._outcome_trace: list[dict[str, Any]] = []
        self._started_turn: int | None = None
        if self.config.target_wanders:
            self.register_rule_module(TargetWanderModule())

    def rng_stream(self, name: str) -> random.Random:
        if name not in self._rng_streams:
            self._rng_streams[name] = named_stream(self.master_seed, name)
        return self._rng_streams[name]

    def get_rule_module(self, module_name: str) -> RuleModule | None:
        for module in self.rule_modules:
            if module.name == module_name:
                return module
        return None

    def register_rule_module(self, module: RuleModule) -> None:
        if any(existing.name == module.name for existing in self.rule_modules):
            raise ValueError(f"duplicate rule module name: {module.name}")
        self.rule_modules.append(module)
        module.on_game_start(self)

    def add_player(self, player: PlayerState, source: ActionSource | None = None) -> None:
        if self.state.current_turn > 0 or self._started_turn is not None:
            raise ValueError("players must be added before the first turn")
        if any(existing.name == player.name for existing in self.players):
            raise ValueError(f"duplicate player name: {player.name}")
        self.world.validate_room_index(player.room_index)
        if source is None:
            if player.is_ai:
                source = AiActionSource(self.rng_stream(f"{RNG_AI_STREAM_PREFIX}:{player.name}"))
            else:
                source = HumanActionSource()
        self.players.append(player)
        self.action_sources[player.name] = source
        logger.info("player %s joined in %s", player.name, self.world.room(player.room_index).name)

    def new_player(self, name: str, room_index: int, *, is_ai: bool = False, max_items: int | None = None) -> PlayerState:
        player = PlayerState(
            name=name,
            room_index=room_index,
            max_items=self.config.default_max_items if max_items is None else max_items,
            is_ai=is_ai,
        )
        self.add_player(player)
        return player

    def get_player(self, name: str) -> PlayerState:
        for player in self.players:
            if player.name == name:
                return player
        raise KeyError(name)

    def current_player(self) -> PlayerState:
        if not self.players:
            raise ValueError("game has no players")
        return self.players[self.state.current_turn % len(self.players)]

    def players_in_room(self, room_index: int) -> list[PlayerState]:
        self.world.validate_room_index(room_index)
        return [player for player in self.players if player.room_index == room_index]

    def submit_action(self, command: ActionCommand, *, player_name: str | None = None) -> None:
        name = player_name if player_name is not None else self.current_player().name
        source = self.action_sources[name]
        if not isinstance(source, HumanActionSource):
            raise ValueError(f"player {name} does not accept submitted actions")
        source.submit(command)

    def is_game_over(self) -> bool:
        return self.state.is_over

    def play_turn(self, action: ActionCommand | None = None) -> ActionOutcome | None:
        """Resolve one action for the current player and advance the turn.

        Returns ``None`` when the game is already over or the current player's
        source has no action yet. A rejected human action does not use up the
        turn; the same player acts again on the next call.
        """
        if self.is_game_over():
            logger.debug("play_turn ignored, game over (%s)", self.state.result)
            return None

        player = self.current_player()
        turn = self.state.current_turn
        if self._started_turn != turn:
            self._started_turn = turn
            for module in self.rule_modules:
                module.on_turn_start(self, turn)

        command = action if action is not None else self.action_sources[player.name].next_action(self, player)
        if command is None:
            self.state.phase = PHASE_AWAITING_ACTION
            return None

        outcome = self.resolver.resolve(self, player, command)
        self.state.phase = PHASE_ACTION_RESOLVED
        self._append_outcome_trace(outcome.to_dict())
        logger.info(
            "turn %d: %s %s -> %s", turn, player.name, command.action_type, outcome.reason,
        )

        if not outcome.applied and not player.is_ai:
            self.state.phase = PHASE_AWAITING_ACTION
            return outcome

        for module in self.rule_modules:
            module.on_action_resolved(self, player, outcome)

        self.state.phase = PHASE_POST_TURN_CLEANUP
        if outcome.applied and outcome.action_type == ATTACK_ACTION and not self.target.is_alive():
            self.state.target_killed = True
            self.state.result = RESULT_TARGET_KILLED
            logger.info("%s killed %s on turn %d", player.name, self.target.name, turn)
        elif self.state.escape_count < self.state.max_allowed_escapes:
            self._evaluate_escape(player)

        for module in self.rule_modules:
            module.on_turn_end(self, turn)

        self.state.current_turn += 1
        if self.state.current_turn >= self.state.max_turns and not self.state.target_killed:
            self.state.result = RESULT_TARGET_ESCAPED
            logger.info("turn limit %d reached, %s escaped", self.state.max_turns, self.target.name)

        self.state.phase = PHASE_GAME_OVER if self.is_game_over() else PHASE_AWAITING_ACTION
        return outcome

    def run(self, max_steps: int | None = None) -> GameState:
        """Play turns until the game ends or a human player has nothing queued."""
        steps = 0
        while not self.is_game_over():
            if max_steps is not None and steps >= max_steps:
                break
            if self.play_turn() is None:
                break
            steps += 1
        return self.state

    def _evaluate_escape(self, player: PlayerState) -> None:
        target = self.target
        target_room = target.room_index
        threatened = player.room_index == target_room or self.world.is_neighbor(target_room, player.room_index)
        if not threatened:
            return
        neighbors = self.world.neighbors(target_room)
        if not neighbors:
            logger.debug("%s feels threatened but has nowhere to go", target.name)
            return
        destination = neighbors[self.rng_escape.randrange(len(neighbors))]
        target.move_to_space(destination)
        self.state.escape_count += 1
        self._append_outcome_trace(
            {
                "turn": self.state.current_turn,
                "player_name": player.name,
                "action_type": "target_escape",
                "applied": True,
                "reason": "threatened",
                "details": {"from_room_index": target_room, "room_index": destination},
                "target_killed": False,
            }
        )
        logger.info(
            "%s escaped from %s to %s",
            target.name,
            self.world.room(target_room).name,
            self.world.room(destination).name,
        )

    def _append_outcome_trace(self, entry: dict[str, Any]) -> None:
        self._outcome_trace.append(copy.deepcopy(entry))
        if len(self._outcome_trace) > MAX_OUTCOME_TRACE:
            overflow = len(self._outcome_trace) - MAX_OUTCOME_TRACE
            del self._outcome_trace[:overflow]

    def outcome_trace(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._outcome_trace)

    def rng_state_payload(self) -> dict[str, Any]:
        return {
            "master_seed": self.master_seed,
            "rng_stream_states": {
                name: stream.getstate() for name, stream in sorted(self._rng_streams.items(), key=lambda item: item[0])
            },
        }

    def game_payload(self) -> dict[str, Any]:
        return {
            "schema_version": 1,
            "master_seed": self.master_seed,
            "state": self.state.to_dict(),
            "world": self.world.to_dict(),
            "target": self.target.to_dict(),
            "pet": self.pet.to_dict() if self.pet is not None else None,
            "players": [player.to_dict() for player in self.players],
            "rule_modules": [module.name for module in self.rule_modules],
            "outcome_trace": self.outcome_trace(),
        }
