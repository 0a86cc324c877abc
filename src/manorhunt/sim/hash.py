from __future__ import annotations

import hashlib
import json

from manorhunt.sim.core import Game
from manorhunt.sim.world import WorldState


def world_hash(world: WorldState) -> str:
    encoded = json.dumps(
        world.to_dict(),
        sort_keys=True,
        separators=(",", ":"),
    ).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def game_hash(game: Game) -> str:
    payload = {
        **game.game_payload(),
        "rng_state": game.rng_state_payload(),
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()
