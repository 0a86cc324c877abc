from manorhunt.content.world_text import build_game, load_world_text
from manorhunt.sim.core import Game, GameConfig
from manorhunt.sim.hash import game_hash, world_hash


def _build_game(seed: int) -> Game:
    game = build_game(load_world_text("content/worlds/mansion.txt"), GameConfig(seed=seed, max_turns=30))
    game.new_player("Ada", 0, is_ai=True)
    game.new_player("Bert", 8, is_ai=True)
    game.new_player("Cleo", 5, is_ai=True)
    return game


def test_same_seed_produces_identical_game_hash() -> None:
    game_a = _build_game(seed=42)
    game_b = _build_game(seed=42)

    game_a.run()
    game_b.run()

    assert game_a.is_game_over()
    assert game_a.state.to_dict() == game_b.state.to_dict()
    assert game_a.outcome_trace() == game_b.outcome_trace()
    assert game_hash(game_a) == game_hash(game_b)


def test_computer_game_respects_escape_budget_and_turn_limit() -> None:
    game = _build_game(seed=8)

    state = game.run()

    assert state.result in ("target_killed", "target_escaped")
    assert state.escape_count <= state.max_allowed_escapes
    assert state.current_turn <= state.max_turns
    for player in game.players:
        assert len(player.inventory) <= player.max_items


def test_world_hash_is_stable_across_loads() -> None:
    world_a = load_world_text("content/worlds/mansion.txt").world
    world_b = load_world_text("content/worlds/mansion.txt").world

    assert world_hash(world_a) == world_hash(world_b)
