import pytest

from manorhunt.sim.actions import ActionCommand, ActionOutcome
from manorhunt.sim.core import MAX_OUTCOME_TRACE, Game, GameConfig
from manorhunt.sim.entities import DEFAULT_MAX_ITEMS, PlayerState, TargetCharacterState
from manorhunt.sim.rules import RuleModule
from manorhunt.sim.world import ItemRecord, RoomRecord, WorldState


class RecordingModule(RuleModule):
    def __init__(self, name: str, calls: list[str]) -> None:
        self.name = name
        self.calls = calls

    def on_game_start(self, game: Game) -> None:
        self.calls.append(f"{self.name}:game_start")

    def on_turn_start(self, game: Game, turn: int) -> None:
        self.calls.append(f"{self.name}:turn_start:{turn}")

    def on_action_resolved(self, game: Game, player: PlayerState, outcome: ActionOutcome) -> None:
        self.calls.append(f"{self.name}:action:{outcome.action_type}")

    def on_turn_end(self, game: Game, turn: int) -> None:
        self.calls.append(f"{self.name}:turn_end:{turn}")


def _build_game(
    *,
    max_turns: int = 20,
    max_allowed_escapes: int = 1,
    target_room: int = 0,
    health: int = 20,
    target_wanders: bool = False,
) -> Game:
    rooms = [
        RoomRecord(room_id=0, name="Hall", upper_left_row=0, upper_left_col=0, lower_right_row=1, lower_right_col=1),
        RoomRecord(room_id=1, name="Library", upper_left_row=0, upper_left_col=2, lower_right_row=1, lower_right_col=3),
        RoomRecord(room_id=2, name="Study", upper_left_row=0, upper_left_col=4, lower_right_row=1, lower_right_col=5),
        RoomRecord(room_id=3, name="Cellar", upper_left_row=5, upper_left_col=0, lower_right_row=5, lower_right_col=0),
    ]
    knife = ItemRecord(item_id="item-0", name="Knife", damage=8)
    world = WorldState(rows=6, cols=6, name="Cottage", rooms=rooms, items={knife.item_id: knife}, room_items={0: [knife.item_id]})
    config = GameConfig(
        max_turns=max_turns,
        max_allowed_escapes=max_allowed_escapes,
        target_wanders=target_wanders,
        seed=11,
    )
    return Game(world=world, target=TargetCharacterState(name="Lord", health=health, room_index=target_room), config=config)


def _escape_entries(game: Game) -> list[dict[str, object]]:
    return [entry for entry in game.outcome_trace() if entry["action_type"] == "target_escape"]


def test_game_ends_as_escape_after_max_turns_and_then_ignores_calls() -> None:
    game = _build_game(max_turns=3)
    game.new_player("Alice", 3)

    for _ in range(3):
        assert game.play_turn(ActionCommand.look_around()) is not None

    assert game.state.current_turn == 3
    assert game.state.result == "target_escaped"
    assert game.is_game_over()
    assert game.state.phase == "game_over"

    assert game.play_turn(ActionCommand.look_around()) is None
    assert game.state.current_turn == 3


def test_killing_blow_ends_game() -> None:
    game = _build_game(health=8)
    alice = game.new_player("Alice", 0)
    assert game.play_turn(ActionCommand.pick_up("Knife")) is not None
    # The pick-up threatened the target, which fled to the only neighbouring room.
    assert game.target.room_index == 1
    assert game.play_turn(ActionCommand.move(1)) is not None

    outcome = game.play_turn(ActionCommand.attack())

    assert outcome is not None and outcome.target_killed
    assert game.state.target_killed
    assert game.state.result == "target_killed"
    assert game.state.current_turn == 3
    assert alice.inventory == []
    assert game.play_turn(ActionCommand.look_around()) is None


def test_escape_budget_is_never_exceeded() -> None:
    game = _build_game(max_allowed_escapes=1)
    game.new_player("Alice", 0)

    for _ in range(6):
        game.play_turn(ActionCommand.look_around())

    assert game.state.escape_count == 1
    assert game.target.room_index == 1
    assert len(_escape_entries(game)) == 1


def test_escape_count_matches_relocations_with_larger_budget() -> None:
    game = _build_game(max_allowed_escapes=3)
    game.new_player("Alice", 1)

    for _ in range(10):
        game.play_turn(ActionCommand.look_around())

    assert game.state.escape_count <= 3
    assert game.state.escape_count == len(_escape_entries(game))


def test_target_without_neighbors_does_not_use_escape_budget() -> None:
    game = _build_game(target_room=3)
    game.new_player("Alice", 3)

    game.play_turn(ActionCommand.look_around())

    assert game.target.room_index == 3
    assert game.state.escape_count == 0


def test_distant_player_does_not_threaten_target() -> None:
    game = _build_game(target_room=2)
    game.new_player("Alice", 0)

    game.play_turn(ActionCommand.look_around())

    assert game.target.room_index == 2
    assert game.state.escape_count == 0


def test_failed_human_action_is_retried_by_same_player() -> None:
    game = _build_game()
    alice = game.new_player("Alice", 3)
    game.new_player("Bob", 3)

    outcome = game.play_turn(ActionCommand.move(0))

    assert outcome is not None and not outcome.applied
    assert game.state.current_turn == 0
    assert game.current_player() is alice
    assert game.state.phase == "awaiting_action"


def test_failed_ai_action_consumes_the_turn() -> None:
    game = _build_game()
    game.new_player("Bot", 3, is_ai=True)

    outcome = game.play_turn(ActionCommand.move(0))

    assert outcome is not None and not outcome.applied
    assert game.state.current_turn == 1


def test_players_take_turns_in_registration_order() -> None:
    game = _build_game()
    alice = game.new_player("Alice", 3)
    bob = game.new_player("Bob", 3)

    order = []
    for _ in range(4):
        order.append(game.current_player().name)
        game.play_turn(ActionCommand.look_around())

    assert order == ["Alice", "Bob", "Alice", "Bob"]
    assert game.get_player("Alice") is alice
    assert game.get_player("Bob") is bob


def test_human_without_queued_action_keeps_game_waiting() -> None:
    game = _build_game()
    game.new_player("Alice", 3)

    assert game.play_turn() is None
    assert game.state.current_turn == 0

    game.submit_action(ActionCommand.look_around())
    assert game.play_turn() is not None
    assert game.state.current_turn == 1


def test_submit_action_rejects_computer_players() -> None:
    game = _build_game()
    game.new_player("Bot", 3, is_ai=True)

    with pytest.raises(ValueError, match="does not accept"):
        game.submit_action(ActionCommand.look_around())


def test_players_cannot_join_twice_or_after_first_turn() -> None:
    game = _build_game()
    game.new_player("Alice", 3)

    with pytest.raises(ValueError, match="duplicate player"):
        game.new_player("Alice", 0)

    game.play_turn(ActionCommand.look_around())
    with pytest.raises(ValueError, match="before the first turn"):
        game.new_player("Bob", 0)


def test_rule_module_hooks_run_in_registration_order() -> None:
    game = _build_game()
    game.new_player("Alice", 3)
    calls: list[str] = []

    game.register_rule_module(RecordingModule(name="A", calls=calls))
    game.register_rule_module(RecordingModule(name="B", calls=calls))
    game.play_turn(ActionCommand.move(0))
    game.play_turn(ActionCommand.look_around())

    assert calls == [
        "A:game_start",
        "B:game_start",
        "A:turn_start:0",
        "B:turn_start:0",
        "A:action:look_around",
        "B:action:look_around",
        "A:turn_end:0",
        "B:turn_end:0",
    ]


def test_duplicate_rule_module_name_rejected() -> None:
    game = _build_game()
    game.register_rule_module(RecordingModule(name="A", calls=[]))

    with pytest.raises(ValueError, match="duplicate rule module"):
        game.register_rule_module(RecordingModule(name="A", calls=[]))


def test_wandering_target_wraps_to_first_room() -> None:
    game = _build_game(target_room=3, target_wanders=True)
    game.new_player("Alice", 2)

    game.play_turn(ActionCommand.look_around())

    assert game.get_rule_module("target_wander") is not None
    assert game.target.room_index == 0


def test_outcome_trace_is_bounded() -> None:
    game = _build_game(max_turns=MAX_OUTCOME_TRACE + 20, target_room=2)
    game.new_player("Bot", 3, is_ai=True)

    state = game.run()

    assert state.result == "target_escaped"
    assert state.current_turn == MAX_OUTCOME_TRACE + 20
    trace = game.outcome_trace()
    assert len(trace) == MAX_OUTCOME_TRACE
    assert trace[-1]["turn"] == MAX_OUTCOME_TRACE + 19


def test_config_rejects_non_positive_turn_limit() -> None:
    with pytest.raises(ValueError, match="max_turns"):
        GameConfig(max_turns=0)


def test_surviving_hit_still_lets_target_escape() -> None:
    game = _build_game(health=5)
    game.new_player("Alice", 0)

    outcome = game.play_turn(ActionCommand.attack())

    assert outcome is not None and outcome.applied
    assert game.target.health == 4
    assert game.target.room_index == 1
    assert game.state.escape_count == 1
    assert len(_escape_entries(game)) == 1


def test_killing_blow_skips_escape_even_with_budget_left() -> None:
    game = _build_game(health=1)
    game.new_player("Alice", 0)

    outcome = game.play_turn(ActionCommand.attack())

    assert outcome is not None and outcome.target_killed
    assert game.state.result == "target_killed"
    assert game.target.room_index == 0
    assert game.state.escape_count == 0
    assert _escape_entries(game) == []


def test_rejected_computer_action_reaches_action_hook() -> None:
    game = _build_game()
    game.new_player("Bot", 3, is_ai=True)
    calls: list[str] = []
    game.register_rule_module(RecordingModule(name="A", calls=calls))

    game.play_turn(ActionCommand.move(0))

    assert "A:action:move" in calls
    assert game.outcome_trace()[-1]["applied"] is False


def test_config_default_capacity_matches_player_default() -> None:
    game = _build_game()

    player = game.new_player("Alice", 0)

    assert GameConfig().default_max_items == DEFAULT_MAX_ITEMS
    assert player.max_items == DEFAULT_MAX_ITEMS
