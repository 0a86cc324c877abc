import pytest

from manorhunt.content.world_text import load_world_text
from manorhunt.sim.errors import InvalidRoomIndex, ItemNotFound
from manorhunt.sim.world import ItemRecord, RoomRecord, WorldState, build_adjacency, rooms_are_adjacent


def _room(room_id: int, ul_row: int, ul_col: int, lr_row: int, lr_col: int, name: str = "Room") -> RoomRecord:
    return RoomRecord(
        room_id=room_id,
        name=f"{name} {room_id}",
        upper_left_row=ul_row,
        upper_left_col=ul_col,
        lower_right_row=lr_row,
        lower_right_col=lr_col,
    )


def _build_world() -> WorldState:
    rooms = [_room(0, 0, 0, 1, 1), _room(1, 0, 2, 1, 3), _room(2, 0, 4, 1, 5), _room(3, 5, 0, 5, 0)]
    knife = ItemRecord(item_id="item-0", name="Knife", damage=8)
    return WorldState(rows=6, cols=6, name="Cottage", rooms=rooms, items={knife.item_id: knife}, room_items={0: [knife.item_id]})


def test_rooms_sharing_a_row_edge_are_neighbors() -> None:
    upper = _room(0, 0, 0, 5, 5)
    lower = _room(1, 6, 0, 10, 5)

    assert rooms_are_adjacent(upper, lower)
    assert rooms_are_adjacent(lower, upper)


def test_rooms_separated_by_a_gap_column_are_not_neighbors() -> None:
    left = _room(0, 0, 0, 1, 1)
    right = _room(1, 0, 3, 1, 4)

    assert not rooms_are_adjacent(left, right)
    assert not rooms_are_adjacent(right, left)


def test_rooms_touching_only_at_a_corner_are_not_neighbors() -> None:
    assert not rooms_are_adjacent(_room(0, 0, 0, 1, 1), _room(1, 2, 2, 3, 3))


def test_room_is_never_its_own_neighbor() -> None:
    room = _room(0, 0, 0, 1, 1)

    assert not rooms_are_adjacent(room, room)
    assert build_adjacency([room]) == {0: ()}


def test_adjacency_is_symmetric_for_default_mansion() -> None:
    world = load_world_text("content/worlds/mansion.txt").world

    for room in world.rooms:
        for neighbor in world.neighbors(room.room_id):
            assert room.room_id in world.neighbors(neighbor)
            assert neighbor != room.room_id


def test_default_mansion_neighbor_lists() -> None:
    world = load_world_text("content/worlds/mansion.txt").world

    assert world.neighbors(0) == (1, 3)
    assert world.neighbors(4) == (1, 3, 5, 6, 7)
    assert world.neighbors(9) == ()
    assert world.is_neighbor(6, 7)
    assert not world.is_neighbor(0, 4)


def test_validate_room_index_rejects_out_of_range_and_non_integers() -> None:
    world = _build_world()

    assert world.validate_room_index(3) == 3
    for bad in (-1, 4, True, "1"):
        with pytest.raises(InvalidRoomIndex):
            world.validate_room_index(bad)


def test_world_rejects_room_ids_out_of_order() -> None:
    with pytest.raises(ValueError, match="must equal its index"):
        WorldState(rows=2, cols=2, name="Bad", rooms=[_room(1, 0, 0, 1, 1)])


def test_world_rejects_unknown_and_duplicated_item_placements() -> None:
    knife = ItemRecord(item_id="item-0", name="Knife", damage=8)
    rooms = [_room(0, 0, 0, 1, 1), _room(1, 0, 2, 1, 3)]

    with pytest.raises(ValueError, match="unknown item"):
        WorldState(rows=2, cols=4, name="Bad", rooms=rooms, room_items={0: ["item-9"]})
    with pytest.raises(ValueError, match="more than one room"):
        WorldState(
            rows=2,
            cols=4,
            name="Bad",
            rooms=rooms,
            items={knife.item_id: knife},
            room_items={0: [knife.item_id], 1: [knife.item_id]},
        )


def test_item_lookup_by_name_or_id_and_missing_item() -> None:
    world = _build_world()

    assert world.find_item_in_room(0, "Knife").item_id == "item-0"
    assert world.find_item_in_room(0, "item-0").name == "Knife"
    with pytest.raises(ItemNotFound):
        world.find_item_in_room(1, "Knife")


def test_item_damage_must_be_non_negative() -> None:
    with pytest.raises(ValueError):
        ItemRecord(item_id="item-0", name="Feather", damage=-1)


def test_place_item_refuses_second_room() -> None:
    world = _build_world()
    knife = world.items["item-0"]

    with pytest.raises(ValueError, match="already placed"):
        world.place_item(1, knife)

    world.remove_item_from_room(0, knife)
    world.place_item(1, knife)

    assert world.items_in_room(0) == []
    assert world.items_in_room(1) == [knife]


def test_worlds_built_from_shared_containers_do_not_share_items() -> None:
    knife = ItemRecord(item_id="item-0", name="Knife", damage=8)
    rooms = [_room(0, 0, 0, 1, 1), _room(1, 0, 2, 1, 3)]
    items = {knife.item_id: knife}
    room_items = {0: [knife.item_id]}

    first = WorldState(rows=2, cols=4, name="First", rooms=rooms, items=items, room_items=room_items)
    second = WorldState(rows=2, cols=4, name="Second", rooms=rooms, items=items, room_items=room_items)
    first.remove_item_from_room(0, knife)

    assert first.items_in_room(0) == []
    assert second.items_in_room(0) == [knife]
    assert room_items == {0: ["item-0"]}
