import pytest

from models import EntityKind
from core.exceptions import DuplicateEntity, PanelNotFound, RoomNotFound
from core.room_manager import RoomManager


def make_room(repo, events, number, **extra):
    return RoomManager.create_room(repo, events, {
        "room_number": number, "capacity": 4, "floor": "1st", "type": "Technical", **extra,
    })


def assert_room_invariants(repo):
    rooms = repo.list(EntityKind.ROOM)
    for room in rooms:
        assert room.is_occupied == bool(room.assigned_panels)
    for panel in repo.list(EntityKind.PANEL):
        holders = [room for room in rooms if panel.id in room.assigned_panels]
        assert len(holders) <= 1


def test_create_room_derives_occupancy(repo, events):
    room = make_room(repo, events, "101", is_occupied=True)
    assert room.is_occupied is False
    assert events.types == ["ROOM_CREATED"]


def test_create_room_rejects_duplicate_number(repo, events):
    make_room(repo, events, "101")
    with pytest.raises(DuplicateEntity):
        make_room(repo, events, "101")


def test_assign_then_remove(repo, events):
    room = make_room(repo, events, "101")
    panel = repo.create(EntityKind.PANEL, {"name": "P"})

    room = RoomManager.assign_panel_to_room(repo, events, room.id, panel.id)
    assert room.assigned_panels == [panel.id]
    assert room.is_occupied is True
    assert repo.get(EntityKind.PANEL, panel.id).room_no == "101"
    assert_room_invariants(repo)

    room = RoomManager.remove_panel_from_room(repo, events, room.id, panel.id)
    assert room.assigned_panels == []
    assert room.is_occupied is False
    assert repo.get(EntityKind.PANEL, panel.id).room_no == ""
    assert_room_invariants(repo)


def test_reassignment_detaches_from_previous_room(repo, events):
    room_a = make_room(repo, events, "101")
    room_b = make_room(repo, events, "102")
    panel = repo.create(EntityKind.PANEL, {"name": "P"})

    RoomManager.assign_panel_to_room(repo, events, room_a.id, panel.id)
    events.events.clear()
    RoomManager.assign_panel_to_room(repo, events, room_b.id, panel.id)

    assert repo.get(EntityKind.ROOM, room_a.id).assigned_panels == []
    assert repo.get(EntityKind.ROOM, room_a.id).is_occupied is False
    assert repo.get(EntityKind.ROOM, room_b.id).assigned_panels == [panel.id]
    assert repo.get(EntityKind.PANEL, panel.id).room_no == "102"
    assert events.types == ["ROOM_UPDATED", "ROOM_UPDATED", "PANEL_UPDATED"]
    assert_room_invariants(repo)


def test_assigning_twice_does_not_duplicate(repo, events):
    room = make_room(repo, events, "101")
    panel = repo.create(EntityKind.PANEL, {"name": "P"})

    RoomManager.assign_panel_to_room(repo, events, room.id, panel.id)
    room = RoomManager.assign_panel_to_room(repo, events, room.id, panel.id)

    assert room.assigned_panels == [panel.id]


def test_assign_with_missing_panel_changes_nothing(repo, events):
    room = make_room(repo, events, "101")
    events.events.clear()

    with pytest.raises(PanelNotFound):
        RoomManager.assign_panel_to_room(repo, events, room.id, 99)
    with pytest.raises(RoomNotFound):
        RoomManager.assign_panel_to_room(repo, events, 99, 1)

    assert repo.get(EntityKind.ROOM, room.id) == room
    assert events.events == []


def test_remove_keeps_room_no_pointing_elsewhere(repo, events):
    room_a = make_room(repo, events, "101")
    room_b = make_room(repo, events, "102")
    panel = repo.create(EntityKind.PANEL, {"name": "P"})
    RoomManager.assign_panel_to_room(repo, events, room_b.id, panel.id)

    room = RoomManager.remove_panel_from_room(repo, events, room_a.id, panel.id)

    assert room.assigned_panels == []
    assert repo.get(EntityKind.PANEL, panel.id).room_no == "102"


def test_update_room_keeps_occupancy_in_sync(repo, events):
    room = make_room(repo, events, "101")
    first = repo.create(EntityKind.PANEL, {"name": "P1"})
    second = repo.create(EntityKind.PANEL, {"name": "P2"})

    room = RoomManager.update_room(repo, events, room.id, {
        "assigned_panels": [first.id, first.id, second.id],
    })
    assert room.assigned_panels == [first.id, second.id]
    assert room.is_occupied is True

    room = RoomManager.update_room(repo, events, room.id, {"assigned_panels": []})
    assert room.is_occupied is False
    assert repo.get(EntityKind.PANEL, first.id).room_no == ""
    assert_room_invariants(repo)

    make_room(repo, events, "102")
    with pytest.raises(DuplicateEntity):
        RoomManager.update_room(repo, events, room.id, {"room_number": "102"})


def test_update_room_ignores_client_occupancy(repo, events):
    empty = make_room(repo, events, "101")

    room = RoomManager.update_room(repo, events, empty.id, {"is_occupied": True})

    assert room.is_occupied is False
    assert_room_invariants(repo)


def test_update_room_panel_list_moves_panel(repo, events):
    room_a = make_room(repo, events, "101")
    room_b = make_room(repo, events, "102")
    panel = repo.create(EntityKind.PANEL, {"name": "P"})
    RoomManager.assign_panel_to_room(repo, events, room_a.id, panel.id)

    RoomManager.update_room(repo, events, room_b.id, {"assigned_panels": [panel.id]})

    assert repo.get(EntityKind.ROOM, room_a.id).assigned_panels == []
    assert repo.get(EntityKind.ROOM, room_a.id).is_occupied is False
    assert repo.get(EntityKind.PANEL, panel.id).room_no == "102"
    assert_room_invariants(repo)


def test_renaming_room_repoints_its_panels(repo, events):
    room = make_room(repo, events, "101")
    panel = repo.create(EntityKind.PANEL, {"name": "P"})
    RoomManager.assign_panel_to_room(repo, events, room.id, panel.id)

    RoomManager.update_room(repo, events, room.id, {"room_number": "105"})

    assert repo.get(EntityKind.PANEL, panel.id).room_no == "105"


def test_create_room_with_panels_takes_them_over(repo, events):
    room_a = make_room(repo, events, "101")
    panel = repo.create(EntityKind.PANEL, {"name": "P"})
    RoomManager.assign_panel_to_room(repo, events, room_a.id, panel.id)

    room_b = make_room(repo, events, "102", assigned_panels=[panel.id])

    assert room_b.is_occupied is True
    assert repo.get(EntityKind.ROOM, room_a.id).assigned_panels == []
    assert repo.get(EntityKind.PANEL, panel.id).room_no == "102"
    assert_room_invariants(repo)


def test_unknown_panel_in_list_changes_nothing(repo, events):
    room = make_room(repo, events, "101")

    with pytest.raises(PanelNotFound):
        RoomManager.update_room(repo, events, room.id, {"assigned_panels": [99]})
    with pytest.raises(PanelNotFound):
        make_room(repo, events, "102", assigned_panels=[99])

    assert repo.get(EntityKind.ROOM, room.id) == room
    assert repo.find_by(EntityKind.ROOM, "room_number", "102") is None
