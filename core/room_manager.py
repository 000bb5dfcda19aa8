"""
Room Manager: rooms and the panels assigned to them

Responsibilities:
1. Create / update rooms (unique room numbers)
2. Assign a panel to a room, detaching it from any other room first
3. Remove a panel from a room

Invariants kept by every operation here:
- room.is_occupied == bool(room.assigned_panels)
- a panel id appears in at most one room's assigned_panels
"""
from typing import Any, Dict, List
import logging

from models import EntityKind, EventType
from schemas import Panel, Room
from core.broadcaster import Broadcaster
from core.exceptions import DuplicateEntity, PanelNotFound, RoomNotFound
from core.repository import Repository

logger = logging.getLogger(__name__)


class RoomManager:
    """Room and panel-assignment bookkeeping"""

    @staticmethod
    def create_room(repo: Repository, broadcaster: Broadcaster, data: Dict[str, Any]) -> Room:
        """
        Create a room.

        is_occupied is derived from assigned_panels, whatever the caller sent.
        Listed panels are detached from their previous rooms and follow this one.

        Raises:
            DuplicateEntity: room number already exists
            PanelNotFound: a listed panel does not exist
        """
        if repo.find_by(EntityKind.ROOM, "room_number", data["room_number"]):
            raise DuplicateEntity("roomNumber", data["room_number"])

        assigned = _existing_panels(repo, data.get("assigned_panels") or [])
        room = repo.create(EntityKind.ROOM, {
            **data,
            "assigned_panels": assigned,
            "is_occupied": bool(assigned),
        })

        logger.info(f"Created room {room.id} ({room.room_number})")
        broadcaster.publish(EventType.ROOM_CREATED, room)

        for panel_id in assigned:
            _attach_panel(repo, broadcaster, room, panel_id)
        return room

    @staticmethod
    def update_room(repo: Repository, broadcaster: Broadcaster, room_id: int, changes: Dict[str, Any]) -> Room:
        """
        Partial update of a room.

        Flow:
        1. Validate room number and listed panels (nothing is mutated otherwise)
        2. Update the room; is_occupied always follows assigned_panels
        3. Panels dropped from the list lose their room_no
        4. Panels in the list are detached from other rooms and follow this one

        Raises:
            RoomNotFound: room does not exist
            DuplicateEntity: new room number belongs to another room
            PanelNotFound: a listed panel does not exist
        """
        # 1. Validate
        previous = repo.get(EntityKind.ROOM, room_id)
        if previous is None:
            raise RoomNotFound(room_id)

        if "room_number" in changes:
            other = repo.find_by(EntityKind.ROOM, "room_number", changes["room_number"])
            if other and other.id != room_id:
                raise DuplicateEntity("roomNumber", changes["room_number"])

        changes = {key: value for key, value in changes.items() if key != "is_occupied"}
        if "assigned_panels" in changes:
            changes["assigned_panels"] = _existing_panels(repo, changes["assigned_panels"])
        assigned = changes.get("assigned_panels", previous.assigned_panels)
        changes["is_occupied"] = bool(assigned)

        # 2. Update
        room = repo.update(EntityKind.ROOM, room_id, changes)
        broadcaster.publish(EventType.ROOM_UPDATED, room)

        # 3. Released panels
        for panel_id in previous.assigned_panels:
            if panel_id not in room.assigned_panels:
                _release_panel(repo, broadcaster, previous.room_number, panel_id)

        # 4. Claimed panels (also re-pointed when the room number changed)
        for panel_id in room.assigned_panels:
            _attach_panel(repo, broadcaster, room, panel_id)
        return room

    @staticmethod
    def assign_panel_to_room(repo: Repository, broadcaster: Broadcaster, room_id: int, panel_id: int) -> Room:
        """
        Assign a panel to a room.

        Flow:
        1. Check both exist (nothing is mutated otherwise)
        2. Detach the panel from every other room listing it
        3. Point the panel's room_no at this room
        4. Add the panel to this room and mark it occupied

        Events:
            ROOM_UPDATED for every room touched, PANEL_UPDATED for the panel

        Returns:
            The updated target room

        Raises:
            RoomNotFound / PanelNotFound
        """
        # 1. Validate
        room = repo.get(EntityKind.ROOM, room_id)
        if room is None:
            raise RoomNotFound(room_id)
        if repo.get(EntityKind.PANEL, panel_id) is None:
            raise PanelNotFound(panel_id)

        # 2. Detach from previous rooms
        _detach_from_other_rooms(repo, broadcaster, room_id, panel_id)

        # 3. Panel follows the room
        panel = repo.update(EntityKind.PANEL, panel_id, {"room_no": room.room_number})

        # 4. Attach
        assigned = room.assigned_panels if panel_id in room.assigned_panels else room.assigned_panels + [panel_id]
        room = repo.update(EntityKind.ROOM, room_id, {
            "assigned_panels": assigned,
            "is_occupied": True,
        })

        logger.info(f"Panel {panel_id} assigned to room {room.room_number}")
        broadcaster.publish(EventType.ROOM_UPDATED, room)
        broadcaster.publish(EventType.PANEL_UPDATED, panel)
        return room

    @staticmethod
    def remove_panel_from_room(repo: Repository, broadcaster: Broadcaster, room_id: int, panel_id: int) -> Room:
        """
        Remove a panel from a room.

        Removing a panel that is not listed is a no-op on the room. The
        panel's room_no is cleared only when it still points at this room.

        Raises:
            RoomNotFound: room does not exist
        """
        room = repo.get(EntityKind.ROOM, room_id)
        if room is None:
            raise RoomNotFound(room_id)

        remaining = _without(room.assigned_panels, panel_id)
        room = repo.update(EntityKind.ROOM, room_id, {
            "assigned_panels": remaining,
            "is_occupied": bool(remaining),
        })
        broadcaster.publish(EventType.ROOM_UPDATED, room)

        panel: Panel = repo.get(EntityKind.PANEL, panel_id)
        if panel is not None:
            if panel.room_no == room.room_number:
                panel = repo.update(EntityKind.PANEL, panel_id, {"room_no": ""})
            broadcaster.publish(EventType.PANEL_UPDATED, panel)

        logger.info(f"Panel {panel_id} removed from room {room.room_number}")
        return room

    @staticmethod
    def get_room_by_id(repo: Repository, room_id: int) -> Room:
        room = repo.get(EntityKind.ROOM, room_id)
        if room is None:
            raise RoomNotFound(room_id)
        return room

    @staticmethod
    def get_room_by_number(repo: Repository, room_number: str) -> Room:
        room = repo.find_by(EntityKind.ROOM, "room_number", room_number)
        if room is None:
            raise RoomNotFound(f"with number {room_number}")
        return room


def _without(panel_ids: List[int], panel_id: int) -> List[int]:
    return [pid for pid in panel_ids if pid != panel_id]


def _existing_panels(repo: Repository, panel_ids: List[int]) -> List[int]:
    """De-duplicated panel ids, in order; every one must exist."""
    panel_ids = list(dict.fromkeys(panel_ids))
    for panel_id in panel_ids:
        if repo.get(EntityKind.PANEL, panel_id) is None:
            raise PanelNotFound(panel_id)
    return panel_ids


def _detach_from_other_rooms(repo: Repository, broadcaster: Broadcaster, room_id: int, panel_id: int) -> None:
    for other in repo.list(EntityKind.ROOM):
        if other.id != room_id and panel_id in other.assigned_panels:
            remaining = _without(other.assigned_panels, panel_id)
            detached = repo.update(EntityKind.ROOM, other.id, {
                "assigned_panels": remaining,
                "is_occupied": bool(remaining),
            })
            logger.info(f"Panel {panel_id} detached from room {other.room_number}")
            broadcaster.publish(EventType.ROOM_UPDATED, detached)


def _attach_panel(repo: Repository, broadcaster: Broadcaster, room: Room, panel_id: int) -> None:
    """Make `room` the only room listing the panel and point its room_no there."""
    _detach_from_other_rooms(repo, broadcaster, room.id, panel_id)

    panel: Panel = repo.get(EntityKind.PANEL, panel_id)
    if panel is not None and panel.room_no != room.room_number:
        panel = repo.update(EntityKind.PANEL, panel_id, {"room_no": room.room_number})
        broadcaster.publish(EventType.PANEL_UPDATED, panel)


def _release_panel(repo: Repository, broadcaster: Broadcaster, room_number: str, panel_id: int) -> None:
    panel: Panel = repo.get(EntityKind.PANEL, panel_id)
    if panel is not None and panel.room_no == room_number:
        panel = repo.update(EntityKind.PANEL, panel_id, {"room_no": ""})
        broadcaster.publish(EventType.PANEL_UPDATED, panel)
