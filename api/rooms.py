"""
Room API Endpoints

Responsibilities:
1. Room CRUD (no delete)
2. Assign / remove panels
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
import logging

from database import get_repository
from models import EntityKind
from schemas import Room, RoomBase, RoomUpdate
from core.broadcaster import Broadcaster, get_broadcaster
from core.exceptions import DuplicateEntity, PanelNotFound, RoomNotFound
from core.repository import Repository
from core.room_manager import RoomManager

router = APIRouter(prefix="/api/rooms", tags=["rooms"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[Room])
def list_rooms(repo: Repository = Depends(get_repository)):
    return repo.list(EntityKind.ROOM)


@router.get("/number/{room_number}", response_model=Room)
def get_room_by_number(room_number: str, repo: Repository = Depends(get_repository)):
    try:
        return RoomManager.get_room_by_number(repo, room_number)
    except RoomNotFound:
        raise HTTPException(status_code=404, detail="Room not found")


@router.get("/{room_id}", response_model=Room)
def get_room(room_id: int, repo: Repository = Depends(get_repository)):
    try:
        return RoomManager.get_room_by_id(repo, room_id)
    except RoomNotFound:
        raise HTTPException(status_code=404, detail="Room not found")


@router.post("", response_model=Room, status_code=201)
def create_room(
    room_data: RoomBase,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    try:
        return RoomManager.create_room(repo, broadcaster, room_data.model_dump())

    except DuplicateEntity as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PanelNotFound:
        raise HTTPException(status_code=404, detail="Panel not found")
    except Exception as e:
        logger.error(f"Failed to create room: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.patch("/{room_id}", response_model=Room)
def update_room(
    room_id: int,
    updates: RoomUpdate,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    try:
        return RoomManager.update_room(repo, broadcaster, room_id, updates.model_dump(exclude_unset=True))

    except RoomNotFound:
        raise HTTPException(status_code=404, detail="Room not found")
    except DuplicateEntity as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PanelNotFound:
        raise HTTPException(status_code=404, detail="Panel not found")
    except Exception as e:
        logger.error(f"Failed to update room: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{room_id}/assign-panel/{panel_id}", response_model=Room)
def assign_panel(
    room_id: int,
    panel_id: int,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    """
    Assign a panel to a room.

    The panel is first detached from any other room; every room touched and
    the panel are broadcast.
    """
    try:
        return RoomManager.assign_panel_to_room(repo, broadcaster, room_id, panel_id)

    except (RoomNotFound, PanelNotFound):
        raise HTTPException(status_code=404, detail="Room or panel not found")
    except Exception as e:
        logger.error(f"Failed to assign panel {panel_id} to room {room_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{room_id}/remove-panel/{panel_id}", response_model=Room)
def remove_panel(
    room_id: int,
    panel_id: int,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    try:
        return RoomManager.remove_panel_from_room(repo, broadcaster, room_id, panel_id)

    except RoomNotFound:
        raise HTTPException(status_code=404, detail="Room not found")
    except Exception as e:
        logger.error(f"Failed to remove panel {panel_id} from room {room_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
