"""
Panel API Endpoints

Responsibilities:
1. Panel CRUD (no delete)
2. The panel's own queue and "call next candidate"
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
import logging

from database import get_repository
from models import EntityKind, EventType
from schemas import CallNextResponse, Candidate, Panel, PanelBase, PanelUpdate
from core.broadcaster import Broadcaster, get_broadcaster
from core.candidate_manager import CandidateManager
from core.exceptions import PanelBusy, PanelNotFound, QueueEmpty
from core.repository import Repository
from services.queue_service import panel_queue

router = APIRouter(prefix="/api/panels", tags=["panels"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[Panel])
def list_panels(repo: Repository = Depends(get_repository)):
    return repo.list(EntityKind.PANEL)


@router.get("/{panel_id}", response_model=Panel)
def get_panel(panel_id: int, repo: Repository = Depends(get_repository)):
    panel = repo.get(EntityKind.PANEL, panel_id)
    if not panel:
        raise HTTPException(status_code=404, detail="Panel not found")
    return panel


@router.post("", response_model=Panel, status_code=201)
def create_panel(
    panel_data: PanelBase,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    try:
        panel = repo.create(EntityKind.PANEL, panel_data.model_dump())
        logger.info(f"Created panel {panel.id} ({panel.name})")
        broadcaster.publish(EventType.PANEL_CREATED, panel)
        return panel

    except Exception as e:
        logger.error(f"Failed to create panel: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.patch("/{panel_id}", response_model=Panel)
def update_panel(
    panel_id: int,
    updates: PanelUpdate,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    """
    Partial update (toggle active, rename, change members, set current candidate).

    Room changes should go through /api/rooms/{id}/assign-panel so the room
    side stays consistent.
    """
    try:
        panel = repo.update(EntityKind.PANEL, panel_id, updates.model_dump(exclude_unset=True))
    except Exception as e:
        logger.error(f"Failed to update panel {panel_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    if not panel:
        raise HTTPException(status_code=404, detail="Panel not found")

    broadcaster.publish(EventType.PANEL_UPDATED, panel)
    return panel


@router.get("/{panel_id}/queue", response_model=List[Candidate])
def get_panel_queue(panel_id: int, repo: Repository = Depends(get_repository)):
    """
    Candidates this panel can call, FIFO.

    Waiting candidates (registered / in_queue) that are unassigned or
    already assigned to this panel.
    """
    if not repo.get(EntityKind.PANEL, panel_id):
        raise HTTPException(status_code=404, detail="Panel not found")
    return panel_queue(repo.list(EntityKind.CANDIDATE), panel_id)


@router.post("/{panel_id}/call-next", response_model=CallNextResponse)
def call_next_candidate(
    panel_id: int,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    """
    Hand the first waiting candidate to the panel.

    Preconditions:
    - the panel has no current candidate
    - at least one candidate is waiting for it

    Effect:
    - panel.currentCandidate = candidate
    - candidate: status in_process, assignedPanel = panel, roomNo = panel room
    """
    try:
        panel, candidate = CandidateManager.call_next_candidate(repo, broadcaster, panel_id)
        return CallNextResponse(panel=panel, candidate=candidate)

    except PanelNotFound:
        raise HTTPException(status_code=404, detail="Panel not found")
    except (PanelBusy, QueueEmpty) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to call next candidate: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
