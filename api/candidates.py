"""
Candidate API Endpoints

Responsibilities:
1. Registration (manual desk and full insert)
2. Lookup by id / serial number / email
3. Admin overrides
4. Live queue status
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
import logging

from database import Settings, get_repository, get_settings
from models import EntityKind
from schemas import Candidate, CandidateBase, CandidateRegistration, CandidateUpdate, QueueStatusResponse
from core.broadcaster import Broadcaster, get_broadcaster
from core.candidate_manager import CandidateManager
from core.exceptions import CandidateNotFound, DuplicateEntity
from core.repository import Repository

router = APIRouter(prefix="/api/candidates", tags=["candidates"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[Candidate])
def list_candidates(repo: Repository = Depends(get_repository)):
    return repo.list(EntityKind.CANDIDATE)


@router.post("", response_model=Candidate, status_code=201)
def create_candidate(
    candidate_data: CandidateBase,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    """
    Insert a fully specified candidate (serial number included).

    Use /manual or the sheet webhook to have the serial number generated.
    """
    try:
        return CandidateManager.create_candidate(repo, broadcaster, candidate_data.model_dump())

    except DuplicateEntity as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create candidate: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/manual", response_model=Candidate, status_code=201)
def register_candidate(
    registration: CandidateRegistration,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    settings: Settings = Depends(get_settings)
):
    """
    Register a walk-in candidate at the desk.

    Flow:
    1. Generate the serial number (WD-NNN) and QR code URL
    2. Create the candidate as registered, round gd
    3. Broadcast CANDIDATE_CREATED
    """
    try:
        return CandidateManager.register_candidate(
            repo,
            broadcaster,
            settings,
            name=registration.name,
            email=registration.email,
            position=registration.position,
            timestamp=registration.timestamp
        )

    except DuplicateEntity as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to register candidate: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/serial/{serial_no}", response_model=Candidate)
def get_candidate_by_serial(serial_no: str, repo: Repository = Depends(get_repository)):
    candidate = repo.find_by(EntityKind.CANDIDATE, "serial_no", serial_no)
    if not candidate:
        raise HTTPException(status_code=404, detail="Candidate not found")
    return candidate


@router.get("/email/{email}", response_model=Candidate)
def get_candidate_by_email(email: str, repo: Repository = Depends(get_repository)):
    candidate = repo.find_by(EntityKind.CANDIDATE, "email", email)
    if not candidate:
        raise HTTPException(status_code=404, detail="Candidate not found")
    return candidate


@router.get("/email/{email}/queue", response_model=QueueStatusResponse)
def get_queue_status_by_email(email: str, repo: Repository = Depends(get_repository)):
    """
    Queue status for the candidate's own screen (reached from the email link).

    Returns:
        - queuePosition: 1-based position in the current round, 0 if not waiting
        - candidatesAhead: who is before the candidate
        - estimatedWait: rough wait based on average round length
    """
    candidate = repo.find_by(EntityKind.CANDIDATE, "email", email)
    if not candidate:
        raise HTTPException(status_code=404, detail="Candidate not found")
    return CandidateManager.queue_status(repo, candidate)


@router.get("/{candidate_id}", response_model=Candidate)
def get_candidate(candidate_id: int, repo: Repository = Depends(get_repository)):
    try:
        return CandidateManager.get_candidate(repo, candidate_id)
    except CandidateNotFound:
        raise HTTPException(status_code=404, detail="Candidate not found")


@router.get("/{candidate_id}/queue", response_model=QueueStatusResponse)
def get_queue_status(candidate_id: int, repo: Repository = Depends(get_repository)):
    try:
        candidate = CandidateManager.get_candidate(repo, candidate_id)
        return CandidateManager.queue_status(repo, candidate)
    except CandidateNotFound:
        raise HTTPException(status_code=404, detail="Candidate not found")


@router.patch("/{candidate_id}", response_model=Candidate)
def update_candidate(
    candidate_id: int,
    updates: CandidateUpdate,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    """
    Admin override of any field except the serial number.

    Only the fields present in the body are changed.
    """
    try:
        return CandidateManager.update_candidate(
            repo, broadcaster, candidate_id, updates.model_dump(exclude_unset=True)
        )

    except CandidateNotFound:
        raise HTTPException(status_code=404, detail="Candidate not found")
    except DuplicateEntity as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update candidate: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
