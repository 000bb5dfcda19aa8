"""
Google Sheets API Endpoints

The registration form writes to a sheet; an Apps Script posts every new row
to /webhook and can push the whole sheet through /control (action=sync).
"""
from fastapi import APIRouter, Depends, HTTPException
import logging

from database import Settings, get_repository, get_settings
from schemas import Candidate, CandidateRegistration, SheetsControlRequest, SheetsControlResponse
from core.broadcaster import Broadcaster, get_broadcaster
from core.candidate_manager import CandidateManager
from core.exceptions import DuplicateEntity
from core.repository import Repository

router = APIRouter(prefix="/api/google-sheets", tags=["google-sheets"])
logger = logging.getLogger(__name__)


@router.post("/webhook", response_model=Candidate, status_code=201)
def sheets_webhook(
    submission: CandidateRegistration,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    settings: Settings = Depends(get_settings)
):
    """
    New form submission -> new candidate.

    Same path as manual registration; the row's timestamp (if any) becomes
    the registration time, so queue order follows form order.
    """
    try:
        return CandidateManager.register_candidate(
            repo,
            broadcaster,
            settings,
            name=submission.name,
            email=submission.email,
            position=submission.position,
            timestamp=submission.timestamp
        )

    except DuplicateEntity as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to process Google Sheets webhook: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/control", response_model=SheetsControlResponse)
def sheets_control(
    request: SheetsControlRequest,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    settings: Settings = Depends(get_settings)
):
    """
    Actions:
        init: connection handshake from the script, nothing to do
        sync: upsert every row in `candidates`, matched by email
    """
    if request.action == "init":
        return SheetsControlResponse(success=True, message="Connection initialized successfully")

    if request.candidates is None:
        raise HTTPException(status_code=400, detail="Candidates must be an array")

    try:
        created, updated = CandidateManager.sync_candidates(repo, broadcaster, settings, request.candidates)
        return SheetsControlResponse(
            success=True,
            message=f"Candidates synced successfully ({created} created, {updated} updated)"
        )

    except Exception as e:
        logger.error(f"Failed to sync candidates from Google Sheets: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
