"""
Feedback API Endpoints (panel -> candidate)

Submitting feedback is what moves a candidate through the pipeline:
    next   -> in_queue, in nextRound when given
    reject -> rejected
    hold   -> in_queue, same round
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
import logging

from database import Settings, get_repository, get_settings
from models import EntityKind
from schemas import Feedback, FeedbackBase, NextRoundsResponse
from core.broadcaster import Broadcaster, get_broadcaster
from core.candidate_manager import CandidateManager
from core.exceptions import CandidateNotFound, InvalidRoundTransition, PanelNotFound
from core.repository import Repository
from services.pipeline_service import next_round_options

router = APIRouter(prefix="/api", tags=["feedback"])
logger = logging.getLogger(__name__)


@router.get("/feedback/candidate/{candidate_id}", response_model=List[Feedback])
def list_candidate_feedback(candidate_id: int, repo: Repository = Depends(get_repository)):
    return repo.filter_by(EntityKind.FEEDBACK, "candidate_id", candidate_id)


@router.get("/feedback/{feedback_id}", response_model=Feedback)
def get_feedback(feedback_id: int, repo: Repository = Depends(get_repository)):
    feedback = repo.get(EntityKind.FEEDBACK, feedback_id)
    if not feedback:
        raise HTTPException(status_code=404, detail="Feedback not found")
    return feedback


@router.post("/feedback", response_model=Feedback, status_code=201)
def submit_feedback(
    feedback_data: FeedbackBase,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    settings: Settings = Depends(get_settings)
):
    """
    Record a panel's verdict on a candidate.

    Flow:
    1. Store the feedback
    2. Move the candidate (status/round) and clear its assigned panel
    3. Free the panel if it was interviewing this candidate

    nextRound is free text unless STRICT_ROUND_TRANSITIONS is on, in which
    case it must follow the round progression (400 otherwise).
    """
    try:
        return CandidateManager.record_feedback(
            repo,
            broadcaster,
            feedback_data.model_dump(),
            strict_rounds=settings.strict_round_transitions
        )

    except CandidateNotFound:
        raise HTTPException(status_code=404, detail="Candidate not found")
    except PanelNotFound:
        raise HTTPException(status_code=404, detail="Panel not found")
    except InvalidRoundTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to submit feedback: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/rounds/{current_round}/next", response_model=NextRoundsResponse)
def get_next_rounds(current_round: str):
    """nextRound choices offered to a panel for a candidate in `current_round`."""
    return NextRoundsResponse(
        current_round=current_round,
        options=list(next_round_options(current_round))
    )
