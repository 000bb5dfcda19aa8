"""
Candidate Feedback API Endpoints (candidate -> process)

Post-interview survey: four 1-5 ratings plus free text.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
import logging

from database import get_repository
from models import EntityKind, EventType
from schemas import CandidateFeedback, CandidateFeedbackBase
from core.broadcaster import Broadcaster, get_broadcaster
from core.repository import Repository

router = APIRouter(prefix="/api/candidate-feedback", tags=["candidate-feedback"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[CandidateFeedback])
def list_candidate_feedback(repo: Repository = Depends(get_repository)):
    return repo.list(EntityKind.CANDIDATE_FEEDBACK)


@router.get("/candidate/{candidate_id}", response_model=CandidateFeedback)
def get_feedback_by_candidate(candidate_id: int, repo: Repository = Depends(get_repository)):
    feedback = repo.find_by(EntityKind.CANDIDATE_FEEDBACK, "candidate_id", candidate_id)
    if not feedback:
        raise HTTPException(status_code=404, detail="No feedback found for this candidate")
    return feedback


@router.get("/{feedback_id}", response_model=CandidateFeedback)
def get_candidate_feedback(feedback_id: int, repo: Repository = Depends(get_repository)):
    feedback = repo.get(EntityKind.CANDIDATE_FEEDBACK, feedback_id)
    if not feedback:
        raise HTTPException(status_code=404, detail="Candidate feedback not found")
    return feedback


@router.post("", response_model=CandidateFeedback, status_code=201)
def submit_candidate_feedback(
    feedback_data: CandidateFeedbackBase,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    """
    Store a candidate's survey.

    submittedAt is always set by the server.
    """
    try:
        feedback = repo.create(EntityKind.CANDIDATE_FEEDBACK, feedback_data.model_dump())
        logger.info(f"Candidate feedback {feedback.id} received for candidate {feedback.candidate_id}")
        broadcaster.publish(EventType.CANDIDATE_FEEDBACK_CREATED, feedback)
        return feedback

    except Exception as e:
        logger.error(f"Failed to create candidate feedback: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
