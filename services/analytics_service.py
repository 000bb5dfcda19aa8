"""
Analytics service: candidate feedback aggregation and dashboard counters

Pure computation over entity lists.
"""
from typing import Dict, Sequence

from models import CandidateStatus, Rating, WAITING_STATUSES
from schemas import (
    Candidate,
    CandidateFeedback,
    DashboardStats,
    FeedbackAnalyticsResponse,
    Panel,
    RatingDistribution,
)


# Weights used for the average score of a distribution
RATING_WEIGHTS: Dict[Rating, int] = {
    Rating.EXCELLENT: 4,
    Rating.GOOD: 3,
    Rating.AVERAGE: 2,
    Rating.POOR: 1,
}

# Analytics category -> CandidateFeedback field it is read from
FEEDBACK_CATEGORIES: Dict[str, str] = {
    "overall": "overall_experience",
    "process": "interview_difficulty",
    "interviewer": "interviewer_professionalism",
    "environment": "interview_fairness",
}


def rating_for_score(score: int) -> Rating:
    """
    Map a 1-5 score onto the four rating buckets.

    ┌───────┬───────────┐
    │ 5     │ excellent │
    │ 4     │ good      │
    │ 3     │ average   │
    │ 1, 2  │ poor      │
    └───────┴───────────┘
    """
    if score >= 5:
        return Rating.EXCELLENT
    elif score == 4:
        return Rating.GOOD
    elif score == 3:
        return Rating.AVERAGE
    else:
        return Rating.POOR


def average_score(distribution: RatingDistribution) -> float:
    """Weighted average of a distribution, rounded to 2 places; 0.0 when empty."""
    counts = distribution.model_dump()
    total = sum(counts.values())
    if total == 0:
        return 0.0
    weighted = sum(RATING_WEIGHTS[Rating(name)] * count for name, count in counts.items())
    return round(weighted / total, 2)


def aggregate_candidate_feedback(feedbacks: Sequence[CandidateFeedback]) -> FeedbackAnalyticsResponse:
    distributions = {category: RatingDistribution() for category in FEEDBACK_CATEGORIES}

    for feedback in feedbacks:
        for category, field in FEEDBACK_CATEGORIES.items():
            bucket = rating_for_score(getattr(feedback, field)).value
            distribution = distributions[category]
            setattr(distribution, bucket, getattr(distribution, bucket) + 1)

    return FeedbackAnalyticsResponse(
        total_responses=len(feedbacks),
        average_scores={
            category: average_score(distribution)
            for category, distribution in distributions.items()
        },
        **distributions
    )


def dashboard_stats(candidates: Sequence[Candidate], panels: Sequence[Panel]) -> DashboardStats:
    processed = (CandidateStatus.COMPLETED, CandidateStatus.REJECTED)
    return DashboardStats(
        total_candidates=len(candidates),
        active_panels=sum(1 for p in panels if p.is_active),
        in_queue=sum(1 for c in candidates if c.status in WAITING_STATUSES),
        processed=sum(1 for c in candidates if c.status in processed),
    )
