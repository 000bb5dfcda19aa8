"""
Pipeline service: how a panel decision moves a candidate

Interview flow of a walk-in drive:
    gd -> screening -> manager -> hr | technical_round_2

The progression table drives the nextRound choices offered to panels. The
server only enforces it when strict round transitions are switched on.
"""
from typing import Dict, Optional, Tuple

from models import CandidateStatus, Decision, InterviewRound


ROUND_PROGRESSION: Dict[str, Tuple[str, ...]] = {
    InterviewRound.GD: (InterviewRound.SCREENING,),
    InterviewRound.SCREENING: (InterviewRound.MANAGER,),
    InterviewRound.MANAGER: (InterviewRound.HR, InterviewRound.TECHNICAL_ROUND_2),
}


def next_round_options(current_round: str) -> Tuple[str, ...]:
    """
    Legal successors of a round.

    Examples:
        next_round_options("gd")      -> ("screening",)
        next_round_options("manager") -> ("hr", "technical_round_2")
        next_round_options("hr")      -> ()   # final round
    """
    return ROUND_PROGRESSION.get(current_round, ())


def is_legal_next_round(current_round: str, next_round: str) -> bool:
    return next_round in next_round_options(current_round)


def resolve_decision(
    decision: Decision,
    current_round: str,
    next_round: Optional[str] = None
) -> Tuple[CandidateStatus, str]:
    """
    New (status, round) for a candidate after a panel decision.

    Rules:
    - next:   back in the queue, in `next_round` when given, else same round
    - reject: rejected, round unchanged
    - hold:   back in the queue, round unchanged

    Args:
        decision: the panel verdict
        current_round: round the candidate was interviewed in
        next_round: round requested by the panel (decision=next only)

    Returns:
        (CandidateStatus, round name)
    """
    decision = Decision(decision)

    if decision == Decision.NEXT:
        return CandidateStatus.IN_QUEUE, next_round or current_round
    elif decision == Decision.REJECT:
        return CandidateStatus.REJECTED, current_round
    else:  # hold
        return CandidateStatus.IN_QUEUE, current_round
