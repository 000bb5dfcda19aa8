"""
Queue service

Builds the per-round waiting queues so candidate screens and panel
dashboards render positions straight from the server.
"""
from typing import Dict, List, Optional, Sequence

from models import WAITING_STATUSES
from schemas import Candidate


# Average interview length (minutes) per round; other rounds use the default
AVERAGE_MINUTES_PER_ROUND: Dict[str, int] = {
    "gd": 10,
    "screening": 15,
    "manager": 20,
}
DEFAULT_MINUTES_PER_CANDIDATE = 15


def is_waiting(candidate: Candidate) -> bool:
    return candidate.status in WAITING_STATUSES


def round_queue(candidates: Sequence[Candidate], current_round: str) -> List[Candidate]:
    """
    Waiting candidates of one round in FIFO order.

    sorted() is stable, so candidates registered at the same instant keep
    their insertion order.
    """
    waiting = [
        c for c in candidates
        if c.current_round == current_round and is_waiting(c)
    ]
    return sorted(waiting, key=lambda c: c.timestamp)


def queue_position(candidates: Sequence[Candidate], candidate: Candidate) -> int:
    """1-based position of `candidate` in its round queue, 0 when it is not waiting."""
    queue = round_queue(candidates, candidate.current_round)
    for index, queued in enumerate(queue):
        if queued.id == candidate.id:
            return index + 1
    return 0


def candidates_ahead(candidates: Sequence[Candidate], candidate: Candidate) -> List[Candidate]:
    position = queue_position(candidates, candidate)
    if position == 0:
        return []
    return round_queue(candidates, candidate.current_round)[:position - 1]


def panel_queue(candidates: Sequence[Candidate], panel_id: int) -> List[Candidate]:
    """
    Candidates a panel can call next, FIFO.

    Any waiting candidate who is unassigned or already assigned to this
    panel, regardless of round.
    """
    eligible = [
        c for c in candidates
        if is_waiting(c) and (c.assigned_panel is None or c.assigned_panel == panel_id)
    ]
    return sorted(eligible, key=lambda c: c.timestamp)


def estimate_wait_minutes(position: int, current_round: str) -> int:
    per_candidate = AVERAGE_MINUTES_PER_ROUND.get(current_round, DEFAULT_MINUTES_PER_CANDIDATE)
    return position * per_candidate


def format_wait(minutes: int) -> str:
    """
    Examples:
        format_wait(0)  -> "< 1 min"
        format_wait(45) -> "~45 min"
        format_wait(80) -> "~1h 20m"
    """
    if minutes < 1:
        return "< 1 min"
    if minutes < 60:
        return f"~{minutes} min"
    hours, rest = divmod(minutes, 60)
    return f"~{hours}h {rest}m"


def first_in_queue(candidates: Sequence[Candidate], panel_id: int) -> Optional[Candidate]:
    queue = panel_queue(candidates, panel_id)
    return queue[0] if queue else None
