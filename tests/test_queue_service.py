from datetime import datetime, timedelta, timezone

import pytest

from schemas import Candidate
from services.queue_service import (
    candidates_ahead,
    estimate_wait_minutes,
    first_in_queue,
    format_wait,
    panel_queue,
    queue_position,
    round_queue,
)

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def make_candidate(candidate_id, seconds, status="registered", current_round="gd", assigned_panel=None):
    return Candidate(
        id=candidate_id,
        serial_no=f"WD-{candidate_id:03d}",
        name=f"Candidate {candidate_id}",
        email=f"c{candidate_id}@example.com",
        position="Engineer",
        timestamp=T0 + timedelta(seconds=seconds),
        status=status,
        current_round=current_round,
        assigned_panel=assigned_panel,
    )


def test_earlier_timestamp_is_ahead_regardless_of_insertion_order():
    a = make_candidate(1, 100)
    b = make_candidate(2, 50)
    candidates = [a, b]

    assert queue_position(candidates, b) == 1
    assert queue_position(candidates, a) == 2
    assert [c.id for c in candidates_ahead(candidates, a)] == [2]


def test_equal_timestamps_keep_insertion_order():
    first = make_candidate(1, 0)
    second = make_candidate(2, 0)

    assert [c.id for c in round_queue([first, second], "gd")] == [1, 2]


def test_round_queue_only_holds_waiting_candidates_of_that_round():
    candidates = [
        make_candidate(1, 0),
        make_candidate(2, 10, status="in_queue"),
        make_candidate(3, 20, status="in_process"),
        make_candidate(4, 30, status="rejected"),
        make_candidate(5, 5, current_round="screening"),
    ]

    assert [c.id for c in round_queue(candidates, "gd")] == [1, 2]


def test_queue_position_is_zero_when_not_waiting():
    busy = make_candidate(1, 0, status="in_process")
    assert queue_position([busy], busy) == 0
    assert candidates_ahead([busy], busy) == []


def test_positions_are_a_permutation():
    candidates = [make_candidate(i, 100 - i) for i in range(1, 6)]
    positions = sorted(queue_position(candidates, c) for c in candidates)
    assert positions == [1, 2, 3, 4, 5]


def test_panel_queue_takes_unassigned_or_own_candidates():
    candidates = [
        make_candidate(1, 30),
        make_candidate(2, 10, assigned_panel=7),
        make_candidate(3, 0, assigned_panel=8),
        make_candidate(4, 20, current_round="screening", status="in_queue"),
    ]

    assert [c.id for c in panel_queue(candidates, 7)] == [2, 4, 1]
    assert first_in_queue(candidates, 7).id == 2
    assert first_in_queue([], 7) is None


@pytest.mark.parametrize("position, current_round, minutes", [
    (0, "gd", 0),
    (3, "gd", 30),
    (2, "screening", 30),
    (2, "manager", 40),
    (2, "hr", 30),
])
def test_estimate_wait_minutes(position, current_round, minutes):
    assert estimate_wait_minutes(position, current_round) == minutes


@pytest.mark.parametrize("minutes, text", [
    (0, "< 1 min"),
    (45, "~45 min"),
    (60, "~1h 0m"),
    (80, "~1h 20m"),
])
def test_format_wait(minutes, text):
    assert format_wait(minutes) == text
