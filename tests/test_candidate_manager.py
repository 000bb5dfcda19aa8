from datetime import datetime, timedelta, timezone

import pytest

from models import EntityKind
from core.candidate_manager import CandidateManager
from core.exceptions import (
    CandidateNotFound,
    DuplicateEntity,
    InvalidRoundTransition,
    PanelBusy,
    PanelNotFound,
    QueueEmpty,
)
from schemas import SheetsSyncRow

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def register(repo, events, settings, n, seconds=0, **extra):
    return CandidateManager.register_candidate(
        repo, events, settings,
        name=f"Candidate {n}",
        email=f"c{n}@example.com",
        position="Engineer",
        timestamp=T0 + timedelta(seconds=seconds),
        **extra
    )


def feedback_data(candidate, panel, decision, next_round=None):
    return {
        "candidate_id": candidate.id,
        "panel_id": panel.id,
        "round": candidate.current_round,
        "technical_skills": "good",
        "communication": "average",
        "detailed_feedback": "Solid answers",
        "decision": decision,
        "next_round": next_round,
    }


def test_register_generates_serial_and_qr(repo, events, settings):
    candidate = register(repo, events, settings, 1)

    assert candidate.serial_no == "WD-001"
    assert candidate.status == "registered"
    assert candidate.current_round == "gd"
    assert candidate.assigned_panel is None
    assert candidate.qr_code_url.endswith("data=WD-001&size=150x150")
    assert events.types == ["CANDIDATE_CREATED"]
    assert events.events[0]["data"]["serialNo"] == "WD-001"


def test_register_skips_taken_serial(repo, events, settings):
    CandidateManager.create_candidate(repo, events, {
        "serial_no": "WD-002", "name": "Manual", "email": "m@example.com", "position": "QA",
    })

    candidate = register(repo, events, settings, 1)

    assert candidate.serial_no == "WD-003"


def test_register_rejects_duplicate_email(repo, events, settings):
    register(repo, events, settings, 1)
    with pytest.raises(DuplicateEntity):
        register(repo, events, settings, 1)


def test_create_candidate_rejects_duplicate_serial(repo, events):
    data = {"serial_no": "X-1", "name": "A", "email": "a@example.com", "position": "QA"}
    CandidateManager.create_candidate(repo, events, data)
    with pytest.raises(DuplicateEntity):
        CandidateManager.create_candidate(repo, events, {**data, "email": "b@example.com"})


def test_update_candidate_never_changes_serial(repo, events, settings):
    candidate = register(repo, events, settings, 1)

    updated = CandidateManager.update_candidate(repo, events, candidate.id, {
        "serial_no": "HACKED", "status": "completed",
    })

    assert updated.serial_no == "WD-001"
    assert updated.status == "completed"
    with pytest.raises(CandidateNotFound):
        CandidateManager.update_candidate(repo, events, 99, {"name": "x"})


def test_reject_keeps_round(repo, events, settings):
    candidate = register(repo, events, settings, 1)
    panel = repo.create(EntityKind.PANEL, {"name": "P"})

    CandidateManager.record_feedback(repo, events, feedback_data(candidate, panel, "reject"))

    candidate = repo.get(EntityKind.CANDIDATE, candidate.id)
    assert candidate.status == "rejected"
    assert candidate.current_round == "gd"


def test_next_moves_candidate_and_clears_assignment(repo, events, settings):
    candidate = register(repo, events, settings, 1, current_round="manager")
    panel = repo.create(EntityKind.PANEL, {"name": "P"})
    repo.update(EntityKind.CANDIDATE, candidate.id, {"assigned_panel": panel.id})

    feedback = CandidateManager.record_feedback(repo, events, feedback_data(candidate, panel, "next", "hr"))

    candidate = repo.get(EntityKind.CANDIDATE, candidate.id)
    assert (candidate.status, candidate.current_round) == ("in_queue", "hr")
    assert candidate.assigned_panel is None
    assert feedback.id == 1
    assert "FEEDBACK_CREATED" in events.types
    assert events.types[-1] == "CANDIDATE_UPDATED"


def test_hold_requeues_in_same_round(repo, events, settings):
    candidate = register(repo, events, settings, 1, current_round="screening")
    panel = repo.create(EntityKind.PANEL, {"name": "P"})

    CandidateManager.record_feedback(repo, events, feedback_data(candidate, panel, "hold"))

    candidate = repo.get(EntityKind.CANDIDATE, candidate.id)
    assert (candidate.status, candidate.current_round) == ("in_queue", "screening")


def test_feedback_requires_existing_candidate_and_panel(repo, events, settings):
    candidate = register(repo, events, settings, 1)
    panel = repo.create(EntityKind.PANEL, {"name": "P"})

    data = feedback_data(candidate, panel, "next", "screening")
    with pytest.raises(CandidateNotFound):
        CandidateManager.record_feedback(repo, events, {**data, "candidate_id": 99})
    with pytest.raises(PanelNotFound):
        CandidateManager.record_feedback(repo, events, {**data, "panel_id": 99})
    assert repo.list(EntityKind.FEEDBACK) == []


def test_strict_mode_rejects_illegal_next_round(repo, events, settings):
    candidate = register(repo, events, settings, 1)
    panel = repo.create(EntityKind.PANEL, {"name": "P"})
    data = feedback_data(candidate, panel, "next", "hr")

    with pytest.raises(InvalidRoundTransition):
        CandidateManager.record_feedback(repo, events, data, strict_rounds=True)
    assert repo.list(EntityKind.FEEDBACK) == []

    # Free text is accepted when the check is off
    CandidateManager.record_feedback(repo, events, data)
    assert repo.get(EntityKind.CANDIDATE, candidate.id).current_round == "hr"


def test_call_next_hands_over_first_in_queue(repo, events, settings):
    late = register(repo, events, settings, 1, seconds=100)
    early = register(repo, events, settings, 2, seconds=50)
    panel = repo.create(EntityKind.PANEL, {"name": "P", "room_no": "101"})

    panel, candidate = CandidateManager.call_next_candidate(repo, events, panel.id)

    assert candidate.id == early.id
    assert candidate.status == "in_process"
    assert candidate.assigned_panel == panel.id
    assert candidate.room_no == "101"
    assert panel.current_candidate == early.id

    with pytest.raises(PanelBusy):
        CandidateManager.call_next_candidate(repo, events, panel.id)

    # Feedback frees the panel again
    CandidateManager.record_feedback(repo, events, feedback_data(candidate, panel, "reject"))
    assert repo.get(EntityKind.PANEL, panel.id).current_candidate is None

    panel, candidate = CandidateManager.call_next_candidate(repo, events, panel.id)
    assert candidate.id == late.id


def test_call_next_with_empty_queue(repo, events):
    panel = repo.create(EntityKind.PANEL, {"name": "P"})
    with pytest.raises(QueueEmpty):
        CandidateManager.call_next_candidate(repo, events, panel.id)
    with pytest.raises(PanelNotFound):
        CandidateManager.call_next_candidate(repo, events, 99)


def test_queue_status(repo, events, settings):
    register(repo, events, settings, 1, seconds=0)
    second = register(repo, events, settings, 2, seconds=10)

    status = CandidateManager.queue_status(repo, second)

    assert status.queue_position == 2
    assert [c.id for c in status.candidates_ahead] == [1]
    assert status.estimated_wait_minutes == 20
    assert status.estimated_wait == "~20 min"


def test_sync_candidates_upserts_by_email(repo, events, settings):
    register(repo, events, settings, 1)

    created, updated = CandidateManager.sync_candidates(repo, events, settings, [
        SheetsSyncRow(email="c1@example.com", name="Renamed", position="Lead", status="in_queue"),
        SheetsSyncRow(email="new@example.com", name="New", position="QA"),
    ])

    assert (created, updated) == (1, 1)
    existing = repo.find_by(EntityKind.CANDIDATE, "email", "c1@example.com")
    assert (existing.name, existing.position, existing.status) == ("Renamed", "Lead", "in_queue")
    assert repo.find_by(EntityKind.CANDIDATE, "email", "new@example.com").serial_no == "WD-002"


def test_feedback_from_another_panel_frees_the_caller(repo, events, settings):
    first = register(repo, events, settings, 1, seconds=0)
    register(repo, events, settings, 2, seconds=10)
    caller = repo.create(EntityKind.PANEL, {"name": "A", "room_no": "101"})
    other_panel = repo.create(EntityKind.PANEL, {"name": "B"})
    CandidateManager.call_next_candidate(repo, events, caller.id)
    events.events.clear()

    CandidateManager.record_feedback(repo, events, feedback_data(first, other_panel, "reject"))

    assert repo.get(EntityKind.PANEL, caller.id).current_candidate is None
    assert events.types[-1] == "PANEL_UPDATED"
    assert events.events[-1]["data"]["id"] == caller.id

    _panel, candidate = CandidateManager.call_next_candidate(repo, events, caller.id)
    assert candidate.email == "c2@example.com"


def test_requeued_candidate_leaves_interview_room(repo, events, settings):
    register(repo, events, settings, 1)
    panel = repo.create(EntityKind.PANEL, {"name": "P", "room_no": "101"})
    _panel, candidate = CandidateManager.call_next_candidate(repo, events, panel.id)
    assert candidate.room_no == "101"

    CandidateManager.record_feedback(repo, events, feedback_data(candidate, panel, "hold"))

    candidate = repo.get(EntityKind.CANDIDATE, candidate.id)
    assert candidate.status == "in_queue"
    assert candidate.room_no is None
    assert candidate.assigned_panel is None
