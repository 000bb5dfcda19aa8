"""
Candidate Manager: the candidate pipeline

Responsibilities:
1. Register candidates (serial number + QR code URL)
2. Record panel feedback and move the candidate to its next status/round
3. Hand the next waiting candidate to a panel
4. Bulk upsert from the registration sheet

Status changes only happen here (feedback decisions, call-next) or through
an explicit admin override (update_candidate).
"""
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple
import logging

from models import CandidateStatus, Decision, EntityKind, EventType, InterviewRound
from schemas import Candidate, Feedback, Panel, QueueStatusResponse, SheetsSyncRow, utc_now
from core.broadcaster import Broadcaster
from core.exceptions import (
    CandidateNotFound,
    DuplicateEntity,
    InvalidRoundTransition,
    PanelBusy,
    PanelNotFound,
    QueueEmpty,
)
from core.repository import Repository
from services.naming_service import build_qr_code_url, format_serial_no
from services.pipeline_service import is_legal_next_round, next_round_options, resolve_decision
from services.queue_service import (
    candidates_ahead,
    estimate_wait_minutes,
    first_in_queue,
    format_wait,
    queue_position,
)

logger = logging.getLogger(__name__)


class CandidateManager:
    """Candidate lifecycle"""

    @staticmethod
    def next_serial_no(repo: Repository, prefix: str) -> str:
        """
        Serial number for the next registration: running count + 1.

        A serial inserted by hand can already hold that number; the counter
        is bumped until a free one is found.
        """
        sequence = len(repo.list(EntityKind.CANDIDATE)) + 1
        serial_no = format_serial_no(sequence, prefix)
        while repo.find_by(EntityKind.CANDIDATE, "serial_no", serial_no):
            sequence += 1
            serial_no = format_serial_no(sequence, prefix)
            logger.warning(f"Serial number collision detected, regenerating: {serial_no}")
        return serial_no

    @staticmethod
    def register_candidate(
        repo: Repository,
        broadcaster: Broadcaster,
        settings,
        *,
        name: str,
        email: str,
        position: str,
        timestamp: Optional[datetime] = None,
        status: Optional[CandidateStatus] = None,
        current_round: Optional[str] = None
    ) -> Candidate:
        """
        Register a walk-in candidate (manual desk, form webhook, sheet sync).

        Flow:
        1. Reject a second registration with the same email
        2. Generate the serial number and its QR code URL
        3. Create the candidate (status registered, round gd unless given)

        Raises:
            DuplicateEntity: email already registered
        """
        # 1. One active registration per email
        if repo.find_by(EntityKind.CANDIDATE, "email", email):
            raise DuplicateEntity("email", email)

        # 2. Serial number + QR
        serial_no = CandidateManager.next_serial_no(repo, settings.serial_prefix)
        qr_code_url = build_qr_code_url(serial_no, settings.qr_code_url_template)

        # 3. Create
        candidate = repo.create(EntityKind.CANDIDATE, {
            "serial_no": serial_no,
            "name": name,
            "email": email,
            "position": position,
            "timestamp": timestamp or utc_now(),
            "status": status or CandidateStatus.REGISTERED,
            "current_round": current_round or InterviewRound.GD,
            "assigned_panel": None,
            "room_no": None,
            "qr_code_url": qr_code_url,
        })

        logger.info(f"Registered candidate {candidate.id} as {serial_no}")
        broadcaster.publish(EventType.CANDIDATE_CREATED, candidate)
        return candidate

    @staticmethod
    def create_candidate(repo: Repository, broadcaster: Broadcaster, data: Dict[str, Any]) -> Candidate:
        """
        Insert a fully specified candidate (serial number supplied by the caller).

        Raises:
            DuplicateEntity: serial number already taken
        """
        if repo.find_by(EntityKind.CANDIDATE, "serial_no", data["serial_no"]):
            raise DuplicateEntity("serialNo", data["serial_no"])

        candidate = repo.create(EntityKind.CANDIDATE, data)
        logger.info(f"Created candidate {candidate.id} ({candidate.serial_no})")
        broadcaster.publish(EventType.CANDIDATE_CREATED, candidate)
        return candidate

    @staticmethod
    def update_candidate(
        repo: Repository,
        broadcaster: Broadcaster,
        candidate_id: int,
        changes: Dict[str, Any]
    ) -> Candidate:
        """
        Admin override: shallow merge of any candidate field except serial_no.

        Raises:
            CandidateNotFound: candidate does not exist
            DuplicateEntity: new email belongs to another candidate
        """
        if repo.get(EntityKind.CANDIDATE, candidate_id) is None:
            raise CandidateNotFound(candidate_id)

        changes = {key: value for key, value in changes.items() if key != "serial_no"}
        if changes.get("email"):
            other = repo.find_by(EntityKind.CANDIDATE, "email", changes["email"])
            if other and other.id != candidate_id:
                raise DuplicateEntity("email", changes["email"])

        candidate = repo.update(EntityKind.CANDIDATE, candidate_id, changes)
        broadcaster.publish(EventType.CANDIDATE_UPDATED, candidate)
        return candidate

    @staticmethod
    def record_feedback(
        repo: Repository,
        broadcaster: Broadcaster,
        data: Dict[str, Any],
        strict_rounds: bool = False
    ) -> Feedback:
        """
        Store a panel's feedback and apply its decision to the candidate.

        Flow:
        1. Check candidate and panel exist
        2. (strict mode) check nextRound is a legal successor
        3. Store the feedback
        4. Move the candidate: new status/round, assigned panel and room cleared
        5. Free every panel that still has this candidate as its current one

        Events:
            FEEDBACK_CREATED, CANDIDATE_UPDATED, PANEL_UPDATED per freed panel

        Raises:
            CandidateNotFound / PanelNotFound
            InvalidRoundTransition: strict mode and nextRound not allowed
        """
        # 1. Referenced entities
        candidate = repo.get(EntityKind.CANDIDATE, data["candidate_id"])
        if candidate is None:
            raise CandidateNotFound(data["candidate_id"])
        panel: Panel = repo.get(EntityKind.PANEL, data["panel_id"])
        if panel is None:
            raise PanelNotFound(data["panel_id"])

        decision = Decision(data["decision"])
        next_round = data.get("next_round")

        # 2. Round progression check, opt-in
        if (
            strict_rounds
            and decision == Decision.NEXT
            and next_round
            and not is_legal_next_round(candidate.current_round, next_round)
        ):
            raise InvalidRoundTransition(
                candidate.current_round,
                next_round,
                next_round_options(candidate.current_round)
            )

        # 3. Store feedback
        feedback = repo.create(EntityKind.FEEDBACK, data)

        # 4. Transition
        status, current_round = resolve_decision(decision, candidate.current_round, next_round)
        candidate = repo.update(EntityKind.CANDIDATE, candidate.id, {
            "status": status,
            "current_round": current_round,
            "assigned_panel": None,
            "room_no": None,
        })
        logger.info(
            f"Feedback {feedback.id} on candidate {candidate.id}: {decision.value} "
            f"-> status={candidate.status}, round={candidate.current_round}"
        )

        broadcaster.publish(EventType.FEEDBACK_CREATED, feedback)
        broadcaster.publish(EventType.CANDIDATE_UPDATED, candidate)

        # 5. Free the interviewing panel, whichever panel submitted the feedback
        for busy in repo.filter_by(EntityKind.PANEL, "current_candidate", candidate.id):
            freed = repo.update(EntityKind.PANEL, busy.id, {"current_candidate": None})
            broadcaster.publish(EventType.PANEL_UPDATED, freed)

        return feedback

    @staticmethod
    def call_next_candidate(repo: Repository, broadcaster: Broadcaster, panel_id: int) -> Tuple[Panel, Candidate]:
        """
        Give the panel the first candidate of its queue.

        The candidate becomes in_process, assigned to the panel and sent to
        the panel's room.

        Raises:
            PanelNotFound: panel does not exist
            PanelBusy: the panel already has a current candidate
            QueueEmpty: nobody is waiting for this panel
        """
        panel: Panel = repo.get(EntityKind.PANEL, panel_id)
        if panel is None:
            raise PanelNotFound(panel_id)
        if panel.current_candidate is not None:
            raise PanelBusy(panel_id, panel.current_candidate)

        head = first_in_queue(repo.list(EntityKind.CANDIDATE), panel_id)
        if head is None:
            raise QueueEmpty(f"No candidates waiting for panel {panel_id}")

        panel = repo.update(EntityKind.PANEL, panel_id, {"current_candidate": head.id})
        candidate = repo.update(EntityKind.CANDIDATE, head.id, {
            "status": CandidateStatus.IN_PROCESS,
            "assigned_panel": panel_id,
            "room_no": panel.room_no or None,
        })

        logger.info(f"Panel {panel_id} called candidate {candidate.id} ({candidate.serial_no})")
        broadcaster.publish(EventType.PANEL_UPDATED, panel)
        broadcaster.publish(EventType.CANDIDATE_UPDATED, candidate)
        return panel, candidate

    @staticmethod
    def sync_candidates(
        repo: Repository,
        broadcaster: Broadcaster,
        settings,
        rows: Iterable[SheetsSyncRow]
    ) -> Tuple[int, int]:
        """
        Upsert candidates from the registration sheet, matched by email.

        Existing candidates get name/position (and status/round when the row
        carries them); unknown emails are registered.

        Returns:
            (created, updated) counts
        """
        created = updated = 0

        for row in rows:
            existing = repo.find_by(EntityKind.CANDIDATE, "email", row.email)
            if existing:
                changes: Dict[str, Any] = {"name": row.name, "position": row.position}
                if row.status:
                    changes["status"] = row.status
                if row.current_round:
                    changes["current_round"] = row.current_round
                candidate = repo.update(EntityKind.CANDIDATE, existing.id, changes)
                broadcaster.publish(EventType.CANDIDATE_UPDATED, candidate)
                updated += 1
            else:
                CandidateManager.register_candidate(
                    repo,
                    broadcaster,
                    settings,
                    name=row.name,
                    email=row.email,
                    position=row.position,
                    timestamp=row.timestamp,
                    status=row.status,
                    current_round=row.current_round
                )
                created += 1

        logger.info(f"Sheet sync finished: {created} created, {updated} updated")
        return created, updated

    @staticmethod
    def get_candidate(repo: Repository, candidate_id: int) -> Candidate:
        candidate = repo.get(EntityKind.CANDIDATE, candidate_id)
        if candidate is None:
            raise CandidateNotFound(candidate_id)
        return candidate

    @staticmethod
    def queue_status(repo: Repository, candidate: Candidate) -> QueueStatusResponse:
        """Live queue view for one candidate."""
        candidates = repo.list(EntityKind.CANDIDATE)
        position = queue_position(candidates, candidate)
        minutes = estimate_wait_minutes(position, candidate.current_round)
        return QueueStatusResponse(
            candidate=candidate,
            queue_position=position,
            candidates_ahead=candidates_ahead(candidates, candidate),
            estimated_wait_minutes=minutes,
            estimated_wait=format_wait(minutes),
        )
