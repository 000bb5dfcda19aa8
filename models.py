"""
Enumerations shared by every layer, plus the SQLAlchemy tables used by the
SQL repository backend.

Entities themselves are Pydantic models (see schemas.py); the SQL backend
stores them as JSON documents so a new field never needs a migration.
"""
import enum

from sqlalchemy import Column, Integer, String, JSON, PrimaryKeyConstraint

from database import Base


class EntityKind(str, enum.Enum):
    USER = "users"
    CANDIDATE = "candidates"
    PANEL = "panels"
    ROOM = "rooms"
    FEEDBACK = "feedback"
    CANDIDATE_FEEDBACK = "candidate_feedback"
    ROLE_PERMISSION = "role_permissions"


# Only these kinds expose delete
DELETABLE_KINDS = (EntityKind.USER, EntityKind.ROLE_PERMISSION)


class CandidateStatus(str, enum.Enum):
    REGISTERED = "registered"
    IN_QUEUE = "in_queue"
    IN_PROCESS = "in_process"
    COMPLETED = "completed"
    REJECTED = "rejected"


# Statuses that hold a place in a round queue
WAITING_STATUSES = (CandidateStatus.REGISTERED, CandidateStatus.IN_QUEUE)


class InterviewRound:
    """Known round names. Rounds are plain strings, so this list is not closed."""
    GD = "gd"
    SCREENING = "screening"
    MANAGER = "manager"
    HR = "hr"
    TECHNICAL_ROUND_2 = "technical_round_2"


class Decision(str, enum.Enum):
    NEXT = "next"
    REJECT = "reject"
    HOLD = "hold"


class Rating(str, enum.Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    POOR = "poor"


class RoomType(str, enum.Enum):
    TECHNICAL = "Technical"
    HR = "HR"
    MANAGER = "Manager"
    GENERAL = "General"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    PANEL = "panel"
    HR = "hr"
    OPERATIONS_LEAD = "operations_lead"
    OPERATIONS_MANAGER = "operations_manager"


class EventType(str, enum.Enum):
    CANDIDATE_CREATED = "CANDIDATE_CREATED"
    CANDIDATE_UPDATED = "CANDIDATE_UPDATED"
    PANEL_CREATED = "PANEL_CREATED"
    PANEL_UPDATED = "PANEL_UPDATED"
    FEEDBACK_CREATED = "FEEDBACK_CREATED"
    ROOM_CREATED = "ROOM_CREATED"
    ROOM_UPDATED = "ROOM_UPDATED"
    CANDIDATE_FEEDBACK_CREATED = "CANDIDATE_FEEDBACK_CREATED"
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"
    ROLE_PERMISSION_CREATED = "ROLE_PERMISSION_CREATED"
    ROLE_PERMISSION_UPDATED = "ROLE_PERMISSION_UPDATED"
    ROLE_PERMISSION_DELETED = "ROLE_PERMISSION_DELETED"


class EntityRecord(Base):
    __tablename__ = "entity_records"

    kind = Column(String(32), nullable=False)
    id = Column(Integer, nullable=False)
    data = Column(JSON, nullable=False)

    __table_args__ = (
        PrimaryKeyConstraint("kind", "id"),
    )


class IdSequence(Base):
    """Last id handed out per kind. Never decremented, so deleted ids stay retired."""
    __tablename__ = "id_sequences"

    kind = Column(String(32), primary_key=True)
    last_id = Column(Integer, nullable=False, default=0)
