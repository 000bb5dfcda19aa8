"""
Pydantic models: the stored entities and the request/response bodies.

Attributes are snake_case in Python and camelCase on the wire
(serialNo, currentRound, assignedPanel, ...). Defaults declared on the entity
models are the defaults the repository fills on create.
"""
from datetime import datetime, timezone
from typing import Annotated, ClassVar, Dict, List, Literal, Optional, Tuple

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from models import (
    CandidateStatus,
    Decision,
    EntityKind,
    InterviewRound,
    Rating,
    RoomType,
    UserRole,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    # Form submissions may carry naive timestamps; treat them as UTC so
    # queue ordering never compares naive and aware values.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]
Score = Annotated[int, Field(ge=1, le=5)]
NonEmptyStr = Annotated[str, Field(min_length=1)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class PartialUpdate(CamelModel):
    """
    PATCH body: only the fields sent are applied.

    An explicit null is accepted only for the fields in `nullable_fields`;
    any other field that is sent must carry a value.
    """
    nullable_fields: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _reject_nulls(self):
        for field in self.model_fields_set:
            if getattr(self, field) is None and field not in self.nullable_fields:
                raise ValueError(f"{to_camel(field)} cannot be null")
        return self


# ============ Candidate ============

class CandidateBase(CamelModel):
    serial_no: NonEmptyStr
    name: str
    email: str
    position: str
    timestamp: UtcDatetime = Field(default_factory=utc_now)  # registration time, drives FIFO order
    status: CandidateStatus = CandidateStatus.REGISTERED
    current_round: str = InterviewRound.GD
    assigned_panel: Optional[int] = None  # panel currently interviewing the candidate
    room_no: Optional[str] = None
    qr_code_url: Optional[str] = None


class Candidate(CandidateBase):
    id: int


class CandidateRegistration(CamelModel):
    """Manual registration and form webhook body; serial number is generated."""
    name: NonEmptyStr
    email: NonEmptyStr
    position: NonEmptyStr
    timestamp: Optional[UtcDatetime] = None


class CandidateUpdate(PartialUpdate):
    """Admin override. serialNo is absent on purpose: it is immutable."""
    nullable_fields = ("assigned_panel", "room_no", "qr_code_url")

    name: Optional[str] = None
    email: Optional[str] = None
    position: Optional[str] = None
    timestamp: Optional[UtcDatetime] = None
    status: Optional[CandidateStatus] = None
    current_round: Optional[str] = None
    assigned_panel: Optional[int] = None
    room_no: Optional[str] = None
    qr_code_url: Optional[str] = None


class QueueStatusResponse(CamelModel):
    candidate: Candidate
    queue_position: int  # 0 when the candidate is not waiting
    candidates_ahead: List[Candidate]
    estimated_wait_minutes: int
    estimated_wait: str


# ============ Panel ============

class PanelBase(CamelModel):
    name: NonEmptyStr
    room_no: str = ""  # empty until the panel is assigned to a room
    is_active: bool = True
    current_candidate: Optional[int] = None
    panel_members: List[str] = Field(default_factory=list)


class Panel(PanelBase):
    id: int


class PanelUpdate(PartialUpdate):
    nullable_fields = ("current_candidate",)

    name: Optional[NonEmptyStr] = None
    room_no: Optional[str] = None
    is_active: Optional[bool] = None
    current_candidate: Optional[int] = None
    panel_members: Optional[List[str]] = None


class CallNextResponse(CamelModel):
    panel: Panel
    candidate: Candidate


# ============ Room ============

class RoomBase(CamelModel):
    room_number: NonEmptyStr
    capacity: int = Field(ge=0)
    floor: str
    type: RoomType
    is_occupied: bool = False
    assigned_panels: List[int] = Field(default_factory=list)


class Room(RoomBase):
    id: int


class RoomUpdate(PartialUpdate):
    """isOccupied is accepted for compatibility but always derived from assignedPanels."""
    room_number: Optional[NonEmptyStr] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    floor: Optional[str] = None
    type: Optional[RoomType] = None
    is_occupied: Optional[bool] = None
    assigned_panels: Optional[List[int]] = None


# ============ Feedback (panel -> candidate) ============

class FeedbackBase(CamelModel):
    candidate_id: int
    panel_id: int
    round: NonEmptyStr
    technical_skills: Rating
    communication: Rating
    detailed_feedback: str
    decision: Decision
    next_round: Optional[str] = None  # only meaningful for decision=next
    created_at: UtcDatetime = Field(default_factory=utc_now)


class Feedback(FeedbackBase):
    id: int


# ============ Candidate feedback (candidate -> process) ============

class CandidateFeedbackBase(CamelModel):
    candidate_id: int
    overall_experience: Score
    interview_difficulty: Score
    interview_fairness: Score
    interviewer_professionalism: Score
    reasons_rating: Optional[str] = None
    improvement_suggestions: Optional[str] = None
    comparison_to_others: Optional[str] = None
    additional_comments: Optional[str] = None
    anonymous: bool = False


class CandidateFeedback(CandidateFeedbackBase):
    id: int
    submitted_at: UtcDatetime = Field(default_factory=utc_now)


class RatingDistribution(CamelModel):
    excellent: int = 0
    good: int = 0
    average: int = 0
    poor: int = 0


class FeedbackAnalyticsResponse(CamelModel):
    total_responses: int
    overall: RatingDistribution
    process: RatingDistribution
    interviewer: RatingDistribution
    environment: RatingDistribution
    average_scores: Dict[str, float]


# ============ User ============

class UserBase(CamelModel):
    username: NonEmptyStr
    role: UserRole = UserRole.PANEL
    name: str
    email: str
    permissions: List[str] = Field(default_factory=list)  # per-user overrides on top of the role
    is_active: bool = True


class UserCreate(UserBase):
    password: NonEmptyStr


class User(UserCreate):
    id: int
    created_at: UtcDatetime = Field(default_factory=utc_now)


class UserPublic(UserBase):
    """User as returned by the API and in events: never carries the password."""
    id: int
    created_at: datetime


class UserUpdate(PartialUpdate):
    username: Optional[NonEmptyStr] = None
    password: Optional[NonEmptyStr] = None
    role: Optional[UserRole] = None
    name: Optional[str] = None
    email: Optional[str] = None
    permissions: Optional[List[str]] = None
    is_active: Optional[bool] = None


class LoginRequest(CamelModel):
    username: NonEmptyStr
    password: NonEmptyStr


class LoginResponse(CamelModel):
    id: int
    username: str
    name: str
    email: str
    role: UserRole


# ============ Role permissions ============

class PermissionFlags(CamelModel):
    view_candidates: bool = False
    manage_candidates: bool = False
    view_panels: bool = False
    manage_panels: bool = False
    view_rooms: bool = False
    manage_rooms: bool = False
    view_feedback: bool = False
    provide_feedback: bool = False
    view_analytics: bool = False
    manage_users: bool = False
    manage_permissions: bool = False


def serialize_permissions(value) -> str:
    """Normalize a flag bundle (JSON string or mapping) to its JSON string form."""
    try:
        if isinstance(value, str):
            flags = PermissionFlags.model_validate_json(value)
        else:
            flags = PermissionFlags.model_validate(value)
    except ValueError:
        raise ValueError("permissions must be a JSON object of boolean capability flags")
    return flags.model_dump_json(by_alias=True)


class RolePermissionCreate(CamelModel):
    role: NonEmptyStr
    permissions: str  # serialized PermissionFlags
    description: Optional[str] = None

    @field_validator("permissions", mode="before")
    @classmethod
    def _normalize_permissions(cls, value):
        return serialize_permissions(value)


class RolePermission(RolePermissionCreate):
    id: int
    created_at: UtcDatetime = Field(default_factory=utc_now)
    updated_at: UtcDatetime = Field(default_factory=utc_now)


class RolePermissionUpdate(PartialUpdate):
    nullable_fields = ("description",)

    role: Optional[NonEmptyStr] = None
    permissions: Optional[str] = None
    description: Optional[str] = None

    @field_validator("permissions", mode="before")
    @classmethod
    def _normalize_permissions(cls, value):
        if value is None:
            return value
        return serialize_permissions(value)


# ============ Google Sheets integration ============

class SheetsSyncRow(CamelModel):
    email: NonEmptyStr
    name: NonEmptyStr
    position: NonEmptyStr
    status: Optional[CandidateStatus] = None
    current_round: Optional[str] = None
    timestamp: Optional[UtcDatetime] = None


class SheetsControlRequest(CamelModel):
    action: Literal["init", "sync"]
    candidates: Optional[List[SheetsSyncRow]] = None


class SheetsControlResponse(CamelModel):
    success: bool
    message: str


# ============ Misc responses ============

class DeleteResponse(CamelModel):
    success: bool


class NextRoundsResponse(CamelModel):
    current_round: str
    options: List[str]


class DashboardStats(CamelModel):
    total_candidates: int
    active_panels: int
    in_queue: int
    processed: int


ENTITY_TYPES = {
    EntityKind.USER: User,
    EntityKind.CANDIDATE: Candidate,
    EntityKind.PANEL: Panel,
    EntityKind.ROOM: Room,
    EntityKind.FEEDBACK: Feedback,
    EntityKind.CANDIDATE_FEEDBACK: CandidateFeedback,
    EntityKind.ROLE_PERMISSION: RolePermission,
}
