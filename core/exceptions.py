"""
Domain exceptions.

Raised by the repository and the managers; the API layer maps each of them
to an HTTP status.
"""


class WalkInDriveException(Exception):
    """Base class for every domain error"""
    pass


# ============ Not found ============

class EntityNotFound(WalkInDriveException):
    """A referenced identifier does not exist"""
    label = "Entity"

    def __init__(self, entity_id):
        self.entity_id = entity_id
        super().__init__(f"{self.label} {entity_id} not found")


class CandidateNotFound(EntityNotFound):
    label = "Candidate"


class PanelNotFound(EntityNotFound):
    label = "Panel"


class RoomNotFound(EntityNotFound):
    label = "Room"


class FeedbackNotFound(EntityNotFound):
    label = "Feedback"


class UserNotFound(EntityNotFound):
    label = "User"


class RolePermissionNotFound(EntityNotFound):
    label = "Role permission"


# ============ Conflicts ============

class DuplicateEntity(WalkInDriveException):
    """A unique secondary key (username, serial number, room number, ...) is taken"""
    def __init__(self, field, value):
        self.field = field
        self.value = value
        super().__init__(f"{field} '{value}' is already in use")


class PanelBusy(WalkInDriveException):
    """The panel already has a current candidate"""
    def __init__(self, panel_id, candidate_id):
        self.panel_id = panel_id
        self.candidate_id = candidate_id
        super().__init__(f"Panel {panel_id} is already interviewing candidate {candidate_id}")


class QueueEmpty(WalkInDriveException):
    """No candidate is waiting for this panel"""
    pass


# ============ Pipeline ============

class InvalidRoundTransition(WalkInDriveException):
    """nextRound is not a legal successor of the current round (strict mode only)"""
    def __init__(self, current_round, next_round, allowed):
        self.current_round = current_round
        self.next_round = next_round
        self.allowed = list(allowed)
        super().__init__(
            f"Cannot move from round '{current_round}' to '{next_round}' "
            f"(allowed: {', '.join(self.allowed) or 'none'})"
        )


# ============ Auth ============

class InvalidCredentials(WalkInDriveException):
    """Unknown username or wrong password"""
    pass


class InactiveUser(WalkInDriveException):
    """The account exists but has been deactivated"""
    pass


# ============ Storage ============

class OperationNotSupported(WalkInDriveException):
    """The repository does not allow this operation for the entity kind"""
    pass
