"""
Demo data loaded at startup (SEED_DEMO_DATA=true) when the store is empty:
four role bundles, one user per role, one panel and three rooms.

Writes go straight to the repository: nobody is connected yet, so no events.
"""
import logging

from models import EntityKind, RoomType, UserRole
from schemas import PermissionFlags
from core.repository import Repository

logger = logging.getLogger(__name__)


_ALL = dict.fromkeys(PermissionFlags.model_fields, True)

ROLE_PERMISSIONS = [
    (UserRole.ADMIN, PermissionFlags(**_ALL), "Full administrative access"),
    (
        UserRole.PANEL,
        PermissionFlags(view_candidates=True, view_rooms=True, provide_feedback=True),
        "Panel member with access to interview candidates",
    ),
    (
        UserRole.OPERATIONS_LEAD,
        PermissionFlags(
            view_candidates=True, manage_candidates=True,
            view_panels=True, manage_panels=True,
            view_rooms=True, manage_rooms=True,
            view_feedback=True, view_analytics=True,
        ),
        "Operations lead with access to manage panels and rooms",
    ),
    (
        UserRole.HR,
        PermissionFlags(
            view_candidates=True, view_panels=True, view_rooms=True,
            view_feedback=True, view_analytics=True,
        ),
        "HR personnel with limited access",
    ),
]

USERS = [
    {"username": "admin", "password": "admin123", "role": UserRole.ADMIN,
     "name": "Admin User", "email": "admin@example.com", "permissions": []},
    {"username": "panel1", "password": "panel123", "role": UserRole.PANEL,
     "name": "Panel User", "email": "panel@example.com", "permissions": []},
    {"username": "hr1", "password": "hr123", "role": UserRole.HR,
     "name": "HR User", "email": "hr@example.com", "permissions": ["view_all_feedback"]},
    {"username": "ops1", "password": "ops123", "role": UserRole.OPERATIONS_LEAD,
     "name": "Operations Lead", "email": "ops@example.com", "permissions": []},
]


def seed_demo_data(repo: Repository) -> bool:
    """
    Load the demo data set.

    Returns:
        False (and does nothing) when the store already holds data
    """
    if not repo.is_empty():
        logger.info("Store not empty, skipping demo data")
        return False

    for role, flags, description in ROLE_PERMISSIONS:
        repo.create(EntityKind.ROLE_PERMISSION, {
            "role": role.value,
            "permissions": flags.model_dump_json(by_alias=True),
            "description": description,
        })

    for user in USERS:
        repo.create(EntityKind.USER, user)

    panel = repo.create(EntityKind.PANEL, {
        "name": "Panel 1",
        "room_no": "101",
        "panel_members": ["Panel User"],
    })

    repo.create(EntityKind.ROOM, {
        "room_number": "101", "capacity": 5, "floor": "1st", "type": RoomType.TECHNICAL,
        "is_occupied": True, "assigned_panels": [panel.id],
    })
    repo.create(EntityKind.ROOM, {
        "room_number": "102", "capacity": 3, "floor": "1st", "type": RoomType.HR,
    })
    repo.create(EntityKind.ROOM, {
        "room_number": "201", "capacity": 8, "floor": "2nd", "type": RoomType.MANAGER,
    })

    logger.info("Demo data loaded")
    return True
