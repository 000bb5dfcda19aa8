"""
User Manager: portal accounts, login and role permissions

Passwords are stored and compared in plaintext, as the portal always has.
Hashing would change the stored format and the login contract, so it is
left as a deliberate follow-up; the password never leaves the server
(responses and events use UserPublic).
"""
from typing import Any, Dict
import hmac
import logging

from models import EntityKind, EventType
from schemas import RolePermission, User, UserPublic, utc_now
from core.broadcaster import Broadcaster
from core.exceptions import (
    DuplicateEntity,
    InactiveUser,
    InvalidCredentials,
    RolePermissionNotFound,
    UserNotFound,
)
from core.repository import Repository

logger = logging.getLogger(__name__)


def to_public(user: User) -> UserPublic:
    return UserPublic.model_validate(user.model_dump(exclude={"password"}))


class UserManager:
    """Portal users"""

    @staticmethod
    def authenticate(repo: Repository, username: str, password: str) -> User:
        """
        Check a username/password pair.

        Raises:
            InvalidCredentials: unknown user or wrong password
            InactiveUser: the account is deactivated
        """
        user: User = repo.find_by(EntityKind.USER, "username", username)
        if user is None or not hmac.compare_digest(user.password.encode(), password.encode()):
            logger.info(f"Failed login for '{username}'")
            raise InvalidCredentials("Invalid credentials")
        if not user.is_active:
            raise InactiveUser(f"User {username} is inactive")

        logger.info(f"User {user.id} ({username}) logged in")
        return user

    @staticmethod
    def create_user(repo: Repository, broadcaster: Broadcaster, data: Dict[str, Any]) -> UserPublic:
        """
        Raises:
            DuplicateEntity: username already taken
        """
        if repo.find_by(EntityKind.USER, "username", data["username"]):
            raise DuplicateEntity("username", data["username"])

        user = to_public(repo.create(EntityKind.USER, data))
        logger.info(f"Created user {user.id} ({user.username}, role={user.role})")
        broadcaster.publish(EventType.USER_CREATED, user)
        return user

    @staticmethod
    def update_user(repo: Repository, broadcaster: Broadcaster, user_id: int, changes: Dict[str, Any]) -> UserPublic:
        """
        Raises:
            UserNotFound: user does not exist
            DuplicateEntity: new username belongs to another user
        """
        if repo.get(EntityKind.USER, user_id) is None:
            raise UserNotFound(user_id)

        if changes.get("username"):
            other = repo.find_by(EntityKind.USER, "username", changes["username"])
            if other and other.id != user_id:
                raise DuplicateEntity("username", changes["username"])

        user = to_public(repo.update(EntityKind.USER, user_id, changes))
        broadcaster.publish(EventType.USER_UPDATED, user)
        return user

    @staticmethod
    def delete_user(repo: Repository, broadcaster: Broadcaster, user_id: int) -> None:
        """
        Panels keep member names as plain strings, so nothing else is touched.

        Raises:
            UserNotFound: user does not exist
        """
        if not repo.delete(EntityKind.USER, user_id):
            raise UserNotFound(user_id)

        logger.info(f"Deleted user {user_id}")
        broadcaster.publish(EventType.USER_DELETED, {"id": user_id})

    @staticmethod
    def get_user(repo: Repository, user_id: int) -> UserPublic:
        user = repo.get(EntityKind.USER, user_id)
        if user is None:
            raise UserNotFound(user_id)
        return to_public(user)


class RolePermissionManager:
    """Global capability flags per role"""

    @staticmethod
    def create(repo: Repository, broadcaster: Broadcaster, data: Dict[str, Any]) -> RolePermission:
        """
        Raises:
            DuplicateEntity: role already has a permission bundle
        """
        if repo.find_by(EntityKind.ROLE_PERMISSION, "role", data["role"]):
            raise DuplicateEntity("role", data["role"])

        role_permission = repo.create(EntityKind.ROLE_PERMISSION, data)
        logger.info(f"Created permissions for role {role_permission.role}")
        broadcaster.publish(EventType.ROLE_PERMISSION_CREATED, role_permission)
        return role_permission

    @staticmethod
    def update(repo: Repository, broadcaster: Broadcaster, role_permission_id: int, changes: Dict[str, Any]) -> RolePermission:
        """
        updated_at is refreshed on every update.

        Raises:
            RolePermissionNotFound: id does not exist
            DuplicateEntity: new role name belongs to another bundle
        """
        if repo.get(EntityKind.ROLE_PERMISSION, role_permission_id) is None:
            raise RolePermissionNotFound(role_permission_id)

        if changes.get("role"):
            other = repo.find_by(EntityKind.ROLE_PERMISSION, "role", changes["role"])
            if other and other.id != role_permission_id:
                raise DuplicateEntity("role", changes["role"])

        role_permission = repo.update(
            EntityKind.ROLE_PERMISSION,
            role_permission_id,
            {**changes, "updated_at": utc_now()}
        )
        broadcaster.publish(EventType.ROLE_PERMISSION_UPDATED, role_permission)
        return role_permission

    @staticmethod
    def delete(repo: Repository, broadcaster: Broadcaster, role_permission_id: int) -> None:
        """
        Raises:
            RolePermissionNotFound: id does not exist
        """
        if not repo.delete(EntityKind.ROLE_PERMISSION, role_permission_id):
            raise RolePermissionNotFound(role_permission_id)

        logger.info(f"Deleted role permission {role_permission_id}")
        broadcaster.publish(EventType.ROLE_PERMISSION_DELETED, {"id": role_permission_id})

    @staticmethod
    def get_by_role(repo: Repository, role: str) -> RolePermission:
        role_permission = repo.find_by(EntityKind.ROLE_PERMISSION, "role", role)
        if role_permission is None:
            raise RolePermissionNotFound(f"for role {role}")
        return role_permission
