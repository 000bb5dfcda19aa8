"""
Role Permission API Endpoints

One bundle of 11 capability flags per role, stored as a JSON string.
The body may send `permissions` either as that string or as an object.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
import logging

from database import get_repository
from models import EntityKind
from schemas import DeleteResponse, RolePermission, RolePermissionCreate, RolePermissionUpdate
from core.broadcaster import Broadcaster, get_broadcaster
from core.exceptions import DuplicateEntity, RolePermissionNotFound
from core.repository import Repository
from core.user_manager import RolePermissionManager

router = APIRouter(prefix="/api/role-permissions", tags=["role-permissions"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[RolePermission])
def list_role_permissions(repo: Repository = Depends(get_repository)):
    return repo.list(EntityKind.ROLE_PERMISSION)


@router.get("/role/{role}", response_model=RolePermission)
def get_role_permission_by_role(role: str, repo: Repository = Depends(get_repository)):
    try:
        return RolePermissionManager.get_by_role(repo, role)
    except RolePermissionNotFound:
        raise HTTPException(status_code=404, detail="Role permission not found")


@router.get("/{role_permission_id}", response_model=RolePermission)
def get_role_permission(role_permission_id: int, repo: Repository = Depends(get_repository)):
    role_permission = repo.get(EntityKind.ROLE_PERMISSION, role_permission_id)
    if not role_permission:
        raise HTTPException(status_code=404, detail="Role permission not found")
    return role_permission


@router.post("", response_model=RolePermission, status_code=201)
def create_role_permission(
    role_permission_data: RolePermissionCreate,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    try:
        return RolePermissionManager.create(repo, broadcaster, role_permission_data.model_dump())

    except DuplicateEntity as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create role permission: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.patch("/{role_permission_id}", response_model=RolePermission)
def update_role_permission(
    role_permission_id: int,
    updates: RolePermissionUpdate,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    try:
        return RolePermissionManager.update(
            repo, broadcaster, role_permission_id, updates.model_dump(exclude_unset=True)
        )

    except RolePermissionNotFound:
        raise HTTPException(status_code=404, detail="Role permission not found")
    except DuplicateEntity as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update role permission: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/{role_permission_id}", response_model=DeleteResponse)
def delete_role_permission(
    role_permission_id: int,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    try:
        RolePermissionManager.delete(repo, broadcaster, role_permission_id)
        return DeleteResponse(success=True)

    except RolePermissionNotFound:
        raise HTTPException(status_code=404, detail="Role permission not found")
