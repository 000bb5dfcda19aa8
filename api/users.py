"""
User API Endpoints

Passwords are accepted on create/update but never returned.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
import logging

from database import get_repository
from models import EntityKind
from schemas import DeleteResponse, UserCreate, UserPublic, UserUpdate
from core.broadcaster import Broadcaster, get_broadcaster
from core.exceptions import DuplicateEntity, UserNotFound
from core.repository import Repository
from core.user_manager import UserManager, to_public

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[UserPublic])
def list_users(repo: Repository = Depends(get_repository)):
    return [to_public(user) for user in repo.list(EntityKind.USER)]


@router.get("/{user_id}", response_model=UserPublic)
def get_user(user_id: int, repo: Repository = Depends(get_repository)):
    try:
        return UserManager.get_user(repo, user_id)
    except UserNotFound:
        raise HTTPException(status_code=404, detail="User not found")


@router.post("", response_model=UserPublic, status_code=201)
def create_user(
    user_data: UserCreate,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    try:
        return UserManager.create_user(repo, broadcaster, user_data.model_dump())

    except DuplicateEntity as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create user: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.patch("/{user_id}", response_model=UserPublic)
def update_user(
    user_id: int,
    updates: UserUpdate,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    try:
        return UserManager.update_user(repo, broadcaster, user_id, updates.model_dump(exclude_unset=True))

    except UserNotFound:
        raise HTTPException(status_code=404, detail="User not found")
    except DuplicateEntity as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update user: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/{user_id}", response_model=DeleteResponse)
def delete_user(
    user_id: int,
    repo: Repository = Depends(get_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
):
    """Delete a user. Panels listing the user's name keep it as plain text."""
    try:
        UserManager.delete_user(repo, broadcaster, user_id)
        return DeleteResponse(success=True)

    except UserNotFound:
        raise HTTPException(status_code=404, detail="User not found")
