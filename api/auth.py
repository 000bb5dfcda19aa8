"""
Auth API Endpoints

Login only checks the credentials and returns the profile; no session or
token is issued, the client keeps the profile itself.
"""
from fastapi import APIRouter, Depends, HTTPException
import logging

from database import get_repository
from schemas import LoginRequest, LoginResponse
from core.exceptions import InactiveUser, InvalidCredentials
from core.repository import Repository
from core.user_manager import UserManager

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/login", response_model=LoginResponse)
def login(credentials: LoginRequest, repo: Repository = Depends(get_repository)):
    """
    Returns:
        id, username, name, email, role

    Errors:
        401 unknown user / wrong password, 403 deactivated account
    """
    try:
        user = UserManager.authenticate(repo, credentials.username, credentials.password)
        return LoginResponse(
            id=user.id,
            username=user.username,
            name=user.name,
            email=user.email,
            role=user.role
        )

    except InvalidCredentials:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    except InactiveUser:
        raise HTTPException(status_code=403, detail="Account is inactive")
