"""
Authentication endpoints for registration, login and profile management.

Implements JWT-based stateless authentication:
- POST /register: Create new user account (returns a token)
- POST /login: Authenticate and receive a JWT
- GET /me: Get current user profile
- PUT /me: Update name, avatar or bio
- PUT /password: Change password (requires the current one)
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from we3vision.core.database import get_db
from we3vision.core.deps import get_current_user
from we3vision.core.exceptions import AuthenticationError, AuthorizationError
from we3vision.core.responses import success_response
from we3vision.core.security import create_access_token, verify_password
from we3vision.core.uploads import read_payload
from we3vision.crud import user as user_crud
from we3vision.models.user import User
from we3vision.schemas.common import to_payload, validate_fields
from we3vision.schemas.user import (
    PasswordChangeRequest,
    ProfileUpdateRequest,
    TokenResponse,
    UserLoginRequest,
    UserRegisterRequest,
    UserResponse,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)


def issue_token(user: User) -> dict:
    access_token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    return to_payload(TokenResponse, {"access_token": access_token, "user": user})


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: Request, db: Session = Depends(get_db)):
    """
    Register a new user account.

    New accounts always get the standard `user` role; administrators are
    promoted through /users/{id}/role or create_admin.py.
    """
    fields, _ = await read_payload(request)
    data = validate_fields(UserRegisterRequest, fields)

    user = user_crud.create(db, name=data.name, email=data.email, password=data.password)
    logger.info(f"New user registered: {user.email} (id: {user.id})")

    return success_response(issue_token(user))


@router.post("/login")
async def login(request: Request, db: Session = Depends(get_db)):
    """
    Authenticate user and return a JWT.

    Updates last_login_at timestamp.
    """
    fields, _ = await read_payload(request)
    data = validate_fields(UserLoginRequest, fields)

    user = user_crud.get_by_email(db, data.email)
    if not user or not verify_password(data.password, user.hashed_password):
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        raise AuthorizationError("Account is inactive. Please contact support.")

    user = user_crud.record_login(db, user)
    logger.info(f"User logged in: {user.email}")

    return success_response(issue_token(user))


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    """Get current user profile."""
    return success_response(to_payload(UserResponse, current_user))


@router.put("/me")
async def update_me(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    fields, _ = await read_payload(request)
    data = validate_fields(ProfileUpdateRequest, fields)

    user = user_crud.update_profile(db, current_user, data.model_dump(exclude_unset=True))
    return success_response(to_payload(UserResponse, user))


@router.put("/password")
async def change_password(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    fields, _ = await read_payload(request)
    data = validate_fields(PasswordChangeRequest, fields)

    if not verify_password(data.current_password, current_user.hashed_password):
        raise AuthenticationError("Current password is incorrect")

    user_crud.set_password(db, current_user, data.new_password)
    logger.info(f"User {current_user.id} changed password")
    return success_response(message="Password updated successfully")
