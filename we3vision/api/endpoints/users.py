"""
User administration endpoints (admin only).
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from we3vision.core.database import get_db
from we3vision.core.deps import get_admin_user
from we3vision.core.exceptions import NotFoundError, ValidationError
from we3vision.core.responses import build_pagination, normalize_page, success_response
from we3vision.core.uploads import read_payload
from we3vision.crud import user as user_crud
from we3vision.models.user import User
from we3vision.schemas.common import to_payload, validate_fields
from we3vision.schemas.user import RoleUpdateRequest, UserResponse

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger(__name__)


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = user_crud.get_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


@router.get("/")
def list_users(
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    """List all users in the system."""
    page, limit, skip = normalize_page(page, limit)
    users, total = user_crud.get_multi(db, skip=skip, limit=limit)
    return success_response(
        [to_payload(UserResponse, u) for u in users],
        pagination=build_pagination(page, limit, total),
    )


@router.put("/{user_id}/toggle-active")
def toggle_active(
    user_id: int,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    """Deactivate an active account or reactivate an inactive one."""
    user = _get_user_or_404(db, user_id)
    if user.id == admin_user.id and user.is_active:
        raise ValidationError("You cannot deactivate your own account")

    user = user_crud.set_active(db, user, not user.is_active)
    return success_response(to_payload(UserResponse, user))


@router.put("/{user_id}/role")
async def update_role(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    fields, _ = await read_payload(request)
    data = validate_fields(RoleUpdateRequest, fields)

    user = _get_user_or_404(db, user_id)
    user = user_crud.set_role(db, user, data.role)
    logger.info(f"Admin {admin_user.id} set role of user {user.id} to {data.role.value}")
    return success_response(to_payload(UserResponse, user))
