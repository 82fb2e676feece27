"""
FastAPI dependencies for authentication and authorization.

Handlers receive the resolved user (or None) as an explicit parameter:

- get_current_user: mandatory auth; missing/invalid token is a 401.
- get_optional_user: best-effort auth; never fails the request.
- require_roles(*roles): role gate on top of mandatory auth; 403.
"""

import logging
from typing import Callable, Iterable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from we3vision.core.database import get_db
from we3vision.core.exceptions import AuthenticationError, AuthorizationError
from we3vision.core.security import JWTError, decode_token
from we3vision.models.user import User, UserRole

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme (Authorization: Bearer <token>).
# auto_error is off so a missing header renders through our own envelope.
security = HTTPBearer(auto_error=False)


def resolve_user(db: Session, token: str) -> Optional[User]:
    """
    Decode a bearer token and load its user.

    Returns None when the token is invalid or expired, carries no subject,
    or names a user that no longer exists. Activity is not checked here.
    """
    try:
        payload = decode_token(token)
    except JWTError:
        return None

    user_id = payload.get("sub")
    if user_id is None:
        return None
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        return None

    return db.query(User).filter(User.id == user_id).first()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Extract and validate the current user from the JWT bearer token.

    Raises:
        AuthenticationError (401): missing/invalid/expired token, unknown user
        AuthorizationError (403): the account is deactivated
    """
    if credentials is None:
        raise AuthenticationError()

    user = resolve_user(db, credentials.credentials)
    if user is None:
        raise AuthenticationError()

    if not user.is_active:
        raise AuthorizationError("User account is inactive")

    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Resolve the caller if a valid token is present, otherwise None.

    Used by public routes that personalize their response (e.g. `isLiked`).
    """
    if credentials is None:
        return None

    user = resolve_user(db, credentials.credentials)
    if user is None or not user.is_active:
        return None
    return user


def check_role(user: User, roles: Iterable[UserRole]) -> None:
    """Raise AuthorizationError unless the user's role is one of `roles`."""
    allowed = {UserRole(role) for role in roles}
    if user.role not in allowed:
        role = user.role.value if isinstance(user.role, UserRole) else user.role
        logger.info(f"User {user.id} with role {role} denied access")
        raise AuthorizationError(f"User role {role} is not authorized to access this route")


def require_roles(*roles: UserRole) -> Callable[..., User]:
    """
    Build a dependency that requires an authenticated user holding one of `roles`.

    Usage:
        @router.post("/")
        def create(user: User = Depends(require_roles(UserRole.ADMIN))): ...
    """
    def dependency(user: User = Depends(get_current_user)) -> User:
        check_role(user, roles)
        return user

    return dependency


get_admin_user = require_roles(UserRole.ADMIN)
