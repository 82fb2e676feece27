"""
CRUD operations for the User model.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from we3vision.core.exceptions import ConflictError, conflict_from_integrity_error
from we3vision.core.security import get_password_hash
from we3vision.models.user import User, UserRole

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "User already exists with this email"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def create(
    db: Session,
    name: str,
    email: str,
    password: str,
    role: UserRole = UserRole.USER,
) -> User:
    """
    Create a user with a bcrypt-hashed password.

    Raises:
        ConflictError: the email is already registered
    """
    email = normalize_email(email)
    if get_by_email(db, email):
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE, field="email", value=email)

    user = User(
        name=name,
        email=email,
        hashed_password=get_password_hash(password),
        role=role,
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise conflict_from_integrity_error(exc, "email", email, DUPLICATE_EMAIL_MESSAGE)
    db.refresh(user)
    return user


def get_multi(db: Session, skip: int = 0, limit: int = 10) -> Tuple[List[User], int]:
    """Page of users, newest first, plus the total count."""
    query = db.query(User)
    total = query.count()
    users = query.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit).all()
    return users, total


def record_login(db: Session, user: User) -> User:
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user


def update_profile(db: Session, user: User, changes: dict) -> User:
    """Apply profile fields (name, avatar, bio) that were actually sent."""
    for field in ("name", "avatar", "bio"):
        if field in changes:
            setattr(user, field, changes[field])
    db.commit()
    db.refresh(user)
    return user


def set_password(db: Session, user: User, new_password: str) -> User:
    user.hashed_password = get_password_hash(new_password)
    db.commit()
    db.refresh(user)
    return user


def set_active(db: Session, user: User, is_active: bool) -> User:
    user.is_active = is_active
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} {'activated' if is_active else 'deactivated'}")
    return user


def set_role(db: Session, user: User, role: UserRole) -> User:
    user.role = role
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} role set to {role.value}")
    return user
