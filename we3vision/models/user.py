"""
User model for authentication and role-based access.

Users are never hard-deleted by the API; deactivation (is_active=False)
is the supported way to revoke access.
"""

import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, func
from we3vision.core.database import Base
from we3vision.models.types import enum_values


class UserRole(str, enum.Enum):
    """Closed set of roles: standard users and administrators."""
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Authentication credentials
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)

    # Profile
    name = Column(String(50), nullable=False)
    avatar = Column(String, nullable=True)
    bio = Column(String(500), nullable=True)

    role = Column(
        Enum(UserRole, name="userrole", values_callable=enum_values),
        default=UserRole.USER,
        nullable=False,
    )
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
