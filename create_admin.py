"""
Script to create an administrator account, or promote an existing user.

Run this script from the project root:
    python create_admin.py --email admin@we3vision.com --name "Site Admin"

The password is prompted for (or read from ADMIN_PASSWORD).
"""

import argparse
import getpass
import os
import sys

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from we3vision.core.database import SessionLocal
from we3vision.core.exceptions import ValidationError
from we3vision.crud import user as user_crud
from we3vision.models.user import UserRole
from we3vision.schemas.common import validate_fields
from we3vision.schemas.user import UserRegisterRequest


def create_admin(db, email: str, name: str, password: str = None):
    """
    Ensure `email` belongs to an active administrator.

    An existing account is promoted and reactivated; its password is left
    untouched. Otherwise a new admin account is created.

    Returns:
        (user, created) tuple
    """
    existing = user_crud.get_by_email(db, email)
    if existing:
        if existing.role != UserRole.ADMIN:
            user_crud.set_role(db, existing, UserRole.ADMIN)
        if not existing.is_active:
            user_crud.set_active(db, existing, True)
        return existing, False

    data = validate_fields(UserRegisterRequest, {"name": name, "email": email, "password": password})
    user = user_crud.create(db, name=data.name, email=data.email, password=data.password, role=UserRole.ADMIN)
    return user, True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create or promote a We3Vision administrator")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", default="Administrator")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        password = None
        if not user_crud.get_by_email(db, args.email):
            password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Password: ")

        try:
            user, created = create_admin(db, args.email, args.name, password)
        except ValidationError as e:
            print(f"\n❌ {e.message}")
            for error in e.errors or []:
                print(f"  - {error['field']}: {error['message']}")
            return 1

        if created:
            print(f"\n✅ Created admin {user.email} (id: {user.id})")
        else:
            print(f"\n✅ {user.email} is now an active admin (id: {user.id})")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
