"""
Seed Admin User

Creates an admin account for reviewing applications. Public registration
cannot create admins unless ALLOW_ADMIN_REGISTRATION is set, so run this
once per environment.

Usage:
    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD='...' python scripts/seed_admin.py

Optional:
    ADMIN_FIRST_NAME, ADMIN_LAST_NAME
"""

import asyncio
import os
import sys

from admissions.core.database import async_session_maker, close_db
from admissions.core.security import hash_password
from admissions.modules.users.models import UserRole
from admissions.modules.users.repository import UserRepository


async def seed_admin() -> int:
    """Create the admin user if it doesn't exist."""
    email = os.environ.get("ADMIN_EMAIL", "").strip().lower()
    password = os.environ.get("ADMIN_PASSWORD", "")
    first_name = os.environ.get("ADMIN_FIRST_NAME", "Admissions")
    last_name = os.environ.get("ADMIN_LAST_NAME", "Admin")

    if not email or len(password) < 8:
        print("ADMIN_EMAIL and ADMIN_PASSWORD (at least 8 characters) are required.")
        return 1

    async with async_session_maker() as db:
        existing_user = await UserRepository.get_by_email(db, email)

        if existing_user:
            print(f"User already exists: {email}")
            print(f"  ID: {existing_user.id}")
            print(f"  Role: {existing_user.role.value}")
            return 0

        admin_user = await UserRepository.create(
            db,
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=UserRole.ADMIN,
        )

        print("Admin created successfully!")
        print(f"  Email: {email}")
        print(f"  Name: {first_name} {last_name}")
        print(f"  ID: {admin_user.id}")

    await close_db()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_admin()))
