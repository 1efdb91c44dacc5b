#!/usr/bin/env python3
"""
Admin seeding script for Fan League

Grants admin capabilities to a user, creating the user first when no account
with the email exists. Reads credentials from environment variables.

Environment Variables:
- SEED_ADMIN_EMAIL: Admin email address (required)
- SEED_ADMIN_PASSWORD: Admin password (optional - will generate if not provided)
- SEED_ADMIN_NAME: Display name for a new user (default "Administrator")
- SEED_ADMIN_COUNTRY_CODE / SEED_ADMIN_PHONE: Phone for a new user (required
  only when the user does not exist yet)
- SEED_ADMIN_ROLE: "admin" or "super_admin" (default "super_admin")

Usage:
    python -m fanleague.scripts.seed_admin
"""

import asyncio
import os
import secrets
import string
import sys
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from fanleague.core.auth import get_password_hash
from fanleague.core.phone import normalize_country_code, normalize_phone_number
from fanleague.db.session import AsyncSessionLocal
from fanleague.models.admin import Admin
from fanleague.models.enums import AdminRole
from fanleague.repos.admin_repo import create_admin, get_admin_by_user_id
from fanleague.repos.user_repo import create_user, get_user_by_email


def generate_secure_password(length: int = 16) -> str:
    """Generate a secure random password."""
    alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
    return ''.join(secrets.choice(alphabet) for _ in range(length))


async def seed_admin(
    session: AsyncSession,
    email: str,
    password: str,
    role: AdminRole = AdminRole.SUPER_ADMIN,
    full_name: str = "Administrator",
    country_code: Optional[str] = None,
    phone_number: Optional[str] = None
) -> Tuple[Admin, bool]:
    """
    Make the user with this email an admin.

    Returns:
        (admin, created) - created is False when the user already was an admin
    """
    user = await get_user_by_email(session, email)
    if user is None:
        if not (country_code and phone_number):
            raise ValueError("A phone number is required to create the admin's user account")
        user = await create_user(
            session=session,
            full_name=full_name,
            email=email,
            country_code=normalize_country_code(country_code),
            phone_number=normalize_phone_number(phone_number),
            location="HQ"
        )

    existing = await get_admin_by_user_id(session, user.id)
    if existing:
        return existing, False

    admin = await create_admin(
        session,
        user_id=user.id,
        password_hash=get_password_hash(password),
        role=role
    )
    return admin, True


async def main() -> int:
    email = os.getenv('SEED_ADMIN_EMAIL')
    password = os.getenv('SEED_ADMIN_PASSWORD')

    if not email:
        print("ERROR: SEED_ADMIN_EMAIL environment variable is required")
        print("   Set it with: export SEED_ADMIN_EMAIL='admin@fanleague.example'")
        return 1

    if not password:
        password = generate_secure_password()
        print(f"Generated secure password: {password}")
        print("IMPORTANT: Save this password and change it after first login!")
        print()

    try:
        role = AdminRole(os.getenv('SEED_ADMIN_ROLE', AdminRole.SUPER_ADMIN.value))
    except ValueError:
        print("ERROR: SEED_ADMIN_ROLE must be 'admin' or 'super_admin'")
        return 1

    async with AsyncSessionLocal() as session:
        try:
            admin, created = await seed_admin(
                session,
                email=email,
                password=password,
                role=role,
                full_name=os.getenv('SEED_ADMIN_NAME', "Administrator"),
                country_code=os.getenv('SEED_ADMIN_COUNTRY_CODE'),
                phone_number=os.getenv('SEED_ADMIN_PHONE')
            )
        except ValueError as e:
            print(f"ERROR: {e}")
            return 1

    if created:
        print("SUCCESS: Admin created successfully!")
    else:
        print("SUCCESS: Admin already exists!")
    print(f"   Admin ID: {admin.id}")
    print(f"   Role: {admin.role.value}")
    print(f"   Email: {email}")
    return 0


def run():
    print("Fan League Admin Seeding Script")
    print("=" * 50)
    print()
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
