"""
Script to create (or promote) an ADMIN user for local use.

    python -m app.scripts.create_local_admin --email admin@example.com --password secret123
"""

import asyncio
import argparse
from typing import Optional

from sqlmodel import select

from app.core.auth import hash_password
from app.core.config import Settings, get_settings
from app.core.database import Database
from app.models.user import User
from marketplace_shared.schemas.common import Role


async def create_admin(
    email: str,
    password: str,
    name: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> User:
    settings = settings or get_settings()
    db = Database.from_settings(settings)
    email = email.strip().lower()

    try:
        if settings.auto_create_tables:
            await db.create_all()

        async with db.session() as session:
            result = await session.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()

            if not user:
                user = User(
                    email=email,
                    name=name or email.split("@")[0],
                    password_hash=hash_password(password, rounds=settings.bcrypt_rounds),
                    role=Role.ADMIN.value,
                    verified=True,
                )
                session.add(user)
                print(f"Created admin user: {email}")
            elif user.role != Role.ADMIN.value:
                user.role = Role.ADMIN.value
                session.add(user)
                print(f"Promoted {email} to ADMIN.")
            else:
                print(f"User {email} is already an admin.")
    finally:
        await db.dispose()

    print("Done.")
    return user


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a local admin user.")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument("--password", required=True, help="Password for the user")
    parser.add_argument("--name", help="Display name (defaults to the email's local part)")

    args = parser.parse_args()

    asyncio.run(create_admin(args.email, args.password, args.name))
