#!/usr/bin/env python3
"""
Create the database tables and optionally grant the admin role.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --promote-admin owner@example.com

Environment Variables:
    DATABASE_URL: Target database (read from .env when present)
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv

load_dotenv()

from app.database import AsyncSessionLocal, engine  # noqa: E402
from app.models import metadata  # noqa: E402
from app.schemas.users import Role  # noqa: E402
from app.services.user_service import UserService  # noqa: E402


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    print("✓ Database initialized successfully!")


async def promote_admin(email: str) -> bool:
    """Give an existing account the admin role."""
    async with AsyncSessionLocal() as db:
        user = await UserService.get_user_by_email(db, email)
        if not user:
            return False
        await UserService.update_user(db, user["id"], {"role": Role.ADMIN.value})
    return True


async def main(args: argparse.Namespace) -> int:
    await init_db()

    if args.promote_admin:
        if not await promote_admin(args.promote_admin):
            print(f"Error: no account with email {args.promote_admin}", file=sys.stderr)
            return 1
        print(f"✓ {args.promote_admin} is now an admin")

    await engine.dispose()
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--promote-admin", metavar="EMAIL", help="Grant the admin role")
    sys.exit(asyncio.run(main(parser.parse_args())))
