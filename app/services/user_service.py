"""User service: persistence of user and credential records."""

from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictException
from app.models.ai_messages import ai_messages
from app.models.base import LIKE_ESCAPE, contains_pattern, utcnow
from app.models.favorites import favorites
from app.models.subscriptions import subscriptions
from app.models.trips import trips
from app.models.users import users

logger = structlog.get_logger(__name__)


class UserService:
    """Service for user operations.

    Reads return ``None`` when nothing matches; only writes raise.
    """

    @staticmethod
    async def _fetch_one(db: AsyncSession, query: Any) -> dict | None:
        result = await db.execute(query)
        user = result.mappings().first()
        return dict(user) if user else None

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: UUID) -> dict | None:
        """Get user by internal ID."""
        return await UserService._fetch_one(db, select(users).where(users.c.id == user_id))

    @staticmethod
    async def get_user_by_email(db: AsyncSession, email: str) -> dict | None:
        """Get user by email (exact, case-sensitive match)."""
        return await UserService._fetch_one(db, select(users).where(users.c.email == email))

    @staticmethod
    async def get_user_by_phone(db: AsyncSession, phone_number: str) -> dict | None:
        """Get user by phone number."""
        return await UserService._fetch_one(
            db, select(users).where(users.c.phone_number == phone_number)
        )

    @staticmethod
    async def get_user_by_verification_token(db: AsyncSession, token: str) -> dict | None:
        """Get user holding a verification token, pending or already consumed."""
        return await UserService._fetch_one(
            db,
            select(users).where(
                or_(
                    users.c.verification_token == token,
                    users.c.last_verification_token == token,
                )
            ),
        )

    @staticmethod
    async def get_user_by_reset_code(
        db: AsyncSession,
        email: str,
        reset_code: str,
        now: datetime | None = None,
    ) -> dict | None:
        """Get user whose reset code matches and has not expired."""
        now = now or utcnow()
        return await UserService._fetch_one(
            db,
            select(users).where(
                users.c.email == email,
                users.c.reset_code == reset_code,
                users.c.reset_code_expires > now,
            ),
        )

    @staticmethod
    async def get_user_by_phone_and_reset_code(
        db: AsyncSession,
        phone_number: str,
        reset_code: str,
        now: datetime | None = None,
    ) -> dict | None:
        """Get user by phone whose reset code matches and has not expired."""
        now = now or utcnow()
        return await UserService._fetch_one(
            db,
            select(users).where(
                users.c.phone_number == phone_number,
                users.c.reset_code == reset_code,
                users.c.reset_code_expires > now,
            ),
        )

    @staticmethod
    async def phone_taken_by_other(db: AsyncSession, phone_number: str, user_id: UUID) -> bool:
        """Check whether another account already uses the phone number."""
        query = select(users.c.id).where(
            users.c.phone_number == phone_number,
            users.c.id != user_id,
        )
        result = await db.execute(query)
        return result.first() is not None

    @staticmethod
    async def _raise_duplicate(db: AsyncSession, values: dict[str, Any], exc: IntegrityError) -> None:
        """Translate a unique-constraint violation into a distinguishable conflict."""
        email = values.get("email")
        if email and await UserService.get_user_by_email(db, email):
            raise ConflictException("Email already in use", code="EMAIL_TAKEN") from exc
        phone_number = values.get("phone_number")
        if phone_number and await UserService.get_user_by_phone(db, phone_number):
            raise ConflictException(
                "Phone number already used by another account",
                code="PHONE_NUMBER_TAKEN",
            ) from exc
        raise exc

    @staticmethod
    async def create_user(db: AsyncSession, values: dict[str, Any]) -> dict:
        """
        Create a new user.

        Args:
            db: Database session
            values: Column values for the new row

        Returns:
            The created user row

        Raises:
            ConflictException: If email or phone number is already taken
        """
        now = utcnow()
        query = (
            users.insert()
            .values({"created_at": now, "updated_at": now, **values})
            .returning(users)
        )

        try:
            result = await db.execute(query)
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            await UserService._raise_duplicate(db, values, exc)

        user = result.mappings().first()
        if not user:
            raise ValueError("Failed to create user")
        return dict(user)

    @staticmethod
    async def update_user(
        db: AsyncSession,
        user_id: UUID,
        values: dict[str, Any],
        expected_version: int | None = None,
    ) -> dict | None:
        """
        Apply a partial update and bump ``updated_at`` and ``version``.

        Args:
            db: Database session
            user_id: User to update
            values: Columns to change
            expected_version: If given, only update when the stored version
                still matches (optimistic concurrency)

        Returns:
            Updated row, or None if the user is gone or the version moved on

        Raises:
            ConflictException: If the phone number is taken
        """
        query = update(users).where(users.c.id == user_id)
        if expected_version is not None:
            query = query.where(users.c.version == expected_version)

        query = query.values(
            **values,
            updated_at=utcnow(),
            version=users.c.version + 1,
        ).returning(users)

        try:
            result = await db.execute(query)
            user = result.mappings().first()
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            await UserService._raise_duplicate(db, values, exc)

        return dict(user) if user else None

    @staticmethod
    async def delete_user(db: AsyncSession, user_id: UUID) -> bool:
        """
        Delete a user together with everything keyed by the user id.

        Dependent rows go first (messages, favorites, subscriptions, authored
        trips and favorites pointing at those trips), then the user row.

        Returns:
            False if the user did not exist
        """
        authored_trips = select(trips.c.id).where(trips.c.user_id == user_id)

        await db.execute(delete(ai_messages).where(ai_messages.c.user_id == user_id))
        await db.execute(
            delete(favorites).where(
                or_(favorites.c.user_id == user_id, favorites.c.trip_id.in_(authored_trips))
            )
        )
        await db.execute(delete(subscriptions).where(subscriptions.c.user_id == user_id))
        await db.execute(delete(trips).where(trips.c.user_id == user_id))
        result = await db.execute(delete(users).where(users.c.id == user_id))
        await db.commit()

        deleted = result.rowcount > 0  # type: ignore[attr-defined]
        logger.info("user_deleted_with_dependents", user_id=str(user_id), deleted=deleted)
        return deleted

    @staticmethod
    def _search_clause(search: str | None) -> Any:
        if not search:
            return None
        pattern = contains_pattern(search)
        return or_(
            users.c.email.ilike(pattern, escape=LIKE_ESCAPE),
            users.c.first_name.ilike(pattern, escape=LIKE_ESCAPE),
            users.c.last_name.ilike(pattern, escape=LIKE_ESCAPE),
        )

    @staticmethod
    async def list_users(
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
    ) -> tuple[list[dict], int]:
        """List users with case-insensitive search over email and names."""
        query = select(users)
        count_query = select(func.count()).select_from(users)

        clause = UserService._search_clause(search)
        if clause is not None:
            query = query.where(clause)
            count_query = count_query.where(clause)

        total = (await db.execute(count_query)).scalar_one()

        query = query.order_by(users.c.created_at.desc()).offset((page - 1) * limit).limit(limit)
        result = await db.execute(query)
        return [dict(row) for row in result.mappings().all()], total

    @staticmethod
    async def recent_users(db: AsyncSession, limit: int = 5) -> list[dict]:
        """Most recently created users."""
        result = await db.execute(select(users).order_by(users.c.created_at.desc()).limit(limit))
        return [dict(row) for row in result.mappings().all()]

    @staticmethod
    async def count_users(db: AsyncSession, verified: bool | None = None) -> int:
        """Count users, optionally only verified ones."""
        query = select(func.count()).select_from(users)
        if verified is not None:
            query = query.where(users.c.is_verified == verified)
        return (await db.execute(query)).scalar_one()
