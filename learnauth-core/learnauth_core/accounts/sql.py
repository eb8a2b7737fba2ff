"""
SQL Credential Store
====================
CredentialStore over the platform's ``users`` table.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import DateTime, Integer, String, Text, case, func, literal, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column

from ..database import Base, session_scope
from ..kv.keys import normalize_identity
from .models import User, UserRole
from .store import CredentialStore

logger = structlog.get_logger(__name__)


class UserRow(Base):
    """Columns of ``users`` touched by authentication."""
    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    email: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default=UserRole.LEARNER.value)
    org_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    failed_otp_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    account_locked_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    updated_on: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_on: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def to_user(self) -> User:
        locked_until = self.account_locked_until
        # SQLite drops tzinfo on the way back
        if locked_until is not None and locked_until.tzinfo is None:
            locked_until = locked_until.replace(tzinfo=timezone.utc)
        return User(
            id=self.user_id,
            email=self.email,
            password_hash=self.password_hash,
            role=self.role,
            org_id=self.org_id,
            name=self.name,
            failed_otp_attempts=self.failed_otp_attempts or 0,
            account_locked_until=locked_until,
        )


class SqlCredentialStore(CredentialStore):
    """Reads and partially updates user rows through an async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def find_by_email(self, email: str) -> Optional[User]:
        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                select(UserRow).where(
                    func.lower(UserRow.email) == normalize_identity(email),
                    UserRow.deleted_on.is_(None),
                )
            )
            row = result.scalar_one_or_none()
            return row.to_user() if row else None

    async def save(self, user: User) -> None:
        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                update(UserRow)
                .where(UserRow.user_id == user.id)
                .values(
                    password_hash=user.password_hash,
                    failed_otp_attempts=user.failed_otp_attempts,
                    account_locked_until=user.account_locked_until,
                    updated_on=datetime.now(timezone.utc),
                )
            )
            if result.rowcount == 0:
                logger.error("User row missing on save", user_id=user.id)
                raise LookupError(f"No user with id {user.id}")

    async def record_otp_failure(self, user: User) -> None:
        attempts = literal(user.failed_otp_attempts, UserRow.failed_otp_attempts.type)
        values = {
            "failed_otp_attempts": case(
                (UserRow.failed_otp_attempts < attempts, attempts),
                else_=UserRow.failed_otp_attempts,
            ),
            "updated_on": datetime.now(timezone.utc),
        }
        if user.account_locked_until is not None:
            locked_until = literal(user.account_locked_until, UserRow.account_locked_until.type)
            values["account_locked_until"] = case(
                (
                    or_(
                        UserRow.account_locked_until.is_(None),
                        UserRow.account_locked_until < locked_until,
                    ),
                    locked_until,
                ),
                else_=UserRow.account_locked_until,
            )

        async with session_scope(self.session_factory) as session:
            result = await session.execute(
                update(UserRow).where(UserRow.user_id == user.id).values(**values)
            )
            if result.rowcount == 0:
                logger.error("User row missing on failure update", user_id=user.id)
                raise LookupError(f"No user with id {user.id}")
