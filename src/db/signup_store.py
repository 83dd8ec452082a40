from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.signup_request import SignupRequest, SignupRequestCreate

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION_SQLSTATE = "23505"


class StoreError(Exception):
    pass


class UniqueViolation(StoreError):
    pass


def driver_message(exc: SQLAlchemyError) -> str:
    """The driver's own error text, without SQLAlchemy's statement and parameter dump."""
    orig = getattr(exc, "orig", None)
    if orig is not None and str(orig):
        return str(orig)
    return type(exc).__name__


def is_unique_violation(exc: IntegrityError) -> bool:
    """Classify an IntegrityError by SQLSTATE, falling back to the driver message."""
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code is not None:
        return str(code) == UNIQUE_VIOLATION_SQLSTATE
    message = str(orig).lower()
    return "duplicate" in message or "unique" in message


class SignupStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def count(self) -> int:
        try:
            result = await self._session.execute(select(func.count(SignupRequest.id)))
        except SQLAlchemyError as exc:
            raise StoreError(driver_message(exc)) from exc
        return int(result.scalar_one() or 0)

    async def find_by_email(self, email: str) -> SignupRequest | None:
        try:
            result = await self._session.execute(
                select(SignupRequest).where(SignupRequest.email == email).limit(1)
            )
        except SQLAlchemyError as exc:
            raise StoreError(driver_message(exc)) from exc
        return result.scalar_one_or_none()

    async def insert(self, data: SignupRequestCreate) -> SignupRequest:
        row = SignupRequest(
            email=data.email,
            company=data.company,
            role=data.role,
            team_size=data.team_size,
            db_type=data.db_type,
            slack_workspace_size=data.slack_workspace_size,
            pricing_feedback=data.pricing_feedback,
            notes=data.notes,
        )
        self._session.add(row)
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            if is_unique_violation(exc):
                raise UniqueViolation(driver_message(exc)) from exc
            raise StoreError(driver_message(exc)) from exc
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise StoreError(driver_message(exc)) from exc
        logger.info("Inserted early access request %s", row.id)
        return row
