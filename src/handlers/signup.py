from __future__ import annotations

import logging
from enum import StrEnum

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.config import SignupConfig
from src.db.signup_store import SignupStore, StoreError, UniqueViolation
from src.email.sender import send_confirmation_email
from src.handlers.errors import (
    CapacityExceededError,
    DuplicateEmailError,
    InvalidEmailError,
    MissingFieldsError,
    ServiceError,
    SignupError,
    SignupRejected,
)
from src.models.signup_request import SignupRequestCreate, SignupSubmission, canonical_email

logger = logging.getLogger(__name__)


class SignupStage(StrEnum):
    RECEIVED = "received"
    VALIDATED = "validated"
    CAPACITY_CHECKED = "capacity_checked"
    DUPLICATE_CHECKED = "duplicate_checked"
    INSERTED = "inserted"
    NOTIFICATION_ATTEMPTED = "notification_attempted"
    COMPLETED = "completed"
    REJECTED = "rejected"
    FAILED = "failed"


class SignupAvailability(BaseModel):
    current_count: int
    max_signups: int
    is_full: bool
    spots_remaining: int
    email_exists: bool | None = None


class SignupResult(BaseModel):
    stage: SignupStage
    notification_sent: bool


class CapacityChecker:
    def __init__(self, store: SignupStore, config: SignupConfig) -> None:
        self._store = store
        self._config = config

    async def check(self, email: str | None = None) -> SignupAvailability:
        try:
            current_count = await self._store.count()
        except StoreError as exc:
            logger.error("Error getting signup count: %s", exc)
            raise ServiceError("Error checking signup count") from exc

        email_exists: bool | None = None
        if email and email.strip():
            email_exists = await self._email_exists(email)

        max_signups = self._config.max_signups
        return SignupAvailability(
            current_count=current_count,
            max_signups=max_signups,
            is_full=current_count >= max_signups,
            spots_remaining=max(0, max_signups - current_count),
            email_exists=email_exists,
        )

    async def _email_exists(self, email: str) -> bool:
        try:
            lookup = canonical_email(email)
        except PydanticValidationError:
            # Only validated addresses are ever stored.
            return False
        try:
            return await self._store.find_by_email(lookup) is not None
        except StoreError as exc:
            logger.error("Error checking email availability: %s", exc)
            raise ServiceError("Error checking email availability") from exc


class SignupRegistrar:
    """Admit one early access submission.

    The capacity and duplicate checks run before the insert without a surrounding
    transaction, so they are best-effort. The unique index on ``email`` is what
    actually prevents duplicates; concurrent submissions can push the row count
    slightly past ``max_signups``.

    The confirmation email is sent at most once, after the row is committed. Its
    failure is logged and never changes the result.
    """

    def __init__(self, store: SignupStore, config: SignupConfig) -> None:
        self._store = store
        self._config = config

    async def register(self, submission: SignupSubmission) -> SignupResult:
        stage = SignupStage.RECEIVED
        try:
            data = self._validate(submission)
            stage = SignupStage.VALIDATED
            await self._check_capacity()
            stage = SignupStage.CAPACITY_CHECKED
            await self._check_duplicate(data.email)
            stage = SignupStage.DUPLICATE_CHECKED
            await self._insert(data)
        except SignupError as exc:
            outcome = SignupStage.REJECTED if isinstance(exc, SignupRejected) else SignupStage.FAILED
            logger.info(
                "Signup %s after %s: %s",
                outcome.value,
                stage.value,
                exc.detail,
                extra={
                    "event_type": f"signup.{outcome.value}",
                    "ops_payload": {"stage": stage.value, "reason": type(exc).__name__},
                },
            )
            raise

        sent = await self._notify(data.email)
        logger.info(
            "Signup accepted for %s",
            data.email,
            extra={"event_type": "signup.accepted", "ops_payload": {"notification_sent": sent}},
        )
        return SignupResult(stage=SignupStage.COMPLETED, notification_sent=sent)

    def _validate(self, submission: SignupSubmission) -> SignupRequestCreate:
        missing = submission.missing_fields()
        if missing:
            raise MissingFieldsError(missing)
        try:
            return SignupRequestCreate(
                email=submission.email,
                company=submission.company,
                role=submission.role,
                team_size=submission.team_size,
                db_type=submission.db_type,
                slack_workspace_size=submission.slack_workspace_size,
                pricing_feedback=submission.pricing_feedback,
                notes=submission.notes,
            )
        except PydanticValidationError as exc:
            raise InvalidEmailError() from exc

    async def _check_capacity(self) -> None:
        try:
            current_count = await self._store.count()
        except StoreError as exc:
            logger.error("Error checking signup count: %s", exc)
            raise ServiceError("Error checking signup availability") from exc
        if current_count >= self._config.max_signups:
            raise CapacityExceededError(self._config.max_signups)

    async def _check_duplicate(self, email: str) -> None:
        try:
            existing = await self._store.find_by_email(email)
        except StoreError as exc:
            logger.error("Error checking email: %s", exc)
            raise ServiceError("Error checking email availability") from exc
        if existing is not None:
            raise DuplicateEmailError()

    async def _insert(self, data: SignupRequestCreate) -> None:
        try:
            await self._store.insert(data)
        except UniqueViolation as exc:
            logger.warning("Insert hit unique constraint for %s", data.email)
            raise DuplicateEmailError() from exc
        except StoreError as exc:
            logger.error("Database error inserting signup: %s", exc)
            raise ServiceError(str(exc) or "Database error") from exc

    async def _notify(self, email: str) -> bool:
        sent = False
        try:
            sent = await send_confirmation_email(
                to=email,
                resend_api_key=self._config.resend_api_key or "",
                email_from=self._config.email_from,
                http_timeout_seconds=self._config.email_http_timeout_seconds,
                product_name=self._config.product_name,
            )
        except Exception:
            logger.exception("Unexpected error sending confirmation email to %s", email)
        payload = {"stage": SignupStage.NOTIFICATION_ATTEMPTED.value}
        if sent:
            logger.info(
                "Confirmation email delivered to provider for %s",
                email,
                extra={"event_type": "signup.notification.sent", "ops_payload": payload},
            )
        else:
            logger.warning(
                "Confirmation email to %s failed; signup is still recorded",
                email,
                extra={"event_type": "signup.notification.failed", "ops_payload": payload},
            )
        return sent
