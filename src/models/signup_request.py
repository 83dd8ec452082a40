from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, EmailStr, TypeAdapter, field_validator
from sqlalchemy import CheckConstraint, DateTime, String, Text
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from src.db.connection import Base

REQUIRED_SIGNUP_FIELDS = ("email", "company", "role", "team_size", "db_type")

_email_adapter: TypeAdapter[str] = TypeAdapter(EmailStr)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def canonical_email(email: str) -> str:
    """Stored form of an address: trimmed, lower-cased, then normalized by email-validator
    (NFC, display-name wrapper removed). Raises ``pydantic.ValidationError`` if invalid.
    """
    return _email_adapter.validate_python(normalize_email(email))


class SignupRequest(Base):
    __tablename__ = "early_access_requests"
    __table_args__ = (
        CheckConstraint("email = lower(btrim(email))", name="ck_early_access_requests_email_normalized"),
    )

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    # Free-form answers are unbounded.
    company: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False)
    team_size: Mapped[str] = mapped_column(Text, nullable=False)
    db_type: Mapped[str] = mapped_column(Text, nullable=False)
    slack_workspace_size: Mapped[str | None] = mapped_column(Text, nullable=True)
    pricing_feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )


class SignupSubmission(BaseModel):
    """Raw signup form payload. Every field is optional here so that missing
    values surface as a single missing-fields rejection instead of a schema error.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    email: str | None = None
    company: str | None = None
    role: str | None = None
    team_size: str | None = None
    db_type: str | None = None
    slack_workspace_size: str | None = None
    pricing_feedback: str | None = None
    notes: str | None = None

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_SIGNUP_FIELDS if not (getattr(self, name) or "").strip()]


class SignupRequestCreate(BaseModel):
    email: str
    company: str
    role: str
    team_size: str
    db_type: str
    slack_workspace_size: str | None = None
    pricing_feedback: str | None = None
    notes: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def canonicalize(cls, value: str) -> str:
        return canonical_email(value)

    @field_validator("slack_workspace_size", "pricing_feedback", "notes")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value
