from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import Settings, SignupConfig, get_settings
from src.db.connection import get_db
from src.db.signup_store import SignupStore
from src.handlers.errors import SignupError
from src.handlers.signup import CapacityChecker, SignupRegistrar
from src.models.signup_request import SignupSubmission

logger = logging.getLogger(__name__)

router = APIRouter()


def _config_or_500(settings: Settings, *, require_notifier: bool) -> SignupConfig:
    try:
        return SignupConfig.from_settings(settings, require_notifier=require_notifier)
    except SignupError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


def get_checker_config(settings: Annotated[Settings, Depends(get_settings)]) -> SignupConfig:
    return _config_or_500(settings, require_notifier=False)


def get_registrar_config(settings: Annotated[Settings, Depends(get_settings)]) -> SignupConfig:
    return _config_or_500(settings, require_notifier=True)


# Config is resolved before the session so a missing DATABASE_URL never reaches the engine.
def get_capacity_checker(
    config: Annotated[SignupConfig, Depends(get_checker_config)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> CapacityChecker:
    return CapacityChecker(SignupStore(session), config)


def get_signup_registrar(
    config: Annotated[SignupConfig, Depends(get_registrar_config)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> SignupRegistrar:
    return SignupRegistrar(SignupStore(session), config)


@router.options("/early-access-status", include_in_schema=False)
@router.options("/early-access", include_in_schema=False)
async def preflight() -> Response:
    return Response(status_code=200)


@router.get("/early-access-status")
async def early_access_status(
    checker: Annotated[CapacityChecker, Depends(get_capacity_checker)],
    email: Annotated[str | None, Query()] = None,
) -> dict[str, Any]:
    try:
        availability = await checker.check(email)
    except SignupError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return {
        "currentCount": availability.current_count,
        "maxSignups": availability.max_signups,
        "isFull": availability.is_full,
        "spotsRemaining": availability.spots_remaining,
        "emailExists": availability.email_exists,
    }


async def _read_submission(request: Request) -> SignupSubmission:
    body = await request.body()
    if not body.strip():
        return SignupSubmission()
    try:
        return SignupSubmission.model_validate_json(body)
    except ValidationError as exc:
        logger.info("Rejected malformed signup body: %s", exc.errors(include_input=False))
        raise HTTPException(status_code=400, detail="Invalid request body") from exc


# Body is parsed only after get_signup_registrar has resolved the config.
@router.post("/early-access")
async def early_access(
    request: Request,
    registrar: Annotated[SignupRegistrar, Depends(get_signup_registrar)],
) -> dict[str, bool]:
    submission = await _read_submission(request)
    try:
        await registrar.register(submission)
    except SignupError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return {"success": True}
