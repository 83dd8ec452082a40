from __future__ import annotations

import secrets
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel, Field

from src.config import Settings, get_settings
from src.ops import events as ops_events
from src.ops.events import EventLevel

router = APIRouter()


class OpsEventResponse(BaseModel):
    timestamp: str
    level: EventLevel
    component: str
    event_type: str
    message: str
    correlation_id: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


def _require_ops_access(
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    if not settings.ops_console_enabled:
        raise HTTPException(status_code=404, detail="ops_console_disabled")
    token = (settings.ops_console_token or "").strip()
    if not token:
        return
    scheme, _, supplied = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not secrets.compare_digest(supplied.strip(), token):
        raise HTTPException(status_code=401, detail="invalid_ops_token")


@router.get("/events", response_model=list[OpsEventResponse])
async def events(
    _: Annotated[None, Depends(_require_ops_access)],
    limit: int = Query(100, ge=1, le=500),
    level: EventLevel | None = Query(default=None),
    event_type: str | None = Query(default=None, alias="type"),
    correlation_id: str | None = Query(default=None),
) -> list[OpsEventResponse]:
    items = ops_events.ops_event_buffer.recent(limit=limit, level=level, event_type=event_type)
    if correlation_id:
        items = [item for item in items if item["correlation_id"] and correlation_id in item["correlation_id"]]
    return [
        OpsEventResponse(
            **{
                **item,
                "message": ops_events.redact_text(item["message"]),
                "payload": ops_events.sanitize_value(item["payload"]),
            }
        )
        for item in items
    ]
