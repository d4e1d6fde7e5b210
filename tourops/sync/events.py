"""Progress events streamed by a sync job as newline-delimited JSON.

The stream is append-only; a job ends with exactly one ``result`` event, or with a
single ``error`` event when it cannot run at all.
"""

from __future__ import annotations

import json
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class InfoEvent(BaseModel):
    type: Literal["info"] = "info"
    message: str


class WarnEvent(BaseModel):
    type: Literal["warn"] = "warn"
    message: str
    row: int | None = None


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str


class StartEvent(BaseModel):
    type: Literal["start"] = "start"
    total: int


class ProgressEvent(BaseModel):
    type: Literal["progress"] = "progress"
    processed: int
    total: int
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0


class ResultEvent(BaseModel):
    type: Literal["result"] = "result"
    success: bool
    message: str
    total: int = 0
    processed: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    deleted: int = 0
    error_details: list[str] = Field(default_factory=list)


SyncEvent = Annotated[
    Union[InfoEvent, WarnEvent, ErrorEvent, StartEvent, ProgressEvent, ResultEvent],
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter[SyncEvent] = TypeAdapter(SyncEvent)


def encode_event(event: SyncEvent) -> str:
    validated = _event_adapter.validate_python(event.model_dump())
    return validated.model_dump_json(exclude_none=True) + "\n"


EVENT_TYPES = frozenset({"info", "warn", "error", "start", "progress", "result"})


def decode_event(line: str) -> SyncEvent | None:
    """Parse one stream line; event kinds this version does not know are ignored."""
    payload = json.loads(line)
    if not isinstance(payload, dict) or payload.get("type") not in EVENT_TYPES:
        return None
    return _event_adapter.validate_python(payload)
