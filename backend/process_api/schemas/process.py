"""Process Schemas — Pydantic models with strict typing for the /process boundary.

Invariants:
    - ProcessRequest.payload must be a JSON string, echo a JSON boolean (no coercion)
    - A `null` document or `null` field means "use the default"
    - Only the first JSON value of the body is decoded; trailing bytes are ignored
    - Unknown request fields are ignored
    - Every error body has exactly one field: `error`

Design Decisions:
    - strict=True: "echo": "true" is malformed input, not a truthy string
    - raw_decode over model_validate_json: the body is read the way a streaming
      JSON decoder reads it (one value, leading whitespace allowed)
    - Wire models convert to/from core dataclasses at the route; core never sees Pydantic
"""

import json
from typing import Literal

from pydantic import (
    BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator,
)

from process_api.core.errors import ErrorContext, InvalidPayloadError
from process_api.core.work import WorkInput, WorkResult

_decoder = json.JSONDecoder()


class ProcessRequest(BaseModel):
    """Body of POST /process."""
    model_config = ConfigDict(strict=True, frozen=True)

    payload: str = ""
    echo: bool = False

    @field_validator("payload", "echo", mode="before")
    @classmethod
    def null_means_default(cls, v, info: ValidationInfo):
        if v is None:
            return cls.model_fields[info.field_name].default
        return v

    @classmethod
    def decode(cls, body: bytes) -> WorkInput:
        """Parse a raw body into WorkInput, raising InvalidPayloadError."""
        try:
            document, _ = _decoder.raw_decode(body.decode("utf-8").lstrip())
        except ValueError as e:
            raise InvalidPayloadError(
                str(e), ErrorContext(debug_info={"stage": "json"}),
            ) from e
        try:
            parsed = cls.model_validate({} if document is None else document)
        except ValidationError as e:
            raise InvalidPayloadError(
                f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}",
                ErrorContext(debug_info={
                    "stage": "fields",
                    "errors": e.errors(include_url=False, include_context=False),
                }),
            ) from e
        return WorkInput(payload=parsed.payload, echo=parsed.echo)


class ProcessResponse(BaseModel):
    """Successful /process result."""
    result: str
    processed_at_unix: int

    @classmethod
    def from_result(cls, result: WorkResult) -> "ProcessResponse":
        return cls(result=result.result, processed_at_unix=result.processed_at_unix)


class ErrorResponse(BaseModel):
    """Uniform error envelope with no internal details."""
    error: str


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
