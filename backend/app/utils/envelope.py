"""
Response envelope and Outcome model.

Every response body has the same shape:

    {"success": bool, "message": str, "data"?: any, "error"?: str,
     "pagination"?: {"page", "limit", "total", "totalPages"}}
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class OutcomeKind(str, Enum):
    SUCCESS = "Success"
    CLIENT_ERROR = "ClientError"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    DEPENDENCY_UNAVAILABLE = "DependencyUnavailable"
    DEPENDENCY_TIMEOUT = "DependencyTimeout"
    SERVER_ERROR = "ServerError"


STATUS_BY_KIND = {
    OutcomeKind.CLIENT_ERROR: 400,
    OutcomeKind.NOT_FOUND: 404,
    OutcomeKind.CONFLICT: 409,
    OutcomeKind.DEPENDENCY_UNAVAILABLE: 503,
    OutcomeKind.DEPENDENCY_TIMEOUT: 504,
    OutcomeKind.SERVER_ERROR: 500,
}


class CamelModel(BaseModel):
    """Wire models: camelCase on the wire, snake_case in Python, readable from ORM objects"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def for_total(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit) if limit else 0)


@dataclass(frozen=True)
class Outcome:
    """Result of one handler execution, ready to be serialized."""

    kind: OutcomeKind
    http_status: int
    message: str
    payload: Any = None
    pagination: Optional[Pagination] = None
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @classmethod
    def success(
        cls,
        payload: Any = None,
        message: str = "Success",
        status_code: int = 200,
        pagination: Optional[Pagination] = None,
    ) -> "Outcome":
        return cls(OutcomeKind.SUCCESS, status_code, message, payload=payload, pagination=pagination)

    @classmethod
    def failure(cls, kind: OutcomeKind, message: str, error: Optional[str] = None) -> "Outcome":
        if kind is OutcomeKind.SUCCESS:
            raise ValueError("failure outcomes cannot have kind Success")
        return cls(kind, STATUS_BY_KIND[kind], message, error=error)


def envelope_body(outcome: Outcome) -> dict:
    """Wire body for an outcome. Optional keys are omitted, never null."""
    body: dict = {"success": outcome.is_success, "message": outcome.message}
    if outcome.is_success:
        body["data"] = jsonable_encoder(outcome.payload, by_alias=True)
        if outcome.pagination is not None:
            body["pagination"] = outcome.pagination.model_dump(by_alias=True)
    elif outcome.error:
        body["error"] = outcome.error
    return body


def render(outcome: Outcome) -> JSONResponse:
    return JSONResponse(status_code=outcome.http_status, content=envelope_body(outcome))


def success_response(
    data: Any = None,
    message: str = "Success",
    status_code: int = 200,
    pagination: Optional[Pagination] = None,
) -> JSONResponse:
    return render(Outcome.success(data, message, status_code, pagination))


def error_response(message: str = "Internal Server Error", status_code: int = 500, error: Optional[str] = None) -> JSONResponse:
    """Error envelope for statuses decided outside the classifier (framework 404/405, last resort)."""
    body: dict = {"success": False, "message": message}
    if error:
        body["error"] = error
    return JSONResponse(status_code=status_code, content=body)
