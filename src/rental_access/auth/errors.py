"""
rental_access.auth.errors

Error taxonomy for the access-control layer.

Responsibilities:
- Typed collaborator failures (invalid token vs provider/persistence faults).
- `GateError`: the HTTP-facing denial raised by gates and handlers, rendered as `{"error": ...}`.
- Shared builders for "not found" and "not owner" answers.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN, HTTP_404_NOT_FOUND

from rental_access.auth.resources import ResourceType


class InvalidTokenError(Exception):
    """The identity provider rejected the token (expired, malformed, revoked)."""


class IdentityProviderError(Exception):
    """The identity provider could not answer (network, timeout, 5xx)."""


class PersistenceError(Exception):
    """A store lookup failed for a reason other than "no row"."""


class GateError(Exception):
    def __init__(self, status_code: int, error: str, **extra: Any) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.extra = extra

    def body(self) -> dict[str, Any]:
        return {"error": self.error, **self.extra}


def not_found(resource_type: ResourceType) -> GateError:
    return GateError(HTTP_404_NOT_FOUND, f"{resource_type.label} not found")


def not_owner() -> GateError:
    return GateError(HTTP_403_FORBIDDEN, "You do not own this resource")


def lost_ownership(resource_type: ResourceType, *, still_exists: bool) -> GateError:
    """
    For an owner-conditional write that matched no rows after the ownership gate
    passed: the record was deleted (404) or changed owner (403) in between.
    """
    return not_owner() if still_exists else not_found(resource_type)


async def _gate_error_handler(_: Request, exc: GateError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=exc.status_code, content=exc.body(), headers=headers)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GateError, _gate_error_handler)


# --- Module Notes -----------------------------------------------------------
# Dependency-fault messages are generic on purpose; the underlying exception is only logged.
