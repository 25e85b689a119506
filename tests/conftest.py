"""
tests.conftest

Shared fakes and fixtures.

Responsibilities:
- In-memory identity provider, access store and audit logger.
- A controllable millisecond clock for cache expiry.
- A small FastAPI app exposing one route per gate chain.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from fastapi import Depends, FastAPI, Request

from rental_access.auth.cache import LRUCache
from rental_access.auth.deps import (
    authenticate,
    optional_authenticate,
    require_ownership,
    require_roles,
)
from rental_access.auth.errors import (
    IdentityProviderError,
    InvalidTokenError,
    PersistenceError,
    install_error_handlers,
)
from rental_access.auth.guards import (
    attach_two_factor_state,
    prevent_tenant_edit,
    require_application_review_access,
    require_property_edit_access,
    require_two_factor,
)
from rental_access.auth.models import VerifiedSubject
from rental_access.auth.resolver import IdentityResolver
from rental_access.auth.resources import ResourceType


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeIdentityProvider:
    def __init__(self) -> None:
        self.subjects: dict[str, VerifiedSubject] = {}
        self.fault = False
        self.calls = 0

    def add(self, token: str, subject_id: str, *, email: str = "", aal: str | None = None) -> None:
        self.subjects[token] = VerifiedSubject(
            subject_id=subject_id, email=email, assurance_level=aal
        )

    async def verify_token(self, token: str) -> VerifiedSubject:
        self.calls += 1
        if self.fault:
            raise IdentityProviderError("provider unreachable")
        try:
            return self.subjects[token]
        except KeyError:
            raise InvalidTokenError("unknown token") from None

    async def aclose(self) -> None:
        return None


class FakeAccessStore:
    def __init__(self) -> None:
        self.roles: dict[str, str | None] = {}
        self.owners: dict[tuple[ResourceType, str], str] = {}
        self.two_factor: set[str] = set()
        self.fail = False
        self.role_lookups = 0
        self.owner_lookups = 0

    async def get_user_role(self, subject_id: str) -> str | None:
        self.role_lookups += 1
        if self.fail:
            raise PersistenceError("db down")
        return self.roles.get(subject_id)

    async def get_resource_owner(self, resource_type: ResourceType, resource_id: str) -> str | None:
        self.owner_lookups += 1
        if self.fail:
            raise PersistenceError("db down")
        if resource_type is ResourceType.user:
            return resource_id if resource_id in self.roles else None
        return self.owners.get((resource_type, resource_id))

    async def get_two_factor_enabled(self, subject_id: str) -> bool:
        if self.fail:
            raise PersistenceError("db down")
        return subject_id in self.two_factor


class RecordingAuditLogger:
    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    def log_security_event(self, **event: Any) -> None:
        self.events.append(event)


class LoopBoundAuditLogger(RecordingAuditLogger):
    # Like the database logger, needs the request's event loop to schedule its write.
    def log_security_event(self, **event: Any) -> None:
        asyncio.get_running_loop()
        super().log_security_event(**event)


class FailingAuditLogger:
    def log_security_event(self, **event: Any) -> None:
        raise RuntimeError("audit sink offline")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> LRUCache:
    return LRUCache(capacity=100, clock=clock)


@pytest.fixture
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def store() -> FakeAccessStore:
    return FakeAccessStore()


@pytest.fixture
def audit() -> RecordingAuditLogger:
    return RecordingAuditLogger()


@pytest.fixture
def resolver(
    provider: FakeIdentityProvider, store: FakeAccessStore, cache: LRUCache
) -> IdentityResolver:
    return IdentityResolver(provider=provider, store=store, cache=cache)


def build_gate_app(resolver: IdentityResolver, store: Any, audit: Any) -> FastAPI:
    app = FastAPI()
    install_error_handlers(app)
    app.state.identity_resolver = resolver
    app.state.access_store = store
    app.state.audit_logger = audit

    def _who(request: Request) -> dict[str, Any]:
        identity = request.state.identity
        return {"subject": identity.subject, "role": identity.role}

    @app.get("/private", dependencies=[Depends(authenticate)])
    async def private(request: Request) -> dict[str, Any]:
        return _who(request)

    @app.get("/maybe")
    async def maybe(viewer=Depends(optional_authenticate)) -> dict[str, Any]:
        return {"subject": viewer.subject if viewer is not None else None}

    @app.get("/agents", dependencies=[Depends(authenticate), Depends(require_roles("agent"))])
    async def agents_only(request: Request) -> dict[str, Any]:
        return _who(request)

    @app.get("/agents-unauthenticated", dependencies=[Depends(require_roles("agent"))])
    async def agents_without_auth() -> dict[str, Any]:
        return {"ok": True}

    for resource_type, path in [
        (ResourceType.property, "/properties/{id}"),
        (ResourceType.review, "/reviews/{id}"),
        (ResourceType.saved_search, "/saved-searches/{id}"),
        (ResourceType.user, "/users/{id}"),
    ]:

        @app.patch(
            path,
            dependencies=[Depends(authenticate), Depends(require_ownership(resource_type))],
        )
        async def owned(request: Request) -> dict[str, Any]:
            record = getattr(request.state, "ownership", None)
            return {"owner": record.owner_id if record is not None else None}

    @app.post(
        "/listings",
        dependencies=[
            Depends(authenticate),
            Depends(require_property_edit_access),
            Depends(prevent_tenant_edit),
        ],
    )
    async def create_listing(request: Request) -> dict[str, Any]:
        return _who(request)

    @app.patch(
        "/applications/{id}/status",
        dependencies=[Depends(authenticate), Depends(require_application_review_access)],
    )
    async def review_application(request: Request) -> dict[str, Any]:
        return _who(request)

    @app.post(
        "/step-up",
        dependencies=[
            Depends(authenticate),
            Depends(attach_two_factor_state),
            Depends(require_two_factor),
        ],
    )
    async def step_up(request: Request) -> dict[str, Any]:
        return _who(request)

    @app.post("/step-up-unloaded", dependencies=[Depends(authenticate), Depends(require_two_factor)])
    async def step_up_unloaded(request: Request) -> dict[str, Any]:
        return _who(request)

    return app


@pytest.fixture
def gate_app(
    resolver: IdentityResolver, store: FakeAccessStore, audit: RecordingAuditLogger
) -> FastAPI:
    return build_gate_app(resolver, store, audit)


@pytest.fixture
def make_client() -> Callable[[FastAPI], httpx.AsyncClient]:
    def _make(app: FastAPI) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")

    return _make


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
