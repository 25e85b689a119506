"""
rental_access.api.app

FastAPI app factory for the rental access service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Initialize and dispose shared infrastructure: DB engine, role cache,
  identity provider, identity resolver, access store and audit logger.
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rental_access.api.routers.applications import router as applications_router
from rental_access.api.routers.dev_auth import router as dev_auth_router
from rental_access.api.routers.health import router as health_router
from rental_access.api.routers.owned import router as owned_router
from rental_access.api.routers.properties import router as properties_router
from rental_access.api.routers.requirements import router as requirements_router
from rental_access.api.routers.users import router as users_router
from rental_access.auth.audit import DatabaseAuditLogger
from rental_access.auth.cache import LRUCache
from rental_access.auth.errors import install_error_handlers
from rental_access.auth.interfaces import AccessStore, AuditLogger, IdentityProvider
from rental_access.auth.providers import build_identity_provider
from rental_access.auth.resolver import IdentityResolver
from rental_access.db.models import create_schema
from rental_access.db.repositories.access import SqlAccessStore
from rental_access.db.session import create_engine, create_sessionmaker
from rental_access.observability.logging import configure_logging, get_logger
from rental_access.observability.middleware import RequestContextMiddleware
from rental_access.settings import Settings

log = get_logger(__name__)


def create_app(
    *,
    settings: Settings,
    identity_provider: IdentityProvider | None = None,
    access_store: AccessStore | None = None,
    audit_logger: AuditLogger | None = None,
    role_cache: LRUCache | None = None,
) -> FastAPI:
    """
    Collaborators left as None are built from settings on startup; tests pass fakes.
    """
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, identity_provider=settings.identity_provider)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod uses Alembic migrations.
            await create_schema(engine)

        provider = identity_provider or build_identity_provider(settings)
        store = access_store or SqlAccessStore(app.state.sessionmaker)
        cache = role_cache or LRUCache(capacity=settings.role_cache_capacity)
        audit = audit_logger or DatabaseAuditLogger(app.state.sessionmaker)

        app.state.role_cache = cache
        app.state.access_store = store
        app.state.audit_logger = audit
        app.state.identity_resolver = IdentityResolver(
            provider=provider,
            store=store,
            cache=cache,
            role_ttl_ms=settings.role_cache_ttl_ms,
            fallback_role=settings.fallback_role,
        )
        try:
            yield
        finally:
            if isinstance(audit, DatabaseAuditLogger):
                await audit.drain()
            await provider.aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Rental Marketplace Access Service",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    install_error_handlers(app)
    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(properties_router)
    app.include_router(applications_router)
    app.include_router(users_router)
    app.include_router(requirements_router)
    app.include_router(owned_router)

    return app


# --- Module Notes -----------------------------------------------------------
# The role cache lives as long as the process; it is never persisted or shared.
