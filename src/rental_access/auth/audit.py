"""
rental_access.auth.audit

Security audit logging.

Responsibilities:
- Emit every security event as a structured log line.
- Persist events to `audit_logs` in the background without blocking the request.
- Never let an audit failure surface to the caller.
"""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rental_access.db.repositories.audit import AuditRepo
from rental_access.observability.logging import get_logger

log = get_logger(__name__)


def request_context(request: Request) -> dict[str, Any]:
    return {
        "path": request.url.path,
        "method": request.method,
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


class StructlogAuditLogger:
    def log_security_event(
        self,
        *,
        subject_id: str | None,
        event_kind: str,
        success: bool,
        detail: dict[str, Any],
        request_context: dict[str, Any],
    ) -> None:
        log.warning(
            "security_event",
            subject_id=subject_id,
            event_kind=event_kind,
            success=success,
            detail=detail,
            **request_context,
        )


class DatabaseAuditLogger(StructlogAuditLogger):
    """
    Writes each event to `audit_logs` from a background task on the running loop.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._pending: set[asyncio.Task[None]] = set()

    def log_security_event(
        self,
        *,
        subject_id: str | None,
        event_kind: str,
        success: bool,
        detail: dict[str, Any],
        request_context: dict[str, Any],
    ) -> None:
        super().log_security_event(
            subject_id=subject_id,
            event_kind=event_kind,
            success=success,
            detail=detail,
            request_context=request_context,
        )
        task = asyncio.get_running_loop().create_task(
            self._write(subject_id, event_kind, success, detail, request_context)
        )
        # Hold a reference until done; the loop only keeps weak refs to tasks.
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(
        self,
        subject_id: str | None,
        event_kind: str,
        success: bool,
        detail: dict[str, Any],
        ctx: dict[str, Any],
    ) -> None:
        try:
            async with self._session_factory() as session:
                await AuditRepo(session).add(
                    user_id=subject_id,
                    action=event_kind,
                    resource_type=str(detail.get("resource_type", "access")),
                    resource_id=detail.get("resource_id"),
                    ip_address=ctx.get("ip_address"),
                    user_agent=ctx.get("user_agent"),
                    metadata={
                        "success": success,
                        "path": ctx.get("path"),
                        "method": ctx.get("method"),
                        **detail,
                    },
                )
                await session.commit()
        except Exception as e:  # noqa: BLE001
            log.warning("audit_write_failed", event_kind=event_kind, error_type=type(e).__name__)

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


# --- Module Notes -----------------------------------------------------------
# `drain` runs on app shutdown so queued audit rows are not dropped.
