"""Security observability helpers for scope-related incidents."""

from __future__ import annotations

import logging
import time
from typing import Any

from flask import has_request_context, request

logger = logging.getLogger(__name__)

_SECURITY_EVENTS: list[dict[str, Any]] = []
_MAX_SECURITY_EVENTS = 5000


ALERT_RULES = (
    {
        "event_type": "cross_scope_access_attempt",
        "threshold": 3,
        "window_seconds": 300,
        "severity": "high",
        "code": "SEC-CROSS-SCOPE-001",
    },
    {
        "event_type": "tenant_scope_error",
        "threshold": 5,
        "window_seconds": 300,
        "severity": "medium",
        "code": "SEC-TENANT-SCOPE-001",
    },
)


def _trim() -> None:
    if len(_SECURITY_EVENTS) > _MAX_SECURITY_EVENTS:
        del _SECURITY_EVENTS[: _MAX_SECURITY_EVENTS // 2]


def _tenant_from_request() -> str | None:
    if not has_request_context():
        return None
    from flask import g

    scope = getattr(g, "scope", None)
    if scope is not None and scope.tenant_id:
        return scope.tenant_id
    principal = getattr(g, "principal", None)
    return getattr(principal, "tenant_id", None)


def record_security_event(
    *,
    event_type: str,
    reason: str,
    severity: str = "warning",
    tenant_id: str | None = None,
    user_id: str | None = None,
    request_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    if tenant_id is None:
        tenant_id = _tenant_from_request()

    path = None
    method = None
    if has_request_context():
        from flask import g

        path = request.path
        method = request.method
        request_id = request_id or getattr(g, "request_id", None)

    event = {
        "ts": time.time(),
        "event_type": event_type,
        "severity": severity,
        "reason": reason,
        "tenant_id": tenant_id,
        "user_id": user_id,
        "path": path,
        "method": method,
        "request_id": request_id,
        "details": details or {},
    }
    _SECURITY_EVENTS.append(event)
    _trim()
    logger.warning(
        "Security event %s: %s", event_type, reason,
        extra={"event_type": event_type, "tenant_id": tenant_id, "request_id": request_id},
    )
    return event


def get_recent_security_events(*, seconds: int = 3600, event_type: str | None = None) -> list[dict[str, Any]]:
    cutoff = time.time() - seconds
    rows = [e for e in _SECURITY_EVENTS if e["ts"] >= cutoff]
    if event_type:
        rows = [e for e in rows if e["event_type"] == event_type]
    return rows


def evaluate_security_alerts(*, now: float | None = None) -> dict[str, Any]:
    now = now or time.time()
    triggered = []
    counts = {}

    for rule in ALERT_RULES:
        cutoff = now - rule["window_seconds"]
        matched = [
            e for e in _SECURITY_EVENTS
            if e["event_type"] == rule["event_type"] and e["ts"] >= cutoff
        ]
        counts[rule["event_type"]] = len(matched)
        if len(matched) >= rule["threshold"]:
            triggered.append({
                "code": rule["code"],
                "event_type": rule["event_type"],
                "severity": rule["severity"],
                "window_seconds": rule["window_seconds"],
                "threshold": rule["threshold"],
                "observed": len(matched),
                "latest": matched[-1] if matched else None,
            })
            logger.warning(
                "Security alert %s triggered (%d events)", rule["code"], len(matched),
                extra={"security_code": rule["code"], "event_type": rule["event_type"]},
            )

    return {"counts": counts, "alerts": triggered}


def reset_security_events() -> None:
    _SECURITY_EVENTS.clear()
