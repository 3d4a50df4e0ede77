from __future__ import annotations

import json

from fastapi import Request
from sqlalchemy.orm import Session

from cryptoacademy.core.rate_limit import client_ip
from cryptoacademy.models.security_audit import SecurityAuditEvent


def _request_id(request: Request) -> str | None:
    rid = getattr(getattr(request, "state", None), "request_id", None)
    rid = str(rid or "").strip()
    return rid or None


def audit_log(
    *,
    db: Session,
    request: Request,
    event_type: str,
    user_id=None,
    meta: dict | str | None = None,
) -> None:
    """Stage an audit row on ``db``; the caller owns the commit."""
    if isinstance(meta, dict):
        meta_str = json.dumps(meta, ensure_ascii=False)
    elif isinstance(meta, str):
        meta_str = meta
    else:
        meta_str = None

    ip = client_ip(request)
    ua = str(request.headers.get("user-agent") or "").strip()[:500] or None

    db.add(
        SecurityAuditEvent(
            user_id=user_id,
            event_type=str(event_type),
            meta=meta_str,
            request_id=_request_id(request),
            ip=None if ip == "unknown" else ip,
            user_agent=ua,
        )
    )
