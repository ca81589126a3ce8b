"""
Activity Logging

Writes ActivityLog rows for the audit trail. Called by the endpoints
after a successful change, inside the same session so the log entry
commits (or rolls back) together with the change.
"""
from typing import Any, Dict, Optional
from fastapi import Request
from sqlalchemy.orm import Session
from projectpro.models.activity import ActivityLog


def log_activity(
    db: Session,
    tenant_id: str,
    user_id: Optional[str],
    action: str,
    entity_type: str,
    entity_id: str,
    entity_name: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> ActivityLog:
    entry = ActivityLog(
        tenant_id=tenant_id,
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        entity_name=(entity_name or "")[:255] or None,
        details=details or {},
    )
    if request is not None:
        entry.ip_address = request.client.host if request.client else None
        entry.user_agent = (request.headers.get("user-agent") or "")[:512] or None
    db.add(entry)
    return entry
