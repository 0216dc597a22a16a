from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger(__name__)


def log_event(
    db: Session,
    *,
    org_id: str,
    entity_type: str,
    entity_id: str,
    action: str,
    actor_id: Optional[str] = None,
    actor_type: models.ActorType = models.ActorType.USER,
    summary: Optional[str] = None,
    before: Optional[dict] = None,
    after: Optional[dict] = None,
    occurred_at: Optional[datetime] = None,
    critical: bool = False,
) -> Optional[models.AuditLog]:
    """
    Append an audit row and flush it.

    The row is written inside a SAVEPOINT, so a failed insert only undoes
    the audit row and the caller's pending work stays in the transaction.

    - For critical actions (sign-off, compliance changes), raise on failure.
    - For non-critical actions, log a warning and continue.
    """
    if actor_id is None and actor_type == models.ActorType.USER:
        actor_type = models.ActorType.SYSTEM

    entry = models.AuditLog(
        org_id=org_id,
        actor_id=actor_id,
        actor_type=actor_type,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        summary=summary,
        before=before,
        after=after,
    )
    if occurred_at is not None:
        entry.occurred_at = occurred_at

    # Caller errors surface here, not as audit failures.
    db.flush()

    try:
        with db.begin_nested():
            db.add(entry)
            db.flush()
        return entry
    except Exception:
        logger.warning(
            "Failed to write audit log",
            extra={
                "org_id": org_id,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "action": action,
                "critical": critical,
            },
        )
        if critical:
            raise
        return None


def list_audit_logs(
    db: Session,
    *,
    org_id: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Sequence[models.AuditLog]:
    query = db.query(models.AuditLog).filter(models.AuditLog.org_id == org_id)
    if entity_type:
        query = query.filter(models.AuditLog.entity_type == entity_type)
    if entity_id:
        query = query.filter(models.AuditLog.entity_id == entity_id)
    if start:
        query = query.filter(models.AuditLog.occurred_at >= start)
    if end:
        query = query.filter(models.AuditLog.occurred_at <= end)
    return query.order_by(models.AuditLog.occurred_at.desc(), models.AuditLog.id.desc()).all()
