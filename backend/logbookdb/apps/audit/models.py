from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    JSON,
    String,
    Text,
    desc,
    event,
)
from sqlalchemy.orm import Session

from ...database import Base
from ...errors import AuditLogImmutableError
from ...utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActorType(str, enum.Enum):
    USER = "USER"
    SYSTEM = "SYSTEM"


class AuditLog(Base):
    """
    Append-only audit trail: who did what to which entity, with
    before/after snapshots.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        ForeignKeyConstraint(
            ["actor_id", "org_id"],
            ["users.id", "users.org_id"],
            name="fk_audit_logs_actor_org",
        ),
        Index("ix_audit_logs_org_entity", "org_id", "entity_type", "entity_id"),
        Index("ix_audit_logs_org_action", "org_id", "action"),
        Index("ix_audit_logs_org_time_desc", "org_id", desc("occurred_at")),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    actor_id = Column(String(36), nullable=True, index=True)
    actor_type = Column(SQLEnum(ActorType, name="audit_actor_type"), nullable=False, default=ActorType.USER)
    entity_type = Column(String(64), nullable=False, index=True)
    entity_id = Column(String(64), nullable=False, index=True)
    action = Column(String(64), nullable=False)
    summary = Column(Text, nullable=True)
    before = Column(JSON, nullable=True)
    after = Column(JSON, nullable=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self) -> str:
        return f"<AuditLog id={self.id} entity={self.entity_type}:{self.entity_id} action={self.action}>"


@event.listens_for(Session, "before_flush")
def _reject_audit_log_mutation(session, _flush_context, _instances) -> None:
    for obj in session.deleted:
        if isinstance(obj, AuditLog):
            raise AuditLogImmutableError(f"Audit log {obj.id} cannot be deleted")
    for obj in session.dirty:
        if isinstance(obj, AuditLog) and session.is_modified(obj, include_collections=False):
            raise AuditLogImmutableError(f"Audit log {obj.id} cannot be modified")
