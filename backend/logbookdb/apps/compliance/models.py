"""
Compliance tracking models.

- ComplianceSnapshot: point-in-time summary of an aircraft's compliance.
- DueItem: an upcoming maintenance obligation.
- Embedding: vector representation of a maintenance event or a compliance
  snapshot, used for semantic search.

Embedding target rules live in the schema, not in application code: a
CHECK constraint requires exactly one of the two target columns to be set,
and it must be the one named by `scope`.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import relationship, validates

from ...database import Base
from ...utils.identifiers import generate_uuid7
from ..records.models import HOURS_PRECISION, HOURS_SCALE, MaintenanceEventType, coerce_hours

# Float array on PostgreSQL, JSON list elsewhere (SQLite test databases).
VectorType = JSON().with_variant(postgresql.ARRAY(Float), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmbeddingScope(str, enum.Enum):
    MAINTENANCE_EVENT = "MAINTENANCE_EVENT"
    COMPLIANCE_SNAPSHOT = "COMPLIANCE_SNAPSHOT"


# ---------------------------------------------------------------------------
# COMPLIANCE SNAPSHOTS
# ---------------------------------------------------------------------------


class ComplianceSnapshot(Base):
    __tablename__ = "compliance_snapshots"
    __table_args__ = (
        ForeignKeyConstraint(
            ["aircraft_id", "org_id"],
            ["aircraft.id", "aircraft.org_id"],
            name="fk_compliance_snapshots_aircraft_org",
            ondelete="CASCADE",
        ),
        UniqueConstraint("id", "org_id", name="uq_compliance_snapshots_id_org"),
        Index("ix_compliance_snapshots_aircraft_as_of", "aircraft_id", "as_of"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    aircraft_id = Column(String(36), nullable=False, index=True)
    as_of = Column(DateTime(timezone=True), nullable=False)
    # e.g. {"overdue": [], "complied": ["AD 2024-01-01"]}
    summary = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    aircraft = relationship(
        "Aircraft",
        primaryjoin="Aircraft.id == ComplianceSnapshot.aircraft_id",
        foreign_keys=[aircraft_id],
    )


# ---------------------------------------------------------------------------
# EMBEDDINGS
# ---------------------------------------------------------------------------


class Embedding(Base):
    __tablename__ = "embeddings"
    __table_args__ = (
        ForeignKeyConstraint(
            ["target_event_id", "org_id"],
            ["maintenance_events.id", "maintenance_events.org_id"],
            name="fk_embeddings_event_org",
            ondelete="CASCADE",
        ),
        ForeignKeyConstraint(
            ["target_compliance_snapshot_id", "org_id"],
            ["compliance_snapshots.id", "compliance_snapshots.org_id"],
            name="fk_embeddings_snapshot_org",
            ondelete="CASCADE",
        ),
        CheckConstraint(
            "(scope = 'MAINTENANCE_EVENT'"
            " AND target_event_id IS NOT NULL"
            " AND target_compliance_snapshot_id IS NULL)"
            " OR (scope = 'COMPLIANCE_SNAPSHOT'"
            " AND target_compliance_snapshot_id IS NOT NULL"
            " AND target_event_id IS NULL)",
            name="ck_embeddings_single_target",
        ),
        CheckConstraint("dimensions > 0", name="ck_embeddings_dimensions_positive"),
        CheckConstraint(
            "cardinality(vector) = dimensions",
            name="ck_embeddings_vector_dimensions",
        ).ddl_if(dialect="postgresql"),
        Index("ix_embeddings_org_scope", "org_id", "scope"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scope = Column(SQLEnum(EmbeddingScope, name="embedding_scope"), nullable=False)
    target_event_id = Column(String(36), nullable=True, index=True)
    target_compliance_snapshot_id = Column(String(36), nullable=True, index=True)
    dimensions = Column(Integer, nullable=False)
    vector = Column(VectorType, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    @validates("vector")
    def _validate_vector(self, key, value):
        if value is None:
            return value
        values = [float(v) for v in value]
        if not values:
            raise ValueError("Embedding vector must not be empty")
        return values


@event.listens_for(Embedding, "before_insert")
@event.listens_for(Embedding, "before_update")
def _check_vector_dimensions(_mapper, _connection, target: Embedding) -> None:
    # PostgreSQL enforces this with a CHECK; other dialects rely on this hook.
    if target.vector is not None and target.dimensions is not None:
        if len(target.vector) != target.dimensions:
            raise ValueError(
                f"Embedding vector has {len(target.vector)} values, expected {target.dimensions}"
            )


# ---------------------------------------------------------------------------
# DUE ITEMS
# ---------------------------------------------------------------------------


class DueItem(Base):
    """
    Upcoming obligation: next annual, recurring AD, component overhaul...
    """

    __tablename__ = "due_items"
    __table_args__ = (
        ForeignKeyConstraint(
            ["aircraft_id", "org_id"],
            ["aircraft.id", "aircraft.org_id"],
            name="fk_due_items_aircraft_org",
            ondelete="CASCADE",
        ),
        ForeignKeyConstraint(
            ["component_id", "org_id"],
            ["components.id", "components.org_id"],
            name="fk_due_items_component_org",
        ),
        ForeignKeyConstraint(
            ["directive_id", "org_id"],
            ["directives.id", "directives.org_id"],
            name="fk_due_items_directive_org",
        ),
        CheckConstraint("due_hours IS NULL OR due_hours >= 0", name="ck_due_items_due_hours_nonneg"),
        Index("ix_due_items_org_due_at", "org_id", "due_at"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    aircraft_id = Column(String(36), nullable=False, index=True)
    component_id = Column(String(36), nullable=True, index=True)
    directive_id = Column(String(36), nullable=True, index=True)
    event_type = Column(SQLEnum(MaintenanceEventType, name="maintenance_event_type"), nullable=False)
    title = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    due_at = Column(DateTime(timezone=True), nullable=False)
    due_hours = Column(Numeric(HOURS_PRECISION, HOURS_SCALE, asdecimal=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    aircraft = relationship(
        "Aircraft",
        primaryjoin="Aircraft.id == DueItem.aircraft_id",
        foreign_keys=[aircraft_id],
    )
    component = relationship(
        "Component",
        primaryjoin="Component.id == DueItem.component_id",
        foreign_keys=[component_id],
    )
    directive = relationship(
        "Directive",
        primaryjoin="Directive.id == DueItem.directive_id",
        foreign_keys=[directive_id],
    )

    @validates("due_hours")
    def _validate_due_hours(self, key, value):
        return coerce_hours(key, value)
