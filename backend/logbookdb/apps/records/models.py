"""
Maintenance record models.

- Signatory: certificated person who signs logbook entries.
- Directive: regulatory / manufacturer requirement (AD, SB, ...).
- MaintenanceEvent: one logbook entry against an aircraft (optionally a
  specific component), optionally attested by a signatory.
- MaintenanceEventDirective: which directives an event complied with.

Hour counters (tach / hobbs / total time) are NUMERIC(10, 2) and are only
accepted as Decimal, int or str. Floats are refused before they reach the
database so no binary rounding can creep into the records.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, validates

from ...database import Base
from ...utils.identifiers import generate_uuid7

HOURS_PRECISION = 10
HOURS_SCALE = 2
HOURS_QUANTUM = Decimal(1).scaleb(-HOURS_SCALE)
# NUMERIC(10, 2) holds at most 8 integer digits.
HOURS_LIMIT = Decimal(10) ** (HOURS_PRECISION - HOURS_SCALE)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def coerce_hours(field: str, value):
    """Normalise an hour counter to Decimal, rejecting binary floats."""
    if value is None:
        return None
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(
            f"{field} must be a Decimal, int or numeric string, not {type(value).__name__}"
        )
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"{field} is not a valid number: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"{field} must be finite")
    if abs(result) >= HOURS_LIMIT:
        raise ValueError(f"{field} must be below {HOURS_LIMIT}: {value!r}")
    quantized = result.quantize(HOURS_QUANTUM)
    if quantized != result:
        raise ValueError(f"{field} supports at most {HOURS_SCALE} decimal places: {value!r}")
    return quantized


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class CredentialType(str, enum.Enum):
    A_AND_P = "A_AND_P"                # Airframe & Powerplant mechanic
    IA = "IA"                          # Inspection Authorization
    REPAIRMAN = "REPAIRMAN"
    REPAIR_STATION = "REPAIR_STATION"
    OTHER = "OTHER"


class DirectiveType(str, enum.Enum):
    AIRWORTHINESS_DIRECTIVE = "AIRWORTHINESS_DIRECTIVE"
    SERVICE_BULLETIN = "SERVICE_BULLETIN"
    SERVICE_LETTER = "SERVICE_LETTER"
    MANUFACTURER_REQUIREMENT = "MANUFACTURER_REQUIREMENT"
    OTHER = "OTHER"


class MaintenanceEventType(str, enum.Enum):
    INSPECTION = "INSPECTION"
    AD_COMPLIANCE = "AD_COMPLIANCE"
    REPAIR = "REPAIR"
    ALTERATION = "ALTERATION"
    OVERHAUL = "OVERHAUL"
    COMPONENT_CHANGE = "COMPONENT_CHANGE"
    OTHER = "OTHER"


class EventOrigin(str, enum.Enum):
    MANUAL = "MANUAL"
    IMPORT = "IMPORT"
    OCR = "OCR"
    SYSTEM = "SYSTEM"


class ComplianceStatus(str, enum.Enum):
    COMPLIED = "COMPLIED"
    NOT_APPLICABLE = "NOT_APPLICABLE"
    RECURRING = "RECURRING"
    DEFERRED = "DEFERRED"
    OPEN = "OPEN"


# ---------------------------------------------------------------------------
# SIGNATORIES
# ---------------------------------------------------------------------------


class Signatory(Base):
    __tablename__ = "signatories"
    __table_args__ = (
        UniqueConstraint("id", "org_id", name="uq_signatories_id_org"),
        Index("ix_signatories_org_certificate", "org_id", "certificate_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    full_name = Column(String(255), nullable=False)
    credential_type = Column(SQLEnum(CredentialType, name="credential_type"), nullable=False)
    certificate_id = Column(String(64), nullable=False)
    email = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<Signatory id={self.id} name={self.full_name} credential={self.credential_type}>"


# ---------------------------------------------------------------------------
# DIRECTIVES
# ---------------------------------------------------------------------------


class Directive(Base):
    """
    A requirement aircraft or components must comply with.

    `applicability` is a free-form document, e.g.
    {"aircraft": ["PA-46"], "engines": ["IO-540"]}.
    """

    __tablename__ = "directives"
    __table_args__ = (
        UniqueConstraint(
            "org_id",
            "directive_type",
            "reference_code",
            name="uq_directives_org_type_reference",
        ),
        UniqueConstraint("id", "org_id", name="uq_directives_id_org"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    directive_type = Column(SQLEnum(DirectiveType, name="directive_type"), nullable=False)
    reference_code = Column(String(64), nullable=False)
    title = Column(String(512), nullable=False)
    applicability = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<Directive id={self.id} ref={self.reference_code}>"


# ---------------------------------------------------------------------------
# MAINTENANCE EVENTS
# ---------------------------------------------------------------------------


class MaintenanceEvent(Base):
    """
    One logbook entry.

    Parent references are composite (id, org_id) so an event can only
    point at an aircraft, component or signatory of its own organisation.
    """

    __tablename__ = "maintenance_events"
    __table_args__ = (
        ForeignKeyConstraint(
            ["aircraft_id", "org_id"],
            ["aircraft.id", "aircraft.org_id"],
            name="fk_maintenance_events_aircraft_org",
            ondelete="CASCADE",
        ),
        ForeignKeyConstraint(
            ["component_id", "org_id"],
            ["components.id", "components.org_id"],
            name="fk_maintenance_events_component_org",
        ),
        ForeignKeyConstraint(
            ["signatory_id", "org_id"],
            ["signatories.id", "signatories.org_id"],
            name="fk_maintenance_events_signatory_org",
        ),
        UniqueConstraint("id", "org_id", name="uq_maintenance_events_id_org"),
        CheckConstraint("tach_hours IS NULL OR tach_hours >= 0", name="ck_maintenance_events_tach_nonneg"),
        CheckConstraint("hobbs_hours IS NULL OR hobbs_hours >= 0", name="ck_maintenance_events_hobbs_nonneg"),
        CheckConstraint(
            "total_time_hours IS NULL OR total_time_hours >= 0",
            name="ck_maintenance_events_total_time_nonneg",
        ),
        Index("ix_maintenance_events_org_aircraft_time", "org_id", "aircraft_id", "performed_at"),
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
    signatory_id = Column(String(36), nullable=True, index=True)

    event_type = Column(SQLEnum(MaintenanceEventType, name="maintenance_event_type"), nullable=False)
    origin = Column(SQLEnum(EventOrigin, name="event_origin"), nullable=False, default=EventOrigin.MANUAL)
    performed_at = Column(DateTime(timezone=True), nullable=False)
    description = Column(Text, nullable=False)
    corrective_action = Column(Text, nullable=True)

    tach_hours = Column(Numeric(HOURS_PRECISION, HOURS_SCALE, asdecimal=True), nullable=True)
    hobbs_hours = Column(Numeric(HOURS_PRECISION, HOURS_SCALE, asdecimal=True), nullable=True)
    total_time_hours = Column(Numeric(HOURS_PRECISION, HOURS_SCALE, asdecimal=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    aircraft = relationship(
        "Aircraft",
        primaryjoin="Aircraft.id == MaintenanceEvent.aircraft_id",
        foreign_keys=[aircraft_id],
        lazy="joined",
    )
    component = relationship(
        "Component",
        primaryjoin="Component.id == MaintenanceEvent.component_id",
        foreign_keys=[component_id],
        lazy="joined",
    )
    signatory = relationship(
        "Signatory",
        primaryjoin="Signatory.id == MaintenanceEvent.signatory_id",
        foreign_keys=[signatory_id],
        lazy="joined",
    )
    directives = relationship(
        "MaintenanceEventDirective",
        primaryjoin="MaintenanceEvent.id == MaintenanceEventDirective.event_id",
        foreign_keys="MaintenanceEventDirective.event_id",
        back_populates="event",
        lazy="selectin",
        passive_deletes="all",
    )

    @validates("tach_hours", "hobbs_hours", "total_time_hours")
    def _validate_hours(self, key, value):
        return coerce_hours(key, value)

    def __repr__(self) -> str:
        return f"<MaintenanceEvent id={self.id} type={self.event_type} at={self.performed_at}>"


class MaintenanceEventDirective(Base):
    """Link between an event and a directive it addresses."""

    __tablename__ = "maintenance_event_directives"
    __table_args__ = (
        ForeignKeyConstraint(
            ["event_id", "org_id"],
            ["maintenance_events.id", "maintenance_events.org_id"],
            name="fk_event_directives_event_org",
            ondelete="CASCADE",
        ),
        ForeignKeyConstraint(
            ["directive_id", "org_id"],
            ["directives.id", "directives.org_id"],
            name="fk_event_directives_directive_org",
            ondelete="CASCADE",
        ),
        UniqueConstraint("event_id", "directive_id", name="uq_event_directives_event_directive"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event_id = Column(String(36), nullable=False, index=True)
    directive_id = Column(String(36), nullable=False, index=True)
    compliance_status = Column(
        SQLEnum(ComplianceStatus, name="compliance_status"),
        nullable=False,
        default=ComplianceStatus.OPEN,
    )
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    event = relationship(
        "MaintenanceEvent",
        primaryjoin="MaintenanceEvent.id == MaintenanceEventDirective.event_id",
        foreign_keys=[event_id],
        back_populates="directives",
    )
    directive = relationship(
        "Directive",
        primaryjoin="Directive.id == MaintenanceEventDirective.directive_id",
        foreign_keys=[directive_id],
        lazy="joined",
    )
