"""
Fleet data models (aircraft and installed components).

Scope of this app:
- Aircraft master data, unique per organisation by tail number.
- Major installed components (engines, propellers, avionics, etc.).

Tenant safety:
- Components reference their aircraft through the composite key
  (aircraft_id, org_id) -> aircraft(id, org_id). A component can therefore
  never point at an aircraft owned by another organisation, whatever the
  application code does.
- Both tables expose UNIQUE (id, org_id) so that maintenance records can
  use the same composite pattern.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ...database import Base
from ...utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ComponentType(str, enum.Enum):
    AIRFRAME = "AIRFRAME"
    ENGINE = "ENGINE"
    PROPELLER = "PROPELLER"
    AVIONICS = "AVIONICS"
    APPLIANCE = "APPLIANCE"
    OTHER = "OTHER"


# ---------------------------------------------------------------------------
# AIRCRAFT MASTER
# ---------------------------------------------------------------------------


class Aircraft(Base):
    """
    Master record for each aircraft an organisation maintains.

    - tail_number:
        Registration mark (e.g. 'N9876Q'). Unique within the organisation;
        two tenants may track the same airframe independently.
    - make / model:
        Manufacturer and model designation as printed on the data plate.
    - serial_number:
        Manufacturer serial number (optional on import).
    """

    __tablename__ = "aircraft"
    __table_args__ = (
        UniqueConstraint("org_id", "tail_number", name="uq_aircraft_org_tail_number"),
        UniqueConstraint("id", "org_id", name="uq_aircraft_id_org"),
        CheckConstraint("year IS NULL OR year >= 1900", name="ck_aircraft_year_valid"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tail_number = Column(String(16), nullable=False)
    make = Column(String(64), nullable=False)
    model = Column(String(64), nullable=False)
    serial_number = Column(String(64), nullable=True)
    year = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    organization = relationship("Organization", back_populates="aircraft")

    components = relationship(
        "Component",
        primaryjoin="Aircraft.id == Component.aircraft_id",
        foreign_keys="Component.aircraft_id",
        back_populates="aircraft",
        lazy="selectin",
        passive_deletes="all",
    )

    def __repr__(self) -> str:
        return f"<Aircraft id={self.id} tail={self.tail_number}>"


# ---------------------------------------------------------------------------
# COMPONENTS
# ---------------------------------------------------------------------------


class Component(Base):
    """
    An installed, serialised component (engine, propeller, ...).
    """

    __tablename__ = "components"
    __table_args__ = (
        ForeignKeyConstraint(
            ["aircraft_id", "org_id"],
            ["aircraft.id", "aircraft.org_id"],
            name="fk_components_aircraft_org",
            ondelete="CASCADE",
        ),
        UniqueConstraint("id", "org_id", name="uq_components_id_org"),
        Index("ix_components_aircraft_type", "aircraft_id", "type"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    aircraft_id = Column(String(36), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(SQLEnum(ComponentType, name="component_type"), nullable=False)
    serial_number = Column(String(64), nullable=True)
    manufacturer = Column(String(128), nullable=True)
    model = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    aircraft = relationship(
        "Aircraft",
        primaryjoin="Aircraft.id == Component.aircraft_id",
        foreign_keys=[aircraft_id],
        back_populates="components",
        lazy="joined",
    )

    def __repr__(self) -> str:
        return f"<Component id={self.id} type={self.type} serial={self.serial_number}>"
