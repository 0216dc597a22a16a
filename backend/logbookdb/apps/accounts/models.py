# backend/logbookdb/apps/accounts/models.py

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from logbookdb.database import Base
from logbookdb.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class UserRole(str, enum.Enum):
    """Roles within one organisation.

    OWNER is the aircraft owner / operator; MECHANIC and INSPECTOR
    can be linked to signatories that attest maintenance events.
    """

    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MECHANIC = "MECHANIC"
    INSPECTOR = "INSPECTOR"
    VIEWER = "VIEWER"


class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INVITED = "INVITED"
    SUSPENDED = "SUSPENDED"


# ---------------------------------------------------------------------------
# ORGANIZATION (tenant root)
# ---------------------------------------------------------------------------


class Organization(Base):
    """
    Tenant root. Every other row in the schema carries `org_id`
    pointing here, and is removed with it (ON DELETE CASCADE).

    Child collections use passive_deletes="all": the ORM issues a single
    DELETE for the organization and leaves its users, fleet and records to
    the database cascade. Per-row ORM deletes of users would trip the
    audit_logs -> users reference while the audit rows still exist.
    """

    __tablename__ = "organizations"

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    name = Column(String(255), nullable=False)
    slug = Column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
        doc="Short URL-safe handle, e.g. 'skyshare'",
    )
    timezone = Column(String(64), nullable=False, default="UTC")

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    users = relationship(
        "User",
        back_populates="organization",
        lazy="selectin",
        passive_deletes="all",
    )
    aircraft = relationship(
        "Aircraft",
        back_populates="organization",
        lazy="selectin",
        passive_deletes="all",
    )

    def __repr__(self) -> str:
        return f"<Organization id={self.id} slug={self.slug}>"


# ---------------------------------------------------------------------------
# USERS
# ---------------------------------------------------------------------------


class User(Base):
    """
    A person with access to one organisation.

    Email is unique per organisation, not globally: the same mechanic
    may work for several owners.
    """

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("org_id", "email", name="uq_users_org_email"),
        # Target for composite (actor_id, org_id) references
        UniqueConstraint("id", "org_id", name="uq_users_id_org"),
        Index("ix_users_org_role", "org_id", "role"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    email = Column(String(255), nullable=False)
    display_name = Column(String(255), nullable=False)
    role = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.VIEWER)
    status = Column(Enum(UserStatus, name="user_status"), nullable=False, default=UserStatus.ACTIVE)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    organization = relationship("Organization", back_populates="users")

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
