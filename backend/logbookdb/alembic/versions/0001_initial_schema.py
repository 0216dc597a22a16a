"""initial maintenance record schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2024-10-01 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# PostgreSQL requires CREATE TYPE before the tables that use it; the same
# type is shared by several tables, so creation is explicit and columns
# reference it with create_type=False.
ENUMS = {
    "user_role": ("OWNER", "ADMIN", "MECHANIC", "INSPECTOR", "VIEWER"),
    "user_status": ("ACTIVE", "INVITED", "SUSPENDED"),
    "component_type": ("AIRFRAME", "ENGINE", "PROPELLER", "AVIONICS", "APPLIANCE", "OTHER"),
    "credential_type": ("A_AND_P", "IA", "REPAIRMAN", "REPAIR_STATION", "OTHER"),
    "directive_type": (
        "AIRWORTHINESS_DIRECTIVE",
        "SERVICE_BULLETIN",
        "SERVICE_LETTER",
        "MANUFACTURER_REQUIREMENT",
        "OTHER",
    ),
    "maintenance_event_type": (
        "INSPECTION",
        "AD_COMPLIANCE",
        "REPAIR",
        "ALTERATION",
        "OVERHAUL",
        "COMPONENT_CHANGE",
        "OTHER",
    ),
    "event_origin": ("MANUAL", "IMPORT", "OCR", "SYSTEM"),
    "compliance_status": ("COMPLIED", "NOT_APPLICABLE", "RECURRING", "DEFERRED", "OPEN"),
    "embedding_scope": ("MAINTENANCE_EVENT", "COMPLIANCE_SNAPSHOT"),
    "audit_actor_type": ("USER", "SYSTEM"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _id(name: str = "id", nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.String(length=36), nullable=nullable)


def _org_id() -> sa.Column:
    return sa.Column(
        "org_id",
        sa.String(length=36),
        sa.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )


def _timestamps(updated: bool = True) -> list:
    columns = [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]
    if updated:
        columns.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))
        )
    return columns


def _hours(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(precision=10, scale=2), nullable=True)


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    # ------------------------------------------------------------------
    # Tenancy
    # ------------------------------------------------------------------
    op.create_table(
        "organizations",
        _id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=64), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default="UTC"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_organizations_slug", "organizations", ["slug"], unique=True)

    op.create_table(
        "users",
        _id(),
        _org_id(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("role", _enum("user_role"), nullable=False, server_default="VIEWER"),
        sa.Column("status", _enum("user_status"), nullable=False, server_default="ACTIVE"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "email", name="uq_users_org_email"),
        sa.UniqueConstraint("id", "org_id", name="uq_users_id_org"),
    )
    op.create_index("ix_users_org_id", "users", ["org_id"])
    op.create_index("ix_users_org_role", "users", ["org_id", "role"])

    # ------------------------------------------------------------------
    # Fleet
    # ------------------------------------------------------------------
    op.create_table(
        "aircraft",
        _id(),
        _org_id(),
        sa.Column("tail_number", sa.String(length=16), nullable=False),
        sa.Column("make", sa.String(length=64), nullable=False),
        sa.Column("model", sa.String(length=64), nullable=False),
        sa.Column("serial_number", sa.String(length=64), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "tail_number", name="uq_aircraft_org_tail_number"),
        sa.UniqueConstraint("id", "org_id", name="uq_aircraft_id_org"),
        sa.CheckConstraint("year IS NULL OR year >= 1900", name="ck_aircraft_year_valid"),
    )
    op.create_index("ix_aircraft_org_id", "aircraft", ["org_id"])

    op.create_table(
        "components",
        _id(),
        _org_id(),
        _id("aircraft_id"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", _enum("component_type"), nullable=False),
        sa.Column("serial_number", sa.String(length=64), nullable=True),
        sa.Column("manufacturer", sa.String(length=128), nullable=True),
        sa.Column("model", sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["aircraft_id", "org_id"],
            ["aircraft.id", "aircraft.org_id"],
            name="fk_components_aircraft_org",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("id", "org_id", name="uq_components_id_org"),
    )
    op.create_index("ix_components_org_id", "components", ["org_id"])
    op.create_index("ix_components_aircraft_id", "components", ["aircraft_id"])
    op.create_index("ix_components_aircraft_type", "components", ["aircraft_id", "type"])

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    op.create_table(
        "signatories",
        _id(),
        _org_id(),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("credential_type", _enum("credential_type"), nullable=False),
        sa.Column("certificate_id", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("id", "org_id", name="uq_signatories_id_org"),
    )
    op.create_index("ix_signatories_org_id", "signatories", ["org_id"])
    op.create_index("ix_signatories_org_certificate", "signatories", ["org_id", "certificate_id"])

    op.create_table(
        "directives",
        _id(),
        _org_id(),
        sa.Column("directive_type", _enum("directive_type"), nullable=False),
        sa.Column("reference_code", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("applicability", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "org_id",
            "directive_type",
            "reference_code",
            name="uq_directives_org_type_reference",
        ),
        sa.UniqueConstraint("id", "org_id", name="uq_directives_id_org"),
    )
    op.create_index("ix_directives_org_id", "directives", ["org_id"])

    op.create_table(
        "maintenance_events",
        _id(),
        _org_id(),
        _id("aircraft_id"),
        _id("component_id", nullable=True),
        _id("signatory_id", nullable=True),
        sa.Column("event_type", _enum("maintenance_event_type"), nullable=False),
        sa.Column("origin", _enum("event_origin"), nullable=False, server_default="MANUAL"),
        sa.Column("performed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("corrective_action", sa.Text(), nullable=True),
        _hours("tach_hours"),
        _hours("hobbs_hours"),
        _hours("total_time_hours"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["aircraft_id", "org_id"],
            ["aircraft.id", "aircraft.org_id"],
            name="fk_maintenance_events_aircraft_org",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["component_id", "org_id"],
            ["components.id", "components.org_id"],
            name="fk_maintenance_events_component_org",
        ),
        sa.ForeignKeyConstraint(
            ["signatory_id", "org_id"],
            ["signatories.id", "signatories.org_id"],
            name="fk_maintenance_events_signatory_org",
        ),
        sa.UniqueConstraint("id", "org_id", name="uq_maintenance_events_id_org"),
        sa.CheckConstraint("tach_hours IS NULL OR tach_hours >= 0", name="ck_maintenance_events_tach_nonneg"),
        sa.CheckConstraint("hobbs_hours IS NULL OR hobbs_hours >= 0", name="ck_maintenance_events_hobbs_nonneg"),
        sa.CheckConstraint(
            "total_time_hours IS NULL OR total_time_hours >= 0",
            name="ck_maintenance_events_total_time_nonneg",
        ),
    )
    op.create_index("ix_maintenance_events_org_id", "maintenance_events", ["org_id"])
    op.create_index("ix_maintenance_events_aircraft_id", "maintenance_events", ["aircraft_id"])
    op.create_index("ix_maintenance_events_component_id", "maintenance_events", ["component_id"])
    op.create_index("ix_maintenance_events_signatory_id", "maintenance_events", ["signatory_id"])
    op.create_index(
        "ix_maintenance_events_org_aircraft_time",
        "maintenance_events",
        ["org_id", "aircraft_id", "performed_at"],
    )

    op.create_table(
        "maintenance_event_directives",
        _id(),
        _org_id(),
        _id("event_id"),
        _id("directive_id"),
        sa.Column("compliance_status", _enum("compliance_status"), nullable=False, server_default="OPEN"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["event_id", "org_id"],
            ["maintenance_events.id", "maintenance_events.org_id"],
            name="fk_event_directives_event_org",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["directive_id", "org_id"],
            ["directives.id", "directives.org_id"],
            name="fk_event_directives_directive_org",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("event_id", "directive_id", name="uq_event_directives_event_directive"),
    )
    op.create_index("ix_maintenance_event_directives_org_id", "maintenance_event_directives", ["org_id"])
    op.create_index("ix_maintenance_event_directives_event_id", "maintenance_event_directives", ["event_id"])
    op.create_index(
        "ix_maintenance_event_directives_directive_id",
        "maintenance_event_directives",
        ["directive_id"],
    )

    # ------------------------------------------------------------------
    # Compliance
    # ------------------------------------------------------------------
    op.create_table(
        "compliance_snapshots",
        _id(),
        _org_id(),
        _id("aircraft_id"),
        sa.Column("as_of", sa.DateTime(timezone=True), nullable=False),
        sa.Column("summary", sa.JSON(), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["aircraft_id", "org_id"],
            ["aircraft.id", "aircraft.org_id"],
            name="fk_compliance_snapshots_aircraft_org",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("id", "org_id", name="uq_compliance_snapshots_id_org"),
    )
    op.create_index("ix_compliance_snapshots_org_id", "compliance_snapshots", ["org_id"])
    op.create_index("ix_compliance_snapshots_aircraft_id", "compliance_snapshots", ["aircraft_id"])
    op.create_index(
        "ix_compliance_snapshots_aircraft_as_of",
        "compliance_snapshots",
        ["aircraft_id", "as_of"],
    )

    op.create_table(
        "embeddings",
        _id(),
        _org_id(),
        sa.Column("scope", _enum("embedding_scope"), nullable=False),
        _id("target_event_id", nullable=True),
        _id("target_compliance_snapshot_id", nullable=True),
        sa.Column("dimensions", sa.Integer(), nullable=False),
        sa.Column("vector", postgresql.ARRAY(sa.Float()), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["target_event_id", "org_id"],
            ["maintenance_events.id", "maintenance_events.org_id"],
            name="fk_embeddings_event_org",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["target_compliance_snapshot_id", "org_id"],
            ["compliance_snapshots.id", "compliance_snapshots.org_id"],
            name="fk_embeddings_snapshot_org",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(
            "(scope = 'MAINTENANCE_EVENT'"
            " AND target_event_id IS NOT NULL"
            " AND target_compliance_snapshot_id IS NULL)"
            " OR (scope = 'COMPLIANCE_SNAPSHOT'"
            " AND target_compliance_snapshot_id IS NOT NULL"
            " AND target_event_id IS NULL)",
            name="ck_embeddings_single_target",
        ),
        sa.CheckConstraint("dimensions > 0", name="ck_embeddings_dimensions_positive"),
        sa.CheckConstraint("cardinality(vector) = dimensions", name="ck_embeddings_vector_dimensions"),
    )
    op.create_index("ix_embeddings_org_id", "embeddings", ["org_id"])
    op.create_index("ix_embeddings_target_event_id", "embeddings", ["target_event_id"])
    op.create_index(
        "ix_embeddings_target_compliance_snapshot_id",
        "embeddings",
        ["target_compliance_snapshot_id"],
    )
    op.create_index("ix_embeddings_org_scope", "embeddings", ["org_id", "scope"])

    op.create_table(
        "due_items",
        _id(),
        _org_id(),
        _id("aircraft_id"),
        _id("component_id", nullable=True),
        _id("directive_id", nullable=True),
        sa.Column("event_type", _enum("maintenance_event_type"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=False),
        _hours("due_hours"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["aircraft_id", "org_id"],
            ["aircraft.id", "aircraft.org_id"],
            name="fk_due_items_aircraft_org",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["component_id", "org_id"],
            ["components.id", "components.org_id"],
            name="fk_due_items_component_org",
        ),
        sa.ForeignKeyConstraint(
            ["directive_id", "org_id"],
            ["directives.id", "directives.org_id"],
            name="fk_due_items_directive_org",
        ),
        sa.CheckConstraint("due_hours IS NULL OR due_hours >= 0", name="ck_due_items_due_hours_nonneg"),
    )
    op.create_index("ix_due_items_org_id", "due_items", ["org_id"])
    op.create_index("ix_due_items_aircraft_id", "due_items", ["aircraft_id"])
    op.create_index("ix_due_items_component_id", "due_items", ["component_id"])
    op.create_index("ix_due_items_directive_id", "due_items", ["directive_id"])
    op.create_index("ix_due_items_org_due_at", "due_items", ["org_id", "due_at"])

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------
    op.create_table(
        "audit_logs",
        _id(),
        _org_id(),
        _id("actor_id", nullable=True),
        sa.Column("actor_type", _enum("audit_actor_type"), nullable=False, server_default="USER"),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("before", sa.JSON(), nullable=True),
        sa.Column("after", sa.JSON(), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["actor_id", "org_id"],
            ["users.id", "users.org_id"],
            name="fk_audit_logs_actor_org",
        ),
    )
    op.create_index("ix_audit_logs_org_id", "audit_logs", ["org_id"])
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])
    op.create_index("ix_audit_logs_org_entity", "audit_logs", ["org_id", "entity_type", "entity_id"])
    op.create_index("ix_audit_logs_org_action", "audit_logs", ["org_id", "action"])
    op.create_index(
        "ix_audit_logs_org_time_desc",
        "audit_logs",
        ["org_id", sa.text("occurred_at DESC")],
    )


def downgrade() -> None:
    for table in (
        "audit_logs",
        "due_items",
        "embeddings",
        "compliance_snapshots",
        "maintenance_event_directives",
        "maintenance_events",
        "directives",
        "signatories",
        "components",
        "aircraft",
        "users",
        "organizations",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
