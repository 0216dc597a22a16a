"""make audit_logs append-only

Revision ID: 0002_audit_logs_append_only
Revises: 0001_initial_schema
Create Date: 2024-10-01 00:10:00.000000
"""

from __future__ import annotations

from alembic import op

revision = "0002_audit_logs_append_only"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name != "postgresql":
        return

    # UPDATE is always refused. DELETE stays possible so that removing an
    # organization can cascade through its audit trail.
    op.execute(
        """
        CREATE OR REPLACE FUNCTION prevent_audit_log_update()
        RETURNS trigger AS $$
        BEGIN
            RAISE EXCEPTION 'audit_logs rows are append-only (id=%)', OLD.id;
        END;
        $$ LANGUAGE plpgsql;
        """
    )
    op.execute(
        """
        DROP TRIGGER IF EXISTS trg_prevent_audit_log_update ON audit_logs;
        CREATE TRIGGER trg_prevent_audit_log_update
        BEFORE UPDATE ON audit_logs
        FOR EACH ROW
        EXECUTE FUNCTION prevent_audit_log_update();
        """
    )


def downgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name != "postgresql":
        return

    op.execute("DROP TRIGGER IF EXISTS trg_prevent_audit_log_update ON audit_logs;")
    op.execute("DROP FUNCTION IF EXISTS prevent_audit_log_update();")
