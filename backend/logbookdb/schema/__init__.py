"""
Schema composition and generated artifacts.

Layout (relative to the `logbookdb` package):

- alembic.ini / alembic/            migration scripts (source of truth)
- schema/.generated/schema.sql      composed PostgreSQL DDL
- schema/.generated/migrations      link (or copy) of alembic/ used by Alembic
- schema/.generated/client.json     bindings written after migrating
"""

from __future__ import annotations

from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_INI = PACKAGE_ROOT / "alembic.ini"
MIGRATIONS_SOURCE_DIR = PACKAGE_ROOT / "alembic"

GENERATED_DIR = PACKAGE_ROOT / "schema" / ".generated"
COMPOSED_SCHEMA_PATH = GENERATED_DIR / "schema.sql"
GENERATED_MIGRATIONS_DIR = GENERATED_DIR / "migrations"
CLIENT_BINDINGS_PATH = GENERATED_DIR / "client.json"

# Model modules merged into the canonical schema, in dependency order.
SCHEMA_FRAGMENTS = (
    "logbookdb.apps.accounts.models",
    "logbookdb.apps.fleet.models",
    "logbookdb.apps.records.models",
    "logbookdb.apps.compliance.models",
    "logbookdb.apps.audit.models",
)

# Tables allowed to exist without an org_id column.
TENANT_ROOT_TABLES = frozenset({"organizations"})
