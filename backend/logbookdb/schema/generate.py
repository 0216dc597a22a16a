"""
Regenerate client bindings after migrating.

Connects to the migrated database, checks that it sits at the Alembic
head, checks every table of the composed schema exists, and writes
`schema/.generated/client.json`:

    {"revision": "<head>", "generated_at": "...", "tables": {"aircraft": ["id", ...]}}

Usage (from backend/, DATABASE_URL set):
  python -m logbookdb.schema.generate
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect

from ..database import create_db_engine, get_database_url
from ..errors import ConfigurationError, SchemaCompositionError, SchemaOutOfDateError
from . import ALEMBIC_INI, CLIENT_BINDINGS_PATH
from .compose import load_fragments

logger = logging.getLogger(__name__)


def script_heads() -> List[str]:
    script = ScriptDirectory.from_config(Config(str(ALEMBIC_INI)))
    return sorted(script.get_heads())


def read_database_state(database_url: str) -> tuple[List[str], Dict[str, List[str]]]:
    """
    Return (applied revisions, {table: [columns]}) for the target database.
    """
    engine = create_db_engine(database_url)
    try:
        with engine.connect() as connection:
            current = sorted(MigrationContext.configure(connection).get_current_heads())
            inspector = inspect(connection)
            tables = {
                name: [column["name"] for column in inspector.get_columns(name)]
                for name in sorted(inspector.get_table_names())
                if name != "alembic_version"
            }
    finally:
        engine.dispose()
    return current, tables


def generate_bindings(
    database_url: Optional[str] = None,
    output_path: Optional[Path] = None,
) -> Dict[str, object]:
    url = database_url or get_database_url()
    target = Path(output_path) if output_path is not None else CLIENT_BINDINGS_PATH

    current, tables = read_database_state(url)
    heads = script_heads()
    if current != heads:
        raise SchemaOutOfDateError(
            f"Database revision {', '.join(current) or 'none'} does not match "
            f"migration head {', '.join(heads) or 'none'}. Run migrations first."
        )

    expected = set(load_fragments().tables)
    missing = sorted(expected - set(tables))
    if missing:
        raise SchemaOutOfDateError("Database is missing tables: " + ", ".join(missing))

    bindings = {
        "revision": heads[0] if len(heads) == 1 else heads,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "tables": {name: columns for name, columns in tables.items() if name in expected},
    }
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(bindings, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.info("Wrote client bindings for %d tables to %s", len(bindings["tables"]), target)
    return bindings


def main() -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        generate_bindings()
    except (ConfigurationError, SchemaCompositionError, SchemaOutOfDateError) as exc:
        logger.error("Client generation failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
