"""
Compose the schema fragments into one canonical DDL file.

Each fragment is a model module (see SCHEMA_FRAGMENTS). Composition:
1) imports every fragment; a missing module is an error,
2) checks each fragment registers at least one table,
3) checks tenant scoping (org_id on every non-root table),
4) configures all mappers so broken relationships fail here,
5) renders PostgreSQL DDL for the merged metadata.

Usage (from backend/):
  python -m logbookdb.schema.compose
"""

from __future__ import annotations

import importlib
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import Enum, MetaData
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.schema import CreateIndex, CreateTable

from ..database import Base
from ..errors import SchemaCompositionError
from . import COMPOSED_SCHEMA_PATH, SCHEMA_FRAGMENTS, TENANT_ROOT_TABLES

logger = logging.getLogger(__name__)


def _tables_for_module(module_name: str) -> List[str]:
    return sorted(
        mapper.local_table.name
        for mapper in Base.registry.mappers
        if mapper.class_.__module__ == module_name
    )


def load_fragments(fragments: Sequence[str] = SCHEMA_FRAGMENTS) -> MetaData:
    """
    Import and validate every fragment, returning the merged metadata.
    """
    if not fragments:
        raise SchemaCompositionError("No schema fragments configured.")

    for module_name in fragments:
        try:
            importlib.import_module(module_name)
        except ModuleNotFoundError as exc:
            raise SchemaCompositionError(f"Schema fragment {module_name} is missing: {exc}") from exc
        except (SyntaxError, ImportError, SQLAlchemyError) as exc:
            raise SchemaCompositionError(f"Schema fragment {module_name} is invalid: {exc}") from exc

        tables = _tables_for_module(module_name)
        if not tables:
            raise SchemaCompositionError(f"Schema fragment {module_name} does not define any tables.")
        logger.debug("Loaded fragment %s: %s", module_name, ", ".join(tables))

    try:
        Base.registry.configure()
    except SQLAlchemyError as exc:
        raise SchemaCompositionError(f"Schema fragments do not configure cleanly: {exc}") from exc

    metadata = Base.metadata
    unscoped = sorted(
        name
        for name, table in metadata.tables.items()
        if name not in TENANT_ROOT_TABLES and "org_id" not in table.c
    )
    if unscoped:
        raise SchemaCompositionError(
            "Tables without an org_id column break tenant scoping: " + ", ".join(unscoped)
        )
    return metadata


def _enum_types(metadata: MetaData) -> List[Enum]:
    seen = {}
    for table in metadata.sorted_tables:
        for column in table.columns:
            col_type = column.type
            if isinstance(col_type, Enum) and col_type.name and col_type.name not in seen:
                seen[col_type.name] = col_type
    return [seen[name] for name in sorted(seen)]


def _quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def render_schema(metadata: MetaData, fragments: Iterable[str] = SCHEMA_FRAGMENTS) -> str:
    dialect = postgresql.dialect()
    generated_at = datetime.now(timezone.utc).replace(microsecond=0).isoformat()

    parts = [
        "-- Generated by logbookdb.schema.compose. Do not edit by hand.",
        f"-- Generated at: {generated_at}",
        "-- Fragments:",
    ]
    parts.extend(f"--   {name}" for name in fragments)
    parts.append("")

    for enum_type in _enum_types(metadata):
        values = ", ".join(_quote_literal(v) for v in enum_type.enums)
        parts.append(f"CREATE TYPE {enum_type.name} AS ENUM ({values});")
    parts.append("")

    for table in metadata.sorted_tables:
        parts.append(str(CreateTable(table).compile(dialect=dialect)).strip() + ";")
        for index in sorted(table.indexes, key=lambda ix: ix.name or ""):
            parts.append(str(CreateIndex(index).compile(dialect=dialect)).strip() + ";")
        parts.append("")

    return "\n".join(parts)


def compose_schema(
    output_path: Optional[Path] = None,
    fragments: Sequence[str] = SCHEMA_FRAGMENTS,
) -> Path:
    target = Path(output_path) if output_path is not None else COMPOSED_SCHEMA_PATH
    metadata = load_fragments(fragments)
    ddl = render_schema(metadata, fragments)

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(ddl, encoding="utf-8")
    logger.info("Composed %d tables into %s", len(metadata.tables), target)
    return target


def main() -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        compose_schema()
    except SchemaCompositionError as exc:
        logger.error("Schema composition failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
