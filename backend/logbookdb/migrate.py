"""
Apply database migrations.

Steps, each run to completion before the next:
1) compose the schema fragments        (python -m logbookdb.schema.compose)
2) expose alembic/ under schema/.generated/migrations (symlink, else copy)
3) upgrade the database to head        (python -m alembic ... upgrade head)
4) regenerate client bindings          (python -m logbookdb.schema.generate)

Usage (from backend/):
  DATABASE_URL=postgresql+psycopg2://... python -m logbookdb.migrate
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Dict, Optional, Sequence

from .errors import CommandFailedError, ConfigurationError
from .schema import ALEMBIC_INI, GENERATED_MIGRATIONS_DIR, MIGRATIONS_SOURCE_DIR, PACKAGE_ROOT

logger = logging.getLogger(__name__)

# Subprocesses run from backend/ so `-m logbookdb...` resolves without an install.
WORKING_DIR = PACKAGE_ROOT.parent


def _run(command: Sequence[str], *, env: Optional[Dict[str, str]] = None) -> None:
    logger.info("Running: %s", " ".join(command))
    result = subprocess.run(list(command), cwd=str(WORKING_DIR), env=env)
    if result.returncode != 0:
        raise CommandFailedError(command, result.returncode)


def compose_command() -> list:
    return [sys.executable, "-m", "logbookdb.schema.compose"]


def alembic_command(*args: str) -> list:
    return [sys.executable, "-m", "alembic", "-c", str(ALEMBIC_INI), *args]


def generate_command() -> list:
    return [sys.executable, "-m", "logbookdb.schema.generate"]


def ensure_migrations_link(
    source: Path = MIGRATIONS_SOURCE_DIR,
    target: Path = GENERATED_MIGRATIONS_DIR,
) -> Path:
    """
    Make the migration scripts visible at the generated schema location.

    A symlink is preferred; when the filesystem refuses one (Windows without
    developer mode, some container mounts) the scripts are copied instead.
    A previous copy is replaced so it never serves stale revisions.
    """
    source = Path(source)
    target = Path(target)
    if not source.is_dir():
        raise ConfigurationError(f"Migration scripts not found at {source}")

    target.parent.mkdir(parents=True, exist_ok=True)
    if target.is_symlink():
        if target.resolve() == source.resolve():
            return target
        target.unlink()
    elif target.exists():
        shutil.rmtree(target)

    try:
        os.symlink(source, target, target_is_directory=True)
        logger.info("Linked %s -> %s", target, source)
    except OSError as exc:
        logger.warning("Could not link %s (%s); copying migrations instead", target, exc)
        shutil.copytree(source, target, ignore=shutil.ignore_patterns("__pycache__"))
    return target


def apply_migrations(database_url: str, *, skip_generate: bool = False) -> None:
    if not database_url:
        raise ConfigurationError("DATABASE_URL is required to apply migrations.")

    env = dict(os.environ)
    env["DATABASE_URL"] = database_url
    # The child processes must not pick up a different write URL.
    env.pop("DATABASE_WRITE_URL", None)

    _run(compose_command(), env=env)
    ensure_migrations_link()
    _run(alembic_command("upgrade", "head"), env=env)

    if not skip_generate:
        _run(generate_command(), env=env)


def main() -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    skip_generate = os.getenv("SKIP_GENERATE", "false").lower() in {"1", "true", "yes", "on"}
    try:
        apply_migrations(os.getenv("DATABASE_URL", "").strip(), skip_generate=skip_generate)
    except (ConfigurationError, CommandFailedError) as exc:
        logger.error("Migration failed: %s", exc)
        return 1
    logger.info("Migrations applied")
    return 0


if __name__ == "__main__":
    sys.exit(main())
