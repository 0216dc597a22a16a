"""
Error types raised by the LogbookLM database tooling.

Everything here is fatal for the operation that raised it; nothing is
retried automatically.
"""

from __future__ import annotations

from typing import Sequence


class ConfigurationError(RuntimeError):
    """Required configuration (e.g. DATABASE_URL) is missing or invalid."""


class SchemaCompositionError(RuntimeError):
    """A schema fragment is missing or does not describe valid tables."""


class SchemaOutOfDateError(RuntimeError):
    """The target database is not at the migration head."""


class AuditLogImmutableError(RuntimeError):
    """Raised when code tries to update or delete an audit log row."""


class CommandFailedError(RuntimeError):
    """A tooling subprocess exited with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int):
        self.command = list(command)
        self.returncode = returncode
        super().__init__(f"{' '.join(self.command)} exited with code {returncode}")
