# backend/logbookdb/__init__.py
"""
LogbookLM database package.

- apps/*/models.py   SQLAlchemy models (the schema fragments)
- schema/            compose + client-binding generation
- alembic/           migration scripts
- migrate.py         migration runner
- scripts/seed.py    baseline fixture seeding

Model modules are not imported here; use
`logbookdb.schema.compose.load_fragments()` to register every table.
"""

__version__ = "0.1.0"
