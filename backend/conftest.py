from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.pop("DATABASE_WRITE_URL", None)

from logbookdb.database import Base, create_db_engine  # noqa: E402
from logbookdb.schema.compose import load_fragments  # noqa: E402

load_fragments()


@pytest.fixture()
def db_session():
    engine = create_db_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def organization(db_session):
    from logbookdb.apps.accounts.models import Organization

    org = Organization(name="SkyShare Aviation", slug="skyshare")
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture()
def aircraft(db_session, organization):
    from logbookdb.apps.fleet.models import Aircraft

    ac = Aircraft(
        org_id=organization.id,
        tail_number="N9876Q",
        make="Piper",
        model="PA-46",
        serial_number="PA46-001",
        year=2014,
    )
    db_session.add(ac)
    db_session.commit()
    return ac
