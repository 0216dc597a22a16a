"""
Seed baseline fixture data.

Reads scripts/fixtures/default_seed.json and upserts:
- the organization (by slug),
- its users (by org + email),
- its aircraft (by org + tail number).

Existing rows are left untouched, so the script is safe to re-run.

Usage (from backend/):
  DATABASE_URL=postgresql+psycopg2://... python -m logbookdb.scripts.seed
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session, sessionmaker

from logbookdb.apps.accounts.models import Organization, User
from logbookdb.apps.accounts.schemas import OrganizationCreate, UserCreate
from logbookdb.apps.fleet.models import Aircraft
from logbookdb.apps.fleet.schemas import AircraftCreate
from logbookdb.database import create_session_factory

logger = logging.getLogger(__name__)

FIXTURE_PATH = Path(__file__).resolve().parent / "fixtures" / "default_seed.json"


class SeedFixture(BaseModel):
    model_config = ConfigDict(extra="forbid")

    organization: OrganizationCreate
    users: List[UserCreate] = []
    aircraft: List[AircraftCreate] = []


def load_fixture(path: Union[str, Path] = FIXTURE_PATH) -> SeedFixture:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return SeedFixture.model_validate(raw)


def ensure_organization(db: Session, data: OrganizationCreate) -> Organization:
    org = db.query(Organization).filter(Organization.slug == data.slug).first()
    if org:
        return org

    org = Organization(**data.model_dump())
    db.add(org)
    db.flush()
    return org


def ensure_user(db: Session, org: Organization, data: UserCreate) -> tuple[User, bool]:
    email = str(data.email).lower().strip()
    existing = (
        db.query(User)
        .filter(User.org_id == org.id, User.email == email)
        .first()
    )
    if existing:
        return existing, False

    user = User(
        org_id=org.id,
        email=email,
        display_name=data.display_name,
        role=data.role,
        status=data.status,
    )
    db.add(user)
    db.flush()
    return user, True


def ensure_aircraft(db: Session, org: Organization, data: AircraftCreate) -> tuple[Aircraft, bool]:
    tail_number = data.tail_number.upper().strip()
    existing = (
        db.query(Aircraft)
        .filter(Aircraft.org_id == org.id, Aircraft.tail_number == tail_number)
        .first()
    )
    if existing:
        return existing, False

    aircraft = Aircraft(
        org_id=org.id,
        tail_number=tail_number,
        make=data.make,
        model=data.model,
        serial_number=data.serial_number,
        year=data.year,
    )
    db.add(aircraft)
    db.flush()
    return aircraft, True


def seed(db: Session, fixture: SeedFixture) -> Dict[str, int]:
    org = ensure_organization(db, fixture.organization)

    users_created = 0
    for user_data in fixture.users:
        _user, created = ensure_user(db, org, user_data)
        users_created += int(created)

    aircraft_created = 0
    for aircraft_data in fixture.aircraft:
        _aircraft, created = ensure_aircraft(db, org, aircraft_data)
        aircraft_created += int(created)

    return {
        "users_created": users_created,
        "aircraft_created": aircraft_created,
    }


def run(
    fixture_path: Union[str, Path] = FIXTURE_PATH,
    session_factory: Optional[sessionmaker] = None,
) -> int:
    """
    Seed the database and return a process exit status (0 ok, 1 failed).
    """
    db: Optional[Session] = None
    owned_engine = None
    try:
        if session_factory is None:
            session_factory = create_session_factory()
            owned_engine = session_factory.kw.get("bind")
        db = session_factory()

        fixture = load_fixture(fixture_path)
        summary = seed(db, fixture)
        db.commit()
        logger.info(
            "Seeded organization %s: %d users and %d aircraft created",
            fixture.organization.slug,
            summary["users_created"],
            summary["aircraft_created"],
        )
        return 0
    except Exception:
        logger.exception("Seed failed")
        if db is not None:
            db.rollback()
        return 1
    finally:
        if db is not None:
            db.close()
        if owned_engine is not None:
            owned_engine.dispose()


def main() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(run())


if __name__ == "__main__":
    main()
