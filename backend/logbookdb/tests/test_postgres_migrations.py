"""
End-to-end migration tests against a throwaway PostgreSQL container.

Skipped when Docker is not reachable.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError

postgres = pytest.importorskip("testcontainers.postgres")

from logbookdb.apps.accounts.models import Organization, User  # noqa: E402
from logbookdb.apps.audit import services as audit_services  # noqa: E402
from logbookdb.apps.compliance import models as compliance_models  # noqa: E402
from logbookdb.apps.fleet import models as fleet_models  # noqa: E402
from logbookdb.apps.records import models as record_models  # noqa: E402
from logbookdb.database import create_session_factory  # noqa: E402
from logbookdb.migrate import apply_migrations  # noqa: E402
from logbookdb.schema import CLIENT_BINDINGS_PATH, COMPOSED_SCHEMA_PATH  # noqa: E402
from logbookdb.scripts import seed  # noqa: E402


def _docker_available() -> bool:
    try:
        import docker

        docker.from_env().ping()
    except Exception:
        return False
    return True


pytestmark = pytest.mark.skipif(not _docker_available(), reason="Docker is not available")


@pytest.fixture(scope="module")
def database_url():
    with postgres.PostgresContainer("postgres:15-alpine") as container:
        url = container.get_connection_url()
        apply_migrations(url)
        yield url


@pytest.fixture()
def session_factory(database_url):
    factory = create_session_factory(database_url)
    yield factory
    factory.kw["bind"].dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def test_migration_writes_generated_artifacts(database_url):
    assert "CREATE TABLE maintenance_events" in COMPOSED_SCHEMA_PATH.read_text(encoding="utf-8")

    bindings = json.loads(CLIENT_BINDINGS_PATH.read_text(encoding="utf-8"))
    assert bindings["revision"] == "0002_audit_logs_append_only"
    assert "due_items" in bindings["tables"]


def test_maintenance_records_round_trip(session_factory, db):
    assert seed.run(session_factory=session_factory) == 0

    org = db.query(Organization).filter_by(slug="skyshare").one()
    aircraft = db.query(fleet_models.Aircraft).filter_by(org_id=org.id, tail_number="N9876Q").one()
    mechanic = db.query(User).filter_by(org_id=org.id, email="ia@skyshare.aero").one()

    engine = fleet_models.Component(
        org_id=org.id,
        aircraft_id=aircraft.id,
        name="Engine",
        type=fleet_models.ComponentType.ENGINE,
        serial_number="L-12345-48A",
        manufacturer="Lycoming",
    )
    signatory = record_models.Signatory(
        org_id=org.id,
        full_name="Inspection Authority",
        credential_type=record_models.CredentialType.IA,
        certificate_id="IA-123456",
    )
    directive = record_models.Directive(
        org_id=org.id,
        directive_type=record_models.DirectiveType.AIRWORTHINESS_DIRECTIVE,
        reference_code="2024-01-01",
        title="Fuel selector inspection",
        applicability={"aircraft": ["PA-46"]},
    )
    db.add_all([engine, signatory, directive])
    db.flush()

    event = record_models.MaintenanceEvent(
        org_id=org.id,
        aircraft_id=aircraft.id,
        component_id=engine.id,
        signatory_id=signatory.id,
        event_type=record_models.MaintenanceEventType.AD_COMPLIANCE,
        performed_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
        description="Complied with AD 2024-01-01",
        tach_hours=Decimal("1234.50"),
    )
    db.add(event)
    db.flush()
    db.add(
        record_models.MaintenanceEventDirective(
            org_id=org.id,
            event_id=event.id,
            directive_id=directive.id,
            compliance_status=record_models.ComplianceStatus.COMPLIED,
        )
    )
    db.add(
        compliance_models.Embedding(
            org_id=org.id,
            scope=compliance_models.EmbeddingScope.MAINTENANCE_EVENT,
            target_event_id=event.id,
            dimensions=3,
            vector=[0.1, 0.2, 0.3],
        )
    )
    audit_services.log_event(
        db,
        org_id=org.id,
        actor_id=mechanic.id,
        entity_type="maintenance_event",
        entity_id=event.id,
        action="sign",
        critical=True,
    )
    db.commit()
    db.expire_all()

    stored = db.get(record_models.MaintenanceEvent, event.id)
    assert stored.tach_hours == Decimal("1234.50")
    assert stored.component.serial_number == "L-12345-48A"
    assert stored.signatory.certificate_id == "IA-123456"
    assert len(stored.directives) == 1
    assert stored.directives[0].directive.reference_code == "2024-01-01"


def test_duplicate_aircraft_rejected(session_factory, db):
    assert seed.run(session_factory=session_factory) == 0
    org = db.query(Organization).filter_by(slug="skyshare").one()

    db.add(fleet_models.Aircraft(org_id=org.id, tail_number="N9876Q", make="Piper", model="PA-46"))
    with pytest.raises(IntegrityError):
        db.flush()


def test_embedding_checks_enforced_by_database(session_factory, db):
    assert seed.run(session_factory=session_factory) == 0
    org = db.query(Organization).filter_by(slug="skyshare").one()

    insert = text(
        "INSERT INTO embeddings (id, org_id, scope, dimensions, vector, created_at) "
        "VALUES (:id, :org_id, 'COMPLIANCE_SNAPSHOT', :dimensions, :vector, now())"
    )
    # No target at all.
    with pytest.raises(IntegrityError):
        db.execute(insert, {"id": "emb-1", "org_id": org.id, "dimensions": 2, "vector": [0.1, 0.2]})


def test_embedding_dimensions_enforced_by_database(session_factory, db):
    assert seed.run(session_factory=session_factory) == 0
    org = db.query(Organization).filter_by(slug="skyshare").one()
    aircraft = db.query(fleet_models.Aircraft).filter_by(org_id=org.id, tail_number="N123SK").one()

    snapshot = compliance_models.ComplianceSnapshot(
        org_id=org.id,
        aircraft_id=aircraft.id,
        as_of=datetime(2024, 3, 2, tzinfo=timezone.utc),
        summary={"overdue": []},
    )
    db.add(snapshot)
    db.flush()

    with pytest.raises(IntegrityError):
        db.execute(
            text(
                "INSERT INTO embeddings "
                "(id, org_id, scope, target_compliance_snapshot_id, dimensions, vector, created_at) "
                "VALUES (:id, :org_id, 'COMPLIANCE_SNAPSHOT', :snapshot_id, 3, :vector, now())"
            ),
            {"id": "emb-2", "org_id": org.id, "snapshot_id": snapshot.id, "vector": [0.1, 0.2]},
        )


def test_audit_log_update_blocked_by_trigger(session_factory, db):
    assert seed.run(session_factory=session_factory) == 0
    org = db.query(Organization).filter_by(slug="skyshare").one()

    entry = audit_services.log_event(
        db,
        org_id=org.id,
        entity_type="aircraft",
        entity_id="N9876Q",
        action="create",
        critical=True,
    )
    db.commit()

    with pytest.raises(DBAPIError):
        db.execute(
            text("UPDATE audit_logs SET action = 'delete' WHERE id = :id"),
            {"id": entry.id},
        )
