from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from logbookdb.apps.accounts import models as account_models
from logbookdb.apps.accounts.schemas import OrganizationCreate, UserCreate
from logbookdb.apps.audit import services as audit_services
from logbookdb.apps.fleet.models import Aircraft, Component, ComponentType
from logbookdb.apps.records.models import MaintenanceEvent, MaintenanceEventType


def _org(db_session, slug: str) -> account_models.Organization:
    org = account_models.Organization(name=slug.title(), slug=slug)
    db_session.add(org)
    db_session.commit()
    return org


def test_user_defaults(db_session, organization):
    user = account_models.User(
        org_id=organization.id,
        email="owner@skyshare.aero",
        display_name="Owner Pilot",
    )
    db_session.add(user)
    db_session.commit()

    assert user.role == account_models.UserRole.VIEWER
    assert user.status == account_models.UserStatus.ACTIVE
    assert len(user.id) == 36
    assert organization.timezone == "UTC"


def test_user_email_unique_per_organization(db_session, organization):
    db_session.add(
        account_models.User(org_id=organization.id, email="ia@skyshare.aero", display_name="IA")
    )
    db_session.commit()

    db_session.add(
        account_models.User(org_id=organization.id, email="ia@skyshare.aero", display_name="Duplicate")
    )
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_same_email_allowed_in_another_organization(db_session, organization):
    other = _org(db_session, "northwind")
    db_session.add_all(
        [
            account_models.User(org_id=organization.id, email="ia@example.com", display_name="IA"),
            account_models.User(org_id=other.id, email="ia@example.com", display_name="IA"),
        ]
    )
    db_session.commit()

    count = db_session.query(account_models.User).filter_by(email="ia@example.com").count()
    assert count == 2


def test_organization_slug_is_unique(db_session, organization):
    db_session.add(account_models.Organization(name="Clone", slug=organization.slug))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_user_create_accepts_camel_case_and_snake_case():
    camel = UserCreate.model_validate(
        {"email": "owner@skyshare.aero", "displayName": "Owner", "role": "OWNER"}
    )
    snake = UserCreate.model_validate({"email": "owner@skyshare.aero", "display_name": "Owner"})

    assert camel.display_name == "Owner"
    assert camel.role == account_models.UserRole.OWNER
    assert snake.role == account_models.UserRole.VIEWER


def test_user_create_rejects_unknown_fields_and_bad_email():
    with pytest.raises(ValidationError):
        UserCreate.model_validate({"email": "not-an-email", "displayName": "X"})
    with pytest.raises(ValidationError):
        UserCreate.model_validate(
            {"email": "owner@skyshare.aero", "displayName": "X", "password": "secret"}
        )


def test_organization_slug_format():
    assert OrganizationCreate(name="SkyShare", slug="sky-share").slug == "sky-share"
    with pytest.raises(ValidationError):
        OrganizationCreate(name="SkyShare", slug="Sky Share")


def test_deleting_organization_removes_its_rows(db_session, aircraft):
    org = db_session.get(account_models.Organization, aircraft.org_id)
    other = _org(db_session, "northwind")
    mechanic = account_models.User(org_id=org.id, email="ia@skyshare.aero", display_name="IA")
    db_session.add_all(
        [
            mechanic,
            account_models.User(org_id=other.id, email="ia@northwind.aero", display_name="IA"),
            Component(org_id=org.id, aircraft_id=aircraft.id, name="Engine", type=ComponentType.ENGINE),
            MaintenanceEvent(
                org_id=org.id,
                aircraft_id=aircraft.id,
                event_type=MaintenanceEventType.INSPECTION,
                performed_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
                description="Annual inspection",
            ),
        ]
    )
    db_session.flush()
    audit_services.log_event(
        db_session,
        org_id=org.id,
        actor_id=mechanic.id,
        entity_type="aircraft",
        entity_id=aircraft.id,
        action="inspect",
        critical=True,
    )
    db_session.commit()

    # Load the child collections before the delete.
    db_session.expire(org)
    assert len(org.users) == 1
    assert len(org.aircraft) == 1

    db_session.delete(org)
    db_session.commit()

    assert db_session.query(account_models.Organization).filter_by(id=org.id).count() == 0
    assert db_session.query(account_models.User).filter_by(org_id=org.id).count() == 0
    assert db_session.query(Aircraft).filter_by(org_id=org.id).count() == 0
    assert db_session.query(Component).filter_by(org_id=org.id).count() == 0
    assert db_session.query(MaintenanceEvent).filter_by(org_id=org.id).count() == 0
    assert db_session.query(account_models.User).filter_by(org_id=other.id).count() == 1
