"""Shared fixtures: an app on in-memory sqlite, seeded users and a property."""

import logging
from datetime import datetime

import pytest
from flask_jwt_extended import create_access_token

from nestpay import create_app
from nestpay.extensions import db as _db
from nestpay.models import OccupancyRecord, OccupancyStatus, Unit, UserProfile
from nestpay.services import catalog
from nestpay.services.lifecycle import OccupancyLifecycleManager

logging.basicConfig(
    level=logging.DEBUG, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

NOW = datetime(2025, 3, 1, 12, 0, 0)


@pytest.fixture
def app():
    app = create_app("nestpay.config.TestConfig")
    app.extensions["nestpay.lifecycle"] = OccupancyLifecycleManager(clock=lambda: NOW)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def manager(app):
    return app.extensions["nestpay.lifecycle"]


def _user(full_name, email, role):
    user = UserProfile(full_name=full_name, email=email, role=role)
    _db.session.add(user)
    _db.session.commit()
    return user


@pytest.fixture
def landlord(app):
    return _user("Grace Landlord", "grace@example.com", "landlord")


@pytest.fixture
def tenant(app):
    return _user("Tom Tenant", "tom@example.com", "tenant")


@pytest.fixture
def other_tenant(app):
    return _user("Tina Tenant", "tina@example.com", "tenant")


@pytest.fixture
def prop(landlord):
    prop = catalog.create_property(landlord.id, {
        "title": "Kololo Heights",
        "rent_amount": 500000,
        "rent_currency": "UGX",
    })
    # fixed code so scenarios can use it verbatim
    prop.join_code = "ABCD-123456"
    _db.session.commit()
    return prop


@pytest.fixture
def unit(prop):
    return catalog.create_unit(prop, {"label": "A1"})


def auth_headers(user):
    token = create_access_token(identity=user.id, additional_claims={"role": user.role})
    return {"Authorization": f"Bearer {token}"}


def assert_occupancy_invariants():
    """Unit availability matches assignment; active records own their unit."""
    for unit in Unit.query.all():
        assert unit.is_available == (unit.tenant_id is None), unit
    active = OccupancyRecord.query.filter_by(status=OccupancyStatus.ACTIVE).all()
    for record in active:
        if record.unit_id:
            unit = _db.session.get(Unit, record.unit_id)
            assert unit.is_available is False
            assert unit.tenant_id == record.tenant_id
