"""
Approvals racing for the same unit on a real database file.

Each worker thread pushes its own app context and so gets its own session
and connection; sqlite serialises the writes.
"""

import threading

import pytest

from nestpay import create_app
from nestpay.config import TestConfig
from nestpay.errors import ConflictError
from nestpay.extensions import db as _db
from nestpay.models import OccupancyRecord, OccupancyStatus, Unit
from nestpay.services.lifecycle import OccupancyLifecycleManager
from tests.conftest import NOW, assert_occupancy_invariants


@pytest.fixture
def app(tmp_path):
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'nestpay.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30, "check_same_thread": False}}

    app = create_app(FileConfig)
    app.extensions["nestpay.lifecycle"] = OccupancyLifecycleManager(clock=lambda: NOW)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()
        _db.engine.dispose()


def _approve(app, record_id, barrier, outcomes):
    with app.app_context():
        barrier.wait(timeout=10)
        try:
            app.extensions["nestpay.lifecycle"].approve_request(record_id)
            outcomes.append("approved")
        except ConflictError:
            outcomes.append("conflict")
        except Exception as exc:
            outcomes.append(repr(exc))
        finally:
            _db.session.remove()


def test_two_tenants_approved_at_once_only_one_gets_the_unit(app, manager, tenant, other_tenant, prop, unit):
    first = manager.submit_join_request(tenant.id, "ABCD-123456", unit_id=unit.id)
    second = manager.submit_join_request(other_tenant.id, "ABCD-123456", unit_id=unit.id)
    record_ids = {first.id: tenant.id, second.id: other_tenant.id}
    unit_id = unit.id
    _db.session.close()

    barrier = threading.Barrier(2)
    outcomes = []
    threads = [
        threading.Thread(target=_approve, args=(app, record_id, barrier, outcomes))
        for record_id in record_ids
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert sorted(outcomes) == ["approved", "conflict"]

    records = OccupancyRecord.query.filter(OccupancyRecord.id.in_(list(record_ids))).all()
    statuses = sorted(r.status for r in records)
    assert statuses == [OccupancyStatus.ACTIVE, OccupancyStatus.PENDING]

    winner = next(r for r in records if r.status == OccupancyStatus.ACTIVE)
    loser = next(r for r in records if r.status == OccupancyStatus.PENDING)
    assert _db.session.get(Unit, unit_id).tenant_id == record_ids[winner.id]
    assert loser.joined_at is None
    assert_occupancy_invariants()
