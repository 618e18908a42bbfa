"""Property catalog: properties, units and join codes."""

import re

import pytest

from nestpay.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from nestpay.models import OccupancyRecord, Payment, Property, Unit
from nestpay.models.property import generate_join_code
from nestpay.services import catalog


def test_generated_join_code_format():
    for _ in range(20):
        assert re.fullmatch(r"[A-Z]{4}-\d{6}", generate_join_code())


def test_create_property_defaults(landlord):
    prop = catalog.create_property(landlord.id, {"title": "Muyenga Villas", "rent_amount": "750000"})

    assert prop.owner_id == landlord.id
    assert prop.rent_currency == "UGX"
    assert prop.country == "Uganda"
    assert prop.is_active is True
    assert re.fullmatch(r"[A-Z]{4}-\d{6}", prop.join_code)


@pytest.mark.parametrize("data", [
    {"rent_amount": 1000},
    {"title": "x" * 201, "rent_amount": 1000},
    {"title": "Ok", "rent_amount": 0},
    {"title": "Ok", "rent_amount": 1000, "rent_currency": "SHILLINGS"},
    {"title": "Ok", "rent_amount": 1000, "rent_due_day": 32},
    {"title": "Ok", "rent_amount": 1000, "rent_due_day": 2.5},
])
def test_create_property_validation(landlord, data):
    with pytest.raises(ValidationError):
        catalog.create_property(landlord.id, data)
    assert Property.query.count() == 0


def test_join_code_collision_retries(landlord, prop, monkeypatch):
    codes = iter(["ABCD-123456", "WXYZ-654321"])
    monkeypatch.setattr("nestpay.services.catalog.generate_join_code", lambda: next(codes))

    second = catalog.create_property(landlord.id, {"title": "Second", "rent_amount": 1})
    assert second.join_code == "WXYZ-654321"


def test_regenerate_join_code(manager, tenant, prop):
    catalog.regenerate_join_code(prop)
    assert prop.join_code != "ABCD-123456"
    with pytest.raises(NotFoundError):
        catalog.resolve_join_code("ABCD-123456")
    assert catalog.resolve_join_code(prop.join_code).id == prop.id


def test_get_owned_property(landlord, tenant, prop):
    assert catalog.get_owned_property(prop.id, landlord.id) is prop
    with pytest.raises(PermissionDeniedError):
        catalog.get_owned_property(prop.id, tenant.id)


def test_unit_rent_overrides_property(prop):
    plain = catalog.create_unit(prop, {"label": "A1"})
    premium = catalog.create_unit(prop, {"label": "PH", "rent_amount": 900000})

    assert float(plain.effective_rent) == 500000
    assert float(premium.effective_rent) == 900000
    assert plain.is_available is True and plain.tenant_id is None


def test_unit_labels_unique_per_property(prop):
    catalog.create_unit(prop, {"label": "A1"})
    with pytest.raises(ConflictError):
        catalog.create_unit(prop, {"label": "A1"})


def test_available_units(manager, tenant, prop):
    a1 = catalog.create_unit(prop, {"label": "A1"})
    catalog.create_unit(prop, {"label": "A2"})
    record = manager.submit_join_request(tenant.id, "ABCD-123456", unit_id=a1.id)
    manager.approve_request(record.id)

    assert [u.label for u in catalog.available_units(prop.id)] == ["A2"]


@pytest.mark.parametrize("value", ["false", "true", 0, 1, None])
def test_is_active_accepts_only_booleans(prop, value):
    with pytest.raises(ValidationError):
        catalog.update_property(prop, {"is_active": value})
    assert prop.is_active is True


def test_deactivate_property(prop):
    catalog.update_property(prop, {"is_active": False})
    assert prop.is_active is False
    with pytest.raises(NotFoundError):
        catalog.resolve_join_code("ABCD-123456")


class TestDeleteUnit:
    def test_deletes_vacant_unit(self, db, prop, unit):
        catalog.delete_unit(unit)
        assert Unit.query.filter_by(property_id=prop.id).count() == 0

    def test_refuses_occupied_unit(self, db, manager, tenant, prop, unit):
        record = manager.submit_join_request(tenant.id, "ABCD-123456", unit_id=unit.id)
        manager.approve_request(record.id)

        with pytest.raises(ConflictError):
            catalog.delete_unit(unit)

        kept = db.session.get(Unit, unit.id)
        assert kept.tenant_id == tenant.id
        assert db.session.get(OccupancyRecord, record.id).unit_id == unit.id

    def test_detaches_requests_and_payments(self, db, manager, tenant, prop, unit):
        record = manager.submit_join_request(tenant.id, "ABCD-123456", unit_id=unit.id)
        payment = manager.record_payment(tenant.id, prop.id, 1000, unit_id=unit.id)

        catalog.delete_unit(unit)

        assert db.session.get(OccupancyRecord, record.id).unit_id is None
        assert db.session.get(Payment, payment.id).unit_id is None

    def test_can_delete_after_vacating(self, db, manager, tenant, prop, unit):
        record = manager.submit_join_request(tenant.id, "ABCD-123456", unit_id=unit.id)
        manager.approve_request(record.id)
        manager.mark_vacant(unit.id)
        unit_id = unit.id

        catalog.delete_unit(db.session.get(Unit, unit_id))
        assert db.session.get(Unit, unit_id) is None


class TestBrowse:
    def test_lists_active_properties_without_codes(self, landlord, prop, unit):
        hidden = catalog.create_property(landlord.id, {"title": "Closed", "rent_amount": 1})
        catalog.update_property(hidden, {"is_active": False})

        results = catalog.browse_properties()

        assert [p["id"] for p in results] == [prop.id]
        assert "join_code" not in results[0]
        assert results[0]["available_units"] == 1
        assert results[0]["review_count"] == 0

    def test_search_matches_location(self, landlord, prop):
        catalog.create_property(landlord.id, {"title": "Lakeview", "city": "Entebbe", "rent_amount": 1})

        assert [p["title"] for p in catalog.browse_properties("entebbe")] == ["Lakeview"]
        assert [p["title"] for p in catalog.browse_properties("kololo")] == ["Kololo Heights"]
        assert catalog.browse_properties("nowhere") == []
