"""Payment ledger: recording, confirmation and the occupancy cascade."""

from datetime import datetime
from decimal import Decimal

import pytest

from nestpay.errors import InvalidStateError, NotFoundError, ValidationError
from nestpay.models import OccupancyRecord, OccupancyStatus, Payment, PaymentStatus
from nestpay.services import catalog


@pytest.fixture
def tenancy(manager, tenant, prop):
    record = manager.submit_join_request(tenant.id, "ABCD-123456")
    return manager.approve_request(record.id)


class TestRecordPayment:
    def test_manual_payment_is_pending(self, manager, tenant, prop, tenancy):
        payment = manager.record_payment(tenant.id, prop.id, 500000, currency="UGX", method="manual")

        assert payment.status == PaymentStatus.PENDING
        assert payment.amount == Decimal("500000")
        assert payment.currency == "UGX"
        assert payment.provider is None
        assert payment.duration_months == 1
        assert payment.paid_on is None

    def test_does_not_touch_occupancy(self, manager, tenant, prop, tenancy, db):
        manager.record_payment(tenant.id, prop.id, 500000)
        assert db.session.get(OccupancyRecord, tenancy.id).last_payment_date is None

    def test_online_payment_needs_provider(self, manager, tenant, prop):
        with pytest.raises(ValidationError, match="provider"):
            manager.record_payment(tenant.id, prop.id, 1000, method="online")

        payment = manager.record_payment(tenant.id, prop.id, 1000, method="online", provider="mtn_momo")
        assert payment.provider == "mtn_momo"

    def test_manual_payment_rejects_provider(self, manager, tenant, prop):
        with pytest.raises(ValidationError):
            manager.record_payment(tenant.id, prop.id, 1000, method="manual", provider="mtn_momo")

    @pytest.mark.parametrize("amount", [0, -5, "abc", None, 100000000.01, float("inf")])
    def test_amount_bounds(self, manager, tenant, prop, amount):
        with pytest.raises(ValidationError):
            manager.record_payment(tenant.id, prop.id, amount)

    def test_amount_upper_bound_inclusive(self, manager, tenant, prop):
        payment = manager.record_payment(tenant.id, prop.id, 100000000)
        assert payment.amount == Decimal("100000000")

    @pytest.mark.parametrize("currency", ["US", "USDX", "12A", ""])
    def test_currency_must_be_three_letters(self, manager, tenant, prop, currency):
        with pytest.raises(ValidationError):
            manager.record_payment(tenant.id, prop.id, 1000, currency=currency)

    def test_unknown_method(self, manager, tenant, prop):
        with pytest.raises(ValidationError):
            manager.record_payment(tenant.id, prop.id, 1000, method="cheque")

    def test_unknown_property(self, manager, tenant):
        with pytest.raises(NotFoundError):
            manager.record_payment(tenant.id, "missing", 1000)

    def test_unit_from_other_property(self, manager, tenant, landlord, prop):
        other = catalog.create_property(landlord.id, {"title": "Other", "rent_amount": 1})
        other_unit = catalog.create_unit(other, {"label": "Z"})
        with pytest.raises(ValidationError):
            manager.record_payment(tenant.id, prop.id, 1000, unit_id=other_unit.id)

    def test_nothing_stored_on_validation_error(self, manager, tenant, prop):
        with pytest.raises(ValidationError):
            manager.record_payment(tenant.id, prop.id, 0)
        assert Payment.query.count() == 0


class TestConfirmPayment:
    def test_confirm_sets_paid_and_expiry(self, manager, tenant, prop, tenancy):
        payment = manager.record_payment(tenant.id, prop.id, 500000, duration_months=3)
        paid_on = datetime(2025, 1, 31, 9, 0)

        payment = manager.confirm_payment(payment.id, paid_on=paid_on, provider_ref="manual")

        assert payment.status == PaymentStatus.PAID
        assert payment.paid_on == paid_on
        assert payment.provider_ref == "manual"
        assert payment.payment_expires_at == datetime(2025, 4, 30, 9, 0)

    def test_month_end_rolls_back_to_shorter_month(self, manager, tenant, prop, tenancy):
        payment = manager.record_payment(tenant.id, prop.id, 500000)
        payment = manager.confirm_payment(payment.id, paid_on=datetime(2025, 1, 31))
        assert payment.payment_expires_at == datetime(2025, 2, 28)

    def test_no_duration_means_no_expiry(self, manager, tenant, prop, tenancy):
        payment = manager.record_payment(tenant.id, prop.id, 500000, duration_months=None)
        payment = manager.confirm_payment(payment.id, paid_on=datetime(2025, 1, 1))
        assert payment.payment_expires_at is None

    def test_confirm_defaults_to_now(self, manager, tenant, prop, tenancy):
        from tests.conftest import NOW

        payment = manager.record_payment(tenant.id, prop.id, 500000)
        payment = manager.confirm_payment(payment.id)
        assert payment.paid_on == NOW

    def test_confirm_twice_fails_and_keeps_first(self, manager, tenant, prop, tenancy, db):
        payment = manager.record_payment(tenant.id, prop.id, 500000)
        first_paid_on = datetime(2025, 2, 1)
        manager.confirm_payment(payment.id, paid_on=first_paid_on, provider_ref="first")

        with pytest.raises(InvalidStateError):
            manager.confirm_payment(payment.id, paid_on=datetime(2025, 2, 15), provider_ref="second")

        payment = db.session.get(Payment, payment.id)
        assert payment.status == PaymentStatus.PAID
        assert payment.paid_on == first_paid_on
        assert payment.provider_ref == "first"

    def test_updates_last_payment_date(self, manager, tenant, prop, tenancy, db):
        payment = manager.record_payment(tenant.id, prop.id, 500000)
        manager.confirm_payment(payment.id, paid_on=datetime(2025, 2, 1))

        assert db.session.get(OccupancyRecord, tenancy.id).last_payment_date == datetime(2025, 2, 1)

    def test_last_payment_date_never_goes_backwards(self, manager, tenant, prop, tenancy, db):
        late = manager.record_payment(tenant.id, prop.id, 500000)
        early = manager.record_payment(tenant.id, prop.id, 500000)

        manager.confirm_payment(late.id, paid_on=datetime(2025, 3, 1))
        manager.confirm_payment(early.id, paid_on=datetime(2025, 1, 1))

        assert db.session.get(OccupancyRecord, tenancy.id).last_payment_date == datetime(2025, 3, 1)

    def test_prefers_active_record_over_history(self, manager, tenant, prop, db):
        old = manager.submit_join_request(tenant.id, "ABCD-123456")
        manager.approve_request(old.id)
        manager.mark_inactive(old.id)
        current = manager.submit_join_request(tenant.id, "ABCD-123456")
        manager.approve_request(current.id)

        payment = manager.record_payment(tenant.id, prop.id, 500000)
        manager.confirm_payment(payment.id, paid_on=datetime(2025, 2, 1))

        assert db.session.get(OccupancyRecord, current.id).last_payment_date == datetime(2025, 2, 1)
        assert db.session.get(OccupancyRecord, old.id).last_payment_date is None

    def test_fail_payment(self, manager, tenant, prop, tenancy, db):
        payment = manager.record_payment(tenant.id, prop.id, 500000)
        payment = manager.fail_payment(payment.id, reason="Mobile money reversed")

        assert payment.status == PaymentStatus.FAILED
        assert payment.meta["failure_reason"] == "Mobile money reversed"
        with pytest.raises(InvalidStateError):
            manager.confirm_payment(payment.id)
        assert db.session.get(OccupancyRecord, tenancy.id).last_payment_date is None

    def test_unknown_payment(self, manager):
        with pytest.raises(NotFoundError):
            manager.confirm_payment("missing")


def test_join_approve_pay_confirm_scenario(manager, tenant, prop, db):
    """Tenant joins by code, is approved, pays 500,000 UGX and the landlord confirms."""
    record = manager.submit_join_request(tenant.id, "ABCD-123456")
    assert record.status == OccupancyStatus.PENDING

    record = manager.approve_request(record.id)
    assert record.status == OccupancyStatus.ACTIVE
    assert record.joined_at is not None

    payment = manager.record_payment(tenant.id, prop.id, amount=500000, currency="UGX", method="manual")
    assert payment.status == PaymentStatus.PENDING

    paid_on = datetime(2025, 3, 2, 10, 30)
    payment = manager.confirm_payment(payment.id, paid_on=paid_on, provider_ref="manual")
    assert payment.status == PaymentStatus.PAID
    assert db.session.get(OccupancyRecord, record.id).last_payment_date == paid_on
