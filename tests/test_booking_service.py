"""Tests for the booking lifecycle: transitions, completion, payments, expenses, staff."""

from datetime import date

import pytest

from catering.models.booking import Booking
from catering.models.transaction import Transaction
from catering.schemas.booking import BookingCreate, LocationIn
from catering.services import booking_service as svc
from catering.services.calendar_service import add_closed_day
from catering.services.errors import ConflictError, InvalidTransitionError, NotFoundError, ValidationError

TODAY = date(2025, 1, 10)


def _form(**overrides) -> BookingCreate:
    values = dict(
        eventType="wedding",
        eventDate=date(2025, 3, 15),
        eventTime="14:00",
        guestCount=80,
        location=LocationIn(address="Garden Pavilion"),
        packageName="Grand Celebration",
        basePrice=40000,
        foodAddonsPrice=6000,
        servicesAddonsPrice=4000,
        discount=5000,
    )
    values.update(overrides)
    return BookingCreate(**values)


# ============== Create ==============

class TestCreateBooking:
    def test_total_and_initial_state(self, db_session, customer):
        b = svc.create_booking(db_session, _form(), customer=customer, today=TODAY)
        assert b.total_price == 50000
        assert b.status == "pending"
        assert b.payment_status == "pending"
        assert b.user_id == customer.id
        assert b.customer_email == customer.email
        assert svc.amount_due(b) == 45000

    def test_downpayment_marks_partial(self, db_session, customer):
        b = svc.create_booking(db_session, _form(downpayment=10000), customer=customer, today=TODAY)
        assert b.amount_paid == 10000
        assert b.payment_status == "partial"

    def test_closed_date_rejected(self, db_session, customer, manager):
        add_closed_day(db_session, "2025-03-15", "Staff retreat", manager.id)
        with pytest.raises(ValidationError, match="Staff retreat"):
            svc.create_booking(db_session, _form(), customer=customer, today=TODAY)
        assert db_session.query(Booking).count() == 0

    def test_past_date_rejected(self, db_session, customer):
        with pytest.raises(ValidationError):
            svc.create_booking(db_session, _form(eventDate=date(2024, 12, 31)), customer=customer, today=TODAY)

    def test_unknown_event_type_rejected(self, db_session, customer):
        with pytest.raises(ValidationError):
            svc.create_booking(db_session, _form(eventType="rave"), customer=customer, today=TODAY)

    def test_discount_above_total_rejected(self, db_session, customer):
        with pytest.raises(ValidationError):
            svc.create_booking(db_session, _form(discount=60000), customer=customer, today=TODAY)

    def test_blank_address_rejected(self, db_session, customer):
        with pytest.raises(ValidationError):
            svc.create_booking(db_session, _form(location=LocationIn(address="  ")), customer=customer, today=TODAY)

    def test_manager_books_for_walk_in(self, db_session, manager):
        b = svc.create_booking(db_session, _form(customerName="Walk In", customerEmail="walkin@example.com"),
                               manager=manager, today=TODAY)
        assert b.user_id is None
        assert b.created_by_manager is True
        assert b.manager_id == manager.id


# ============== Transitions ==============

class TestTransitions:
    @pytest.mark.parametrize("source,target,ok", [
        ("pending", "confirmed", True),
        ("pending", "cancelled", True),
        ("confirmed", "completed", True),
        ("confirmed", "cancelled", True),
        ("pending", "completed", False),
        ("confirmed", "pending", False),
        ("completed", "cancelled", False),
        ("cancelled", "confirmed", False),
        ("completed", "pending", False),
    ])
    def test_table(self, source, target, ok):
        b = Booking(status=source)
        if ok:
            svc.transition(b, target)
            assert b.status == target
        else:
            with pytest.raises(InvalidTransitionError):
                svc.transition(b, target)
            assert b.status == source

    def test_confirm(self, db_session, make_booking, manager):
        b = make_booking()
        svc.confirm_booking(db_session, b, manager)
        assert b.status == "confirmed"
        assert b.manager_id == manager.id

    def test_confirm_twice_rejected(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed")
        with pytest.raises(InvalidTransitionError):
            svc.confirm_booking(db_session, b, manager)


class TestCancel:
    def test_cancel_without_reason_rejected_before_write(self, db_session, make_booking, manager):
        b = make_booking()
        with pytest.raises(ValidationError):
            svc.cancel_booking(db_session, b, manager, "   ")
        db_session.refresh(b)
        assert b.status == "pending"
        assert b.version == 1
        assert b.cancel_reason == ""

    def test_cancel_stamps_reason_actor_and_time(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed")
        svc.cancel_booking(db_session, b, manager, "Client postponed indefinitely")
        assert b.status == "cancelled"
        assert b.cancel_reason == "Client postponed indefinitely"
        assert b.cancelled_by == manager.id
        assert b.cancelled_at is not None

    def test_cancelled_leaves_upcoming_but_stays_in_history(self, db_session, make_booking, manager):
        b = make_booking(event_date=date(2025, 2, 1), status="confirmed")
        svc.cancel_booking(db_session, b, manager, "Venue flooded")
        assert b not in svc.upcoming_events(db_session, today=TODAY)
        assert b in svc.list_bookings(db_session)

    def test_cannot_cancel_completed(self, db_session, make_booking, manager):
        b = make_booking(status="completed")
        with pytest.raises(InvalidTransitionError):
            svc.cancel_booking(db_session, b, manager, "too late")


class TestVersioning:
    def test_stale_version_rejected(self, db_session, make_booking, manager):
        b = make_booking()
        with pytest.raises(ConflictError):
            svc.confirm_booking(db_session, b, manager, version=b.version + 1)
        assert b.status == "pending"

    def test_version_increments_on_write(self, db_session, make_booking, manager):
        b = make_booking()
        before = b.version
        svc.confirm_booking(db_session, b, manager, version=before)
        db_session.refresh(b)
        assert b.version == before + 1


# ============== Completion ==============

class TestComplete:
    def test_creates_single_transaction(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed", total_price=50000, discount=5000, downpayment=20000,
                         amount_paid=20000, payment_status="partial",
                         expenses=[{"amount": 1000}, {"amount": 2500}])
        t = svc.complete_booking(db_session, b, manager, 25000, "bank_transfer")
        assert b.status == "completed"
        assert b.payment_status == "paid"
        assert b.amount_paid == 45000
        assert b.completed_at is not None
        assert t.amount == 45000
        assert t.downpayment == 20000
        assert t.remaining_balance == 25000
        assert t.total_expenses == 3500
        assert t.profit == 45000 - 3500
        assert t.manager_id == manager.id
        assert db_session.query(Transaction).filter(Transaction.booking_id == b.id).count() == 1

    def test_payment_mismatch_rejected(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed", total_price=50000, discount=5000, downpayment=20000)
        with pytest.raises(ValidationError, match="mismatch"):
            svc.complete_booking(db_session, b, manager, 20000, "cash")
        assert b.status == "confirmed"
        assert db_session.query(Transaction).count() == 0

    def test_remaining_balance_needs_final_payment(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed", total_price=50000, downpayment=20000)
        with pytest.raises(ValidationError, match="final payment required"):
            svc.complete_booking(db_session, b, manager, 0, "cash")

    def test_downpayment_above_due_rejected(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed", total_price=50000, discount=10000, downpayment=45000)
        with pytest.raises(ValidationError, match="exceeds"):
            svc.complete_booking(db_session, b, manager, 0, "cash")

    def test_fully_prepaid(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed", total_price=30000, downpayment=30000)
        t = svc.complete_booking(db_session, b, manager, 0, "cash")
        assert t.amount == 30000

    def test_final_price_and_reschedule_fee_counted_once(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed", total_price=50000, discount=5000, downpayment=10000)
        svc.reschedule_booking(db_session, b, manager, date(2025, 4, 5), "16:00", 2000, "Client request")
        assert svc.amount_due(b) == 47000
        t = svc.complete_booking(db_session, b, manager, 37000, "card")
        assert t.amount == 47000

    def test_pending_cannot_complete(self, db_session, make_booking, manager):
        b = make_booking(status="pending", total_price=1000)
        with pytest.raises(InvalidTransitionError):
            svc.complete_booking(db_session, b, manager, 1000, "cash")

    def test_unknown_payment_method(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed", total_price=1000)
        with pytest.raises(ValidationError):
            svc.complete_booking(db_session, b, manager, 1000, "bitcoin")


# ============== Payments ==============

class TestRecordPayment:
    @pytest.mark.parametrize("paid,expected", [(0, "pending"), (4000, "partial"), (10000, "paid")])
    def test_status_derived_from_amount(self, db_session, make_booking, paid, expected):
        b = make_booking(status="confirmed", total_price=10000)
        svc.record_payment(db_session, b, paid, "cash")
        assert b.payment_status == expected

    def test_overpayment_rejected(self, db_session, make_booking):
        b = make_booking(status="confirmed", total_price=10000, discount=1000)
        with pytest.raises(ValidationError):
            svc.record_payment(db_session, b, 9500, "cash")

    def test_cancelled_rejected(self, db_session, make_booking):
        b = make_booking(status="cancelled", cancel_reason="x", total_price=10000)
        with pytest.raises(InvalidTransitionError):
            svc.record_payment(db_session, b, 100, "cash")

    def test_completed_rejected(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed", total_price=50000, downpayment=20000,
                         amount_paid=20000, payment_status="partial")
        t = svc.complete_booking(db_session, b, manager, 30000, "cash")
        with pytest.raises(InvalidTransitionError):
            svc.record_payment(db_session, b, 0, "cash")
        db_session.refresh(b)
        assert b.payment_status == "paid"
        assert b.amount_paid == t.amount == 50000

    def test_refund_after_completion(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed", total_price=10000)
        svc.complete_booking(db_session, b, manager, 10000, "card")
        svc.mark_refunded(db_session, b)
        assert b.payment_status == "refunded"

    def test_refund(self, db_session, make_booking):
        b = make_booking(status="cancelled", cancel_reason="x", amount_paid=500, payment_status="partial")
        svc.mark_refunded(db_session, b)
        assert b.payment_status == "refunded"


# ============== Expenses ==============

class TestExpenses:
    def test_add_to_legacy_number_keeps_old_total(self, db_session, make_booking):
        b = make_booking(expenses=3000)
        item = svc.add_expense(db_session, b, 500, "Ice", "supplies", date(2025, 3, 14))
        db_session.refresh(b)
        assert len(b.expenses) == 2
        assert b.expenses[0]["id"] == "legacy"
        assert item["date"] == "2025-03-14"
        assert svc.booking_to_dict(b)["expensesTotal"] == 3500

    def test_update_and_delete(self, db_session, make_booking):
        b = make_booking()
        item = svc.add_expense(db_session, b, 500, "Ice", "supplies")
        svc.update_expense(db_session, b, item["id"], 750, "More ice", "supplies")
        db_session.refresh(b)
        assert b.expenses[0]["amount"] == 750
        svc.delete_expense(db_session, b, item["id"])
        db_session.refresh(b)
        assert b.expenses == []

    def test_unknown_expense(self, db_session, make_booking):
        b = make_booking()
        with pytest.raises(NotFoundError):
            svc.delete_expense(db_session, b, "exp_missing")


# ============== Staff / reschedule / price ==============

class TestStaffAndSchedule:
    def test_assign_is_idempotent(self, db_session, make_booking, staff):
        b = make_booking(status="confirmed")
        svc.assign_staff(db_session, b, staff.id)
        assert svc.assign_staff(db_session, b, staff.id) == [staff.id]

    def test_assign_requires_staff_role(self, db_session, make_booking, customer):
        b = make_booking(status="confirmed")
        with pytest.raises(NotFoundError):
            svc.assign_staff(db_session, b, customer.id)

    def test_remove(self, db_session, make_booking, staff):
        b = make_booking(status="confirmed", assigned_staff=[staff.id])
        assert svc.remove_staff(db_session, b, staff.id) == []

    def test_reschedule_onto_closed_day_rejected(self, db_session, make_booking, manager):
        add_closed_day(db_session, "2025-04-05", "Inventory", manager.id)
        b = make_booking(status="confirmed")
        with pytest.raises(ValidationError):
            svc.reschedule_booking(db_session, b, manager, date(2025, 4, 5), "10:00", 0, "moving")

    def test_reschedule_records_history(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed")
        svc.reschedule_booking(db_session, b, manager, date(2025, 4, 6), "10:00", 500, "Rain forecast")
        assert b.event_date == date(2025, 4, 6)
        assert b.reschedule_fee == 500
        assert b.reschedule_history[0]["oldDate"] == "2025-03-15"
        assert b.reschedule_history[0]["reason"] == "Rain forecast"

    def test_reschedule_requires_reason(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed")
        with pytest.raises(ValidationError):
            svc.reschedule_booking(db_session, b, manager, date(2025, 4, 6), "10:00", 0, "")

    def test_price_adjustment(self, db_session, make_booking):
        b = make_booking(status="confirmed", total_price=50000)
        svc.set_price_adjustment(db_session, b, final_price=48000, price_notes="extra guests")
        assert svc.amount_due(b) == 48000
        assert b.price_notes == "extra guests"


# ============== Admin utilities ==============

class TestBackfill:
    def test_user_ids_matched_by_email_then_actor(self, db_session, make_booking, customer, manager):
        matched = make_booking(user_id=None, customer_email=customer.email)
        orphan = make_booking(user_id=None, customer_email="nobody@example.com")
        result = svc.backfill_user_ids(db_session, manager)
        assert result == {"updated": 2, "skipped": 0}
        assert matched.user_id == customer.id
        assert orphan.user_id == manager.id

    def test_payment_methods_default_cash(self, db_session, make_booking):
        paid = make_booking(payment_status="paid", amount_paid=100, payment_method="")
        untouched = make_booking(payment_status="pending", payment_method="")
        result = svc.backfill_payment_methods(db_session)
        assert result["updated"] == 1
        assert paid.payment_method == "cash"
        assert untouched.payment_method == ""
