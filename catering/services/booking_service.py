r"""
Booking lifecycle.

    pending --> confirmed --> completed
       \            \
        +------------+--> cancelled

``ALLOWED_TRANSITIONS`` is the only place transitions are defined. Every write
is a single booking commit; completing a booking additionally inserts one
Transaction snapshot, which is never re-synced afterwards.
"""
import logging
import uuid
from datetime import datetime, timezone, date
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from catering.models.booking import Booking
from catering.models.transaction import Transaction
from catering.models.user import User
from catering.schemas.booking import BookingCreate, EVENT_TYPES, PAYMENT_METHODS
from catering.services.calendar_service import get_closed_day
from catering.services.errors import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from catering.services.normalize import expense_items, expense_total, to_date

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}
ACTIVE_STATUSES = ("pending", "confirmed")
PAYMENT_TOLERANCE = 0.01


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _commit(db: Session) -> None:
    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        raise ConflictError("booking was modified by someone else; reload and retry") from e
    except Exception:
        db.rollback()
        logger.exception("booking write failed")
        raise


def get_booking(db: Session, booking_id: str) -> Booking:
    b = db.get(Booking, booking_id)
    if not b:
        raise NotFoundError("booking not found")
    return b


def check_version(b: Booking, expected: Optional[int]) -> None:
    if expected is not None and int(expected) != int(b.version):
        raise ConflictError(f"booking was modified by someone else (version {b.version}, you sent {expected})")


def transition(b: Booking, target: str) -> None:
    if target not in ALLOWED_TRANSITIONS.get(b.status, set()):
        raise InvalidTransitionError(f"cannot move booking from {b.status} to {target}")
    b.status = target


def amount_due(b: Booking) -> float:
    """What the customer owes in total: the adjusted final price if set, else total minus discount."""
    if b.final_price is not None:
        return float(b.final_price)
    return float(b.total_price or 0) - float(b.discount or 0)


def derive_payment_status(paid: float, due: float) -> str:
    if paid <= 0:
        return "pending"
    if paid + PAYMENT_TOLERANCE < due:
        return "partial"
    return "paid"


# -------------------------
# CREATE
# -------------------------
def create_booking(db: Session, data: BookingCreate, customer: User | None = None,
                   manager: User | None = None, today: date | None = None) -> Booking:
    event_type = (data.eventType or "").strip().lower()
    if event_type not in EVENT_TYPES:
        raise ValidationError(f"eventType must be one of: {', '.join(EVENT_TYPES)}")
    name = (data.customerName or (customer.full_name if customer else "")).strip()
    email = (data.customerEmail or (customer.email if customer else "")).strip().lower()
    if not name:
        raise ValidationError("customerName is required")
    if not email:
        raise ValidationError("customerEmail is required")
    if not data.location.address.strip():
        raise ValidationError("location.address is required")

    today = today or _now().date()
    if data.eventDate < today:
        raise ValidationError("eventDate cannot be in the past")
    closed = get_closed_day(db, data.eventDate)
    if closed:
        raise ValidationError(f"{data.eventDate.isoformat()} is not available: {closed.reason}")

    total = float(data.basePrice) + float(data.foodAddonsPrice) + float(data.servicesAddonsPrice)
    if data.discount > total:
        raise ValidationError("discount cannot exceed total price")
    if data.downpayment > total - data.discount + PAYMENT_TOLERANCE:
        raise ValidationError("downpayment cannot exceed the amount due")

    b = Booking(
        id=str(uuid.uuid4()),
        user_id=customer.id if customer else None,
        customer_name=name,
        customer_email=email,
        customer_phone=data.customerPhone or (customer.phone if customer else ""),
        event_type=event_type,
        event_date=data.eventDate,
        event_time=data.eventTime,
        guest_count=data.guestCount,
        location=data.location.model_dump(),
        service_type=data.serviceType,
        special_requests=data.specialRequests,
        dietary_restrictions=data.dietaryRestrictions,
        package_id=data.packageId,
        package_name=data.packageName,
        base_price=float(data.basePrice),
        food_addons_price=float(data.foodAddonsPrice),
        services_addons_price=float(data.servicesAddonsPrice),
        discount=float(data.discount),
        total_price=total,
        downpayment=float(data.downpayment),
        amount_paid=float(data.downpayment),
        payment_status="partial" if data.downpayment > 0 else "pending",
        status="pending",
        assigned_staff=[],
        reschedule_history=[],
        expenses=[],
        manager_id=manager.id if manager else "",
        created_by_manager=manager is not None,
    )
    db.add(b)
    _commit(db)
    db.refresh(b)
    logger.info("booking created id=%s date=%s type=%s", b.id, b.event_date, b.event_type)
    return b


# -------------------------
# STATUS ACTIONS
# -------------------------
def confirm_booking(db: Session, b: Booking, actor: User, version: int | None = None) -> Booking:
    check_version(b, version)
    transition(b, "confirmed")
    if not b.manager_id:
        b.manager_id = actor.id
    _commit(db)
    return b


def cancel_booking(db: Session, b: Booking, actor: User, reason: str, version: int | None = None) -> Booking:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("a cancellation reason is required")
    check_version(b, version)
    transition(b, "cancelled")
    b.cancel_reason = reason
    b.cancelled_by = actor.id
    b.cancelled_at = _now()
    _commit(db)
    logger.info("booking cancelled id=%s by=%s", b.id, actor.id)
    return b


def complete_booking(db: Session, b: Booking, actor: User, final_payment: float, payment_method: str,
                     version: int | None = None) -> Transaction:
    """Confirmed -> completed, record the last payment and write the Transaction snapshot."""
    check_version(b, version)
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"paymentMethod must be one of: {', '.join(PAYMENT_METHODS)}")
    if "completed" not in ALLOWED_TRANSITIONS.get(b.status, set()):
        raise InvalidTransitionError(f"cannot move booking from {b.status} to completed")

    due = amount_due(b)
    down = float(b.downpayment or 0)
    final_payment = float(final_payment or 0)
    remaining = due - down
    if remaining < -PAYMENT_TOLERANCE:
        raise ValidationError(f"downpayment ({down:.2f}) exceeds total due ({due:.2f})")
    if remaining > PAYMENT_TOLERANCE and final_payment == 0:
        raise ValidationError(f"final payment required; remaining balance is {remaining:.2f}")
    total_paid = down + final_payment
    if abs(total_paid - due) > PAYMENT_TOLERANCE:
        raise ValidationError(
            f"payment mismatch: downpayment {down:.2f} + final payment {final_payment:.2f} = {total_paid:.2f}, "
            f"total due is {due:.2f}"
        )

    transition(b, "completed")
    now = _now()
    b.final_payment = final_payment
    b.amount_paid = total_paid
    b.payment_status = "paid"
    b.payment_method = payment_method
    b.completed_at = now

    total_expenses = expense_total(b.expenses)
    t = Transaction(
        id=str(uuid.uuid4()),
        booking_id=b.id,
        manager_id=actor.id,
        customer_name=b.customer_name,
        customer_email=b.customer_email,
        event_type=b.event_type,
        package_name=b.package_name,
        amount=total_paid,
        downpayment=down,
        remaining_balance=final_payment,
        expenses=expense_items(b.expenses),
        total_expenses=total_expenses,
        profit=total_paid - total_expenses,
        payment_method=payment_method,
        status="completed",
        event_date=b.event_date,
        completed_at=now,
    )
    db.add(t)
    _commit(db)
    db.refresh(t)
    logger.info("booking completed id=%s amount=%.2f expenses=%.2f", b.id, total_paid, total_expenses)
    return t


def record_payment(db: Session, b: Booking, amount_paid: float, payment_method: str,
                   version: int | None = None) -> Booking:
    check_version(b, version)
    if b.status in ("cancelled", "completed"):
        # settled by complete_booking; only mark_refunded may follow
        raise InvalidTransitionError(f"cannot record a payment on a {b.status} booking")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"paymentMethod must be one of: {', '.join(PAYMENT_METHODS)}")
    due = amount_due(b)
    if amount_paid > due + PAYMENT_TOLERANCE:
        raise ValidationError(f"amountPaid ({amount_paid:.2f}) exceeds amount due ({due:.2f})")
    b.amount_paid = float(amount_paid)
    b.payment_method = payment_method
    b.payment_status = derive_payment_status(b.amount_paid, due)
    _commit(db)
    return b


def mark_refunded(db: Session, b: Booking) -> Booking:
    if not b.amount_paid:
        raise ValidationError("nothing was paid on this booking")
    b.payment_status = "refunded"
    _commit(db)
    return b


# -------------------------
# EXPENSES
# -------------------------
def add_expense(db: Session, b: Booking, amount: float, description: str, category: str, on: date | None = None) -> dict:
    if not (description or "").strip() or not (category or "").strip():
        raise ValidationError("description and category are required")
    item = {
        "id": f"exp_{uuid.uuid4().hex[:12]}",
        "amount": float(amount),
        "description": description.strip(),
        "category": category.strip(),
        "date": (on or _now().date()).isoformat(),
    }
    # legacy numeric totals become one item so the list stays additive
    b.expenses = expense_items(b.expenses) + [item]
    _commit(db)
    return item


def update_expense(db: Session, b: Booking, expense_id: str, amount: float, description: str, category: str) -> dict:
    items = expense_items(b.expenses)
    for item in items:
        if item.get("id") == expense_id:
            item.update({"amount": float(amount), "description": description.strip(), "category": category.strip()})
            b.expenses = items
            _commit(db)
            return item
    raise NotFoundError("expense not found")


def delete_expense(db: Session, b: Booking, expense_id: str) -> None:
    items = expense_items(b.expenses)
    kept = [i for i in items if i.get("id") != expense_id]
    if len(kept) == len(items):
        raise NotFoundError("expense not found")
    b.expenses = kept
    _commit(db)


# -------------------------
# STAFF
# -------------------------
def assign_staff(db: Session, b: Booking, staff_id: str) -> List[str]:
    if b.status not in ACTIVE_STATUSES:
        raise InvalidTransitionError(f"cannot assign staff to a {b.status} booking")
    staff = db.get(User, staff_id)
    if not staff or staff.role != "staff" or not staff.is_active:
        raise NotFoundError("staff member not found")
    current = list(b.assigned_staff or [])
    if staff_id not in current:
        b.assigned_staff = current + [staff_id]
        _commit(db)
    return list(b.assigned_staff)


def remove_staff(db: Session, b: Booking, staff_id: str) -> List[str]:
    current = list(b.assigned_staff or [])
    if staff_id not in current:
        raise NotFoundError("staff member is not assigned to this booking")
    b.assigned_staff = [s for s in current if s != staff_id]
    _commit(db)
    return list(b.assigned_staff)


# -------------------------
# RESCHEDULE / BUDGET / PRICE
# -------------------------
def reschedule_booking(db: Session, b: Booking, actor: User, new_date: date, new_time: str, fee: float, reason: str) -> Booking:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("a reschedule reason is required")
    if b.status not in ACTIVE_STATUSES:
        raise InvalidTransitionError(f"cannot reschedule a {b.status} booking")
    closed = get_closed_day(db, new_date)
    if closed:
        raise ValidationError(f"{new_date.isoformat()} is not available: {closed.reason}")

    fee = float(fee or 0)
    history = list(b.reschedule_history or [])
    history.append({
        "oldDate": to_date(b.event_date).isoformat() if b.event_date else None,
        "oldTime": b.event_time,
        "newDate": new_date.isoformat(),
        "newTime": new_time,
        "fee": fee,
        "reason": reason,
        "rescheduledBy": actor.id,
        "rescheduledAt": _now().isoformat(),
    })
    b.final_price = amount_due(b) + fee
    b.reschedule_fee = float(b.reschedule_fee or 0) + fee
    b.reschedule_history = history
    b.event_date = new_date
    b.event_time = new_time
    _commit(db)
    return b


def set_budget(db: Session, b: Booking, budget: float, version: int | None = None) -> Booking:
    check_version(b, version)
    b.budget = float(budget)
    _commit(db)
    return b


def set_price_adjustment(db: Session, b: Booking, final_price: float | None = None, discount: float | None = None,
                         price_notes: str | None = None) -> Booking:
    if b.status in ("completed", "cancelled"):
        raise InvalidTransitionError(f"cannot change the price of a {b.status} booking")
    if discount is not None:
        if discount > float(b.total_price or 0):
            raise ValidationError("discount cannot exceed total price")
        b.discount = float(discount)
    if final_price is not None:
        b.final_price = float(final_price)
    if price_notes is not None:
        b.price_notes = price_notes
    _commit(db)
    return b


# -------------------------
# LISTINGS
# -------------------------
def list_bookings(db: Session, status: str = "", q: str = "", event_type: str = "", user_id: str = "",
                  date_from: date | None = None, date_to: date | None = None, limit: int = 500) -> List[Booking]:
    query = db.query(Booking)
    if status:
        query = query.filter(Booking.status == status)
    if event_type:
        query = query.filter(Booking.event_type == event_type)
    if user_id:
        query = query.filter(Booking.user_id == user_id)
    if date_from:
        query = query.filter(Booking.event_date >= date_from)
    if date_to:
        query = query.filter(Booking.event_date <= date_to)
    if q:
        like = f"%{q.lower()}%"
        query = query.filter(or_(Booking.customer_name.ilike(like), Booking.customer_email.ilike(like),
                                 Booking.package_name.ilike(like)))
    return query.order_by(Booking.event_date.desc(), Booking.created_at.desc()).limit(min(max(limit, 1), 2000)).all()


def upcoming_events(db: Session, today: date | None = None) -> List[Booking]:
    today = today or _now().date()
    return (
        db.query(Booking)
        .filter(Booking.status.in_(ACTIVE_STATUSES), Booking.event_date >= today)
        .order_by(Booking.event_date.asc(), Booking.event_time.asc())
        .all()
    )


def status_counts(db: Session) -> dict:
    counts = {s: 0 for s in ALLOWED_TRANSITIONS}
    for (status,) in db.query(Booking.status).all():
        counts[status] = counts.get(status, 0) + 1
    return counts


# -------------------------
# ADMIN UTILITIES
# -------------------------
def backfill_user_ids(db: Session, actor: User) -> dict:
    """Give legacy bookings an owner: the account with the same email, else the acting user."""
    updated, skipped = 0, 0
    for b in db.query(Booking).all():
        if b.user_id:
            skipped += 1
            continue
        owner = db.query(User).filter(User.email == (b.customer_email or "").lower()).first() if b.customer_email else None
        b.user_id = owner.id if owner else actor.id
        updated += 1
    _commit(db)
    return {"updated": updated, "skipped": skipped}


def backfill_payment_methods(db: Session) -> dict:
    updated, skipped = 0, 0
    for b in db.query(Booking).all():
        if not b.payment_method and (b.payment_status in ("paid", "partial") or b.status == "completed"):
            b.payment_method = "cash"
            updated += 1
        else:
            skipped += 1
    _commit(db)
    return {"updated": updated, "skipped": skipped}


def booking_to_dict(b: Booking, detail: bool = False) -> dict:
    out = {
        "id": b.id,
        "userId": b.user_id,
        "status": b.status,
        "paymentStatus": b.payment_status,
        "paymentMethod": b.payment_method,
        "customerName": b.customer_name,
        "customerEmail": b.customer_email,
        "customerPhone": b.customer_phone,
        "eventType": b.event_type,
        "eventDate": b.event_date.isoformat() if b.event_date else None,
        "eventTime": b.event_time,
        "guestCount": b.guest_count,
        "location": b.location or {},
        "packageId": b.package_id,
        "packageName": b.package_name,
        "totalPrice": b.total_price,
        "discount": b.discount,
        "finalPrice": b.final_price,
        "amountDue": amount_due(b),
        "downpayment": b.downpayment,
        "amountPaid": b.amount_paid,
        "expensesTotal": expense_total(b.expenses),
        "cancelReason": b.cancel_reason,
        "assignedStaff": list(b.assigned_staff or []),
        "version": b.version,
        "createdAt": b.created_at.isoformat() if b.created_at else None,
    }
    if detail:
        out.update({
            "serviceType": b.service_type,
            "specialRequests": b.special_requests,
            "dietaryRestrictions": b.dietary_restrictions,
            "basePrice": b.base_price,
            "foodAddonsPrice": b.food_addons_price,
            "servicesAddonsPrice": b.services_addons_price,
            "priceNotes": b.price_notes,
            "budget": b.budget,
            "rescheduleFee": b.reschedule_fee,
            "rescheduleHistory": list(b.reschedule_history or []),
            "finalPayment": b.final_payment,
            "expenses": expense_items(b.expenses),
            "cancelledBy": b.cancelled_by,
            "cancelledAt": b.cancelled_at.isoformat() if b.cancelled_at else None,
            "completedAt": b.completed_at.isoformat() if b.completed_at else None,
            "createdByManager": b.created_by_manager,
        })
    return out
