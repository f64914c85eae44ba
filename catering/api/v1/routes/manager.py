from datetime import datetime, timezone
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session
from catering.db.session import get_db
from catering.api.deps import require_roles, Role
from catering.models.user import User
from catering.schemas.booking import (
    ManagerBookingCreate, ConfirmIn, CancelIn, CompleteIn, PaymentIn, ExpenseIn, StaffAssignIn,
    RescheduleIn, BudgetIn, PriceAdjustIn,
)
from catering.schemas.content import ClosedDayIn
from catering.services import booking_service as bookings
from catering.services.accounting_service import transaction_to_dict, summarize_bookings, query_bookings, BookingFilter, month_bounds
from catering.services.audit_service import log_audit
from catering.services.calendar_service import (
    build_month_calendar, day_detail, list_closed_days, add_closed_day, remove_closed_day, closed_day_out, CALENDAR_STATUSES,
)
from catering.services.errors import http_error, NotFoundError
from catering.services.export_service import render_invoice_pdf_bytes
from catering.services.live_feed import publish
from catering.services.normalize import to_date
from catering.services.staff_schedule_service import weekly_grid

router = APIRouter(tags=["manager"])

manager_only = require_roles(Role.MANAGER)
back_office = require_roles(Role.MANAGER, Role.STAFF)


def _booking(db: Session, booking_id: str):
    try:
        return bookings.get_booking(db, booking_id)
    except NotFoundError as e:
        raise http_error(e)

def _audit(db: Session, me: User, action: str, entity_type: str, entity_id: str, details: dict | None = None):
    log_audit(db, me.id, action, entity_type, entity_id, details)
    db.commit()

def _parse_day(value: str | None, field: str):
    if not value:
        return None
    d = to_date(value)
    if d is None:
        raise HTTPException(status_code=400, detail=f"{field} must be YYYY-MM-DD")
    return d


# -------------------------
# BOOKINGS
# -------------------------
@router.get("/manager/bookings")
def list_bookings(status: str = "", q: str = "", eventType: str = "", dateFrom: str | None = None,
                  dateTo: str | None = None, limit: int = 500,
                  db: Session = Depends(get_db), me: User = Depends(manager_only)):
    items = bookings.list_bookings(db, status=status, q=q, event_type=eventType,
                                   date_from=_parse_day(dateFrom, "dateFrom"), date_to=_parse_day(dateTo, "dateTo"),
                                   limit=limit)
    return {"total": len(items), "items": [bookings.booking_to_dict(b) for b in items]}

@router.post("/manager/bookings")
def book_for_client(body: ManagerBookingCreate, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    customer = None
    if body.userId:
        customer = db.get(User, body.userId)
        if not customer or customer.role != Role.CUSTOMER.value:
            raise HTTPException(status_code=404, detail="customer not found")
    try:
        b = bookings.create_booking(db, body, customer=customer, manager=me)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "booking.create", "booking", b.id, {"customer": b.customer_email, "eventDate": b.event_date})
    return bookings.booking_to_dict(b, detail=True)

@router.get("/manager/bookings/{booking_id}")
def booking_detail(booking_id: str, db: Session = Depends(get_db), me: User = Depends(back_office)):
    b = _booking(db, booking_id)
    out = bookings.booking_to_dict(b, detail=True)
    staff_ids = out["assignedStaff"]
    staff = db.query(User).filter(User.id.in_(staff_ids)).all() if staff_ids else []
    out["staff"] = [{"id": u.id, "fullName": u.full_name, "email": u.email} for u in staff]
    return out

@router.post("/manager/bookings/{booking_id}/confirm")
def confirm(booking_id: str, body: ConfirmIn, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    b = _booking(db, booking_id)
    try:
        bookings.confirm_booking(db, b, me, version=body.version)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "booking.confirm", "booking", b.id)
    return bookings.booking_to_dict(b)

@router.post("/manager/bookings/{booking_id}/cancel")
def cancel(booking_id: str, body: CancelIn, background_tasks: BackgroundTasks,
           db: Session = Depends(get_db), me: User = Depends(manager_only)):
    b = _booking(db, booking_id)
    had_staff = bool(b.assigned_staff) and b.status == "confirmed"
    try:
        bookings.cancel_booking(db, b, me, body.reason, version=body.version)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "booking.cancel", "booking", b.id, {"reason": b.cancel_reason})
    if had_staff:
        background_tasks.add_task(publish, "staff-assignments")
    return bookings.booking_to_dict(b)

@router.post("/manager/bookings/{booking_id}/complete")
def complete(booking_id: str, body: CompleteIn, background_tasks: BackgroundTasks,
             db: Session = Depends(get_db), me: User = Depends(manager_only)):
    b = _booking(db, booking_id)
    had_staff = bool(b.assigned_staff)
    try:
        t = bookings.complete_booking(db, b, me, body.finalPayment, body.paymentMethod, version=body.version)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "booking.complete", "booking", b.id, {"transactionId": t.id, "amount": t.amount})
    background_tasks.add_task(publish, "transactions")
    if had_staff:
        background_tasks.add_task(publish, "staff-assignments")
    return {"booking": bookings.booking_to_dict(b), "transaction": transaction_to_dict(t)}

@router.post("/manager/bookings/{booking_id}/payment")
def record_payment(booking_id: str, body: PaymentIn, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    b = _booking(db, booking_id)
    try:
        bookings.record_payment(db, b, body.amountPaid, body.paymentMethod, version=body.version)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "booking.payment", "booking", b.id, {"amountPaid": b.amount_paid, "method": b.payment_method})
    return bookings.booking_to_dict(b)

@router.post("/manager/bookings/{booking_id}/refund")
def refund(booking_id: str, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    b = _booking(db, booking_id)
    try:
        bookings.mark_refunded(db, b)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "booking.refund", "booking", b.id, {"amountPaid": b.amount_paid})
    return bookings.booking_to_dict(b)

@router.post("/manager/bookings/{booking_id}/expenses")
def add_expense(booking_id: str, body: ExpenseIn, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    b = _booking(db, booking_id)
    try:
        item = bookings.add_expense(db, b, body.amount, body.description, body.category, body.date)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "booking.expense_add", "booking", b.id, item)
    return {"item": item, "booking": bookings.booking_to_dict(b, detail=True)}

@router.put("/manager/bookings/{booking_id}/expenses/{expense_id}")
def update_expense(booking_id: str, expense_id: str, body: ExpenseIn,
                   db: Session = Depends(get_db), me: User = Depends(manager_only)):
    b = _booking(db, booking_id)
    try:
        item = bookings.update_expense(db, b, expense_id, body.amount, body.description, body.category)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "booking.expense_update", "booking", b.id, item)
    return {"item": item, "booking": bookings.booking_to_dict(b, detail=True)}

@router.delete("/manager/bookings/{booking_id}/expenses/{expense_id}")
def delete_expense(booking_id: str, expense_id: str, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    b = _booking(db, booking_id)
    try:
        bookings.delete_expense(db, b, expense_id)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "booking.expense_delete", "booking", b.id, {"expenseId": expense_id})
    return bookings.booking_to_dict(b, detail=True)

@router.post("/manager/bookings/{booking_id}/staff")
def assign_staff(booking_id: str, body: StaffAssignIn, background_tasks: BackgroundTasks,
                 db: Session = Depends(get_db), me: User = Depends(manager_only)):
    b = _booking(db, booking_id)
    try:
        staff = bookings.assign_staff(db, b, body.staffId)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "booking.staff_assign", "booking", b.id, {"staffId": body.staffId})
    background_tasks.add_task(publish, "staff-assignments")
    return {"assignedStaff": staff}

@router.delete("/manager/bookings/{booking_id}/staff/{staff_id}")
def remove_staff(booking_id: str, staff_id: str, background_tasks: BackgroundTasks,
                 db: Session = Depends(get_db), me: User = Depends(manager_only)):
    b = _booking(db, booking_id)
    try:
        staff = bookings.remove_staff(db, b, staff_id)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "booking.staff_remove", "booking", b.id, {"staffId": staff_id})
    background_tasks.add_task(publish, "staff-assignments")
    return {"assignedStaff": staff}

@router.post("/manager/bookings/{booking_id}/reschedule")
def reschedule(booking_id: str, body: RescheduleIn, background_tasks: BackgroundTasks,
               db: Session = Depends(get_db), me: User = Depends(manager_only)):
    b = _booking(db, booking_id)
    try:
        bookings.reschedule_booking(db, b, me, body.newDate, body.newTime, body.fee, body.reason)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "booking.reschedule", "booking", b.id, {"newDate": body.newDate, "fee": body.fee, "reason": body.reason})
    if b.assigned_staff:
        background_tasks.add_task(publish, "staff-assignments")
    return bookings.booking_to_dict(b, detail=True)

@router.put("/manager/bookings/{booking_id}/budget")
def set_budget(booking_id: str, body: BudgetIn, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    b = _booking(db, booking_id)
    try:
        bookings.set_budget(db, b, body.budget, version=body.version)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "booking.budget", "booking", b.id, {"budget": body.budget})
    return bookings.booking_to_dict(b, detail=True)

@router.put("/manager/bookings/{booking_id}/price")
def adjust_price(booking_id: str, body: PriceAdjustIn, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    b = _booking(db, booking_id)
    try:
        bookings.set_price_adjustment(db, b, body.finalPrice, body.discount, body.priceNotes)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "booking.price", "booking", b.id, body.model_dump())
    return bookings.booking_to_dict(b, detail=True)

@router.get("/manager/bookings/{booking_id}/invoice.pdf")
def invoice_pdf(booking_id: str, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    b = _booking(db, booking_id)
    return Response(
        content=render_invoice_pdf_bytes(b),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="invoice-{b.id[:8]}.pdf"'},
    )


# -------------------------
# DASHBOARD / UPCOMING
# -------------------------
@router.get("/manager/upcoming-events")
def upcoming_events(db: Session = Depends(get_db), me: User = Depends(back_office)):
    return [bookings.booking_to_dict(b) for b in bookings.upcoming_events(db)]

@router.get("/manager/dashboard")
def dashboard(db: Session = Depends(get_db), me: User = Depends(manager_only)):
    today = datetime.now(timezone.utc).date()
    start, end = month_bounds(today.year, today.month)
    upcoming = bookings.upcoming_events(db, today)
    return {
        "statusCounts": bookings.status_counts(db),
        "thisMonth": summarize_bookings(query_bookings(db, BookingFilter(date_from=start, date_to=end))),
        "upcoming": [bookings.booking_to_dict(b) for b in upcoming[:10]],
        "upcomingCount": len(upcoming),
    }


# -------------------------
# CALENDAR / CLOSED DAYS
# -------------------------
@router.get("/manager/calendar")
def calendar(year: int, month: int, statuses: str = "", db: Session = Depends(get_db), me: User = Depends(back_office)):
    wanted = [s.strip() for s in statuses.split(",") if s.strip()] or list(CALENDAR_STATUSES)
    try:
        return build_month_calendar(db, year, month, wanted)
    except ValueError as e:
        raise http_error(e)

@router.get("/manager/calendar/day/{day}")
def calendar_day(day: str, db: Session = Depends(get_db), me: User = Depends(back_office)):
    try:
        return day_detail(db, day)
    except ValueError as e:
        raise http_error(e)

@router.get("/manager/closed-days")
def closed_days(dateFrom: str | None = None, dateTo: str | None = None,
                db: Session = Depends(get_db), me: User = Depends(back_office)):
    items = list_closed_days(db, _parse_day(dateFrom, "dateFrom"), _parse_day(dateTo, "dateTo"))
    return [closed_day_out(cd) for cd in items]

@router.post("/manager/closed-days")
def create_closed_day(body: ClosedDayIn, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    try:
        cd = add_closed_day(db, body.date, body.reason, actor_id=me.id)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "closed_day.create", "closed_day", cd.id, {"date": cd.date, "reason": cd.reason})
    return closed_day_out(cd)

@router.delete("/manager/closed-days/{closed_day_id}")
def delete_closed_day(closed_day_id: str, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    try:
        cd = remove_closed_day(db, closed_day_id)
    except ValueError as e:
        raise http_error(e)
    _audit(db, me, "closed_day.delete", "closed_day", closed_day_id, {"date": cd.date})
    return {"ok": True}


# -------------------------
# STAFF GRID
# -------------------------
@router.get("/manager/staff-grid")
def staff_grid(weekStart: str | None = None, scope: str = "global", q: str = "", filter: str = "all",
               db: Session = Depends(get_db), me: User = Depends(manager_only)):
    try:
        return weekly_grid(db, _parse_day(weekStart, "weekStart"), unassigned_scope=scope, search=q, staff_filter=filter)
    except ValueError as e:
        raise http_error(e)
