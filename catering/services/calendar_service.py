"""
Closed days and the month calendar.

Grid convention: 6 rows x 7 columns, Sunday first. The grid starts on the
Sunday on or before the 1st of the month and always holds 42 consecutive days.
A closed day suppresses its bookings in the cell even if bookings exist on it.
"""
import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from catering.models.booking import Booking
from catering.models.closed_day import ClosedDay
from catering.services.errors import ConflictError, NotFoundError, ValidationError
from catering.services.normalize import to_date

logger = logging.getLogger(__name__)

GRID_CELLS = 42
MIN_YEAR, MAX_YEAR = 2, 9998
MAX_VISIBLE_PER_CELL = 2
CALENDAR_STATUSES = ("pending", "confirmed")


# -------------------------
# CLOSED DAYS
# -------------------------
def get_closed_day(db: Session, day: date) -> Optional[ClosedDay]:
    return db.query(ClosedDay).filter(ClosedDay.date == day).first()


def is_date_closed(db: Session, day) -> bool:
    d = to_date(day)
    if d is None:
        return False
    return get_closed_day(db, d) is not None


def closed_day_info(db: Session, day) -> dict:
    """Availability answer for the booking form: {date, isClosed, reason}."""
    d = to_date(day)
    if d is None:
        raise ValidationError("date must be YYYY-MM-DD")
    cd = get_closed_day(db, d)
    return {"date": d.isoformat(), "isClosed": cd is not None, "reason": cd.reason if cd else None}


def list_closed_days(db: Session, date_from: date | None = None, date_to: date | None = None) -> List[ClosedDay]:
    q = db.query(ClosedDay)
    if date_from:
        q = q.filter(ClosedDay.date >= date_from)
    if date_to:
        q = q.filter(ClosedDay.date <= date_to)
    return q.order_by(ClosedDay.date.asc()).all()


def add_closed_day(db: Session, day, reason: str, actor_id: str = "") -> ClosedDay:
    d = to_date(day)
    if d is None:
        raise ValidationError("date is required (YYYY-MM-DD)")
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("reason is required")
    if get_closed_day(db, d):
        raise ConflictError(f"{d.isoformat()} is already marked as closed")
    cd = ClosedDay(id=str(uuid.uuid4()), date=d, reason=reason, created_by=actor_id)
    db.add(cd)
    db.commit()
    db.refresh(cd)
    logger.info("closed day added date=%s by=%s", d.isoformat(), actor_id)
    return cd


def remove_closed_day(db: Session, closed_day_id: str) -> ClosedDay:
    cd = db.get(ClosedDay, closed_day_id)
    if not cd:
        raise NotFoundError("closed day not found")
    db.delete(cd)
    db.commit()
    return cd


def closed_day_out(cd: ClosedDay) -> dict:
    return {
        "id": cd.id,
        "date": cd.date.isoformat(),
        "reason": cd.reason,
        "createdAt": cd.created_at.isoformat() if cd.created_at else None,
    }


# -------------------------
# MONTH GRID
# -------------------------
def month_grid(year: int, month: int) -> List[date]:
    """42 consecutive dates; the 1st lands in the column of its weekday (Sunday = 0)."""
    if not 1 <= month <= 12:
        raise ValidationError("month must be 1..12")
    # the grid spills into the neighbouring months, which must stay inside date.min..date.max
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(f"year must be {MIN_YEAR}..{MAX_YEAR}")
    first = date(year, month, 1)
    # date.weekday(): Monday=0 .. Sunday=6  ->  Sunday-first column index
    offset = (first.weekday() + 1) % 7
    start = first - timedelta(days=offset)
    return [start + timedelta(days=i) for i in range(GRID_CELLS)]


def _booking_chip(b: Booking) -> dict:
    return {
        "id": b.id,
        "customerName": b.customer_name,
        "eventType": b.event_type,
        "eventTime": b.event_time,
        "status": b.status,
        "packageName": b.package_name,
        "address": (b.location or {}).get("address", ""),
        "guestCount": b.guest_count,
    }


def build_cell(day: date, month: int, bookings: Iterable[Booking], closed: Optional[ClosedDay], today: date) -> dict:
    day_bookings = sorted((b for b in bookings if to_date(b.event_date) == day), key=lambda b: b.event_time or "")
    if closed:
        # closed wins: hide bookings, show reason
        chips: list = []
    else:
        chips = [_booking_chip(b) for b in day_bookings]
    return {
        "date": day.isoformat(),
        "day": day.day,
        "inMonth": day.month == month,
        "isToday": day == today,
        "isClosed": closed is not None,
        "closedReason": closed.reason if closed else None,
        "bookings": chips,
        "visible": chips[:MAX_VISIBLE_PER_CELL],
        "moreCount": max(0, len(chips) - MAX_VISIBLE_PER_CELL),
        "hasDetail": bool(chips) or closed is not None,
    }


def build_month_calendar(db: Session, year: int, month: int, statuses: Iterable[str] = CALENDAR_STATUSES,
                         today: date | None = None) -> dict:
    days = month_grid(year, month)
    start, end = days[0], days[-1]
    today = today or datetime.now(timezone.utc).date()

    bookings = (
        db.query(Booking)
        .filter(Booking.event_date >= start, Booking.event_date <= end, Booking.status.in_(list(statuses)))
        .all()
    )
    closed = {cd.date: cd for cd in list_closed_days(db, start, end)}
    cells = [build_cell(d, month, bookings, closed.get(d), today) for d in days]
    return {
        "year": year,
        "month": month,
        "gridStart": start.isoformat(),
        "gridEnd": end.isoformat(),
        "weekdays": ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"],
        "cells": cells,
    }


def day_detail(db: Session, day, statuses: Iterable[str] = CALENDAR_STATUSES) -> dict:
    d = to_date(day)
    if d is None:
        raise ValidationError("invalid date")
    bookings = db.query(Booking).filter(Booking.event_date == d, Booking.status.in_(list(statuses))).all()
    closed = get_closed_day(db, d)
    cell = build_cell(d, d.month, bookings, closed, datetime.now(timezone.utc).date())
    # the panel still lists what was booked on a closed day so the manager can act on it
    cell["bookingsOnClosedDay"] = [_booking_chip(b) for b in bookings] if closed else []
    return cell
