"""
Staff weekly-shift grid.

Week convention: 7 consecutive days from ``week_start``; the default start is
the Sunday of the current week. Slot index 0 is week_start, 6 is week_start + 6.
Assignments come from confirmed bookings only.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, NamedTuple, Optional

from sqlalchemy.orm import Session

from catering.models.booking import Booking
from catering.models.user import User
from catering.services.errors import NotFoundError, ValidationError
from catering.services.normalize import to_date

UNASSIGNED_SCOPES = ("global", "week")
STAFF_FILTERS = ("all", "assigned", "unassigned")


class Assignment(NamedTuple):
    staff_id: str
    event_id: str
    event_name: str
    date: Optional[date]
    time: str

    def to_dict(self) -> dict:
        return {
            "staffId": self.staff_id,
            "eventId": self.event_id,
            "eventName": self.event_name,
            "date": self.date.isoformat() if self.date else None,
            "time": self.time,
        }


def default_week_start(today: date | None = None) -> date:
    today = today or datetime.now(timezone.utc).date()
    # weekday(): Monday=0 .. Sunday=6
    return today - timedelta(days=(today.weekday() + 1) % 7)


def flatten_assignments(bookings: Iterable[Booking]) -> List[Assignment]:
    out: List[Assignment] = []
    for b in bookings:
        name = f"{(b.event_type or '').title()} - {b.customer_name}"
        for staff_id in b.assigned_staff or []:
            out.append(Assignment(staff_id, b.id, name, to_date(b.event_date), b.event_time or ""))
    return out


def _confirmed_with_staff(db: Session, date_from: date | None = None, date_to: date | None = None) -> List[Booking]:
    q = db.query(Booking).filter(Booking.status == "confirmed")
    if date_from:
        q = q.filter(Booking.event_date >= date_from)
    if date_to:
        q = q.filter(Booking.event_date <= date_to)
    # JSON list emptiness is checked in Python so sqlite and postgres behave the same
    return [b for b in q.all() if b.assigned_staff]


def _staff_out(u: User) -> dict:
    return {"id": u.id, "fullName": u.full_name, "email": u.email, "phone": u.phone}


def weekly_grid(db: Session, week_start: date | None = None, unassigned_scope: str = "global",
                search: str = "", staff_filter: str = "all") -> dict:
    if unassigned_scope not in UNASSIGNED_SCOPES:
        raise ValidationError("scope must be global or week")
    if staff_filter not in STAFF_FILTERS:
        raise ValidationError("filter must be all, assigned or unassigned")
    week_start = week_start or default_week_start()
    days = [week_start + timedelta(days=i) for i in range(7)]
    week_end = days[-1]

    staff = (
        db.query(User)
        .filter(User.role == "staff", User.is_active.is_(True))
        .order_by(User.full_name.asc())
        .all()
    )
    if unassigned_scope == "week":
        pool = flatten_assignments(_confirmed_with_staff(db, week_start, week_end))
    else:
        pool = flatten_assignments(_confirmed_with_staff(db))
    busy = {a.staff_id for a in pool}
    unassigned = [u for u in staff if u.id not in busy]

    in_week = [a for a in pool if a.date and week_start <= a.date <= week_end]

    needle = (search or "").strip().lower()
    unassigned_ids = {u.id for u in unassigned}
    rows = []
    for u in staff:
        if needle and needle not in (u.full_name or "").lower() and needle not in (u.email or "").lower():
            continue
        if staff_filter == "assigned" and u.id in unassigned_ids:
            continue
        if staff_filter == "unassigned" and u.id not in unassigned_ids:
            continue
        mine = [a for a in in_week if a.staff_id == u.id]
        slots = [[a.to_dict() for a in mine if a.date == d] for d in days]
        rows.append({"staff": _staff_out(u), "slots": slots, "weekCount": len(mine)})

    return {
        "weekStart": week_start.isoformat(),
        "weekEnd": week_end.isoformat(),
        "days": [d.isoformat() for d in days],
        "unassignedScope": unassigned_scope,
        "rows": rows,
        "unassigned": [_staff_out(u) for u in unassigned],
        "totalAssignments": len(in_week),
    }


def staff_assignments(db: Session, staff_id: str, upcoming_only: bool = False, today: date | None = None) -> List[dict]:
    user = db.get(User, staff_id)
    if not user or user.role != "staff":
        raise NotFoundError("staff member not found")
    date_from = (today or datetime.now(timezone.utc).date()) if upcoming_only else None
    mine = [a for a in flatten_assignments(_confirmed_with_staff(db, date_from)) if a.staff_id == staff_id]
    mine.sort(key=lambda a: (a.date or date.min, a.time))
    return [a.to_dict() for a in mine]


def all_assignments(db: Session) -> List[dict]:
    """Full list pushed to live subscribers after any staff change."""
    items = flatten_assignments(_confirmed_with_staff(db))
    items.sort(key=lambda a: (a.date or date.min, a.time, a.staff_id))
    return [a.to_dict() for a in items]
