from datetime import datetime, timezone, timedelta
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from catering.db.session import get_db
from catering.api.deps import require_roles, Role
from catering.models.user import User
from catering.services.errors import http_error, NotFoundError
from catering.services.staff_schedule_service import staff_assignments, default_week_start

router = APIRouter(tags=["staff"])


@router.get("/staff/assignments")
def my_assignments(upcoming: bool = True, db: Session = Depends(get_db), me: User = Depends(require_roles(Role.STAFF))):
    try:
        return staff_assignments(db, me.id, upcoming_only=upcoming)
    except NotFoundError as e:
        raise http_error(e)

@router.get("/staff/dashboard")
def staff_dashboard(db: Session = Depends(get_db), me: User = Depends(require_roles(Role.STAFF))):
    today = datetime.now(timezone.utc).date()
    week_start = default_week_start(today)
    week_end = week_start + timedelta(days=6)
    items = staff_assignments(db, me.id, upcoming_only=True, today=today)
    this_week = [a for a in items if a["date"] and week_start.isoformat() <= a["date"] <= week_end.isoformat()]
    return {
        "upcomingCount": len(items),
        "thisWeekCount": len(this_week),
        "todayCount": sum(1 for a in items if a["date"] == today.isoformat()),
        "next": items[0] if items else None,
    }
