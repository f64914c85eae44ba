from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from catering.db.session import get_db
from catering.api.deps import require_roles, Role
from catering.models.user import User
from catering.schemas.booking import BookingCreate
from catering.services.booking_service import create_booking, list_bookings, get_booking, booking_to_dict, ALLOWED_TRANSITIONS
from catering.services.errors import http_error, ValidationError, NotFoundError

router = APIRouter(tags=["bookings"])

customer_only = require_roles(Role.CUSTOMER)


@router.post("/bookings")
def create_customer_booking(body: BookingCreate, db: Session = Depends(get_db), me: User = Depends(customer_only)):
    try:
        b = create_booking(db, body, customer=me)
    except ValidationError as e:
        raise http_error(e)
    return booking_to_dict(b, detail=True)

@router.get("/bookings/mine")
def my_bookings(status: str = "", db: Session = Depends(get_db), me: User = Depends(customer_only)):
    if status and status not in ALLOWED_TRANSITIONS:
        raise HTTPException(status_code=400, detail="invalid status")
    return [booking_to_dict(b) for b in list_bookings(db, status=status, user_id=me.id)]

@router.get("/bookings/dashboard")
def my_dashboard(db: Session = Depends(get_db), me: User = Depends(customer_only)):
    items = list_bookings(db, user_id=me.id)
    counts = {s: 0 for s in ALLOWED_TRANSITIONS}
    for b in items:
        counts[b.status] = counts.get(b.status, 0) + 1
    upcoming = sorted((b for b in items if b.status in ("pending", "confirmed")), key=lambda b: (b.event_date, b.event_time))
    return {
        "total": len(items),
        "counts": counts,
        "upcoming": [booking_to_dict(b) for b in upcoming[:5]],
    }

@router.get("/bookings/{booking_id}")
def my_booking(booking_id: str, db: Session = Depends(get_db), me: User = Depends(customer_only)):
    try:
        b = get_booking(db, booking_id)
    except NotFoundError as e:
        raise http_error(e)
    # other customers' bookings are reported as missing
    if b.user_id != me.id:
        raise HTTPException(status_code=404, detail="booking not found")
    return booking_to_dict(b, detail=True)
