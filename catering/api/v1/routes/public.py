from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from catering.db.session import get_db
from catering.schemas.booking import EVENT_TYPES
from catering.services.calendar_service import closed_day_info, list_closed_days, closed_day_out
from catering.services.errors import http_error, NotFoundError, ValidationError
from catering.services.normalize import to_date
from catering.services.package_service import list_packages, get_package, package_to_dict, SERVICE_TYPES, FOOD_ADDONS, SERVICE_ADDONS
from catering.services.settings_service import get_contact, list_event_type_images, get_event_type_images

router = APIRouter(tags=["public"])


@router.get("/public/packages")
def public_packages(db: Session = Depends(get_db)):
    return [package_to_dict(p) for p in list_packages(db)]

@router.get("/public/packages/{package_id}")
def public_package(package_id: str, db: Session = Depends(get_db)):
    try:
        return package_to_dict(get_package(db, package_id))
    except NotFoundError as e:
        raise http_error(e)

@router.get("/public/catalog")
def public_catalog():
    """Options for the booking form besides the packages."""
    return {
        "eventTypes": EVENT_TYPES,
        "serviceTypes": SERVICE_TYPES,
        "foodAddons": FOOD_ADDONS,
        "serviceAddons": SERVICE_ADDONS,
    }

@router.get("/public/contact")
def public_contact(db: Session = Depends(get_db)):
    return get_contact(db)

@router.get("/public/event-type-images")
def public_event_type_images(db: Session = Depends(get_db)):
    return list_event_type_images(db)

@router.get("/public/event-type-images/{name}")
def public_event_type_image(name: str, db: Session = Depends(get_db)):
    try:
        return get_event_type_images(db, name)
    except NotFoundError as e:
        raise http_error(e)

@router.get("/public/closed-days")
def public_closed_days(dateFrom: str | None = None, dateTo: str | None = None, db: Session = Depends(get_db)):
    return [closed_day_out(cd) for cd in list_closed_days(db, to_date(dateFrom), to_date(dateTo))]

@router.get("/public/closed-days/check")
def public_check_date(date: str, db: Session = Depends(get_db)):
    try:
        return closed_day_info(db, date)
    except ValidationError as e:
        raise http_error(e)
