from datetime import datetime, timezone
from sqlalchemy.orm import Session
from catering.models.setting import Setting
from catering.services.errors import NotFoundError

CONTACT_KEY = "contact"
EVENT_TYPE_IMAGES_PREFIX = "event_type_images:"
EVENT_TYPE_NAMES = ["Weddings", "Corporate Events", "Birthday Parties", "Graduations", "Baby Showers", "Special Occasions"]

DEFAULT_CONTACT = {
    "phone": "",
    "email": "",
    "address": {"street": "", "city": "", "state": "", "zip": "", "country": ""},
    "hours": {"weekdays": "9:00 AM - 6:00 PM", "weekends": "10:00 AM - 4:00 PM"},
}

def _get(db: Session, key: str) -> dict | None:
    s = db.get(Setting, key)
    if s and isinstance(s.value, dict):
        return dict(s.value)
    return None

def _put(db: Session, key: str, value: dict) -> dict:
    s = db.get(Setting, key)
    if not s:
        s = Setting(key=key, value=value)
        db.add(s)
    else:
        s.value = value
        s.updated_at = datetime.now(timezone.utc)
    db.commit()
    return value

def get_contact(db: Session) -> dict:
    stored = _get(db, CONTACT_KEY)
    if not stored:
        return {k: (dict(v) if isinstance(v, dict) else v) for k, v in DEFAULT_CONTACT.items()}
    out = {**DEFAULT_CONTACT, **stored}
    out["address"] = {**DEFAULT_CONTACT["address"], **(stored.get("address") or {})}
    out["hours"] = {**DEFAULT_CONTACT["hours"], **(stored.get("hours") or {})}
    return out

def set_contact(db: Session, data: dict) -> dict:
    return _put(db, CONTACT_KEY, data)

def _check_event_type(name: str) -> str:
    if name not in EVENT_TYPE_NAMES:
        raise NotFoundError(f"unknown event type: {name}")
    return name

def get_event_type_images(db: Session, name: str) -> dict:
    _check_event_type(name)
    stored = _get(db, EVENT_TYPE_IMAGES_PREFIX + name) or {}
    return {"name": name, "images": [u for u in stored.get("images", []) if u], "description": stored.get("description", "")}

def set_event_type_images(db: Session, name: str, images: list, description: str | None = None) -> dict:
    _check_event_type(name)
    current = _get(db, EVENT_TYPE_IMAGES_PREFIX + name) or {}
    data = {
        "images": [u for u in images if u],
        "description": current.get("description", "") if description is None else description,
    }
    _put(db, EVENT_TYPE_IMAGES_PREFIX + name, data)
    return {"name": name, **data}

def list_event_type_images(db: Session) -> list:
    return [get_event_type_images(db, name) for name in EVENT_TYPE_NAMES]
