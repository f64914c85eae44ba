import uuid
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from sqlalchemy.orm import Session
from sqlalchemy import func

from catering.db.session import get_db
from catering.api.deps import require_roles, Role, ROLES
from catering.api.v1.routes.auth import user_out
from catering.models.booking import Booking
from catering.models.user import User
from catering.core.security import hash_password, generate_temp_password
from catering.schemas.auth import UserCreate, UserUpdate
from catering.schemas.content import PackageIn, ContactSettingsIn, EventTypeImagesIn
from catering.services.audit_service import log_audit, list_audit_logs, audit_to_dict
from catering.services.booking_service import backfill_user_ids, backfill_payment_methods
from catering.services.errors import http_error
from catering.services.media_service import upload_image
from catering.services import package_service as packages
from catering.services import settings_service

router = APIRouter(tags=["admin"])

manager_only = require_roles(Role.MANAGER)

# -------------------------
# USERS
# -------------------------
@router.get("/manager/users")
def list_users(role: str | None = None, q: str | None = None, limit: int = 50, offset: int = 0,
               db: Session = Depends(get_db),
               me: User = Depends(manager_only)):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if q:
        ql = f"%{q.lower()}%"
        query = query.filter(func.lower(User.email).like(ql) | func.lower(User.full_name).like(ql))
    total = query.count()
    users = query.order_by(User.created_at.desc()).limit(min(limit, 200)).offset(max(offset, 0)).all()
    return {"total": total, "items": [user_out(u) for u in users]}

@router.post("/manager/users")
def create_user(body: UserCreate, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    email_l = body.email.strip().lower()
    if not email_l:
        raise HTTPException(status_code=400, detail="email required")
    if db.query(User).filter(User.email == email_l).first():
        raise HTTPException(status_code=409, detail="email already exists")
    if body.role not in ROLES:
        raise HTTPException(status_code=400, detail="invalid role")
    pw = body.tempPassword or generate_temp_password()
    u = User(
        id=str(uuid.uuid4()),
        email=email_l,
        full_name=body.fullName,
        phone=body.phone,
        role=body.role,
        password_hash=hash_password(pw),
        is_active=True,
    )
    db.add(u)
    db.commit()
    log_audit(db, me.id, "user.create", "user", u.id, {"email": u.email, "role": u.role})
    db.commit()
    return {"ok": True, "id": u.id, "email": u.email, "tempPassword": pw}

@router.patch("/manager/users/{user_id}")
def update_user(user_id: str, body: UserUpdate, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    u = db.get(User, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="not found")
    if body.fullName is not None:
        u.full_name = body.fullName
    if body.phone is not None:
        u.phone = body.phone
    if body.role is not None:
        if body.role not in ROLES:
            raise HTTPException(status_code=400, detail="invalid role")
        if u.id == me.id and body.role != Role.MANAGER.value:
            raise HTTPException(status_code=400, detail="cannot change your own role")
        u.role = body.role
    if body.isActive is not None:
        if u.id == me.id and not body.isActive:
            raise HTTPException(status_code=400, detail="cannot deactivate yourself")
        u.is_active = bool(body.isActive)
    log_audit(db, me.id, "user.update", "user", u.id, {"role": u.role, "isActive": u.is_active})
    db.commit()
    return user_out(u)

@router.post("/manager/users/{user_id}/reset-password")
def reset_password(user_id: str, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    u = db.get(User, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="not found")
    pw = generate_temp_password()
    u.password_hash = hash_password(pw)
    log_audit(db, me.id, "user.password_reset", "user", u.id, {"email": u.email})
    db.commit()
    return {"ok": True, "tempPassword": pw}

@router.delete("/manager/users/{user_id}")
def delete_user(user_id: str, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    u = db.get(User, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="not found")
    if u.id == me.id:
        raise HTTPException(status_code=400, detail="cannot delete yourself")
    if db.query(Booking).filter(Booking.user_id == u.id).first():
        raise HTTPException(status_code=409, detail="user has bookings; deactivate instead")
    db.delete(u)
    log_audit(db, me.id, "user.delete", "user", user_id, {"email": u.email})
    db.commit()
    return {"ok": True}

# -------------------------
# PACKAGES
# -------------------------
@router.get("/manager/packages")
def list_packages(db: Session = Depends(get_db), me: User = Depends(manager_only)):
    return [packages.package_to_dict(p) for p in packages.list_packages(db)]

@router.post("/manager/packages")
def create_package(body: PackageIn, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    try:
        p = packages.create_package(db, body)
    except ValueError as e:
        raise http_error(e)
    log_audit(db, me.id, "package.create", "package", p.id, {"name": p.name, "price": p.price})
    db.commit()
    return packages.package_to_dict(p)

@router.put("/manager/packages/{package_id}")
def update_package(package_id: str, body: PackageIn, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    try:
        p = packages.update_package(db, packages.get_package(db, package_id), body)
    except ValueError as e:
        raise http_error(e)
    log_audit(db, me.id, "package.update", "package", p.id, {"name": p.name, "price": p.price})
    db.commit()
    return packages.package_to_dict(p)

@router.delete("/manager/packages/{package_id}")
def delete_package(package_id: str, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    try:
        packages.delete_package(db, packages.get_package(db, package_id))
    except ValueError as e:
        raise http_error(e)
    log_audit(db, me.id, "package.delete", "package", package_id)
    db.commit()
    return {"ok": True}

# -------------------------
# SETTINGS (contact + event type images)
# -------------------------
@router.get("/manager/settings/contact")
def get_contact(db: Session = Depends(get_db), me: User = Depends(manager_only)):
    return settings_service.get_contact(db)

@router.put("/manager/settings/contact")
def put_contact(body: ContactSettingsIn, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    data = settings_service.set_contact(db, body.model_dump())
    log_audit(db, me.id, "settings.contact", "setting", settings_service.CONTACT_KEY, data)
    db.commit()
    return data

@router.get("/manager/settings/event-type-images")
def get_event_type_images(db: Session = Depends(get_db), me: User = Depends(manager_only)):
    return settings_service.list_event_type_images(db)

@router.put("/manager/settings/event-type-images/{name}")
def put_event_type_images(name: str, body: EventTypeImagesIn, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    try:
        data = settings_service.set_event_type_images(db, name, body.images, body.description)
    except ValueError as e:
        raise http_error(e)
    log_audit(db, me.id, "settings.event_type_images", "setting", name, {"count": len(data["images"])})
    db.commit()
    return data

# -------------------------
# MEDIA
# -------------------------
@router.post("/manager/media/images")
async def upload(file: UploadFile = File(...), folder: str = Form(""), me: User = Depends(manager_only)):
    content = await file.read()
    try:
        url = upload_image(file.filename or "upload", content, file.content_type or "", folder=folder)
    except (ValueError, RuntimeError) as e:
        raise http_error(e)
    return {"url": url}

# -------------------------
# ADMIN UTILITIES
# -------------------------
@router.post("/manager/admin/backfill-user-ids")
def run_backfill_user_ids(db: Session = Depends(get_db), me: User = Depends(manager_only)):
    result = backfill_user_ids(db, me)
    log_audit(db, me.id, "admin.backfill_user_ids", "booking", "*", result)
    db.commit()
    return result

@router.post("/manager/admin/backfill-payment-methods")
def run_backfill_payment_methods(db: Session = Depends(get_db), me: User = Depends(manager_only)):
    result = backfill_payment_methods(db)
    log_audit(db, me.id, "admin.backfill_payment_methods", "booking", "*", result)
    db.commit()
    return result

@router.get("/manager/audit-logs")
def audit_logs(entityType: str = "", entityId: str = "", limit: int = 100,
               db: Session = Depends(get_db), me: User = Depends(manager_only)):
    return [audit_to_dict(a) for a in list_audit_logs(db, entityType, entityId, limit)]
