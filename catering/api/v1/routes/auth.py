import uuid
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException
from jose import JWTError
from sqlalchemy.orm import Session
from catering.db.session import get_db
from catering.schemas.auth import LoginRequest, RegisterRequest, TokenPair, RefreshRequest, ProfileUpdate, PasswordChange
from catering.models.user import User
from catering.core.security import verify_password, hash_password, create_access_token, create_refresh_token, decode_token, REFRESH
from catering.api.deps import get_current_user, Role

router = APIRouter(tags=["auth"])

def _tokens(user: User) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user.id, role=user.role),
        refresh_token=create_refresh_token(user.id),
    )

def user_out(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "fullName": u.full_name or "",
        "phone": u.phone or "",
        "role": u.role,
        "isActive": u.is_active,
        "lastLoginAt": u.last_login_at.isoformat() if u.last_login_at else None,
        "createdAt": u.created_at.isoformat() if u.created_at else None,
    }

@router.post("/auth/register", response_model=TokenPair)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    email = body.email.strip().lower()
    if not email or "@" not in email:
        raise HTTPException(status_code=400, detail="valid email required")
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="email already registered")
    u = User(
        id=str(uuid.uuid4()),
        email=email,
        full_name=body.fullName.strip(),
        phone=body.phone.strip(),
        role=Role.CUSTOMER.value,
        password_hash=hash_password(body.password),
        is_active=True,
    )
    db.add(u)
    db.commit()
    return _tokens(u)

@router.post("/auth/login", response_model=TokenPair)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    return _tokens(user)


@router.post("/auth/refresh", response_model=TokenPair)
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    try:
        payload = decode_token(body.refresh_token, expected_type=REFRESH)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    user = db.get(User, payload.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return _tokens(user)

@router.get("/auth/me")
def me(me: User = Depends(get_current_user)):
    """Return current user info including role."""
    return user_out(me)

@router.patch("/auth/me")
def update_profile(body: ProfileUpdate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    if body.fullName is not None:
        me.full_name = body.fullName.strip()
    if body.phone is not None:
        me.phone = body.phone.strip()
    db.commit()
    return user_out(me)


@router.post("/auth/change-password")
def change_password(body: PasswordChange,
                    db: Session = Depends(get_db),
                    me: User = Depends(get_current_user)):
    if not verify_password(body.currentPassword, me.password_hash):
        raise HTTPException(status_code=400, detail="Current password incorrect")
    if len(body.newPassword) < 8:
        raise HTTPException(status_code=400, detail="Password too short")
    me.password_hash = hash_password(body.newPassword)
    db.commit()
    return {"ok": True}
