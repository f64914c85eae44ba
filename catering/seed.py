import logging
import uuid

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from catering.db.session import SessionLocal
from catering.core.security import hash_password
from catering.models.user import User
from catering.models.package import Package
from catering.models.setting import Setting
from catering.services.settings_service import CONTACT_KEY, DEFAULT_CONTACT

logger = logging.getLogger(__name__)

PACKAGES = [
    {
        "name": "Intimate Gathering",
        "price": 1500,
        "description": "Perfect for small, cozy celebrations with close friends and family",
        "icon": "heart",
        "gradient": "from-rose-400 to-pink-500",
        "features": ["Up to 30 guests", "3-course meal", "Professional service staff",
                     "Table setup & decoration", "Basic bar service", "4 hours of service"],
        "image": "https://images.unsplash.com/photo-1414235077428-338989a2e8c0?w=800&q=80",
    },
    {
        "name": "Grand Celebration",
        "price": 3500,
        "description": "Ideal for medium to large events with premium service",
        "icon": "star",
        "gradient": "from-amber-400 to-orange-500",
        "features": ["Up to 100 guests", "5-course gourmet meal", "Full service staff",
                     "Premium table setup & decor", "Full bar service", "Live cooking stations",
                     "6 hours of service", "Event coordinator"],
        "image": "https://images.unsplash.com/photo-1555244162-803834f70033?w=800&q=80",
    },
    {
        "name": "Luxury Experience",
        "price": 7500,
        "description": "The ultimate catering experience for exclusive events",
        "icon": "crown",
        "gradient": "from-violet-500 to-purple-600",
        "features": ["Up to 200 guests", "7-course fine dining experience", "Premium service team",
                     "Luxury decor & ambiance", "Premium bar with sommelier", "Multiple live cooking stations",
                     "Chef's table experience", "8 hours of service", "Dedicated event manager", "Custom menu design"],
        "image": "https://images.unsplash.com/photo-1530062845289-9109b2c9c868?w=800&q=80",
    },
]


def ensure_user(db: Session, email: str, password: str, role: str, name: str):
    u = db.query(User).filter(User.email == email).first()
    if u:
        return
    db.add(
        User(
            id=str(uuid.uuid4()),
            email=email,
            full_name=name,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
        )
    )
    db.commit()
    logger.info("[seed] created %s user %s", role, email)


def ensure_packages(db: Session):
    if db.query(Package).first():
        return
    for p in PACKAGES:
        db.add(
            Package(
                id=str(uuid.uuid4()),
                name=p["name"],
                description=p["description"],
                price=p["price"],
                features=p["features"],
                icon=p["icon"],
                gradient=p["gradient"],
                image_url=p["image"],
                gallery=[p["image"]],
            )
        )
    db.commit()
    logger.info("[seed] created %d packages", len(PACKAGES))


def run(db=None):
    own_session = db is None
    if own_session:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("[seed] users table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        ensure_user(db, "manager@catering.local", "manager12345", "manager", "Manager")
        ensure_user(db, "staff@catering.local", "staff12345", "staff", "Staff Member")
        ensure_user(db, "customer@catering.local", "customer12345", "customer", "Demo Customer")

        ensure_packages(db)

        if not db.get(Setting, CONTACT_KEY):
            db.add(Setting(key=CONTACT_KEY, value=DEFAULT_CONTACT))
            db.commit()
        logger.info("[seed] done")
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    from catering.core.logging import configure_logging
    configure_logging()
    run()
