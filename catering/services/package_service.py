import logging
import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from catering.models.package import Package
from catering.schemas.content import PackageIn
from catering.services.errors import NotFoundError, ValidationError
from catering.services.normalize import package_images

logger = logging.getLogger(__name__)

# Catalogue shown on the booking form next to the packages
SERVICE_TYPES = [
    {"id": "food-only", "name": "Food Only", "description": "Food and beverages only, no additional services"},
    {"id": "service-only", "name": "Service Only", "description": "Event services and equipment only, no food"},
    {"id": "mixed", "name": "Mixed (Food + Services)", "description": "Complete package with food and services"},
]

FOOD_ADDONS = [
    {"id": "appetizer-platter", "name": "Premium Appetizer Platter", "price": 150, "category": "appetizers"},
    {"id": "seafood-station", "name": "Seafood Station", "price": 450, "category": "stations"},
    {"id": "sushi-bar", "name": "Sushi Bar", "price": 380, "category": "stations"},
    {"id": "dessert-bar", "name": "Dessert Bar", "price": 280, "category": "desserts"},
    {"id": "cheese-board", "name": "Artisan Cheese Board", "price": 120, "category": "appetizers"},
    {"id": "pasta-station", "name": "Fresh Pasta Station", "price": 320, "category": "stations"},
    {"id": "coffee-station", "name": "Premium Coffee & Tea Station", "price": 150, "category": "beverages"},
    {"id": "cocktail-hour", "name": "Cocktail Hour Package", "price": 400, "category": "beverages"},
]

SERVICE_ADDONS = [
    {"id": "chairs-standard", "name": "Standard Chairs", "pricePerUnit": 20, "unit": "chair"},
    {"id": "chairs-chiavari", "name": "Chiavari Chairs", "pricePerUnit": 50, "unit": "chair"},
    {"id": "tables-round", "name": "Round Tables (8-seat)", "pricePerUnit": 100, "unit": "table"},
    {"id": "linens-premium", "name": "Premium Table Linens", "pricePerUnit": 70, "unit": "table"},
    {"id": "centerpieces", "name": "Floral Centerpieces", "pricePerUnit": 100, "unit": "piece"},
    {"id": "lighting", "name": "Ambient Lighting Package", "pricePerUnit": 1500, "unit": "package"},
    {"id": "sound-system", "name": "Sound System", "pricePerUnit": 5000, "unit": "package"},
    {"id": "photo-booth", "name": "Photo Booth", "pricePerUnit": 7000, "unit": "package"},
]


def validate_package(body: PackageIn) -> List[str]:
    """Return the cleaned feature list or raise on the first invalid field."""
    if not body.name.strip():
        raise ValidationError("name is required")
    if not body.description.strip():
        raise ValidationError("description is required")
    if body.price is None or body.price <= 0:
        raise ValidationError("price must be > 0")
    features = [f.strip() for f in body.features if f and f.strip()]
    if not features:
        raise ValidationError("at least one feature is required")
    return features


def list_packages(db: Session) -> List[Package]:
    return db.query(Package).order_by(Package.price.asc()).all()


def get_package(db: Session, package_id: str) -> Package:
    p = db.get(Package, package_id)
    if not p:
        raise NotFoundError("package not found")
    return p


def create_package(db: Session, body: PackageIn) -> Package:
    features = validate_package(body)
    image_url, gallery = package_images(body.imageUrl, body.gallery)
    p = Package(
        id=str(uuid.uuid4()),
        name=body.name.strip(),
        description=body.description.strip(),
        price=float(body.price),
        features=features,
        icon=body.icon,
        gradient=body.gradient,
        image_url=image_url,
        gallery=gallery,
    )
    db.add(p)
    db.commit()
    db.refresh(p)
    logger.info("package created id=%s name=%s", p.id, p.name)
    return p


def update_package(db: Session, p: Package, body: PackageIn) -> Package:
    features = validate_package(body)
    image_url, gallery = package_images(body.imageUrl, body.gallery)
    p.name = body.name.strip()
    p.description = body.description.strip()
    p.price = float(body.price)
    p.features = features
    p.icon = body.icon
    p.gradient = body.gradient
    p.image_url = image_url
    p.gallery = gallery
    p.updated_at = datetime.now(timezone.utc)
    db.commit()
    return p


def delete_package(db: Session, p: Package) -> None:
    db.delete(p)
    db.commit()


def package_to_dict(p: Package) -> dict:
    image_url, gallery = package_images(p.image_url, p.gallery)
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "price": p.price,
        "features": list(p.features or []),
        "icon": p.icon,
        "gradient": p.gradient,
        "imageUrl": image_url,
        "gallery": gallery,
    }
