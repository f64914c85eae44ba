"""
Read-boundary normalisation for fields that changed shape over time.

Expenses were first stored as a single number per booking and later as an
itemised list of {amount, description, category, date}. Every screen that
reads expenses (accounting, reports, transactions, event detail, exports,
consistency checks) goes through ``expense_total`` so their totals agree.
"""
from datetime import date, datetime
from typing import Any, List, Optional, Tuple


def to_date(value: Any) -> Optional[date]:
    """Normalise a stored date (date, datetime, ISO string, SDK timestamp object) to a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    for attr in ("to_date", "toDate", "to_datetime"):
        fn = getattr(value, attr, None)
        if callable(fn):
            return to_date(fn())
    if isinstance(value, str):
        s = value.strip()
        try:
            if len(s) == 10:
                return date.fromisoformat(s)
            return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


def _amount(item: Any) -> float:
    if isinstance(item, dict):
        raw = item.get("amount")
    else:
        raw = getattr(item, "amount", None)
    try:
        return float(raw or 0)
    except (TypeError, ValueError):
        return 0.0


def expense_total(expenses: Any) -> float:
    """number | list[{amount}] | None -> float."""
    if expenses is None or isinstance(expenses, bool):
        return 0.0
    if isinstance(expenses, (int, float)):
        return float(expenses or 0)
    if isinstance(expenses, (list, tuple)):
        return float(sum(_amount(item) for item in expenses))
    return 0.0


def expense_items(expenses: Any) -> List[dict]:
    """List view of the expense union. A bare legacy number becomes one item."""
    if isinstance(expenses, (list, tuple)):
        return [dict(item) for item in expenses if isinstance(item, dict)]
    total = expense_total(expenses)
    if total:
        return [{"id": "legacy", "amount": total, "description": "Recorded expenses", "category": "other", "date": None}]
    return []


def package_images(image_url: str | None, gallery: list | None) -> Tuple[str, list]:
    """Keep the legacy single image in step with the gallery (gallery[0] is the main image)."""
    gallery = [u for u in (gallery or []) if u]
    if gallery:
        return gallery[0], gallery
    if image_url:
        return image_url, [image_url]
    return "", []
