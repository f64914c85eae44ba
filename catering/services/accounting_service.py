"""
Accounting, reports and transactions.

Every screen uses the same two steps: a filter pushed into the SQL query
(``BookingFilter`` / ``TransactionFilter``) and a pure reducer over the rows
it returns (``summarize_bookings`` / ``summarize_transactions``). Exports call
the same pair, so exported totals equal on-screen totals.

Revenue counts confirmed and completed bookings at (total - discount).
Collected cash counts paid and partial bookings. Profit is always
revenue - expenses.
"""
import calendar
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Session

from catering.models.booking import Booking
from catering.models.cash_flow import CashFlowEntry
from catering.models.transaction import Transaction
from catering.services.booking_service import amount_due
from catering.services.errors import NotFoundError, ValidationError
from catering.services.normalize import expense_total, to_date

logger = logging.getLogger(__name__)

REVENUE_STATUSES = ("confirmed", "completed")
COLLECTED_PAYMENT_STATUSES = ("paid", "partial")
CASH_FLOW_TYPES = ("income", "expense")
MONEY_TOLERANCE = 0.01


def month_bounds(year: int, month: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValidationError("month must be 1..12")
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def parse_month(value: str | None, today: date | None = None) -> tuple[int, int]:
    """'YYYY-MM' -> (year, month); empty means the current month."""
    if not value:
        today = today or datetime.now(timezone.utc).date()
        return today.year, today.month
    try:
        year, month = map(int, value.split("-"))
    except (ValueError, TypeError):
        raise ValidationError("month must be YYYY-MM")
    month_bounds(year, month)
    return year, month


def net_price(b: Booking) -> float:
    return float(b.total_price or 0) - float(b.discount or 0)


# -------------------------
# BOOKINGS
# -------------------------
@dataclass
class BookingFilter:
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    statuses: Optional[Sequence[str]] = None
    event_type: str = ""
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    date_field: str = "event_date"  # event_date | created_at

    def apply(self, query):
        if self.date_field == "created_at":
            if self.date_from:
                query = query.filter(Booking.created_at >= datetime.combine(self.date_from, time.min))
            if self.date_to:
                query = query.filter(Booking.created_at < datetime.combine(self.date_to + timedelta(days=1), time.min))
        else:
            if self.date_from:
                query = query.filter(Booking.event_date >= self.date_from)
            if self.date_to:
                query = query.filter(Booking.event_date <= self.date_to)
        if self.statuses:
            query = query.filter(Booking.status.in_(list(self.statuses)))
        if self.event_type:
            query = query.filter(Booking.event_type == self.event_type)
        if self.min_amount is not None:
            query = query.filter(Booking.total_price >= self.min_amount)
        if self.max_amount is not None:
            query = query.filter(Booking.total_price <= self.max_amount)
        return query


def query_bookings(db: Session, flt: BookingFilter) -> List[Booking]:
    return flt.apply(db.query(Booking)).order_by(Booking.event_date.asc()).all()


def summarize_bookings(bookings: Iterable[Booking]) -> dict:
    revenue = expenses = collected = outstanding = 0.0
    counted = 0
    rows = list(bookings)
    for b in rows:
        if b.status in REVENUE_STATUSES:
            counted += 1
            revenue += net_price(b)
            expenses += expense_total(b.expenses)
            outstanding += max(0.0, net_price(b) - float(b.amount_paid or 0))
        if b.payment_status in COLLECTED_PAYMENT_STATUSES:
            collected += float(b.amount_paid or 0)
    return {
        "count": len(rows),
        "revenueBookings": counted,
        "revenue": round(revenue, 2),
        "expenses": round(expenses, 2),
        "profit": round(revenue - expenses, 2),
        "collected": round(collected, 2),
        "outstanding": round(outstanding, 2),
    }


def payment_status_counts(bookings: Iterable[Booking]) -> dict:
    counts = {"pending": 0, "partial": 0, "paid": 0, "refunded": 0}
    for b in bookings:
        counts[b.payment_status] = counts.get(b.payment_status, 0) + 1
    return counts


def payment_method_breakdown(bookings: Iterable[Booking]) -> List[dict]:
    acc: dict = {}
    for b in bookings:
        if b.payment_status not in COLLECTED_PAYMENT_STATUSES or b.status not in REVENUE_STATUSES:
            continue
        if not b.amount_paid:
            continue
        method = b.payment_method or "cash"
        row = acc.setdefault(method, {"method": method, "amount": 0.0, "count": 0})
        row["amount"] += float(b.amount_paid)
        row["count"] += 1
    return sorted(acc.values(), key=lambda r: r["amount"], reverse=True)


def event_type_breakdown(bookings: Iterable[Booking]) -> List[dict]:
    acc: dict = {}
    for b in bookings:
        if b.status not in REVENUE_STATUSES:
            continue
        row = acc.setdefault(b.event_type, {"type": b.event_type, "count": 0, "revenue": 0.0, "expenses": 0.0})
        row["count"] += 1
        row["revenue"] += net_price(b)
        row["expenses"] += expense_total(b.expenses)
    for row in acc.values():
        row["profit"] = row["revenue"] - row["expenses"]
    return sorted(acc.values(), key=lambda r: r["revenue"], reverse=True)


def top_customers(bookings: Iterable[Booking], limit: int = 5) -> List[dict]:
    acc: dict = {}
    for b in bookings:
        if b.status not in REVENUE_STATUSES:
            continue
        key = (b.customer_email or b.customer_name or "").lower()
        row = acc.setdefault(key, {"name": b.customer_name, "email": b.customer_email, "bookings": 0, "revenue": 0.0})
        row["bookings"] += 1
        row["revenue"] += net_price(b)
    return sorted(acc.values(), key=lambda r: r["revenue"], reverse=True)[:limit]


def _margin(revenue: float, profit: float) -> float:
    return round(profit / revenue * 100, 1) if revenue > 0 else 0.0


def profitability_series(bookings: Iterable[Booking], view: str = "month") -> List[dict]:
    """Revenue/expenses/profit per week (Monday start) or per calendar month, oldest first."""
    if view not in ("week", "month"):
        raise ValidationError("view must be week or month")
    buckets: dict = {}
    for b in bookings:
        if b.status not in REVENUE_STATUSES:
            continue
        d = to_date(b.event_date)
        if d is None:
            continue
        if view == "week":
            start = d - timedelta(days=d.weekday())
            key, label = start.isoformat(), f"Week of {start.strftime('%b %d')}"
        else:
            key, label = d.strftime("%Y-%m"), d.strftime("%b %Y")
        row = buckets.setdefault(key, {"key": key, "label": label, "revenue": 0.0, "expenses": 0.0, "bookings": 0})
        row["revenue"] += net_price(b)
        row["expenses"] += expense_total(b.expenses)
        row["bookings"] += 1
    out = []
    for key in sorted(buckets):
        row = buckets[key]
        row["profit"] = row["revenue"] - row["expenses"]
        row["margin"] = _margin(row["revenue"], row["profit"])
        out.append(row)
    return out


def budget_vs_actual(bookings: Iterable[Booking]) -> dict:
    rows = []
    on_track = near_limit = over = with_budget = 0
    for b in bookings:
        if b.status not in REVENUE_STATUSES:
            continue
        budget = float(b.budget or 0)
        spent = expense_total(b.expenses)
        if not budget and not spent:
            continue
        if budget:
            with_budget += 1
            if spent > budget:
                over += 1
            elif spent > budget * 0.8:
                near_limit += 1
            else:
                on_track += 1
        rows.append({
            "bookingId": b.id,
            "customerName": b.customer_name,
            "eventType": b.event_type,
            "eventDate": b.event_date.isoformat() if b.event_date else None,
            "budget": budget,
            "expenses": spent,
            "variance": budget - spent,
            "overBudget": budget > 0 and spent > budget,
            "percentageUsed": round(spent / budget * 100, 1) if budget else 0.0,
        })
    return {
        "rows": rows,
        "eventsWithBudget": with_budget,
        "onTrack": on_track,
        "nearLimit": near_limit,
        "overBudget": over,
        "totalBudget": sum(r["budget"] for r in rows),
        "totalExpenses": sum(r["expenses"] for r in rows),
    }


def booking_report_row(b: Booking) -> dict:
    revenue = net_price(b)
    spent = expense_total(b.expenses)
    return {
        "id": b.id,
        "customerName": b.customer_name,
        "eventType": b.event_type,
        "eventDate": b.event_date.isoformat() if b.event_date else None,
        "status": b.status,
        "paymentStatus": b.payment_status,
        "totalPrice": float(b.total_price or 0),
        "discount": float(b.discount or 0),
        "revenue": revenue,
        "amountPaid": float(b.amount_paid or 0),
        "expenses": spent,
        "profit": revenue - spent,
        "margin": _margin(revenue, revenue - spent),
    }


def build_report(db: Session, flt: BookingFilter, view: str = "month") -> dict:
    bookings = query_bookings(db, flt)
    return {
        "summary": summarize_bookings(bookings),
        "profitability": profitability_series(bookings, view),
        "eventTypes": event_type_breakdown(bookings),
        "topCustomers": top_customers(bookings),
        "budget": budget_vs_actual(bookings),
        "rows": [booking_report_row(b) for b in bookings],
    }


# -------------------------
# CASH FLOW
# -------------------------
def list_cash_flow_entries(db: Session, date_from: date | None = None, date_to: date | None = None,
                           manager_id: str = "") -> List[CashFlowEntry]:
    q = db.query(CashFlowEntry)
    if manager_id:
        q = q.filter(CashFlowEntry.manager_id == manager_id)
    if date_from:
        q = q.filter(CashFlowEntry.date >= date_from)
    if date_to:
        q = q.filter(CashFlowEntry.date <= date_to)
    return q.order_by(CashFlowEntry.date.desc()).all()


def create_cash_flow_entry(db: Session, manager_id: str, type_: str, amount: float, description: str,
                           category: str, on: date, notes: str = "", related_booking_id: str = "") -> CashFlowEntry:
    if type_ not in CASH_FLOW_TYPES:
        raise ValidationError("type must be income or expense")
    if amount is None or amount <= 0:
        raise ValidationError("amount must be > 0")
    if not (description or "").strip():
        raise ValidationError("description is required")
    e = CashFlowEntry(
        id=str(uuid.uuid4()),
        manager_id=manager_id,
        type=type_,
        amount=float(amount),
        description=description.strip(),
        category=(category or "other").strip(),
        notes=notes or "",
        date=on,
        related_booking_id=related_booking_id or "",
    )
    db.add(e)
    db.commit()
    db.refresh(e)
    return e


def delete_cash_flow_entry(db: Session, entry_id: str) -> None:
    e = db.get(CashFlowEntry, entry_id)
    if not e:
        raise NotFoundError("cash flow entry not found")
    db.delete(e)
    db.commit()


def cash_flow(db: Session, date_from: date | None, date_to: date | None, type_: str = "",
              manager_id: str = "") -> dict:
    """Automatic rows from revenue bookings plus manual entries, newest first."""
    if type_ and type_ not in CASH_FLOW_TYPES:
        raise ValidationError("type must be income or expense")
    entries: List[dict] = []
    bookings = query_bookings(db, BookingFilter(date_from=date_from, date_to=date_to, statuses=REVENUE_STATUSES))
    for b in bookings:
        d = b.event_date.isoformat() if b.event_date else None
        entries.append({
            "id": f"income-{b.id}",
            "type": "income",
            "amount": net_price(b),
            "description": f"{b.customer_name} - {b.event_type}",
            "category": "booking_income",
            "date": d,
            "bookingId": b.id,
            "notes": f"Package: {b.package_name or 'N/A'}",
            "source": "booking",
        })
        spent = expense_total(b.expenses)
        if spent > 0:
            entries.append({
                "id": f"expense-{b.id}",
                "type": "expense",
                "amount": spent,
                "description": f"Expenses - {b.customer_name} ({b.event_type})",
                "category": "booking_expense",
                "date": d,
                "bookingId": b.id,
                "notes": f"Event expenses for {b.package_name or 'N/A'}",
                "source": "booking",
            })
    for e in list_cash_flow_entries(db, date_from, date_to, manager_id):
        entries.append(cash_flow_entry_to_dict(e))

    if type_:
        entries = [e for e in entries if e["type"] == type_]
    entries.sort(key=lambda e: e["date"] or "", reverse=True)

    income = sum(e["amount"] for e in entries if e["type"] == "income")
    expense = sum(e["amount"] for e in entries if e["type"] == "expense")
    return {
        "entries": entries,
        "totals": {"income": round(income, 2), "expense": round(expense, 2), "net": round(income - expense, 2)},
        "fromBookings": sum(1 for e in entries if e["source"] == "booking"),
        "manual": sum(1 for e in entries if e["source"] == "manual"),
    }


def cash_flow_entry_to_dict(e: CashFlowEntry) -> dict:
    return {
        "id": e.id,
        "type": e.type,
        "amount": float(e.amount),
        "description": e.description,
        "category": e.category,
        "date": e.date.isoformat() if e.date else None,
        "bookingId": e.related_booking_id or None,
        "notes": e.notes,
        "source": "manual",
    }


def accounting_overview(db: Session, year: int, month: int, manager_id: str = "") -> dict:
    start, end = month_bounds(year, month)
    monthly = query_bookings(db, BookingFilter(date_from=start, date_to=end))
    flow = cash_flow(db, start, end, manager_id=manager_id)
    with_expenses = [b for b in monthly if b.status in REVENUE_STATUSES and expense_total(b.expenses) > 0]
    summary = summarize_bookings(monthly)
    return {
        "month": f"{year:04d}-{month:02d}",
        "summary": summary,
        "allTime": summarize_bookings(db.query(Booking).all()),
        "paymentStatusCounts": payment_status_counts(monthly),
        "paymentMethods": payment_method_breakdown(monthly),
        "bookingsWithExpenses": len(with_expenses),
        "avgExpensePerBooking": round(summary["expenses"] / len(with_expenses), 2) if with_expenses else 0.0,
        "cashFlow": flow["totals"],
    }


# -------------------------
# TRANSACTIONS
# -------------------------
@dataclass
class TransactionFilter:
    q: str = ""
    status: str = ""
    payment_method: str = ""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    manager_id: str = ""

    def apply(self, query):
        if self.manager_id:
            query = query.filter(Transaction.manager_id == self.manager_id)
        if self.status:
            query = query.filter(Transaction.status == self.status)
        if self.payment_method:
            query = query.filter(Transaction.payment_method == self.payment_method)
        if self.date_from:
            query = query.filter(Transaction.completed_at >= datetime.combine(self.date_from, time.min))
        if self.date_to:
            query = query.filter(Transaction.completed_at < datetime.combine(self.date_to + timedelta(days=1), time.min))
        if self.q:
            like = f"%{self.q.lower()}%"
            query = query.filter(or_(Transaction.customer_name.ilike(like), Transaction.customer_email.ilike(like),
                                     Transaction.event_type.ilike(like), Transaction.package_name.ilike(like)))
        return query


def list_transactions(db: Session, flt: TransactionFilter) -> List[Transaction]:
    return flt.apply(db.query(Transaction)).order_by(Transaction.completed_at.desc()).all()


def summarize_transactions(transactions: Iterable[Transaction]) -> dict:
    rows = list(transactions)
    amount = sum(float(t.amount or 0) for t in rows)
    expenses = sum(float(t.total_expenses or 0) for t in rows)
    return {
        "count": len(rows),
        "amount": round(amount, 2),
        "downpayments": round(sum(float(t.downpayment or 0) for t in rows), 2),
        "remaining": round(sum(float(t.remaining_balance or 0) for t in rows), 2),
        "expenses": round(expenses, 2),
        "profit": round(amount - expenses, 2),
    }


def transaction_to_dict(t: Transaction) -> dict:
    return {
        "id": t.id,
        "bookingId": t.booking_id,
        "managerId": t.manager_id,
        "customerName": t.customer_name,
        "customerEmail": t.customer_email,
        "eventType": t.event_type,
        "packageName": t.package_name,
        "amount": float(t.amount or 0),
        "downpayment": float(t.downpayment or 0),
        "remainingBalance": float(t.remaining_balance or 0),
        "expenses": list(t.expenses or []),
        "totalExpenses": float(t.total_expenses or 0),
        "profit": float(t.profit or 0),
        "paymentMethod": t.payment_method,
        "status": t.status,
        "eventDate": t.event_date.isoformat() if t.event_date else None,
        "completedAt": t.completed_at.isoformat() if t.completed_at else None,
    }


# -------------------------
# CONSISTENCY
# -------------------------
def _issue(kind: str, entity_type: str, entity_id: str, message: str, expected=None, actual=None) -> dict:
    return {"kind": kind, "entityType": entity_type, "entityId": entity_id, "message": message,
            "expected": expected, "actual": actual}


def consistency_report(db: Session) -> dict:
    """Cross-check stored money figures that nothing else validates against each other."""
    issues: List[dict] = []
    transactions = db.query(Transaction).all()
    for t in transactions:
        items_total = expense_total(t.expenses)
        if t.expenses and abs(items_total - float(t.total_expenses or 0)) > MONEY_TOLERANCE:
            issues.append(_issue("transaction_expenses_mismatch", "transaction", t.id,
                                 "totalExpenses does not match the sum of expense items",
                                 items_total, t.total_expenses))
        expected_profit = float(t.amount or 0) - float(t.total_expenses or 0)
        if abs(expected_profit - float(t.profit or 0)) > MONEY_TOLERANCE:
            issues.append(_issue("transaction_profit_mismatch", "transaction", t.id,
                                 "profit is not amount - totalExpenses", expected_profit, t.profit))
        parts = float(t.downpayment or 0) + float(t.remaining_balance or 0)
        if abs(parts - float(t.amount or 0)) > MONEY_TOLERANCE:
            issues.append(_issue("transaction_payment_mismatch", "transaction", t.id,
                                 "downpayment + remainingBalance is not amount", t.amount, parts))

    by_booking = {t.booking_id: t for t in transactions}
    bookings = db.query(Booking).all()
    for b in bookings:
        if float(b.amount_paid or 0) > amount_due(b) + MONEY_TOLERANCE:
            issues.append(_issue("booking_overpaid", "booking", b.id,
                                 "amountPaid exceeds the amount due", amount_due(b), b.amount_paid))
        if b.status == "cancelled" and not (b.cancel_reason or "").strip():
            issues.append(_issue("cancelled_without_reason", "booking", b.id, "cancelled booking has no reason"))
        if b.status == "completed" and b.id not in by_booking:
            issues.append(_issue("completed_without_transaction", "booking", b.id,
                                 "completed booking has no transaction record"))
        t = by_booking.get(b.id)
        # refunds leave the transaction snapshot as it was
        if t is not None and b.payment_status != "refunded" and \
                abs(float(b.amount_paid or 0) - float(t.amount or 0)) > MONEY_TOLERANCE:
            issues.append(_issue("transaction_payment_mismatch", "booking", b.id,
                                 "amountPaid does not match the transaction amount", t.amount, b.amount_paid))

    if issues:
        logger.warning("consistency check found %d issue(s)", len(issues))
    return {
        "ok": not issues,
        "checked": {"transactions": len(transactions), "bookings": len(bookings)},
        "issues": issues,
    }
