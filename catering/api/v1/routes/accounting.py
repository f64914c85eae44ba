import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response
from jose import JWTError
from sqlalchemy.orm import Session
from catering.db.session import get_db
from catering.api.deps import require_roles, Role
from catering.core.security import ACCESS, decode_token
from catering.models.user import User
from catering.schemas.content import CashFlowEntryIn
from catering.services import accounting_service as acc
from catering.services.audit_service import log_audit
from catering.services.errors import http_error
from catering.services.export_service import bookings_report_csv, transactions_csv, cash_flow_csv, render_transactions_pdf_bytes
from catering.services.live_feed import manager as feeds, subscriber_snapshot, TOPICS
from catering.services.normalize import to_date

logger = logging.getLogger(__name__)

router = APIRouter(tags=["accounting"])

manager_only = require_roles(Role.MANAGER)
back_office = require_roles(Role.MANAGER, Role.STAFF)
FEED_ROLES = (Role.MANAGER.value, Role.STAFF.value)


def _day(value: str | None, field: str):
    if not value:
        return None
    d = to_date(value)
    if d is None:
        raise HTTPException(status_code=400, detail=f"{field} must be YYYY-MM-DD")
    return d

def _booking_filter(dateFrom, dateTo, status, eventType, minAmount, maxAmount, dateField) -> acc.BookingFilter:
    if dateField not in ("event_date", "created_at"):
        raise HTTPException(status_code=400, detail="dateField must be event_date or created_at")
    return acc.BookingFilter(
        date_from=_day(dateFrom, "dateFrom"),
        date_to=_day(dateTo, "dateTo"),
        statuses=[s.strip() for s in status.split(",") if s.strip()] or None,
        event_type=eventType,
        min_amount=minAmount,
        max_amount=maxAmount,
        date_field=dateField,
    )

def _transaction_filter(me: User, q, status, paymentMethod, dateFrom, dateTo, mine) -> acc.TransactionFilter:
    return acc.TransactionFilter(
        q=q, status=status, payment_method=paymentMethod,
        date_from=_day(dateFrom, "dateFrom"), date_to=_day(dateTo, "dateTo"),
        manager_id=me.id if mine else "",
    )

def _csv(content: bytes, filename: str) -> Response:
    return Response(content=content, media_type="text/csv; charset=utf-8",
                    headers={"Content-Disposition": f'attachment; filename="{filename}"'})


# -------------------------
# ACCOUNTING
# -------------------------
@router.get("/manager/accounting")
def accounting(month: str | None = None, db: Session = Depends(get_db), me: User = Depends(back_office)):
    try:
        year, m = acc.parse_month(month)
        return acc.accounting_overview(db, year, m, manager_id=me.id)
    except ValueError as e:
        raise http_error(e)

@router.get("/manager/cash-flow")
def cash_flow(month: str | None = None, type: str = "", dateFrom: str | None = None, dateTo: str | None = None,
              db: Session = Depends(get_db), me: User = Depends(manager_only)):
    try:
        if dateFrom or dateTo:
            start, end = _day(dateFrom, "dateFrom"), _day(dateTo, "dateTo")
        else:
            start, end = acc.month_bounds(*acc.parse_month(month))
        return acc.cash_flow(db, start, end, type_=type, manager_id=me.id)
    except ValueError as e:
        raise http_error(e)

@router.post("/manager/cash-flow")
def add_cash_flow_entry(body: CashFlowEntryIn, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    on = _day(body.date, "date")
    if on is None:
        raise HTTPException(status_code=400, detail="date is required")
    try:
        e = acc.create_cash_flow_entry(db, me.id, body.type, body.amount, body.description, body.category, on,
                                       notes=body.notes, related_booking_id=body.bookingId)
    except ValueError as ex:
        raise http_error(ex)
    log_audit(db, me.id, "cash_flow.create", "cash_flow", e.id, {"type": e.type, "amount": e.amount})
    db.commit()
    return acc.cash_flow_entry_to_dict(e)

@router.delete("/manager/cash-flow/{entry_id}")
def delete_cash_flow_entry(entry_id: str, db: Session = Depends(get_db), me: User = Depends(manager_only)):
    try:
        acc.delete_cash_flow_entry(db, entry_id)
    except ValueError as e:
        raise http_error(e)
    log_audit(db, me.id, "cash_flow.delete", "cash_flow", entry_id)
    db.commit()
    return {"ok": True}

@router.get("/manager/cash-flow/export.csv")
def export_cash_flow(month: str | None = None, type: str = "", dateFrom: str | None = None, dateTo: str | None = None,
                     db: Session = Depends(get_db), me: User = Depends(manager_only)):
    flow = cash_flow(month=month, type=type, dateFrom=dateFrom, dateTo=dateTo, db=db, me=me)
    return _csv(cash_flow_csv(flow), "cashflow-report.csv")


# -------------------------
# REPORTS
# -------------------------
@router.get("/manager/reports")
def reports(dateFrom: str | None = None, dateTo: str | None = None, status: str = "", eventType: str = "",
            minAmount: float | None = None, maxAmount: float | None = None, dateField: str = "event_date",
            view: str = "month", db: Session = Depends(get_db), me: User = Depends(back_office)):
    flt = _booking_filter(dateFrom, dateTo, status, eventType, minAmount, maxAmount, dateField)
    try:
        return acc.build_report(db, flt, view)
    except ValueError as e:
        raise http_error(e)

@router.get("/manager/reports/export.csv")
def export_report(dateFrom: str | None = None, dateTo: str | None = None, status: str = "", eventType: str = "",
                  minAmount: float | None = None, maxAmount: float | None = None, dateField: str = "event_date",
                  db: Session = Depends(get_db), me: User = Depends(back_office)):
    flt = _booking_filter(dateFrom, dateTo, status, eventType, minAmount, maxAmount, dateField)
    return _csv(bookings_report_csv(acc.query_bookings(db, flt)), "bookings-report.csv")


# -------------------------
# TRANSACTIONS
# -------------------------
@router.get("/manager/transactions")
def transactions(q: str = "", status: str = "", paymentMethod: str = "", dateFrom: str | None = None,
                 dateTo: str | None = None, mine: bool = False,
                 db: Session = Depends(get_db), me: User = Depends(back_office)):
    rows = acc.list_transactions(db, _transaction_filter(me, q, status, paymentMethod, dateFrom, dateTo, mine))
    return {"summary": acc.summarize_transactions(rows), "items": [acc.transaction_to_dict(t) for t in rows]}

@router.get("/manager/transactions/export.csv")
def export_transactions_csv(q: str = "", status: str = "", paymentMethod: str = "", dateFrom: str | None = None,
                            dateTo: str | None = None, mine: bool = False,
                            db: Session = Depends(get_db), me: User = Depends(back_office)):
    rows = acc.list_transactions(db, _transaction_filter(me, q, status, paymentMethod, dateFrom, dateTo, mine))
    return _csv(transactions_csv(rows), "transactions.csv")

@router.get("/manager/transactions/export.pdf")
def export_transactions_pdf(q: str = "", status: str = "", paymentMethod: str = "", dateFrom: str | None = None,
                            dateTo: str | None = None, mine: bool = False,
                            db: Session = Depends(get_db), me: User = Depends(back_office)):
    rows = acc.list_transactions(db, _transaction_filter(me, q, status, paymentMethod, dateFrom, dateTo, mine))
    return Response(content=render_transactions_pdf_bytes(rows), media_type="application/pdf",
                    headers={"Content-Disposition": 'attachment; filename="transactions.pdf"'})


# -------------------------
# CONSISTENCY
# -------------------------
@router.get("/manager/consistency")
def consistency(db: Session = Depends(get_db), me: User = Depends(manager_only)):
    return acc.consistency_report(db)


# -------------------------
# LIVE FEEDS
# -------------------------
@router.websocket("/manager/feeds/{topic}")
async def live_feed(websocket: WebSocket, topic: str, token: str = ""):
    """Browsers cannot set headers on websockets, so the access token comes as ?token=."""
    if topic not in TOPICS:
        await websocket.close(code=4404)
        return
    try:
        payload = decode_token(token, expected_type=ACCESS)
    except JWTError:
        await websocket.close(code=4401)
        return
    items = await run_in_threadpool(subscriber_snapshot, payload.get("sub"), topic, FEED_ROLES)
    if items is None:
        await websocket.close(code=4403)
        return

    await feeds.connect(websocket, topic)
    try:
        await feeds.send_snapshot(websocket, topic, items)
        while True:
            # clients only listen; reading keeps the disconnect detectable
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("feed subscriber left topic=%s", topic)
    finally:
        feeds.disconnect(websocket, topic)
