from __future__ import annotations

import csv
import io
from datetime import datetime, timezone
from typing import Iterable

from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfgen import canvas

from catering.core.config import settings
from catering.models.booking import Booking
from catering.models.transaction import Transaction
from catering.services.accounting_service import booking_report_row, summarize_bookings, summarize_transactions
from catering.services.booking_service import amount_due


def money(value: float) -> str:
    return f"{settings.CURRENCY_SYMBOL}{float(value or 0):,.2f}"


def _csv_bytes(rows: list[list]) -> bytes:
    buf = io.StringIO()
    w = csv.writer(buf)
    w.writerows(rows)
    # utf-8-sig so spreadsheet apps pick up the currency symbol
    return buf.getvalue().encode("utf-8-sig")


# -------------------------
# CSV
# -------------------------
def bookings_report_csv(bookings: Iterable[Booking], title: str = "Bookings Report") -> bytes:
    bookings = list(bookings)
    summary = summarize_bookings(bookings)
    rows: list[list] = [
        [title],
        [f"Generated: {datetime.now(timezone.utc).date().isoformat()}"],
        [],
        ["Date", "Customer", "Event Type", "Status", "Payment", "Revenue", "Amount Paid", "Expenses", "Profit"],
    ]
    for b in bookings:
        r = booking_report_row(b)
        rows.append([r["eventDate"], r["customerName"], r["eventType"], r["status"], r["paymentStatus"],
                     f"{r['revenue']:.2f}", f"{r['amountPaid']:.2f}", f"{r['expenses']:.2f}", f"{r['profit']:.2f}"])
    rows += [
        [],
        ["Total Revenue", f"{summary['revenue']:.2f}"],
        ["Total Expenses", f"{summary['expenses']:.2f}"],
        ["Net Profit", f"{summary['profit']:.2f}"],
        ["Collected", f"{summary['collected']:.2f}"],
        ["Outstanding", f"{summary['outstanding']:.2f}"],
    ]
    return _csv_bytes(rows)


def transactions_csv(transactions: Iterable[Transaction]) -> bytes:
    transactions = list(transactions)
    summary = summarize_transactions(transactions)
    rows: list[list] = [["Completed", "Customer", "Email", "Event Type", "Package", "Payment Method",
                         "Amount", "Downpayment", "Remaining", "Expenses", "Profit"]]
    for t in transactions:
        rows.append([
            t.completed_at.date().isoformat() if t.completed_at else "",
            t.customer_name, t.customer_email, t.event_type, t.package_name, t.payment_method,
            f"{t.amount:.2f}", f"{t.downpayment:.2f}", f"{t.remaining_balance:.2f}",
            f"{t.total_expenses:.2f}", f"{t.amount - t.total_expenses:.2f}",
        ])
    rows += [
        [],
        ["Transactions", summary["count"]],
        ["Total Amount", f"{summary['amount']:.2f}"],
        ["Total Expenses", f"{summary['expenses']:.2f}"],
        ["Total Profit", f"{summary['profit']:.2f}"],
    ]
    return _csv_bytes(rows)


def cash_flow_csv(flow: dict) -> bytes:
    rows: list[list] = [["Date", "Type", "Description", "Category", "Source", "Amount"]]
    for e in flow["entries"]:
        rows.append([e["date"], e["type"], e["description"], e["category"], e["source"], f"{e['amount']:.2f}"])
    totals = flow["totals"]
    rows += [
        [],
        ["Total Income", "", "", "", "", f"{totals['income']:.2f}"],
        ["Total Expenses", "", "", "", "", f"{totals['expense']:.2f}"],
        ["Net Cashflow", "", "", "", "", f"{totals['net']:.2f}"],
    ]
    return _csv_bytes(rows)


# -------------------------
# PDF
# -------------------------
def render_invoice_pdf_bytes(b: Booking) -> bytes:
    """A4 invoice for one event. Pure function."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    w, h = A4

    c.setFont("Helvetica-Bold", 18)
    c.drawString(40, h - 60, f"{settings.BUSINESS_NAME} Invoice")
    c.setFont("Helvetica", 11)
    c.drawString(40, h - 80, f"Booking: {b.id}")
    c.drawString(40, h - 96, f"Status: {b.status} / {b.payment_status}")

    c.setFont("Helvetica-Bold", 12)
    c.drawString(40, h - 130, "Customer")
    c.setFont("Helvetica", 11)
    c.drawString(40, h - 148, b.customer_name or "(Not provided)")
    c.drawString(40, h - 164, b.customer_email or "")
    c.drawString(40, h - 180, b.customer_phone or "")

    c.setFont("Helvetica-Bold", 12)
    c.drawString(40, h - 215, "Event")
    c.setFont("Helvetica", 11)
    c.drawString(40, h - 233, f"Type:   {b.event_type}")
    c.drawString(40, h - 249, f"Date:   {b.event_date.isoformat() if b.event_date else ''} {b.event_time or ''}")
    c.drawString(40, h - 265, f"Guests: {b.guest_count}")
    c.drawString(40, h - 281, f"Venue:  {(b.location or {}).get('address', '')}")
    c.drawString(40, h - 297, f"Package: {b.package_name or 'N/A'}")

    c.setFont("Helvetica-Bold", 12)
    c.drawString(40, h - 335, "Charges")
    c.setFont("Helvetica", 11)
    y = h - 353
    lines = [
        ("Base price", b.base_price),
        ("Food add-ons", b.food_addons_price),
        ("Service add-ons", b.services_addons_price),
        ("Discount", -float(b.discount or 0)),
    ]
    if b.reschedule_fee:
        lines.append(("Reschedule fees", b.reschedule_fee))
    for label, value in lines:
        c.drawString(40, y, label)
        c.drawRightString(w - 40, y, money(value))
        y -= 16
    c.setFont("Helvetica-Bold", 11)
    due = amount_due(b)
    paid = float(b.amount_paid or 0)
    for label, value in (("Total due", due), ("Paid", paid), ("Balance", max(0.0, due - paid))):
        c.drawString(40, y, label)
        c.drawRightString(w - 40, y, money(value))
        y -= 16
    if b.price_notes:
        c.setFont("Helvetica-Oblique", 10)
        c.drawString(40, y - 6, f"Note: {b.price_notes}"[:110])

    c.setFont("Helvetica", 9)
    c.drawString(40, 26, f"Generated: {datetime.now(timezone.utc).isoformat()}")
    c.showPage()
    c.save()
    return buf.getvalue()


def render_transactions_pdf_bytes(transactions: Iterable[Transaction], title: str = "Transactions Report") -> bytes:
    transactions = list(transactions)
    summary = summarize_transactions(transactions)
    buf = io.BytesIO()
    size = landscape(A4)
    c = canvas.Canvas(buf, pagesize=size)
    w, h = size
    cols = [40, 120, 280, 380, 480, 580, 680]
    headers = ["Completed", "Customer", "Event", "Method", "Amount", "Expenses", "Profit"]

    def header(y):
        c.setFont("Helvetica-Bold", 10)
        for x, label in zip(cols, headers):
            c.drawString(x, y, label)
        c.setFont("Helvetica", 9)
        return y - 16

    c.setFont("Helvetica-Bold", 16)
    c.drawString(40, h - 50, f"{settings.BUSINESS_NAME} - {title}")
    y = header(h - 80)
    for t in transactions:
        if y < 80:
            c.showPage()
            y = header(h - 50)
        values = [
            t.completed_at.date().isoformat() if t.completed_at else "",
            (t.customer_name or "")[:28],
            (t.event_type or "")[:18],
            t.payment_method or "",
            money(t.amount),
            money(t.total_expenses),
            money(t.amount - t.total_expenses),
        ]
        for x, v in zip(cols, values):
            c.drawString(x, y, v)
        y -= 14

    c.setFont("Helvetica-Bold", 10)
    y -= 10
    for label, value in (("Transactions", str(summary["count"])), ("Total amount", money(summary["amount"])),
                         ("Total expenses", money(summary["expenses"])), ("Total profit", money(summary["profit"]))):
        c.drawString(40, y, f"{label}: {value}")
        y -= 14
    c.showPage()
    c.save()
    return buf.getvalue()

