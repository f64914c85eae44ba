"""Tests for accounting summaries, reports, cash flow, transactions and consistency checks."""

import csv
import io
import uuid
from datetime import date, datetime, timezone

import pytest

from catering.models.transaction import Transaction
from catering.services import accounting_service as acc
from catering.services.booking_service import complete_booking
from catering.services.errors import ValidationError
from catering.services.export_service import bookings_report_csv, cash_flow_csv, transactions_csv

MARCH = acc.BookingFilter(date_from=date(2025, 3, 1), date_to=date(2025, 3, 31))


def _csv_rows(data: bytes) -> list:
    return list(csv.reader(io.StringIO(data.decode("utf-8-sig"))))


def _transaction(db, **overrides) -> Transaction:
    values = dict(
        id=str(uuid.uuid4()),
        booking_id=str(uuid.uuid4()),
        manager_id="m1",
        customer_name="Jordan Reyes",
        customer_email="jordan@example.com",
        event_type="wedding",
        package_name="Grand Celebration",
        amount=45000,
        downpayment=20000,
        remaining_balance=25000,
        expenses=[{"amount": 3500}],
        total_expenses=3500,
        profit=41500,
        payment_method="cash",
        status="completed",
        event_date=date(2025, 3, 15),
        completed_at=datetime(2025, 3, 16, 12, 0, tzinfo=timezone.utc),
    )
    values.update(overrides)
    t = Transaction(**values)
    db.add(t)
    db.commit()
    return t


@pytest.fixture
def mixed_expense_bookings(make_booking):
    """One booking with itemised expenses and one with a legacy numeric total."""
    return [
        make_booking(status="confirmed", event_date=date(2025, 3, 5), total_price=20000,
                     expenses=[{"amount": 1000}, {"amount": 2500}]),
        make_booking(status="completed", event_date=date(2025, 3, 20), total_price=30000,
                     amount_paid=30000, payment_status="paid", expenses=3000),
    ]


class TestMonthlySummary:
    def test_revenue_and_outstanding(self, db_session, make_booking):
        make_booking(status="confirmed", total_price=50000, discount=5000,
                     amount_paid=20000, payment_status="partial")
        summary = acc.summarize_bookings(acc.query_bookings(db_session, MARCH))
        assert summary["revenue"] == 45000
        assert summary["collected"] == 20000
        assert summary["outstanding"] == 25000

        october = acc.BookingFilter(date_from=date(2025, 10, 1), date_to=date(2025, 10, 31))
        assert acc.summarize_bookings(acc.query_bookings(db_session, october))["revenue"] == 0

    def test_pending_and_cancelled_excluded_from_revenue(self, db_session, make_booking):
        make_booking(status="pending", total_price=10000)
        make_booking(status="cancelled", total_price=10000, cancel_reason="x")
        make_booking(status="completed", total_price=10000, expenses=[{"amount": 4000}])
        summary = acc.summarize_bookings(acc.query_bookings(db_session, MARCH))
        assert summary["count"] == 3
        assert summary["revenueBookings"] == 1
        assert summary["revenue"] == 10000
        assert summary["profit"] == summary["revenue"] - summary["expenses"] == 6000

    def test_parse_month(self):
        assert acc.parse_month("2025-03") == (2025, 3)
        assert acc.parse_month("", today=date(2025, 7, 9)) == (2025, 7)
        with pytest.raises(ValidationError):
            acc.parse_month("2025-13")
        with pytest.raises(ValidationError):
            acc.parse_month("March")


class TestExpensesAgreeEverywhere:
    def test_every_screen_reports_6500(self, db_session, mixed_expense_bookings):
        assert acc.summarize_bookings(acc.query_bookings(db_session, MARCH))["expenses"] == 6500
        assert acc.build_report(db_session, MARCH)["summary"]["expenses"] == 6500
        assert acc.cash_flow(db_session, date(2025, 3, 1), date(2025, 3, 31))["totals"]["expense"] == 6500
        assert acc.accounting_overview(db_session, 2025, 3)["summary"]["expenses"] == 6500

        rows = _csv_rows(bookings_report_csv(acc.query_bookings(db_session, MARCH)))
        assert ["Total Expenses", "6500.00"] in rows

    def test_report_rows_profit(self, db_session, mixed_expense_bookings):
        report = acc.build_report(db_session, MARCH)
        for row in report["rows"]:
            assert row["profit"] == row["revenue"] - row["expenses"]
        assert sum(r["profit"] for r in report["profitability"]) == report["summary"]["profit"]


class TestReport:
    def test_weekly_buckets_start_monday(self, db_session, make_booking):
        make_booking(status="confirmed", event_date=date(2025, 3, 12), total_price=1000)
        make_booking(status="confirmed", event_date=date(2025, 3, 16), total_price=2000)
        make_booking(status="confirmed", event_date=date(2025, 3, 17), total_price=4000)
        series = acc.build_report(db_session, MARCH, view="week")["profitability"]
        assert [r["key"] for r in series] == ["2025-03-10", "2025-03-17"]
        assert series[0]["revenue"] == 3000
        assert series[0]["bookings"] == 2

    def test_bad_view(self, db_session):
        with pytest.raises(ValidationError):
            acc.build_report(db_session, MARCH, view="year")

    def test_event_types_and_top_customers(self, db_session, make_booking):
        make_booking(status="confirmed", event_type="wedding", total_price=5000, customer_email="a@example.com")
        make_booking(status="completed", event_type="wedding", total_price=3000, customer_email="a@example.com")
        make_booking(status="confirmed", event_type="birthday", total_price=1000, customer_email="b@example.com")
        report = acc.build_report(db_session, MARCH)
        assert report["eventTypes"][0]["type"] == "wedding"
        assert report["eventTypes"][0]["count"] == 2
        assert report["topCustomers"][0]["email"] == "a@example.com"
        assert report["topCustomers"][0]["revenue"] == 8000

    def test_budget_vs_actual(self, db_session, make_booking):
        make_booking(status="confirmed", budget=1000, expenses=[{"amount": 1200}])
        make_booking(status="confirmed", budget=1000, expenses=[{"amount": 900}])
        make_booking(status="confirmed", budget=1000, expenses=[{"amount": 100}])
        budget = acc.build_report(db_session, MARCH)["budget"]
        assert budget["overBudget"] == 1
        assert budget["nearLimit"] == 1
        assert budget["onTrack"] == 1

    def test_amount_filter(self, db_session, make_booking):
        make_booking(status="confirmed", total_price=500)
        make_booking(status="confirmed", total_price=5000)
        flt = acc.BookingFilter(date_from=date(2025, 3, 1), date_to=date(2025, 3, 31), min_amount=1000)
        assert acc.build_report(db_session, flt)["summary"]["count"] == 1


class TestCashFlow:
    def test_booking_and_manual_rows(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed", total_price=10000, discount=1000, expenses=[{"amount": 2000}])
        acc.create_cash_flow_entry(db_session, manager.id, "expense", 500, "Van fuel", "transport", date(2025, 3, 20))
        flow = acc.cash_flow(db_session, date(2025, 3, 1), date(2025, 3, 31))
        ids = {e["id"] for e in flow["entries"]}
        assert f"income-{b.id}" in ids
        assert f"expense-{b.id}" in ids
        assert flow["totals"] == {"income": 9000, "expense": 2500, "net": 6500}
        assert flow["fromBookings"] == 2
        assert flow["manual"] == 1
        assert flow["entries"][0]["date"] == "2025-03-20"

    def test_type_filter(self, db_session, make_booking):
        make_booking(status="confirmed", total_price=10000, expenses=[{"amount": 2000}])
        flow = acc.cash_flow(db_session, date(2025, 3, 1), date(2025, 3, 31), type_="income")
        assert {e["type"] for e in flow["entries"]} == {"income"}
        assert flow["totals"]["expense"] == 0

    def test_entry_validation(self, db_session, manager):
        with pytest.raises(ValidationError):
            acc.create_cash_flow_entry(db_session, manager.id, "gift", 10, "x", "other", date(2025, 3, 1))
        with pytest.raises(ValidationError):
            acc.create_cash_flow_entry(db_session, manager.id, "income", 0, "x", "other", date(2025, 3, 1))

    def test_export_totals_match(self, db_session, make_booking):
        make_booking(status="confirmed", total_price=10000, expenses=[{"amount": 2000}])
        flow = acc.cash_flow(db_session, date(2025, 3, 1), date(2025, 3, 31))
        rows = _csv_rows(cash_flow_csv(flow))
        assert ["Net Cashflow", "", "", "", "", "8000.00"] in rows


class TestTransactions:
    def test_summary_profit_is_amount_minus_expenses(self, db_session):
        _transaction(db_session)
        _transaction(db_session, amount=10000, total_expenses=2500, profit=7500, expenses=[{"amount": 2500}])
        summary = acc.summarize_transactions(acc.list_transactions(db_session, acc.TransactionFilter()))
        assert summary["count"] == 2
        assert summary["amount"] == 55000
        assert summary["expenses"] == 6000
        assert summary["profit"] == 49000

    def test_filters(self, db_session):
        _transaction(db_session, payment_method="card", customer_name="Avery Stone")
        _transaction(db_session, completed_at=datetime(2025, 5, 2, 9, 0, tzinfo=timezone.utc))
        assert len(acc.list_transactions(db_session, acc.TransactionFilter(payment_method="card"))) == 1
        assert len(acc.list_transactions(db_session, acc.TransactionFilter(q="avery"))) == 1
        flt = acc.TransactionFilter(date_from=date(2025, 5, 1), date_to=date(2025, 5, 31))
        assert len(acc.list_transactions(db_session, flt)) == 1

    def test_csv_totals(self, db_session):
        _transaction(db_session)
        rows = _csv_rows(transactions_csv(acc.list_transactions(db_session, acc.TransactionFilter())))
        assert ["Total Profit", "41500.00"] in rows


class TestConsistency:
    def test_clean_data_is_ok(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed", total_price=1000, expenses=[{"amount": 100}])
        complete_booking(db_session, b, manager, 1000, "cash")
        report = acc.consistency_report(db_session)
        assert report["ok"] is True
        assert report["checked"] == {"transactions": 1, "bookings": 1}

    def test_each_kind_reported(self, db_session, make_booking):
        _transaction(db_session, expenses=[{"amount": 50}], total_expenses=100, profit=44900)
        _transaction(db_session, profit=1)
        make_booking(total_price=1000, amount_paid=2000)
        make_booking(status="cancelled", cancel_reason="")
        make_booking(status="completed")
        _transaction(db_session, downpayment=20000, remaining_balance=20000)
        kinds = {i["kind"] for i in acc.consistency_report(db_session)["issues"]}
        assert kinds == {
            "transaction_expenses_mismatch",
            "transaction_profit_mismatch",
            "booking_overpaid",
            "cancelled_without_reason",
            "completed_without_transaction",
            "transaction_payment_mismatch",
        }

    def test_paid_amount_differs_from_transaction(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed", total_price=50000, downpayment=20000, amount_paid=20000)
        complete_booking(db_session, b, manager, 30000, "cash")
        # a later write bypassing the service rules
        b.amount_paid = 0
        b.payment_status = "pending"
        db_session.commit()
        report = acc.consistency_report(db_session)
        assert report["ok"] is False
        issue = report["issues"][0]
        assert issue["kind"] == "transaction_payment_mismatch"
        assert issue["entityId"] == b.id

    def test_refund_after_completion_is_consistent(self, db_session, make_booking, manager):
        b = make_booking(status="confirmed", total_price=10000)
        complete_booking(db_session, b, manager, 10000, "cash")
        b.payment_status = "refunded"
        db_session.commit()
        assert acc.consistency_report(db_session)["ok"] is True
