"""Tests for the month grid and closed days."""

from datetime import date, timedelta

import pytest

from catering.services.calendar_service import (
    add_closed_day,
    build_month_calendar,
    closed_day_info,
    day_detail,
    is_date_closed,
    month_grid,
    remove_closed_day,
)
from catering.services.errors import ConflictError, NotFoundError, ValidationError


def _cell(calendar: dict, iso: str) -> dict:
    return next(c for c in calendar["cells"] if c["date"] == iso)


class TestMonthGrid:
    @pytest.mark.parametrize("year,month", [(2025, 2), (2025, 3), (2025, 12), (2026, 2), (2024, 2)])
    def test_always_42_consecutive_days(self, year, month):
        days = month_grid(year, month)
        assert len(days) == 42
        for a, b in zip(days, days[1:]):
            assert b - a == timedelta(days=1)

    def test_first_of_month_lands_in_weekday_column(self):
        # 1 March 2025 is a Saturday
        days = month_grid(2025, 3)
        assert days[0] == date(2025, 2, 23)
        assert days[6] == date(2025, 3, 1)

    def test_month_starting_on_sunday(self):
        days = month_grid(2026, 2)
        assert days[0] == date(2026, 2, 1)

    def test_bad_month(self):
        with pytest.raises(ValidationError):
            month_grid(2025, 13)

    @pytest.mark.parametrize("year,month", [(1, 1), (9999, 12), (0, 6)])
    def test_year_outside_date_range(self, year, month):
        with pytest.raises(ValidationError):
            month_grid(year, month)


class TestMonthCalendar:
    def test_closed_day_hides_bookings(self, db_session, make_booking, manager):
        add_closed_day(db_session, "2025-12-25", "Holiday", manager.id)
        make_booking(event_date=date(2025, 12, 25), status="confirmed")

        cal = build_month_calendar(db_session, 2025, 12, today=date(2025, 12, 1))
        cell = _cell(cal, "2025-12-25")
        assert cell["isClosed"] is True
        assert cell["closedReason"] == "Holiday"
        assert cell["bookings"] == []
        assert cell["visible"] == []
        assert cell["hasDetail"] is True

        detail = day_detail(db_session, "2025-12-25")
        assert len(detail["bookingsOnClosedDay"]) == 1

    def test_closed_day_rejects_new_bookings(self, db_session, manager):
        add_closed_day(db_session, "2025-12-25", "Holiday", manager.id)
        assert is_date_closed(db_session, "2025-12-25")
        assert not is_date_closed(db_session, "2025-12-26")

    def test_overflow_shows_two_and_counts_the_rest(self, db_session, make_booking):
        for hour in ("09:00", "12:00", "15:00", "18:00"):
            make_booking(event_date=date(2025, 3, 8), event_time=hour, status="confirmed")
        cell = _cell(build_month_calendar(db_session, 2025, 3), "2025-03-08")
        assert len(cell["bookings"]) == 4
        assert [c["eventTime"] for c in cell["visible"]] == ["09:00", "12:00"]
        assert cell["moreCount"] == 2

    def test_status_filter_defaults_to_active(self, db_session, make_booking):
        make_booking(event_date=date(2025, 3, 10), status="cancelled", cancel_reason="x")
        make_booking(event_date=date(2025, 3, 10), status="completed")
        cell = _cell(build_month_calendar(db_session, 2025, 3), "2025-03-10")
        assert cell["bookings"] == []

        cell = _cell(build_month_calendar(db_session, 2025, 3, statuses=["completed"]), "2025-03-10")
        assert len(cell["bookings"]) == 1

    def test_adjacent_month_cells_flagged(self, db_session):
        cal = build_month_calendar(db_session, 2025, 3)
        assert cal["cells"][0]["inMonth"] is False
        assert cal["cells"][6]["inMonth"] is True
        assert cal["weekdays"][0] == "Sun"


class TestClosedDays:
    def test_duplicate_rejected(self, db_session, manager):
        add_closed_day(db_session, "2025-07-04", "Holiday", manager.id)
        with pytest.raises(ConflictError):
            add_closed_day(db_session, date(2025, 7, 4), "Again", manager.id)

    def test_reason_required(self, db_session):
        with pytest.raises(ValidationError):
            add_closed_day(db_session, "2025-07-04", "  ")

    def test_remove(self, db_session, manager):
        cd = add_closed_day(db_session, "2025-07-04", "Holiday", manager.id)
        remove_closed_day(db_session, cd.id)
        assert not is_date_closed(db_session, "2025-07-04")
        with pytest.raises(NotFoundError):
            remove_closed_day(db_session, cd.id)

    def test_closed_day_info(self, db_session, manager):
        add_closed_day(db_session, "2025-07-04", "Holiday", manager.id)
        assert closed_day_info(db_session, "2025-07-04") == {"date": "2025-07-04", "isClosed": True, "reason": "Holiday"}
        assert closed_day_info(db_session, date(2025, 7, 5))["isClosed"] is False
        with pytest.raises(ValidationError):
            closed_day_info(db_session, "not-a-date")
