"""Tests for read-boundary normalisation of dates, expenses and package images."""

from datetime import date, datetime, timezone

from catering.services.normalize import expense_items, expense_total, package_images, to_date


class _SdkTimestamp:
    def __init__(self, value: datetime):
        self._value = value

    def toDate(self):
        return self._value


class TestToDate:
    def test_date_passthrough(self):
        assert to_date(date(2025, 3, 15)) == date(2025, 3, 15)

    def test_datetime_truncated(self):
        assert to_date(datetime(2025, 3, 15, 23, 30, tzinfo=timezone.utc)) == date(2025, 3, 15)

    def test_iso_strings(self):
        assert to_date("2025-03-15") == date(2025, 3, 15)
        assert to_date("2025-03-15T10:00:00Z") == date(2025, 3, 15)

    def test_sdk_timestamp_object(self):
        assert to_date(_SdkTimestamp(datetime(2025, 12, 25, 8, 0))) == date(2025, 12, 25)

    def test_garbage_is_none(self):
        assert to_date("not a date") is None
        assert to_date("") is None
        assert to_date(None) is None


class TestExpenseTotal:
    def test_list_and_number_sum_to_the_same_total(self):
        itemised = [{"amount": 1000, "description": "Ice"}, {"amount": 2500, "description": "Linens"}]
        legacy = 3000
        assert expense_total(itemised) + expense_total(legacy) == 6500

    def test_missing_and_bad_amounts(self):
        assert expense_total(None) == 0
        assert expense_total([]) == 0
        assert expense_total([{"amount": None}, {"amount": "12.5"}, {}]) == 12.5

    def test_idempotent_through_items(self):
        for value in (3000, [{"amount": 1000}, {"amount": 2500}], None):
            assert expense_total(expense_items(value)) == expense_total(value)

    def test_legacy_number_becomes_single_item(self):
        items = expense_items(3000)
        assert len(items) == 1
        assert items[0]["id"] == "legacy"
        assert items[0]["amount"] == 3000

    def test_zero_legacy_number_has_no_items(self):
        assert expense_items(0) == []


class TestPackageImages:
    def test_gallery_first_is_main_image(self):
        assert package_images("old.jpg", ["a.jpg", "b.jpg"]) == ("a.jpg", ["a.jpg", "b.jpg"])

    def test_legacy_single_image_seeds_gallery(self):
        assert package_images("old.jpg", []) == ("old.jpg", ["old.jpg"])

    def test_blank_entries_dropped(self):
        assert package_images("", ["", "b.jpg"]) == ("b.jpg", ["b.jpg"])

    def test_nothing(self):
        assert package_images(None, None) == ("", [])
