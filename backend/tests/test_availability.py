"""
时段冲突规则
"""
from datetime import date, time

from app.services.availability import (
    Slot, find_conflict, is_slot_available, normalize_interval,
    occupied_dates, times_overlap, window_changed,
)

DAY = date(2030, 1, 15)


def _slot(start: str, end: str, day: date = DAY, check_out: date = None) -> Slot:
    return Slot(day, time.fromisoformat(start), time.fromisoformat(end), check_out)


class TestNormalizeInterval:
    def test_same_day_interval(self):
        assert normalize_interval(time(13, 0), time(15, 0)) == (780, 900)

    def test_end_before_start_crosses_midnight(self):
        assert normalize_interval(time(22, 0), time(2, 0)) == (1320, 1560)

    def test_early_morning_belongs_to_previous_service_day(self):
        assert normalize_interval(time(1, 0), time(3, 0)) == (1500, 1620)

    def test_interval_spanning_day_start_is_not_shifted(self):
        assert normalize_interval(time(8, 0), time(10, 0)) == (480, 600)


class TestTimesOverlap:
    def test_partial_overlap(self):
        assert times_overlap(time(14, 0), time(16, 0), time(13, 0), time(15, 0))

    def test_touching_endpoints_do_not_overlap(self):
        assert not times_overlap(time(15, 0), time(17, 0), time(13, 0), time(15, 0))

    def test_overnight_overlaps_early_morning(self):
        assert times_overlap(time(22, 0), time(2, 0), time(1, 0), time(3, 0))

    def test_overnight_does_not_overlap_next_morning_shift(self):
        assert not times_overlap(time(22, 0), time(2, 0), time(10, 0), time(12, 0))

    def test_contained_interval(self):
        assert times_overlap(time(10, 0), time(20, 0), time(12, 0), time(13, 0))


class TestFindConflict:
    def test_rejects_overlapping_slot(self):
        existing = [_slot("13:00", "15:00")]
        assert find_conflict(_slot("14:00", "16:00"), existing) is existing[0]

    def test_accepts_adjacent_slot(self):
        existing = [_slot("13:00", "15:00")]
        assert find_conflict(_slot("15:00", "17:00"), existing) is None
        assert is_slot_available(_slot("15:00", "17:00"), existing)

    def test_other_day_is_ignored(self):
        existing = [_slot("13:00", "15:00", day=date(2030, 1, 16))]
        assert is_slot_available(_slot("13:00", "15:00"), existing)

    def test_stay_blocks_hourly_booking_inside_range(self):
        stay = _slot("14:00", "12:00", day=date(2030, 1, 14), check_out=date(2030, 1, 16))
        assert find_conflict(_slot("10:00", "11:00"), [stay]) is stay

    def test_stay_check_out_day_is_free(self):
        stay = _slot("14:00", "12:00", day=date(2030, 1, 13), check_out=DAY)
        assert is_slot_available(_slot("10:00", "11:00"), [stay])

    def test_two_stays_overlap_by_dates(self):
        stay = _slot("14:00", "12:00", day=date(2030, 1, 10), check_out=date(2030, 1, 20))
        new = _slot("14:00", "12:00", day=date(2030, 1, 19), check_out=date(2030, 1, 22))
        assert find_conflict(new, [stay]) is stay

    def test_returns_first_conflict(self):
        first = _slot("09:00", "12:00")
        second = _slot("11:00", "14:00")
        assert find_conflict(_slot("11:30", "12:30"), [first, second]) is first


class TestOccupiedDates:
    def test_hourly_booking_occupies_one_day(self):
        assert occupied_dates(_slot("13:00", "15:00")) == (DAY, date(2030, 1, 16))

    def test_stay_occupies_until_check_out(self):
        stay = _slot("14:00", "12:00", check_out=date(2030, 1, 18))
        assert occupied_dates(stay) == (DAY, date(2030, 1, 18))


class TestWindowChanged:
    def test_same_window(self):
        old = _slot("13:00", "15:00")
        assert not window_changed(old, 1, _slot("13:00", "15:00"), 1)

    def test_seconds_are_ignored(self):
        old = Slot(DAY, time(13, 0, 0), time(15, 0, 0))
        assert not window_changed(old, 1, _slot("13:00", "15:00"), 1)

    def test_room_change(self):
        old = _slot("13:00", "15:00")
        assert window_changed(old, 1, _slot("13:00", "15:00"), 2)

    def test_time_change(self):
        old = _slot("13:00", "15:00")
        assert window_changed(old, 1, _slot("13:00", "16:00"), 1)
