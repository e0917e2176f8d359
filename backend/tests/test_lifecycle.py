"""
预订状态流转及其附带操作
"""
import logging
from datetime import date, time
from decimal import Decimal

import pytest

from app.core.events import BOOKING_CHANGED, DEPOSIT_CHANGED, BookingEvent, EventBus, event_bus
from app.core.exceptions import ConcurrencyError, InvalidTransitionError, ValidationError
from app.models import Booking, RoomDailyStatus, RoomDeposit
from app.schemas.deposit import DepositInput
from app.services import lifecycle

from conftest import BOOKING_DAY

CHECK_OUT_DAY = date(2030, 1, 16)


def _booking(db, seed, status="BO", **overrides) -> Booking:
    data = dict(
        store_id=seed["store"].id,
        bid="BK2030011500001",
        booking_type="walk_in",
        customer_name="Budi",
        phone="081234567890",
        room_id=seed["room_a"].id,
        variant_id=seed["hourly"].id,
        date=BOOKING_DAY,
        start_time=time(22, 0),
        end_time=time(2, 0),
        duration=Decimal("4"),
        status=status,
        price=Decimal("200000"),
    )
    data.update(overrides)
    booking = Booking(**data)
    db.add(booking)
    db.commit()
    return booking


@pytest.fixture
def events():
    received = []
    unsubscribe = event_bus.subscribe(BOOKING_CHANGED, received.append)
    yield received
    unsubscribe()


class TestTransitionTable:
    @pytest.mark.parametrize("current, target", [
        ("BO", "CI"), ("BO", "BATAL"), ("CI", "CO"), ("CI", "BATAL"),
    ])
    def test_allowed(self, current, target):
        assert lifecycle.can_transition(current, target)

    @pytest.mark.parametrize("current, target", [
        ("BO", "CO"), ("CO", "CI"), ("CO", "BATAL"), ("BATAL", "BO"), ("BATAL", "CI"), ("CI", "BO"),
    ])
    def test_rejected(self, current, target):
        assert not lifecycle.can_transition(current, target)
        with pytest.raises(InvalidTransitionError):
            lifecycle.ensure_transition(current, target)


class TestTransitionBooking:
    def test_check_in_stamps_actor(self, db, seed, events):
        booking = _booking(db, seed)
        lifecycle.transition_booking(db, booking.id, "CI", seed["staff"])

        db.refresh(booking)
        assert booking.status == "CI"
        assert booking.checked_in_by == seed["staff"].id
        assert booking.checked_in_at is not None
        assert events[-1].action == "check-in"

    def test_check_in_with_deposit(self, db, seed, events):
        booking = _booking(db, seed)
        deposit = DepositInput(deposit_type="identitas", identity_type="KTP")
        lifecycle.transition_booking(db, booking.id, "CI", seed["staff"], deposit=deposit)

        stored = db.query(RoomDeposit).filter(RoomDeposit.booking_id == booking.id).one()
        assert stored.status == "active"
        assert stored.identity_owner_name == "Budi"

    def test_invalid_deposit_keeps_status(self, db, seed, events, caplog):
        booking = _booking(db, seed)
        with caplog.at_level(logging.WARNING, logger="app.services.lifecycle"):
            with pytest.raises(ValidationError):
                lifecycle.transition_booking(
                    db, booking.id, "CI", seed["staff"], deposit=DepositInput(deposit_type="uang")
                )
        records = [r for r in caplog.records if r.name == "app.services.lifecycle"]
        assert [r.levelno for r in records] == [logging.WARNING]
        assert records[0].exc_info is None
        db.refresh(booking)
        assert booking.status == "BO"
        assert events == []

    def test_check_out_marks_actual_day_dirty(self, db, seed, events):
        booking = _booking(db, seed, status="CI")
        lifecycle.transition_booking(db, booking.id, "CO", seed["staff"], today=CHECK_OUT_DAY)

        daily = db.query(RoomDailyStatus).filter(RoomDailyStatus.room_id == seed["room_a"].id).one()
        assert daily.date == CHECK_OUT_DAY
        assert daily.status == "Kotor"

    def test_check_out_returns_deposits_when_asked(self, db, seed, events):
        booking = _booking(db, seed, status="CI")
        db.add(RoomDeposit(store_id=seed["store"].id, room_id=seed["room_a"].id, booking_id=booking.id,
                           deposit_type="uang", amount=Decimal("100000"), status="active"))
        db.commit()
        assert lifecycle.deposit_action(db, booking, "CO") == lifecycle.DEPOSIT_RETURN

        lifecycle.transition_booking(db, booking.id, "CO", seed["staff"], return_room_deposits=True,
                                     today=CHECK_OUT_DAY)
        assert lifecycle.active_deposits(db, seed["room_a"].id) == []

    def test_cancel_from_checked_in(self, db, seed, events):
        booking = _booking(db, seed, status="CI")
        lifecycle.transition_booking(db, booking.id, "BATAL", seed["staff"])
        db.refresh(booking)
        assert booking.status == "BATAL"
        assert booking.cancelled_by == seed["staff"].id
        assert events[-1].action == "cancel"

    def test_terminal_status_is_final(self, db, seed, events, caplog):
        booking = _booking(db, seed, status="CO")
        with caplog.at_level(logging.WARNING, logger="app.services.lifecycle"):
            with pytest.raises(InvalidTransitionError):
                lifecycle.transition_booking(db, booking.id, "CI", seed["staff"])
        assert not [r for r in caplog.records if r.levelno >= logging.ERROR or r.exc_info]

    def test_failed_check_out_side_effect_keeps_status(self, db, seed, events, monkeypatch):
        booking = _booking(db, seed, status="CI")
        mark_room_dirty = lifecycle.mark_room_dirty

        def broken(db, room_id, day, actor):
            mark_room_dirty(db, room_id, day, actor)
            db.flush()
            raise RuntimeError("disk full")

        monkeypatch.setattr(lifecycle, "mark_room_dirty", broken)
        with pytest.raises(RuntimeError):
            lifecycle.transition_booking(db, booking.id, "CO", seed["staff"], today=CHECK_OUT_DAY)

        db.refresh(booking)
        assert booking.status == "CI"
        assert booking.checked_out_by is None
        assert db.query(RoomDailyStatus).count() == 0
        assert events == []

    def test_stale_version_rejected(self, db, seed, events):
        booking = _booking(db, seed)
        with pytest.raises(ConcurrencyError):
            lifecycle.transition_booking(db, booking.id, "CI", seed["staff"], expected_version=booking.version + 1)


class TestDepositAction:
    def test_collect_suggested_when_room_has_no_deposit(self, db, seed):
        booking = _booking(db, seed)
        assert lifecycle.deposit_action(db, booking, "CI") == lifecycle.DEPOSIT_COLLECT

    def test_nothing_to_return(self, db, seed):
        booking = _booking(db, seed, status="CI")
        assert lifecycle.deposit_action(db, booking, "CO") is None


class TestEventBus:
    def _event(self, topic=BOOKING_CHANGED):
        return BookingEvent(topic=topic, action="created", entity_type="Booking", entity_id=1, store_id=1,
                            description="test")

    def test_failing_subscriber_does_not_stop_others(self):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(BOOKING_CHANGED, broken)
        bus.subscribe(BOOKING_CHANGED, received.append)
        bus.publish(self._event())
        assert len(received) == 1

    def test_unsubscribe_and_clear(self):
        bus = EventBus()
        received = []
        unsubscribe = bus.subscribe(BOOKING_CHANGED, received.append)
        bus.subscribe(DEPOSIT_CHANGED, received.append)

        unsubscribe()
        bus.publish(self._event())
        assert received == []

        bus.clear()
        bus.publish(self._event(DEPOSIT_CHANGED))
        assert received == []
