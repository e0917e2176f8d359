"""
预订申请处理

预订申请有自己的状态：pending → confirmed → check-in → check-out，pending/confirmed 可取消。
确认或入住时生成正式预订。检查房间、写入预订、更新申请状态在同一个事务里完成，
任何一步失败都回滚，申请保持原状态并把原因返回给操作员。
"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.config import business_now, business_today
from app.core.events import BOOKING_CHANGED, BOOKING_REQUEST_CHANGED, BookingEvent, event_bus
from app.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from app.models.booking import Booking
from app.models.booking_request import BookingRequest
from app.models.customer import Customer
from app.models.room import Room, ROOM_STATUS_ACTIVE
from app.models.room_variant import RoomVariant
from app.services import availability, lifecycle, pricing
from app.services.bookings import ensure_slot_available, generate_bid, get_room, get_variant

logger = logging.getLogger(__name__)

REQUEST_PENDING = "pending"
REQUEST_CONFIRMED = "confirmed"
REQUEST_CHECK_IN = "check-in"
REQUEST_CHECK_OUT = "check-out"
REQUEST_CANCELLED = "cancelled"

REQUEST_STATUSES = (REQUEST_PENDING, REQUEST_CONFIRMED, REQUEST_CHECK_IN, REQUEST_CHECK_OUT, REQUEST_CANCELLED)

REQUEST_TRANSITIONS = {
    REQUEST_PENDING: {REQUEST_CONFIRMED, REQUEST_CHECK_IN, REQUEST_CANCELLED},
    REQUEST_CONFIRMED: {REQUEST_CHECK_IN, REQUEST_CANCELLED},
    REQUEST_CHECK_IN: {REQUEST_CHECK_OUT},
    REQUEST_CHECK_OUT: set(),
    REQUEST_CANCELLED: set(),
}

# 仍占用房间的申请状态
OCCUPYING_STATUSES = (REQUEST_PENDING, REQUEST_CONFIRMED, REQUEST_CHECK_IN)


def get_request(db: Session, request_id: int) -> BookingRequest:
    request = db.query(BookingRequest).filter(BookingRequest.id == request_id).first()
    if not request:
        raise NotFoundError("预订申请不存在")
    return request


def create_request(db: Session, store_id: int, data) -> BookingRequest:
    """客户提交预订申请，总价 = 每小时房费 × 时长"""
    duration = pricing.calculate_duration(data.start_time, data.end_time)
    if duration <= 0:
        raise ValidationError("结束时间必须晚于开始时间")
    if data.booking_date < business_today():
        raise ValidationError("预订日期不能早于今天")

    room_name = ""
    if data.room_id:
        room = db.query(Room).filter(Room.id == data.room_id).first()
        if not room or room.store_id != store_id:
            raise ValidationError("房间不属于该门店")
        room_name = room.name

    validate_variant(db, store_id, data.variant_id, data.room_id)

    request = BookingRequest(
        store_id=store_id,
        customer_name=data.customer_name.strip(),
        customer_phone=data.customer_phone.strip(),
        category=data.category,
        room_id=data.room_id,
        room_name=room_name,
        variant_id=data.variant_id,
        booking_date=data.booking_date,
        start_time=data.start_time,
        end_time=data.end_time,
        duration=duration,
        room_price=data.room_price,
        total_price=pricing.room_subtotal(data.room_price, duration),
        payment_method=data.payment_method,
        payment_proof_url=data.payment_proof_url,
        status=REQUEST_PENDING,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info("门店 %s 收到预订申请 %s", store_id, request.id)
    return request


def validate_variant(db: Session, store_id: int, variant_id: Optional[int], room_id: Optional[int]) -> None:
    """申请可以只选方案不选房间，此时方案至少要属于该门店"""
    if not variant_id:
        return
    if room_id:
        get_variant(db, variant_id, room_id)
        return
    variant = db.query(RoomVariant).filter(RoomVariant.id == variant_id).first()
    if not variant or variant.store_id != store_id:
        raise ValidationError("价格方案不属于该门店")


def request_slot(request: BookingRequest) -> availability.Slot:
    return availability.Slot(request.booking_date, request.start_time, request.end_time)


def available_rooms(db: Session, request: BookingRequest) -> List[Room]:
    """同分类下该时段空闲的房间：排除有未取消预订或其他已分配房间的申请占用的房间"""
    query = db.query(Room).filter(Room.store_id == request.store_id, Room.status == ROOM_STATUS_ACTIVE)
    if request.category:
        query = query.filter(Room.category == request.category)
    rooms = query.order_by(Room.name).all()

    slot = request_slot(request)
    other_requests = db.query(BookingRequest).filter(
        BookingRequest.store_id == request.store_id,
        BookingRequest.booking_date == request.booking_date,
        BookingRequest.status.in_(OCCUPYING_STATUSES),
        BookingRequest.room_id.isnot(None),
        BookingRequest.id != request.id
    ).all()

    result = []
    for room in rooms:
        bookings = db.query(Booking).filter(
            Booking.room_id == room.id,
            Booking.status != lifecycle.STATUS_CANCELLED,
            Booking.date <= request.booking_date
        ).all()
        occupants = [b for b in bookings if availability.occupied_dates(b)[1] > request.booking_date]
        # 已生成预订的申请不重复计算
        occupants += [
            availability.Slot(r.booking_date, r.start_time, r.end_time)
            for r in other_requests if r.room_id == room.id and r.booking is None
        ]
        if availability.find_conflict(slot, occupants) is None:
            result.append(room)
    return result


def assign_room(db: Session, request_id: int, room_id: int) -> BookingRequest:
    request = get_request(db, request_id)
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room or room.store_id != request.store_id:
        raise ValidationError("房间不属于该门店")
    if request.booking is not None:
        raise ValidationError("该申请已生成预订，不能更换房间")
    request.room_id = room.id
    request.room_name = room.name
    db.commit()
    db.refresh(request)
    return request


def find_or_create_customer(db: Session, request: BookingRequest, actor) -> Customer:
    """事务内查找或创建客户（不提交）"""
    customer = db.query(Customer).filter(
        Customer.store_id == request.store_id,
        Customer.phone == request.customer_phone
    ).first()
    if not customer:
        customer = Customer(
            store_id=request.store_id,
            name=request.customer_name,
            phone=request.customer_phone,
            created_by=actor.id,
        )
        db.add(customer)
        db.flush()
    return customer


def variant_for(db: Session, request: BookingRequest, room: Room) -> RoomVariant:
    """
    生成预订用的价格方案
    申请选的方案属于分配的房间时沿用，否则取该房间当天可选的按小时方案
    """
    if request.variant_id:
        variant = db.query(RoomVariant).filter(RoomVariant.id == request.variant_id).first()
        if variant and variant.room_id == room.id:
            return variant

    hourly = db.query(RoomVariant).filter(
        RoomVariant.room_id == room.id,
        RoomVariant.is_active.is_(True),
        RoomVariant.booking_duration_type == pricing.DURATION_HOURS
    ).order_by(RoomVariant.id).all()
    for variant in hourly:
        if pricing.variant_visible_on(variant.visibility_type, variant.visible_days, request.booking_date):
            return variant
    raise ValidationError(f"房间 {room.name} 没有可用的按小时价格方案")


def materialize(db: Session, request: BookingRequest, status: str, actor) -> Booking:
    """根据申请生成正式预订（不提交）"""
    if not request.room_id:
        raise ValidationError("请先为申请分配房间")
    if request.booking is not None:
        raise ValidationError("该申请已生成预订")

    room = get_room(db, request.room_id, lock=True)
    if room.status != ROOM_STATUS_ACTIVE:
        raise ValidationError("该房间暂不可用，请选择其他房间")
    ensure_slot_available(db, room.id, request_slot(request))

    variant = variant_for(db, request, room)
    breakdown = pricing.quote_booking(
        variant_price=variant.price,
        duration=request.duration,
        duration_type=variant.booking_duration_type,
        booking_type="walk_in",
    )
    # 客户提交的金额视为已付金额，应付总额按方案重新计算
    price, _ = pricing.autofill_payments(breakdown.grand_total, request.total_price, None, False)

    customer = find_or_create_customer(db, request, actor)
    request.customer_id = customer.id
    now = business_now()
    booking = Booking(
        store_id=request.store_id,
        booking_type="walk_in",
        customer_id=customer.id,
        customer_name=request.customer_name,
        phone=request.customer_phone,
        reference_no="",
        room_id=room.id,
        variant_id=variant.id,
        date=request.booking_date,
        start_time=request.start_time,
        end_time=request.end_time,
        duration=request.duration,
        status=status,
        price=price,
        payment_method=request.payment_method,
        payment_status=pricing.payment_status(breakdown.grand_total, price),
        payment_proof_url=request.payment_proof_url,
        booking_request_id=request.id,
        created_by=actor.id,
    )
    lifecycle.stamp_confirmed(booking, actor, now)
    if status == lifecycle.STATUS_CHECKED_IN:
        booking.checked_in_by = actor.id
        booking.checked_in_at = now
    db.add(booking)
    db.flush()
    booking.bid = generate_bid(booking)
    request.booking = booking
    return booking


def ensure_request_transition(current: str, target: str) -> None:
    if target not in REQUEST_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(current, target)


def change_status(db: Session, request_id: int, new_status: str, actor,
                  admin_notes: Optional[str] = None, today: Optional[date] = None) -> BookingRequest:
    """变更申请状态，必要时生成或推进对应的预订"""
    request = get_request(db, request_id)
    previous = request.status
    ensure_request_transition(previous, new_status)

    today = today or business_today()
    if new_status in (REQUEST_CONFIRMED, REQUEST_CHECK_IN) and previous != REQUEST_CHECK_IN:
        if request.booking_date < today:
            raise ValidationError(f"预订日期 {request.booking_date.isoformat()} 已过，无法处理")

    try:
        booking = request.booking
        if new_status == REQUEST_CONFIRMED:
            booking = materialize(db, request, lifecycle.STATUS_RESERVED, actor)
        elif new_status == REQUEST_CHECK_IN:
            if booking is None:
                booking = materialize(db, request, lifecycle.STATUS_CHECKED_IN, actor)
            else:
                lifecycle.apply_transition(db, booking, lifecycle.STATUS_CHECKED_IN, actor, today=today)
        elif new_status == REQUEST_CHECK_OUT:
            if booking is None:
                raise NotFoundError("未找到该申请对应的预订")
            lifecycle.apply_transition(db, booking, lifecycle.STATUS_CHECKED_OUT, actor, today=today)
        elif new_status == REQUEST_CANCELLED and booking is not None:
            lifecycle.apply_transition(db, booking, lifecycle.STATUS_CANCELLED, actor, today=today)

        request.status = new_status
        request.processed_by = actor.id
        request.processed_at = business_now()
        if admin_notes and admin_notes.strip():
            request.admin_notes = admin_notes.strip()
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("预订申请 %s 状态变更失败: %s → %s", request_id, previous, new_status)
        raise
    db.refresh(request)

    description = f"预订申请 {request.customer_name} - {request.room_name}: {previous} → {new_status}"
    event_bus.publish(BookingEvent(
        topic=BOOKING_REQUEST_CHANGED,
        action={REQUEST_CONFIRMED: "confirm", REQUEST_CANCELLED: "cancel"}.get(new_status, new_status),
        entity_type="Booking Request",
        entity_id=request.id,
        store_id=request.store_id,
        description=description,
        user_id=actor.id,
        user_name=actor.display_name,
        user_role=actor.role,
    ))
    if request.booking is not None:
        event_bus.publish(BookingEvent(
            topic=BOOKING_CHANGED,
            action="updated",
            entity_type="Booking",
            entity_id=request.booking.id,
            store_id=request.store_id,
            description=f"预订 {request.booking.bid} 由预订申请同步为 {request.booking.status}",
            user_id=actor.id,
            user_name=actor.display_name,
            user_role=actor.role,
        ))
    return request
