"""
预订业务编排

读取房间、价格方案等参考数据，调用 availability / pricing / lifecycle 中的纯规则，
再写入预订、商品明细、客户和押金。
"""
import logging
import re
from datetime import time
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import business_now
from app.core.events import BOOKING_CHANGED, BookingEvent, event_bus
from app.core.exceptions import ConcurrencyError, NotFoundError, SlotConflictError, ValidationError
from app.models.booking import Booking
from app.models.booking_product import BookingProduct
from app.models.customer import Customer
from app.models.room import Room, ROOM_STATUS_ACTIVE
from app.models.room_variant import RoomVariant
from app.services import availability, lifecycle, pricing

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^[0-9+\-\s()]{8,20}$")

# 多晚入住的默认入住/退房时间
STAY_CHECK_IN_TIME = time(14, 0)
STAY_CHECK_OUT_TIME = time(12, 0)


def validate_booking_input(data) -> None:
    """
    写库前的输入校验，所有错误一起返回
    到店预订必须有电话和价格方案；OTA 预订电话可空
    """
    errors = []
    name = (data.customer_name or "").strip()
    if not name:
        errors.append("客户姓名不能为空")

    phone = (data.phone or "").strip()
    if data.booking_type == "walk_in":
        if not phone:
            errors.append("电话不能为空")
        elif not PHONE_PATTERN.match(phone):
            errors.append("电话格式不正确（8-20位，只能包含数字和 +-() 空格）")
        if not data.variant_id:
            errors.append("到店预订必须选择价格方案")
    elif phone and not PHONE_PATTERN.match(phone):
        errors.append("电话格式不正确（8-20位，只能包含数字和 +-() 空格）")

    if data.check_out_date is not None:
        if pricing.calculate_nights(data.date, data.check_out_date) <= 0:
            errors.append("退房日期必须晚于入住日期")
    elif data.start_time is None or data.end_time is None:
        errors.append("请填写开始时间和结束时间")
    elif pricing.calculate_duration(data.start_time, data.end_time) <= 0:
        errors.append("结束时间必须晚于开始时间")

    if data.dual_payment and not data.payment_method_2:
        errors.append("分笔支付时必须填写第二笔支付方式")

    if data.discount_type and not data.discount_applies_to:
        errors.append("请选择折扣对象")
    if data.discount_type == "percentage" and data.discount_value > 100:
        errors.append("折扣百分比不能超过100")

    if errors:
        raise ValidationError("；".join(errors))


def slot_of(data) -> availability.Slot:
    """从请求数据得到占用时段；多晚入住使用默认入住/退房时间"""
    if data.check_out_date is not None:
        return availability.Slot(data.date, STAY_CHECK_IN_TIME, STAY_CHECK_OUT_TIME, data.check_out_date)
    return availability.Slot(data.date, data.start_time, data.end_time)


def duration_of(slot: availability.Slot) -> Decimal:
    """时长：按小时预订为小时数，多晚入住为晚数"""
    if slot.check_out_date is not None:
        return Decimal(pricing.calculate_nights(slot.date, slot.check_out_date))
    return pricing.calculate_duration(slot.start_time, slot.end_time)


def get_room(db: Session, room_id: int, lock: bool = False) -> Room:
    query = db.query(Room).filter(Room.id == room_id)
    if lock:
        # 写入前锁住房间行，避免两个会话同时通过冲突检查
        query = query.with_for_update()
    room = query.first()
    if not room:
        raise NotFoundError("房间不存在")
    return room


def ensure_room_bookable(room: Room, store_id: int) -> None:
    if room.store_id != store_id:
        raise ValidationError("房间不属于该门店")
    if room.status != ROOM_STATUS_ACTIVE:
        raise ValidationError("该房间暂不可用，请选择其他房间")


def candidate_bookings(db: Session, room_id: int, slot: availability.Slot,
                       exclude_id: Optional[int] = None) -> List[Booking]:
    """取出可能与 slot 冲突的预订：同一房间、未取消、日期有交集"""
    query = db.query(Booking).filter(
        Booking.room_id == room_id,
        Booking.status != lifecycle.STATUS_CANCELLED
    )
    if exclude_id is not None:
        query = query.filter(Booking.id != exclude_id)

    start, end = availability.occupied_dates(slot)
    query = query.filter(
        Booking.date < end,
        or_(
            Booking.check_out_date > start,
            and_(Booking.check_out_date.is_(None), Booking.date >= start),
        )
    )
    return query.all()


def check_availability(db: Session, room_id: int, slot: availability.Slot,
                       exclude_id: Optional[int] = None) -> Optional[Booking]:
    """返回冲突的预订，没有冲突返回 None"""
    return availability.find_conflict(slot, candidate_bookings(db, room_id, slot, exclude_id))


def ensure_slot_available(db: Session, room_id: int, slot: availability.Slot,
                          exclude_id: Optional[int] = None) -> None:
    conflict = check_availability(db, room_id, slot, exclude_id)
    if conflict is not None:
        raise SlotConflictError("房间在该时间段已被预订", conflict_id=conflict.id)


def get_variant(db: Session, variant_id: Optional[int], room_id: int) -> Optional[RoomVariant]:
    if not variant_id:
        return None
    variant = db.query(RoomVariant).filter(RoomVariant.id == variant_id).first()
    if not variant or variant.room_id != room_id:
        raise ValidationError("价格方案不属于该房间")
    return variant


def quote(data, variant: Optional[RoomVariant], duration: Decimal) -> pricing.PriceBreakdown:
    return pricing.quote_booking(
        variant_price=variant.price if variant else None,
        duration=duration,
        duration_type=variant.booking_duration_type if variant else None,
        products=[(p.price, p.quantity) for p in data.products],
        discount_type=data.discount_type,
        discount_value=data.discount_value,
        discount_applies_to=data.discount_applies_to,
        booking_type=data.booking_type,
        manual_price=data.price,
    )


def quote_for_booking(booking: Booking) -> pricing.PriceBreakdown:
    """按已保存的预订重新计算金额，排班表、详情、导出都用这个结果"""
    variant = booking.variant
    return pricing.quote_booking(
        variant_price=variant.price if variant else None,
        duration=booking.duration,
        duration_type=variant.booking_duration_type if variant else None,
        products=[(p.product_price, p.quantity) for p in booking.products],
        discount_type=booking.discount_type,
        discount_value=booking.discount_value,
        discount_applies_to=booking.discount_applies_to,
        booking_type=booking.booking_type,
        manual_price=booking.price,
    )


def settle_payments(data, breakdown: pricing.PriceBreakdown) -> Tuple[Decimal, Optional[Decimal], str]:
    """补全付款金额并计算付款状态"""
    price, price_2 = pricing.autofill_payments(
        breakdown.grand_total, data.price, data.price_2, data.dual_payment, data.booking_type
    )
    if data.dual_payment and not price_2:
        raise ValidationError("第二笔金额不能为0")
    price = price if price is not None else pricing.ZERO
    status = pricing.payment_status(breakdown.grand_total, price, price_2, data.dual_payment)
    return price, price_2, status


def ensure_customer(db: Session, store_id: int, name: str, phone: Optional[str], actor) -> Optional[Customer]:
    """
    按电话查找客户，不存在则自动创建（单独提交）
    并发插入触发唯一约束时视为已存在，重新查询即可
    """
    phone = (phone or "").strip()
    if not phone:
        return None
    customer = db.query(Customer).filter(Customer.store_id == store_id, Customer.phone == phone).first()
    if customer:
        return customer

    customer = Customer(store_id=store_id, name=name.strip(), phone=phone, created_by=actor.id)
    db.add(customer)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("客户 %s 已由其他会话创建", phone)
        customer = db.query(Customer).filter(Customer.store_id == store_id, Customer.phone == phone).first()
    return customer


def generate_bid(booking: Booking) -> str:
    """预订编号：BK + 日期 + 流水号"""
    return f"BK{booking.date.strftime('%Y%m%d')}{booking.id:05d}"


def replace_products(booking: Booking, items) -> None:
    """商品明细整体替换：先删后插"""
    booking.products = [
        BookingProduct(
            product_id=item.product_id,
            product_name=item.name,
            product_price=item.price,
            quantity=item.quantity,
            subtotal=pricing.products_subtotal([(item.price, item.quantity)]),
        )
        for item in items
    ]


def apply_fields(booking: Booking, data, slot: availability.Slot, duration: Decimal,
                 price: Decimal, price_2: Optional[Decimal], payment_status: str) -> None:
    booking.booking_type = data.booking_type
    booking.customer_name = data.customer_name.strip()
    booking.phone = (data.phone or "").strip()
    booking.reference_no = data.reference_no or ""
    booking.reference_no_2 = data.reference_no_2
    booking.room_id = data.room_id
    booking.variant_id = data.variant_id
    booking.date = slot.date
    booking.start_time = slot.start_time
    booking.end_time = slot.end_time
    booking.check_out_date = slot.check_out_date
    booking.duration = duration
    booking.price = price
    booking.payment_method = data.payment_method
    booking.dual_payment = data.dual_payment
    booking.price_2 = price_2
    booking.payment_method_2 = data.payment_method_2 if data.dual_payment else None
    booking.payment_status = payment_status
    booking.payment_proof_url = data.payment_proof_url
    booking.discount_type = data.discount_type
    booking.discount_value = data.discount_value if data.discount_type else 0
    booking.discount_applies_to = data.discount_applies_to if data.discount_type else None
    booking.note = data.note


def publish(booking: Booking, action: str, description: str, actor) -> None:
    event_bus.publish(BookingEvent(
        topic=BOOKING_CHANGED,
        action=action,
        entity_type="Booking",
        entity_id=booking.id,
        store_id=booking.store_id,
        description=description,
        user_id=actor.id,
        user_name=actor.display_name,
        user_role=actor.role,
    ))


def create_booking(db: Session, data, actor) -> Tuple[Booking, List[str]]:
    """
    创建预订
    顺序：校验 -> 房间可用 -> 冲突预检 -> 客户 -> 锁房间再次检查并写入 -> 押金（不阻塞）
    返回 (预订, 提示信息)
    """
    validate_booking_input(data)
    slot = slot_of(data)

    room = get_room(db, data.room_id)
    ensure_room_bookable(room, data.store_id)
    ensure_slot_available(db, room.id, slot)

    customer = ensure_customer(db, data.store_id, data.customer_name, data.phone, actor)

    now = business_now()
    try:
        room = get_room(db, data.room_id, lock=True)
        ensure_room_bookable(room, data.store_id)
        ensure_slot_available(db, room.id, slot)

        variant = get_variant(db, data.variant_id, room.id)
        duration = duration_of(slot)
        breakdown = quote(data, variant, duration)
        price, price_2, payment_status = settle_payments(data, breakdown)

        booking = Booking(store_id=data.store_id, status=data.status, created_by=actor.id)
        apply_fields(booking, data, slot, duration, price, price_2, payment_status)
        booking.customer_id = customer.id if customer else None
        lifecycle.stamp_confirmed(booking, actor, now)
        if data.status == lifecycle.STATUS_CHECKED_IN:
            booking.checked_in_by = actor.id
            booking.checked_in_at = now
        replace_products(booking, data.products)

        db.add(booking)
        db.flush()
        booking.bid = generate_bid(booking)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(booking)

    warnings = []
    if data.deposit is not None and booking.status == lifecycle.STATUS_CHECKED_IN:
        # 押金保存失败不回滚已创建的预订
        try:
            db.add(lifecycle.new_deposit(booking, data.deposit, actor))
            db.commit()
        except Exception as e:
            db.rollback()
            logger.exception("预订 %s 押金保存失败", booking.bid)
            warnings.append(f"预订已创建，但押金保存失败: {e}")

    publish(booking, "created", f"创建预订 {booking.bid}: {booking.customer_name} - {room.name} {booking.date.isoformat()}", actor)
    return booking, warnings


def describe_changes(booking: Booking, data, slot: availability.Slot) -> List[str]:
    changes = []
    if booking.room_id != data.room_id:
        changes.append(f"房间 {booking.room_id}→{data.room_id}")
    if availability.window_changed(booking, booking.room_id, slot, booking.room_id):
        changes.append("时段变更")
    if booking.status != data.status:
        changes.append(f"状态 {booking.status}→{data.status}")
    if bool(booking.dual_payment) != data.dual_payment:
        changes.append(f"分笔 {'ON' if booking.dual_payment else 'OFF'}→{'ON' if data.dual_payment else 'OFF'}")
    return changes


def update_booking(db: Session, booking_id: int, data, actor) -> Booking:
    """
    编辑预订
    只有房间、日期、时段变化时才检查冲突；状态变化走状态机；商品明细整体替换
    """
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFoundError("预订不存在")
    if data.version is not None and data.version != booking.version:
        raise ConcurrencyError()

    validate_booking_input(data)
    slot = slot_of(data)
    changes = describe_changes(booking, data, slot)

    try:
        room = get_room(db, data.room_id, lock=True)
        if availability.window_changed(booking, booking.room_id, slot, data.room_id):
            ensure_room_bookable(room, booking.store_id)
            ensure_slot_available(db, room.id, slot, exclude_id=booking.id)

        variant = get_variant(db, data.variant_id, room.id)
        duration = duration_of(slot)
        breakdown = quote(data, variant, duration)
        price, price_2, payment_status = settle_payments(data, breakdown)

        apply_fields(booking, data, slot, duration, price, price_2, payment_status)
        replace_products(booking, data.products)

        if data.status != booking.status:
            lifecycle.apply_transition(
                db, booking, data.status, actor,
                deposit=data.deposit, return_room_deposits=data.return_deposits
            )
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConcurrencyError()
    except Exception:
        db.rollback()
        raise
    db.refresh(booking)

    description = f"编辑预订 {booking.bid}: {booking.customer_name}"
    if changes:
        description += "（" + "，".join(changes) + "）"
    publish(booking, "updated", description, actor)
    return booking


def delete_booking(db: Session, booking_id: int, actor) -> None:
    """物理删除预订（仅管理员），一般应使用 BATAL 取消"""
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFoundError("预订不存在")
    description = f"删除预订 {booking.bid}: {booking.customer_name}"
    snapshot = Booking(id=booking.id, store_id=booking.store_id)
    try:
        db.delete(booking)
        db.commit()
    except Exception:
        db.rollback()
        raise
    publish(snapshot, "deleted", description, actor)
