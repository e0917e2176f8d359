"""
预订状态机

BO(已预订) → CI(已入住) → CO(已退房)
BO / CI → BATAL(已取消)
CO 和 BATAL 是终态。

状态变更及其附带操作（审计戳、房间清洁状态、押金）在同一事务中写入，
任一步失败整体回滚，不会出现状态已变但清洁状态或押金没有跟上的情况。
"""
import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import business_now, business_today
from app.core.events import BOOKING_CHANGED, BookingEvent, event_bus
from app.core.exceptions import BookingError, ConcurrencyError, InvalidTransitionError, NotFoundError, ValidationError
from app.models.booking import Booking
from app.models.room_daily_status import RoomDailyStatus, DAILY_STATUS_DIRTY
from app.models.room_deposit import RoomDeposit, DEPOSIT_ACTIVE, DEPOSIT_RETURNED

logger = logging.getLogger(__name__)

STATUS_RESERVED = "BO"
STATUS_CHECKED_IN = "CI"
STATUS_CHECKED_OUT = "CO"
STATUS_CANCELLED = "BATAL"

BOOKING_STATUSES = (STATUS_RESERVED, STATUS_CHECKED_IN, STATUS_CHECKED_OUT, STATUS_CANCELLED)

ALLOWED_TRANSITIONS = {
    STATUS_RESERVED: {STATUS_CHECKED_IN, STATUS_CANCELLED},
    STATUS_CHECKED_IN: {STATUS_CHECKED_OUT, STATUS_CANCELLED},
    STATUS_CHECKED_OUT: set(),
    STATUS_CANCELLED: set(),
}

STATUS_LABELS = {
    STATUS_RESERVED: "已预订",
    STATUS_CHECKED_IN: "已入住",
    STATUS_CHECKED_OUT: "已退房",
    STATUS_CANCELLED: "已取消",
}

# 状态变更对应的活动日志动作
TRANSITION_ACTIONS = {
    STATUS_CHECKED_IN: "check-in",
    STATUS_CHECKED_OUT: "check-out",
    STATUS_CANCELLED: "cancel",
    STATUS_RESERVED: "confirm",
}

DEPOSIT_COLLECT = "collect"
DEPOSIT_RETURN = "return"


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def ensure_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)


def active_deposits(db: Session, room_id: int) -> List[RoomDeposit]:
    return db.query(RoomDeposit).filter(
        RoomDeposit.room_id == room_id,
        RoomDeposit.status == DEPOSIT_ACTIVE
    ).all()


def deposit_action(db: Session, booking: Booking, target: str) -> Optional[str]:
    """
    状态变更前需要提示的押金操作
    入住时房间没有押金 -> collect（可跳过）；退房时房间有押金 -> return
    """
    if target == STATUS_CHECKED_IN and not active_deposits(db, booking.room_id):
        return DEPOSIT_COLLECT
    if target == STATUS_CHECKED_OUT and active_deposits(db, booking.room_id):
        return DEPOSIT_RETURN
    return None


def stamp_confirmed(booking: Booking, actor, now: datetime) -> None:
    booking.confirmed_by = actor.id
    booking.confirmed_at = now


def new_deposit(booking: Booking, deposit, actor) -> RoomDeposit:
    """根据请求数据生成预订的押金记录（不提交）"""
    return build_deposit(booking.store_id, booking.room_id, booking.id, booking.customer_name, deposit, actor)


def build_deposit(store_id: int, room_id: int, booking_id: Optional[int], owner_name: Optional[str],
                  deposit, actor) -> RoomDeposit:
    if deposit.deposit_type == "uang" and not deposit.amount:
        raise ValidationError("请输入押金金额")
    if deposit.deposit_type == "identitas" and not deposit.identity_type:
        raise ValidationError("请选择抵押证件类型")
    return RoomDeposit(
        store_id=store_id,
        room_id=room_id,
        booking_id=booking_id,
        deposit_type=deposit.deposit_type,
        amount=deposit.amount if deposit.deposit_type == "uang" else None,
        identity_type=deposit.identity_type if deposit.deposit_type == "identitas" else None,
        identity_owner_name=(deposit.identity_owner_name or owner_name) if deposit.deposit_type == "identitas" else None,
        photo_url=deposit.photo_url,
        notes=deposit.notes,
        status=DEPOSIT_ACTIVE,
        created_by=actor.id,
    )


def mark_room_dirty(db: Session, room_id: int, day: date, actor) -> RoomDailyStatus:
    """把房间某天的清洁状态设为 Kotor（存在则更新，不存在则新增）"""
    daily = db.query(RoomDailyStatus).filter(
        RoomDailyStatus.room_id == room_id,
        RoomDailyStatus.date == day
    ).first()
    if daily:
        daily.status = DAILY_STATUS_DIRTY
        daily.updated_by = actor.id
    else:
        daily = RoomDailyStatus(room_id=room_id, date=day, status=DAILY_STATUS_DIRTY, updated_by=actor.id)
        db.add(daily)
    return daily


def return_deposits(db: Session, room_id: int, actor, now: datetime) -> List[RoomDeposit]:
    deposits = active_deposits(db, room_id)
    for deposit in deposits:
        deposit.status = DEPOSIT_RETURNED
        deposit.returned_by = actor.id
        deposit.returned_at = now
    return deposits


def apply_transition(db: Session, booking: Booking, target: str, actor, *,
                     deposit=None, return_room_deposits: bool = False,
                     now: Optional[datetime] = None, today: Optional[date] = None) -> List[str]:
    """
    在当前会话中执行状态变更及附带操作，不提交
    返回附带操作的说明，用于活动日志
    """
    ensure_transition(booking.status, target)
    now = now or business_now()
    # 退房标记的是实际退房当天，不是预订日期（过夜/延迟退房时两者不同）
    today = today or business_today()
    effects = []

    if target == STATUS_CHECKED_IN:
        booking.checked_in_by = actor.id
        booking.checked_in_at = now
        if deposit is not None:
            db.add(new_deposit(booking, deposit, actor))
            effects.append("收取押金")
    elif target == STATUS_CHECKED_OUT:
        booking.checked_out_by = actor.id
        booking.checked_out_at = now
        mark_room_dirty(db, booking.room_id, today, actor)
        effects.append(f"房间 {today.isoformat()} 标记为待清洁")
        if return_room_deposits:
            returned = return_deposits(db, booking.room_id, actor, now)
            if returned:
                effects.append(f"退还押金 {len(returned)} 笔")
    elif target == STATUS_CANCELLED:
        booking.cancelled_by = actor.id
        booking.cancelled_at = now

    booking.status = target
    db.flush()
    return effects


def transition_booking(db: Session, booking_id: int, target: str, actor, *,
                       deposit=None, return_room_deposits: bool = False,
                       expected_version: Optional[int] = None,
                       now: Optional[datetime] = None, today: Optional[date] = None) -> Booking:
    """变更预订状态并提交；失败时回滚，预订保持原状态"""
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFoundError("预订不存在")
    if expected_version is not None and booking.version != expected_version:
        raise ConcurrencyError()

    previous = booking.status
    ensure_transition(previous, target)
    try:
        effects = apply_transition(
            db, booking, target, actor,
            deposit=deposit, return_room_deposits=return_room_deposits,
            now=now, today=today
        )
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConcurrencyError()
    except BookingError as e:
        db.rollback()
        logger.warning("预订 %s 状态变更被拒绝: %s → %s，%s", booking_id, previous, target, e)
        raise
    except Exception:
        db.rollback()
        logger.exception("预订 %s 状态变更失败: %s → %s", booking_id, previous, target)
        raise
    db.refresh(booking)

    description = f"预订 {booking.bid or booking.id} {booking.customer_name}: {previous} → {target}"
    if effects:
        description += "（" + "，".join(effects) + "）"
    event_bus.publish(BookingEvent(
        topic=BOOKING_CHANGED,
        action=TRANSITION_ACTIONS.get(target, "updated"),
        entity_type="Booking",
        entity_id=booking.id,
        store_id=booking.store_id,
        description=description,
        user_id=actor.id,
        user_name=actor.display_name,
        user_role=actor.role,
    ))
    return booking
