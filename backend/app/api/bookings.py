"""
预订管理API
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date, time

from app.api.auth import ensure_store_access, get_current_user, require_admin
from app.db.database import get_db
from app.models.booking import Booking
from app.models.room_variant import RoomVariant
from app.models.user import User
from app.schemas.booking import (
    BookingCreate, BookingUpdate, BookingResponse, StatusChangeRequest,
    TransitionPreview, QuoteRequest, PriceBreakdownResponse, AvailabilityResponse
)
from app.services import availability, bookings, lifecycle, pricing

router = APIRouter(prefix="/api/bookings", tags=["预订管理"])


def build_pricing(breakdown: pricing.PriceBreakdown, duration, price, price_2, dual_payment: bool) -> PriceBreakdownResponse:
    reconciliation = pricing.reconcile_payment(breakdown.grand_total, price, price_2, dual_payment)
    return PriceBreakdownResponse(
        duration=duration,
        room_subtotal=breakdown.room_subtotal,
        products_subtotal=breakdown.products_subtotal,
        discount=breakdown.discount,
        grand_total=breakdown.grand_total,
        price=price,
        price_2=price_2,
        total_paid=reconciliation.total_paid,
        difference=reconciliation.difference,
        is_overpayment=reconciliation.is_overpayment,
        is_underpayment=reconciliation.is_underpayment,
        payment_status=pricing.payment_status(breakdown.grand_total, price, price_2, dual_payment),
    )


def build_booking_response(booking: Booking, warnings: Optional[List[str]] = None) -> BookingResponse:
    """预订响应，附带房间名、方案名和按当前数据计算的金额明细"""
    response = BookingResponse.model_validate(booking)
    response.room_name = booking.room.name if booking.room else None
    response.variant_name = booking.variant.variant_name if booking.variant else None
    response.pricing = build_pricing(
        bookings.quote_for_booking(booking), booking.duration,
        booking.price, booking.price_2, booking.dual_payment
    )
    response.warnings = warnings or []
    return response


def get_booking_or_404(db: Session, booking_id: int, current_user: User) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise HTTPException(status_code=404, detail="预订不存在")
    ensure_store_access(current_user, booking.store_id)
    return booking


@router.get("", response_model=List[BookingResponse])
def get_bookings(
    store_id: int,
    day: date = Query(..., alias="date", description="营业日期"),
    room_id: Optional[int] = None,
    status: Optional[str] = None,
    include_cancelled: bool = True,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    排班表：某天占用房间的预订
    按小时预订取当天的记录，多晚入住取覆盖当天的记录
    """
    ensure_store_access(current_user, store_id)
    if status and status not in lifecycle.BOOKING_STATUSES:
        raise HTTPException(status_code=400, detail=f"无效的预订状态: {status}")
    query = db.query(Booking).filter(
        Booking.store_id == store_id,
        or_(
            and_(Booking.check_out_date.is_(None), Booking.date == day),
            and_(Booking.date <= day, Booking.check_out_date > day),
        )
    )
    if room_id:
        query = query.filter(Booking.room_id == room_id)
    if status:
        query = query.filter(Booking.status == status)
    elif not include_cancelled:
        query = query.filter(Booking.status != lifecycle.STATUS_CANCELLED)

    result = query.order_by(Booking.room_id, Booking.start_time).all()
    return [build_booking_response(b) for b in result]


@router.get("/availability", response_model=AvailabilityResponse)
def check_availability(
    room_id: int,
    day: date = Query(..., alias="date", description="日期"),
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
    check_out_date: Optional[date] = None,
    exclude_id: Optional[int] = Query(None, description="编辑时排除当前预订"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """检查房间某时段是否空闲"""
    if check_out_date is not None:
        slot = availability.Slot(day, bookings.STAY_CHECK_IN_TIME, bookings.STAY_CHECK_OUT_TIME, check_out_date)
    elif start_time is None or end_time is None:
        raise HTTPException(status_code=400, detail="请填写开始时间和结束时间")
    else:
        slot = availability.Slot(day, start_time, end_time)

    room = bookings.get_room(db, room_id)
    ensure_store_access(current_user, room.store_id)
    conflict = bookings.check_availability(db, room.id, slot, exclude_id)
    return AvailabilityResponse(available=conflict is None, conflict_booking_id=conflict.id if conflict else None)


@router.post("/quote", response_model=PriceBreakdownResponse)
def quote_booking(
    request: QuoteRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """价格试算：返回房费、商品、折扣、应付和付款差额"""
    variant = None
    if request.variant_id:
        variant = db.query(RoomVariant).filter(RoomVariant.id == request.variant_id).first()
        if not variant:
            raise HTTPException(status_code=404, detail="价格方案不存在")
        ensure_store_access(current_user, variant.store_id)
    # 未填写结束时间或退房日期时按方案时长推算
    check_out_date = request.check_out_date
    if check_out_date is None and request.date is not None and variant is not None \
            and variant.booking_duration_type != pricing.DURATION_HOURS:
        check_out_date = pricing.booking_end_date(
            request.date, variant.booking_duration_type, variant.booking_duration_value
        )
    end_time = request.end_time
    if end_time is None and request.start_time is not None and variant is not None:
        end_time = pricing.end_time_after(request.start_time, variant.duration)

    if check_out_date is not None and request.date is not None:
        duration = pricing.calculate_nights(request.date, check_out_date)
    elif request.start_time is not None and end_time is not None:
        duration = pricing.calculate_duration(request.start_time, end_time)
    else:
        duration = variant.duration if variant else pricing.ZERO

    breakdown = bookings.quote(request, variant, duration)
    price, price_2 = pricing.autofill_payments(
        breakdown.grand_total, request.price, request.price_2, request.dual_payment, request.booking_type
    )
    response = build_pricing(breakdown, duration, price, price_2, request.dual_payment)
    response.end_time = end_time
    response.check_out_date = check_out_date
    return response


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(booking_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """获取预订详情"""
    return build_booking_response(get_booking_or_404(db, booking_id, current_user))


@router.post("", response_model=BookingResponse)
def create_booking(
    booking: BookingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """创建预订"""
    ensure_store_access(current_user, booking.store_id)
    db_booking, warnings = bookings.create_booking(db, booking, current_user)
    return build_booking_response(db_booking, warnings)


@router.put("/{booking_id}", response_model=BookingResponse)
def update_booking(
    booking_id: int,
    booking_update: BookingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """编辑预订"""
    get_booking_or_404(db, booking_id, current_user)
    db_booking = bookings.update_booking(db, booking_id, booking_update, current_user)
    return build_booking_response(db_booking)


@router.delete("/{booking_id}")
def delete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """删除预订（仅管理员）"""
    bookings.delete_booking(db, booking_id, current_user)
    return {"message": "预订已删除"}


@router.get("/{booking_id}/transition-preview", response_model=TransitionPreview)
def preview_transition(
    booking_id: int,
    target: str = Query(..., description="目标状态"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """状态变更前的预检：是否允许，以及是否需要提示收取或退还押金"""
    booking = get_booking_or_404(db, booking_id, current_user)
    allowed = lifecycle.can_transition(booking.status, target)
    action = lifecycle.deposit_action(db, booking, target) if allowed else None
    deposit_ids = [d.id for d in lifecycle.active_deposits(db, booking.room_id)] if action == lifecycle.DEPOSIT_RETURN else []
    return TransitionPreview(
        allowed=allowed,
        current_status=booking.status,
        target_status=target,
        deposit_action=action,
        active_deposit_ids=deposit_ids
    )


@router.post("/{booking_id}/status", response_model=BookingResponse)
def change_status(
    booking_id: int,
    request: StatusChangeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """变更预订状态（入住、退房、取消）"""
    get_booking_or_404(db, booking_id, current_user)
    booking = lifecycle.transition_booking(
        db, booking_id, request.status, current_user,
        deposit=request.deposit,
        return_room_deposits=request.return_deposits,
        expected_version=request.version
    )
    return build_booking_response(booking)
