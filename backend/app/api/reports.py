"""
统计报表API
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session
from typing import Dict, List, Set
from datetime import date, timedelta
from decimal import Decimal

from app.api.auth import ensure_store_access, get_current_user
from app.api.bookings import build_booking_response
from app.db.database import get_db
from app.models.booking import Booking
from app.models.expense import Expense, UNCATEGORIZED
from app.models.income import Income
from app.models.room import Room, ROOM_STATUS_ACTIVE
from app.models.user import User
from app.schemas.booking import BookingResponse
from app.schemas.report import (
    SalesSummaryResponse, BookingTypeSummary, PaymentMethodSummary,
    CategorySummary, IncomeExpenseResponse, DailyOccupancy, RoomOccupancy, OccupancyResponse
)
from app.services import availability, bookings, lifecycle, pricing

router = APIRouter(prefix="/api/reports", tags=["统计报表"])

# 入住率报表最多统计的天数
MAX_OCCUPANCY_DAYS = 366


def check_date_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="结束日期不能早于开始日期")


@router.get("/sales", response_model=SalesSummaryResponse)
def get_sales_summary(
    store_id: int,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    销售汇总：按预订日期统计
    已取消的预订只计数，不计入金额
    """
    ensure_store_access(current_user, store_id)
    check_date_range(start_date, end_date)

    result = db.query(Booking).filter(
        Booking.store_id == store_id,
        Booking.date >= start_date,
        Booking.date <= end_date
    ).all()

    summary = SalesSummaryResponse(start_date=start_date, end_date=end_date)
    by_type = {}
    by_method = {}

    for booking in result:
        if booking.status == lifecycle.STATUS_CANCELLED:
            summary.cancelled_count += 1
            continue

        breakdown = bookings.quote_for_booking(booking)
        summary.booking_count += 1
        summary.room_revenue += breakdown.room_subtotal
        summary.products_revenue += breakdown.products_subtotal
        summary.discount_total += breakdown.discount
        summary.revenue += breakdown.grand_total

        type_summary = by_type.setdefault(booking.booking_type, BookingTypeSummary(booking_type=booking.booking_type))
        type_summary.count += 1
        type_summary.revenue += breakdown.grand_total

        reconciliation = pricing.reconcile_payment(
            breakdown.grand_total, booking.price, booking.price_2, booking.dual_payment
        )
        summary.total_paid += reconciliation.total_paid

        payments = [(booking.payment_method, booking.price)]
        if booking.dual_payment:
            payments.append((booking.payment_method_2, booking.price_2))
        for method, amount in payments:
            if not amount:
                continue
            method = method or "未填写"
            by_method[method] = by_method.get(method, Decimal("0")) + Decimal(str(amount))

    summary.by_type = sorted(by_type.values(), key=lambda t: t.booking_type)
    summary.by_payment_method = [
        PaymentMethodSummary(payment_method=method, amount=amount)
        for method, amount in sorted(by_method.items())
    ]
    return summary


def add_by_key(totals: Dict[str, Decimal], key: str, amount) -> None:
    totals[key] = totals.get(key, Decimal("0")) + Decimal(str(amount or 0))


def method_summaries(totals: Dict[str, Decimal]) -> List[PaymentMethodSummary]:
    return [PaymentMethodSummary(payment_method=method, amount=amount) for method, amount in sorted(totals.items())]


@router.get("/income-expense", response_model=IncomeExpenseResponse)
def get_income_expense(
    store_id: int,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """收支汇总：收入、支出、净利润，支出按分类和支付方式，收入按支付方式"""
    ensure_store_access(current_user, store_id)
    check_date_range(start_date, end_date)

    incomes = db.query(Income).filter(
        Income.store_id == store_id,
        Income.income_date >= start_date,
        Income.income_date <= end_date
    ).all()
    expenses = db.query(Expense).filter(
        Expense.store_id == store_id,
        Expense.expense_date >= start_date,
        Expense.expense_date <= end_date
    ).all()

    income_methods = {}
    for income in incomes:
        add_by_key(income_methods, income.payment_method or "-", income.amount)

    expense_methods = {}
    categories: Dict[str, CategorySummary] = {}
    for expense in expenses:
        add_by_key(expense_methods, expense.payment_method or "-", expense.amount)
        name = expense.category or UNCATEGORIZED
        summary = categories.setdefault(name, CategorySummary(category=name))
        summary.total += Decimal(str(expense.amount))
        summary.count += 1

    total_incomes = sum((Decimal(str(i.amount)) for i in incomes), Decimal("0"))
    total_expenses = sum((Decimal(str(e.amount)) for e in expenses), Decimal("0"))
    return IncomeExpenseResponse(
        start_date=start_date,
        end_date=end_date,
        total_incomes=total_incomes,
        total_expenses=total_expenses,
        net_profit=total_incomes - total_expenses,
        income_count=len(incomes),
        expense_count=len(expenses),
        expense_categories=sorted(categories.values(), key=lambda c: (-c.total, c.category)),
        expense_payment_methods=method_summaries(expense_methods),
        income_payment_methods=method_summaries(income_methods),
    )


def occupancy_rate(occupied: int, total: int) -> int:
    """百分比，四舍五入到整数"""
    if total <= 0:
        return 0
    return int(Decimal(occupied * 100) / Decimal(total) + Decimal("0.5"))


@router.get("/occupancy", response_model=OccupancyResponse)
def get_occupancy(
    store_id: int,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    入住率报表
    每天的占用房间数 / 启用房间数；多晚入住覆盖的每一天都算占用
    房间汇总只统计预订日期落在区间内的预订，金额为应付总额
    """
    ensure_store_access(current_user, store_id)
    check_date_range(start_date, end_date)
    if (end_date - start_date).days >= MAX_OCCUPANCY_DAYS:
        raise HTTPException(status_code=400, detail=f"统计区间不能超过 {MAX_OCCUPANCY_DAYS} 天")

    rooms = db.query(Room).filter(
        Room.store_id == store_id,
        Room.status == ROOM_STATUS_ACTIVE
    ).order_by(Room.name).all()
    response = OccupancyResponse(start_date=start_date, end_date=end_date, total_rooms=len(rooms))
    if not rooms:
        return response

    result = db.query(Booking).filter(
        Booking.store_id == store_id,
        Booking.room_id.in_([r.id for r in rooms]),
        Booking.status != lifecycle.STATUS_CANCELLED,
        Booking.date <= end_date,
        or_(
            Booking.check_out_date > start_date,
            and_(Booking.check_out_date.is_(None), Booking.date >= start_date),
        )
    ).all()

    per_room = {r.id: RoomOccupancy(room_id=r.id, room_name=r.name) for r in rooms}
    occupied: Dict[date, Set[int]] = {}
    for booking in result:
        first, last = availability.occupied_dates(booking)
        day = max(first, start_date)
        while day < last and day <= end_date:
            occupied.setdefault(day, set()).add(booking.room_id)
            day += timedelta(days=1)

        if start_date <= booking.date <= end_date:
            stats = per_room[booking.room_id]
            stats.booking_count += 1
            stats.revenue += bookings.quote_for_booking(booking).grand_total

    days = []
    day = start_date
    while day <= end_date:
        count = len(occupied.get(day, ()))
        days.append(DailyOccupancy(date=day, occupied=count, total_rooms=len(rooms),
                                   percentage=occupancy_rate(count, len(rooms))))
        day += timedelta(days=1)

    response.days = days
    response.average_occupancy = int(
        Decimal(sum(d.percentage for d in days)) / Decimal(len(days)) + Decimal("0.5")
    )
    response.rooms = sorted(per_room.values(), key=lambda r: (-r.revenue, r.room_name))
    return response


@router.get("/occupancy/rooms/{room_id}", response_model=List[BookingResponse])
def get_room_occupancy_detail(
    room_id: int,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """某个房间在区间内的有效预订"""
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room:
        raise HTTPException(status_code=404, detail="房间不存在")
    ensure_store_access(current_user, room.store_id)
    check_date_range(start_date, end_date)

    result = db.query(Booking).filter(
        Booking.room_id == room_id,
        Booking.status != lifecycle.STATUS_CANCELLED,
        Booking.date >= start_date,
        Booking.date <= end_date
    ).order_by(Booking.date.desc(), Booking.start_time.desc()).all()
    return [build_booking_response(b) for b in result]
