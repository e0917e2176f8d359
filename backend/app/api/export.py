"""
数据导出API
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session
from datetime import date
import io
import csv

from app.api.auth import ensure_store_access, get_current_user
from app.db.database import get_db
from app.models.booking import Booking
from app.models.expense import Expense, UNCATEGORIZED
from app.models.income import Income
from app.models.user import User
from app.schemas.common import format_time
from app.services import bookings, lifecycle, pricing

router = APIRouter(prefix="/api/export", tags=["数据导出"])

BOOKING_HEADERS = [
    "预订编号", "客户", "电话", "房间", "时间", "状态", "价格方案",
    "房费", "商品合计", "折扣", "应付总额",
    "付款1", "支付方式1", "付款2", "支付方式2", "付款状态",
]

TRANSACTION_HEADERS = ["编号", "日期", "类型", "客户/说明", "分类", "商品", "支付方式", "金额"]


def generate_csv(data, headers):
    """生成CSV数据"""
    output = io.StringIO()
    writer = csv.writer(output)

    # 写入表头
    writer.writerow(headers)

    # 写入数据
    for row in data:
        writer.writerow(row)

    output.seek(0)
    return output.getvalue()


def time_label(booking: Booking) -> str:
    if booking.is_stay:
        return f"{booking.date.isoformat()} ~ {booking.check_out_date.isoformat()}"
    return f"{format_time(booking.start_time)} - {format_time(booking.end_time)}"


def booking_row(booking: Booking) -> list:
    breakdown = bookings.quote_for_booking(booking)
    return [
        booking.bid or booking.id,
        booking.customer_name,
        booking.phone or "",
        booking.room.name if booking.room else "",
        time_label(booking),
        lifecycle.STATUS_LABELS.get(booking.status, booking.status),
        booking.variant.variant_name if booking.variant else "",
        pricing.format_price(breakdown.room_subtotal),
        pricing.format_price(breakdown.products_subtotal),
        pricing.format_price(breakdown.discount),
        pricing.format_price(breakdown.grand_total),
        pricing.format_price(booking.price or 0),
        booking.payment_method or "",
        pricing.format_price(booking.price_2) if booking.dual_payment and booking.price_2 is not None else "",
        (booking.payment_method_2 or "") if booking.dual_payment else "",
        booking.payment_status or "",
    ]


@router.get("/bookings")
def export_bookings(
    store_id: int,
    day: date = Query(..., alias="date", description="营业日期"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """导出某天的预订（含金额明细）"""
    ensure_store_access(current_user, store_id)
    result = db.query(Booking).filter(
        Booking.store_id == store_id,
        or_(
            and_(Booking.check_out_date.is_(None), Booking.date == day),
            and_(Booking.date <= day, Booking.check_out_date > day),
        )
    ).order_by(Booking.room_id, Booking.start_time).all()

    csv_content = generate_csv([booking_row(b) for b in result], BOOKING_HEADERS)

    return StreamingResponse(
        io.BytesIO(csv_content.encode("utf-8-sig")),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=bookings_{store_id}_{day.strftime('%Y%m%d')}.csv"
        }
    )


def income_row(income: Income) -> list:
    products = "、".join(f"{p.product_name} x{p.quantity}" for p in income.products)
    return [
        income.bid or income.id,
        income.income_date.isoformat(),
        "收入",
        income.customer_name,
        "",
        products,
        income.payment_method or "",
        pricing.format_price(income.amount),
    ]


def expense_row(expense: Expense) -> list:
    return [
        expense.bid or expense.id,
        expense.expense_date.isoformat(),
        "支出",
        expense.description,
        expense.category or UNCATEGORIZED,
        "",
        expense.payment_method or "",
        pricing.format_price(expense.amount),
    ]


@router.get("/transactions")
def export_transactions(
    store_id: int,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """导出区间内的收支明细，按日期排列，同一天收入在前"""
    ensure_store_access(current_user, store_id)
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="结束日期不能早于开始日期")

    incomes = db.query(Income).filter(
        Income.store_id == store_id,
        Income.income_date >= start_date,
        Income.income_date <= end_date
    ).order_by(Income.income_date, Income.id).all()
    expenses = db.query(Expense).filter(
        Expense.store_id == store_id,
        Expense.expense_date >= start_date,
        Expense.expense_date <= end_date
    ).order_by(Expense.expense_date, Expense.id).all()

    rows = [(i.income_date, 0, income_row(i)) for i in incomes]
    rows += [(e.expense_date, 1, expense_row(e)) for e in expenses]
    rows.sort(key=lambda r: (r[0], r[1]))
    csv_content = generate_csv([r[2] for r in rows], TRANSACTION_HEADERS)

    return StreamingResponse(
        io.BytesIO(csv_content.encode("utf-8-sig")),
        media_type="text/csv",
        headers={
            "Content-Disposition": (
                f"attachment; filename=transactions_{store_id}_"
                f"{start_date.strftime('%Y%m%d')}_{end_date.strftime('%Y%m%d')}.csv"
            )
        }
    )
