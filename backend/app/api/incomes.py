"""
收入管理API
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from app.api.auth import ensure_store_access, get_current_user
from app.core.events import LEDGER_CHANGED, BookingEvent, event_bus
from app.db.database import get_db
from app.models.income import Income, IncomeProduct
from app.models.user import User
from app.schemas.income import IncomeCreate, IncomeUpdate, IncomeResponse
from app.services import pricing

router = APIRouter(prefix="/api/incomes", tags=["收支管理"])


def build_income_response(income: Income) -> IncomeResponse:
    response = IncomeResponse.model_validate(income)
    response.creator_name = income.creator.display_name if income.creator else None
    return response


def publish_income(income: Income, action: str, description: str, user: User) -> None:
    event_bus.publish(BookingEvent(
        topic=LEDGER_CHANGED,
        action=action,
        entity_type="Income",
        entity_id=income.id,
        store_id=income.store_id,
        description=description,
        user_id=user.id,
        user_name=user.display_name,
        user_role=user.role,
    ))


def apply_income(db_income: Income, income) -> None:
    """写入收入字段，金额按商品明细或手工金额重新计算"""
    items = [(p.price, p.quantity) for p in income.products]
    if not items and income.amount is None:
        raise HTTPException(status_code=400, detail="请填写金额或添加商品")
    amount = pricing.income_total(income.amount, items, income.discount_type, income.discount_value)
    if amount <= 0 and not items:
        raise HTTPException(status_code=400, detail="收入金额必须大于0")

    db_income.customer_name = income.customer_name.strip()
    db_income.description = income.description
    db_income.amount = amount
    db_income.discount_type = income.discount_type
    db_income.discount_value = income.discount_value if income.discount_type else 0
    db_income.payment_method = income.payment_method
    db_income.reference_no = income.reference_no
    db_income.income_date = income.income_date
    db_income.products = [
        IncomeProduct(
            product_id=item.product_id,
            product_name=item.name,
            product_price=item.price,
            quantity=item.quantity,
            subtotal=pricing.products_subtotal([(item.price, item.quantity)]),
        )
        for item in income.products
    ]


def get_income_or_404(db: Session, income_id: int, current_user: User) -> Income:
    income = db.query(Income).filter(Income.id == income_id).first()
    if not income:
        raise HTTPException(status_code=404, detail="收入记录不存在")
    ensure_store_access(current_user, income.store_id)
    return income


@router.get("", response_model=List[IncomeResponse])
def get_incomes(
    store_id: int,
    skip: int = 0,
    limit: int = 100,
    start_date: Optional[date] = Query(None, description="开始日期"),
    end_date: Optional[date] = Query(None, description="结束日期"),
    payment_method: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """获取门店收入列表"""
    ensure_store_access(current_user, store_id)
    query = db.query(Income).filter(Income.store_id == store_id)

    if start_date:
        query = query.filter(Income.income_date >= start_date)
    if end_date:
        query = query.filter(Income.income_date <= end_date)
    if payment_method:
        query = query.filter(Income.payment_method == payment_method)

    incomes = query.order_by(Income.income_date.desc(), Income.id.desc()).offset(skip).limit(limit).all()
    return [build_income_response(i) for i in incomes]


@router.get("/{income_id}", response_model=IncomeResponse)
def get_income(income_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """获取收入详情"""
    return build_income_response(get_income_or_404(db, income_id, current_user))


@router.post("", response_model=IncomeResponse)
def create_income(income: IncomeCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """创建收入"""
    ensure_store_access(current_user, income.store_id)
    db_income = Income(store_id=income.store_id, created_by=current_user.id)
    apply_income(db_income, income)
    db.add(db_income)
    db.flush()
    db_income.bid = f"IN{db_income.income_date.strftime('%Y%m%d')}{db_income.id:05d}"
    db.commit()
    db.refresh(db_income)

    publish_income(db_income, "created", f"新增收入 {db_income.bid}: {db_income.customer_name} {db_income.amount}", current_user)
    return build_income_response(db_income)


@router.put("/{income_id}", response_model=IncomeResponse)
def update_income(
    income_id: int,
    income: IncomeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """编辑收入，商品明细整体替换"""
    db_income = get_income_or_404(db, income_id, current_user)
    apply_income(db_income, income)
    db.commit()
    db.refresh(db_income)

    publish_income(db_income, "updated", f"编辑收入 {db_income.bid}: {db_income.customer_name} {db_income.amount}", current_user)
    return build_income_response(db_income)


@router.delete("/{income_id}")
def delete_income(income_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """删除收入"""
    income = get_income_or_404(db, income_id, current_user)
    description = f"删除收入 {income.bid}: {income.customer_name} {income.amount}"
    snapshot = Income(id=income.id, store_id=income.store_id)

    db.delete(income)
    db.commit()

    publish_income(snapshot, "deleted", description, current_user)
    return {"message": "收入记录已删除"}
