"""
支出管理API（含支出分类）
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from app.api.auth import ensure_store_access, get_current_user
from app.core.events import LEDGER_CHANGED, BookingEvent, event_bus
from app.db.database import get_db
from app.models.expense import Expense, ExpenseCategory
from app.models.user import User
from app.schemas.expense import (
    ExpenseCategoryCreate, ExpenseCategoryResponse,
    ExpenseCreate, ExpenseUpdate, ExpenseResponse
)

router = APIRouter(prefix="/api/expenses", tags=["收支管理"])


def publish_expense(expense: Expense, action: str, description: str, user: User) -> None:
    event_bus.publish(BookingEvent(
        topic=LEDGER_CHANGED,
        action=action,
        entity_type="Expense",
        entity_id=expense.id,
        store_id=expense.store_id,
        description=description,
        user_id=user.id,
        user_name=user.display_name,
        user_role=user.role,
    ))


def get_expense_or_404(db: Session, expense_id: int, current_user: User) -> Expense:
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise HTTPException(status_code=404, detail="支出记录不存在")
    ensure_store_access(current_user, expense.store_id)
    return expense


@router.get("/categories", response_model=List[ExpenseCategoryResponse])
def get_categories(store_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """门店支出分类"""
    ensure_store_access(current_user, store_id)
    return db.query(ExpenseCategory).filter(ExpenseCategory.store_id == store_id).order_by(ExpenseCategory.name).all()


@router.post("/categories", response_model=ExpenseCategoryResponse)
def create_category(
    category: ExpenseCategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """新增支出分类"""
    ensure_store_access(current_user, category.store_id)
    name = category.name.strip()
    existing = db.query(ExpenseCategory).filter(
        ExpenseCategory.store_id == category.store_id,
        ExpenseCategory.name == name
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail="分类已存在")

    db_category = ExpenseCategory(store_id=category.store_id, name=name)
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


@router.delete("/categories/{category_id}")
def delete_category(category_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """删除支出分类，已有支出保留分类名称"""
    category = db.query(ExpenseCategory).filter(ExpenseCategory.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="分类不存在")
    ensure_store_access(current_user, category.store_id)
    db.delete(category)
    db.commit()
    return {"message": "分类已删除"}


@router.get("", response_model=List[ExpenseResponse])
def get_expenses(
    store_id: int,
    skip: int = 0,
    limit: int = 100,
    start_date: Optional[date] = Query(None, description="开始日期"),
    end_date: Optional[date] = Query(None, description="结束日期"),
    category: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """获取门店支出列表"""
    ensure_store_access(current_user, store_id)
    query = db.query(Expense).filter(Expense.store_id == store_id)

    if start_date:
        query = query.filter(Expense.expense_date >= start_date)
    if end_date:
        query = query.filter(Expense.expense_date <= end_date)
    if category:
        query = query.filter(Expense.category == category)

    return query.order_by(Expense.expense_date.desc(), Expense.id.desc()).offset(skip).limit(limit).all()


@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(expense_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """获取支出详情"""
    return get_expense_or_404(db, expense_id, current_user)


@router.post("", response_model=ExpenseResponse)
def create_expense(expense: ExpenseCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """创建支出"""
    ensure_store_access(current_user, expense.store_id)
    data = expense.model_dump()
    data["description"] = data["description"].strip()
    db_expense = Expense(**data, created_by=current_user.id)
    db.add(db_expense)
    db.flush()
    db_expense.bid = f"EX{db_expense.expense_date.strftime('%Y%m%d')}{db_expense.id:05d}"
    db.commit()
    db.refresh(db_expense)

    publish_expense(db_expense, "created", f"新增支出 {db_expense.bid}: {db_expense.description} {db_expense.amount}", current_user)
    return db_expense


@router.put("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: int,
    expense: ExpenseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """更新支出"""
    db_expense = get_expense_or_404(db, expense_id, current_user)

    for field, value in expense.model_dump(exclude_unset=True).items():
        setattr(db_expense, field, value)

    db.commit()
    db.refresh(db_expense)

    publish_expense(db_expense, "updated", f"编辑支出 {db_expense.bid}: {db_expense.description} {db_expense.amount}", current_user)
    return db_expense


@router.delete("/{expense_id}")
def delete_expense(expense_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """删除支出"""
    expense = get_expense_or_404(db, expense_id, current_user)
    description = f"删除支出 {expense.bid}: {expense.description} {expense.amount}"
    snapshot = Expense(id=expense.id, store_id=expense.store_id)

    db.delete(expense)
    db.commit()

    publish_expense(snapshot, "deleted", description, current_user)
    return {"message": "支出记录已删除"}
