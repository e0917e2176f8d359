"""
客户管理API
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import or_, func
from typing import List, Optional
from app.api.auth import ensure_store_access, get_current_user
from app.db.database import get_db
from app.api.bookings import build_booking_response
from app.models.booking import Booking
from app.models.customer import Customer
from app.models.user import User
from app.schemas.booking import BookingResponse
from app.schemas.customer import CustomerCreate, CustomerUpdate, CustomerResponse, CustomerBatchDelete

router = APIRouter(prefix="/api/customers", tags=["客户管理"])


def get_customer_or_404(db: Session, customer_id: int, current_user: User) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="客户不存在")
    ensure_store_access(current_user, customer.store_id)
    return customer


def ensure_phone_unique(db: Session, store_id: int, phone: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Customer).filter(Customer.store_id == store_id, Customer.phone == phone)
    if exclude_id is not None:
        query = query.filter(Customer.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=400, detail=f"电话 '{phone}' 已被其他客户使用")


@router.get("", response_model=List[CustomerResponse])
def get_customers(
    store_id: int,
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """获取客户列表，按姓名或电话搜索"""
    ensure_store_access(current_user, store_id)
    query = db.query(Customer).filter(Customer.store_id == store_id)

    if search:
        query = query.filter(
            or_(
                Customer.name.like(f"%{search}%"),
                Customer.phone.like(f"%{search}%")
            )
        )

    customers = query.order_by(Customer.name).offset(skip).limit(limit).all()

    # 统计每个客户的预订次数
    counts = dict(
        db.query(Booking.customer_id, func.count(Booking.id))
        .filter(Booking.customer_id.in_([c.id for c in customers]))
        .group_by(Booking.customer_id)
        .all()
    ) if customers else {}

    result = []
    for customer in customers:
        response = CustomerResponse.model_validate(customer)
        response.booking_count = counts.get(customer.id, 0)
        result.append(response)
    return result


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """获取客户详情"""
    customer = get_customer_or_404(db, customer_id, current_user)
    response = CustomerResponse.model_validate(customer)
    response.booking_count = len(customer.bookings)
    return response


@router.get("/{customer_id}/bookings", response_model=List[BookingResponse])
def get_customer_bookings(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """客户的预订记录"""
    customer = get_customer_or_404(db, customer_id, current_user)
    bookings = db.query(Booking).filter(Booking.customer_id == customer.id).order_by(Booking.date.desc()).all()
    return [build_booking_response(b) for b in bookings]


@router.post("", response_model=CustomerResponse)
def create_customer(customer: CustomerCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """创建客户"""
    ensure_store_access(current_user, customer.store_id)
    ensure_phone_unique(db, customer.store_id, customer.phone)

    db_customer = Customer(**customer.model_dump(), created_by=current_user.id)
    db.add(db_customer)
    db.commit()
    db.refresh(db_customer)
    return db_customer


@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    customer_update: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """更新客户"""
    db_customer = get_customer_or_404(db, customer_id, current_user)

    update_data = customer_update.model_dump(exclude_unset=True)
    if "phone" in update_data and update_data["phone"] != db_customer.phone:
        ensure_phone_unique(db, db_customer.store_id, update_data["phone"], exclude_id=customer_id)

    for field, value in update_data.items():
        setattr(db_customer, field, value)

    db.commit()
    db.refresh(db_customer)
    return db_customer


@router.delete("/{customer_id}")
def delete_customer(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """删除客户（有预订记录的客户不能删除）"""
    db_customer = get_customer_or_404(db, customer_id, current_user)
    if db_customer.bookings:
        raise HTTPException(status_code=400, detail=f"该客户已有 {len(db_customer.bookings)} 条预订记录，无法删除")
    db.delete(db_customer)
    db.commit()
    return {"message": "客户已删除"}


@router.post("/batch-delete")
def batch_delete_customers(
    batch_delete: CustomerBatchDelete,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """批量删除客户，跳过有预订记录的客户"""
    if not batch_delete.ids:
        raise HTTPException(status_code=400, detail="请提供要删除的客户ID列表")

    customers = db.query(Customer).filter(Customer.id.in_(batch_delete.ids)).all()
    if not customers:
        raise HTTPException(status_code=404, detail="未找到要删除的客户")

    deleted, skipped = 0, []
    for customer in customers:
        ensure_store_access(current_user, customer.store_id)
        if customer.bookings:
            skipped.append(customer.name)
            continue
        db.delete(customer)
        deleted += 1
    db.commit()

    message = f"成功删除 {deleted} 个客户"
    if skipped:
        message += f"，{len(skipped)} 个客户有预订记录未删除"
    return {"message": message, "deleted_count": deleted, "skipped": skipped}
