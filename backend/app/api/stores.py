"""
门店管理API
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from app.api.auth import get_current_user, require_admin
from app.db.database import get_db
from app.models.store import Store
from app.models.user import User
from app.schemas.store import StoreCreate, StoreUpdate, StoreResponse

router = APIRouter(prefix="/api/stores", tags=["门店管理"])


@router.get("", response_model=List[StoreResponse])
def get_stores(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """获取门店列表，前台只能看到所属门店"""
    query = db.query(Store)
    if current_user.role != "admin" and current_user.store_id:
        query = query.filter(Store.id == current_user.store_id)
    return query.order_by(Store.id).all()


@router.post("", response_model=StoreResponse, dependencies=[Depends(require_admin)])
def create_store(store: StoreCreate, db: Session = Depends(get_db)):
    """创建门店"""
    if db.query(Store).filter(Store.slug == store.slug).first():
        raise HTTPException(status_code=400, detail="门店标识已存在")
    db_store = Store(**store.model_dump())
    db.add(db_store)
    db.commit()
    db.refresh(db_store)
    return db_store


@router.put("/{store_id}", response_model=StoreResponse, dependencies=[Depends(require_admin)])
def update_store(store_id: int, store_update: StoreUpdate, db: Session = Depends(get_db)):
    """更新门店"""
    db_store = db.query(Store).filter(Store.id == store_id).first()
    if not db_store:
        raise HTTPException(status_code=404, detail="门店不存在")
    for field, value in store_update.model_dump(exclude_unset=True).items():
        setattr(db_store, field, value)
    db.commit()
    db.refresh(db_store)
    return db_store
