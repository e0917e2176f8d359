"""
商品管理API
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from app.api.auth import ensure_store_access, get_current_user
from app.db.database import get_db
from app.models.booking_product import BookingProduct
from app.models.product import Product
from app.models.user import User
from app.schemas.product import ProductCreate, ProductUpdate, ProductResponse

router = APIRouter(prefix="/api/products", tags=["商品管理"])


@router.get("", response_model=List[ProductResponse])
def get_products(
    store_id: int,
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """获取门店商品列表"""
    ensure_store_access(current_user, store_id)
    query = db.query(Product).filter(Product.store_id == store_id)

    if search:
        query = query.filter(Product.name.like(f"%{search}%"))

    if is_active is not None:
        query = query.filter(Product.is_active == is_active)

    return query.order_by(Product.name).offset(skip).limit(limit).all()


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """获取商品详情"""
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="商品不存在")
    ensure_store_access(current_user, product.store_id)
    return product


@router.post("", response_model=ProductResponse)
def create_product(product: ProductCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """创建商品"""
    ensure_store_access(current_user, product.store_id)
    db_product = Product(**product.model_dump())
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    product_update: ProductUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """更新商品（已有预订中的商品明细保留下单时的名称和价格）"""
    db_product = db.query(Product).filter(Product.id == product_id).first()
    if not db_product:
        raise HTTPException(status_code=404, detail="商品不存在")
    ensure_store_access(current_user, db_product.store_id)

    for field, value in product_update.model_dump(exclude_unset=True).items():
        setattr(db_product, field, value)

    db.commit()
    db.refresh(db_product)
    return db_product


@router.delete("/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """删除商品（已被预订使用的商品只能停用）"""
    db_product = db.query(Product).filter(Product.id == product_id).first()
    if not db_product:
        raise HTTPException(status_code=404, detail="商品不存在")
    ensure_store_access(current_user, db_product.store_id)

    used_count = db.query(BookingProduct).filter(BookingProduct.product_id == product_id).count()
    if used_count > 0:
        raise HTTPException(
            status_code=400,
            detail=f"该商品已有 {used_count} 条预订记录，无法删除，请改为停用"
        )

    db.delete(db_product)
    db.commit()
    return {"message": "商品已删除"}
