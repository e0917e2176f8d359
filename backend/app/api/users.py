"""
用户管理API（仅管理员）
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import or_
from typing import List, Optional
from app.api.auth import get_password_hash, require_admin
from app.core.config import business_now
from app.db.database import get_db
from app.models.user import User
from app.schemas.user import UserCreate, UserUpdate, UserResponse

router = APIRouter(prefix="/api/users", tags=["用户管理"], dependencies=[Depends(require_admin)])


@router.get("", response_model=List[UserResponse])
def get_users(
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None,
    store_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """获取用户列表"""
    # 默认不显示已删除的用户
    query = db.query(User).filter(User.deleted_at.is_(None))

    if search:
        query = query.filter(
            or_(
                User.username.like(f"%{search}%"),
                User.name.like(f"%{search}%"),
                User.email.like(f"%{search}%")
            )
        )
    if store_id:
        query = query.filter(User.store_id == store_id)

    return query.order_by(User.id).offset(skip).limit(limit).all()


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    """获取用户详情"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user or user.deleted_at:
        raise HTTPException(status_code=404, detail="用户不存在")
    return user


@router.post("", response_model=UserResponse)
def create_user(user: UserCreate, db: Session = Depends(get_db)):
    """创建用户"""
    if db.query(User).filter(User.username == user.username).first():
        raise HTTPException(status_code=400, detail="用户名已存在")
    if user.email and db.query(User).filter(User.email == user.email).first():
        raise HTTPException(status_code=400, detail="邮箱已存在")

    data = user.model_dump(exclude={"password"})
    db_user = User(**data, password_hash=get_password_hash(user.password))
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: Session = Depends(get_db)
):
    """更新用户"""
    db_user = db.query(User).filter(User.id == user_id).first()
    if not db_user or db_user.deleted_at:
        raise HTTPException(status_code=404, detail="用户不存在")

    # 检查邮箱是否被其他用户使用
    if user_update.email and user_update.email != db_user.email:
        existing_email = db.query(User).filter(
            User.email == user_update.email,
            User.id != user_id
        ).first()
        if existing_email:
            raise HTTPException(status_code=400, detail="邮箱已被其他用户使用")

    update_data = user_update.model_dump(exclude_unset=True)
    if "password" in update_data:
        update_data["password_hash"] = get_password_hash(update_data.pop("password"))

    for field, value in update_data.items():
        setattr(db_user, field, value)

    db.commit()
    db.refresh(db_user)
    return db_user


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """删除用户（软删除）"""
    db_user = db.query(User).filter(User.id == user_id).first()
    if not db_user:
        raise HTTPException(status_code=404, detail="用户不存在")
    if db_user.deleted_at:
        raise HTTPException(status_code=400, detail="用户已删除")
    if db_user.id == current_user.id:
        raise HTTPException(status_code=400, detail="不能删除当前登录的用户")

    db_user.deleted_at = business_now()
    db_user.is_active = False
    db.commit()
    return {"message": "用户删除成功"}
