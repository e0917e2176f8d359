"""
用户相关的Pydantic模型
"""
from pydantic import BaseModel, Field, EmailStr, field_serializer
from typing import Optional, Literal
from datetime import datetime

from app.schemas.common import format_datetime_local


class UserBase(BaseModel):
    """用户基础模型"""
    username: str = Field(..., description="用户名", max_length=100)
    name: Optional[str] = Field(None, description="显示名称", max_length=100)
    email: Optional[EmailStr] = Field(None, description="邮箱")
    role: Literal["admin", "staff"] = Field("staff", description="角色：admin=管理员, staff=前台")
    store_id: Optional[int] = Field(None, description="所属门店（管理员可为空）")
    is_active: bool = Field(True, description="是否启用")


class UserCreate(UserBase):
    """创建用户模型"""
    password: str = Field(..., description="密码", min_length=6)


class UserUpdate(BaseModel):
    """更新用户模型"""
    name: Optional[str] = Field(None, description="显示名称", max_length=100)
    email: Optional[EmailStr] = Field(None, description="邮箱")
    password: Optional[str] = Field(None, description="密码", min_length=6)
    role: Optional[Literal["admin", "staff"]] = Field(None, description="角色")
    store_id: Optional[int] = Field(None, description="所属门店")
    is_active: Optional[bool] = Field(None, description="是否启用")


class UserResponse(UserBase):
    """用户响应模型"""
    id: int
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_serializer('created_at', 'updated_at', 'deleted_at')
    def serialize_datetime(self, dt: datetime) -> Optional[str]:
        return format_datetime_local(dt)
