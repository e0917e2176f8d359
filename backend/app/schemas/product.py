"""
商品相关的Pydantic模型
"""
from pydantic import BaseModel, Field, field_serializer
from typing import Optional
from datetime import datetime
from decimal import Decimal

from app.schemas.common import format_datetime_local


class ProductBase(BaseModel):
    """商品基础模型"""
    name: str = Field(..., description="名称", max_length=100)
    unit: Optional[str] = Field(None, description="单位", max_length=20)
    price: Decimal = Field(..., ge=0, description="单价")
    is_active: bool = Field(True, description="是否启用")


class ProductCreate(ProductBase):
    """创建商品模型"""
    store_id: int = Field(..., description="门店ID")


class ProductUpdate(BaseModel):
    """更新商品模型"""
    name: Optional[str] = Field(None, description="名称", max_length=100)
    unit: Optional[str] = Field(None, description="单位", max_length=20)
    price: Optional[Decimal] = Field(None, ge=0, description="单价")
    is_active: Optional[bool] = Field(None, description="是否启用")


class ProductResponse(ProductBase):
    """商品响应模型"""
    id: int
    store_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_serializer('created_at', 'updated_at')
    def serialize_datetime(self, dt: datetime) -> str:
        return format_datetime_local(dt) or ""
