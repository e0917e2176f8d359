"""
支出及支出分类相关的Pydantic模型
"""
from pydantic import BaseModel, Field, field_serializer
from typing import Optional
from datetime import datetime, date
from decimal import Decimal

from app.schemas.common import format_datetime_local


class ExpenseCategoryCreate(BaseModel):
    store_id: int = Field(..., description="门店ID")
    name: str = Field(..., min_length=1, max_length=100, description="分类名称")


class ExpenseCategoryResponse(BaseModel):
    id: int
    store_id: int
    name: str

    class Config:
        from_attributes = True


class ExpenseCreate(BaseModel):
    """创建支出模型"""
    store_id: int = Field(..., description="门店ID")
    description: str = Field(..., min_length=1, max_length=500, description="支出说明")
    amount: Decimal = Field(..., gt=0, description="支出金额")
    category: Optional[str] = Field(None, max_length=100, description="分类名称")
    payment_method: Optional[str] = Field(None, max_length=50, description="支付方式")
    payment_proof_url: Optional[str] = Field(None, max_length=500, description="付款凭证地址")
    expense_date: date = Field(..., description="支出日期")


class ExpenseUpdate(BaseModel):
    """更新支出模型"""
    description: Optional[str] = Field(None, min_length=1, max_length=500, description="支出说明")
    amount: Optional[Decimal] = Field(None, gt=0, description="支出金额")
    category: Optional[str] = Field(None, max_length=100, description="分类名称")
    payment_method: Optional[str] = Field(None, max_length=50, description="支付方式")
    payment_proof_url: Optional[str] = Field(None, max_length=500, description="付款凭证地址")
    expense_date: Optional[date] = Field(None, description="支出日期")


class ExpenseResponse(BaseModel):
    """支出响应模型"""
    id: int
    store_id: int
    bid: Optional[str] = None
    description: str
    amount: Decimal
    category: Optional[str] = None
    payment_method: Optional[str] = None
    payment_proof_url: Optional[str] = None
    expense_date: date
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_serializer('created_at', 'updated_at')
    def serialize_datetime(self, dt: datetime) -> Optional[str]:
        return format_datetime_local(dt)
