"""
收入相关的Pydantic模型
"""
from pydantic import BaseModel, Field, field_serializer
from typing import Optional, List, Literal
from datetime import datetime, date
from decimal import Decimal

from app.schemas.booking import BookingProductItem
from app.schemas.common import format_datetime_local


class IncomeBase(BaseModel):
    """收入基础模型"""
    customer_name: str = Field(..., min_length=1, max_length=100, description="客户姓名")
    description: Optional[str] = Field(None, max_length=500, description="备注说明")
    amount: Optional[Decimal] = Field(None, ge=0, description="手工金额（有商品明细时忽略）")
    payment_method: str = Field(..., min_length=1, max_length=50, description="支付方式")
    reference_no: Optional[str] = Field(None, max_length=50, description="付款参考号")
    discount_type: Optional[Literal["percentage", "amount"]] = Field(None, description="折扣类型")
    discount_value: Decimal = Field(Decimal("0"), ge=0, description="折扣值")
    income_date: date = Field(..., description="收入日期")
    products: List[BookingProductItem] = Field(default_factory=list, description="商品明细")


class IncomeCreate(IncomeBase):
    """创建收入模型"""
    store_id: int = Field(..., description="门店ID")


class IncomeUpdate(IncomeBase):
    """编辑收入模型（整体替换）"""


class IncomeProductResponse(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    product_price: Decimal
    quantity: int
    subtotal: Decimal

    class Config:
        from_attributes = True


class IncomeResponse(BaseModel):
    """收入响应模型"""
    id: int
    store_id: int
    bid: Optional[str] = None
    customer_name: str
    description: Optional[str] = None
    amount: Decimal
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = None
    payment_method: str
    reference_no: Optional[str] = None
    income_date: date
    products: List[IncomeProductResponse] = Field(default_factory=list)
    created_by: Optional[int] = None
    creator_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_serializer('created_at', 'updated_at')
    def serialize_datetime(self, dt: datetime) -> Optional[str]:
        return format_datetime_local(dt)
