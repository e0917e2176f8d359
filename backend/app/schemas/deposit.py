"""
押金相关的Pydantic模型
"""
from pydantic import BaseModel, Field, field_serializer
from typing import Optional, Literal
from datetime import datetime
from decimal import Decimal

from app.schemas.common import format_datetime_local


class DepositInput(BaseModel):
    """押金信息（入住时随状态变更一起提交）"""
    deposit_type: Literal["uang", "identitas"] = Field(..., description="押金类型：uang=现金, identitas=证件")
    amount: Optional[Decimal] = Field(None, gt=0, description="现金押金金额")
    identity_type: Optional[str] = Field(None, max_length=20, description="证件类型：KTP、SIM、Paspor")
    identity_owner_name: Optional[str] = Field(None, max_length=100, description="证件持有人，默认为客户姓名")
    photo_url: Optional[str] = Field(None, max_length=500, description="照片地址")
    notes: Optional[str] = Field(None, max_length=500, description="备注")


class DepositCreate(DepositInput):
    """手工登记押金"""
    room_id: int = Field(..., description="房间ID")
    booking_id: Optional[int] = Field(None, description="关联预订ID")


class DepositResponse(BaseModel):
    """押金响应模型"""
    id: int
    store_id: int
    room_id: int
    booking_id: Optional[int] = None
    deposit_type: str
    amount: Optional[Decimal] = None
    identity_type: Optional[str] = None
    identity_owner_name: Optional[str] = None
    photo_url: Optional[str] = None
    notes: Optional[str] = None
    status: str
    created_by: Optional[int] = None
    returned_by: Optional[int] = None
    returned_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

    @field_serializer('returned_at', 'created_at')
    def serialize_datetime(self, dt: datetime) -> Optional[str]:
        return format_datetime_local(dt)
