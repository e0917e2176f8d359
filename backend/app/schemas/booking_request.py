"""
预订申请相关的Pydantic模型
"""
from pydantic import BaseModel, Field, field_serializer
from typing import Optional, Literal
from datetime import datetime, date as date_type, time
from decimal import Decimal

from app.schemas.common import format_datetime_local, format_time


class BookingRequestCreate(BaseModel):
    """客户自助提交的预订申请"""
    customer_name: str = Field(..., min_length=1, max_length=100, description="客户姓名")
    customer_phone: str = Field(..., pattern=r"^[0-9+\-\s()]{8,20}$", description="客户电话")
    category: Optional[str] = Field(None, max_length=100, description="房型分类")
    room_id: Optional[int] = Field(None, description="指定房间（可空，由前台分配）")
    variant_id: Optional[int] = Field(None, description="价格方案ID")
    booking_date: date_type = Field(..., description="预订日期")
    start_time: time = Field(..., description="开始时间")
    end_time: time = Field(..., description="结束时间")
    room_price: Decimal = Field(Decimal("0"), ge=0, description="每小时房费")
    payment_method: str = Field(..., max_length=50, description="支付方式")
    payment_proof_url: Optional[str] = Field(None, max_length=500, description="付款凭证地址")


class RequestStatusChange(BaseModel):
    """前台处理申请"""
    status: Literal["confirmed", "check-in", "check-out", "cancelled"] = Field(..., description="目标状态")
    admin_notes: Optional[str] = Field(None, max_length=500, description="前台备注")


class AssignRoomRequest(BaseModel):
    room_id: int = Field(..., description="房间ID")


class BookingRequestResponse(BaseModel):
    """预订申请响应模型"""
    id: int
    store_id: int
    customer_id: Optional[int] = None
    customer_name: str
    customer_phone: str
    category: Optional[str] = None
    room_id: Optional[int] = None
    room_name: Optional[str] = None
    variant_id: Optional[int] = None
    booking_date: date_type
    start_time: time
    end_time: time
    duration: Decimal
    room_price: Decimal
    total_price: Decimal
    payment_method: str
    payment_proof_url: Optional[str] = None
    status: str
    admin_notes: Optional[str] = None
    booking_id: Optional[int] = None
    processed_by: Optional[int] = None
    processed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

    @field_serializer('start_time', 'end_time')
    def serialize_time(self, value: time) -> Optional[str]:
        return format_time(value)

    @field_serializer('processed_at', 'created_at')
    def serialize_datetime(self, dt: datetime) -> Optional[str]:
        return format_datetime_local(dt)
