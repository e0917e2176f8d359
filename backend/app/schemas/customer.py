"""
客户相关的Pydantic模型
"""
from pydantic import BaseModel, Field, field_serializer
from typing import Optional, List
from datetime import datetime

from app.schemas.common import format_datetime_local


class CustomerBase(BaseModel):
    """客户基础模型"""
    name: str = Field(..., description="姓名", min_length=1, max_length=100)
    phone: str = Field(..., description="电话", pattern=r"^[0-9+\-\s()]{8,20}$")
    email: Optional[str] = Field(None, description="邮箱", max_length=255)
    identity_type: Optional[str] = Field(None, description="证件类型：KTP、SIM、Paspor", max_length=20)
    identity_number: Optional[str] = Field(None, description="证件号码", max_length=50)
    notes: Optional[str] = Field(None, description="备注", max_length=500)


class CustomerCreate(CustomerBase):
    """创建客户模型"""
    store_id: int = Field(..., description="门店ID")


class CustomerUpdate(BaseModel):
    """更新客户模型"""
    name: Optional[str] = Field(None, description="姓名", min_length=1, max_length=100)
    phone: Optional[str] = Field(None, description="电话", pattern=r"^[0-9+\-\s()]{8,20}$")
    email: Optional[str] = Field(None, description="邮箱", max_length=255)
    identity_type: Optional[str] = Field(None, description="证件类型", max_length=20)
    identity_number: Optional[str] = Field(None, description="证件号码", max_length=50)
    notes: Optional[str] = Field(None, description="备注", max_length=500)


class CustomerResponse(CustomerBase):
    """客户响应模型"""
    id: int
    store_id: int
    booking_count: Optional[int] = Field(0, description="预订次数")
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_serializer('created_at', 'updated_at')
    def serialize_datetime(self, dt: datetime) -> Optional[str]:
        return format_datetime_local(dt)


class CustomerBatchDelete(BaseModel):
    """批量删除客户模型"""
    ids: List[int] = Field(..., description="要删除的客户ID列表")
