"""
房间、价格方案、清洁状态相关的Pydantic模型
"""
from pydantic import BaseModel, Field, field_serializer, model_validator
from typing import Optional, List, Literal
from datetime import datetime, date as date_type
from decimal import Decimal

from app.schemas.common import format_datetime_local


class RoomBase(BaseModel):
    """房间基础模型"""
    name: str = Field(..., description="名称", max_length=100)
    category: Optional[str] = Field(None, description="房型分类", max_length=100)
    status: Literal["Aktif", "Maintenance", "Tidak Aktif"] = Field("Aktif", description="状态")


class RoomCreate(RoomBase):
    """创建房间模型"""
    store_id: int = Field(..., description="门店ID")


class RoomUpdate(BaseModel):
    """更新房间模型"""
    name: Optional[str] = Field(None, description="名称", max_length=100)
    category: Optional[str] = Field(None, description="房型分类", max_length=100)
    status: Optional[Literal["Aktif", "Maintenance", "Tidak Aktif"]] = Field(None, description="状态")


class RoomResponse(RoomBase):
    """房间响应模型"""
    id: int
    store_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_serializer('created_at', 'updated_at')
    def serialize_datetime(self, dt: datetime) -> str:
        return format_datetime_local(dt)


class VariantBase(BaseModel):
    """价格方案基础模型"""
    variant_name: str = Field(..., description="方案名称", max_length=100)
    description: Optional[str] = Field(None, description="说明", max_length=255)
    price: Decimal = Field(..., ge=0, description="价格")
    duration: Decimal = Field(Decimal("1"), gt=0, description="默认时长（小时）")
    booking_duration_type: Literal["hours", "days", "weeks", "months"] = Field("hours", description="时长单位")
    booking_duration_value: int = Field(1, gt=0, description="时长数值")
    visibility_type: Literal["all", "weekdays", "weekends", "specific_days"] = Field("all", description="可见规则")
    visible_days: Optional[List[int]] = Field(None, description="可见的星期（0=周日 … 6=周六）")
    is_active: bool = Field(True, description="是否启用")

    @model_validator(mode="after")
    def check_visible_days(self):
        if self.visibility_type == "specific_days":
            if not self.visible_days:
                raise ValueError("指定星期可见时必须选择星期")
            if any(d < 0 or d > 6 for d in self.visible_days):
                raise ValueError("星期取值为 0-6")
        return self


class VariantCreate(VariantBase):
    pass


class VariantUpdate(BaseModel):
    variant_name: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    price: Optional[Decimal] = Field(None, ge=0)
    duration: Optional[Decimal] = Field(None, gt=0)
    booking_duration_type: Optional[Literal["hours", "days", "weeks", "months"]] = None
    booking_duration_value: Optional[int] = Field(None, gt=0)
    visibility_type: Optional[Literal["all", "weekdays", "weekends", "specific_days"]] = None
    visible_days: Optional[List[int]] = None
    is_active: Optional[bool] = None


class VariantResponse(VariantBase):
    """价格方案响应模型"""
    id: int
    room_id: int
    store_id: int

    class Config:
        from_attributes = True


class DailyStatusUpdate(BaseModel):
    """设置清洁状态"""
    date: date_type = Field(..., description="日期")
    status: Literal["Bersih", "Kotor"] = Field(..., description="Bersih=干净, Kotor=待清洁")


class DailyStatusResponse(BaseModel):
    room_id: int
    date: date_type
    status: str
    updated_by: Optional[int] = None

    class Config:
        from_attributes = True
