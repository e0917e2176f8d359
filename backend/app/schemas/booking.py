"""
预订相关的Pydantic模型
"""
from pydantic import BaseModel, Field, field_serializer
from typing import Optional, List, Literal
from datetime import datetime, date as date_type, time
from decimal import Decimal

from app.schemas.common import format_datetime_local, format_time
from app.schemas.deposit import DepositInput


class BookingProductItem(BaseModel):
    """预订商品明细"""
    product_id: Optional[int] = Field(None, description="商品ID（手工录入的商品可为空）")
    name: str = Field(..., min_length=1, max_length=100, description="商品名称")
    price: Decimal = Field(..., gt=0, description="单价")
    quantity: int = Field(..., gt=0, description="数量")


class BookingBase(BaseModel):
    """预订基础模型"""
    booking_type: Literal["walk_in", "ota"] = Field("walk_in", description="预订类型：walk_in=到店, ota=OTA平台")
    customer_name: str = Field(..., description="客户姓名", max_length=100)
    phone: Optional[str] = Field("", description="电话（OTA可为空）", max_length=20)
    reference_no: str = Field("", description="付款参考号", max_length=50)
    reference_no_2: Optional[str] = Field(None, description="第二笔付款参考号", max_length=50)
    room_id: int = Field(..., description="房间ID")
    variant_id: Optional[int] = Field(None, description="价格方案ID（到店预订必填）")
    date: date_type = Field(..., description="营业日期；多晚入住时为入住日期")
    start_time: Optional[time] = Field(None, description="开始时间（按小时预订必填）")
    end_time: Optional[time] = Field(None, description="结束时间（按小时预订必填）")
    check_out_date: Optional[date_type] = Field(None, description="退房日期；填写即为多晚入住")
    status: Literal["BO", "CI", "CO", "BATAL"] = Field("BO", description="状态")
    price: Optional[Decimal] = Field(None, ge=0, description="实付金额，为空时按应付总额自动填写")
    payment_method: Optional[str] = Field(None, max_length=50, description="支付方式")
    dual_payment: bool = Field(False, description="是否分两笔支付")
    price_2: Optional[Decimal] = Field(None, ge=0, description="第二笔金额，为空时按差额自动填写")
    payment_method_2: Optional[str] = Field(None, max_length=50, description="第二笔支付方式")
    payment_proof_url: Optional[str] = Field(None, max_length=500, description="付款凭证地址")
    discount_type: Optional[Literal["percentage", "amount"]] = Field(None, description="折扣类型")
    discount_value: Decimal = Field(Decimal("0"), ge=0, description="折扣值")
    discount_applies_to: Optional[Literal["variant", "product"]] = Field(None, description="折扣对象：variant=房费, product=商品")
    note: Optional[str] = Field(None, max_length=500, description="备注")
    products: List[BookingProductItem] = Field(default_factory=list, description="商品明细")
    deposit: Optional[DepositInput] = Field(None, description="入住押金（状态为CI时可填写）")


class BookingCreate(BookingBase):
    """创建预订模型"""
    store_id: int = Field(..., description="门店ID")
    status: Literal["BO", "CI"] = Field("BO", description="新预订只能是已预订或直接入住")


class BookingUpdate(BookingBase):
    """编辑预订模型（整体替换）"""
    version: Optional[int] = Field(None, description="读取时的版本号，与当前不一致时拒绝保存")
    return_deposits: bool = Field(False, description="退房时是否同时退还房间押金")


class StatusChangeRequest(BaseModel):
    """状态变更请求"""
    status: Literal["BO", "CI", "CO", "BATAL"] = Field(..., description="目标状态")
    deposit: Optional[DepositInput] = Field(None, description="入住时收取的押金（可跳过）")
    return_deposits: bool = Field(False, description="退房时是否退还房间押金")
    version: Optional[int] = Field(None, description="读取时的版本号")


class TransitionPreview(BaseModel):
    """状态变更预检"""
    allowed: bool
    current_status: str
    target_status: str
    deposit_action: Optional[str] = Field(None, description="collect=提示收取押金, return=提示退还押金")
    active_deposit_ids: List[int] = Field(default_factory=list)


class QuoteRequest(BaseModel):
    """价格试算请求"""
    booking_type: Literal["walk_in", "ota"] = "walk_in"
    variant_id: Optional[int] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    date: Optional[date_type] = None
    check_out_date: Optional[date_type] = None
    products: List[BookingProductItem] = Field(default_factory=list)
    discount_type: Optional[Literal["percentage", "amount"]] = None
    discount_value: Decimal = Field(Decimal("0"), ge=0)
    discount_applies_to: Optional[Literal["variant", "product"]] = None
    price: Optional[Decimal] = Field(None, ge=0)
    dual_payment: bool = False
    price_2: Optional[Decimal] = Field(None, ge=0)


class PriceBreakdownResponse(BaseModel):
    """金额明细"""
    duration: Decimal
    room_subtotal: Decimal
    products_subtotal: Decimal
    discount: Decimal
    grand_total: Decimal
    price: Optional[Decimal] = None
    price_2: Optional[Decimal] = None
    total_paid: Decimal
    difference: Decimal
    is_overpayment: bool
    is_underpayment: bool
    payment_status: str
    end_time: Optional[time] = Field(None, description="试算时按方案时长推算的结束时间")
    check_out_date: Optional[date_type] = Field(None, description="试算时按方案时长推算的退房日期")

    @field_serializer('end_time')
    def serialize_time(self, value: time) -> Optional[str]:
        return format_time(value)


class AvailabilityResponse(BaseModel):
    """时段可用性"""
    available: bool
    conflict_booking_id: Optional[int] = None


class BookingProductResponse(BaseModel):
    """预订商品明细响应"""
    id: int
    product_id: Optional[int] = None
    product_name: str
    product_price: Decimal
    quantity: int
    subtotal: Decimal

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    """预订响应模型"""
    id: int
    bid: Optional[str] = None
    store_id: int
    booking_type: str
    customer_id: Optional[int] = None
    customer_name: str
    phone: Optional[str] = None
    reference_no: Optional[str] = None
    reference_no_2: Optional[str] = None
    room_id: int
    room_name: Optional[str] = None
    variant_id: Optional[int] = None
    variant_name: Optional[str] = None
    date: date_type
    start_time: time
    end_time: time
    check_out_date: Optional[date_type] = None
    duration: Decimal
    status: str
    price: Decimal
    payment_method: Optional[str] = None
    dual_payment: bool = False
    price_2: Optional[Decimal] = None
    payment_method_2: Optional[str] = None
    payment_status: Optional[str] = None
    payment_proof_url: Optional[str] = None
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = None
    discount_applies_to: Optional[str] = None
    note: Optional[str] = None
    booking_request_id: Optional[int] = None
    products: List[BookingProductResponse] = Field(default_factory=list)
    pricing: Optional[PriceBreakdownResponse] = None
    created_by: Optional[int] = None
    confirmed_by: Optional[int] = None
    confirmed_at: Optional[datetime] = None
    checked_in_by: Optional[int] = None
    checked_in_at: Optional[datetime] = None
    checked_out_by: Optional[int] = None
    checked_out_at: Optional[datetime] = None
    cancelled_by: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    version: int
    warnings: List[str] = Field(default_factory=list, description="主操作已成功但附带操作失败时的提示")
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_serializer('start_time', 'end_time')
    def serialize_time(self, value: time) -> Optional[str]:
        return format_time(value)

    @field_serializer('confirmed_at', 'checked_in_at', 'checked_out_at', 'cancelled_at', 'created_at', 'updated_at')
    def serialize_datetime(self, dt: datetime) -> Optional[str]:
        return format_datetime_local(dt)
