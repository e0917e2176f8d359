"""
报表相关的Pydantic模型
"""
from pydantic import BaseModel, Field
from typing import List
from datetime import date
from decimal import Decimal


class BookingTypeSummary(BaseModel):
    """按预订类型汇总"""
    booking_type: str = Field(..., description="walk_in / ota")
    count: int = Field(0, description="预订数（不含已取消）")
    revenue: Decimal = Field(Decimal("0"), description="应付总额合计")


class PaymentMethodSummary(BaseModel):
    """按支付方式汇总（分笔支付分别计入）"""
    payment_method: str
    amount: Decimal = Decimal("0")


class SalesSummaryResponse(BaseModel):
    """销售汇总"""
    start_date: date
    end_date: date
    booking_count: int = Field(0, description="有效预订数")
    cancelled_count: int = Field(0, description="已取消预订数")
    room_revenue: Decimal = Field(Decimal("0"), description="房费合计")
    products_revenue: Decimal = Field(Decimal("0"), description="商品合计")
    discount_total: Decimal = Field(Decimal("0"), description="折扣合计")
    revenue: Decimal = Field(Decimal("0"), description="应付总额合计")
    total_paid: Decimal = Field(Decimal("0"), description="实收合计")
    by_type: List[BookingTypeSummary] = []
    by_payment_method: List[PaymentMethodSummary] = []


class CategorySummary(BaseModel):
    """按支出分类汇总"""
    category: str
    total: Decimal = Decimal("0")
    count: int = 0


class IncomeExpenseResponse(BaseModel):
    """收支汇总"""
    start_date: date
    end_date: date
    total_incomes: Decimal = Field(Decimal("0"), description="收入合计")
    total_expenses: Decimal = Field(Decimal("0"), description="支出合计")
    net_profit: Decimal = Field(Decimal("0"), description="收入 - 支出")
    income_count: int = 0
    expense_count: int = 0
    expense_categories: List[CategorySummary] = []
    expense_payment_methods: List[PaymentMethodSummary] = []
    income_payment_methods: List[PaymentMethodSummary] = []


class DailyOccupancy(BaseModel):
    """某天的入住率"""
    date: date
    occupied: int = Field(0, description="有预订的房间数")
    total_rooms: int = 0
    percentage: int = Field(0, description="入住率（%，四舍五入）")


class RoomOccupancy(BaseModel):
    """单个房间在区间内的预订情况"""
    room_id: int
    room_name: str
    booking_count: int = 0
    revenue: Decimal = Field(Decimal("0"), description="应付总额合计")


class OccupancyResponse(BaseModel):
    """入住率报表"""
    start_date: date
    end_date: date
    total_rooms: int = 0
    average_occupancy: int = 0
    days: List[DailyOccupancy] = []
    rooms: List[RoomOccupancy] = []
