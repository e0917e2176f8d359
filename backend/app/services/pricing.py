"""
价格计算

房费、商品小计、折扣、应付总额、分笔付款核对。
全部是纯函数，创建/编辑预订、排班表展示、导出都调用这里，保证同一预订在各处算出的金额一致。
"""
import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence, Tuple, Union

ZERO = Decimal("0")
CENT = Decimal("0.01")

DURATION_HOURS = "hours"
DURATION_DAYS = "days"
DURATION_WEEKS = "weeks"
DURATION_MONTHS = "months"

DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_AMOUNT = "amount"
DISCOUNT_ON_ROOM = "variant"
DISCOUNT_ON_PRODUCTS = "product"

BOOKING_TYPE_OTA = "ota"

PAYMENT_PAID = "lunas"
PAYMENT_UNPAID = "belum_lunas"


@dataclass(frozen=True)
class PriceBreakdown:
    """一笔预订的金额明细"""
    room_subtotal: Decimal
    products_subtotal: Decimal
    discount: Decimal
    grand_total: Decimal


@dataclass(frozen=True)
class PaymentReconciliation:
    """实付与应付的差额，仅作提示，不阻止保存"""
    total_paid: Decimal
    difference: Decimal

    @property
    def is_different(self) -> bool:
        return self.difference != 0

    @property
    def is_overpayment(self) -> bool:
        return self.difference > 0

    @property
    def is_underpayment(self) -> bool:
        return self.difference < 0


def _money(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_duration(start: time, end: time) -> Decimal:
    """按小时计的时长，结束时间早于开始时间视为跨午夜"""
    minutes = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
    if minutes < 0:
        minutes += 24 * 60
    return (Decimal(minutes) / Decimal(60)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_nights(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def room_subtotal(variant_price, duration, duration_type: Optional[str] = DURATION_HOURS) -> Decimal:
    """房费 = 单价 × 时长；月租方案的价格已是整期价格，不再乘晚数"""
    if variant_price is None:
        return ZERO
    if duration_type == DURATION_MONTHS:
        return _money(variant_price)
    duration = Decimal(str(duration or 0))
    if duration <= 0:
        return ZERO
    return _money(Decimal(str(variant_price)) * duration)


def products_subtotal(items: Iterable[Tuple[object, int]]) -> Decimal:
    """商品小计：Σ 单价 × 数量"""
    total = ZERO
    for unit_price, quantity in items:
        total += Decimal(str(unit_price)) * int(quantity)
    return _money(total)


def calculate_discount(room_amount: Decimal, products_amount: Decimal,
                       discount_type: Optional[str], discount_value,
                       applies_to: Optional[str]) -> Decimal:
    """
    折扣只作用于房费或商品其中之一
    百分比按目标金额计算，固定金额直接扣减；结果不小于0，也不超过目标金额
    """
    value = Decimal(str(discount_value or 0))
    if not discount_type or value <= 0:
        return ZERO

    target = room_amount if (applies_to or DISCOUNT_ON_ROOM) == DISCOUNT_ON_ROOM else products_amount
    if discount_type == DISCOUNT_PERCENTAGE:
        discount = target * value / Decimal(100)
    else:
        discount = value
    return _money(min(max(discount, ZERO), target))


def calculate_grand_total(room_amount: Decimal, products_amount: Decimal, discount: Decimal) -> Decimal:
    return max(ZERO, _money(room_amount + products_amount - discount))


def quote_booking(*, variant_price=None, duration=0, duration_type: Optional[str] = DURATION_HOURS,
                  products: Sequence[Tuple[object, int]] = (), discount_type: Optional[str] = None,
                  discount_value=0, discount_applies_to: Optional[str] = None,
                  booking_type: Optional[str] = None, manual_price=None) -> PriceBreakdown:
    """计算一笔预订的金额明细；OTA 预订的房费为手工录入的金额"""
    if booking_type == BOOKING_TYPE_OTA:
        room_amount = _money(manual_price)
    else:
        room_amount = room_subtotal(variant_price, duration, duration_type)
    products_amount = products_subtotal(products)
    discount = calculate_discount(room_amount, products_amount, discount_type, discount_value, discount_applies_to)
    return PriceBreakdown(
        room_subtotal=room_amount,
        products_subtotal=products_amount,
        discount=discount,
        grand_total=calculate_grand_total(room_amount, products_amount, discount),
    )


def income_total(amount=None, products: Sequence[Tuple[object, int]] = (),
                 discount_type: Optional[str] = None, discount_value=0) -> Decimal:
    """收入金额：有商品明细时按商品小计，否则按手工金额，再扣折扣"""
    subtotal = products_subtotal(products) if products else _money(amount)
    discount = calculate_discount(subtotal, ZERO, discount_type, discount_value, DISCOUNT_ON_ROOM)
    return calculate_grand_total(subtotal, ZERO, discount)


def reconcile_payment(grand_total: Decimal, price, price_2=None, dual_payment: bool = False) -> PaymentReconciliation:
    total_paid = _money(price) + (_money(price_2) if dual_payment else ZERO)
    return PaymentReconciliation(total_paid=total_paid, difference=total_paid - _money(grand_total))


def autofill_payments(grand_total: Decimal, price, price_2, dual_payment: bool,
                      booking_type: Optional[str] = None) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    """
    补全未填写的付款金额，客户端明确传入的值不会被覆盖
    - 不分笔：未填写的实付金额 = 应付总额（OTA 除外）
    - 分笔：未填写的第二笔 = 应付总额 - 第一笔（差额为负时不补）
    """
    price = None if price is None else _money(price)
    price_2 = None if price_2 is None else _money(price_2)

    if not dual_payment:
        if price is None and booking_type != BOOKING_TYPE_OTA:
            price = _money(grand_total)
        return price, None

    if price_2 is None:
        remainder = _money(grand_total) - (price or ZERO)
        if remainder >= 0:
            price_2 = remainder
    return price, price_2


def payment_status(grand_total: Decimal, price, price_2=None, dual_payment: bool = False) -> str:
    paid = reconcile_payment(grand_total, price, price_2, dual_payment).total_paid
    return PAYMENT_PAID if grand_total > 0 and paid >= grand_total else PAYMENT_UNPAID


def format_price(value: Union[int, Decimal, str]) -> str:
    """12500000 -> '12.500.000'"""
    digits = re.sub(r"\D", "", str(int(Decimal(str(value)))))
    return re.sub(r"\B(?=(\d{3})+(?!\d))", ".", digits)


def parse_price(text: str) -> int:
    """'12.500.000' -> 12500000，空字符串视为0"""
    digits = re.sub(r"\D", "", text or "")
    return int(digits) if digits else 0


def js_weekday(day: date) -> int:
    """0=周日 … 6=周六"""
    return (day.weekday() + 1) % 7


def variant_visible_on(visibility_type: Optional[str], visible_days: Optional[Sequence[int]], day: date) -> bool:
    """按星期判断价格方案当天是否可选"""
    weekday = js_weekday(day)
    if not visibility_type or visibility_type == "all":
        return True
    if visibility_type == "weekdays":
        return 1 <= weekday <= 5
    if visibility_type == "weekends":
        return weekday in (0, 6)
    if visibility_type == "specific_days" and visible_days:
        return weekday in visible_days
    return True


def add_months(value: date, months: int) -> date:
    """加自然月，目标月份没有该日时取月末"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def booking_end_date(start: Union[date, datetime], duration_type: Optional[str], duration_value: Optional[int]):
    """根据方案的时长单位推算结束日期"""
    value = duration_value or 1
    if duration_type == DURATION_MONTHS:
        return add_months(start, value)
    if duration_type == DURATION_WEEKS:
        return start + timedelta(days=7 * value)
    if duration_type == DURATION_DAYS:
        return start + timedelta(days=value)
    if isinstance(start, datetime):
        return start + timedelta(hours=value)
    return start


def end_time_after(start: time, hours) -> time:
    """开始时间加上方案时长得到结束时间（对24小时取模）"""
    total = start.hour * 60 + start.minute + int(Decimal(str(hours)) * 60)
    total %= 24 * 60
    return time(total // 60, total % 60)
