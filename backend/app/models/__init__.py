"""
数据库模型
"""
from app.models.store import Store
from app.models.user import User
from app.models.room import Room
from app.models.room_variant import RoomVariant
from app.models.room_daily_status import RoomDailyStatus
from app.models.room_deposit import RoomDeposit
from app.models.customer import Customer
from app.models.product import Product
from app.models.booking import Booking
from app.models.booking_product import BookingProduct
from app.models.booking_request import BookingRequest
from app.models.income import Income, IncomeProduct
from app.models.expense import Expense, ExpenseCategory
from app.models.activity_log import ActivityLog
from app.models.operation_log import OperationLog

__all__ = [
    "Store",
    "User",
    "Room",
    "RoomVariant",
    "RoomDailyStatus",
    "RoomDeposit",
    "Customer",
    "Product",
    "Booking",
    "BookingProduct",
    "BookingRequest",
    "Income",
    "IncomeProduct",
    "Expense",
    "ExpenseCategory",
    "ActivityLog",
    "OperationLog",
]
