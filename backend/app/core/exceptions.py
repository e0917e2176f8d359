"""
业务异常
服务层只抛出这些异常，由 main.py 中注册的处理器统一转换为HTTP响应
"""
from typing import Optional


class BookingError(Exception):
    """业务异常基类"""
    status_code = 400

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(BookingError):
    """输入校验失败，写库前拦截"""
    status_code = 400


class NotFoundError(BookingError):
    """记录不存在"""
    status_code = 404


class SlotConflictError(BookingError):
    """时间段冲突：房间在该时段已被预订"""
    status_code = 409

    def __init__(self, message: str = "房间在该时间段已被预订", *, conflict_id: Optional[int] = None):
        super().__init__(message, code="slot_conflict")
        self.conflict_id = conflict_id


class InvalidTransitionError(BookingError):
    """非法的状态流转"""
    status_code = 400

    def __init__(self, current: str, target: str):
        super().__init__(f"不允许的状态变更: {current} → {target}", code="invalid_transition")
        self.current = current
        self.target = target


class ConcurrencyError(BookingError):
    """记录已被其他人修改"""
    status_code = 409

    def __init__(self, message: str = "预订已被其他人修改，请刷新后重试"):
        super().__init__(message, code="stale_version")
