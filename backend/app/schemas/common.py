"""
通用的Pydantic工具
"""
from datetime import datetime, timezone, time
from typing import Optional

from app.core.config import BUSINESS_TZ


def format_datetime_local(dt: Optional[datetime]) -> Optional[str]:
    """将UTC时间转换为营业时区的时间字符串"""
    if dt is None:
        return None
    # 如果时间没有时区信息，假设它是 UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    local_dt = dt.astimezone(BUSINESS_TZ)
    return local_dt.strftime("%Y-%m-%d %H:%M:%S")


def format_time(value: Optional[time]) -> Optional[str]:
    """时间只保留到分钟：14:00"""
    if value is None:
        return None
    return value.strftime("%H:%M")
