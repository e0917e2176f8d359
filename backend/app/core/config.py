"""
系统配置
所有配置项都从环境变量读取，未设置时使用默认值
"""
import os
from datetime import datetime, timezone, timedelta, date

# 数据库连接
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./database.db")

# 营业时区，默认 UTC+7（WIB）
BUSINESS_TZ_OFFSET_HOURS = int(os.getenv("BUSINESS_TZ_OFFSET_HOURS", "7"))
BUSINESS_TZ = timezone(timedelta(hours=BUSINESS_TZ_OFFSET_HOURS))

# 营业日从几点开始，早于该时间的时段视为前一营业日的凌晨
SERVICE_DAY_START_HOUR = int(os.getenv("SERVICE_DAY_START_HOUR", "9"))

# 登录令牌有效期（小时）
TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", "12"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# 允许的跨域来源，逗号分隔
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


def business_now() -> datetime:
    """当前营业时区时间"""
    return datetime.now(BUSINESS_TZ)


def business_today() -> date:
    """当前营业日期（按营业时区的日历日期）"""
    return business_now().date()
