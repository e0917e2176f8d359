"""
活动日志写入：订阅业务事件，写入 activity_logs
日志写入失败只记录到应用日志，不影响业务操作
"""
import logging

from app.core.events import (
    BOOKING_CHANGED, BOOKING_REQUEST_CHANGED, DEPOSIT_CHANGED, LEDGER_CHANGED, BookingEvent, EventBus,
)
from app.db.database import SessionLocal
from app.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)


def record_activity(event: BookingEvent) -> None:
    db = SessionLocal()
    try:
        db.add(ActivityLog(
            store_id=event.store_id,
            user_id=event.user_id,
            user_name=event.user_name or "Unknown",
            user_role=event.user_role or "user",
            action_type=event.action,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            description=event.description,
        ))
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("记录活动日志失败: %s", event.description)
    finally:
        db.close()


def register(bus: EventBus) -> None:
    for topic in (BOOKING_CHANGED, BOOKING_REQUEST_CHANGED, DEPOSIT_CHANGED, LEDGER_CHANGED):
        bus.subscribe(topic, record_activity)
