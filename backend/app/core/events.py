"""
进程内事件总线

预订发生变化（创建、修改、状态流转、删除）后发布事件，
订阅者（活动日志等）据此做后续处理。发布在事务提交之后进行。
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

BOOKING_CHANGED = "booking.changed"
BOOKING_REQUEST_CHANGED = "booking_request.changed"
DEPOSIT_CHANGED = "deposit.changed"
LEDGER_CHANGED = "ledger.changed"


@dataclass
class BookingEvent:
    """业务事件"""
    topic: str
    action: str  # created / updated / deleted / check-in / check-out / confirm / cancel
    entity_type: str
    entity_id: Optional[int]
    store_id: Optional[int]
    description: str
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    user_role: Optional[str] = None
    extra: dict = field(default_factory=dict)


Handler = Callable[[BookingEvent], None]


class EventBus:
    """简单的发布/订阅"""

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {}

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """订阅主题，返回取消订阅函数"""
        self._handlers.setdefault(topic, []).append(handler)

        def unsubscribe():
            if handler in self._handlers.get(topic, []):
                self._handlers[topic].remove(handler)

        return unsubscribe

    def publish(self, event: BookingEvent) -> None:
        for handler in list(self._handlers.get(event.topic, [])):
            try:
                handler(event)
            except Exception:
                # 订阅者失败不影响已提交的业务操作
                logger.exception("事件处理失败: topic=%s handler=%r", event.topic, handler)

    def clear(self) -> None:
        self._handlers.clear()


event_bus = EventBus()
