"""
房间时段可用性检查

纯函数，不访问数据库。调用方负责取出候选预订（同一房间、未取消、排除自身），
再用这里的函数判断新时段是否与其中任意一条重叠。

时间换算成分钟偏移后按左闭右开区间比较：[a,b) 与 [c,d) 重叠当且仅当 a < d 且 c < b。
营业日从 SERVICE_DAY_START_HOUR 点开始，可以跨过午夜：
- 结束时间早于开始时间视为跨午夜，结束时间 +24 小时；
- 整段落在凌晨（开始早于营业开始、结束不晚于营业开始）视为当前营业日的凌晨，整体 +24 小时。
"""
from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Iterable, Optional, Protocol, Tuple

from app.core.config import SERVICE_DAY_START_HOUR

MINUTES_PER_DAY = 24 * 60


class Occupancy(Protocol):
    """占用房间的记录：预订或已分配房间的预订申请"""
    date: date
    start_time: time
    end_time: time
    check_out_date: Optional[date]


@dataclass
class Slot:
    """待检查的时段"""
    date: date
    start_time: time
    end_time: time
    check_out_date: Optional[date] = None


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def normalize_interval(start: time, end: time, day_start_hour: int = SERVICE_DAY_START_HOUR) -> Tuple[int, int]:
    """把营业日内的时段换算为分钟区间"""
    a, b = to_minutes(start), to_minutes(end)
    day_start = day_start_hour * 60
    if b < a:
        b += MINUTES_PER_DAY
    elif a < day_start and b <= day_start:
        a += MINUTES_PER_DAY
        b += MINUTES_PER_DAY
    return a, b


def intervals_overlap(a: int, b: int, c: int, d: int) -> bool:
    """[a,b) 与 [c,d) 是否重叠，端点相接不算重叠"""
    return a < d and c < b


def times_overlap(start: time, end: time, other_start: time, other_end: time,
                  day_start_hour: int = SERVICE_DAY_START_HOUR) -> bool:
    a, b = normalize_interval(start, end, day_start_hour)
    c, d = normalize_interval(other_start, other_end, day_start_hour)
    return intervals_overlap(a, b, c, d)


def occupied_dates(item: Occupancy) -> Tuple[date, date]:
    """占用的日期区间 [入住日, 退房日)，按小时预订占用当天"""
    if item.check_out_date:
        return item.date, item.check_out_date
    return item.date, item.date + timedelta(days=1)


def date_ranges_overlap(start: date, end: date, other_start: date, other_end: date) -> bool:
    return start < other_end and other_start < end


def find_conflict(slot: Occupancy, existing: Iterable[Occupancy],
                  day_start_hour: int = SERVICE_DAY_START_HOUR):
    """
    返回与 slot 冲突的第一条记录，没有冲突返回 None

    - 两条都是按小时预订且同一天：按时段比较
    - 任意一方是多晚入住：按日期区间比较
    """
    slot_range = occupied_dates(slot)
    for item in existing:
        if slot.check_out_date or item.check_out_date:
            if date_ranges_overlap(*slot_range, *occupied_dates(item)):
                return item
        elif item.date == slot.date:
            if times_overlap(slot.start_time, slot.end_time, item.start_time, item.end_time, day_start_hour):
                return item
    return None


def is_slot_available(slot: Occupancy, existing: Iterable[Occupancy]) -> bool:
    return find_conflict(slot, existing) is None


def window_changed(old: Occupancy, old_room_id: int, new: Occupancy, new_room_id: int) -> bool:
    """编辑预订时房间、日期、时段是否有变化；没有变化则跳过冲突检查"""
    return (
        old_room_id != new_room_id
        or old.date != new.date
        or old.check_out_date != new.check_out_date
        or (old.start_time.hour, old.start_time.minute) != (new.start_time.hour, new.start_time.minute)
        or (old.end_time.hour, old.end_time.minute) != (new.end_time.hour, new.end_time.minute)
    )
