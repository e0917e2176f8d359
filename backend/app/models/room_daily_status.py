"""
房间每日清洁状态模型
"""
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from app.db.database import Base

DAILY_STATUS_CLEAN = "Bersih"
DAILY_STATUS_DIRTY = "Kotor"


class RoomDailyStatus(Base):
    """房间每日清洁状态表，每个房间每天一条"""
    __tablename__ = "room_daily_status"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True, comment="房间ID")
    date = Column(Date, nullable=False, comment="日期")
    status = Column(String(20), nullable=False, comment="状态：Bersih=干净, Kotor=待清洁")
    updated_by = Column(Integer, comment="更新人ID")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, comment="更新时间")

    __table_args__ = (
        UniqueConstraint("room_id", "date", name="uq_room_daily_status_room_date"),
    )
