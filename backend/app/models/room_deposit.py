"""
房间押金模型
"""
from sqlalchemy import Column, Integer, String, Numeric, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.database import Base

DEPOSIT_ACTIVE = "active"
DEPOSIT_RETURNED = "returned"


class RoomDeposit(Base):
    """房间押金表：入住时收取，退房时退还"""
    __tablename__ = "room_deposits"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True, comment="门店ID")
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True, comment="房间ID")
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="SET NULL"), comment="关联预订ID")
    deposit_type = Column(String(20), nullable=False, comment="押金类型：uang=现金, identitas=证件")
    amount = Column(Numeric(12, 2), comment="现金押金金额")
    identity_type = Column(String(20), comment="抵押证件类型")
    identity_owner_name = Column(String(100), comment="证件持有人")
    photo_url = Column(String(500), comment="照片地址")
    notes = Column(Text, comment="备注")
    status = Column(String(20), default=DEPOSIT_ACTIVE, nullable=False, index=True, comment="状态：active=押金中, returned=已退还")
    created_by = Column(Integer, comment="收取人ID")
    returned_by = Column(Integer, comment="退还人ID")
    returned_at = Column(DateTime(timezone=True), comment="退还时间")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, comment="更新时间")

    # 关系
    room = relationship("Room", back_populates="deposits")

    __table_args__ = (
        Index("idx_room_deposits_room_status", "room_id", "status"),
    )
