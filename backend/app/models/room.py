"""
房间模型
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.database import Base

ROOM_STATUS_ACTIVE = "Aktif"
ROOM_STATUSES = ("Aktif", "Maintenance", "Tidak Aktif")


class Room(Base):
    """房间表"""
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True, comment="门店ID")
    name = Column(String(100), nullable=False, comment="名称")
    category = Column(String(100), comment="房型分类")
    status = Column(String(20), default=ROOM_STATUS_ACTIVE, nullable=False, comment="状态：Aktif=可用, Maintenance=维修, Tidak Aktif=停用")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, comment="更新时间")

    # 关系
    store = relationship("Store", back_populates="rooms")
    variants = relationship("RoomVariant", back_populates="room", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="room")
    deposits = relationship("RoomDeposit", back_populates="room")

    __table_args__ = (
        UniqueConstraint("store_id", "name", name="uq_rooms_store_name"),
        Index("idx_rooms_store_id", "store_id"),
    )
