"""
房间价格方案模型
"""
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.database import Base


class RoomVariant(Base):
    """房间价格方案表"""
    __tablename__ = "room_variants"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True, comment="房间ID")
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, comment="门店ID")
    variant_name = Column(String(100), nullable=False, comment="方案名称")
    description = Column(String(255), comment="说明")
    price = Column(Numeric(12, 2), nullable=False, comment="价格（按小时/晚计，月租方案为整期价格）")
    duration = Column(Numeric(6, 2), nullable=False, default=1, comment="默认时长（小时）")
    booking_duration_type = Column(String(10), default="hours", comment="时长单位：hours、days、weeks、months")
    booking_duration_value = Column(Integer, default=1, comment="时长数值")
    visibility_type = Column(String(20), default="all", comment="可见规则：all、weekdays、weekends、specific_days")
    visible_days = Column(JSON, comment="specific_days 时可见的星期（0=周日 … 6=周六）")
    is_active = Column(Boolean, default=True, comment="是否启用")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, comment="更新时间")

    # 关系
    room = relationship("Room", back_populates="variants")

    __table_args__ = (
        Index("idx_room_variants_room_id", "room_id"),
    )
