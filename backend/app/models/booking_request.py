"""
预订申请模型（客户自助提交，等待前台处理）
"""
from sqlalchemy import Column, Integer, String, Numeric, Date, Time, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.database import Base


class BookingRequest(Base):
    """预订申请表"""
    __tablename__ = "booking_requests"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True, comment="门店ID")
    customer_id = Column(Integer, ForeignKey("customers.id"), comment="客户ID")
    customer_name = Column(String(100), nullable=False, comment="客户姓名")
    customer_phone = Column(String(20), nullable=False, comment="客户电话")
    category = Column(String(100), comment="申请的房型分类")
    room_id = Column(Integer, ForeignKey("rooms.id"), comment="分配的房间ID")
    room_name = Column(String(100), default="", comment="房间名称")
    variant_id = Column(Integer, ForeignKey("room_variants.id"), comment="价格方案ID")
    booking_date = Column(Date, nullable=False, comment="预订日期")
    start_time = Column(Time, nullable=False, comment="开始时间")
    end_time = Column(Time, nullable=False, comment="结束时间")
    duration = Column(Numeric(8, 2), nullable=False, comment="时长（小时）")
    room_price = Column(Numeric(12, 2), nullable=False, default=0, comment="房费单价")
    total_price = Column(Numeric(12, 2), nullable=False, default=0, comment="总价")
    payment_method = Column(String(50), nullable=False, comment="支付方式")
    payment_proof_url = Column(String(500), comment="付款凭证地址")
    status = Column(String(20), default="pending", nullable=False, index=True, comment="状态：pending、confirmed、check-in、check-out、cancelled")
    admin_notes = Column(Text, comment="前台备注")
    processed_by = Column(Integer, comment="处理人ID")
    processed_at = Column(DateTime(timezone=True), comment="处理时间")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, comment="更新时间")

    # 关系
    booking = relationship("Booking", back_populates="booking_request", uselist=False)

    __table_args__ = (
        Index("idx_booking_requests_store_date", "store_id", "booking_date"),
    )
