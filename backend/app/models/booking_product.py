"""
预订商品明细模型
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.database import Base


class BookingProduct(Base):
    """预订商品明细表，编辑预订时整体替换"""
    __tablename__ = "booking_products"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True, comment="预订ID")
    product_id = Column(Integer, ForeignKey("products.id"), comment="商品ID（手工录入的商品为空）")
    product_name = Column(String(100), nullable=False, comment="商品名称")
    product_price = Column(Numeric(12, 2), nullable=False, comment="单价")
    quantity = Column(Integer, nullable=False, comment="数量")
    subtotal = Column(Numeric(12, 2), nullable=False, comment="小计")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")

    # 关系
    booking = relationship("Booking", back_populates="products")
    product = relationship("Product")

    __table_args__ = (
        Index("idx_booking_products_booking_id", "booking_id"),
    )
