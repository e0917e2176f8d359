"""
客户模型
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.database import Base


class Customer(Base):
    """客户表，同一门店内按电话去重"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True, comment="门店ID")
    name = Column(String(100), nullable=False, index=True, comment="姓名")
    phone = Column(String(20), nullable=False, comment="电话")
    email = Column(String(255), comment="邮箱")
    identity_type = Column(String(20), comment="证件类型：KTP、SIM、Paspor 等")
    identity_number = Column(String(50), comment="证件号码")
    notes = Column(Text, comment="备注")
    created_by = Column(Integer, comment="创建人ID")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, comment="更新时间")

    # 关系
    bookings = relationship("Booking", back_populates="customer")

    __table_args__ = (
        UniqueConstraint("store_id", "phone", name="uq_customers_store_phone"),
        Index("idx_customers_name", "name"),
        Index("idx_customers_phone", "phone"),
    )
