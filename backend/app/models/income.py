"""
收入模型
"""
from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.database import Base


class Income(Base):
    """收入表（预订以外的零售、杂项收入）"""
    __tablename__ = "incomes"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True, comment="门店ID")
    bid = Column(String(30), index=True, comment="收入编号")
    customer_name = Column(String(100), nullable=False, comment="客户姓名")
    description = Column(Text, comment="备注说明")
    amount = Column(Numeric(12, 2), nullable=False, comment="收入金额（折后）")
    discount_type = Column(String(20), comment="折扣类型：percentage、amount")
    discount_value = Column(Numeric(12, 2), default=0, comment="折扣值")
    payment_method = Column(String(50), nullable=False, comment="支付方式")
    reference_no = Column(String(50), comment="付款参考号")
    income_date = Column(Date, nullable=False, index=True, comment="收入日期")
    created_by = Column(Integer, ForeignKey("users.id"), comment="创建人ID")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, comment="更新时间")

    # 关系
    products = relationship("IncomeProduct", back_populates="income", cascade="all, delete-orphan")
    creator = relationship("User")

    __table_args__ = (
        Index("idx_incomes_store_date", "store_id", "income_date"),
    )


class IncomeProduct(Base):
    """收入商品明细表"""
    __tablename__ = "income_products"

    id = Column(Integer, primary_key=True, index=True)
    income_id = Column(Integer, ForeignKey("incomes.id", ondelete="CASCADE"), nullable=False, index=True, comment="收入ID")
    product_id = Column(Integer, ForeignKey("products.id"), comment="商品ID")
    product_name = Column(String(100), nullable=False, comment="商品名称")
    product_price = Column(Numeric(12, 2), nullable=False, comment="单价")
    quantity = Column(Integer, nullable=False, default=1, comment="数量")
    subtotal = Column(Numeric(12, 2), nullable=False, comment="小计")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")

    income = relationship("Income", back_populates="products")
