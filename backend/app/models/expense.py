"""
支出模型
"""
from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Text, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.database import Base

# 未分类支出在报表中的名称
UNCATEGORIZED = "Lainnya"


class ExpenseCategory(Base):
    """支出分类表（按门店维护）"""
    __tablename__ = "expense_categories"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True, comment="门店ID")
    name = Column(String(100), nullable=False, comment="分类名称")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")

    __table_args__ = (
        UniqueConstraint("store_id", "name", name="uq_expense_categories_store_name"),
    )


class Expense(Base):
    """支出表"""
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True, comment="门店ID")
    bid = Column(String(30), index=True, comment="支出编号")
    description = Column(Text, nullable=False, comment="支出说明")
    amount = Column(Numeric(12, 2), nullable=False, comment="支出金额")
    category = Column(String(100), comment="分类名称（删除分类后保留原名称）")
    payment_method = Column(String(50), comment="支付方式")
    payment_proof_url = Column(String(500), comment="付款凭证地址")
    expense_date = Column(Date, nullable=False, index=True, comment="支出日期")
    created_by = Column(Integer, ForeignKey("users.id"), comment="创建人ID")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, comment="更新时间")

    creator = relationship("User")

    __table_args__ = (
        Index("idx_expenses_store_date", "store_id", "expense_date"),
    )
