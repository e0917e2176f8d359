"""
门店模型（租户）
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.database import Base


class Store(Base):
    """门店表"""
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, comment="门店名称")
    slug = Column(String(100), nullable=False, unique=True, comment="门店标识（用于公开预订页面）")
    address = Column(String(255), comment="地址")
    is_active = Column(Boolean, default=True, comment="是否营业")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, comment="更新时间")

    # 关系
    rooms = relationship("Room", back_populates="store")

    __table_args__ = (
        Index("idx_stores_slug", "slug"),
    )
