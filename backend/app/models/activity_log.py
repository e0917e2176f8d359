"""
活动日志模型
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, Index
from sqlalchemy.sql import func
from app.db.database import Base


class ActivityLog(Base):
    """活动日志表：记录预订、入住、退房等业务动作"""
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, index=True, comment="门店ID")
    user_id = Column(Integer, index=True, comment="用户ID")
    user_name = Column(String(100), nullable=False, default="Unknown", comment="用户名")
    user_role = Column(String(20), default="user", comment="用户角色")
    action_type = Column(String(20), nullable=False, index=True, comment="动作：created、updated、deleted、check-in、check-out、confirm、cancel")
    entity_type = Column(String(50), nullable=False, comment="实体类型：Booking、Booking Request、Deposit 等")
    entity_id = Column(Integer, comment="实体ID")
    description = Column(Text, nullable=False, comment="描述")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True, comment="创建时间")

    __table_args__ = (
        Index("idx_activity_logs_store_created", "store_id", "created_at"),
    )
