"""
数据库初始化脚本
创建所有表，并在没有管理员时按环境变量创建一个
"""
import logging
import os

from app.api.auth import get_password_hash
from app.core.logging import setup_logging
from app.db.database import engine, Base, SessionLocal
from app.models import User

logger = logging.getLogger(__name__)


def init_db():
    """初始化数据库，创建所有表"""
    Base.metadata.create_all(bind=engine)
    logger.info("数据库表创建完成")

    db = SessionLocal()
    try:
        if db.query(User).filter(User.role == "admin").first():
            return
        username = os.getenv("ADMIN_USERNAME", "admin")
        password = os.getenv("ADMIN_PASSWORD")
        if not password:
            logger.warning("未设置 ADMIN_PASSWORD，跳过创建管理员")
            return
        db.add(User(username=username, name="Administrator", password_hash=get_password_hash(password), role="admin"))
        db.commit()
        logger.info("已创建管理员 %s", username)
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    init_db()
