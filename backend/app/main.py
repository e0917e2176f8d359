"""
FastAPI主应用入口
"""
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import CORS_ORIGINS
from app.core.events import event_bus
from app.core.exceptions import BookingError, SlotConflictError
from app.core.logging import setup_logging
from app.db.database import engine, Base
from app.middleware.operation_log import OperationLogMiddleware
from app.services import activity

# 导入所有模型以确保表被创建
import app.models  # noqa: F401

setup_logging()
logger = logging.getLogger(__name__)

# 创建数据库表
Base.metadata.create_all(bind=engine)

# 业务事件写入活动日志
activity.register(event_bus)

# 创建FastAPI应用
app = FastAPI(
    title="前台预订系统API",
    description="多门店房间预订、入住、退房管理后端API",
    version="1.0.0"
)

# 操作日志
app.add_middleware(OperationLogMiddleware)

# 配置CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    """业务异常统一转换为 {"detail": ...}"""
    content = {"detail": exc.message}
    if exc.code:
        content["code"] = exc.code
    if isinstance(exc, SlotConflictError) and exc.conflict_id is not None:
        content["conflict_booking_id"] = exc.conflict_id
    logger.info("%s %s 业务异常: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=content)


# 全局异常处理
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """全局异常处理器，确保所有错误都返回CORS头"""
    logger.exception("未处理的异常: %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": f"内部服务器错误: {exc}"},
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "*",
            "Access-Control-Allow-Headers": "*",
        }
    )


@app.get("/")
async def root():
    """根路径"""
    return {"message": "前台预订系统API", "version": "1.0.0"}


@app.get("/health")
async def health():
    """健康检查"""
    return {"status": "ok"}


# 注册API路由
from app.api import (  # noqa: E402
    auth, users, stores, rooms, bookings, booking_requests, deposits,
    customers, products, incomes, expenses, export, reports, activity_logs, operation_logs
)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(stores.router)
app.include_router(rooms.router)
app.include_router(bookings.router)
app.include_router(booking_requests.router)
app.include_router(deposits.router)
app.include_router(customers.router)
app.include_router(products.router)
app.include_router(incomes.router)
app.include_router(expenses.router)
app.include_router(export.router)
app.include_router(reports.router)
app.include_router(activity_logs.router)
app.include_router(operation_logs.router)
