"""
操作日志中间件
记录所有写操作的API请求
"""
import logging
import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.orm import Session
from app.api.auth import lookup_token
from app.db.database import SessionLocal
from app.models.operation_log import OperationLog

logger = logging.getLogger(__name__)


class OperationLogMiddleware(BaseHTTPMiddleware):
    """操作日志中间件"""

    # 不需要记录日志的路径
    EXCLUDED_PATHS = [
        "/",
        "/health",
        "/docs",
        "/redoc",
        "/openapi.json",
        "/login",
        "/logout",
        "/userInfo",
    ]

    # 模块映射：根据路径判断操作模块
    MODULE_MAP = {
        "/api/bookings": "预订管理",
        "/api/booking-requests": "预订申请",
        "/api/deposits": "押金管理",
        "/api/rooms": "房间管理",
        "/api/customers": "客户管理",
        "/api/products": "商品管理",
        "/api/incomes": "收支管理",
        "/api/expenses": "收支管理",
        "/api/stores": "门店管理",
        "/api/users": "用户管理",
        "/api/export": "数据导出",
        "/api/reports": "统计报表",
        "/api/operation-logs": "操作日志",
    }

    # 操作类型映射：根据HTTP方法判断操作类型
    ACTION_MAP = {
        "POST": "创建",
        "PUT": "更新",
        "DELETE": "删除",
        "PATCH": "修改",
    }

    # 路径中的关键字对应更具体的操作
    PATH_ACTIONS = [
        ("/status", "变更状态"),
        ("/return-all", "退还房间押金"),
        ("/return", "退还押金"),
        ("/daily-status", "设置清洁状态"),
        ("/variants", "价格方案"),
        ("/room", "分配房间"),
        ("/quote", "价格试算"),
        ("/public/", "提交预订申请"),
    ]

    @staticmethod
    def resolve_user(request: Request):
        """从Bearer token取得用户"""
        auth_header = request.headers.get("authorization", "")
        if auth_header.lower().startswith("bearer "):
            data = lookup_token(auth_header[7:].strip())
            if data:
                return data["user_id"], data["username"]
        return None, "未知用户"

    def resolve_action(self, method: str, path: str) -> str:
        for keyword, action in self.PATH_ACTIONS:
            if keyword in path:
                return action
        return self.ACTION_MAP.get(method, method)

    async def dispatch(self, request: Request, call_next):
        """处理请求并记录日志"""
        method = request.method
        path = request.url.path

        # 只记录写操作；跳过OPTIONS预检请求
        if method not in self.ACTION_MAP or path in self.EXCLUDED_PATHS:
            return await call_next(request)

        start_time = time.time()
        ip_address = request.client.host if request.client else None
        user_id, username = self.resolve_user(request)

        # 获取请求体
        request_data = None
        body = await request.body()
        if body:
            request_data = body.decode("utf-8", errors="replace")[:2000]  # 限制长度

        response = await call_next(request)
        execution_time = int((time.time() - start_time) * 1000)

        module = "未知模块"
        for path_prefix, module_name in self.MODULE_MAP.items():
            if path.startswith(path_prefix):
                module = module_name
                break

        db: Session = SessionLocal()
        try:
            db.add(OperationLog(
                user_id=user_id,
                username=username,
                action=self.resolve_action(method, path),
                module=module,
                method=method,
                path=path,
                ip_address=ip_address,
                request_data=request_data,
                status_code=response.status_code,
                execution_time=execution_time
            ))
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("记录操作日志失败: %s %s", method, path)
        finally:
            db.close()

        logger.info("%s %s -> %s (%sms)", method, path, response.status_code, execution_time)
        return response
