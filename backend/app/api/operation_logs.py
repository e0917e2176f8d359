"""
操作日志API（仅管理员）
中间件记录的写操作，用于排查谁在什么时候改了预订、房间、押金
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from sqlalchemy import case, desc, func
from typing import List, Optional
from datetime import datetime, date, timedelta

from app.api.auth import require_admin
from app.db.database import get_db
from app.models.operation_log import OperationLog
from app.schemas.log import OperationLogResponse, OperationModuleSummary

router = APIRouter(prefix="/api/operation-logs", tags=["操作日志"], dependencies=[Depends(require_admin)])


def filter_logs(query, username: Optional[str], module: Optional[str], path: Optional[str],
                failed_only: bool, start_date: Optional[date], end_date: Optional[date]):
    if username:
        query = query.filter(OperationLog.username.like(f"%{username}%"))
    if module:
        query = query.filter(OperationLog.module == module)
    if path:
        query = query.filter(OperationLog.path.like(f"{path}%"))
    if failed_only:
        query = query.filter(OperationLog.status_code >= 400)
    if start_date:
        query = query.filter(OperationLog.created_at >= datetime.combine(start_date, datetime.min.time()))
    if end_date:
        query = query.filter(OperationLog.created_at < datetime.combine(end_date + timedelta(days=1), datetime.min.time()))
    return query


@router.get("", response_model=List[OperationLogResponse])
def get_operation_logs(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=1000),
    username: Optional[str] = Query(None, description="操作人"),
    module: Optional[str] = Query(None, description="模块，如 预订管理"),
    path: Optional[str] = Query(None, description="路径前缀，如 /api/bookings/12"),
    failed_only: bool = Query(False, description="只看失败的请求（状态码 >= 400）"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db)
):
    """操作日志列表，最新的在前"""
    query = filter_logs(db.query(OperationLog), username, module, path, failed_only, start_date, end_date)
    return query.order_by(desc(OperationLog.created_at), desc(OperationLog.id)).offset(skip).limit(limit).all()


@router.get("/summary", response_model=List[OperationModuleSummary])
def get_operation_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db)
):
    """按模块统计操作次数和失败次数"""
    query = filter_logs(
        db.query(
            OperationLog.module,
            func.count(OperationLog.id),
            func.sum(case((OperationLog.status_code >= 400, 1), else_=0)),
        ),
        None, None, None, False, start_date, end_date
    )
    rows = query.group_by(OperationLog.module).order_by(OperationLog.module).all()
    return [OperationModuleSummary(module=m, total=total, failed=int(failed or 0)) for m, total, failed in rows]


@router.get("/{log_id}", response_model=OperationLogResponse)
def get_operation_log(log_id: int, db: Session = Depends(get_db)):
    log = db.query(OperationLog).filter(OperationLog.id == log_id).first()
    if not log:
        raise HTTPException(status_code=404, detail="操作日志不存在")
    return log


@router.delete("")
def clear_operation_logs(
    days: int = Query(30, ge=1, le=365, description="保留最近N天"),
    db: Session = Depends(get_db)
):
    """清理N天之前的操作日志"""
    cutoff = datetime.now() - timedelta(days=days)
    deleted_count = db.query(OperationLog).filter(OperationLog.created_at < cutoff).delete()
    db.commit()
    return {"message": f"已删除 {deleted_count} 条操作日志"}
