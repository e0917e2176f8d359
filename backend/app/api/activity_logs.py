"""
活动日志API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from sqlalchemy import desc
from typing import List, Optional
from app.api.auth import ensure_store_access, get_current_user
from app.db.database import get_db
from app.models.activity_log import ActivityLog
from app.models.user import User
from app.schemas.log import ActivityLogResponse

router = APIRouter(prefix="/api/activity-logs", tags=["活动日志"])


@router.get("", response_model=List[ActivityLogResponse])
def get_activity_logs(
    store_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    action_type: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """门店活动日志，最新的在前"""
    ensure_store_access(current_user, store_id)
    query = db.query(ActivityLog).filter(ActivityLog.store_id == store_id)
    if action_type:
        query = query.filter(ActivityLog.action_type == action_type)
    if entity_type:
        query = query.filter(ActivityLog.entity_type == entity_type)
    if entity_id:
        query = query.filter(ActivityLog.entity_id == entity_id)
    return query.order_by(desc(ActivityLog.created_at), desc(ActivityLog.id)).offset(skip).limit(limit).all()
