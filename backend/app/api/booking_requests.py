"""
预订申请API
客户通过门店标识提交申请；前台分配房间、确认、入住、退房或取消
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from app.api.auth import ensure_store_access, get_current_user
from app.db.database import get_db
from app.models.booking_request import BookingRequest
from app.models.store import Store
from app.models.user import User
from app.schemas.booking_request import (
    BookingRequestCreate, BookingRequestResponse, RequestStatusChange, AssignRoomRequest
)
from app.schemas.room import RoomResponse
from app.services import booking_requests

router = APIRouter(prefix="/api/booking-requests", tags=["预订申请"])


def build_request_response(request: BookingRequest) -> BookingRequestResponse:
    response = BookingRequestResponse.model_validate(request)
    response.booking_id = request.booking.id if request.booking else None
    return response


def get_request_or_404(db: Session, request_id: int, current_user: User) -> BookingRequest:
    request = db.query(BookingRequest).filter(BookingRequest.id == request_id).first()
    if not request:
        raise HTTPException(status_code=404, detail="预订申请不存在")
    ensure_store_access(current_user, request.store_id)
    return request


@router.post("/public/{store_slug}", response_model=BookingRequestResponse)
def submit_request(store_slug: str, request: BookingRequestCreate, db: Session = Depends(get_db)):
    """客户提交预订申请（无需登录）"""
    store = db.query(Store).filter(Store.slug == store_slug, Store.is_active.is_(True)).first()
    if not store:
        raise HTTPException(status_code=404, detail="门店不存在")
    return build_request_response(booking_requests.create_request(db, store.id, request))


@router.get("", response_model=List[BookingRequestResponse])
def get_requests(
    store_id: int,
    status: Optional[str] = None,
    day: Optional[date] = Query(None, alias="date", description="预订日期"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """预订申请列表"""
    ensure_store_access(current_user, store_id)
    if status and status not in booking_requests.REQUEST_STATUSES:
        raise HTTPException(status_code=400, detail=f"无效的申请状态: {status}")
    query = db.query(BookingRequest).filter(BookingRequest.store_id == store_id)
    if status:
        query = query.filter(BookingRequest.status == status)
    if day:
        query = query.filter(BookingRequest.booking_date == day)
    requests = query.order_by(BookingRequest.booking_date, BookingRequest.start_time).all()
    return [build_request_response(r) for r in requests]


@router.get("/{request_id}", response_model=BookingRequestResponse)
def get_request(request_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return build_request_response(get_request_or_404(db, request_id, current_user))


@router.get("/{request_id}/available-rooms", response_model=List[RoomResponse])
def get_available_rooms(request_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """可分配给该申请的空闲房间"""
    request = get_request_or_404(db, request_id, current_user)
    return booking_requests.available_rooms(db, request)


@router.put("/{request_id}/room", response_model=BookingRequestResponse)
def assign_room(
    request_id: int,
    body: AssignRoomRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """分配房间"""
    get_request_or_404(db, request_id, current_user)
    return build_request_response(booking_requests.assign_room(db, request_id, body.room_id))


@router.post("/{request_id}/status", response_model=BookingRequestResponse)
def change_status(
    request_id: int,
    body: RequestStatusChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """变更申请状态，确认或入住时生成预订"""
    get_request_or_404(db, request_id, current_user)
    request = booking_requests.change_status(db, request_id, body.status, current_user, body.admin_notes)
    return build_request_response(request)
