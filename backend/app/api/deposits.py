"""
押金管理API
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional

from app.api.auth import ensure_store_access, get_current_user
from app.core.config import business_now
from app.core.events import DEPOSIT_CHANGED, BookingEvent, event_bus
from app.db.database import get_db
from app.models.booking import Booking
from app.models.room import Room
from app.models.room_deposit import RoomDeposit, DEPOSIT_ACTIVE, DEPOSIT_RETURNED
from app.models.user import User
from app.schemas.deposit import DepositCreate, DepositResponse
from app.services import lifecycle

router = APIRouter(prefix="/api/deposits", tags=["押金管理"])


def publish_deposit(deposit: RoomDeposit, action: str, description: str, user: User) -> None:
    event_bus.publish(BookingEvent(
        topic=DEPOSIT_CHANGED,
        action=action,
        entity_type="Deposit",
        entity_id=deposit.id,
        store_id=deposit.store_id,
        description=description,
        user_id=user.id,
        user_name=user.display_name,
        user_role=user.role,
    ))


def describe(deposit: RoomDeposit) -> str:
    if deposit.deposit_type == "uang":
        return f"现金押金 {deposit.amount}"
    return f"证件押金 {deposit.identity_type}（{deposit.identity_owner_name or ''}）"


@router.get("", response_model=List[DepositResponse])
def get_deposits(
    store_id: int,
    room_id: Optional[int] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """押金列表，可按房间、状态筛选"""
    ensure_store_access(current_user, store_id)
    query = db.query(RoomDeposit).filter(RoomDeposit.store_id == store_id)
    if room_id:
        query = query.filter(RoomDeposit.room_id == room_id)
    if status:
        query = query.filter(RoomDeposit.status == status)
    return query.order_by(RoomDeposit.created_at.desc(), RoomDeposit.id.desc()).all()


@router.post("", response_model=DepositResponse)
def create_deposit(
    request: DepositCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """登记押金"""
    room = db.query(Room).filter(Room.id == request.room_id).first()
    if not room:
        raise HTTPException(status_code=404, detail="房间不存在")
    ensure_store_access(current_user, room.store_id)

    owner_name = None
    if request.booking_id:
        booking = db.query(Booking).filter(Booking.id == request.booking_id).first()
        if not booking or booking.room_id != room.id:
            raise HTTPException(status_code=400, detail="预订不属于该房间")
        owner_name = booking.customer_name

    deposit = lifecycle.build_deposit(room.store_id, room.id, request.booking_id, owner_name, request, current_user)
    db.add(deposit)
    db.commit()
    db.refresh(deposit)

    publish_deposit(deposit, "created", f"房间 {room.name} 收取{describe(deposit)}", current_user)
    return deposit


@router.post("/{deposit_id}/return", response_model=DepositResponse)
def return_deposit(
    deposit_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """退还单笔押金"""
    deposit = db.query(RoomDeposit).filter(RoomDeposit.id == deposit_id).first()
    if not deposit:
        raise HTTPException(status_code=404, detail="押金记录不存在")
    ensure_store_access(current_user, deposit.store_id)
    if deposit.status != DEPOSIT_ACTIVE:
        raise HTTPException(status_code=400, detail="该押金已退还")

    deposit.status = DEPOSIT_RETURNED
    deposit.returned_by = current_user.id
    deposit.returned_at = business_now()
    db.commit()
    db.refresh(deposit)

    publish_deposit(deposit, "updated", f"退还{describe(deposit)}", current_user)
    return deposit


@router.post("/rooms/{room_id}/return-all", response_model=List[DepositResponse])
def return_room_deposits(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """退还房间所有未退押金"""
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room:
        raise HTTPException(status_code=404, detail="房间不存在")
    ensure_store_access(current_user, room.store_id)

    deposits = lifecycle.return_deposits(db, room.id, current_user, business_now())
    db.commit()
    for deposit in deposits:
        db.refresh(deposit)
        publish_deposit(deposit, "updated", f"房间 {room.name} 退还{describe(deposit)}", current_user)
    return deposits
