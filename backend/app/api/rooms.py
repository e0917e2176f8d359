"""
房间管理API
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from app.api.auth import ensure_store_access, get_current_user
from app.db.database import get_db
from app.models.booking import Booking
from app.models.room import ROOM_STATUSES, Room
from app.models.room_daily_status import RoomDailyStatus, DAILY_STATUS_CLEAN
from app.models.room_variant import RoomVariant
from app.models.user import User
from app.schemas.room import (
    RoomCreate, RoomUpdate, RoomResponse,
    VariantCreate, VariantUpdate, VariantResponse,
    DailyStatusUpdate, DailyStatusResponse
)
from app.services import pricing

router = APIRouter(prefix="/api/rooms", tags=["房间管理"])


def get_room_or_404(db: Session, room_id: int, current_user: User) -> Room:
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room:
        raise HTTPException(status_code=404, detail="房间不存在")
    ensure_store_access(current_user, room.store_id)
    return room


def get_variant_or_404(db: Session, variant_id: int, current_user: User) -> RoomVariant:
    variant = db.query(RoomVariant).filter(RoomVariant.id == variant_id).first()
    if not variant:
        raise HTTPException(status_code=404, detail="价格方案不存在")
    ensure_store_access(current_user, variant.store_id)
    return variant


@router.get("", response_model=List[RoomResponse])
def get_rooms(
    store_id: int,
    category: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """获取门店房间列表"""
    ensure_store_access(current_user, store_id)
    if status and status not in ROOM_STATUSES:
        raise HTTPException(status_code=400, detail=f"无效的房间状态: {status}")
    query = db.query(Room).filter(Room.store_id == store_id)
    if category:
        query = query.filter(Room.category == category)
    if status:
        query = query.filter(Room.status == status)
    return query.order_by(Room.name).all()


@router.post("", response_model=RoomResponse)
def create_room(room: RoomCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """创建房间"""
    ensure_store_access(current_user, room.store_id)
    if db.query(Room).filter(Room.store_id == room.store_id, Room.name == room.name).first():
        raise HTTPException(status_code=400, detail="房间名称已存在")
    db_room = Room(**room.model_dump())
    db.add(db_room)
    db.commit()
    db.refresh(db_room)
    return db_room


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(
    room_id: int,
    request: RoomUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """更新房间（名称、分类、状态）"""
    room = get_room_or_404(db, room_id, current_user)

    # 检查名称是否重复
    if request.name and request.name != room.name:
        existing_room = db.query(Room).filter(
            Room.store_id == room.store_id,
            Room.name == request.name
        ).first()
        if existing_room:
            raise HTTPException(status_code=400, detail="房间名称已存在")

    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(room, field, value)

    db.commit()
    db.refresh(room)
    return room


@router.delete("/{room_id}")
def delete_room(room_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """
    删除房间
    只能删除没有预订记录的房间，有记录的房间请改为停用
    """
    room = get_room_or_404(db, room_id, current_user)

    booking_count = db.query(Booking).filter(Booking.room_id == room_id).count()
    if booking_count > 0:
        raise HTTPException(
            status_code=400,
            detail="该房间已有预订记录，无法删除。建议将状态改为 Tidak Aktif。"
        )

    db.query(RoomDailyStatus).filter(RoomDailyStatus.room_id == room_id).delete()
    db.delete(room)
    db.commit()
    return {"message": f"房间 {room.name} 已删除"}


@router.get("/{room_id}/variants", response_model=List[VariantResponse])
def get_variants(
    room_id: int,
    day: Optional[date] = Query(None, alias="date", description="只返回该日期可见的方案"),
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """获取房间的价格方案"""
    room = get_room_or_404(db, room_id, current_user)
    variants = room.variants
    if not include_inactive:
        variants = [v for v in variants if v.is_active]
    if day is not None:
        variants = [v for v in variants if pricing.variant_visible_on(v.visibility_type, v.visible_days, day)]
    return sorted(variants, key=lambda v: (v.price, v.id))


@router.post("/{room_id}/variants", response_model=VariantResponse)
def create_variant(
    room_id: int,
    variant: VariantCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """新增价格方案"""
    room = get_room_or_404(db, room_id, current_user)
    db_variant = RoomVariant(**variant.model_dump(), room_id=room.id, store_id=room.store_id)
    db.add(db_variant)
    db.commit()
    db.refresh(db_variant)
    return db_variant


@router.put("/variants/{variant_id}", response_model=VariantResponse)
def update_variant(
    variant_id: int,
    variant_update: VariantUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """更新价格方案（已有预订按新价格重新计算金额）"""
    db_variant = get_variant_or_404(db, variant_id, current_user)
    update_data = variant_update.model_dump(exclude_unset=True)
    if update_data.get("visibility_type", db_variant.visibility_type) == "specific_days":
        days = update_data.get("visible_days", db_variant.visible_days)
        if not days:
            raise HTTPException(status_code=400, detail="指定星期可见时必须选择星期")
    for field, value in update_data.items():
        setattr(db_variant, field, value)
    db.commit()
    db.refresh(db_variant)
    return db_variant


@router.delete("/variants/{variant_id}")
def delete_variant(variant_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """删除价格方案，已被预订使用的方案只停用"""
    db_variant = get_variant_or_404(db, variant_id, current_user)
    if db.query(Booking).filter(Booking.variant_id == variant_id).count() > 0:
        db_variant.is_active = False
        db.commit()
        return {"message": "该方案已被预订使用，已停用"}
    db.delete(db_variant)
    db.commit()
    return {"message": "价格方案已删除"}


@router.get("/daily-status", response_model=List[DailyStatusResponse])
def get_daily_status(
    store_id: int,
    day: date = Query(..., alias="date", description="日期"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """门店所有房间某天的清洁状态，未记录的视为 Bersih"""
    ensure_store_access(current_user, store_id)
    rooms = db.query(Room).filter(Room.store_id == store_id).order_by(Room.name).all()
    records = {
        r.room_id: r for r in db.query(RoomDailyStatus).filter(
            RoomDailyStatus.room_id.in_([room.id for room in rooms]),
            RoomDailyStatus.date == day
        ).all()
    } if rooms else {}

    result = []
    for room in rooms:
        record = records.get(room.id)
        if record:
            result.append(DailyStatusResponse.model_validate(record))
        else:
            result.append(DailyStatusResponse(room_id=room.id, date=day, status=DAILY_STATUS_CLEAN))
    return result


@router.put("/{room_id}/daily-status", response_model=DailyStatusResponse)
def set_daily_status(
    room_id: int,
    request: DailyStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """设置房间某天的清洁状态"""
    room = get_room_or_404(db, room_id, current_user)
    record = db.query(RoomDailyStatus).filter(
        RoomDailyStatus.room_id == room.id,
        RoomDailyStatus.date == request.date
    ).first()
    if record:
        record.status = request.status
        record.updated_by = current_user.id
    else:
        record = RoomDailyStatus(room_id=room.id, date=request.date, status=request.status, updated_by=current_user.id)
        db.add(record)
    db.commit()
    db.refresh(record)
    return record
