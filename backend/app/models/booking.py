"""
预订模型
"""
from sqlalchemy import Column, Integer, String, Numeric, Boolean, Date, Time, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.database import Base


class Booking(Base):
    """预订表"""
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True, comment="门店ID")
    bid = Column(String(30), unique=True, comment="预订编号")
    booking_type = Column(String(10), default="walk_in", nullable=False, comment="预订类型：walk_in=到店, ota=OTA平台")

    # 客户
    customer_id = Column(Integer, ForeignKey("customers.id"), comment="客户ID")
    customer_name = Column(String(100), nullable=False, comment="客户姓名")
    phone = Column(String(20), comment="电话")
    reference_no = Column(String(50), default="", comment="付款参考号")
    reference_no_2 = Column(String(50), comment="第二笔付款参考号")

    # 房间与时段
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True, comment="房间ID")
    variant_id = Column(Integer, ForeignKey("room_variants.id"), comment="价格方案ID")
    date = Column(Date, nullable=False, index=True, comment="营业日期（多晚入住时为入住日期）")
    start_time = Column(Time, nullable=False, comment="开始时间")
    end_time = Column(Time, nullable=False, comment="结束时间")
    check_out_date = Column(Date, comment="退房日期（仅多晚入住）")
    duration = Column(Numeric(8, 2), nullable=False, comment="时长：小时数或晚数")

    status = Column(String(10), default="BO", nullable=False, index=True, comment="状态：BO=已预订, CI=已入住, CO=已退房, BATAL=已取消")

    # 金额
    price = Column(Numeric(12, 2), nullable=False, default=0, comment="实付金额")
    payment_method = Column(String(50), comment="支付方式")
    dual_payment = Column(Boolean, default=False, comment="是否分两笔支付")
    price_2 = Column(Numeric(12, 2), comment="第二笔实付金额")
    payment_method_2 = Column(String(50), comment="第二笔支付方式")
    payment_status = Column(String(20), default="belum_lunas", comment="付款状态：lunas=已付清, belum_lunas=未付清")
    payment_proof_url = Column(String(500), comment="付款凭证地址")
    discount_type = Column(String(20), comment="折扣类型：percentage、amount")
    discount_value = Column(Numeric(12, 2), default=0, comment="折扣值")
    discount_applies_to = Column(String(10), comment="折扣对象：variant=房费, product=商品")
    note = Column(Text, comment="备注")

    booking_request_id = Column(Integer, ForeignKey("booking_requests.id"), unique=True, comment="来源预订申请ID")

    # 审计
    created_by = Column(Integer, comment="创建人ID")
    confirmed_by = Column(Integer, comment="确认人ID")
    confirmed_at = Column(DateTime(timezone=True), comment="确认时间")
    checked_in_by = Column(Integer, comment="办理入住人ID")
    checked_in_at = Column(DateTime(timezone=True), comment="入住时间")
    checked_out_by = Column(Integer, comment="办理退房人ID")
    checked_out_at = Column(DateTime(timezone=True), comment="退房时间")
    cancelled_by = Column(Integer, comment="取消人ID")
    cancelled_at = Column(DateTime(timezone=True), comment="取消时间")

    version = Column(Integer, nullable=False, default=1, comment="版本号（乐观锁）")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, comment="更新时间")

    # 关系
    room = relationship("Room", back_populates="bookings")
    variant = relationship("RoomVariant")
    customer = relationship("Customer", back_populates="bookings")
    products = relationship("BookingProduct", back_populates="booking", cascade="all, delete-orphan")
    booking_request = relationship("BookingRequest", back_populates="booking")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_bookings_room_date", "room_id", "date"),
        Index("idx_bookings_store_date", "store_id", "date"),
    )

    @property
    def is_stay(self) -> bool:
        """是否多晚入住（日历模式）"""
        return self.check_out_date is not None
