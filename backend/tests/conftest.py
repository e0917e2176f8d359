"""
测试夹具：内存SQLite + TestClient
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api import auth  # noqa: E402
from app.db.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.middleware import operation_log  # noqa: E402
from app.models import Product, Room, RoomVariant, Store, User  # noqa: E402
from app.services import activity  # noqa: E402

BOOKING_DAY = date(2030, 1, 15)
PASSWORD = "secret123"


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(autouse=True)
def log_sessions(session_factory, monkeypatch):
    """中间件和活动日志自己开会话，也指向测试库"""
    monkeypatch.setattr(operation_log, "SessionLocal", session_factory)
    monkeypatch.setattr(activity, "SessionLocal", session_factory)


@pytest.fixture
def db(session_factory):
    # 夹具对象在提交后仍可直接读取属性
    session = session_factory(expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seed(db):
    """一个门店、管理员、前台、三个房间（其中一个维修中）和一个按小时的价格方案"""
    store = Store(name="Kost Melati", slug="melati", address="Jl. Melati 1")
    db.add(store)
    db.flush()

    admin = User(username="admin", name="Admin", password_hash=auth.get_password_hash(PASSWORD), role="admin")
    staff = User(username="staff", name="Dewi", password_hash=auth.get_password_hash(PASSWORD),
                 role="staff", store_id=store.id)
    room_a = Room(store_id=store.id, name="A1", category="Standard")
    room_b = Room(store_id=store.id, name="A2", category="Standard")
    room_m = Room(store_id=store.id, name="B1", category="Deluxe", status="Maintenance")
    db.add_all([admin, staff, room_a, room_b, room_m])
    db.flush()

    hourly = RoomVariant(room_id=room_a.id, store_id=store.id, variant_name="Per Jam",
                         price=Decimal("50000"), duration=Decimal("1"), booking_duration_type="hours")
    hourly_b = RoomVariant(room_id=room_b.id, store_id=store.id, variant_name="Per Jam",
                           price=Decimal("60000"), duration=Decimal("1"), booking_duration_type="hours")
    monthly = RoomVariant(room_id=room_a.id, store_id=store.id, variant_name="Bulanan",
                          price=Decimal("1500000"), duration=Decimal("1"),
                          booking_duration_type="months", booking_duration_value=1)
    coffee = Product(store_id=store.id, name="Kopi", unit="gelas", price=Decimal("15000"))
    db.add_all([hourly, hourly_b, monthly, coffee])
    db.commit()

    return {
        "store": store,
        "admin": admin,
        "staff": staff,
        "room_a": room_a,
        "room_b": room_b,
        "room_m": room_m,
        "hourly": hourly,
        "hourly_b": hourly_b,
        "monthly": monthly,
        "coffee": coffee,
    }


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    auth.tokens.clear()


def login(client, username: str) -> dict:
    response = client.post("/login", json={"username": username, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest.fixture
def staff_headers(client, seed):
    return login(client, "staff")


@pytest.fixture
def admin_headers(client, seed):
    return login(client, "admin")


def booking_payload(seed, **overrides) -> dict:
    payload = {
        "store_id": seed["store"].id,
        "booking_type": "walk_in",
        "customer_name": "Budi",
        "phone": "081234567890",
        "room_id": seed["room_a"].id,
        "variant_id": seed["hourly"].id,
        "date": BOOKING_DAY.isoformat(),
        "start_time": "13:00",
        "end_time": "16:00",
        "payment_method": "cash",
    }
    payload.update(overrides)
    return payload
