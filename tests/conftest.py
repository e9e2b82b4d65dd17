"""测试配置和 fixtures"""
import pytest
from types import SimpleNamespace
from unittest.mock import Mock
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from redis import Redis

import app.models  # noqa: F401  注册全部模型
from app.db.base import Base
from app.models import (
    Category,
    Product,
    ProductPhoto,
    ShippingAddress,
    Store,
)

USER_ID = 1
OTHER_USER_ID = 2


@pytest.fixture
def db_engine():
    """SQLite 内存库（StaticPool 让 TestClient 的工作线程共享同一连接）"""
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    """创建测试数据库会话"""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def mock_redis():
    """创建模拟 Redis 客户端"""
    redis_mock = Mock(spec=Redis)
    redis_mock.get.return_value = None
    redis_mock.setex.return_value = True
    redis_mock.ping.return_value = True
    return redis_mock


@pytest.fixture
def seed(db_session):
    """示例数据：用户 1 有地址 A，用户 2 有地址 B；商品 P 零售价 120000、库存 50"""
    store = Store(user_id=OTHER_USER_ID, name="Toko Maju", photo_url="https://cdn.example.com/toko.png")
    category = Category(name="Elektronik")
    db_session.add_all([store, category])
    db_session.flush()

    product = Product(
        name="Headset Bluetooth",
        slug="headset-bluetooth",
        reseller_price=100000,
        consumer_price=120000,
        stock=50,
        description="Headset nirkabel",
        store_id=store.id,
        category_id=category.id,
        photos=[
            ProductPhoto(url="https://cdn.example.com/p1.jpg"),
            ProductPhoto(url="https://cdn.example.com/p2.jpg"),
        ],
    )
    cheap = Product(
        name="Kabel USB",
        slug="kabel-usb",
        reseller_price=15000,
        consumer_price=20000,
        stock=1,
        description=None,
        store_id=store.id,
        category_id=None,
    )
    address = ShippingAddress(
        user_id=USER_ID,
        title="Rumah",
        recipient_name="Budi",
        phone="08123456789",
        detail="Jl. Merdeka No. 1",
    )
    other_address = ShippingAddress(
        user_id=OTHER_USER_ID,
        title="Kantor",
        recipient_name="Sari",
        phone="08987654321",
        detail="Jl. Sudirman No. 2",
    )
    db_session.add_all([product, cheap, address, other_address])
    db_session.commit()

    return SimpleNamespace(
        user_id=USER_ID,
        other_user_id=OTHER_USER_ID,
        store_id=store.id,
        category_id=category.id,
        product_id=product.id,
        cheap_product_id=cheap.id,
        address_id=address.id,
        other_address_id=other_address.id,
    )


def stock_of(db, product_id):
    """直接从数据库读取库存（绕过 identity map）"""
    return db.execute(select(Product.stock).where(Product.id == product_id)).scalar_one()


def count_rows(db, model):
    return len(db.execute(select(model)).scalars().all())


def fetch(db, model, pk):
    """清空 identity map 后重新加载对象"""
    db.expire_all()
    return db.get(model, pk)
