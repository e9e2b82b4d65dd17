from sqlalchemy import (
    Column,
    BigInteger,
    String,
    TIMESTAMP,
    func,
)
from app.db.base import Base, BigIntegerPK


class Store(Base):
    """店铺（toko），订单只读取其展示信息"""
    __tablename__ = "stores"

    id = Column(
        BigIntegerPK,
        primary_key=True,
        autoincrement=True,
    )

    user_id = Column(
        BigInteger,
        nullable=False,
        index=True,
        comment="店主用户ID",
    )

    name = Column(
        String(255),
        nullable=False,
        comment="店铺名称",
    )

    photo_url = Column(
        String(512),
        nullable=True,
        comment="店铺头像URL",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
