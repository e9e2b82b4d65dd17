from sqlalchemy import (
    Column,
    BigInteger,
    String,
    TIMESTAMP,
    func,
)
from app.db.base import Base, BigIntegerPK


class ShippingAddress(Base):
    """用户收货地址（alamat），一个用户可以有多个"""
    __tablename__ = "shipping_addresses"

    id = Column(
        BigIntegerPK,
        primary_key=True,
        autoincrement=True,
    )

    user_id = Column(
        BigInteger,
        nullable=False,
        index=True,
        comment="所属用户ID",
    )

    title = Column(
        String(255),
        nullable=False,
        comment="地址标题",
    )

    recipient_name = Column(
        String(255),
        nullable=False,
        comment="收件人",
    )

    phone = Column(
        String(64),
        nullable=False,
        comment="收件人电话",
    )

    detail = Column(
        String(512),
        nullable=False,
        comment="详细地址",
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
