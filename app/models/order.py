from sqlalchemy import (
    Column,
    BigInteger,
    Integer,
    String,
    TIMESTAMP,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
    Index,
    func,
)
from sqlalchemy.orm import relationship
from app.db.base import Base, BigIntegerPK


class Order(Base):
    """一次结算（trx）"""
    __tablename__ = "orders"

    id = Column(
        BigIntegerPK,
        primary_key=True,
        autoincrement=True,
    )

    user_id = Column(
        BigInteger,
        nullable=False,
        comment="下单用户ID",
    )

    shipping_address_id = Column(
        BigInteger,
        ForeignKey("shipping_addresses.id"),
        nullable=False,
        comment="收货地址ID",
    )

    total_price = Column(
        BigInteger,
        nullable=False,
        comment="订单总价 = 各明细小计之和",
    )

    invoice_code = Column(
        String(64),
        nullable=False,
        comment="发票号，创建后不可修改",
    )

    payment_method = Column(
        String(50),
        nullable=False,
        comment="支付方式",
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

    items = relationship(
        "LineItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="LineItem.id",
    )

    __table_args__ = (
        UniqueConstraint(
            "invoice_code",
            name="uq_orders_invoice_code",
        ),
    )


class LineItem(Base):
    """订单明细（detail_trx）"""
    __tablename__ = "order_items"

    id = Column(
        BigIntegerPK,
        primary_key=True,
        autoincrement=True,
    )

    order_id = Column(
        BigInteger,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="订单ID",
    )

    snapshot_id = Column(
        BigInteger,
        ForeignKey("product_snapshots.id"),
        nullable=False,
        comment="商品快照ID",
    )

    # 冗余字段，以快照时的店铺为准
    store_id = Column(
        BigInteger,
        nullable=False,
        comment="店铺ID",
    )

    quantity = Column(
        Integer,
        nullable=False,
        comment="购买数量",
    )

    line_total = Column(
        BigInteger,
        nullable=False,
        comment="小计 = 零售价快照 × 数量",
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

    order = relationship("Order", back_populates="items")
    snapshot = relationship("ProductSnapshot", lazy="joined")

    __table_args__ = (
        CheckConstraint(
            "quantity > 0",
            name="ck_order_items_quantity_positive",
        ),
    )


# 用户订单列表：按用户过滤、按 id 倒序
Index(
    "idx_orders_user_id_desc",
    Order.user_id,
    Order.id.desc(),
)
