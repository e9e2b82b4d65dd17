from sqlalchemy import (
    Column,
    BigInteger,
    Integer,
    String,
    Text,
    TIMESTAMP,
    ForeignKey,
    CheckConstraint,
    Index,
    func,
)
from sqlalchemy.orm import relationship
from app.db.base import Base, BigIntegerPK


class Product(Base):
    """在售商品（可变）；订单只会修改它的库存"""
    __tablename__ = "products"

    id = Column(
        BigIntegerPK,
        primary_key=True,
        autoincrement=True,
    )

    name = Column(
        String(255),
        nullable=False,
        comment="商品名称",
    )

    slug = Column(
        String(255),
        nullable=False,
        comment="商品 slug",
    )

    reseller_price = Column(
        BigInteger,
        nullable=False,
        server_default="0",
        comment="分销价（最小货币单位）",
    )

    consumer_price = Column(
        BigInteger,
        nullable=False,
        server_default="0",
        comment="零售价（最小货币单位）",
    )

    stock = Column(
        Integer,
        nullable=False,
        server_default="0",
        comment="当前可售库存",
    )

    description = Column(
        Text,
        nullable=True,
        comment="商品描述",
    )

    store_id = Column(
        BigInteger,
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="店铺ID",
    )

    category_id = Column(
        BigInteger,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="分类ID",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
        onupdate=func.now(),
    )

    photos = relationship(
        "ProductPhoto",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductPhoto.id",
    )

    __table_args__ = (
        CheckConstraint(
            "stock >= 0",
            name="ck_products_stock_non_negative",
        ),
    )


class ProductPhoto(Base):
    __tablename__ = "product_photos"

    id = Column(
        BigIntegerPK,
        primary_key=True,
        autoincrement=True,
    )

    product_id = Column(
        BigInteger,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="商品ID",
    )

    url = Column(
        String(512),
        nullable=False,
        comment="图片URL",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    product = relationship("Product", back_populates="photos")


Index(
    "idx_products_name",
    Product.name,
)
