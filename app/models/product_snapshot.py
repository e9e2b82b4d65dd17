from sqlalchemy import (
    Column,
    BigInteger,
    String,
    Text,
    TIMESTAMP,
    func,
)
from app.db.base import Base, BigIntegerPK


class ProductSnapshot(Base):
    """下单时的商品快照（log_produk）

    只插入不更新；product_id 只是来源记录，不建外键，
    商品后续被修改或删除都不影响历史订单。
    """
    __tablename__ = "product_snapshots"

    id = Column(
        BigIntegerPK,
        primary_key=True,
        autoincrement=True,
    )

    product_id = Column(
        BigInteger,
        nullable=False,
        index=True,
        comment="来源商品ID（仅供追溯）",
    )

    name = Column(
        String(255),
        nullable=False,
        comment="商品名称快照",
    )

    slug = Column(
        String(255),
        nullable=False,
        comment="商品 slug 快照",
    )

    reseller_price = Column(
        BigInteger,
        nullable=False,
        comment="分销价快照",
    )

    consumer_price = Column(
        BigInteger,
        nullable=False,
        comment="零售价快照",
    )

    description = Column(
        Text,
        nullable=True,
        comment="商品描述快照",
    )

    store_id = Column(
        BigInteger,
        nullable=False,
        comment="店铺ID快照",
    )

    category_id = Column(
        BigInteger,
        nullable=True,
        comment="分类ID快照",
    )

    photos_json = Column(
        Text,
        nullable=False,
        server_default="[]",
        comment="图片URL列表（JSON 数组）",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
