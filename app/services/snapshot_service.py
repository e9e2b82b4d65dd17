"""商品快照服务（下单时固化商品信息）"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import ProductNotFound
from app.models.product import Product
from app.models.product_snapshot import ProductSnapshot

logger = logging.getLogger(__name__)


def dump_photo_urls(urls: Iterable[str]) -> str:
    return json.dumps(list(urls), ensure_ascii=False)


def load_photo_urls(raw: Optional[str]) -> List[str]:
    """解析快照里的图片URL列表，数据损坏时返回空列表"""
    if not raw:
        return []
    try:
        urls = json.loads(raw)
    except ValueError:
        logger.warning(f"快照图片数据无法解析: {raw[:100]}")
        return []
    if not isinstance(urls, list):
        return []
    return [u for u in urls if isinstance(u, str)]


class SnapshotService:
    """商品快照服务类"""

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> Optional[Product]:
        """查询在售商品（连同图片）"""
        stmt = (
            select(Product)
            .options(selectinload(Product.photos))
            .where(Product.id == product_id)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def snapshot(self, product_id: int) -> ProductSnapshot:
        """为指定商品生成快照（未入库）

        商品不存在时抛出 ProductNotFound，调用方应在写库之前终止下单。
        """
        product = self.get_product(product_id)
        if product is None:
            raise ProductNotFound(f"商品 {product_id} 不存在")
        return self.build_snapshot(product)

    @staticmethod
    def snapshot_fields(product: Product) -> Dict[str, Any]:
        return {
            "product_id": product.id,
            "name": product.name,
            "slug": product.slug,
            "reseller_price": product.reseller_price,
            "consumer_price": product.consumer_price,
            "description": product.description,
            "store_id": product.store_id,
            "category_id": product.category_id,
            "photos_json": dump_photo_urls(p.url for p in product.photos),
        }

    @classmethod
    def build_snapshot(cls, product: Product) -> ProductSnapshot:
        return ProductSnapshot(**cls.snapshot_fields(product))
