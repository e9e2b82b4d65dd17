"""库存台账：条件扣减，防止超卖"""

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.exceptions import InsufficientStock, InvalidQuantity
from app.models.product import Product

logger = logging.getLogger(__name__)


class StockLedger:

    def __init__(self, db: Session):
        self.db = db

    def decrement(self, product_id: int, quantity: int) -> None:
        """扣减库存

        单条 UPDATE ... WHERE stock >= quantity，由数据库行锁保证并发安全，
        不能拆成先查后改。影响行数不为 1（商品不存在或库存不足）时抛出 InsufficientStock。
        """
        if quantity <= 0:
            raise InvalidQuantity()

        result = self.db.execute(
            update(Product)
            .where(
                Product.id == product_id,
                Product.stock >= quantity,
            )
            .values(stock=Product.stock - quantity)
        )

        if result.rowcount != 1:
            logger.warning(f"扣减库存失败: product_id={product_id}, quantity={quantity}")
            raise InsufficientStock(product_id, quantity)

        logger.debug(f"扣减库存成功: product_id={product_id}, quantity={quantity}")
