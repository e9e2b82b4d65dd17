"""订单服务实现（下单写路径）"""

from dataclasses import dataclass
import logging
import secrets
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    AddressNotFound,
    AddressNotOwned,
    EmptyOrder,
    InternalError,
    InvalidPaymentMethod,
    InvalidQuantity,
    ProductNotFound,
)
from app.db.session import unit_of_work
from app.models.address import ShippingAddress
from app.models.order import LineItem, Order
from app.models.product_snapshot import ProductSnapshot
from app.schemas.order import OrderLineRequest
from app.services.snapshot_service import SnapshotService
from app.services.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


def generate_invoice_code(prefix: str = "INV") -> str:
    """发票号：前缀 + 秒级时间戳 + 6 位随机数"""
    return f"{prefix}-{int(time.time())}-{secrets.randbelow(10 ** 6):06d}"


def _is_invoice_conflict(exc: IntegrityError) -> bool:
    return "invoice_code" in str(exc.orig)


def stock_demand(pending: Sequence["PendingLine"]) -> List[Tuple[int, int]]:
    """按商品合并扣减数量，并按商品ID升序排列

    并发订单以相同顺序锁行，避免 [A, B] 与 [B, A] 互相等待造成死锁。
    """
    totals: Dict[int, int] = {}
    for line in pending:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
    return sorted(totals.items())


@dataclass
class PendingLine:
    """已校验、待入库的订单明细"""
    product_id: int
    quantity: int
    line_total: int
    store_id: int
    snapshot: Dict[str, Any]


class OrderService:
    """订单聚合服务类"""

    def __init__(
        self,
        db: Session,
        snapshot_service: Optional[SnapshotService] = None,
        stock_ledger: Optional[StockLedger] = None,
        invoice_prefix: str = settings.INVOICE_PREFIX,
        max_attempts: int = settings.INVOICE_MAX_ATTEMPTS,
    ):
        self.db = db
        self.snapshot_service = snapshot_service or SnapshotService(db)
        self.stock_ledger = stock_ledger or StockLedger(db)
        self.invoice_prefix = invoice_prefix
        self.max_attempts = max_attempts

    def create_order(
        self,
        user_id: int,
        shipping_address_id: int,
        payment_method: str,
        lines: Sequence[OrderLineRequest],
    ) -> int:
        """创建订单，返回订单ID

        校验全部通过后才写库；订单、快照、明细和库存扣减在同一事务内，
        任一步失败整体回滚。
        """
        payment_method = (payment_method or "").strip()
        if not payment_method:
            raise InvalidPaymentMethod()
        if not lines:
            raise EmptyOrder()
        # 纯参数校验先于地址校验：数量非法时一律返回 invalid_input，且不访问数据库
        for line in lines:
            if line.quantity <= 0:
                raise InvalidQuantity(f"商品 {line.product_id} 的购买数量必须大于 0")

        address = self.db.get(ShippingAddress, shipping_address_id)
        if address is None:
            raise AddressNotFound(f"收货地址 {shipping_address_id} 不存在")
        if address.user_id != user_id:
            raise AddressNotOwned()

        pending = self._prepare_lines(lines)
        total_price = sum(line.line_total for line in pending)

        for attempt in range(1, self.max_attempts + 1):
            invoice_code = generate_invoice_code(self.invoice_prefix)
            try:
                order_id = self._persist(
                    user_id, shipping_address_id, payment_method,
                    invoice_code, total_price, pending,
                )
            except IntegrityError as e:
                if not _is_invoice_conflict(e):
                    logger.error(f"创建订单失败: user_id={user_id}, error={str(e)}")
                    raise InternalError("订单保存失败") from e
                logger.warning(f"发票号冲突，重新生成: {invoice_code} (第 {attempt} 次)")
                continue
            except SQLAlchemyError as e:
                logger.error(f"创建订单失败: user_id={user_id}, error={str(e)}")
                raise InternalError("订单保存失败") from e

            logger.info(
                f"创建订单成功: order_id={order_id}, invoice={invoice_code}, "
                f"user_id={user_id}, total={total_price}"
            )
            return order_id

        raise InternalError("发票号生成冲突，请稍后重试")

    def _prepare_lines(self, lines: Sequence[OrderLineRequest]) -> List[PendingLine]:
        pending = []
        for line in lines:
            product = self.snapshot_service.get_product(line.product_id)
            if product is None:
                raise ProductNotFound(f"商品 {line.product_id} 不存在")

            snapshot = self.snapshot_service.snapshot_fields(product)
            pending.append(PendingLine(
                product_id=product.id,
                quantity=line.quantity,
                line_total=snapshot["consumer_price"] * line.quantity,
                store_id=product.store_id,
                snapshot=snapshot,
            ))
        return pending

    def _persist(
        self,
        user_id: int,
        shipping_address_id: int,
        payment_method: str,
        invoice_code: str,
        total_price: int,
        pending: List[PendingLine],
    ) -> int:
        # ORM 对象每次重试都重新构造，回滚后的旧对象不可复用
        with unit_of_work(self.db):
            order = Order(
                user_id=user_id,
                shipping_address_id=shipping_address_id,
                total_price=total_price,
                invoice_code=invoice_code,
                payment_method=payment_method,
            )
            self.db.add(order)
            self.db.flush()

            snapshots = [ProductSnapshot(**line.snapshot) for line in pending]
            self.db.add_all(snapshots)
            self.db.flush()

            self.db.add_all([
                LineItem(
                    order_id=order.id,
                    snapshot_id=snapshot.id,
                    store_id=line.store_id,
                    quantity=line.quantity,
                    line_total=line.line_total,
                )
                for line, snapshot in zip(pending, snapshots)
            ])
            self.db.flush()

            for product_id, quantity in stock_demand(pending):
                self.stock_ledger.decrement(product_id, quantity)

        return order.id
