"""订单查询服务（读路径）"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.core.exceptions import OrderForbidden, OrderNotFound
from app.models.address import ShippingAddress
from app.models.category import Category
from app.models.order import LineItem, Order
from app.models.store import Store
from app.schemas.order import (
    MAX_ID,
    AddressView,
    CategoryView,
    LineItemView,
    OrderListView,
    OrderView,
    PhotoView,
    ProductView,
    StoreView,
)
from app.services.snapshot_service import load_photo_urls

logger = logging.getLogger(__name__)


class OrderReader:
    """订单查询服务类

    只返回当前用户自己的订单；明细展示数据来自下单时的商品快照，
    店铺和分类按快照里的ID关联当前记录。
    """

    def __init__(
        self,
        db: Session,
        default_limit: int = settings.ORDER_DEFAULT_LIMIT,
        max_limit: int = settings.ORDER_MAX_LIMIT,
    ):
        self.db = db
        self.default_limit = default_limit
        self.max_limit = max_limit

    def normalize_paging(self, limit: int, page: int) -> Tuple[int, int]:
        if limit <= 0:
            limit = self.default_limit
        limit = min(limit, self.max_limit)
        if page <= 0:
            page = 1
        # OFFSET 不能超过 BIGINT
        page = min(page, MAX_ID // limit)
        return limit, page

    def list_orders(self, user_id: int, limit: int, page: int) -> OrderListView:
        """分页查询用户订单（按ID倒序）"""
        limit, page = self.normalize_paging(limit, page)

        orders = self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.user_id == user_id)
            .order_by(Order.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        ).scalars().all()

        return OrderListView(data=self._build_views(orders), page=page, limit=limit)

    def get_order(self, order_id: int, user_id: int) -> OrderView:
        """查询订单详情

        订单不存在 -> OrderNotFound；不属于当前用户 -> OrderForbidden。
        """
        owner_id = self.db.execute(
            select(Order.user_id).where(Order.id == order_id)
        ).scalar_one_or_none()

        if owner_id is None:
            raise OrderNotFound(f"订单 {order_id} 不存在")
        if owner_id != user_id:
            logger.warning(f"越权访问订单: order_id={order_id}, user_id={user_id}")
            raise OrderForbidden()

        order = self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.id == order_id)
        ).scalar_one()

        return self._build_views([order])[0]

    def _build_views(self, orders: Iterable[Order]) -> List[OrderView]:
        orders = list(orders)
        if not orders:
            return []

        items = [item for order in orders for item in order.items]
        addresses = self._load_map(ShippingAddress, {o.shipping_address_id for o in orders})
        stores = self._load_map(
            Store,
            {i.store_id for i in items} | {i.snapshot.store_id for i in items},
        )
        categories = self._load_map(
            Category,
            {i.snapshot.category_id for i in items if i.snapshot.category_id is not None},
        )

        views = []
        for order in orders:
            address = addresses.get(order.shipping_address_id)
            views.append(OrderView(
                id=order.id,
                total_price=order.total_price,
                invoice_code=order.invoice_code,
                payment_method=order.payment_method,
                shipping_address=AddressView.model_validate(address) if address else None,
                items=[self._build_item_view(i, stores, categories) for i in order.items],
                created_at=order.created_at,
            ))
        return views

    @staticmethod
    def _build_item_view(
        item: LineItem,
        stores: Dict[int, Store],
        categories: Dict[int, Category],
    ) -> LineItemView:
        snapshot = item.snapshot
        product_store = _store_view(stores.get(snapshot.store_id))
        category = categories.get(snapshot.category_id) if snapshot.category_id is not None else None

        product = ProductView(
            id=snapshot.product_id,
            name=snapshot.name,
            slug=snapshot.slug,
            reseller_price=snapshot.reseller_price,
            consumer_price=snapshot.consumer_price,
            description=snapshot.description,
            store=product_store,
            category=CategoryView.model_validate(category) if category else None,
            photos=[
                PhotoView(product_id=snapshot.product_id, url=url)
                for url in load_photo_urls(snapshot.photos_json)
            ],
        )
        return LineItemView(
            product=product,
            store=_store_view(stores.get(item.store_id)),
            quantity=item.quantity,
            line_total=item.line_total,
        )

    def _load_map(self, model, ids) -> Dict[int, object]:
        """按ID批量加载引用数据"""
        if not ids:
            return {}
        rows = self.db.execute(select(model).where(model.id.in_(ids))).scalars().all()
        return {row.id: row for row in rows}


def _store_view(store: Optional[Store]) -> Optional[StoreView]:
    return StoreView.model_validate(store) if store else None
