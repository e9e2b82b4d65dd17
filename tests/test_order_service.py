"""订单服务单元测试"""
import asyncio
import re
import pytest
from unittest.mock import Mock, patch
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.core.exceptions import (
    AddressNotFound,
    AddressNotOwned,
    EmptyOrder,
    InsufficientStock,
    InternalError,
    InvalidPaymentMethod,
    InvalidQuantity,
    ProductNotFound,
)
from app.db.session import unit_of_work
from app.models.order import LineItem, Order
from app.models.product import Product
from app.models.product_snapshot import ProductSnapshot
from app.schemas.order import OrderLineRequest
from app.services.order_reader import OrderReader
from app.services.order_service import OrderService, PendingLine, generate_invoice_code, stock_demand
from app.services.stock_ledger import StockLedger
from tests.conftest import count_rows, fetch, stock_of


def line(product_id, quantity):
    return OrderLineRequest(product_id=product_id, quantity=quantity)


def assert_nothing_persisted(db):
    assert count_rows(db, Order) == 0
    assert count_rows(db, LineItem) == 0
    assert count_rows(db, ProductSnapshot) == 0


class TestCreateOrder:
    """下单测试类"""

    def test_create_order_success(self, db_session, seed):
        """测试成功下单：2 件 × 120000"""
        service = OrderService(db_session)
        order_id = service.create_order(
            seed.user_id, seed.address_id, "COD", [line(seed.product_id, 2)]
        )

        order = fetch(db_session, Order, order_id)
        assert order.user_id == seed.user_id
        assert order.shipping_address_id == seed.address_id
        assert order.total_price == 240000
        assert order.payment_method == "COD"
        assert len(order.items) == 1

        item = order.items[0]
        assert item.quantity == 2
        assert item.line_total == 240000
        assert item.store_id == seed.store_id
        assert item.snapshot.consumer_price == 120000
        assert item.snapshot.product_id == seed.product_id

        assert stock_of(db_session, seed.product_id) == 48

    def test_total_is_sum_of_line_totals(self, db_session, seed):
        """测试订单总价等于各明细小计之和"""
        service = OrderService(db_session)
        order_id = service.create_order(
            seed.user_id,
            seed.address_id,
            "TRANSFER",
            [line(seed.product_id, 3), line(seed.cheap_product_id, 1)],
        )

        order = fetch(db_session, Order, order_id)
        assert order.total_price == sum(i.line_total for i in order.items)
        assert order.total_price == 3 * 120000 + 20000
        for item in order.items:
            assert item.line_total == item.snapshot.consumer_price * item.quantity
        assert count_rows(db_session, ProductSnapshot) == 2

    def test_same_product_on_two_lines(self, db_session, seed):
        """测试同一商品出现在多行时累计扣减"""
        OrderService(db_session).create_order(
            seed.user_id, seed.address_id, "COD",
            [line(seed.product_id, 1), line(seed.product_id, 4)],
        )

        assert stock_of(db_session, seed.product_id) == 45

    def test_invoice_code_format(self, db_session, seed):
        """测试发票号格式"""
        order_id = OrderService(db_session).create_order(
            seed.user_id, seed.address_id, "COD", [line(seed.product_id, 1)]
        )

        order = fetch(db_session, Order, order_id)
        assert re.fullmatch(r"INV-\d+-\d{6}", order.invoice_code)

    def test_payment_method_is_trimmed(self, db_session, seed):
        order_id = OrderService(db_session).create_order(
            seed.user_id, seed.address_id, "  COD ", [line(seed.product_id, 1)]
        )

        assert fetch(db_session, Order, order_id).payment_method == "COD"

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_quantity_rejected(self, db_session, seed, quantity):
        """测试数量非正数时拒绝下单且不写库"""
        service = OrderService(db_session)

        with pytest.raises(InvalidQuantity) as exc_info:
            service.create_order(
                seed.user_id, seed.address_id, "COD",
                [line(seed.product_id, 1), line(seed.product_id, quantity)],
            )

        assert exc_info.value.kind == "invalid_input"
        assert_nothing_persisted(db_session)
        assert stock_of(db_session, seed.product_id) == 50

    def test_invalid_quantity_checked_before_product_lookup(self, db_session, seed):
        """测试数量校验先于商品查询"""
        with pytest.raises(InvalidQuantity):
            OrderService(db_session).create_order(
                seed.user_id, seed.address_id, "COD",
                [line(9999, 1), line(seed.product_id, 0)],
            )

    def test_empty_lines_rejected(self, db_session, seed):
        with pytest.raises(EmptyOrder):
            OrderService(db_session).create_order(seed.user_id, seed.address_id, "COD", [])
        assert_nothing_persisted(db_session)

    def test_blank_payment_method_rejected(self, db_session, seed):
        with pytest.raises(InvalidPaymentMethod):
            OrderService(db_session).create_order(
                seed.user_id, seed.address_id, "   ", [line(seed.product_id, 1)]
            )

    def test_address_not_found(self, db_session, seed):
        """测试收货地址不存在"""
        with pytest.raises(AddressNotFound) as exc_info:
            OrderService(db_session).create_order(
                seed.user_id, 9999, "COD", [line(seed.product_id, 1)]
            )

        assert exc_info.value.kind == "not_found"
        assert_nothing_persisted(db_session)

    def test_address_owned_by_other_user(self, db_session, seed):
        """测试收货地址属于其他用户时返回 forbidden 且不写库"""
        with pytest.raises(AddressNotOwned) as exc_info:
            OrderService(db_session).create_order(
                seed.user_id, seed.other_address_id, "COD", [line(seed.product_id, 2)]
            )

        assert exc_info.value.kind == "forbidden"
        assert exc_info.value.status_code == 403
        assert_nothing_persisted(db_session)
        assert stock_of(db_session, seed.product_id) == 50

    def test_product_not_found(self, db_session, seed):
        """测试商品不存在时整单失败"""
        with pytest.raises(ProductNotFound):
            OrderService(db_session).create_order(
                seed.user_id, seed.address_id, "COD",
                [line(seed.product_id, 1), line(9999, 1)],
            )

        assert_nothing_persisted(db_session)
        assert stock_of(db_session, seed.product_id) == 50

    def test_insufficient_stock_rolls_back_everything(self, db_session, seed):
        """测试库存不足时订单、快照、明细和已扣库存全部回滚"""
        with pytest.raises(InsufficientStock) as exc_info:
            OrderService(db_session).create_order(
                seed.user_id, seed.address_id, "COD",
                [line(seed.product_id, 5), line(seed.cheap_product_id, 2)],
            )

        assert exc_info.value.kind == "conflict"
        assert_nothing_persisted(db_session)
        assert stock_of(db_session, seed.product_id) == 50
        assert stock_of(db_session, seed.cheap_product_id) == 1

    def test_last_unit_sold_once(self, db_session, seed):
        """测试库存为 1 时只有一单成功"""
        service = OrderService(db_session)
        first = service.create_order(
            seed.user_id, seed.address_id, "COD", [line(seed.cheap_product_id, 1)]
        )

        with pytest.raises(InsufficientStock):
            service.create_order(
                seed.user_id, seed.address_id, "COD", [line(seed.cheap_product_id, 1)]
            )

        assert db_session.execute(select(Order.id)).scalars().all() == [first]
        assert stock_of(db_session, seed.cheap_product_id) == 0

    def test_invoice_collision_retries(self, db_session, seed):
        """测试发票号冲突时重新生成并重试"""
        service = OrderService(db_session)

        with patch(
            "app.services.order_service.generate_invoice_code",
            side_effect=["INV-1-000001", "INV-1-000001", "INV-1-000002"],
        ):
            first = service.create_order(
                seed.user_id, seed.address_id, "COD", [line(seed.product_id, 1)]
            )
            second = service.create_order(
                seed.user_id, seed.address_id, "COD", [line(seed.product_id, 1)]
            )

        assert fetch(db_session, Order, first).invoice_code == "INV-1-000001"
        assert fetch(db_session, Order, second).invoice_code == "INV-1-000002"
        assert count_rows(db_session, Order) == 2
        assert count_rows(db_session, ProductSnapshot) == 2
        assert stock_of(db_session, seed.product_id) == 48

    def test_invoice_collision_exhausts_attempts(self, db_session, seed):
        """测试发票号持续冲突时返回 internal"""
        service = OrderService(db_session, max_attempts=2)

        with patch(
            "app.services.order_service.generate_invoice_code",
            return_value="INV-1-000001",
        ):
            service.create_order(seed.user_id, seed.address_id, "COD", [line(seed.product_id, 1)])
            with pytest.raises(InternalError):
                service.create_order(seed.user_id, seed.address_id, "COD", [line(seed.product_id, 1)])

        assert count_rows(db_session, Order) == 1
        assert stock_of(db_session, seed.product_id) == 49

    def test_storage_error_becomes_internal(self, db_session, seed):
        """测试写库阶段的数据库异常回滚并转为 internal"""
        ledger = Mock()
        ledger.decrement.side_effect = OperationalError("UPDATE products", {}, Exception("连接断开"))
        service = OrderService(db_session, stock_ledger=ledger)

        with pytest.raises(InternalError) as exc_info:
            service.create_order(seed.user_id, seed.address_id, "COD", [line(seed.product_id, 1)])

        assert exc_info.value.kind == "internal"
        assert_nothing_persisted(db_session)

    def test_invalid_quantity_reported_before_foreign_address(self, db_session, seed):
        """测试数量非法时即使地址属于他人也返回 invalid_input"""
        with pytest.raises(InvalidQuantity):
            OrderService(db_session).create_order(
                seed.user_id, seed.other_address_id, "COD", [line(seed.product_id, 0)]
            )

        assert_nothing_persisted(db_session)

    def test_stock_decremented_in_product_id_order(self, db_session, seed):
        """测试按商品ID升序合并扣减，与明细顺序无关"""
        ledger = Mock(wraps=StockLedger(db_session))
        service = OrderService(db_session, stock_ledger=ledger)

        service.create_order(
            seed.user_id, seed.address_id, "COD",
            [line(seed.cheap_product_id, 1), line(seed.product_id, 1), line(seed.product_id, 2)],
        )

        assert seed.product_id < seed.cheap_product_id
        assert [c.args for c in ledger.decrement.call_args_list] == [
            (seed.product_id, 3),
            (seed.cheap_product_id, 1),
        ]
        assert stock_of(db_session, seed.product_id) == 47
        assert stock_of(db_session, seed.cheap_product_id) == 0

    @pytest.mark.parametrize("interrupt", [KeyboardInterrupt, asyncio.CancelledError])
    def test_interrupted_checkout_rolls_back(self, db_session, seed, interrupt):
        """测试请求在扣减中途被取消时整单回滚"""
        real_ledger = StockLedger(db_session)
        calls = []

        def decrement(product_id, quantity):
            calls.append(product_id)
            if len(calls) == 2:
                raise interrupt()
            real_ledger.decrement(product_id, quantity)

        ledger = Mock()
        ledger.decrement.side_effect = decrement
        service = OrderService(db_session, stock_ledger=ledger)

        with pytest.raises(interrupt):
            service.create_order(
                seed.user_id, seed.address_id, "COD",
                [line(seed.product_id, 2), line(seed.cheap_product_id, 1)],
            )

        assert calls == [seed.product_id, seed.cheap_product_id]
        assert_nothing_persisted(db_session)
        assert stock_of(db_session, seed.product_id) == 50
        assert stock_of(db_session, seed.cheap_product_id) == 1

    def test_snapshot_survives_product_changes(self, db_session, seed):
        """测试下单后修改或删除商品不影响历史订单"""
        service = OrderService(db_session)
        reader = OrderReader(db_session)
        order_id = service.create_order(
            seed.user_id, seed.address_id, "COD", [line(seed.product_id, 2)]
        )
        before = reader.get_order(order_id, seed.user_id)

        product = db_session.get(Product, seed.product_id)
        product.name = "Headset Baru"
        product.consumer_price = 999999
        product.photos = []
        db_session.commit()
        assert reader.get_order(order_id, seed.user_id) == before

        db_session.delete(product)
        db_session.commit()
        after = reader.get_order(order_id, seed.user_id)

        assert after == before
        assert after.items[0].product.name == "Headset Bluetooth"
        assert after.items[0].product.consumer_price == 120000
        assert len(after.items[0].product.photos) == 2


class TestInvoiceCode:

    def test_prefix(self):
        assert generate_invoice_code("TRX").startswith("TRX-")

    def test_codes_differ(self):
        codes = {generate_invoice_code() for _ in range(50)}
        assert len(codes) > 1


class TestStockDemand:

    def test_merges_and_sorts_by_product_id(self):
        pending = [
            PendingLine(product_id=7, quantity=1, line_total=0, store_id=1, snapshot={}),
            PendingLine(product_id=3, quantity=2, line_total=0, store_id=1, snapshot={}),
            PendingLine(product_id=7, quantity=4, line_total=0, store_id=1, snapshot={}),
        ]

        assert stock_demand(pending) == [(3, 2), (7, 5)]

    def test_empty(self):
        assert stock_demand([]) == []


class TestUnitOfWork:
    """事务边界测试类"""

    def test_commit_on_success(self, db_session, seed):
        with unit_of_work(db_session):
            db_session.get(Product, seed.product_id).stock = 10

        assert stock_of(db_session, seed.product_id) == 10

    @pytest.mark.parametrize("error", [ValueError, KeyboardInterrupt, asyncio.CancelledError])
    def test_rollback_on_any_exception(self, db_session, seed, error):
        with pytest.raises(error):
            with unit_of_work(db_session):
                db_session.get(Product, seed.product_id).stock = 10
                db_session.flush()
                raise error()

        assert stock_of(db_session, seed.product_id) == 50
