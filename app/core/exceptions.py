"""业务异常定义

服务层只抛这里的异常，由 app.main 中的全局异常处理器
统一转换为 {"success": false, "message", "error", "errors"} 响应。
"""

from typing import List


class AppError(Exception):
    """业务异常基类"""
    kind = "internal"
    status_code = 500
    message = "服务器内部错误"

    def __init__(self, *errors: str):
        self.errors: List[str] = list(errors) or [self.message]
        super().__init__("; ".join(self.errors))


# ==================== 404 ====================

class NotFoundError(AppError):
    kind = "not_found"
    status_code = 404
    message = "资源不存在"


class AddressNotFound(NotFoundError):
    message = "收货地址不存在"


class ProductNotFound(NotFoundError):
    message = "商品不存在"


class OrderNotFound(NotFoundError):
    message = "订单不存在"


class RegionNotFound(NotFoundError):
    message = "地区数据不存在"


# ==================== 403 ====================

class ForbiddenError(AppError):
    kind = "forbidden"
    status_code = 403
    message = "无权访问该资源"


class AddressNotOwned(ForbiddenError):
    message = "收货地址不属于当前用户"


class OrderForbidden(ForbiddenError):
    message = "无权查看该订单"


# ==================== 400 ====================

class InvalidInputError(AppError):
    kind = "invalid_input"
    status_code = 400
    message = "请求参数不合法"


class InvalidQuantity(InvalidInputError):
    message = "购买数量必须大于 0"


class EmptyOrder(InvalidInputError):
    message = "订单至少需要一个商品"


class InvalidPaymentMethod(InvalidInputError):
    message = "支付方式不能为空"


# ==================== 其他 ====================

class UnauthorizedError(AppError):
    kind = "unauthorized"
    status_code = 401
    message = "未登录或身份无效"


class ConflictError(AppError):
    kind = "conflict"
    status_code = 409
    message = "资源状态冲突"


class InsufficientStock(ConflictError):
    message = "库存不足"

    def __init__(self, product_id: int, quantity: int):
        self.product_id = product_id
        self.quantity = quantity
        super().__init__(f"商品 {product_id} 库存不足，无法扣减 {quantity} 件")


class InternalError(AppError):
    pass


class UpstreamError(AppError):
    kind = "upstream_error"
    status_code = 502
    message = "上游地区服务异常"


class UpstreamTimeout(UpstreamError):
    kind = "upstream_timeout"
    status_code = 504
    message = "上游地区服务超时"
