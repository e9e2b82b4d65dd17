"""订单 API 路由"""

from fastapi import APIRouter, Body, Path, Query
import logging

from app.core.dependencies import (
    CurrentUserDep,
    OrderReaderDep,
    OrderServiceDep,
)
from app.core.exceptions import AppError, InternalError
from app.services.order_reader import OrderReader
from app.services.order_service import OrderService
from app.schemas.base import ErrorResponse
from app.schemas.order import (
    MAX_ID,
    CreateOrderRequest,
    CreateOrderResponse,
    OrderDetailResponse,
    OrderListResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/orders",
    tags=["订单"],
    responses={
        400: {"model": ErrorResponse, "description": "请求参数错误"},
        401: {"model": ErrorResponse, "description": "未登录"},
        422: {"model": ErrorResponse, "description": "请求验证失败"},
        500: {"model": ErrorResponse, "description": "服务器内部错误"}
    }
)

@router.post(
    "",
    response_model=CreateOrderResponse,
    summary="创建订单",
    description="""校验收货地址和商品后创建订单，返回新订单ID。
    
    **特点：**
    - 商品信息在下单时生成快照，后续修改商品不影响历史订单
    - 订单、快照、明细、库存扣减在同一事务内完成
    - 库存扣减为条件更新，库存不足整单失败（409）
    """,
    responses={
        403: {"model": ErrorResponse, "description": "收货地址不属于当前用户"},
        404: {"model": ErrorResponse, "description": "收货地址或商品不存在"},
        409: {"model": ErrorResponse, "description": "库存不足"},
    }
)
def create_order(
    request: CreateOrderRequest = Body(
        ...,
        description="下单请求参数"
    ),
    user_id: int = CurrentUserDep,
    service: OrderService = OrderServiceDep,
):
    """创建订单（下单核心接口）"""
    try:
        order_id = service.create_order(
            user_id,
            request.shipping_address_id,
            request.payment_method,
            request.lines,
        )
        return {"success": True, "message": "下单成功", "data": order_id}
    except AppError:
        # 透传业务异常
        raise
    except Exception as e:
        logger.error(f"创建订单失败: {str(e)}")
        # 未知异常统一抛 500
        raise InternalError()

@router.get(
    "",
    response_model=OrderListResponse,
    summary="查询我的订单",
    description="""分页查询当前用户的订单，按创建时间倒序。
    
    **分页：**
    - limit 默认 10，最大 100
    - page 从 1 开始
    """
)
def list_orders(
    limit: int = Query(
        10,
        le=MAX_ID,
        description="每页数量",
        examples=[10]
    ),
    page: int = Query(
        1,
        le=MAX_ID,
        description="页码",
        examples=[1]
    ),
    user_id: int = CurrentUserDep,
    reader: OrderReader = OrderReaderDep,
):
    try:
        result = reader.list_orders(user_id, limit, page)
        return {"success": True, "message": "查询成功", "data": result}
    except AppError:
        # 透传业务异常
        raise
    except Exception as e:
        logger.error(f"查询订单列表失败: {str(e)}")
        # 未知异常统一抛 500
        raise InternalError()

@router.get(
    "/{order_id}",
    response_model=OrderDetailResponse,
    summary="查询订单详情",
    responses={
        403: {"model": ErrorResponse, "description": "订单不属于当前用户"},
        404: {"model": ErrorResponse, "description": "订单不存在"},
    }
)
def get_order(
    order_id: int = Path(
        ...,
        gt=0,
        le=MAX_ID,
        description="订单ID",
        examples=[1]
    ),
    user_id: int = CurrentUserDep,
    reader: OrderReader = OrderReaderDep,
):
    """查询订单详情（只能查看自己的订单）"""
    try:
        order = reader.get_order(order_id, user_id)
        return {"success": True, "message": "查询成功", "data": order}
    except AppError:
        # 透传业务异常
        raise
    except Exception as e:
        logger.error(f"查询订单详情失败: {str(e)}")
        # 未知异常统一抛 500
        raise InternalError()
