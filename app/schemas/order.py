# app/schemas/order.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from app.schemas.base import BaseResponse

# BIGINT 主键上限；数量列为 INTEGER
MAX_ID = 2 ** 63 - 1
MAX_QUANTITY = 2 ** 31 - 1


# ==================== 请求模型 ====================

class OrderLineRequest(BaseModel):
    """订单明细请求（数量下限在服务层校验）"""
    product_id: int = Field(
        ...,
        gt=0,
        le=MAX_ID,
        description="商品ID",
        examples=[1]
    )
    quantity: int = Field(
        ...,
        le=MAX_QUANTITY,
        description="购买数量",
        examples=[2]
    )


class CreateOrderRequest(BaseModel):
    """创建订单请求"""
    payment_method: str = Field(
        ...,
        max_length=50,
        description="支付方式",
        examples=["COD"]
    )
    shipping_address_id: int = Field(
        ...,
        gt=0,
        le=MAX_ID,
        description="收货地址ID",
        examples=[1]
    )
    lines: List[OrderLineRequest] = Field(
        ...,
        description="订单明细"
    )


# ==================== 视图模型 ====================

class AddressView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    recipient_name: str
    phone: str
    detail: str


class StoreView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    photo_url: Optional[str] = None


class CategoryView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class PhotoView(BaseModel):
    product_id: int
    url: str


class ProductView(BaseModel):
    """商品快照视图，id 为来源商品ID"""
    id: int
    name: str
    slug: str
    reseller_price: int
    consumer_price: int
    description: Optional[str] = None
    store: Optional[StoreView] = None
    category: Optional[CategoryView] = None
    photos: List[PhotoView] = []


class LineItemView(BaseModel):
    product: ProductView
    store: Optional[StoreView] = None
    quantity: int
    line_total: int


class OrderView(BaseModel):
    id: int
    total_price: int
    invoice_code: str
    payment_method: str
    shipping_address: Optional[AddressView] = None
    items: List[LineItemView] = []
    created_at: Optional[datetime] = None


class OrderListView(BaseModel):
    data: List[OrderView]
    page: int
    limit: int


# ==================== 响应模型 ====================

class CreateOrderResponse(BaseResponse):
    data: int = Field(
        ...,
        description="新订单ID"
    )


class OrderListResponse(BaseResponse):
    data: OrderListView


class OrderDetailResponse(BaseResponse):
    data: OrderView
