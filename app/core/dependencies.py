"""依赖注入配置模块"""

import logging
from typing import Optional

from fastapi import Depends, Header

# 数据库会话依赖
from app.db.session import SessionLocal
from sqlalchemy.orm import Session

# Redis 依赖
from app.core.redis import redis_client

from app.core.exceptions import UnauthorizedError
from app.schemas.order import MAX_ID
from app.services.order_service import OrderService
from app.services.order_reader import OrderReader
from app.services.region_service import RegionClient, RegionService

logger = logging.getLogger(__name__)


def get_redis():
    """获取同步 Redis 客户端，不可用时返回 None（按无缓存运行）"""
    try:
        redis_client.ping()
    except Exception as e:
        logger.warning(f"Redis 不可用，跳过缓存: {e}")
        return None
    return redis_client

def get_db() -> Session:
    """获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id")
) -> int:
    """当前登录用户ID

    由上游网关完成 JWT 校验后写入 X-User-Id 请求头。
    """
    raw = (x_user_id or "").strip()
    # 只接受 ASCII 十进制数字，isdigit() 会放过上标等字符
    if not (raw.isascii() and raw.isdecimal()):
        raise UnauthorizedError()
    user_id = int(raw)
    if not 0 < user_id <= MAX_ID:
        raise UnauthorizedError()
    return user_id


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    """获取订单服务实例（依赖注入）"""
    return OrderService(db=db)


def get_order_reader(db: Session = Depends(get_db)) -> OrderReader:
    """获取订单查询服务实例（依赖注入）"""
    return OrderReader(db=db)


def get_region_service(redis = Depends(get_redis)) -> RegionService:
    """获取省市查询服务实例（依赖注入）"""
    return RegionService(client=RegionClient(), redis=redis)


# 常用的依赖注入别名
CurrentUserDep = Depends(get_current_user_id)
OrderServiceDep = Depends(get_order_service)
OrderReaderDep = Depends(get_order_reader)
RegionServiceDep = Depends(get_region_service)
