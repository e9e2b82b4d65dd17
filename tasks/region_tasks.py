"""地区参考数据相关的 Celery 任务"""

from celery_app import app
from app.services.region_service import RegionClient, RegionService
from app.core.redis import redis_client
import logging

logger = logging.getLogger(__name__)

@app.task(name='tasks.region.warm_region_cache')
def warm_region_cache():
    """预热省份和城市缓存

    Returns:
        预热结果描述
    """
    try:
        service = RegionService(RegionClient(), redis_client)
        count = service.warm_cache()
        result = f"成功预热 {count} 个省份的地区缓存"
        logger.info(result)
        return result
    except Exception as e:
        logger.error(f"地区缓存预热任务执行失败: {str(e)}")
        raise

# 导出任务
__all__ = [
    'warm_region_cache',
]
