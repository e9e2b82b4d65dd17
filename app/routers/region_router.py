"""省市参考数据 API 路由"""

from fastapi import APIRouter, Path, Query
import logging

from app.core.dependencies import RegionServiceDep
from app.core.exceptions import AppError, InternalError
from app.services.region_service import RegionService
from app.schemas.base import ErrorResponse
from app.schemas.region import (
    CeleryTaskResponse,
    ProvinceListResponse,
    ProvinceResponse,
    RegencyListResponse,
    RegencyResponse,
    TaskStatusResponse,
)
from tasks.region_tasks import warm_region_cache as celery_warm_task

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/provcity",
    tags=["省市数据"],
    responses={
        404: {"model": ErrorResponse, "description": "数据不存在"},
        422: {"model": ErrorResponse, "description": "请求验证失败"},
        502: {"model": ErrorResponse, "description": "上游服务异常"},
        504: {"model": ErrorResponse, "description": "上游服务超时"}
    }
)

NUMERIC_ID = r"^\d+$"


@router.get(
    "/listprovincies",
    response_model=ProvinceListResponse,
    summary="省份列表",
    description="""查询全部省份，支持名称搜索和分页。
    
    **缓存策略：**
    - 全量省份列表缓存在 Redis（默认 1 天）
    - 搜索和分页在缓存数据上完成
    """
)
def list_provinces(
    search: str = Query("", description="名称关键字（不区分大小写）"),
    limit: int = Query(0, description="每页数量，0 表示全部"),
    page: int = Query(1, description="页码"),
    service: RegionService = RegionServiceDep,
):
    try:
        items = service.list_provinces(search, limit, page)
        return {"success": True, "message": "查询成功", "data": items}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"查询省份失败: {str(e)}")
        raise InternalError()

@router.get(
    "/listcities/{prov_id}",
    response_model=RegencyListResponse,
    summary="城市列表"
)
def list_cities(
    prov_id: str = Path(..., pattern=NUMERIC_ID, description="省份ID", examples=["11"]),
    service: RegionService = RegionServiceDep,
):
    try:
        items = service.list_cities(prov_id)
        return {"success": True, "message": "查询成功", "data": items}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"查询城市失败: {str(e)}")
        raise InternalError()

@router.get(
    "/detailprovince/{prov_id}",
    response_model=ProvinceResponse,
    summary="省份详情"
)
def detail_province(
    prov_id: str = Path(..., pattern=NUMERIC_ID, description="省份ID", examples=["11"]),
    service: RegionService = RegionServiceDep,
):
    try:
        province = service.detail_province(prov_id)
        return {"success": True, "message": "查询成功", "data": province}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"查询省份详情失败: {str(e)}")
        raise InternalError()

@router.get(
    "/detailcity/{city_id}",
    response_model=RegencyResponse,
    summary="城市详情"
)
def detail_city(
    city_id: str = Path(..., pattern=NUMERIC_ID, description="城市ID", examples=["1101"]),
    service: RegionService = RegionServiceDep,
):
    try:
        city = service.detail_city(city_id)
        return {"success": True, "message": "查询成功", "data": city}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"查询城市详情失败: {str(e)}")
        raise InternalError()

@router.post("/cache/warm", response_model=CeleryTaskResponse)
def warm_cache():
    """触发 Celery 异步预热地区缓存"""
    try:
        task = celery_warm_task.delay()
        return {
            "success": True,
            "message": "已提交缓存预热任务",
            "task_id": task.id
        }
    except Exception as e:
        logger.error(f"Celery 任务提交失败: {str(e)}")
        raise InternalError()

@router.get("/cache/status/{task_id}", response_model=TaskStatusResponse)
def get_warm_status(task_id: str):
    """查询缓存预热任务执行状态"""
    try:
        from celery_app import app
        task = app.AsyncResult(task_id)
        
        if task.state == 'PENDING':
            status = "任务等待中"
        elif task.state == 'SUCCESS':
            status = f"任务完成: {task.result}"
        elif task.state == 'FAILURE':
            status = f"任务失败: {str(task.info)}"
        else:
            status = f"任务状态: {task.state}"
            
        return {
            "task_id": task_id,
            "status": status,
            "state": task.state
        }
    except Exception as e:
        logger.error(f"查询任务状态失败: {str(e)}")
        raise InternalError()
