"""省市参考数据模型（EMSIFA 返回格式）"""

from pydantic import BaseModel, Field
from typing import List, Optional

from app.schemas.base import BaseResponse


class Province(BaseModel):
    id: str
    name: str


class Regency(BaseModel):
    id: str
    province_id: str
    name: str


class ProvinceListResponse(BaseResponse):
    data: List[Province]


class ProvinceResponse(BaseResponse):
    data: Province


class RegencyListResponse(BaseResponse):
    data: List[Regency]


class RegencyResponse(BaseResponse):
    data: Regency


class CeleryTaskResponse(BaseResponse):
    """Celery任务响应"""
    task_id: Optional[str] = Field(
        None,
        description="任务ID"
    )


class TaskStatusResponse(BaseModel):
    """任务状态响应"""
    task_id: str = Field(
        ...,
        description="任务ID"
    )
    status: str = Field(
        ...,
        description="任务状态描述"
    )
    state: str = Field(
        ...,
        description="任务状态码"
    )
