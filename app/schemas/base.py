
from pydantic import BaseModel, Field
from typing import List, Optional


class BaseResponse(BaseModel):
    """基础响应模型"""
    success: bool = Field(
        ...,
        description="请求是否成功"
    )
    message: Optional[str] = Field(
        None,
        description="响应消息"
    )


class ErrorResponse(BaseResponse):
    """失败响应"""
    error: str = Field(
        ...,
        description="错误类型（机器可读）",
        examples=["not_found"]
    )
    errors: List[str] = Field(
        default_factory=list,
        description="错误详情"
    )
