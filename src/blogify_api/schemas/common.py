"""响应包裹结构的文档模型，与 `utils.response` 生成的字典一一对应。"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field


class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ErrorPayload(BaseSchema):
    status: int = Field(description="HTTP 状态码。", examples=[400])
    code: str = Field(description="机器可识别错误码。", examples=["OTP_INVALID"])
    message: str = Field(description="面向用户的错误提示。", examples=["Invalid or expired OTP."])
    details: dict[str, Any] = Field(default_factory=dict, description="请求方法、路径、时间等附加信息。")


class ErrorResponse(BaseSchema):
    """统一错误响应。"""

    request_id: str = Field(description="请求追踪 ID，与响应头 X-Request-Id 一致。")
    error: ErrorPayload = Field(description="错误主体。")


T = TypeVar("T")


class SuccessResponse(BaseSchema, Generic[T]):
    """统一成功响应。"""

    request_id: str = Field(description="请求追踪 ID，与响应头 X-Request-Id 一致。")
    data: T = Field(description="业务数据。")
    meta: dict[str, Any] = Field(default_factory=dict, description="提示信息、路径、耗时等元信息。")
