"""探针接口 `data` 字段结构定义。"""

from pydantic import Field

from blogify_api.schemas.common import BaseSchema


class HealthStatusData(BaseSchema):
    """存活探针返回结构。"""

    status: str = Field(description="存活状态，固定为 ok。")


class ReadinessData(BaseSchema):
    """就绪探针返回结构。"""

    status: str = Field(description="就绪状态，固定为 ready。")
    database: str = Field(description="用户表与验证码表可读时为 ok。")
    mail_delivery: str = Field(description="验证码投递方式：smtp 或 log（未配置 SMTP）。")
