"""业务异常分类。

所有业务异常均继承自 `HTTPException`，由统一异常处理器转换为标准错误结构，
`detail` 固定为 `{code, message}`。
"""

from fastapi import HTTPException, status


class AppError(HTTPException):
    """业务异常基类。"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "APP_ERROR"
    default_message: str = "request failed"

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        self.message = message or self.default_message
        if code:
            self.code = code
        super().__init__(
            status_code=self.status_code,
            detail={"code": self.code, "message": self.message},
        )


class ValidationError(AppError):
    """请求参数缺失或不合法。"""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Invalid request."


class InvalidCredentials(ValidationError):
    """邮箱或密码不匹配。"""

    code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials."


class AuthenticationError(AppError):
    """未登录、令牌无效或已过期。"""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    default_message = "Invalid or expired token."


class AuthorizationError(AppError):
    """账号状态或权限不允许访问。"""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found."


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Resource already exists."


class RateLimitError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "RATE_LIMITED"
    default_message = "Too many requests."


class ServiceUnavailableError(AppError):
    """依赖未就绪。"""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "SERVICE_UNAVAILABLE"
    default_message = "Service is not ready."
