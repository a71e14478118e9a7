"""响应包裹结构。

成功：`{request_id, data, meta}`；失败：`{request_id, error: {status, code, message, details}}`。
两类结构都带请求追踪 ID，便于按日志定位一次认证请求。
"""

from datetime import datetime, timezone
from time import perf_counter
from typing import Any

from fastapi import Request

# 500 响应对外只暴露固定提示，细节仅写日志。
DEFAULT_ERROR_MESSAGE = "internal server error"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _request_id(request: Request) -> str:
    # 中间件之外构造的请求（如单元测试）没有追踪 ID。
    return getattr(request.state, "request_id", None) or "-"


def _elapsed_ms(request: Request) -> int | None:
    started_at = getattr(request.state, "request_started_at", None)
    if not isinstance(started_at, float):
        return None
    return int((perf_counter() - started_at) * 1000)


def success(request: Request, data: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """构造成功响应；`meta` 中的字段（如 message）覆盖默认值。"""
    final_meta: dict[str, Any] = {
        "message": "Request completed successfully.",
        "path": request.url.path,
        "timestamp": _timestamp(),
        "process_ms": _elapsed_ms(request),
    }
    if meta:
        final_meta.update(meta)
    return {"request_id": _request_id(request), "data": data, "meta": final_meta}


def error_payload(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """构造错误响应；`code` 为机器可识别错误码（如 OTP_INVALID）。"""
    final_details: dict[str, Any] = {
        "method": request.method.upper(),
        "path": request.url.path,
        "timestamp": _timestamp(),
    }
    if details:
        final_details.update(details)
    return {
        "request_id": _request_id(request),
        "error": {"status": status_code, "code": code, "message": message, "details": final_details},
    }
