"""TraceMiddleware -- 任务级追踪

/api/tasks/{task_id} 形式的请求绑定 trace_id，贯穿该任务相关日志。
dashboard / users 等静态子路径不是任务 ID，不绑定。
"""

import re

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ULID: 26 位 Crockford Base32
_TASK_PATH = re.compile(r"^/api/tasks/([0-9A-HJKMNP-TV-Z]{26})(?:/|$)")


def extract_trace_id(path: str) -> str | None:
    """从请求路径中提取 trace_id，非任务路径返回 None"""
    match = _TASK_PATH.match(path)
    if match is None:
        return None
    return f"trace-{match.group(1)}"


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件 -- 为任务操作绑定 trace_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        trace_id = extract_trace_id(request.url.path)
        if trace_id:
            structlog.contextvars.bind_contextvars(trace_id=trace_id)

        return await call_next(request)
