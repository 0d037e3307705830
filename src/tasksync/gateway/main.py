"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭、LiveHub 与鉴权配置初始化、
异常处理器与路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse
from tasksync.core.config import LIVE_QUEUE_MAXSIZE, get_db_path
from tasksync.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InfrastructureError,
    NotFoundError,
    TaskSyncError,
    ValidationError,
)
from tasksync.core.store import create_store_group

from .auth import load_auth_config
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, live, stream, tasks
from .services.live_hub import LiveHub

log = structlog.get_logger()

# 异常类型 -> HTTP 状态码
_ERROR_STATUS: dict[type[TaskSyncError], int] = {
    ValidationError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    NotFoundError: 404,
    InfrastructureError: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 与实时分发器，关闭时清理连接"""
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    app.state.live_hub = LiveHub(queue_maxsize=LIVE_QUEUE_MAXSIZE)
    app.state.auth_config = load_auth_config()

    log.info("gateway_started", db_path=db_path)

    yield

    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()


async def handle_tasksync_error(request: Request, exc: TaskSyncError) -> JSONResponse:
    """业务异常 -> 统一错误结构 {"error": {"code", "message", "field"?}}"""
    status_code = 500
    for error_type, code in _ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = code
            break

    if status_code >= 500:
        log.error("request_failed", error_code=exc.code, message=exc.message)
    else:
        log.info("request_rejected", error_code=exc.code, status_code=status_code)

    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()})


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="TaskSync Gateway",
        version="0.1.0",
        description="TaskSync 协作任务 API 与实时通道",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging，Logging 在最外层）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(TaskSyncError, handle_tasksync_error)

    setup_logging()
    setup_logfire(app)

    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(live.router, tags=["live"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
