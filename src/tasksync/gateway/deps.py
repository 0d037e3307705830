"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store、LiveHub 与服务实例

共享实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Request
from tasksync.core.exceptions import AuthenticationError
from tasksync.core.store import StoreGroup

from .auth import AuthConfig, resolve_actor_id
from .services.dashboard_service import DashboardService
from .services.live_hub import LiveHub
from .services.task_service import TaskService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_live_hub(request: Request) -> LiveHub:
    """从 app.state 获取 LiveHub 实例"""
    return request.app.state.live_hub


def get_auth_config(request: Request) -> AuthConfig:
    return request.app.state.auth_config


def get_task_service(request: Request) -> TaskService:
    """构造 TaskService，注入共享的 LiveHub 作为实时推送接口"""
    return TaskService(get_store_group(request), live=get_live_hub(request))


def get_dashboard_service(request: Request) -> DashboardService:
    return DashboardService(get_store_group(request))


def extract_token(request: Request) -> str | None:
    """从 Authorization: Bearer 头或 token cookie 中取 token"""
    header = request.headers.get("authorization")
    if header:
        scheme, _, credentials = header.partition(" ")
        if scheme.lower() != "bearer" or not credentials.strip():
            raise AuthenticationError("Malformed Authorization header")
        return credentials.strip()
    return request.cookies.get("token")


def get_actor_id(request: Request) -> str:
    """解析当前请求的操作者 ID

    Raises:
        AuthenticationError: 未携带或携带了无效的 token
    """
    return resolve_actor_id(extract_token(request), get_auth_config(request))
