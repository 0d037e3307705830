"""gateway 测试配置 -- FastAPI app + httpx AsyncClient"""

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tasksync.gateway.services.live_hub import LiveHub


@pytest_asyncio.fixture
async def test_app(store_group, auth_config, monkeypatch):
    """创建测试用 FastAPI app 实例（手动初始化 app.state，绕过 lifespan）"""
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")

    from tasksync.gateway.main import create_app

    app = create_app()
    app.state.store_group = store_group
    app.state.live_hub = LiveHub()
    app.state.auth_config = auth_config
    return app


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac
