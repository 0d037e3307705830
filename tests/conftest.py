"""全局 pytest 配置 -- 临时 SQLite 数据库、测试用户、JWT 与实时推送替身"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import jwt
import pytest
import pytest_asyncio
from pydantic import SecretStr
from tasksync.core.models import User
from tasksync.core.store import StoreGroup, create_store_group
from tasksync.gateway.auth import AuthConfig
from ulid import ULID

JWT_SECRET = "tasksync-test-secret"


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """提供已初始化的 StoreGroup"""
    group = await create_store_group(str(tmp_db_path))
    yield group
    await group.conn.close()


async def _create_user(store_group: StoreGroup, name: str) -> User:
    user = User(
        user_id=str(ULID()),
        email=f"{name.lower()}@example.com",
        name=name,
        created_at=datetime.now(UTC),
    )
    await store_group.user_store.create_user(user)
    return user


@pytest_asyncio.fixture
async def alice(store_group: StoreGroup) -> User:
    return await _create_user(store_group, "Alice")


@pytest_asyncio.fixture
async def bob(store_group: StoreGroup) -> User:
    return await _create_user(store_group, "Bob")


@pytest_asyncio.fixture
async def carol(store_group: StoreGroup) -> User:
    return await _create_user(store_group, "Carol")


@pytest.fixture
def make_token() -> Callable[..., str]:
    """签发测试用 JWT"""

    def _make(
        user_id: str,
        secret: str = JWT_SECRET,
        claim: str = "userId",
        expires_in: timedelta = timedelta(hours=1),
    ) -> str:
        payload = {claim: user_id, "exp": datetime.now(UTC) + expires_in}
        return jwt.encode(payload, secret, algorithm="HS256")

    return _make


class RecordingLiveTransport:
    """记录所有推送调用的实时传输替身"""

    def __init__(self, fail: bool = False) -> None:
        self.calls: list[tuple[str, str | None, str, dict[str, Any]]] = []
        self.fail = fail

    async def broadcast_all(self, event: str, payload: dict[str, Any]) -> None:
        self._record("broadcast_all", None, event, payload)

    async def send_to_user(self, user_id: str, event: str, payload: dict[str, Any]) -> None:
        self._record("send_to_user", user_id, event, payload)

    async def send_to_task_subscribers(
        self,
        task_id: str,
        event: str,
        payload: dict[str, Any],
        exclude_connection_id: str | None = None,
    ) -> None:
        self._record("send_to_task_subscribers", task_id, event, payload)

    def _record(self, method: str, target: str | None, event: str, payload: dict) -> None:
        self.calls.append((method, target, str(event), payload))
        if self.fail:
            raise ConnectionError("live transport unavailable")

    def events(self, event: str) -> list[tuple[str, str | None, str, dict[str, Any]]]:
        return [call for call in self.calls if call[2] == event]


@pytest.fixture
def live() -> RecordingLiveTransport:
    return RecordingLiveTransport()


@pytest.fixture
def failing_live() -> RecordingLiveTransport:
    return RecordingLiveTransport(fail=True)


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(jwt_secret=SecretStr(JWT_SECRET))


@pytest.fixture
def jwt_secret() -> str:
    return JWT_SECRET
