"""Store 层公共工具 -- 时间戳编码 + 存储异常转换"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import aiosqlite
import structlog

from ..exceptions import InfrastructureError

log = structlog.get_logger()


def to_db_ts(value: datetime) -> str:
    """统一编码为 UTC、微秒精度的 ISO 字符串，保证字典序即时间序"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def from_db_ts(value: str) -> datetime:
    return datetime.fromisoformat(value)


@asynccontextmanager
async def store_errors(operation: str) -> AsyncIterator[None]:
    """将 SQLite 层异常转换为 InfrastructureError

    Args:
        operation: 操作名称（写入日志与错误信息）
    """
    try:
        yield
    except aiosqlite.Error as e:
        log.error(
            "store_operation_failed",
            operation=operation,
            error_type=type(e).__name__,
        )
        raise InfrastructureError(f"Store operation failed: {operation}") from e
