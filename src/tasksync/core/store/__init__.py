"""TaskSync Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from ..models.activity import Activity
from ..models.task import Task
from . import transaction
from .activity_store import SqliteActivityStore
from .protocols import Stores
from .sqlite_init import init_db
from .task_store import SqliteTaskStore
from .transaction import create_task_with_activity, delete_task, update_task_with_activity
from .user_store import SqliteUserStore


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接

    同一连接上只有一个隐式事务：所有"写入 + 提交/回滚"单元
    都必须持有 write_lock，否则一个请求的回滚会丢弃另一个请求尚未提交的写入。
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.write_lock = asyncio.Lock()
        self.task_store = SqliteTaskStore(conn)
        self.activity_store = SqliteActivityStore(conn)
        self.user_store = SqliteUserStore(conn, write_lock=self.write_lock)

    async def create_task_with_activity(self, task: Task, activity: Activity) -> None:
        async with self.write_lock:
            await transaction.create_task_with_activity(
                self.conn,
                self.task_store,
                self.activity_store,
                task,
                activity,
            )

    async def update_task_with_activity(
        self,
        task_id: str,
        fields: dict[str, Any],
        updated_at: datetime,
        activity: Activity | None = None,
    ) -> None:
        async with self.write_lock:
            await transaction.update_task_with_activity(
                self.conn,
                self.task_store,
                self.activity_store,
                task_id,
                fields,
                updated_at,
                activity,
            )

    async def delete_task(self, task_id: str) -> None:
        async with self.write_lock:
            await transaction.delete_task(self.conn, self.task_store, task_id)


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "Stores",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteActivityStore",
    "SqliteUserStore",
    "init_db",
    "create_task_with_activity",
    "update_task_with_activity",
    "delete_task",
]
