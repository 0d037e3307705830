"""UserStore SQLite 实现

核心仅依赖按 id 查询用户（指派校验）与用户列表；
create_user 供运维 CLI 与测试使用。
"""

import asyncio

import aiosqlite

from ..models.user import User, UserSummary
from .common import from_db_ts, store_errors, to_db_ts


class SqliteUserStore:
    """UserStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        self._conn = conn
        self._write_lock = write_lock or asyncio.Lock()

    async def create_user(self, user: User) -> None:
        """创建用户记录（独立操作，自动提交）"""
        async with self._write_lock, store_errors("create_user"):
            await self._conn.execute(
                """
                INSERT INTO users (user_id, email, name, avatar, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    user.user_id,
                    user.email,
                    user.name,
                    user.avatar,
                    to_db_ts(user.created_at),
                ),
            )
            await self._conn.commit()

    async def get_user(self, user_id: str) -> User | None:
        """根据 user_id 查询用户"""
        async with store_errors("get_user"):
            cursor = await self._conn.execute(
                "SELECT user_id, email, name, avatar, created_at FROM users WHERE user_id = ?",
                (user_id,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    async def list_users(self) -> list[UserSummary]:
        """查询所有用户摘要，按名称排序"""
        async with store_errors("list_users"):
            cursor = await self._conn.execute(
                "SELECT user_id, name, email FROM users ORDER BY name ASC"
            )
            rows = await cursor.fetchall()
        return [UserSummary(user_id=row[0], name=row[1], email=row[2]) for row in rows]

    @staticmethod
    def _row_to_user(row: aiosqlite.Row) -> User:
        """将数据库行转换为 User 模型"""
        return User(
            user_id=row[0],
            email=row[1],
            name=row[2],
            avatar=row[3],
            created_at=from_db_ts(row[4]),
        )
