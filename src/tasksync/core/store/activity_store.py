"""ActivityStore SQLite 实现

activities 表 append-only：只允许插入，不允许更新或删除。
仅在所属 task 删除时由外键级联删除。
"""

import json

import aiosqlite

from ..models.activity import Activity
from ..models.enums import ActivityAction
from ..models.user import UserSummary
from .common import from_db_ts, store_errors, to_db_ts


class SqliteActivityStore:
    """ActivityStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_activity(self, activity: Activity) -> None:
        """追加 Activity（append-only）

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        async with store_errors("append_activity"):
            await self._conn.execute(
                """
                INSERT INTO activities (activity_id, task_id, actor_id, action,
                                        details, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    activity.activity_id,
                    activity.task_id,
                    activity.actor_id,
                    activity.action.value,
                    json.dumps(activity.details, ensure_ascii=False),
                    to_db_ts(activity.created_at),
                ),
            )

    async def list_by_task(self, task_id: str) -> list[Activity]:
        """查询指定任务的所有 Activity，最新在前（同一时刻按写入顺序倒序）"""
        async with store_errors("list_by_task"):
            cursor = await self._conn.execute(
                """
                SELECT a.activity_id, a.task_id, a.actor_id, a.action, a.details,
                       a.created_at, u.name, u.email
                FROM activities a
                LEFT JOIN users u ON u.user_id = a.actor_id
                WHERE a.task_id = ?
                ORDER BY a.created_at DESC, a.rowid DESC
                """,
                (task_id,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_activity(row) for row in rows]

    @staticmethod
    def _row_to_activity(row: aiosqlite.Row) -> Activity:
        """将数据库行转换为 Activity 模型"""
        details = json.loads(row[4]) if row[4] else {}
        actor = None
        if row[6] is not None:
            actor = UserSummary(user_id=row[2], name=row[6], email=row[7])
        return Activity(
            activity_id=row[0],
            task_id=row[1],
            actor_id=row[2],
            action=ActivityAction(row[3]),
            details=details,
            created_at=from_db_ts(row[5]),
            actor=actor,
        )
