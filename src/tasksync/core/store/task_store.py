"""TaskStore SQLite 实现

读视图通过 LEFT JOIN users 嵌入创建者/被指派者摘要。
写方法不自动提交事务，需由调用方（transaction 模块）管理事务。
"""

from datetime import datetime
from typing import Any

import aiosqlite

from ..models.dashboard import PriorityCount, StatusCount
from ..models.enums import (
    PRIORITY_RANK,
    AssignedToFilter,
    Priority,
    SortField,
    SortOrder,
    TaskStatus,
)
from ..models.inputs import TaskQuery
from ..models.task import Task
from ..models.user import UserSummary
from .common import from_db_ts, store_errors, to_db_ts

_SELECT_TASK = """
SELECT t.task_id, t.title, t.description, t.due_date, t.priority, t.status,
       t.creator_id, t.assigned_to_id, t.created_at, t.updated_at,
       c.name, c.email, a.name, a.email
FROM tasks t
LEFT JOIN users c ON c.user_id = t.creator_id
LEFT JOIN users a ON a.user_id = t.assigned_to_id
"""

# 可更新列（对应 Task 字段名）
_UPDATABLE_COLUMNS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "due_date": "due_date",
    "priority": "priority",
    "status": "status",
    "assigned_to_id": "assigned_to_id",
}

# 优先级按声明顺序排序，而非按字符串字典序
_PRIORITY_ORDER_SQL = "CASE t.priority {} END".format(
    " ".join(f"WHEN '{p.value}' THEN {rank}" for p, rank in PRIORITY_RANK.items())
)

_SORT_COLUMNS: dict[SortField, str] = {
    SortField.DUE_DATE: "t.due_date",
    SortField.CREATED_AT: "t.created_at",
    SortField.PRIORITY: _PRIORITY_ORDER_SQL,
}


def _to_column_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_db_ts(value)
    if isinstance(value, (TaskStatus, Priority)):
        return value.value
    return value


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        async with store_errors("create_task"):
            await self._conn.execute(
                """
                INSERT INTO tasks (task_id, title, description, due_date, priority,
                                   status, creator_id, assigned_to_id, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.task_id,
                    task.title,
                    task.description,
                    to_db_ts(task.due_date),
                    task.priority.value,
                    task.status.value,
                    task.creator_id,
                    task.assigned_to_id,
                    to_db_ts(task.created_at),
                    to_db_ts(task.updated_at),
                ),
            )

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        async with store_errors("get_task"):
            cursor = await self._conn.execute(
                _SELECT_TASK + " WHERE t.task_id = ?",
                (task_id,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def update_task(
        self,
        task_id: str,
        fields: dict[str, Any],
        updated_at: datetime,
    ) -> None:
        """按字段更新任务，仅写入 fields 中出现的列

        Args:
            task_id: 任务 ID
            fields: Task 字段名 -> 新值（None 表示清空）
            updated_at: 更新时间
        """
        assignments = ["updated_at = ?"]
        params: list[Any] = [to_db_ts(updated_at)]
        for name, value in fields.items():
            column = _UPDATABLE_COLUMNS.get(name)
            if column is None:
                raise KeyError(f"field is not updatable: {name}")
            assignments.append(f"{column} = ?")
            params.append(_to_column_value(value))
        params.append(task_id)

        async with store_errors("update_task"):
            await self._conn.execute(
                f"UPDATE tasks SET {', '.join(assignments)} WHERE task_id = ?",
                params,
            )

    async def delete_task(self, task_id: str) -> None:
        """删除任务（activities 由外键级联删除）"""
        async with store_errors("delete_task"):
            await self._conn.execute("DELETE FROM tasks WHERE task_id = ?", (task_id,))

    async def find_with_filters(self, query: TaskQuery, actor_id: str) -> list[Task]:
        """查询操作者作为创建者或被指派者的任务，支持筛选与排序"""
        clauses = ["(t.creator_id = ? OR t.assigned_to_id = ?)"]
        params: list[Any] = [actor_id, actor_id]

        if query.status is not None:
            clauses.append("t.status = ?")
            params.append(query.status.value)
        if query.priority is not None:
            clauses.append("t.priority = ?")
            params.append(query.priority.value)
        if query.assigned_to == AssignedToFilter.ME:
            clauses.append("t.assigned_to_id = ?")
            params.append(actor_id)
        elif query.assigned_to == AssignedToFilter.OTHERS:
            clauses.append("t.assigned_to_id IS NOT NULL AND t.assigned_to_id != ?")
            params.append(actor_id)

        direction = "DESC" if query.sort_order == SortOrder.DESC else "ASC"
        order_by = f"{_SORT_COLUMNS[query.sort_by]} {direction}, t.created_at ASC, t.rowid ASC"

        async with store_errors("find_with_filters"):
            cursor = await self._conn.execute(
                f"{_SELECT_TASK} WHERE {' AND '.join(clauses)} ORDER BY {order_by}",
                params,
            )
            rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def count_assigned(self, actor_id: str) -> int:
        """指派给操作者的任务数"""
        return await self._count("count_assigned", "assigned_to_id = ?", (actor_id,))

    async def count_created(self, actor_id: str) -> int:
        """操作者创建的任务数"""
        return await self._count("count_created", "creator_id = ?", (actor_id,))

    async def list_overdue(self, actor_id: str, now: datetime) -> list[Task]:
        """指派给操作者、截止时间早于 now 且未完成的任务，按截止时间升序"""
        async with store_errors("list_overdue"):
            cursor = await self._conn.execute(
                _SELECT_TASK
                + """
                WHERE t.assigned_to_id = ? AND t.due_date < ? AND t.status != ?
                ORDER BY t.due_date ASC, t.rowid ASC
                """,
                (actor_id, to_db_ts(now), TaskStatus.COMPLETED.value),
            )
            rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def group_by_status(self, actor_id: str) -> list[StatusCount]:
        """按状态分组计数（创建者或被指派者）"""
        rows = await self._group("group_by_status", "status", actor_id)
        counts = {TaskStatus(row[0]): row[1] for row in rows}
        return [StatusCount(status=s, count=counts[s]) for s in TaskStatus if s in counts]

    async def group_by_priority(self, actor_id: str) -> list[PriorityCount]:
        """按优先级分组计数（创建者或被指派者）"""
        rows = await self._group("group_by_priority", "priority", actor_id)
        counts = {Priority(row[0]): row[1] for row in rows}
        return [PriorityCount(priority=p, count=counts[p]) for p in Priority if p in counts]

    async def _count(self, operation: str, where: str, params: tuple) -> int:
        async with store_errors(operation):
            cursor = await self._conn.execute(f"SELECT COUNT(*) FROM tasks WHERE {where}", params)
            row = await cursor.fetchone()
        return row[0] if row else 0

    async def _group(self, operation: str, column: str, actor_id: str) -> list:
        async with store_errors(operation):
            cursor = await self._conn.execute(
                f"""
                SELECT {column}, COUNT(*) FROM tasks
                WHERE creator_id = ? OR assigned_to_id = ?
                GROUP BY {column}
                """,
                (actor_id, actor_id),
            )
            return list(await cursor.fetchall())

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        creator = None
        if row[10] is not None:
            creator = UserSummary(user_id=row[6], name=row[10], email=row[11])
        assigned_to = None
        if row[7] is not None and row[12] is not None:
            assigned_to = UserSummary(user_id=row[7], name=row[12], email=row[13])
        return Task(
            task_id=row[0],
            title=row[1],
            description=row[2],
            due_date=from_db_ts(row[3]),
            priority=row[4],
            status=row[5],
            creator_id=row[6],
            assigned_to_id=row[7],
            created_at=from_db_ts(row[8]),
            updated_at=from_db_ts(row[9]),
            creator=creator,
            assigned_to=assigned_to,
        )
