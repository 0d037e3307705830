"""任务变更 + Activity 原子事务封装

在同一 SQLite 事务内原子提交任务写入和对应的 Activity，
确保不会出现"任务已变更但审计记录缺失"的部分写入。
"""

from datetime import datetime
from typing import Any

import aiosqlite

from ..models.activity import Activity
from ..models.task import Task
from .common import store_errors
from .protocols import ActivityStore, TaskStore


async def create_task_with_activity(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    activity_store: ActivityStore,
    task: Task,
    activity: Activity,
) -> None:
    """在同一事务内创建任务并写入 TASK_CREATED Activity

    Raises:
        InfrastructureError: 如果事务提交失败（自动回滚）
    """
    try:
        await task_store.create_task(task)
        await activity_store.append_activity(activity)

        async with store_errors("commit"):
            await conn.commit()
    except Exception:
        await conn.rollback()
        raise


async def update_task_with_activity(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    activity_store: ActivityStore,
    task_id: str,
    fields: dict[str, Any],
    updated_at: datetime,
    activity: Activity | None = None,
) -> None:
    """在同一事务内更新任务字段，并在有追踪字段变更时写入 Activity

    Args:
        conn: 数据库连接（需在同一连接上操作以保证事务性）
        task_store: TaskStore 实例
        activity_store: ActivityStore 实例
        task_id: 任务 ID
        fields: 需要写入的字段
        updated_at: 更新时间
        activity: TASK_UPDATED Activity；None 表示无追踪字段变更

    Raises:
        InfrastructureError: 如果事务提交失败（自动回滚）
    """
    try:
        await task_store.update_task(task_id, fields, updated_at)
        if activity is not None:
            await activity_store.append_activity(activity)

        async with store_errors("commit"):
            await conn.commit()
    except Exception:
        await conn.rollback()
        raise


async def delete_task(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    task_id: str,
) -> None:
    """删除任务并提交（activities 级联删除）"""
    try:
        await task_store.delete_task(task_id)

        async with store_errors("commit"):
            await conn.commit()
    except Exception:
        await conn.rollback()
        raise
