"""TaskService -- 任务生命周期业务逻辑

每个变更操作的固定顺序：
1. 校验输入格式与语义（失败则不落盘、不推送）
2. 对照当前持久化状态校验（存在性、权限、被指派用户）
3. 单事务写入任务变更 + Activity
4. 落盘成功后推送实时事件（推送失败只记录日志，不影响操作结果）

不做乐观/悲观锁：同一任务的并发更新按字段组"后写覆盖"；
存储层只保证每个写入单元的原子性。
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from tasksync.core.exceptions import (
    AuthorizationError,
    InfrastructureError,
    NotFoundError,
    ValidationError,
)
from tasksync.core.models import (
    WATCHED_FIELDS,
    Activity,
    ActivityAction,
    CreateTaskInput,
    FieldChange,
    LiveEvent,
    NotificationPayload,
    Task,
    TaskCreatedDetails,
    TaskDeletedPayload,
    TaskDetail,
    TaskQuery,
    TaskStatus,
    UpdateTaskInput,
    UserSummary,
    parse_input,
)
from tasksync.core.store.protocols import Stores
from ulid import ULID

from .live_hub import LiveTransport

log = structlog.get_logger()


def _plain(value: Any) -> Any:
    """Activity details 中的值统一为 JSON 原生类型"""
    if isinstance(value, TaskStatus):
        return value.value
    return value


def _assignment_message(title: str) -> str:
    return f'You\'ve been assigned to "{title}"'


class TaskService:
    """任务生命周期服务

    Args:
        stores: 存储入口（读走各 Store，写走原子写入方法）
        live: 实时推送接口；None 表示当前没有实时传输层（如 CLI 场景）
    """

    def __init__(self, stores: Stores, live: LiveTransport | None = None) -> None:
        self._stores = stores
        self._live = live

    async def create_task(
        self,
        data: CreateTaskInput | dict[str, Any],
        actor_id: str,
    ) -> Task:
        """创建任务

        Raises:
            ValidationError: 输入非法或被指派用户不存在
            InfrastructureError: 存储失败
        """
        payload = parse_input(CreateTaskInput, data)

        if payload.assigned_to_id is not None:
            await self._ensure_user_exists(payload.assigned_to_id)

        now = datetime.now(UTC)
        task = Task(
            task_id=str(ULID()),
            title=payload.title,
            description=payload.description,
            due_date=payload.due_date,
            priority=payload.priority,
            status=TaskStatus.TODO,
            creator_id=actor_id,
            assigned_to_id=payload.assigned_to_id,
            created_at=now,
            updated_at=now,
        )
        activity = Activity(
            activity_id=str(ULID()),
            task_id=task.task_id,
            actor_id=actor_id,
            action=ActivityAction.TASK_CREATED,
            details=TaskCreatedDetails(
                title=task.title,
                priority=task.priority,
                assigned_to=task.assigned_to_id,
            ).to_wire(),
            created_at=now,
        )

        await self._stores.create_task_with_activity(task, activity)
        created = await self._stores.task_store.get_task(task.task_id)
        if created is None:
            raise InfrastructureError("Task was not persisted")

        log.info(
            "task_created",
            task_id=created.task_id,
            actor_id=actor_id,
            assigned_to_id=created.assigned_to_id,
        )

        await self._emit_all(LiveEvent.TASK_CREATED, created.to_wire())
        if created.assigned_to_id and created.assigned_to_id != actor_id:
            await self._notify_assignment(created)

        return created

    async def update_task(
        self,
        task_id: str,
        data: UpdateTaskInput | dict[str, Any],
        actor_id: str,
    ) -> Task:
        """更新任务：只应用显式提供的字段

        Raises:
            ValidationError: 输入非法或新的被指派用户不存在
            NotFoundError: 任务不存在
            InfrastructureError: 存储失败
        """
        payload = parse_input(UpdateTaskInput, data)

        current = await self._stores.task_store.get_task(task_id)
        if current is None:
            raise NotFoundError("Task not found")

        new_assignee = payload.assigned_to_id
        if payload.provided("assigned_to_id") and new_assignee is not None:
            await self._ensure_user_exists(new_assignee)

        fields = payload.changes()
        changes = self._diff_watched(current, fields)

        now = datetime.now(UTC)
        activity = None
        if changes:
            activity = Activity(
                activity_id=str(ULID()),
                task_id=task_id,
                actor_id=actor_id,
                action=ActivityAction.TASK_UPDATED,
                details={name: change.to_wire() for name, change in changes.items()},
                created_at=now,
            )

        await self._stores.update_task_with_activity(task_id, fields, now, activity)
        updated = await self._stores.task_store.get_task(task_id)
        if updated is None:
            # 写入后被并发删除
            raise NotFoundError("Task not found")

        log.info(
            "task_updated",
            task_id=task_id,
            actor_id=actor_id,
            changed_fields=sorted(changes),
        )

        await self._emit_all(LiveEvent.TASK_UPDATED, updated.to_wire())
        if "assignedTo" in changes and new_assignee is not None and new_assignee != actor_id:
            await self._notify_assignment(updated)

        return updated

    async def delete_task(self, task_id: str, actor_id: str) -> None:
        """删除任务（仅创建者可删除）

        Raises:
            NotFoundError: 任务不存在
            AuthorizationError: 操作者不是创建者
            InfrastructureError: 存储失败
        """
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise NotFoundError("Task not found")

        if task.creator_id != actor_id:
            raise AuthorizationError("Unauthorized to delete this task")

        await self._stores.delete_task(task_id)

        log.info("task_deleted", task_id=task_id, actor_id=actor_id)

        await self._emit_all(LiveEvent.TASK_DELETED, TaskDeletedPayload(task_id=task_id).to_wire())

    async def get_task(self, task_id: str) -> TaskDetail:
        """查询任务详情 + Activity 历史（最新在前）

        Raises:
            NotFoundError: 任务不存在
        """
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise NotFoundError("Task not found")

        activities = await self._stores.activity_store.list_by_task(task_id)
        return TaskDetail(task=task, activities=activities)

    async def list_tasks(
        self,
        filters: TaskQuery | dict[str, Any] | None,
        actor_id: str,
    ) -> list[Task]:
        """查询操作者作为创建者或被指派者的任务

        Raises:
            ValidationError: 筛选条件非法
        """
        query = parse_input(TaskQuery, filters)
        return await self._stores.task_store.find_with_filters(query, actor_id)

    async def list_users(self) -> list[UserSummary]:
        """查询可指派的用户列表"""
        return await self._stores.user_store.list_users()

    async def _ensure_user_exists(self, user_id: str) -> None:
        user = await self._stores.user_store.get_user(user_id)
        if user is None:
            raise ValidationError("Assigned user not found", field="assignedToId")

    @staticmethod
    def _diff_watched(current: Task, fields: dict[str, Any]) -> dict[str, FieldChange]:
        """计算追踪字段相对更新前快照的变更"""
        changes: dict[str, FieldChange] = {}
        for name, attr in WATCHED_FIELDS.items():
            if attr not in fields:
                continue
            before = _plain(getattr(current, attr))
            after = _plain(fields[attr])
            if before != after:
                changes[name] = FieldChange(from_=before, to=after)
        return changes

    async def _notify_assignment(self, task: Task) -> None:
        if self._live is None or task.assigned_to_id is None:
            return
        payload = NotificationPayload(
            message=_assignment_message(task.title),
            task_id=task.task_id,
        )
        try:
            await self._live.send_to_user(
                task.assigned_to_id,
                LiveEvent.NOTIFICATION_NEW,
                payload.to_wire(),
            )
        except Exception as e:
            log.warning(
                "live_delivery_failed",
                live_event=LiveEvent.NOTIFICATION_NEW.value,
                task_id=task.task_id,
                error_type=type(e).__name__,
            )

    async def _emit_all(self, event: LiveEvent, payload: dict[str, Any]) -> None:
        if self._live is None:
            return
        try:
            await self._live.broadcast_all(event, payload)
        except Exception as e:
            # 推送失败不影响已落盘的变更
            log.warning(
                "live_delivery_failed",
                live_event=event.value,
                error_type=type(e).__name__,
            )
