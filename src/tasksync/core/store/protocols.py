"""Store Protocol 接口定义

定义 TaskStore、ActivityStore、UserStore 以及组合入口 Stores 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
业务层只依赖这些接口；实现失败时统一抛出 InfrastructureError。
"""

from datetime import datetime
from typing import Any, Protocol

from ..models.activity import Activity
from ..models.dashboard import PriorityCount, StatusCount
from ..models.inputs import TaskQuery
from ..models.task import Task
from ..models.user import User, UserSummary


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def update_task(
        self,
        task_id: str,
        fields: dict[str, Any],
        updated_at: datetime,
    ) -> None:
        """按字段更新任务"""
        ...

    async def delete_task(self, task_id: str) -> None:
        """删除任务（Activity 级联删除是存储层的责任）"""
        ...

    async def find_with_filters(self, query: TaskQuery, actor_id: str) -> list[Task]:
        """查询操作者可见的任务（创建者或被指派者）"""
        ...

    async def count_assigned(self, actor_id: str) -> int:
        """指派给操作者的任务数"""
        ...

    async def count_created(self, actor_id: str) -> int:
        """操作者创建的任务数"""
        ...

    async def list_overdue(self, actor_id: str, now: datetime) -> list[Task]:
        """指派给操作者的过期未完成任务"""
        ...

    async def group_by_status(self, actor_id: str) -> list[StatusCount]:
        """按状态分组计数"""
        ...

    async def group_by_priority(self, actor_id: str) -> list[PriorityCount]:
        """按优先级分组计数"""
        ...


class ActivityStore(Protocol):
    """Activity 存储接口

    append-only：只允许插入，不允许更新或删除。
    """

    async def append_activity(self, activity: Activity) -> None:
        """追加 Activity（append-only）"""
        ...

    async def list_by_task(self, task_id: str) -> list[Activity]:
        """查询指定任务的所有 Activity，最新在前"""
        ...


class UserStore(Protocol):
    """User 存储接口"""

    async def create_user(self, user: User) -> None:
        """创建用户记录"""
        ...

    async def get_user(self, user_id: str) -> User | None:
        """根据 user_id 查询用户"""
        ...

    async def list_users(self) -> list[UserSummary]:
        """查询所有用户摘要"""
        ...


class Stores(Protocol):
    """业务层使用的存储入口

    读操作直接走各 Store；任务变更只能通过这里的原子写入方法，
    每个方法在一个事务内完成写入与提交，互相之间串行执行。
    """

    task_store: TaskStore
    activity_store: ActivityStore
    user_store: UserStore

    async def create_task_with_activity(self, task: Task, activity: Activity) -> None:
        """原子创建任务 + TASK_CREATED Activity"""
        ...

    async def update_task_with_activity(
        self,
        task_id: str,
        fields: dict[str, Any],
        updated_at: datetime,
        activity: Activity | None = None,
    ) -> None:
        """原子更新任务字段 + 可选的 TASK_UPDATED Activity"""
        ...

    async def delete_task(self, task_id: str) -> None:
        """删除任务（级联删除 Activity）"""
        ...
