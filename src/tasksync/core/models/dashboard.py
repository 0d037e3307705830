"""Dashboard 汇总视图模型"""

from pydantic import Field

from .base import WireModel
from .enums import Priority, TaskStatus
from .task import Task


class StatusCount(WireModel):
    """按状态分组计数"""

    status: TaskStatus
    count: int


class PriorityCount(WireModel):
    """按优先级分组计数"""

    priority: Priority
    count: int


class Dashboard(WireModel):
    """单个操作者的 Dashboard 汇总"""

    total_assigned: int = Field(description="指派给操作者的任务数")
    total_created: int = Field(description="操作者创建的任务数")
    overdue_tasks: list[Task] = Field(
        default_factory=list,
        description="指派给操作者、已过期且未完成的任务（截止时间升序）",
    )
    tasks_by_status: list[StatusCount] = Field(default_factory=list)
    tasks_by_priority: list[PriorityCount] = Field(default_factory=list)
