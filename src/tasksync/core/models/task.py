"""Task Domain Model

creator_id 创建后不可变；assigned_to_id 如果设置，必须引用已存在的用户。
状态值之间不限制流转，但每次流转都通过 Activity 记录操作者与时间。
"""

from datetime import datetime

from pydantic import Field

from .activity import Activity
from .base import WireModel
from .enums import Priority, TaskStatus
from .user import UserSummary


class Task(WireModel):
    """Task 数据模型"""

    task_id: str = Field(alias="id", description="唯一标识，ULID 格式")
    title: str = Field(description="任务标题")
    description: str = Field(description="任务描述")
    due_date: datetime = Field(description="截止时间（UTC）")
    priority: Priority = Field(description="优先级")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="当前状态")
    creator_id: str = Field(description="创建者 ID，不可变")
    assigned_to_id: str | None = Field(default=None, description="被指派用户 ID")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    # 读视图中嵌入的用户摘要（由 store join 填充）
    creator: UserSummary | None = Field(default=None, description="创建者摘要")
    assigned_to: UserSummary | None = Field(default=None, description="被指派用户摘要")


class TaskDetail(WireModel):
    """任务详情：任务本身 + 完整 Activity 历史（最新在前）"""

    task: Task
    activities: list[Activity] = Field(default_factory=list)
