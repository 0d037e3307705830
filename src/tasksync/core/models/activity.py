"""Activity Domain Model

Activity 表 append-only，不允许更新或删除。
仅当所属 Task 被删除时由存储层级联删除。
"""

from datetime import datetime
from typing import Any

from pydantic import Field

from .base import WireModel
from .enums import ActivityAction
from .user import UserSummary


class Activity(WireModel):
    """Activity 数据模型 -- 任务变更审计记录"""

    activity_id: str = Field(alias="id", description="唯一标识，ULID 格式")
    task_id: str = Field(description="关联的 Task ID")
    actor_id: str = Field(alias="userId", description="操作者 ID")
    action: ActivityAction = Field(description="动作标签")
    details: dict[str, Any] = Field(default_factory=dict, description="结构化 payload")
    created_at: datetime = Field(description="创建时间")
    actor: UserSummary | None = Field(default=None, alias="user", description="操作者摘要")
