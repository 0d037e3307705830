"""TaskSync Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .activity import Activity
from .dashboard import Dashboard, PriorityCount, StatusCount
from .enums import (
    PRIORITY_RANK,
    WATCHED_FIELDS,
    ActivityAction,
    AssignedToFilter,
    ClientEvent,
    LiveEvent,
    NotificationType,
    Priority,
    SortField,
    SortOrder,
    TaskStatus,
)
from .inputs import CreateTaskInput, TaskQuery, UpdateTaskInput, parse_input
from .payloads import (
    ClientFrame,
    FieldChange,
    LiveMessage,
    NotificationPayload,
    TaskCreatedDetails,
    TaskDeletedPayload,
    TaskSubscription,
    TypingPayload,
    TypingSignal,
)
from .task import Task, TaskDetail
from .user import User, UserSummary

__all__ = [
    # 枚举
    "TaskStatus",
    "Priority",
    "ActivityAction",
    "LiveEvent",
    "ClientEvent",
    "NotificationType",
    "AssignedToFilter",
    "SortField",
    "SortOrder",
    "PRIORITY_RANK",
    "WATCHED_FIELDS",
    # Task
    "Task",
    "TaskDetail",
    # Activity
    "Activity",
    # User
    "User",
    "UserSummary",
    # 输入
    "CreateTaskInput",
    "UpdateTaskInput",
    "TaskQuery",
    "parse_input",
    # Payloads
    "TaskCreatedDetails",
    "FieldChange",
    "NotificationPayload",
    "TaskDeletedPayload",
    "TypingPayload",
    "LiveMessage",
    "ClientFrame",
    "TaskSubscription",
    "TypingSignal",
    # Dashboard
    "Dashboard",
    "StatusCount",
    "PriorityCount",
]
