"""枚举定义

包含 TaskStatus、Priority、ActivityAction、LiveEvent 等枚举，
以及 PRIORITY_RANK 排序权重和 WATCHED_FIELDS 变更追踪字段映射。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态

    状态值之间不限制流转：任意状态均可到达任意状态，
    但每次流转都必须记录为一条 Activity。
    """

    TODO = "ToDo"
    IN_PROGRESS = "InProgress"
    REVIEW = "Review"
    COMPLETED = "Completed"


class Priority(StrEnum):
    """任务优先级"""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


# 优先级排序权重（按声明顺序，Low 最低）
PRIORITY_RANK: dict[Priority, int] = {
    Priority.LOW: 0,
    Priority.MEDIUM: 1,
    Priority.HIGH: 2,
    Priority.URGENT: 3,
}


class ActivityAction(StrEnum):
    """Activity 动作标签"""

    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"


class LiveEvent(StrEnum):
    """实时推送事件名"""

    TASK_CREATED = "task:created"
    TASK_UPDATED = "task:updated"
    TASK_DELETED = "task:deleted"
    NOTIFICATION_NEW = "notification:new"
    TASK_TYPING = "task:typing"

    # 连接级控制事件（仅发给请求方连接）
    TASK_SUBSCRIBED = "task:subscribed"
    TASK_UNSUBSCRIBED = "task:unsubscribed"
    ERROR = "error"


class ClientEvent(StrEnum):
    """客户端上行事件名"""

    TASK_SUBSCRIBE = "task:subscribe"
    TASK_UNSUBSCRIBE = "task:unsubscribe"
    TASK_TYPING = "task:typing"


class NotificationType(StrEnum):
    """notification:new 的通知类型"""

    TASK_ASSIGNED = "TASK_ASSIGNED"


class AssignedToFilter(StrEnum):
    """列表查询的相对指派过滤（相对于当前操作者解析）"""

    ME = "me"
    OTHERS = "others"


class SortField(StrEnum):
    """列表排序字段"""

    DUE_DATE = "dueDate"
    PRIORITY = "priority"
    CREATED_AT = "createdAt"


class SortOrder(StrEnum):
    """排序方向"""

    ASC = "asc"
    DESC = "desc"


# Activity diff 追踪的字段：对外名称 -> Task 字段名
WATCHED_FIELDS: dict[str, str] = {
    "title": "title",
    "status": "status",
    "assignedTo": "assigned_to_id",
}
