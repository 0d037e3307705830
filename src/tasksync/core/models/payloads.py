"""Activity details 与实时事件 payload 定义"""

from typing import Any

from pydantic import Field

from .base import WireModel
from .enums import ClientEvent, NotificationType, Priority


class TaskCreatedDetails(WireModel):
    """TASK_CREATED Activity details"""

    title: str
    priority: Priority
    assigned_to: str | None = None


class FieldChange(WireModel):
    """TASK_UPDATED Activity details 中单个字段的变更"""

    from_: Any = Field(alias="from")
    to: Any


class NotificationPayload(WireModel):
    """notification:new 事件 payload"""

    type: NotificationType = NotificationType.TASK_ASSIGNED
    message: str
    task_id: str


class TaskDeletedPayload(WireModel):
    """task:deleted 事件 payload -- 仅携带 id"""

    task_id: str = Field(alias="id")


class TypingPayload(WireModel):
    """task:typing 事件 payload"""

    user_id: str
    is_typing: bool


class LiveMessage(WireModel):
    """实时通道上的消息信封"""

    event: str
    data: dict[str, Any] = Field(default_factory=dict)


# ---- 客户端上行帧 ----


class ClientFrame(WireModel):
    """客户端上行消息信封"""

    event: ClientEvent
    data: Any = None


class TaskSubscription(WireModel):
    """task:subscribe / task:unsubscribe 的 data"""

    task_id: str = Field(min_length=1)


class TypingSignal(WireModel):
    """task:typing 上行 data"""

    task_id: str = Field(min_length=1)
    is_typing: bool
