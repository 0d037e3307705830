"""任务操作输入模型

UpdateTaskInput 使用三态语义：
- 字段缺省：保持不变
- 字段显式为 null：清空（仅 assignedToId 可为空）
- 字段有值：设置为新值

通过 pydantic 的 model_fields_set 区分"缺省"与"显式 null"。
"""

from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..config import TITLE_MAX_LENGTH
from ..exceptions import ValidationError
from .base import WireModel
from .enums import AssignedToFilter, Priority, SortField, SortOrder, TaskStatus

ModelT = TypeVar("ModelT", bound=WireModel)


def _to_utc(value: datetime) -> datetime:
    """统一转换为 UTC；无时区信息的时间视为 UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class CreateTaskInput(WireModel):
    """创建任务输入"""

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str = Field(min_length=1)
    due_date: datetime
    priority: Priority
    assigned_to_id: str | None = None

    @field_validator("due_date")
    @classmethod
    def _normalize_due_date(cls, value: datetime) -> datetime:
        return _to_utc(value)


class UpdateTaskInput(WireModel):
    """更新任务输入 -- 所有字段可选，仅应用显式提供的字段"""

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, min_length=1)
    due_date: datetime | None = None
    priority: Priority | None = None
    status: TaskStatus | None = None
    assigned_to_id: str | None = None

    @field_validator("title", "description", "due_date", "priority", "status", mode="before")
    @classmethod
    def _reject_explicit_null(cls, value: Any, info: ValidationInfo) -> Any:
        # 只有显式传入的字段会走到这里；非空字段不接受 null
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    @field_validator("due_date")
    @classmethod
    def _normalize_due_date(cls, value: datetime | None) -> datetime | None:
        return _to_utc(value) if value is not None else None

    def provided(self, name: str) -> bool:
        """字段是否在输入中显式出现（包括显式 null）"""
        return name in self.model_fields_set

    def changes(self) -> dict[str, Any]:
        """返回显式提供的字段及其值（snake_case 字段名）"""
        return {name: getattr(self, name) for name in self.model_fields_set}


class TaskQuery(WireModel):
    """任务列表查询条件"""

    status: TaskStatus | None = None
    priority: Priority | None = None
    assigned_to: AssignedToFilter | None = None
    sort_by: SortField = SortField.DUE_DATE
    sort_order: SortOrder = SortOrder.ASC


def parse_input(model_cls: type[ModelT], data: ModelT | dict[str, Any] | None) -> ModelT:
    """将原始输入解析为输入模型，pydantic 校验失败转换为 ValidationError

    Args:
        model_cls: 目标输入模型类
        data: 原始 dict 或已构造的模型实例

    Raises:
        ValidationError: 输入格式或取值非法
    """
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data or {})
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise ValidationError(first["msg"], field=field) from e
