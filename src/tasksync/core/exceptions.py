"""TaskSync 异常体系

所有业务失败都是同步、本地的失败：校验/鉴权失败发生在任何持久化之前，
持久化失败发生在任何事件推送之前。边界适配层根据 code 映射为传输层响应。
"""


class TaskSyncError(Exception):
    """TaskSync 基础异常"""

    code: str = "TASKSYNC_ERROR"

    def __init__(self, message: str, field: str | None = None) -> None:
        """
        Args:
            message: 错误描述
            field: 出错的输入字段（如适用）
        """
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        """序列化为统一错误结构"""
        data: dict = {"code": self.code, "message": self.message}
        if self.field is not None:
            data["field"] = self.field
        return data


class ValidationError(TaskSyncError):
    """输入格式错误或语义非法（日期格式、未知优先级/状态、引用用户不存在）"""

    code = "VALIDATION_ERROR"


class NotFoundError(TaskSyncError):
    """引用的任务不存在"""

    code = "TASK_NOT_FOUND"


class AuthorizationError(TaskSyncError):
    """操作者无权执行该变更（目前仅限非创建者删除任务）"""

    code = "FORBIDDEN"


class InfrastructureError(TaskSyncError):
    """存储或传输层故障，与调用方输入无关"""

    code = "INFRASTRUCTURE_ERROR"


class AuthenticationError(TaskSyncError):
    """连接或请求未携带有效身份凭证（仅由网关适配层抛出）"""

    code = "UNAUTHENTICATED"
