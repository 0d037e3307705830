"""User Domain Model

用户账户的增删改由外部负责，核心只需要按 id 解析用户（指派校验）
以及在任务/Activity 视图中嵌入用户摘要。
"""

from datetime import datetime

from pydantic import Field

from .base import WireModel


class UserSummary(WireModel):
    """嵌入在 Task/Activity 视图中的用户摘要"""

    user_id: str = Field(alias="id", description="用户 ID")
    name: str = Field(description="显示名称")
    email: str | None = Field(default=None, description="邮箱")


class User(WireModel):
    """User 数据模型"""

    user_id: str = Field(alias="id", description="唯一标识，ULID 格式")
    email: str = Field(description="邮箱，唯一")
    name: str = Field(description="显示名称")
    avatar: str | None = Field(default=None, description="头像 URL")
    created_at: datetime = Field(description="创建时间")

    def summary(self) -> UserSummary:
        return UserSummary(user_id=self.user_id, name=self.name, email=self.email)
