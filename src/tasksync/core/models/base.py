"""模型基类 -- 对外 JSON 统一使用 camelCase 字段名"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """对外模型基类

    Python 侧使用 snake_case，序列化到 HTTP/实时通道时使用 camelCase 别名。
    构造时两种名称均可。
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """序列化为对外 JSON 结构"""
        return self.model_dump(mode="json", by_alias=True)
