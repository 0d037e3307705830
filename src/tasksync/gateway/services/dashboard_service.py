"""DashboardService -- 单个操作者的只读汇总视图

五个子查询彼此独立并发执行，全部完成后再组装：
任一子查询失败时逐个记录日志并整体失败，不返回部分填充的 Dashboard。
"""

import asyncio
from datetime import UTC, datetime

import structlog
from tasksync.core.exceptions import InfrastructureError
from tasksync.core.models import Dashboard
from tasksync.core.store.protocols import Stores

log = structlog.get_logger()

_SECTIONS = (
    "total_assigned",
    "total_created",
    "overdue_tasks",
    "tasks_by_status",
    "tasks_by_priority",
)


class DashboardService:
    """Dashboard 汇总服务"""

    def __init__(self, stores: Stores) -> None:
        self._stores = stores

    async def get_dashboard(self, actor_id: str, now: datetime | None = None) -> Dashboard:
        """汇总操作者的任务数据

        Args:
            actor_id: 操作者 ID
            now: 判断过期的参考时间，默认当前时间

        Raises:
            InfrastructureError: 任一子查询失败
        """
        task_store = self._stores.task_store
        reference = now or datetime.now(UTC)

        results = await asyncio.gather(
            task_store.count_assigned(actor_id),
            task_store.count_created(actor_id),
            task_store.list_overdue(actor_id, reference),
            task_store.group_by_status(actor_id),
            task_store.group_by_priority(actor_id),
            return_exceptions=True,
        )

        failed = []
        for section, result in zip(_SECTIONS, results, strict=True):
            if isinstance(result, BaseException):
                failed.append(section)
                log.error(
                    "dashboard_section_failed",
                    section=section,
                    actor_id=actor_id,
                    error_type=type(result).__name__,
                )
        if failed:
            raise InfrastructureError(
                f"Dashboard sections failed: {', '.join(failed)}"
            )

        return Dashboard(**dict(zip(_SECTIONS, results, strict=True)))
