"""任务路由

POST   /api/tasks              创建任务
GET    /api/tasks              任务列表（status / priority / assignedTo / sortBy / sortOrder）
GET    /api/tasks/dashboard    当前用户的 Dashboard
GET    /api/tasks/users        可指派用户列表
GET    /api/tasks/{task_id}    任务详情 + Activity 历史
PUT    /api/tasks/{task_id}    更新任务
DELETE /api/tasks/{task_id}    删除任务（仅创建者）

静态子路径必须在 /{task_id} 之前注册。
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from starlette.responses import Response
from tasksync.core.exceptions import ValidationError

from ..deps import get_actor_id, get_dashboard_service, get_task_service
from ..services.dashboard_service import DashboardService
from ..services.task_service import TaskService

router = APIRouter()


async def _read_json_object(request: Request) -> dict[str, Any]:
    """读取请求体，要求为 JSON 对象"""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Request body must be valid JSON") from e
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


@router.post("/api/tasks", status_code=201)
async def create_task(
    request: Request,
    actor_id: str = Depends(get_actor_id),
    service: TaskService = Depends(get_task_service),
):
    """创建任务，创建者为当前用户"""
    body = await _read_json_object(request)
    task = await service.create_task(body, actor_id)
    return task.to_wire()


@router.get("/api/tasks")
async def list_tasks(
    request: Request,
    actor_id: str = Depends(get_actor_id),
    service: TaskService = Depends(get_task_service),
):
    """查询当前用户作为创建者或被指派者的任务"""
    tasks = await service.list_tasks(dict(request.query_params), actor_id)
    return [t.to_wire() for t in tasks]


@router.get("/api/tasks/dashboard")
async def get_dashboard(
    actor_id: str = Depends(get_actor_id),
    service: DashboardService = Depends(get_dashboard_service),
):
    dashboard = await service.get_dashboard(actor_id)
    return dashboard.to_wire()


@router.get("/api/tasks/users")
async def list_users(
    actor_id: str = Depends(get_actor_id),
    service: TaskService = Depends(get_task_service),
):
    users = await service.list_users()
    return [u.to_wire() for u in users]


@router.get("/api/tasks/{task_id}")
async def get_task_detail(
    task_id: str,
    actor_id: str = Depends(get_actor_id),
    service: TaskService = Depends(get_task_service),
):
    """任务详情，activities 按时间倒序"""
    detail = await service.get_task(task_id)
    return detail.to_wire()


@router.put("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    request: Request,
    actor_id: str = Depends(get_actor_id),
    service: TaskService = Depends(get_task_service),
):
    """部分更新：只修改请求体中出现的字段"""
    body = await _read_json_object(request)
    task = await service.update_task(task_id, body, actor_id)
    return task.to_wire()


@router.delete("/api/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    actor_id: str = Depends(get_actor_id),
    service: TaskService = Depends(get_task_service),
):
    await service.delete_task(task_id, actor_id)
    return Response(status_code=204)
