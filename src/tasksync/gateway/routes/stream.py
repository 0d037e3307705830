"""SSE 只读实时流

GET /api/stream?token=...&task_id=...&task_id=...

与 WebSocket 通道共用 LiveHub：连接加入当前用户的私有房间，
并可通过 task_id 参数（可重复）订阅任务房间；空闲时发送心跳注释保活。
"""

import asyncio
import json
from collections.abc import AsyncGenerator, Iterable

from fastapi import APIRouter, Depends, Query, Request
from sse_starlette.sse import EventSourceResponse
from tasksync.core.config import HEARTBEAT_INTERVAL

from ..auth import resolve_actor_id
from ..deps import extract_token, get_auth_config, get_live_hub
from ..services.live_hub import LiveHub

router = APIRouter()


async def live_event_stream(
    hub: LiveHub,
    user_id: str,
    task_ids: Iterable[str] = (),
    heartbeat_interval: float = HEARTBEAT_INTERVAL,
) -> AsyncGenerator[dict, None]:
    """把连接队列转换为 SSE 事件

    连接在首次迭代时才注册，结束时注销；
    响应开始前客户端就断开时不会留下连接。
    """
    conn = hub.connect(user_id)
    try:
        for task_id in task_ids:
            hub.join_task(conn, task_id)

        while not conn.evicted:
            try:
                message = await asyncio.wait_for(conn.queue.get(), timeout=heartbeat_interval)
            except TimeoutError:
                yield {"comment": "heartbeat"}
                continue
            if conn.evicted:
                break
            yield {
                "event": message.event,
                "data": json.dumps(message.data, ensure_ascii=False),
            }
    finally:
        hub.disconnect(conn)


@router.get("/api/stream")
async def stream_live_events(
    request: Request,
    token: str | None = Query(default=None),
    task_id: list[str] = Query(default=[]),
    hub: LiveHub = Depends(get_live_hub),
):
    """SSE 事件流端点

    token 可通过查询参数、Authorization 头或 token cookie 提供。
    """
    actor_id = resolve_actor_id(token or extract_token(request), get_auth_config(request))

    return EventSourceResponse(live_event_stream(hub, actor_id, task_id))
