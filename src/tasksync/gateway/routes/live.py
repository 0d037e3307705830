"""WebSocket 实时通道

WS /ws?token=...

握手阶段完成身份校验，失败时在 accept 之前以 4401 关闭，不加入任何房间。
连接建立后：
- 上行帧 {"event", "data"}：task:subscribe / task:unsubscribe / task:typing
- 下行帧 {"event", "data"}：LiveHub 推送的业务事件与连接级确认/错误
"""

import asyncio
import json

import structlog
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError
from tasksync.core.exceptions import AuthenticationError, ValidationError
from tasksync.core.models import (
    ClientEvent,
    ClientFrame,
    LiveEvent,
    TaskSubscription,
    TypingPayload,
    TypingSignal,
)

from ..auth import resolve_actor_id
from ..services.live_hub import LiveConnection, LiveHub

log = structlog.get_logger()

router = APIRouter()

# 应用自定义关闭码
CLOSE_UNAUTHENTICATED = 4401
CLOSE_SLOW_CONSUMER = 1013


async def _send_error(hub: LiveHub, conn: LiveConnection, error: ValidationError) -> None:
    await hub.send_to_connection(conn, LiveEvent.ERROR, error.to_dict())


async def handle_client_frame(hub: LiveHub, conn: LiveConnection, raw: str) -> None:
    """处理单个上行帧

    非法帧只回复 error 帧，不影响连接。
    """
    try:
        frame = ClientFrame.model_validate(json.loads(raw))
    except (json.JSONDecodeError, PydanticValidationError):
        await _send_error(hub, conn, ValidationError("Malformed frame"))
        return

    data = frame.data
    if isinstance(data, str) and frame.event != ClientEvent.TASK_TYPING:
        # 兼容直接传 taskId 字符串
        data = {"taskId": data}

    try:
        if frame.event == ClientEvent.TASK_TYPING:
            signal = TypingSignal.model_validate(data)
        else:
            subscription = TaskSubscription.model_validate(data)
    except PydanticValidationError:
        await _send_error(
            hub, conn, ValidationError(f"Invalid data for {frame.event.value}", field="data")
        )
        return

    if frame.event == ClientEvent.TASK_SUBSCRIBE:
        hub.join_task(conn, subscription.task_id)
        await hub.send_to_connection(
            conn, LiveEvent.TASK_SUBSCRIBED, subscription.to_wire()
        )
    elif frame.event == ClientEvent.TASK_UNSUBSCRIBE:
        hub.leave_task(conn, subscription.task_id)
        await hub.send_to_connection(
            conn, LiveEvent.TASK_UNSUBSCRIBED, subscription.to_wire()
        )
    else:
        await hub.send_to_task_subscribers(
            signal.task_id,
            LiveEvent.TASK_TYPING,
            TypingPayload(user_id=conn.user_id, is_typing=signal.is_typing).to_wire(),
            exclude_connection_id=conn.connection_id,
        )


async def _pump_outbound(websocket: WebSocket, conn: LiveConnection) -> None:
    """把连接队列中的消息写到 WebSocket；被判定为慢消费者时关闭连接"""
    while not conn.evicted:
        message = await conn.queue.get()
        if conn.evicted:
            break
        await websocket.send_json(message.to_wire())
    await websocket.close(code=CLOSE_SLOW_CONSUMER)


async def _consume_inbound(websocket: WebSocket, hub: LiveHub, conn: LiveConnection) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return
        text = message.get("text")
        if text is None:
            await _send_error(hub, conn, ValidationError("Binary frames are not supported"))
            continue
        await handle_client_frame(hub, conn, text)


@router.websocket("/ws")
async def live_socket(
    websocket: WebSocket,
    token: str | None = Query(default=None),
):
    """实时通道端点"""
    app = websocket.app
    try:
        actor_id = resolve_actor_id(
            token or websocket.cookies.get("token"),
            app.state.auth_config,
        )
    except AuthenticationError as e:
        log.info("live_handshake_rejected", reason=e.message)
        await websocket.close(code=CLOSE_UNAUTHENTICATED)
        return

    hub: LiveHub = app.state.live_hub
    await websocket.accept()
    conn = hub.connect(actor_id)

    sender = asyncio.create_task(_pump_outbound(websocket, conn))
    receiver = asyncio.create_task(_consume_inbound(websocket, hub, conn))
    try:
        done, _ = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                log.warning(
                    "live_connection_failed",
                    connection_id=conn.connection_id,
                    error_type=type(error).__name__,
                )
    finally:
        for task in (sender, receiver):
            task.cancel()
        await asyncio.gather(sender, receiver, return_exceptions=True)
        hub.disconnect(conn)
