"""LiveHub -- 内存中实时事件分发器

每个实时连接持有一个 asyncio.Queue，由传输层（WebSocket / SSE）负责消费。
连接按房间分组：
- user:{user_id}  每个连接建立时自动加入
- task:{task_id}  显式订阅后加入，取消订阅或断开时离开

投递是尽力而为：队列已满的连接视为慢消费者直接断开，断开的连接不补发。
房间成员表只在单个事件循环内做增删，不跨挂起点持有中间状态。
"""

import asyncio
from collections import defaultdict
from typing import Any, Protocol

import structlog
from tasksync.core.config import LIVE_QUEUE_MAXSIZE
from tasksync.core.models import LiveMessage
from ulid import ULID

log = structlog.get_logger()


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def task_room(task_id: str) -> str:
    return f"task:{task_id}"


class LiveTransport(Protocol):
    """业务层依赖的实时推送接口"""

    async def broadcast_all(self, event: str, payload: dict[str, Any]) -> None:
        """推送给所有连接"""
        ...

    async def send_to_user(self, user_id: str, event: str, payload: dict[str, Any]) -> None:
        """推送给指定用户的所有连接"""
        ...

    async def send_to_task_subscribers(
        self,
        task_id: str,
        event: str,
        payload: dict[str, Any],
        exclude_connection_id: str | None = None,
    ) -> None:
        """推送给订阅了指定任务的连接"""
        ...


class LiveConnection:
    """单个实时连接的状态"""

    def __init__(self, user_id: str, queue_maxsize: int) -> None:
        self.connection_id = str(ULID())
        self.user_id = user_id
        self.queue: asyncio.Queue[LiveMessage] = asyncio.Queue(maxsize=queue_maxsize)
        self.rooms: set[str] = set()
        self.evicted = False


class LiveHub:
    """实时事件分发器 -- 基于 asyncio.Queue 的房间式发布/订阅"""

    def __init__(self, queue_maxsize: int = LIVE_QUEUE_MAXSIZE) -> None:
        # connection_id -> LiveConnection
        self._connections: dict[str, LiveConnection] = {}
        # room -> set of connection_id
        self._rooms: dict[str, set[str]] = defaultdict(set)
        self._queue_maxsize = queue_maxsize

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def connect(self, user_id: str) -> LiveConnection:
        """注册新连接并加入该用户的私有房间

        调用前必须已完成身份校验。
        """
        conn = LiveConnection(user_id, self._queue_maxsize)
        self._connections[conn.connection_id] = conn
        self._join(conn, user_room(user_id))
        log.info(
            "live_connected",
            connection_id=conn.connection_id,
            user_id=user_id,
        )
        return conn

    def disconnect(self, conn: LiveConnection) -> None:
        """注销连接并离开所有房间（可重复调用）"""
        if self._connections.pop(conn.connection_id, None) is None:
            return
        for room in list(conn.rooms):
            self._leave(conn, room)
        log.info(
            "live_disconnected",
            connection_id=conn.connection_id,
            user_id=conn.user_id,
        )

    def join_task(self, conn: LiveConnection, task_id: str) -> None:
        """连接订阅指定任务的房间"""
        if conn.connection_id in self._connections:
            self._join(conn, task_room(task_id))

    def leave_task(self, conn: LiveConnection, task_id: str) -> None:
        """连接取消订阅指定任务的房间"""
        self._leave(conn, task_room(task_id))

    def room_members(self, room: str) -> set[str]:
        """房间内的 connection_id 集合（副本）"""
        return set(self._rooms.get(room, set()))

    async def broadcast_all(self, event: str, payload: dict[str, Any]) -> None:
        """推送给所有连接，不做相关性过滤"""
        message = LiveMessage(event=str(event), data=payload)
        for conn in list(self._connections.values()):
            self._deliver(conn, message)

    async def send_to_user(self, user_id: str, event: str, payload: dict[str, Any]) -> None:
        """推送给指定用户的私有房间"""
        await self._send_to_room(user_room(user_id), event, payload)

    async def send_to_task_subscribers(
        self,
        task_id: str,
        event: str,
        payload: dict[str, Any],
        exclude_connection_id: str | None = None,
    ) -> None:
        """推送给指定任务房间内的连接，可排除发送方连接"""
        await self._send_to_room(task_room(task_id), event, payload, exclude_connection_id)

    async def send_to_connection(
        self,
        conn: LiveConnection,
        event: str,
        payload: dict[str, Any],
    ) -> None:
        """仅推送给单个连接（订阅确认、错误提示等连接级消息）"""
        self._deliver(conn, LiveMessage(event=str(event), data=payload))

    async def _send_to_room(
        self,
        room: str,
        event: str,
        payload: dict[str, Any],
        exclude_connection_id: str | None = None,
    ) -> None:
        message = LiveMessage(event=str(event), data=payload)
        for connection_id in self.room_members(room):
            if connection_id == exclude_connection_id:
                continue
            conn = self._connections.get(connection_id)
            if conn is not None:
                self._deliver(conn, message)

    def _deliver(self, conn: LiveConnection, message: LiveMessage) -> None:
        try:
            conn.queue.put_nowait(message)
        except asyncio.QueueFull:
            # 慢消费者：断开，由传输层在下一次轮询时关闭
            log.warning(
                "live_connection_evicted",
                connection_id=conn.connection_id,
                user_id=conn.user_id,
                dropped_event=message.event,
            )
            conn.evicted = True
            self.disconnect(conn)

    def _join(self, conn: LiveConnection, room: str) -> None:
        self._rooms[room].add(conn.connection_id)
        conn.rooms.add(room)

    def _leave(self, conn: LiveConnection, room: str) -> None:
        members = self._rooms.get(room)
        if members is not None:
            members.discard(conn.connection_id)
            if not members:
                del self._rooms[room]
        conn.rooms.discard(room)
