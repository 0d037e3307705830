"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、实时连接队列大小、心跳间隔、字段长度限制等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKSYNC_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKSYNC_DB_PATH",
        str(_get_base_dir() / "sqlite" / "tasksync.db"),
    )


# 每个实时连接的待发送队列上限（超过视为慢消费者并断开）
LIVE_QUEUE_MAXSIZE: int = int(os.environ.get("TASKSYNC_LIVE_QUEUE_MAXSIZE", "100"))

# 实时连接心跳间隔（秒）
HEARTBEAT_INTERVAL: int = int(os.environ.get("TASKSYNC_HEARTBEAT_INTERVAL", "15"))

# 任务标题最大长度
TITLE_MAX_LENGTH: int = 100
