"""CLI 入口模块 -- python -m tasksync.core <command>

支持的命令：
  init-db                    初始化数据库表结构
  create-user <email> <name> 创建用户并输出 user_id
  list-users                 列出所有用户
"""

import asyncio
import sys
from datetime import UTC, datetime

from ulid import ULID

from .config import get_db_path

_USAGE = """用法: python -m tasksync.core <command>
命令:
  init-db                    初始化数据库表结构
  create-user <email> <name> 创建用户并输出 user_id
  list-users                 列出所有用户"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "create-user":
        if len(sys.argv) < 4:
            print("用法: python -m tasksync.core create-user <email> <name>")
            sys.exit(1)
        asyncio.run(create_user(sys.argv[2], " ".join(sys.argv[3:])))
    elif command == "list-users":
        asyncio.run(list_users())
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, create-user, list-users")
        sys.exit(1)


async def init_database() -> None:
    """初始化数据库（建表幂等）"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    await store_group.conn.close()
    print("初始化完成")


async def create_user(email: str, name: str) -> str:
    """创建用户并输出 user_id"""
    from .models.user import User
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        user = User(
            user_id=str(ULID()),
            email=email,
            name=name,
            created_at=datetime.now(UTC),
        )
        await store_group.user_store.create_user(user)
        print(user.user_id)
        return user.user_id
    finally:
        await store_group.conn.close()


async def list_users() -> None:
    """列出所有用户"""
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        for user in await store_group.user_store.list_users():
            print(f"{user.user_id}\t{user.email}\t{user.name}")
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
