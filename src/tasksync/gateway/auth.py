"""身份校验 -- JWT 解析为操作者 ID

只负责校验已签发的 token，不负责签发。
AuthConfig 从环境变量加载，未配置密钥时所有请求都会被拒绝。
"""

import os

import jwt
import structlog
from pydantic import BaseModel, Field, SecretStr
from tasksync.core.exceptions import AuthenticationError

log = structlog.get_logger()


class AuthConfig(BaseModel):
    """鉴权配置 -- 从环境变量加载

    环境变量:
        TASKSYNC_JWT_SECRET: JWT 签名密钥
        TASKSYNC_JWT_ALGORITHM: 签名算法（默认 HS256）
    """

    jwt_secret: SecretStr = Field(
        default=SecretStr(""),
        description="JWT 签名密钥",
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT 签名算法",
    )


def load_auth_config() -> AuthConfig:
    """从环境变量加载鉴权配置"""
    kwargs: dict = {}

    if val := os.environ.get("TASKSYNC_JWT_SECRET"):
        kwargs["jwt_secret"] = SecretStr(val)
    else:
        log.warning(
            "jwt_secret_missing",
            env_var="TASKSYNC_JWT_SECRET",
            message="未配置 JWT 密钥，所有鉴权请求都将被拒绝",
        )

    if val := os.environ.get("TASKSYNC_JWT_ALGORITHM"):
        kwargs["jwt_algorithm"] = val

    return AuthConfig(**kwargs)


def resolve_actor_id(token: str | None, config: AuthConfig) -> str:
    """校验 token 并返回操作者 ID

    优先取 userId 声明，缺失时回退到 sub。

    Raises:
        AuthenticationError: token 缺失、无效、过期或不含用户标识
    """
    if not token:
        raise AuthenticationError("Authentication required")

    secret = config.jwt_secret.get_secret_value()
    if not secret:
        raise AuthenticationError("Authentication is not configured")

    try:
        claims = jwt.decode(token, secret, algorithms=[config.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid token") from e

    actor_id = claims.get("userId") or claims.get("sub")
    if not isinstance(actor_id, str) or not actor_id:
        raise AuthenticationError("Token does not identify a user")
    return actor_id
