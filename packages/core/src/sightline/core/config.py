"""配置模块 -- TrackerConfig + 可通过环境变量覆盖的常量

TrackerConfig 字段名使用 snake_case，
同时接受 camelCase 选项名（apiKey / apiHost / crossDomainIdServers ...）。
"""

import os
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field

log = structlog.get_logger()

# 宿主库标识（写入 context.library）
LIBRARY_NAME = "sightline"
LIBRARY_VERSION = "0.1.0"

# 默认采集主机（含路径前缀）
DEFAULT_API_HOST = "api.sightline.io/v1"

# messageId 固定前缀
MESSAGE_ID_PREFIX = "sl-"

# Cookie 有效期：1 年（秒）
COOKIE_MAX_AGE_S: int = 365 * 24 * 60 * 60

# Beacon 单次载荷上限（字节），超过则退回同步请求
BEACON_MAX_BYTES: int = int(os.environ.get("SIGHTLINE_BEACON_MAX_BYTES", "65536"))

# 重试队列命名空间
RETRY_QUEUE_NAMESPACE = "sightline"

# 持久化 key
USER_ID_KEY = "sl_user_id"
ANONYMOUS_ID_KEY = "sl_anonymous_id"
CROSS_DOMAIN_ID_KEY = "sl_xid"
CROSS_DOMAIN_FROM_KEY = "sl_xid_fd"
CROSS_DOMAIN_TS_KEY = "sl_xid_ts"
REFERRER_KEY = "s:context.referrer"
AMP_ID_KEY = "amp_client_id"

# 废弃的跨域 ID key（一次性迁移到上面三个 key）
LEGACY_CROSS_DOMAIN_ID_KEY = "xdid"
LEGACY_CROSS_DOMAIN_FROM_KEY = "xdid_domain"
LEGACY_CROSS_DOMAIN_TS_KEY = "xdid_ts"


def get_local_store_path() -> str:
    """沙箱环境（file: / 扩展页）下本地 KV 存储的 SQLite 路径"""
    return os.environ.get(
        "SIGHTLINE_LOCAL_STORE_PATH",
        str(Path(os.environ.get("SIGHTLINE_DATA_DIR", "data")) / "sightline.db"),
    )


class TrackerConfig(BaseModel):
    """采集客户端配置

    环境变量见 load_tracker_config()。
    """

    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(
        alias="apiKey",
        min_length=1,
        description="写入每条消息的 writeKey",
    )
    api_host: str = Field(
        default=DEFAULT_API_HOST,
        alias="apiHost",
        description="采集端点主机（可含路径前缀）",
    )
    cross_domain_id_servers: list[str] = Field(
        default_factory=list,
        alias="crossDomainIdServers",
        description="跨域 ID 对等域名列表，为空时不启用 Resolver",
    )
    beacon: bool = Field(default=False, description="是否使用 beacon 投递")
    retry_queue: bool = Field(
        default=False,
        alias="retryQueue",
        description="是否交给持久化重试队列",
    )
    add_bundled_metadata: bool = Field(
        default=False,
        alias="addBundledMetadata",
        description="是否附加 _metadata",
    )
    unbundled_integrations: list[str] = Field(
        default_factory=list,
        alias="unbundledIntegrations",
        description="未打包的目的地名称",
    )
    cross_domain_lookup_timeout_s: float = Field(
        default=10,
        ge=1,
        alias="crossDomainLookupTimeout",
        description="单个跨域 ID 查询请求超时（秒）",
    )
    request_timeout_s: float = Field(
        default=30,
        ge=1,
        alias="requestTimeout",
        description="同步投递请求超时（秒）",
    )


def _env_flag(name: str) -> bool | None:
    val = os.environ.get(name)
    if val is None or val == "":
        return None
    return val.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> list[str] | None:
    val = os.environ.get(name)
    if val is None:
        return None
    return [item.strip() for item in val.split(",") if item.strip()]


def load_tracker_config() -> TrackerConfig:
    """从环境变量加载 TrackerConfig

    环境变量映射:
        SIGHTLINE_API_KEY -> api_key（必填）
        SIGHTLINE_API_HOST -> api_host
        SIGHTLINE_CROSS_DOMAIN_ID_SERVERS -> cross_domain_id_servers（逗号分隔）
        SIGHTLINE_BEACON -> beacon
        SIGHTLINE_RETRY_QUEUE -> retry_queue
        SIGHTLINE_ADD_BUNDLED_METADATA -> add_bundled_metadata
        SIGHTLINE_UNBUNDLED_INTEGRATIONS -> unbundled_integrations（逗号分隔）
        SIGHTLINE_LOOKUP_TIMEOUT_S -> cross_domain_lookup_timeout_s

    Raises:
        pydantic.ValidationError: SIGHTLINE_API_KEY 缺失或为空
    """
    kwargs: dict = {"api_key": os.environ.get("SIGHTLINE_API_KEY", "")}

    if val := os.environ.get("SIGHTLINE_API_HOST"):
        kwargs["api_host"] = val

    if (servers := _env_list("SIGHTLINE_CROSS_DOMAIN_ID_SERVERS")) is not None:
        kwargs["cross_domain_id_servers"] = servers

    if (flag := _env_flag("SIGHTLINE_BEACON")) is not None:
        kwargs["beacon"] = flag

    if (flag := _env_flag("SIGHTLINE_RETRY_QUEUE")) is not None:
        kwargs["retry_queue"] = flag

    if (flag := _env_flag("SIGHTLINE_ADD_BUNDLED_METADATA")) is not None:
        kwargs["add_bundled_metadata"] = flag

    if (names := _env_list("SIGHTLINE_UNBUNDLED_INTEGRATIONS")) is not None:
        kwargs["unbundled_integrations"] = names

    if val := os.environ.get("SIGHTLINE_LOOKUP_TIMEOUT_S"):
        try:
            kwargs["cross_domain_lookup_timeout_s"] = float(val)
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="SIGHTLINE_LOOKUP_TIMEOUT_S",
                value=val,
                fallback=10,
            )
            # 使用默认值，不阻塞启动

    return TrackerConfig(**kwargs)
