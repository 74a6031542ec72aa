"""structlog 配置模块

dev 模式：控制台可读输出
json 模式：单行 JSON，附带 sdk 标识，便于宿主日志管道按来源过滤

对等域查询 URL（/v1/id/{writeKey}）及其错误信息会带上 writeKey，
所有字符串字段在渲染前做脱敏。
"""

import logging
import os
from collections.abc import Callable, MutableMapping
from typing import Any

import structlog
from sightline.core.config import LIBRARY_NAME, LIBRARY_VERSION

# 第三方库逐请求 / 逐语句的 debug 输出
NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite")

EventDict = MutableMapping[str, Any]


def mask_write_key(write_key: str) -> str:
    """保留前 4 位，其余替换为 *"""
    return write_key[:4] + "*" * max(len(write_key) - 4, 3)


def redact_write_key(write_key: str | None) -> Callable[[Any, str, EventDict], EventDict]:
    """构造脱敏处理器：把字符串字段里出现的 writeKey 替换为掩码"""
    masked = mask_write_key(write_key) if write_key else ""

    def redact(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        if not write_key:
            return event_dict
        for key, value in event_dict.items():
            if isinstance(value, str) and write_key in value:
                event_dict[key] = value.replace(write_key, masked)
        return event_dict

    return redact


def add_sdk_info(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("sdk", f"{LIBRARY_NAME}/{LIBRARY_VERSION}")
    return event_dict


def setup_logging(write_key: str | None = None) -> None:
    """初始化 structlog 配置

    - SIGHTLINE_LOG_FORMAT: "json" 为结构化输出，其余（默认 "dev"）为控制台输出
    - SIGHTLINE_LOG_LEVEL: 日志级别（默认 INFO，无法识别时按 INFO）
    - write_key: 需要脱敏的 writeKey，缺省取 SIGHTLINE_API_KEY
    """
    log_format = os.environ.get("SIGHTLINE_LOG_FORMAT", "dev")
    log_level = os.environ.get("SIGHTLINE_LOG_LEVEL", "INFO")
    if write_key is None:
        write_key = os.environ.get("SIGHTLINE_API_KEY") or None

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_write_key(write_key),
    ]

    if log_format == "json":
        shared_processors.append(add_sdk_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
