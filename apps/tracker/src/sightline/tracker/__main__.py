"""CLI 入口模块 -- python -m sightline.tracker <command>

支持的命令：
  track <event> [page_url]   发送一条 track 事件
  resolve-id [page_url]      运行跨域 ID 解析并输出结果

配置从 SIGHTLINE_* 环境变量读取。
"""

import asyncio
import sys

from sightline.core.models import PageContext

from .logging_config import setup_logging
from .main import create_tracker

DEFAULT_PAGE_URL = "https://localhost/"


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m sightline.tracker <command>")
        print("命令:")
        print("  track <event> [page_url]  发送一条 track 事件")
        print("  resolve-id [page_url]     运行跨域 ID 解析")
        sys.exit(1)

    setup_logging()
    command = sys.argv[1]

    if command == "track" and len(sys.argv) >= 3:
        page_url = sys.argv[3] if len(sys.argv) > 3 else DEFAULT_PAGE_URL
        sys.exit(asyncio.run(send_track(sys.argv[2], page_url)))
    elif command == "resolve-id":
        page_url = sys.argv[2] if len(sys.argv) > 2 else DEFAULT_PAGE_URL
        sys.exit(asyncio.run(resolve_id(page_url)))
    else:
        print(f"未知命令: {command}")
        print("可用命令: track, resolve-id")
        sys.exit(1)


async def send_track(event: str, page_url: str) -> int:
    """发送一条 track 事件，返回进程退出码"""
    tracker = await create_tracker(PageContext(url=page_url, user_agent="sightline-cli"))
    try:
        result = await tracker.track(event)
    finally:
        await tracker.aclose()

    if result.error is not None:
        print(f"发送失败: {result.error}")
        return 1
    print(f"已发送 {result.message_id} -> {result.url} ({result.transport.value})")
    return 0


async def resolve_id(page_url: str) -> int:
    """运行跨域 ID 解析，返回进程退出码"""
    tracker = await create_tracker(PageContext(url=page_url, user_agent="sightline-cli"))
    try:
        identity = await tracker.initialize()
    finally:
        await tracker.aclose()

    if identity.cross_domain_id is None:
        print(f"未解析到跨域 ID（状态: {tracker.resolver.state.value}）")
        return 1
    print(f"crossDomainId={identity.cross_domain_id} fromDomain={identity.from_domain}")
    return 0


if __name__ == "__main__":
    main()
