"""Delivery 包测试 fixtures"""

import pytest
from sightline.core.models import Identity, QueueItem
from sightline.delivery import ProcessedListener


class FakeRetryQueue:
    """记录入队项的 RetryQueue 实现"""

    def __init__(self) -> None:
        self.items: list[QueueItem] = []
        self.listeners: list[ProcessedListener] = []
        self.started = False
        self.stopped = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def add_item(self, item: QueueItem) -> None:
        self.items.append(item)

    def on_processed(self, listener: ProcessedListener) -> None:
        self.listeners.append(listener)


@pytest.fixture
def fake_queue() -> FakeRetryQueue:
    return FakeRetryQueue()


@pytest.fixture
def identity() -> Identity:
    return Identity(anonymous_id="anon-1")
