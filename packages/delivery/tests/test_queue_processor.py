"""QueueProcessor 测试 -- 重试队列单项处理"""

import httpx
from sightline.core.models import QueueItem
from sightline.delivery import (
    TEXT_PLAIN_HEADERS,
    CollectorClient,
    CollectorHTTPError,
    QueueProcessor,
)

STALE_SENT_AT = "2000-01-01T00:00:00+00:00"


def _item() -> QueueItem:
    return QueueItem(
        url="https://api.seg.test/t",
        headers=dict(TEXT_PLAIN_HEADERS),
        payload={"event": "x", "sentAt": STALE_SENT_AT},
    )


class TestQueueProcessor:
    async def test_refreshes_sent_at_before_send(self, make_transport):
        transport = make_transport(lambda request: httpx.Response(200))
        results = []
        async with httpx.AsyncClient(transport=transport) as http:
            processor = QueueProcessor(CollectorClient(http))
            await processor(_item(), lambda err, resp: results.append((err, resp)))

        sent = transport.bodies()[0]
        assert sent["event"] == "x"
        assert sent["sentAt"] != STALE_SENT_AT
        err, resp = results[0]
        assert err is None
        assert resp.status_code == 200

    async def test_failure_reported_through_done(self, make_transport):
        transport = make_transport(lambda request: httpx.Response(500))
        results = []
        async with httpx.AsyncClient(transport=transport) as http:
            processor = QueueProcessor(CollectorClient(http))
            await processor(_item(), lambda err, resp: results.append((err, resp)))

        assert len(results) == 1
        err, resp = results[0]
        assert isinstance(err, CollectorHTTPError)
        assert err.recoverable is True
        assert resp is None
