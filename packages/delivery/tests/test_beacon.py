"""BeaconTransport 测试 -- fire-and-forget 投递"""

import httpx
from sightline.delivery import BeaconTransport

URL = "https://api.seg.test/t"


class TestBeaconSend:
    """send() 接受与拒绝"""

    async def test_accepted_and_transmitted(self, make_transport):
        transport = make_transport(lambda request: httpx.Response(200))
        async with httpx.AsyncClient(transport=transport) as http:
            beacon = BeaconTransport(http)
            assert beacon.send(URL, '{"event":"x"}') is True
            assert beacon.pending_count == 1

            await beacon.flush()

        assert beacon.pending_count == 0
        assert len(transport.requests) == 1
        assert transport.requests[0].headers["content-type"] == "text/plain"
        assert transport.bodies() == [{"event": "x"}]

    async def test_oversize_rejected(self, make_transport):
        transport = make_transport(lambda request: httpx.Response(200))
        async with httpx.AsyncClient(transport=transport) as http:
            beacon = BeaconTransport(http, max_bytes=16)
            assert beacon.send(URL, "x" * 17) is False
            await beacon.flush()

        assert transport.requests == []

    async def test_limit_is_inclusive(self, make_transport):
        transport = make_transport(lambda request: httpx.Response(200))
        async with httpx.AsyncClient(transport=transport) as http:
            beacon = BeaconTransport(http, max_bytes=16)
            assert beacon.send(URL, "x" * 16) is True
            await beacon.flush()

    async def test_transmit_failure_not_raised(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            beacon = BeaconTransport(http)
            assert beacon.send(URL, "{}") is True
            await beacon.flush()

        assert beacon.pending_count == 0


class TestBeaconAvailability:
    def test_unavailable_without_running_loop(self):
        beacon = BeaconTransport(httpx.AsyncClient())
        assert beacon.available is False
        assert beacon.send(URL, "{}") is False

    async def test_available_inside_loop(self):
        async with httpx.AsyncClient() as http:
            assert BeaconTransport(http).available is True
