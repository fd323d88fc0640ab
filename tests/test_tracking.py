import asyncio

import pytest

from rotaclient import CountableClient, TrackingClient

from conftest import CountingFakeClient, FakeClient

pytestmark = pytest.mark.anyio


class SlowClient(FakeClient):
    def __init__(self):
        super().__init__("slow")
        self.gate = asyncio.Event()

    async def send(self, request):
        await self.gate.wait()
        if request == "fail":
            raise ConnectionError("reset by peer")
        return await super().send(request)


async def test_counts_ongoing_and_completed():
    inner = SlowClient()
    tc = TrackingClient(inner)

    tasks = [asyncio.create_task(tc.send(r)) for r in ("a", "fail")]
    await asyncio.sleep(0)
    assert tc.ongoing_count == 2
    assert tc.completed_count == 0

    inner.gate.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert results[0] == "slow:a"
    assert isinstance(results[1], ConnectionError)
    assert tc.ongoing_count == 0
    assert tc.completed_count == 2


async def test_close_forwards_force_flag():
    inner = FakeClient("x")
    tc = TrackingClient(inner)
    await tc.close(force=True)
    await tc.close()
    assert inner.closed == [True, False]


def test_capability_check():
    assert isinstance(TrackingClient(FakeClient("x")), CountableClient)
    assert isinstance(CountingFakeClient("y"), CountableClient)
    assert not isinstance(FakeClient("z"), CountableClient)
