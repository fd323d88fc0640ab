import asyncio

import pytest


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeClient:
    """Plain client: can send and close, reports no counts."""

    def __init__(self, name: str):
        self.name = name
        self.sent = []
        self.closed = []  # force flag of every close call

    async def send(self, request):
        self.sent.append(request)
        return f"{self.name}:{request}"

    async def close(self, force: bool = False):
        self.closed.append(force)


class CountingFakeClient(FakeClient):
    """Client that already reports its own operation counts."""

    def __init__(self, name: str):
        super().__init__(name)
        self.ongoing_count = 0
        self.completed_count = 0


class Factory:
    def __init__(self, cls=FakeClient, delay: float = 0.0, fail_first: int = 0):
        self.cls = cls
        self.delay = delay
        self.fail_first = fail_first
        self.calls = 0
        self.created = []

    async def __call__(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.calls <= self.fail_first:
            raise RuntimeError("cannot connect")
        client = self.cls(f"c{len(self.created)}")
        self.created.append(client)
        return client


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def factory():
    return Factory()


@pytest.fixture
def clock():
    return FakeClock()
