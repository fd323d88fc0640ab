import threading

import pytest

from rotaclient import RotatingClient, blocking_factory

from conftest import FakeClient

pytestmark = pytest.mark.anyio


async def test_blocking_factory_runs_in_worker_thread():
    threads = []

    def build(name, *, suffix=""):
        threads.append(threading.get_ident())
        return FakeClient(name + suffix)

    rc = RotatingClient(blocking_factory(build, "blocking", suffix="-1"))
    assert await rc.send("ping") == "blocking-1:ping"
    await rc.close()

    assert threads and threads[0] != threading.get_ident()
