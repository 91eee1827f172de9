import asyncio
import pytest
from unittest.mock import Mock

from statecast.core.models.message import Snapshot
from statecast.core.protocol.decoder import FrameDecoder
from statecast.core.protocol.frame import pack_frame
from statecast.core.session.observer import ObserverSession
from tests.fake.fake_stream import FakeEndpoint
from tests.helpers import eventually


def snapshot_frame(codec, i: int) -> bytes:
    snapshot = Snapshot(state={"count": i}, action=f"tap-{i}", image=b"png-%d" % i)
    return pack_frame(codec.encode(snapshot.to_dict()))


@pytest.mark.ut
@pytest.mark.asyncio
async def test_snapshots_are_numbered_and_history_is_bounded(codec, spawner):
    received = []
    session = ObserverSession(codec=codec, spawner=spawner, history_size=2, on_message=received.append)
    endpoint = FakeEndpoint()
    await session.on_discovered(endpoint)

    endpoint.source.feed(b"".join(snapshot_frame(codec, i) for i in range(3)))
    await eventually(lambda: len(received) == 3)

    assert [seq for seq, _ in session.history] == [2, 3]
    assert session.history[-1][1] == Snapshot(state={"count": 2}, action="tap-2", image=b"png-2")
    session.close()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_snapshot_sink_receives_snapshots(codec, spawner):
    store = Mock()
    session = ObserverSession(codec=codec, spawner=spawner, snapshot_sink=store)
    endpoint = FakeEndpoint()
    await session.on_discovered(endpoint)

    endpoint.source.feed(snapshot_frame(codec, 0))
    await eventually(lambda: store.store.called)

    sequence, snapshot = store.store.call_args.args
    assert sequence == 1
    assert snapshot.action == "tap-0"
    session.close()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_snapshot_sink_failure_is_logged(codec, spawner, caplog):
    received = []
    store = Mock()
    store.store.side_effect = OSError("disk full")
    session = ObserverSession(codec=codec, spawner=spawner, snapshot_sink=store, on_message=received.append)
    endpoint = FakeEndpoint()
    await session.on_discovered(endpoint)

    endpoint.source.feed(snapshot_frame(codec, 0))
    await eventually(lambda: received)

    assert "Unable to store snapshot 1" in caplog.text
    assert session.connected
    session.close()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_invalid_snapshot_is_skipped(codec, spawner):
    received = []
    session = ObserverSession(codec=codec, spawner=spawner, on_message=received.append)
    endpoint = FakeEndpoint()
    await session.on_discovered(endpoint)

    endpoint.source.feed(pack_frame(codec.encode({"state": 1, "action": "tap"})))
    endpoint.source.feed(snapshot_frame(codec, 1))
    await eventually(lambda: received)

    assert [seq for seq, _ in session.history] == [1]
    assert received[0].action == "tap-1"
    session.close()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_push_and_restore_state(codec, spawner):
    session = ObserverSession(codec=codec, spawner=spawner)
    assert session.push_state({"count": 0}) is False

    endpoint = FakeEndpoint()
    await session.on_discovered(endpoint)
    endpoint.source.feed(snapshot_frame(codec, 5))
    await eventually(lambda: session.history)

    assert session.push_state({"count": 0})
    assert session.restore(1)
    await asyncio.wait_for(session.flush(), 1)

    results = []
    FrameDecoder(codec, results.append).decode(bytes(endpoint.sink.data))
    assert [r.message for r in results] == [{"state": {"count": 0}}, {"state": {"count": 5}}]

    with pytest.raises(KeyError):
        session.restore(42)
    session.close()
