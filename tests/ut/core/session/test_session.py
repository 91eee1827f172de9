import asyncio
import pytest
import pytest_asyncio
from unittest.mock import Mock

from statecast.core.models.message import StateUpdate
from statecast.core.protocol.frame import pack_frame
from statecast.core.protocol.decoder import FrameDecoder
from statecast.core.session.session import Session
from tests.fake.fake_stream import FakeEndpoint
from tests.helpers import eventually


@pytest.fixture
def capturer():
    capturer = Mock()
    capturer.capture.return_value = b"\x89PNG-view"
    return capturer


@pytest_asyncio.fixture
async def session(codec, spawner, capturer):
    session = Session(codec=codec, spawner=spawner, capturer=capturer)
    yield session
    session.close()


def decode_all(codec, data: bytes) -> list:
    results = []
    FrameDecoder(codec, results.append).decode(data)
    return [r.message for r in results]


@pytest.mark.ut
@pytest.mark.asyncio
async def test_send_without_connection_is_a_noop(session, capturer):
    session.send("tap", {"count": 1})

    assert not session.connected
    capturer.capture.assert_not_called()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_send_streams_a_snapshot(session, codec, capturer):
    endpoint = FakeEndpoint()
    await session.on_discovered(endpoint)

    session.send("tap", {"count": 1})
    await asyncio.wait_for(session.flush(), 1)

    capturer.capture.assert_called_once()
    assert decode_all(codec, bytes(endpoint.sink.data)) == [
        {"state": {"count": 1}, "action": "tap", "image": b"\x89PNG-view"}
    ]


@pytest.mark.ut
@pytest.mark.asyncio
async def test_send_with_image_skips_capture(session, codec, capturer):
    endpoint = FakeEndpoint()
    await session.on_discovered(endpoint)

    session.send("tap", None, image=b"given")
    await asyncio.wait_for(session.flush(), 1)

    capturer.capture.assert_not_called()
    assert decode_all(codec, bytes(endpoint.sink.data))[0]["image"] == b"given"


@pytest.mark.ut
@pytest.mark.asyncio
async def test_send_without_capturer_requires_image(codec, spawner):
    session = Session(codec=codec, spawner=spawner)
    await session.on_discovered(FakeEndpoint())

    with pytest.raises(RuntimeError):
        session.send("tap", {})
    session.close()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_encoding_error_is_raised_to_caller(session):
    endpoint = FakeEndpoint()
    await session.on_discovered(endpoint)

    with pytest.raises(TypeError):
        session.send("tap", {"bad": object()})

    await asyncio.wait_for(session.flush(), 1)
    assert endpoint.sink.data == b""
    assert session.connected


@pytest.mark.ut
@pytest.mark.asyncio
async def test_state_updates_reach_on_message(session, codec):
    received = []
    session.on_message = received.append
    endpoint = FakeEndpoint()
    await session.on_discovered(endpoint)

    endpoint.source.feed(pack_frame(codec.encode({"state": {"count": 0}})))
    await eventually(lambda: received)

    assert received == [StateUpdate(state={"count": 0})]


@pytest.mark.ut
@pytest.mark.asyncio
async def test_new_discovery_replaces_connection(session, codec):
    received = []
    session.on_message = received.append
    first, second = FakeEndpoint("first"), FakeEndpoint("second")

    await session.on_discovered(first)
    await session.on_discovered(second)

    assert first.sink.close_calls == 1
    assert first.source.close_calls == 1

    first.source.feed(pack_frame(codec.encode({"state": "stale"})))
    second.source.feed(pack_frame(codec.encode({"state": "fresh"})))
    session.send("tap", 1)
    await asyncio.wait_for(session.flush(), 1)
    await eventually(lambda: received)

    assert received == [StateUpdate(state="fresh")]
    assert first.sink.data == b""
    assert len(decode_all(codec, bytes(second.sink.data))) == 1


@pytest.mark.ut
@pytest.mark.asyncio
async def test_superseded_discovery_is_discarded(session):
    gate = asyncio.Event()
    slow, fast = FakeEndpoint("slow", gate=gate), FakeEndpoint("fast")

    pending = asyncio.create_task(session.on_discovered(slow))
    await asyncio.sleep(0)
    connection = await session.on_discovered(fast)
    gate.set()

    assert await pending is None
    assert slow.sink.close_calls == 1
    assert slow.source.close_calls == 1
    assert connection is not None and not connection.closed
    assert session.connected


@pytest.mark.ut
@pytest.mark.asyncio
async def test_connection_loss_disconnects_session(session, capturer):
    endpoint = FakeEndpoint()
    connection = await session.on_discovered(endpoint)

    endpoint.source.feed_eof()
    await asyncio.wait_for(connection.wait_closed(), 1)

    assert not session.connected
    session.send("tap", 1)
    capturer.capture.assert_not_called()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_open_failure_leaves_session_disconnected(session):
    with pytest.raises(ConnectionRefusedError):
        await session.on_discovered(FakeEndpoint(error=ConnectionRefusedError()))

    assert not session.connected


@pytest.mark.ut
@pytest.mark.asyncio
async def test_closed_session_ignores_everything(session, capturer):
    endpoint = FakeEndpoint()
    await session.on_discovered(endpoint)
    session.close()

    assert endpoint.sink.close_calls == 1
    assert await session.on_discovered(FakeEndpoint()) is None
    session.send("tap", 1)
    session.close()
    capturer.capture.assert_not_called()
    assert session.closed


@pytest.mark.ut
@pytest.mark.asyncio
async def test_serve_closes_session_when_discovery_stops(session):
    endpoint = FakeEndpoint()

    class OneShotDiscovery:
        async def run(self, on_found, stop_event):
            await on_found(endpoint)

    await session.serve(OneShotDiscovery(), asyncio.Event())

    assert session.closed
    assert endpoint.sink.close_calls == 1
