import pytest

from statecast.core.protocol.decoder import FrameDecoder
from statecast.core.protocol.encoder import FrameEncoder
from statecast.core.protocol.frame import FRAME_MARKER, HEADER_SIZE, pack_frame
from statecast.core.models.events import Decoded
from statecast.infra.msgpack_codec import MsgPackCodec
from tests.fake.fake_codec import CollectingWriter, RawCodec


@pytest.mark.ut
def test_wire_layout():
    writer = CollectingWriter()
    encoder = FrameEncoder(RawCodec(), writer)

    size = encoder.encode(b"0123456789")

    assert writer.writes == [bytes([206, 0, 0, 0, 10]) + b"0123456789"]
    assert size == HEADER_SIZE + 10


@pytest.mark.ut
def test_length_is_big_endian():
    frame = pack_frame(b"x" * 300)

    assert frame[0] == FRAME_MARKER
    assert frame[1:5] == bytes([0, 0, 1, 44])


@pytest.mark.ut
def test_codec_failure_is_raised_and_nothing_written(codec):
    writer = CollectingWriter()
    encoder = FrameEncoder(codec, writer)

    with pytest.raises(TypeError):
        encoder.encode({"state": object()})

    assert writer.writes == []


@pytest.mark.ut
def test_oversized_message_is_rejected():
    writer = CollectingWriter()
    encoder = FrameEncoder(RawCodec(), writer, max_message_size=8)

    with pytest.raises(ValueError):
        encoder.encode(b"123456789")

    assert writer.writes == []


@pytest.mark.ut
def test_encoded_frames_decode_to_the_same_messages():
    codec = MsgPackCodec()
    writer = CollectingWriter()
    encoder = FrameEncoder(codec, writer)
    messages = [
        {"state": {"recordings": ["a", "b"], "playing": None}, "action": "play", "image": b"\x89PNG"},
        {"state": 3.5},
        [],
    ]

    for message in messages:
        encoder.encode(message)

    results = []
    FrameDecoder(codec, results.append).decode(writer.data)

    assert results == [Decoded(m) for m in messages]
