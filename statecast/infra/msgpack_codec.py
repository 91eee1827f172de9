import msgpack
from typing import Any

from statecast.core.ports.codec import Codec


class MsgPackCodec(Codec):
    """
    MsgPack-based implementation of the Codec interface, the default one.

    - compact binary encoding: image bytes travel as-is, without base64
    - maps keep non-string keys, e.g. recordings keyed by id
    - deterministic
    - fast
    """
    def encode(self, value: Any) -> bytes:
        return msgpack.packb(value, use_bin_type=True)

    def decode(self, data: bytes) -> Any:
        return msgpack.unpackb(data, raw=False, strict_map_key=False)
