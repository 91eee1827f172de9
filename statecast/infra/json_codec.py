import base64
import json
from typing import Any

from statecast.core.ports.codec import Codec


class _BytesEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, (bytes, bytearray)):
            return {"__bytes__": base64.b64encode(obj).decode("ascii")}
        return super().default(obj)


def _bytes_hook(obj: dict) -> Any:
    if len(obj) == 1 and "__bytes__" in obj:
        return base64.b64decode(obj["__bytes__"], validate=True)
    return obj


class JsonCodec(Codec):
    """
    UTF-8 JSON implementation of the Codec interface, for observers that
    cannot speak MsgPack. JSON has no binary type: bytes values are carried
    as {"__bytes__": "<base64>"} objects, so a state holding a dict of that
    exact shape (a single "__bytes__" key with valid base64) decodes as bytes.
    """
    def encode(self, value: Any) -> bytes:
        return json.dumps(value, cls=_BytesEncoder, separators=(",", ":")).encode("utf-8")

    def decode(self, data: bytes) -> Any:
        return json.loads(data.decode("utf-8"), object_hook=_bytes_hook)
