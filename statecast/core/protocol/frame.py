import struct

FRAME_MARKER = 206
"""First byte of every frame."""

# "!Bi" = marker byte + int32 big-endian (network order), no padding
HEADER = struct.Struct("!Bi")
HEADER_SIZE = HEADER.size

MAX_PAYLOAD_SIZE = 2**31 - 1
"""Largest length representable by the signed 32-bit length field."""


def pack_frame(payload: bytes) -> bytes:
    """Prefix `payload` with the frame header."""
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise ValueError(f"Payload of {len(payload)} bytes does not fit in a frame")
    return HEADER.pack(FRAME_MARKER, len(payload)) + payload
