from typing import Protocol, Any


class Codec(Protocol):
    """
    Defines the interface for encoding/decoding message payloads carried
    inside a frame. Both peers must agree on the codec out of band: the
    wire format does not identify it.

    Implementations must be:
    - deterministic
    - pure (no side effects)
    - safe against malformed input (raise, never crash the process)
    """

    def encode(self, value: Any) -> bytes:
        """Encode a Python value into bytes. Raises on non-serializable input."""

    def decode(self, data: bytes) -> Any:
        """Decode a payload received from the network. Raises on malformed input."""
