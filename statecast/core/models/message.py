from dataclasses import dataclass, asdict
from typing import Any, Callable


@dataclass
class Snapshot:
    """
    Application-level message sent from the debugged application to the
    observer. The transport layer encodes/decodes it via the Codec, while
    both ends manipulate it in this native Python form.
    """
    state: Any
    """
    The application state at the time the action was applied.
    Must be serializable by the configured Codec.
    """

    action: str
    """
    Label of the action that produced this state, e.g. "tap/record".
    """

    image: bytes
    """
    Rendered image (PNG) of the application's view hierarchy.
    """

    def to_dict(self) -> dict[str, Any]:
        """Return a plain dictionary representation of the snapshot."""
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Any) -> "Snapshot":
        if not isinstance(raw, dict):
            raise TypeError(f"Expected a mapping, got {type(raw).__name__}")

        snapshot = cls(**raw)
        if not isinstance(snapshot.action, str):
            raise TypeError("Snapshot action must be a string")
        if not isinstance(snapshot.image, (bytes, bytearray)):
            raise TypeError("Snapshot image must be bytes")

        snapshot.image = bytes(snapshot.image)
        return snapshot


@dataclass
class StateUpdate:
    """
    Message pushed back by the observer: a state the application
    should adopt in place of its current one.
    """
    state: Any

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Any) -> "StateUpdate":
        if not isinstance(raw, dict):
            raise TypeError(f"Expected a mapping, got {type(raw).__name__}")
        return cls(**raw)


MessageParser = Callable[[Any], Any]
"""
Converts the raw value produced by the Codec into the expected message
type. Raises when the value does not describe such a message.
"""
