from dataclasses import dataclass
from pathlib import Path


@dataclass
class StreamConfig:
    """
    Tuning of a single connection's reader, writer and framing layer.

    None of these values are part of the wire protocol: both peers may use
    different chunk sizes, only the frame layout must match.
    """
    chunk_size: int = 1024
    """
    Maximum number of bytes requested from the source per read.
    """

    write_quantum: int = 1024
    """
    Maximum number of bytes handed to the sink per write attempt.
    The writer yields to the event loop between two attempts.
    """

    max_message_size: int = 16 * 1024 * 1024  # 16MB
    """
    Largest payload accepted in either direction. A snapshot carries a
    rendered image, so this is far above typical RPC limits. A larger
    inbound length is treated as a framing error.
    """


@dataclass
class ObserverConfig:
    """
    Static configuration for an ObserverServer.
    """
    host: str
    """
    IP address or hostname on which the observer listens.
    """

    port: int
    """
    TCP port to bind. If set to 0, the OS selects an available port.
    """

    backlog: int = 16
    """
    Maximum number of pending TCP connections waiting for accept().
    """

    timeout_graceful_shutdown: float = 5.0
    """
    Maximum time (in seconds) allowed for the observer's background
    tasks to complete on shutdown. Remaining tasks are cancelled.
    """

    history_size: int = 256
    """
    Number of received snapshots kept in memory by the ObserverSession.
    """

    snapshot_dir: Path | None = None
    """
    Directory receiving every snapshot on disk. Nothing is written when unset.
    """
