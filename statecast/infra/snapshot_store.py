import logging
import re
from pathlib import Path

import yaml

from statecast.core.models.message import Snapshot
from statecast.core.ports.snapshot import SnapshotSink

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")


class DirectorySnapshotStore(SnapshotSink):
    """
    Writes each snapshot received by the observer into a directory:

        <sequence>-<action>.png    the rendered image
        <sequence>-<action>.yaml   the action and the state

    The action label is sanitized to be usable in a file name.
    """
    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)
        self._logger = logging.getLogger("infra.snapshot_store")

    def store(self, sequence: int, snapshot: Snapshot) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)

        label = _UNSAFE.sub("_", snapshot.action).strip("_") or "action"
        stem = f"{sequence:06d}-{label}"

        (self._directory / f"{stem}.png").write_bytes(snapshot.image)

        document = {"sequence": sequence, "action": snapshot.action, "state": snapshot.state}
        with open(self._directory / f"{stem}.yaml", "w", encoding="utf-8") as fp:
            yaml.safe_dump(document, fp, sort_keys=False)

        self._logger.debug(f"Stored snapshot {sequence} as {stem}")
