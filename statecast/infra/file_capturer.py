from pathlib import Path

from statecast.core.ports.capture import Capturer


class FileCapturer(Capturer):
    """
    Capturer returning an image rendered to disk by the host toolkit,
    e.g. a screenshot file refreshed after every action.
    """
    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    def capture(self) -> bytes:
        try:
            data = self._path.read_bytes()
        except FileNotFoundError:
            raise RuntimeError(f"Nothing to capture, {self._path} does not exist") from None

        if not data:
            raise RuntimeError(f"Nothing to capture, {self._path} is empty")
        return data
