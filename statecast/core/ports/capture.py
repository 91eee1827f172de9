from typing import Protocol


class Capturer(Protocol):
    def capture(self) -> bytes:
        """
        Render the current application view into an encoded image.
        Raises RuntimeError when there is nothing to render.
        """
