"""Remote and secret value sources."""

from pathlib import Path
from typing import Callable, Protocol, runtime_checkable

from .loading import PathLike


@runtime_checkable
class Source(Protocol):
    """Anything able to fetch one secret or remote value as a string."""

    def fetch(self) -> str: ...


class CallableSource:
    """Adapt a zero-argument function into a :class:`Source`."""

    def __init__(self, func: Callable[[], str]):
        self.func = func

    def fetch(self) -> str:
        return self.func()

    def __repr__(self) -> str:
        return f"CallableSource({self.func!r})"


class FileSource:
    """Read a value from a plaintext file such as a mounted secret.

    A single trailing newline is stripped.
    """

    def __init__(self, path: PathLike, encoding: str = "utf-8"):
        self.path = Path(path)
        self.encoding = encoding

    def fetch(self) -> str:
        text = self.path.read_text(encoding=self.encoding)
        if text.endswith("\n"):
            text = text[:-1]
        return text

    def __repr__(self) -> str:
        return f"FileSource({str(self.path)!r})"
