"""Protocol for local document sources."""

from pathlib import Path
from typing import Iterator, Protocol, runtime_checkable

from ctxpack.models import SourceFile


@runtime_checkable
class Ingester(Protocol):
    """Enumerates the files of a local source such as a folder or a zip.

    ``source_type`` names the kind of source ('folder', 'zip'). Matching is
    structural; implementations do not subclass this.
    """

    source_type: str

    def can_handle(self, source: Path) -> bool:
        """True when ``source`` is something this ingester reads."""
        ...

    def ingest(self, source: Path) -> Iterator[SourceFile]:
        """Yield every non-ignored file with a path relative to ``source``.

        Binary files are yielded with ``content=None``.
        """
        ...
