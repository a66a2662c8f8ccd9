"""Ingester for local folders."""

import os
from pathlib import Path, PurePath
from typing import Iterator

from ctxpack.models import SourceFile
from ctxpack.utils.binary import decode_text, detect_binary

# Directory names never worth descending into
IGNORED_DIRS = {
    "__pycache__",
    "node_modules",
    "venv",
    "env",
    "dist",
    "build",
    "site-packages",
}


def is_ignored(path: PurePath) -> bool:
    """Hidden entries and build or dependency directories are skipped."""
    return any(part.startswith(".") or part in IGNORED_DIRS or part.endswith(".egg-info") for part in path.parts)


class FolderIngester:
    """Ingester for local filesystem folders."""

    source_type = "folder"

    def can_handle(self, source: Path) -> bool:
        return source.is_dir()

    def ingest(self, source: Path) -> Iterator[SourceFile]:
        """Yield the files under ``source``, walking directories in name order.

        Unreadable files are skipped.
        """
        for root, dirs, files in os.walk(source):
            root_path = Path(root)
            dirs[:] = sorted(d for d in dirs if not is_ignored(PurePath(d)))

            for filename in sorted(files):
                full_path = root_path / filename
                rel_path = full_path.relative_to(source)
                if is_ignored(rel_path):
                    continue

                try:
                    raw_content = full_path.read_bytes()
                except OSError:
                    continue

                is_binary = detect_binary(rel_path, raw_content)
                yield SourceFile(
                    path=rel_path.as_posix(),
                    size_bytes=len(raw_content),
                    extension=full_path.suffix.lower(),
                    is_binary=is_binary,
                    content=None if is_binary else decode_text(raw_content),
                )
