"""Ingester for ZIP archive files."""

import zipfile
from pathlib import Path, PurePosixPath
from typing import Iterator

from ctxpack.ingesters.folder_ingester import is_ignored
from ctxpack.models import SourceFile
from ctxpack.utils.binary import decode_text, detect_binary


class ZipIngester:
    """Ingester for ZIP archives; members are read in memory, never extracted."""

    source_type = "zip"

    def can_handle(self, source: Path) -> bool:
        return source.suffix.lower() == ".zip" and source.is_file()

    def ingest(self, source: Path) -> Iterator[SourceFile]:
        with zipfile.ZipFile(source, "r") as zf:
            for info in sorted(zf.infolist(), key=lambda i: i.filename):
                if info.is_dir():
                    continue
                member = PurePosixPath(info.filename)
                if is_ignored(member):
                    continue

                raw_content = zf.read(info)
                is_binary = detect_binary(member, raw_content)
                yield SourceFile(
                    path=member.as_posix(),
                    size_bytes=info.file_size,
                    extension=member.suffix.lower(),
                    is_binary=is_binary,
                    content=None if is_binary else decode_text(raw_content),
                )
