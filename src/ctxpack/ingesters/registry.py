"""Which ingester reads a given source path."""

import logging
from pathlib import Path
from typing import Optional

from ctxpack.ingesters.folder_ingester import FolderIngester
from ctxpack.ingesters.zip_ingester import ZipIngester
from ctxpack.protocols import Ingester

logger = logging.getLogger(__name__)

_INGESTERS: list[Ingester] = []


def register_ingester(ingester: Ingester, *, first: bool = False) -> None:
    """Add an ingester to the lookup order.

    Args:
        ingester: Anything satisfying the Ingester protocol
        first: Try it before the ingesters already registered

    Raises:
        TypeError: ``ingester`` does not satisfy the protocol
    """
    if not isinstance(ingester, Ingester):
        raise TypeError(f"{type(ingester).__name__} is not an Ingester")
    if first:
        _INGESTERS.insert(0, ingester)
    else:
        _INGESTERS.append(ingester)
    logger.debug(f"Registered {ingester.source_type} ingester")


def get_ingester(source: Path | str) -> Optional[Ingester]:
    """First registered ingester that can read ``source``, or None."""
    source_path = Path(source)
    return next((i for i in _INGESTERS if i.can_handle(source_path)), None)


register_ingester(ZipIngester())
register_ingester(FolderIngester())
