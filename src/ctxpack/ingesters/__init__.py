"""Local document sources: folders, zip archives and their aggregation."""

from ctxpack.ingesters.aggregator import (
    Aggregate,
    TocEntry,
    aggregate,
    detect_strategy,
    extract_title,
    load_documents,
)
from ctxpack.ingesters.folder_ingester import FolderIngester
from ctxpack.ingesters.registry import get_ingester, register_ingester
from ctxpack.ingesters.zip_ingester import ZipIngester

__all__ = [
    "Aggregate",
    "FolderIngester",
    "TocEntry",
    "ZipIngester",
    "aggregate",
    "detect_strategy",
    "extract_title",
    "get_ingester",
    "load_documents",
    "register_ingester",
]
