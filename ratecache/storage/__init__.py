"""Storage tiers (memory / file / web)."""

from ratecache.storage.base import ReadResult, ReadStatus, StorageTier
from ratecache.storage.file import FileSystemStorage
from ratecache.storage.memory import MemoryStorage
from ratecache.storage.web import WebServiceStorage

__all__ = [
    "FileSystemStorage",
    "MemoryStorage",
    "ReadResult",
    "ReadStatus",
    "StorageTier",
    "WebServiceStorage",
]
