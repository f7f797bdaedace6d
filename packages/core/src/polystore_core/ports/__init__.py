from .adapter import IStorageAdapter, Record

__all__ = [
    "IStorageAdapter",
    "Record",
]
