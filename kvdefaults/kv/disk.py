"""Disk-backed raw store using diskcache."""

from typing import Any, Iterable

from .base import RawStore, check_raw

ONE_GB = 1024 * 1024 * 1024


class Disk(RawStore):
    """Raw store backed by diskcache (SQLite + mmap).

    Values survive process restarts. Two instances opened on the same
    directory see each other's writes.
    """

    def __init__(self, directory: str, size_limit: int = ONE_GB) -> None:
        from diskcache import Cache as DiskCache

        self.directory = directory
        self.store = DiskCache(directory, size_limit=size_limit)

    def get(self, key: str) -> Any | None:
        return self.store.get(key)

    def set(self, key: str, value: Any) -> None:
        check_raw(key, value)
        self.store[key] = value

    def remove(self, key: str) -> None:
        try:
            del self.store[key]
        except KeyError:
            pass

    def keys(self) -> Iterable[str]:
        for key in self.store.iterkeys():
            yield str(key)

    def items(self) -> Iterable[tuple[str, Any]]:
        for key in list(self.store.iterkeys()):
            value = self.store.get(key)
            if value is not None:
                yield str(key), value

    def __contains__(self, key: str) -> bool:
        return key in self.store

    def close(self) -> None:
        """Close the underlying cache's database handles."""
        self.store.close()
