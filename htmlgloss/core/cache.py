"""
htmlgloss Registry Cache
Two-tier cache for built glossary registries

Lookup order is the in-process memo first, then the shared cache store,
then a cold build whose result is written to both tiers. Concurrent cold
builds for one key are harmless: the build is a pure function of the
stored rows and the last write wins.
"""

import hashlib
import logging
import os
import pickle
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Set, Tuple

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    """Shared cache tier"""

    def load(self, key: str) -> Optional[Any]:
        """Cached value, or None on a miss or expired entry"""
        ...

    def save(self, value: Any, key: str, tags: Iterable[str] = (), ttl: Optional[int] = None) -> None:
        ...

    def clear_tags(self, tags: Iterable[str]) -> int:
        """Remove every entry carrying one of the tags, returns the count"""
        ...

    def clear(self) -> None:
        ...


class RuntimeMemo:
    """
    Process-local memo, checked before the shared store
    """

    def __init__(self):
        self._values: Dict[str, Any] = {}

    def is_registered(self, key: str) -> bool:
        return key in self._values

    def get(self, key: str) -> Any:
        return self._values[key]

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def clear(self) -> None:
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)


class InMemoryCacheStore:
    """
    Shared store kept in process memory, with TTL and tags

    Expiry is checked lazily on load.
    """

    def __init__(self, default_ttl: Optional[int] = None):
        self._entries: Dict[str, Tuple[Any, Optional[float], Set[str]]] = {}
        self._default_ttl = default_ttl

    def load(self, key: str) -> Optional[Any]:
        if key not in self._entries:
            return None

        value, expires_at, _ = self._entries[key]
        if expires_at is not None and time.time() > expires_at:
            del self._entries[key]
            return None

        return value

    def save(self, value: Any, key: str, tags: Iterable[str] = (), ttl: Optional[int] = None) -> None:
        ttl = ttl if ttl is not None else self._default_ttl
        expires_at = (time.time() + ttl) if ttl else None
        self._entries[key] = (value, expires_at, set(tags))

    def clear_tags(self, tags: Iterable[str]) -> int:
        tags = set(tags)
        doomed = [key for key, (_, _, entry_tags) in self._entries.items() if entry_tags & tags]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)


class FileCacheStore:
    """
    Shared store of pickle files in a cache directory

    Lets several worker processes on one host reuse a built registry.
    Each file holds (expires_at, tags, value).
    """

    def __init__(self, cache_dir: str = "./cache", default_ttl: Optional[int] = None):
        self.cache_dir = Path(cache_dir)
        self._default_ttl = default_ttl

        # Ensure cache directory exists
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self.cache_dir / f"htmlgloss_{digest}.pkl"

    def _read(self, path: Path) -> Optional[Tuple[Optional[float], Set[str], Any]]:
        try:
            with open(path, "rb") as f:
                return pickle.load(f)
        except FileNotFoundError:
            return None
        except (pickle.UnpicklingError, EOFError, AttributeError, ImportError) as e:
            logger.warning(f"Discarding unreadable cache file {path}: {e}")
            path.unlink(missing_ok=True)
            return None

    def load(self, key: str) -> Optional[Any]:
        path = self._path(key)
        entry = self._read(path)
        if entry is None:
            return None

        expires_at, _, value = entry
        if expires_at is not None and time.time() > expires_at:
            path.unlink(missing_ok=True)
            return None

        return value

    def save(self, value: Any, key: str, tags: Iterable[str] = (), ttl: Optional[int] = None) -> None:
        ttl = ttl if ttl is not None else self._default_ttl
        expires_at = (time.time() + ttl) if ttl else None
        path = self._path(key)

        # Write then rename so readers never see a partial file
        fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, suffix=".tmp")
        with os.fdopen(fd, "wb") as f:
            pickle.dump((expires_at, set(tags), value), f)
        os.replace(tmp_name, path)

    def clear_tags(self, tags: Iterable[str]) -> int:
        tags = set(tags)
        removed = 0
        for path in self.cache_dir.glob("htmlgloss_*.pkl"):
            entry = self._read(path)
            if entry is not None and entry[1] & tags:
                path.unlink(missing_ok=True)
                removed += 1
        return removed

    def clear(self) -> None:
        for path in self.cache_dir.glob("htmlgloss_*.pkl"):
            path.unlink(missing_ok=True)


class RegistryCache:
    """
    Memo + shared store lookup for glossary registries
    """

    def __init__(self,
                 store: Optional[CacheStore] = None,
                 memo: Optional[RuntimeMemo] = None,
                 tags: Iterable[str] = ("glossary",),
                 ttl: Optional[int] = None):
        """
        Initialize the cache

        Args:
            store: Shared tier, defaults to an InMemoryCacheStore
            memo: Process-local tier
            tags: Tags attached to every saved registry
            ttl: Lifetime of saved registries in seconds
        """
        self.store = store if store is not None else InMemoryCacheStore()
        self.memo = memo if memo is not None else RuntimeMemo()
        self.tags = list(tags)
        self.ttl = ttl

    def get_or_build(self, key: str, build: Callable[[], List[Any]]) -> List[Any]:
        """
        Return the registry for a key, building it on a miss

        Args:
            key: Registry cache key
            build: Called without arguments on a full miss

        Returns:
            Cached or freshly built registry
        """
        if self.memo.is_registered(key):
            return self.memo.get(key)

        data = self.store.load(key)
        if data is None:
            data = build()
            self.store.save(data, key, tags=self.tags, ttl=self.ttl)
            logger.debug(f"Built and stored registry {key}")
        else:
            logger.debug(f"Registry {key} loaded from shared cache")

        self.memo.set(key, data)
        return data

    def clear(self) -> int:
        """Drop memoized registries and tagged store entries"""
        self.memo.clear()
        removed = self.store.clear_tags(self.tags)
        logger.info(f"Cleared glossary cache ({removed} stored registries)")
        return removed
