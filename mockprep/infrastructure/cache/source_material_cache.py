import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedMaterial:
    category: str
    fetched_at: float
    material: str


class SourceMaterialCache:
    """
    Source material for generated questions, per category, reloaded once its
    entry is older than `ttl_seconds`.
    """

    def __init__(
        self,
        loader: Callable[[str], str],
        ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CachedMaterial] = {}
        self._lock = threading.Lock()

    def get(self, category: str) -> str:
        key = category.lower()
        with self._lock:
            entry = self._entries.get(key)
            now = self._clock()
            if entry is not None and now - entry.fetched_at < self._ttl:
                logger.debug(f"Source material cache hit for category={key}")
                return entry.material

            logger.info(f"Source material cache miss for category={key}, reloading")
            material = self._loader(key)
            self._entries[key] = CachedMaterial(category=key, fetched_at=now, material=material)
            return material

    def invalidate(self, category: str) -> None:
        with self._lock:
            self._entries.pop(category.lower(), None)
