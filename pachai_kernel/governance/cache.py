"""
Foundational Veredict cache.

An explicit object injected into the engine, so tests and multiple engine
instances never share hidden module state.

Behavioral Contract:
- The loader is called lazily, at most once per TTL window
- clear() forces the next get() to call the loader
- A failing loader yields an empty rule set that is NOT cached
"""

import logging
import threading
import time
from typing import Callable, List, Optional

from pachai_kernel.models.governance import FoundationalVeredict

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60.0


class VeredictCache:
    """Time-bounded cache of active Foundational Veredicts."""

    def __init__(
        self,
        loader: Callable[[], List[FoundationalVeredict]],
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._loader = loader
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._veredicts: Optional[List[FoundationalVeredict]] = None
        self._loaded_at = 0.0
        self._fetch_count = 0

    @property
    def fetch_count(self) -> int:
        """Number of times the loader has been called."""
        return self._fetch_count

    def _is_fresh(self, now: float) -> bool:
        return self._veredicts is not None and (now - self._loaded_at) < self.ttl_seconds

    def get(self) -> List[FoundationalVeredict]:
        """Return the cached rules, refreshing them if the TTL has elapsed."""
        with self._lock:
            now = self._clock()
            if self._is_fresh(now):
                return list(self._veredicts)

            self._fetch_count += 1
            try:
                loaded = list(self._loader())
            except Exception as e:
                logger.error(f"[Governance] Failed to load foundational veredicts: {e}")
                return []

            self._veredicts = loaded
            self._loaded_at = now
            return list(loaded)

    def clear(self) -> None:
        """Drop the cached rules; the next get() reloads them."""
        with self._lock:
            self._veredicts = None
            self._loaded_at = 0.0
