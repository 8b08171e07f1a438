# services/cache_stats.py
from collections import Counter
from typing import Dict, Any


class CacheStats:
    """Per-namespace hit/miss counters kept in process."""

    def __init__(self):
        self._hits: Counter = Counter()
        self._misses: Counter = Counter()

    def hit(self, namespace: str) -> None:
        self._hits[namespace] += 1

    def miss(self, namespace: str) -> None:
        self._misses[namespace] += 1

    def reset(self) -> None:
        self._hits.clear()
        self._misses.clear()

    def snapshot(self) -> Dict[str, Any]:
        hits = dict(self._hits)
        misses = dict(self._misses)
        total_hits = sum(hits.values())
        total_misses = sum(misses.values())
        totals = {
            "hits": total_hits,
            "misses": total_misses,
            "hit_ratio": round((total_hits / max(1, total_hits + total_misses)) * 100, 2)
        }
        return {"hits": hits, "misses": misses, "totals": totals}
