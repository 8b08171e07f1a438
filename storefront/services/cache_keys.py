# services/cache_keys.py
from enum import IntEnum
from typing import Any, Iterable, Mapping, Optional, Tuple
from urllib.parse import quote

# Key prefixes owned by the cache layer. Other code must not write under them.
API_PREFIX = "api"
PRODUCT_PREFIX = "product"
PAGE_PREFIX = "page"
MEDIA_PREFIX = "media"
CATEGORY_PREFIX = "category"

CACHE_PREFIXES = (API_PREFIX, PAGE_PREFIX, MEDIA_PREFIX, PRODUCT_PREFIX, CATEGORY_PREFIX)


class CacheTTL(IntEnum):
    SHORT = 300        # frequently changing data
    MEDIUM = 1800      # listings
    LONG = 3600        # single entities
    DAILY = 86400      # reference data
    WEEKLY = 604800    # static data


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_key(prefix: str, resource: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build a cache key as ``prefix:resource[:k1=v1&k2=v2]``.

    None values are dropped and params are sorted by name, so the same
    logical query always maps to the same key whatever the argument order.
    A list value becomes one ``k=v`` pair per element, in the given order,
    since the order of repeated query values changes what a handler sees.
    Names and values are percent-encoded one by one so separators inside a
    value cannot make two different queries collide.
    """
    base = f"{prefix}:{resource}"
    if not params:
        return base
    pairs = []
    for name in sorted(params, key=lambda k: quote(str(k), safe="")):
        value = params[name]
        if value is None:
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        encoded_name = quote(str(name), safe="")
        pairs.extend(f"{encoded_name}={quote(_stringify(v), safe='')}" for v in values if v is not None)
    if not pairs:
        return base
    return f"{base}:" + "&".join(pairs)


def resource_from_path(path: str) -> str:
    """``/api/products/42/characteristics`` -> ``products:42:characteristics``"""
    trimmed = path.strip("/")
    if trimmed.startswith(f"{API_PREFIX}/"):
        trimmed = trimmed[len(API_PREFIX) + 1:]
    elif trimmed == API_PREFIX:
        trimmed = ""
    return ":".join(part for part in trimmed.split("/") if part) or "root"


def request_cache_key(path: str, query_items: Iterable[Tuple[str, str]], exclude: Iterable[str] = ("nocache",)) -> str:
    skipped = set(exclude)
    params: dict = {}
    for name, value in query_items:
        if name in skipped:
            continue
        params.setdefault(name, []).append(value)
    # repeated values keep their request order
    flat = {k: v[0] if len(v) == 1 else v for k, v in params.items()}
    return build_key(API_PREFIX, resource_from_path(path), flat)


# Entity keys
def product_key(product_id: str) -> str:
    return build_key(PRODUCT_PREFIX, str(product_id))

def category_list_key() -> str:
    return build_key(CATEGORY_PREFIX, "all")

def namespaced_key(cache_type: str, key: str) -> str:
    return f"{cache_type}:{key}"


class CachePatterns:
    """Glob patterns used for invalidation. Broader is safer than narrower."""

    ALL_PRODUCTS = f"{PRODUCT_PREFIX}:*"
    ALL_API_PRODUCTS = f"{API_PREFIX}:*products*"
    ALL_SEARCH = f"{API_PREFIX}:*search*"
    ALL_CATEGORIES = f"{CATEGORY_PREFIX}:*"
    ALL_API_CATEGORIES = f"{API_PREFIX}:*categories*"
    ALL_CHARACTERISTICS = f"{API_PREFIX}:*characteristics*"
    ALL_PAGES = f"{PAGE_PREFIX}:*"
    ALL_MEDIA = f"{MEDIA_PREFIX}:*"

    @staticmethod
    def product(product_id: str) -> str:
        return f"{PRODUCT_PREFIX}:*{product_id}*"

    @staticmethod
    def category(category_id: str) -> str:
        return f"{CATEGORY_PREFIX}:*{category_id}*"

    @staticmethod
    def prefix(name: str) -> str:
        return f"{name}:*"


PRODUCT_WRITE_PATTERNS = (
    CachePatterns.ALL_PRODUCTS,
    CachePatterns.ALL_API_PRODUCTS,
    CachePatterns.ALL_SEARCH,
    CachePatterns.ALL_PAGES,
)

CATEGORY_WRITE_PATTERNS = (
    CachePatterns.ALL_CATEGORIES,
    CachePatterns.ALL_API_CATEGORIES,
    CachePatterns.ALL_API_PRODUCTS,
)
