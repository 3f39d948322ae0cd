"""License KG configuration — engine defaults and unresolved-license markers."""

from license_kg.config.defaults import (
    DEFAULT_MAX_PATH_DEPTH,
    DEFAULT_SEARCH_LIMIT,
    UNKNOWN_CATEGORY,
    UNRESOLVED_LICENSE_MARKERS,
    is_unresolved_marker,
)

__all__ = [
    "DEFAULT_MAX_PATH_DEPTH",
    "DEFAULT_SEARCH_LIMIT",
    "UNKNOWN_CATEGORY",
    "UNRESOLVED_LICENSE_MARKERS",
    "is_unresolved_marker",
]
