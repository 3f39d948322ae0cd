"""Engine defaults shared by the graph service, policy evaluator and CLI."""

from __future__ import annotations

DEFAULT_MAX_PATH_DEPTH = 3
DEFAULT_SEARCH_LIMIT = 20

# Name of the policy category that matches dependencies whose license could
# not be resolved.  Always valid in a rule, declared or not.
UNKNOWN_CATEGORY = "unknown"

UNRESOLVED_LICENSE_MARKERS: frozenset[str] = frozenset(
    {"", "NOASSERTION", "NONE", "UNKNOWN", "OTHER"}
)

def is_unresolved_marker(license_id: str | None) -> bool:
    """Return ``True`` if *license_id* is empty or one of the SPDX placeholders."""
    if license_id is None:
        return True
    return license_id.strip().upper() in UNRESOLVED_LICENSE_MARKERS
