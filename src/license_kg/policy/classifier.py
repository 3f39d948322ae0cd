"""Map licenses to the categories a policy defines."""

from __future__ import annotations

from license_kg.config import UNKNOWN_CATEGORY, is_unresolved_marker
from license_kg.policy.models import PolicyConfig

UNCATEGORIZED = "uncategorized"

class LicenseClassifier:
    """Reverse index from license id (case-insensitive) to policy categories.

    A license may sit in several categories.  An unresolved license (``None``
    or a placeholder such as ``NOASSERTION``) belongs to the designated
    unknown category only.
    """

    def __init__(self, policy: PolicyConfig) -> None:
        self._index: dict[str, list[str]] = {}
        for name, definition in policy.categories.items():
            for license_id in definition.licenses:
                names = self._index.setdefault(license_id.strip().upper(), [])
                if name not in names:
                    names.append(name)

    def categories_for(self, license_id: str | None) -> list[str]:
        if license_id is None or is_unresolved_marker(license_id):
            return [UNKNOWN_CATEGORY]
        return list(self._index.get(license_id.strip().upper(), []))

    def primary_category(self, license_id: str | None) -> str:
        """First matching category, or ``"uncategorized"``."""
        categories = self.categories_for(license_id)
        return categories[0] if categories else UNCATEGORIZED

    def matches(self, category: str, license_id: str | None) -> bool:
        return category in self.categories_for(license_id)
