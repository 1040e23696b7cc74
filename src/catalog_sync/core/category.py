"""Category record (the dependent entity products reference)."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from catalog_sync.core.identity import is_temporary_id, new_category_id, numeric_key


def normalize_name(name: str | None) -> str:
    """Key used for the case-insensitive category name uniqueness rule."""
    return str(name or "").strip().lower()


@dataclass(frozen=True)
class Category:
    """A product category.

    Names are unique case-insensitively among live categories, both on the
    server and in the local store.
    """

    id: str
    name: str
    created_on: str | None = None
    pending_sync: bool = False

    @classmethod
    def create_offline(cls, name: str, category_id: str | None = None) -> Category:
        """Create a category minted offline with a temporary identity."""
        return cls(
            id=category_id or new_category_id(),
            name=name.strip(),
            pending_sync=True,
        )

    @property
    def is_temporary(self) -> bool:
        return is_temporary_id(self.id)

    @property
    def name_key(self) -> str:
        return normalize_name(self.name)

    def as_synced(self) -> Category:
        if not self.pending_sync:
            return self
        return replace(self, pending_sync=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_on": self.created_on,
            "pending_sync": self.pending_sync,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Category:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            created_on=data.get("created_on") or None,
            pending_sync=bool(data.get("pending_sync", False)),
        )


def find_by_name(categories: list[Category], name: str | None) -> Category | None:
    """Case-insensitive name lookup.

    If several records share the name (only possible transiently), the one
    with the highest numeric identity wins.
    """
    key = normalize_name(name)
    if not key:
        return None
    matches = [c for c in categories if c.name_key == key]
    if not matches:
        return None
    return max(matches, key=lambda c: numeric_key(c.id))
