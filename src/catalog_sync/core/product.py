"""Product record (the primary synchronized entity)."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from catalog_sync.core.identity import is_temporary_id, new_product_id


@dataclass(frozen=True)
class Product:
    """A product as held in the local store.

    ``id`` is either a temporary identity (``temp_<ms>``) for records created
    offline, or the server-assigned numeric identity rendered as a string.
    ``pending_sync`` marks a local mutation the server has not acknowledged.
    """

    id: str
    name: str
    description: str = ""
    price: float = 0.0
    category_id: str | None = None
    category_name: str | None = None
    updated_by: str = ""
    updated_on: str = ""
    pending_sync: bool = False

    @classmethod
    def create_offline(
        cls,
        name: str,
        description: str = "",
        price: float = 0.0,
        category_id: str | None = None,
        category_name: str | None = None,
        product_id: str | None = None,
    ) -> Product:
        """Create a product minted offline with a temporary identity."""
        return cls(
            id=product_id or new_product_id(),
            name=name,
            description=description,
            price=float(price),
            category_id=category_id or None,
            category_name=category_name or None,
            pending_sync=True,
        )

    @property
    def is_temporary(self) -> bool:
        """True while the product only exists locally."""
        return is_temporary_id(self.id)

    @property
    def references_temporary_category(self) -> bool:
        """True if the category reference still points at a temporary identity."""
        return is_temporary_id(self.category_id)

    def as_synced(self) -> Product:
        """Copy with the pending flag cleared."""
        if not self.pending_sync:
            return self
        return replace(self, pending_sync=False)

    def as_pending(self) -> Product:
        """Copy flagged as a local mutation awaiting sync."""
        return replace(self, pending_sync=True)

    def with_category(self, category_id: str | None, category_name: str | None) -> Product:
        """Copy pointing at another category."""
        return replace(self, category_id=category_id, category_name=category_name)

    def carry_category_from(self, other: Product) -> Product:
        """Fill a category reference the server omitted from ``other``."""
        if self.category_id or not (other.category_id or other.category_name):
            return self
        return replace(
            self,
            category_id=other.category_id,
            category_name=self.category_name or other.category_name,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category_id": self.category_id,
            "category_name": self.category_name,
            "updated_by": self.updated_by,
            "updated_on": self.updated_on,
            "pending_sync": self.pending_sync,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Product:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            description=str(data.get("description") or ""),
            price=float(data.get("price") or 0.0),
            category_id=str(data["category_id"]) if data.get("category_id") else None,
            category_name=data.get("category_name") or None,
            updated_by=str(data.get("updated_by") or ""),
            updated_on=str(data.get("updated_on") or ""),
            pending_sync=bool(data.get("pending_sync", False)),
        )
