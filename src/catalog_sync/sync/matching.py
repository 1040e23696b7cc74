"""Best-effort matching of a created product in a full-collection response.

The manage endpoint answers with the whole product collection, so the
record a create produced has to be inferred. Matching narrows to records
whose identity was not known before the create, then prefers field
equality, then the highest new identity. Two identical products created at
once can still be paired the wrong way round; the server returning the
affected record directly would remove that risk.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from catalog_sync.core.identity import numeric_key
from catalog_sync.core.product import Product


def _same_text(a: str | None, b: str | None) -> bool:
    return (a or "").strip() == (b or "").strip()


def fields_match(candidate: Product, local: Product) -> bool:
    """Name, price, description and category reference agree.

    The category is only compared when both sides carry one, since the
    server may omit it.
    """
    if not _same_text(candidate.name, local.name):
        return False
    if not math.isclose(candidate.price, local.price, rel_tol=0.0, abs_tol=0.005):
        return False
    if not _same_text(candidate.description, local.description):
        return False
    if candidate.category_id and local.category_id:
        return str(candidate.category_id) == str(local.category_id)
    return True


def match_created_product(
    candidates: Iterable[Product],
    local: Product,
    known_server_ids: set[str],
) -> Product | None:
    """Pick the server record a create of ``local`` produced, or None."""
    fresh = [c for c in candidates if c.id not in known_server_ids]
    if not fresh:
        return None

    by_fields = [c for c in fresh if fields_match(c, local)]
    pool = by_fields or fresh
    return max(pool, key=lambda c: numeric_key(c.id))


def find_by_id(candidates: Iterable[Product], product_id: str) -> Product | None:
    return next((c for c in candidates if c.id == str(product_id)), None)
