from __future__ import annotations

from typing import Any, Mapping

PRIMARY_ID_FIELD = "_id"
SECONDARY_ID_FIELD = "id"


def normalize_product_id(product: Mapping[str, Any] | None) -> str | None:
    """Return the canonical key for a product snapshot.

    Mock catalog data names the key ``id`` while database-backed payloads use
    ``_id``; whichever is present and non-empty wins, ``_id`` first.
    """
    if not isinstance(product, Mapping):
        return None
    for field in (PRIMARY_ID_FIELD, SECONDARY_ID_FIELD):
        value = product.get(field)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None
