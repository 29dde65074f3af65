"""
FilterPolicy evaluation.

An entity ``e`` is included under policy ``p`` iff:

- ``p.include_disabled`` → included regardless of status/saleability;
  the visibility filter still applies unless ``p.include_invisible``.
- otherwise: ``e`` is enabled AND (``p.include_all_products`` OR ``e`` is
  saleable) AND (``p.include_invisible`` OR ``e.visibility`` is visible
  in the catalog).

Evaluated after the bulk load; the loader never filters.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from linkspine.domain.catalog.enums import VISIBLE_IN_CATALOG, ProductStatus
from linkspine.domain.catalog.models import FilterPolicy


def passes_visibility(entity: Any, policy: FilterPolicy) -> bool:
    return policy.include_invisible or entity.visibility in VISIBLE_IN_CATALOG


def passes_status(entity: Any, policy: FilterPolicy) -> bool:
    if policy.include_disabled:
        return True
    if entity.status != ProductStatus.ENABLED:
        return False
    return policy.include_all_products or bool(entity.is_saleable)


def is_eligible(entity: Any, policy: FilterPolicy) -> bool:
    """True when ``entity`` survives every applicable predicate."""
    return passes_status(entity, policy) and passes_visibility(entity, policy)


def split_eligible(
    ids: Iterable[int], loaded: Mapping[int, Any], policy: FilterPolicy
) -> tuple[list[int], list[int], list[int]]:
    """Walk ``ids`` in order and sort each into kept, missing or filtered."""
    kept: list[int] = []
    missing: list[int] = []
    filtered: list[int] = []
    for linked_id in ids:
        entity = loaded.get(linked_id)
        if entity is None:
            missing.append(linked_id)
        elif is_eligible(entity, policy):
            kept.append(linked_id)
        else:
            filtered.append(linked_id)
    return kept, missing, filtered
