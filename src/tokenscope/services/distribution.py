"""Attribute distribution aggregation.

Two counting modes are exposed:

* :func:`count_attribute_values` builds ``{trait_type: {value: count}}`` from
  tokens whose attributes are already resolved. Burned tokens are counted.
* :func:`count_tokens_per_attribute` issues one count per catalogue attribute
  concurrently and returns ``{position: count}`` in catalogue order. The
  counting callable decides which tokens qualify; the store-backed one skips
  burned tokens.

:func:`select_strategy` and :func:`compute_distribution` wire the modes to the
catalogue store for the HTTP layer.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterable, Sequence

from tokenscope.models import Attribute, AttributeDistribution, Collection, Token
from tokenscope.store import CatalogStore

LOGGER = logging.getLogger(__name__)

AttributeCounter = Callable[[Attribute], Awaitable[int]]


class DistributionStrategy(str, Enum):
    """How a collection's attribute distribution is counted."""

    GENERIC = "generic"
    PER_ATTRIBUTE = "per_attribute"


class DistributionError(RuntimeError):
    """Raised when a per-attribute count fails and the aggregation is abandoned."""


@dataclass(slots=True)
class DistributionResult:
    strategy: DistributionStrategy
    data: Dict

    @property
    def total(self) -> int:
        return len(self.data)


def select_strategy(address: str, indexed_collection_address: str | None) -> DistributionStrategy:
    """Pick per-attribute counting only for the configured indexed collection."""

    if indexed_collection_address and address.lower() == indexed_collection_address.lower():
        return DistributionStrategy.PER_ATTRIBUTE
    return DistributionStrategy.GENERIC


def count_attribute_values(tokens: Iterable[Token]) -> AttributeDistribution:
    """Count occurrences of each attribute value grouped by trait type."""

    distribution: AttributeDistribution = {}
    for token in tokens:
        for attribute in token.attributes:
            values = distribution.setdefault(attribute.trait_type, {})
            values[attribute.value] = values.get(attribute.value, 0) + 1
    return distribution


async def count_tokens_per_attribute(catalogue: Sequence[Attribute], count: AttributeCounter) -> Dict[int, int]:
    """Run ``count`` for every catalogue entry concurrently.

    Returns a mapping keyed by each attribute's position in ``catalogue``;
    attributes without matches map to ``0``. The first failing count cancels
    the ones still in flight.
    """

    if not catalogue:
        return {}
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(count(attribute)) for attribute in catalogue]
    except ExceptionGroup as failure:
        first = failure.exceptions[0]
        raise DistributionError(f"Attribute count failed: {first}") from first
    return {index: int(task.result() or 0) for index, task in enumerate(tasks)}


async def compute_distribution(
    store: CatalogStore,
    collection: Collection,
    strategy: DistributionStrategy,
) -> DistributionResult:
    """Fetch the inputs for ``strategy`` from ``store`` and aggregate them."""

    if strategy is DistributionStrategy.PER_ATTRIBUTE:
        catalogue = await asyncio.to_thread(store.list_attributes_by_value, collection)

        async def _count(attribute: Attribute) -> int:
            return await asyncio.to_thread(store.count_unburned_tokens_with_attribute, collection, attribute)

        data: Dict = await count_tokens_per_attribute(catalogue, _count)
    else:
        tokens = await asyncio.to_thread(store.list_tokens, collection)
        data = count_attribute_values(tokens)

    LOGGER.debug("Computed %s distribution for %s with %d entries", strategy.value, collection.address, len(data))
    return DistributionResult(strategy=strategy, data=data)


__all__ = [
    "DistributionError",
    "DistributionResult",
    "DistributionStrategy",
    "compute_distribution",
    "count_attribute_values",
    "count_tokens_per_attribute",
    "select_strategy",
]
