from __future__ import annotations

from legal_search.application.dto.search_dto import FACET_FIELDS, DiscoveryData
from legal_search.application.ports import VectorIndexPort
from legal_search.domain.services.aggregation import rank_facets


class DiscoverFacets:
    """Recompute discovery facet counts from the index (loader of FacetCache)."""

    def __init__(self, index: VectorIndexPort) -> None:
        self.index = index

    async def execute(self) -> DiscoveryData:
        counts = await self.index.count_payload_values(list(FACET_FIELDS.values()))
        return DiscoveryData(
            **{name: rank_facets(counts.get(key, {})) for name, key in FACET_FIELDS.items()}
        )
