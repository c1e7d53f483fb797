"""Bird name autocomplete backed by the iNaturalist taxa API."""

import logging

import httpx
from pydantic import ValidationError

from birdscope.config.models import SearchConfig
from birdscope.search.models import BirdSuggestion

logger = logging.getLogger(__name__)


class BirdSearchClient:
    """Suggests bird species for a partial common or scientific name."""

    def __init__(self, client: httpx.AsyncClient, config: SearchConfig | None = None) -> None:
        self.client = client
        self.config = config or SearchConfig()

    async def search(self, query: str) -> list[BirdSuggestion]:
        """Return species matching the query, limited to birds.

        Short queries return nothing without a request. Failures are logged
        and return an empty list.
        """
        query = query.strip()
        if len(query) < self.config.min_query_length:
            return []

        params = {
            "q": query,
            "taxon_id": self.config.taxon_id,
            "rank": self.config.ranks,
            "per_page": self.config.per_page,
        }
        try:
            response = await self.client.get(self.config.autocomplete_url, params=params)
            response.raise_for_status()
            results = response.json().get("results") or []
            return [BirdSuggestion.model_validate(item) for item in results]
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.error("Failed to fetch bird suggestions: %s", e, extra={"query": query})
            return []
