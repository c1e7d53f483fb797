"""Bird name search."""

from birdscope.search.inaturalist import BirdSearchClient
from birdscope.search.models import BirdSuggestion, TaxonPhoto

__all__ = ["BirdSearchClient", "BirdSuggestion", "TaxonPhoto"]
