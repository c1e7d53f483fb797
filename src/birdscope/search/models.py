"""Autocomplete result models."""

from pydantic import BaseModel, ConfigDict


class TaxonPhoto(BaseModel):
    """Default photo of a taxon in several sizes."""

    model_config = ConfigDict(extra="ignore")

    square_url: str | None = None
    medium_url: str | None = None


class BirdSuggestion(BaseModel):
    """One taxon returned by the autocomplete API."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str  # Scientific name
    preferred_common_name: str | None = None
    rank: str | None = None
    default_photo: TaxonPhoto | None = None
    iconic_taxon_name: str | None = None

    @property
    def display_name(self) -> str:
        """Common name when known, else the scientific name."""
        return self.preferred_common_name or self.name
