"""Data models for streamed identification responses.

Stream events form a closed tagged union discriminated on ``type``. Any line
that does not validate against one of the event models is treated as
malformed by the reconciler.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class ImageAttribution(BaseModel):
    """Credit line for a reference photo."""

    artist: str = "Unknown"
    license: str = ""
    license_url: str = ""


class MediaImage(BaseModel):
    """Primary reference image for a species."""

    url: str | None = None
    attribution: ImageAttribution | None = None


class RangeMap(BaseModel):
    """Occurrence density map reference."""

    model_config = ConfigDict(populate_by_name=True)

    taxon_key: int | None = Field(default=None, alias="taxonKey")
    tile_url: str | None = Field(default=None, alias="tileUrl")


class BirdMedia(BaseModel):
    """Media known for a species, keyed by scientific name.

    All fields are optional; enrichment events may deliver any subset and
    unknown fields are preserved.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    image: MediaImage | None = None
    map: RangeMap | None = None
    male_image_url: str | None = None
    female_image_url: str | None = None
    juvenile_image_url: str | None = None
    wikipedia_image: str | None = None
    gbif_taxon_key: int | None = None
    inat_photos: list[dict[str, Any]] | None = None
    sounds: list[dict[str, Any]] | None = None
    metadata: dict[str, Any] | None = None

    def merged_with(self, payload: dict[str, Any]) -> "BirdMedia":
        """Return a copy with payload fields overlaid on the fields already present."""
        current = self.to_wire()
        current.update(payload)
        return BirdMedia.model_validate(current)

    def to_wire(self) -> dict[str, Any]:
        """Serialize with absent fields omitted rather than null."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CandidateRecord(BaseModel):
    """One identified species for the lifetime of a single identification request."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    scientific_name: str = ""
    confidence: float = 0.0
    rarity: str | None = None
    fact: str | None = None
    media: BirdMedia | None = None
    metadata: dict[str, Any] | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> float:  # noqa: ANN401
        """Clamp confidence into [0, 1]; missing values count as 0."""
        if v is None:
            return 0.0
        return min(1.0, max(0.0, float(v)))

    def with_media(self, payload: dict[str, Any]) -> "CandidateRecord":
        """Return a copy with the media payload merged in."""
        media = self.media.merged_with(payload) if self.media else BirdMedia.model_validate(payload)
        return self.model_copy(update={"media": media})

    def with_metadata(self, payload: dict[str, Any]) -> "CandidateRecord":
        """Return a copy with metadata keys merged in, later keys overwriting earlier ones."""
        metadata = {**(self.metadata or {}), **payload}
        return self.model_copy(update={"metadata": metadata})


class ProgressEvent(BaseModel):
    """Informational progress message."""

    type: Literal["progress"]
    message: str = ""


class CandidatesEvent(BaseModel):
    """Full replacement of the candidate list, in server rank order."""

    type: Literal["candidates"]
    data: list[CandidateRecord]
    raw_content: str | None = None


class MediaEvent(BaseModel):
    """Media enrichment for the candidate at ``index``."""

    type: Literal["media"]
    index: int
    data: dict[str, Any]


class MetadataEvent(BaseModel):
    """Free-form enrichment for the candidate at ``index``."""

    type: Literal["metadata"]
    index: int
    data: dict[str, Any]


class HeartbeatEvent(BaseModel):
    """Keep-alive sent while the backend is still working."""

    type: Literal["heartbeat"]


class DoneEvent(BaseModel):
    """Terminal success event."""

    type: Literal["done"]
    duration: float | None = None


class ErrorEvent(BaseModel):
    """Terminal failure event reported in-band by the backend."""

    type: Literal["error"]
    message: str = "Identification failed"

    @field_validator("message", mode="before")
    @classmethod
    def coerce_message(cls, v: Any) -> str:  # noqa: ANN401
        """Keep the failure typed whatever shape the message arrives in."""
        if v is None or v == "":
            return "Identification failed"
        if isinstance(v, dict) and isinstance(v.get("message"), str):
            return v["message"]
        if isinstance(v, str):
            return v
        return str(v)


StreamEvent = Annotated[
    ProgressEvent
    | CandidatesEvent
    | MediaEvent
    | MetadataEvent
    | HeartbeatEvent
    | DoneEvent
    | ErrorEvent,
    Field(discriminator="type"),
]

stream_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)
