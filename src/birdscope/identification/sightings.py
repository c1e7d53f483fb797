"""Flattened result views and the saved-sighting row mapping."""

from typing import Any

from birdscope.identification.models import CandidateRecord

# Profile fields copied into the sighting's metadata column
PROFILE_FIELDS = (
    "also_known_as",
    "taxonomy",
    "identification_tips",
    "description",
    "diet",
    "diet_tags",
    "habitat",
    "habitat_tags",
    "nesting_info",
    "feeder_info",
    "behavior",
    "rarity",
    "key_facts",
    "distribution_area",
    "conservation_status",
)

MEDIA_FIELDS = (
    "inat_photos",
    "sounds",
    "female_image_url",
    "male_image_url",
    "juvenile_image_url",
    "wikipedia_image",
    "gbif_taxon_key",
)


def to_bird_result(candidate: CandidateRecord) -> dict[str, Any]:
    """Flatten a candidate and its media into the shape the result screens render.

    Photo and sound lists default to empty lists; other media fields are
    omitted when unknown.
    """
    result = candidate.model_dump(exclude={"media"}, exclude_none=True)
    media = candidate.media.to_wire() if candidate.media else {}

    result["inat_photos"] = media.get("inat_photos") or []
    result["sounds"] = media.get("sounds") or []
    for key in ("male_image_url", "female_image_url", "juvenile_image_url"):
        if key in media:
            result[key] = media[key]
    if "wikipedia_image" in media:
        result["wikipedia_image"] = media["wikipedia_image"]
    if "gbif_taxon_key" in media:
        result["gbif_taxon_key"] = media["gbif_taxon_key"]
    return result


def map_bird_to_sighting(
    bird: dict[str, Any], user_id: str, audio_url: str | None = None
) -> dict[str, Any]:
    """Map a flattened bird result to a row of the ``sightings`` table.

    Args:
        bird: Output of ``to_bird_result``
        user_id: Owner of the sighting
        audio_url: Uploaded recording, for sound identifications

    Returns:
        Row ready for insertion
    """
    photos = bird.get("inat_photos") or []
    image_url = (photos[0].get("url") if photos else None) or bird.get("wikipedia_image")

    metadata = {field: bird.get(field) for field in PROFILE_FIELDS}
    metadata.update({field: bird.get(field) for field in MEDIA_FIELDS})
    metadata["raw_ai_response"] = (bird.get("metadata") or {}).get("raw_ai_response")

    return {
        "user_id": user_id,
        "species_name": bird.get("name"),
        "scientific_name": bird.get("scientific_name"),
        "rarity": bird.get("rarity"),
        "confidence": bird.get("confidence"),
        "image_url": image_url,
        "audio_url": audio_url,
        "metadata": metadata,
    }
