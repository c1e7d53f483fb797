"""Tests for result flattening and sighting rows."""

from birdscope.identification.models import CandidateRecord
from birdscope.identification.sightings import map_bird_to_sighting, to_bird_result


def make_candidate(**media) -> CandidateRecord:
    candidate = CandidateRecord.model_validate(
        {
            "name": "Northern Cardinal",
            "scientific_name": "Cardinalis cardinalis",
            "confidence": 0.88,
            "rarity": "Common",
            "diet": "Seeds",
            "habitat_tags": ["Woodland edge"],
        }
    )
    return candidate.with_media(media) if media else candidate


class TestToBirdResult:
    """Test flattening candidates for display."""

    def test_media_fields_flattened(self):
        """Should lift media fields onto the result."""
        candidate = make_candidate(
            inat_photos=[{"url": "https://inat.test/1.jpg"}],
            sounds=[{"file_url": "https://xc.test/1.mp3"}],
            male_image_url="https://img.test/m.jpg",
            wikipedia_image="https://w.test/c.jpg",
            gbif_taxon_key=9310012,
        )

        result = to_bird_result(candidate)

        assert result["inat_photos"] == [{"url": "https://inat.test/1.jpg"}]
        assert result["sounds"] == [{"file_url": "https://xc.test/1.mp3"}]
        assert result["male_image_url"] == "https://img.test/m.jpg"
        assert result["wikipedia_image"] == "https://w.test/c.jpg"
        assert result["gbif_taxon_key"] == 9310012
        assert result["diet"] == "Seeds"
        assert "media" not in result

    def test_missing_media_defaults(self):
        """Should default photo and sound lists to empty and omit unknown fields."""
        result = to_bird_result(make_candidate())

        assert result["inat_photos"] == []
        assert result["sounds"] == []
        assert "female_image_url" not in result
        assert "wikipedia_image" not in result


class TestMapBirdToSighting:
    """Test building sighting rows."""

    def test_row_uses_first_photo(self):
        """Should prefer the first iNaturalist photo as the image."""
        bird = to_bird_result(
            make_candidate(
                inat_photos=[
                    {"url": "https://inat.test/1.jpg"},
                    {"url": "https://inat.test/2.jpg"},
                ],
                wikipedia_image="https://w.test/c.jpg",
            )
        )

        row = map_bird_to_sighting(bird, "user-1", audio_url="https://audio.test/a.m4a")

        assert row["user_id"] == "user-1"
        assert row["species_name"] == "Northern Cardinal"
        assert row["scientific_name"] == "Cardinalis cardinalis"
        assert row["rarity"] == "Common"
        assert row["confidence"] == 0.88
        assert row["image_url"] == "https://inat.test/1.jpg"
        assert row["audio_url"] == "https://audio.test/a.m4a"
        assert row["metadata"]["diet"] == "Seeds"
        assert row["metadata"]["habitat_tags"] == ["Woodland edge"]
        assert row["metadata"]["wikipedia_image"] == "https://w.test/c.jpg"

    def test_row_falls_back_to_wikipedia_image(self):
        """Should use the Wikipedia image when there are no photos."""
        bird = to_bird_result(make_candidate(wikipedia_image="https://w.test/c.jpg"))

        row = map_bird_to_sighting(bird, "user-1")

        assert row["image_url"] == "https://w.test/c.jpg"
        assert row["audio_url"] is None

    def test_raw_ai_response_from_metadata(self):
        """Should copy the raw model response out of the candidate metadata."""
        candidate = make_candidate().with_metadata({"raw_ai_response": "{...}"})

        row = map_bird_to_sighting(to_bird_result(candidate), "user-1")

        assert row["metadata"]["raw_ai_response"] == "{...}"
        assert row["metadata"]["description"] is None
