"""Unit tests for the data contracts and display helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.networking.config import SimilarityBands
from src.networking.models import (
    Profile,
    SimilarityRecord,
    SimilarProfile,
    format_similarity,
    similarity_label,
)


class TestProfile:
    def test_null_lists_become_empty(self):
        p = Profile(id="p", event_id="e", skills=None, interests=None)
        assert p.skills == []
        assert p.interests == []

    def test_embedding_from_vector_text(self):
        p = Profile(id="p", event_id="e", embedding="[0.5, 0.25]")
        assert p.embedding == [0.5, 0.25]
        assert p.has_embedding

    def test_malformed_embedding_is_absent(self):
        p = Profile(id="p", event_id="e", embedding="garbage")
        assert p.embedding is None
        assert not p.has_embedding

    def test_extra_columns_ignored(self):
        p = Profile(id="p", event_id="e", age=31, created_at="2024-01-01")
        assert p.id == "p"


class TestSimilarityRecord:
    def test_self_pair_rejected(self):
        with pytest.raises(ValidationError):
            SimilarityRecord(
                event_id="e", profile_id_1="a", profile_id_2="a", similarity_score=1.0,
            )

    def test_counterpart(self):
        r = SimilarityRecord(
            event_id="e", profile_id_1="a", profile_id_2="b", similarity_score=0.4,
        )
        assert r.counterpart("a") == "b"
        assert r.counterpart("b") == "a"
        assert r.key == ("e", "a", "b")
        with pytest.raises(ValueError):
            r.counterpart("c")


class TestSimilarityLabel:
    @pytest.mark.parametrize(
        ("score", "label"),
        [
            (0.95, "Very High"),
            (0.8, "High"),
            (0.61, "High"),
            (0.5, "Medium"),
            (0.3, "Low"),
            (0.2, "Very Low"),
            (-0.4, "Very Low"),
        ],
    )
    def test_bands(self, score, label):
        assert similarity_label(score) == label

    def test_custom_bands(self):
        bands = SimilarityBands(very_high=0.9, high=0.7, medium=0.5, low=0.1)
        assert similarity_label(0.85, bands) == "High"

    def test_percentage(self):
        assert format_similarity(0.734) == "73%"
        assert format_similarity(1.0) == "100%"

    def test_similar_profile_helpers(self):
        sp = SimilarProfile(
            profile=Profile(id="p", event_id="e"), similarity_score=0.66,
        )
        assert sp.label == "High"
        assert sp.percentage == "66%"
