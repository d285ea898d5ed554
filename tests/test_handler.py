"""Tests for the calculate-similarity entry point and its typed contract."""

from __future__ import annotations

import pytest

from src.networking.engine import SimilarityEngine
from src.networking.errors import InvalidRequest, UpstreamWriteFailure
from src.networking.handler import handle_calculate_similarity, parse_request
from src.networking.models import Profile
from src.networking.stores import InMemoryStore

EVENT = "evt-1"


def _store() -> InMemoryStore:
    return InMemoryStore([
        Profile(id="P1", event_id=EVENT, embedding=[1, 0]),
        Profile(id="P2", event_id=EVENT, embedding=[0, 1]),
        Profile(id="P3", event_id=EVENT, embedding=[1, 0]),
        Profile(id="P4", event_id=EVENT),
    ])


def _call(payload, store: InMemoryStore | None = None):
    store = store or _store()
    return handle_calculate_similarity(SimilarityEngine(store, store), payload)


class TestParseRequest:
    def test_event_only(self):
        req = parse_request({"eventId": EVENT})
        assert req.event_id == EVENT
        assert req.profile_id is None

    def test_with_profile(self):
        req = parse_request({"eventId": EVENT, "profileId": "P1"})
        assert req.profile_id == "P1"

    def test_blank_profile_means_whole_event(self):
        assert parse_request({"eventId": EVENT, "profileId": ""}).profile_id is None

    def test_missing_event(self):
        with pytest.raises(InvalidRequest, match="eventId is required"):
            parse_request({"profileId": "P1"})

    def test_empty_event(self):
        with pytest.raises(InvalidRequest, match="Event ID is required"):
            parse_request({"eventId": ""})

    def test_not_an_object(self):
        with pytest.raises(InvalidRequest):
            parse_request(["evt-1"])


class TestHandleCalculateSimilarity:
    def test_event_mode(self):
        status, body = _call({"eventId": EVENT})
        assert status == 200
        assert body["success"] is True
        assert body["scoresCalculated"] == 3

    def test_profile_mode(self):
        status, body = _call({"eventId": EVENT, "profileId": "P2"})
        assert status == 200
        assert body["scoresCalculated"] == 2

    def test_missing_embedding(self):
        store = _store()
        status, body = _call({"eventId": EVENT, "profileId": "P4"}, store)
        assert status == 400
        assert "complete your profile" in body["error"].lower()
        assert body["code"] == "MISSING_EMBEDDING"
        assert store.all_similarities(EVENT) == []

    def test_nothing_to_compute_is_success(self):
        status, body = _call({"eventId": "empty-event"})
        assert status == 200
        assert body["scoresCalculated"] == 0
        assert body["message"] == "No similar profiles yet"

    def test_invalid_payload(self):
        status, body = _call({})
        assert status == 400
        assert "error" in body

    def test_upstream_failure(self):
        class _Broken(InMemoryStore):
            def upsert_similarities(self, records):
                raise UpstreamWriteFailure("write rejected")

        store = _Broken(_store().list_profiles(EVENT))
        status, body = _call({"eventId": EVENT}, store)
        assert status == 502
        assert body == {"error": "write rejected", "code": "UPSTREAM_WRITE_FAILURE"}

    def test_unexpected_failure_becomes_500(self):
        class _Exploding(InMemoryStore):
            def list_profile_vectors(self, event_id):
                raise RuntimeError("db exploded")

        store = _Exploding(_store().list_profiles(EVENT))
        status, body = _call({"eventId": EVENT}, store)
        assert status == 500
        assert body == {"error": "db exploded"}

    def test_unexpected_failure_without_message(self):
        class _Silent(InMemoryStore):
            def list_profile_vectors(self, event_id):
                raise RuntimeError()

        store = _Silent(_store().list_profiles(EVENT))
        assert _call({"eventId": EVENT}, store) == (500, {"error": "Unknown error"})
