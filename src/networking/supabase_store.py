"""Supabase-backed profile and similarity stores.

Tables: ``profiles`` (one row per attendee per event, ``embedding`` column may
be null) and ``profile_similarities`` with a unique key on
``(profile_id_1, profile_id_2, event_id)``.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence, TypeVar

from pydantic import BaseModel, ValidationError
from supabase import Client, create_client

from src.networking.config import Settings, settings
from src.networking.errors import UpstreamReadFailure, UpstreamWriteFailure
from src.networking.models import Profile, ProfileVector, SimilarityRecord

logger = logging.getLogger(__name__)

_CONFLICT_KEY = "profile_id_1,profile_id_2,event_id"

ModelT = TypeVar("ModelT", bound=BaseModel)


def create_supabase_client(config: Settings | None = None) -> Client:
    cfg = config or settings
    if not cfg.supabase_url or not cfg.supabase_service_role_key:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set",
        )
    return create_client(cfg.supabase_url, cfg.supabase_service_role_key)


def _filter_value(value: str) -> str:
    """Double-quote a value for a PostgREST logic filter."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _to_models(model: type[ModelT], rows: list[dict], what: str) -> list[ModelT]:
    try:
        return [model(**row) for row in rows]
    except (TypeError, ValidationError) as exc:
        logger.error("Unexpected row shape in %s: %s", what, exc)
        raise UpstreamReadFailure(f"Unexpected data in {what}: {exc}") from exc


class SupabaseStore:
    """Implements ``ProfileStore`` and ``SimilarityStore`` over one client."""

    def __init__(self, client: Client, config: Settings | None = None):
        cfg = config or settings
        self._client = client
        self._profiles_table = cfg.profiles_table
        self._similarities_table = cfg.similarities_table

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> SupabaseStore:
        return cls(create_supabase_client(config), config)

    def _read(self, query: Any, what: str) -> list[dict]:
        try:
            resp = query.execute()
        except Exception as exc:
            logger.error("Error fetching %s: %s", what, exc)
            raise UpstreamReadFailure(f"Failed to fetch {what}: {exc}") from exc
        return resp.data or []

    # -- ProfileStore ------------------------------------------------------

    def list_profile_vectors(self, event_id: str) -> list[ProfileVector]:
        query = (
            self._client.table(self._profiles_table)
            .select("id, embedding")
            .eq("event_id", event_id)
            .not_.is_("embedding", "null")
            .order("id")
        )
        rows = self._read(query, f"profile vectors for event {event_id}")
        vectors: list[ProfileVector] = []
        for row in rows:
            try:
                vectors.append(ProfileVector(**row))
            except (TypeError, ValidationError) as exc:
                logger.warning(
                    "Event %s: skipping profile row %r: %s",
                    event_id, row.get("id"), exc,
                )
        malformed = sum(1 for v in vectors if v.embedding is None)
        if malformed:
            logger.warning(
                "Event %s: %d stored embeddings could not be parsed",
                event_id, malformed,
            )
        return vectors

    def list_profiles(self, event_id: str) -> list[Profile]:
        query = (
            self._client.table(self._profiles_table)
            .select("*")
            .eq("event_id", event_id)
            .order("id")
        )
        what = f"profiles for event {event_id}"
        return _to_models(Profile, self._read(query, what), what)

    def get_profile(self, event_id: str, profile_id: str) -> Profile | None:
        query = (
            self._client.table(self._profiles_table)
            .select("*")
            .eq("id", profile_id)
            .eq("event_id", event_id)
            .limit(1)
        )
        what = f"profile {profile_id}"
        profiles = _to_models(Profile, self._read(query, what)[:1], what)
        return profiles[0] if profiles else None

    def save_embedding(
        self, event_id: str, profile_id: str, embedding: list[float],
    ) -> None:
        try:
            (
                self._client.table(self._profiles_table)
                .update({"embedding": embedding})
                .eq("id", profile_id)
                .eq("event_id", event_id)
                .execute()
            )
        except Exception as exc:
            logger.error("Error updating embedding for %s: %s", profile_id, exc)
            raise UpstreamWriteFailure(
                f"Failed to store embedding for profile {profile_id}: {exc}",
            ) from exc
        logger.info(
            "Stored %d-dim embedding for profile %s", len(embedding), profile_id,
        )

    # -- SimilarityStore ---------------------------------------------------

    def upsert_similarities(self, records: Sequence[SimilarityRecord]) -> None:
        if not records:
            return
        rows = [r.model_dump() for r in records]
        try:
            (
                self._client.table(self._similarities_table)
                .upsert(rows, on_conflict=_CONFLICT_KEY, ignore_duplicates=False)
                .execute()
            )
        except Exception as exc:
            logger.error("Error upserting similarity scores: %s", exc)
            raise UpstreamWriteFailure(
                f"Failed to upsert {len(rows)} similarity scores: {exc}",
            ) from exc

    def similarities_for_profile(
        self, event_id: str, profile_id: str,
    ) -> list[SimilarityRecord]:
        quoted = _filter_value(profile_id)
        query = (
            self._client.table(self._similarities_table)
            .select("event_id, profile_id_1, profile_id_2, similarity_score")
            .eq("event_id", event_id)
            .or_(f"profile_id_1.eq.{quoted},profile_id_2.eq.{quoted}")
        )
        what = f"similarity scores for {profile_id}"
        rows = [
            row for row in self._read(query, what)
            if row.get("profile_id_1") != row.get("profile_id_2")
        ]
        return _to_models(SimilarityRecord, rows, what)
