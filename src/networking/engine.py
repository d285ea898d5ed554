"""Similarity engine — fetch vectors, score pairs, persist canonical rows.

Two write modes:
  1. Single profile: the target against every other embedded attendee
  2. Whole event:    every unordered pair of embedded attendees

Each call reads one snapshot of vectors and issues one bulk upsert.  The read
side ranks attendees from stored rows and never writes.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path

from src.networking.errors import InvalidRequest, MissingEmbedding
from src.networking.models import (
    PairKey,
    ProfileVector,
    RecomputeResult,
    SimilarityRecord,
    SimilarProfile,
)
from src.networking.pair_key import canonical_pair
from src.networking.stores import InMemoryStore, ProfileStore, SimilarityStore
from src.networking.vector_math import cosine_similarity

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent.parent / "data"


def load_sample_store() -> InMemoryStore:
    return InMemoryStore.from_json(DATA_DIR / "sample_profiles.json")


def _require(**values: str | None) -> None:
    for name, value in values.items():
        if not value or not value.strip():
            raise InvalidRequest(f"{name} is required")


def _make_record(
    event_id: str, a: str, b: str, score: float,
) -> SimilarityRecord:
    first, second = canonical_pair(a, b)
    return SimilarityRecord(
        event_id=event_id,
        profile_id_1=first,
        profile_id_2=second,
        similarity_score=score,
    )


class SimilarityEngine:
    def __init__(self, profiles: ProfileStore, similarities: SimilarityStore):
        self._profiles = profiles
        self._similarities = similarities

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    def _snapshot(self, event_id: str) -> tuple[list[ProfileVector], int]:
        """One read of the event's vectors, unusable ones dropped, sorted by id."""
        vectors = self._profiles.list_profile_vectors(event_id)
        usable = {v.id: v for v in vectors if v.embedding is not None}
        skipped = len(vectors) - len(usable)
        if skipped:
            logger.warning(
                "Event %s: skipping %d profiles with malformed embeddings",
                event_id, skipped,
            )
        return sorted(usable.values(), key=lambda v: v.id), skipped

    def _persist(self, staged: dict[PairKey, SimilarityRecord]) -> None:
        if staged:
            self._similarities.upsert_similarities(list(staged.values()))

    def recompute_for_profile(
        self, event_id: str, target_profile_id: str,
    ) -> RecomputeResult:
        """Score one profile against every other embedded profile in the event."""
        _require(event_id=event_id, profile_id=target_profile_id)
        logger.info(
            "Calculating similarity scores for event %s and profile %s",
            event_id, target_profile_id,
        )

        vectors, skipped = self._snapshot(event_id)
        target = next((v for v in vectors if v.id == target_profile_id), None)
        if target is None:
            raise MissingEmbedding(event_id, target_profile_id)

        dim = len(target.embedding)
        staged: dict[PairKey, SimilarityRecord] = {}
        for other in vectors:
            if other.id == target.id:
                continue
            if len(other.embedding) != dim:
                logger.warning(
                    "Skipping %s: %d-dim embedding, target has %d",
                    other.id, len(other.embedding), dim,
                )
                skipped += 1
                continue
            score = cosine_similarity(target.embedding, other.embedding)
            record = _make_record(event_id, target.id, other.id, score)
            staged[record.key] = record
            logger.debug("Similarity %s<->%s = %.4f", target.id, other.id, score)

        self._persist(staged)
        logger.info(
            "Calculated %d similarity scores for profile %s (%d skipped)",
            len(staged), target_profile_id, skipped,
        )
        return RecomputeResult(
            event_id=event_id,
            profile_id=target_profile_id,
            scores_calculated=len(staged),
            skipped=skipped,
        )

    def recompute_for_event(self, event_id: str) -> RecomputeResult:
        """Score every unordered pair of embedded profiles in the event."""
        _require(event_id=event_id)
        logger.info("Calculating similarity scores for event %s", event_id)

        vectors, skipped = self._snapshot(event_id)
        if len(vectors) < 2:
            logger.info(
                "Event %s: %d embedded profiles, nothing to compute",
                event_id, len(vectors),
            )
            return RecomputeResult(event_id=event_id, skipped=skipped)

        # Vectors off the event's dominant dimension cannot be compared.
        dims = Counter(len(v.embedding) for v in vectors)
        dim = dims.most_common(1)[0][0]
        comparable = [v for v in vectors if len(v.embedding) == dim]
        if len(comparable) < len(vectors):
            logger.warning(
                "Event %s: skipping %d profiles not matching %d-dim embeddings",
                event_id, len(vectors) - len(comparable), dim,
            )
            skipped += len(vectors) - len(comparable)

        staged: dict[PairKey, SimilarityRecord] = {}
        for i, a in enumerate(comparable):
            for b in comparable[i + 1:]:
                score = cosine_similarity(a.embedding, b.embedding)
                record = _make_record(event_id, a.id, b.id, score)
                staged[record.key] = record

        self._persist(staged)
        logger.info(
            "Event %s: calculated %d similarity scores across %d profiles",
            event_id, len(staged), len(comparable),
        )
        return RecomputeResult(
            event_id=event_id,
            scores_calculated=len(staged),
            skipped=skipped,
        )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def similar_profiles(
        self, event_id: str, profile_id: str, limit: int | None = None,
    ) -> list[SimilarProfile]:
        """Other attendees ordered by stored similarity, highest first.

        Pairs without a stored row score 0.0.  Reads never trigger a
        recomputation.
        """
        _require(event_id=event_id, profile_id=profile_id)
        participants = self._profiles.list_profiles(event_id)
        rows = self._similarities.similarities_for_profile(event_id, profile_id)

        scores: dict[str, float] = {}
        for row in rows:
            if row.event_id == event_id and row.involves(profile_id):
                scores[row.counterpart(profile_id)] = row.similarity_score

        ranked = [
            SimilarProfile(profile=p, similarity_score=scores.get(p.id, 0.0))
            for p in participants
            if p.id != profile_id
        ]
        ranked.sort(key=lambda s: (-s.similarity_score, s.profile.id))
        if limit is not None:
            ranked = ranked[:limit]
        return ranked

    def score_between(self, event_id: str, a: str, b: str) -> float:
        if a == b:
            return 1.0
        for row in self._similarities.similarities_for_profile(event_id, a):
            if row.involves(b):
                return row.similarity_score
        return 0.0
