"""Store abstractions for profiles and similarity scores.

The engine only talks to these protocols.  ``InMemoryStore`` backs tests and
the demo console; ``supabase_store`` backs production.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Protocol, Sequence

from src.networking.models import PairKey, Profile, ProfileVector, SimilarityRecord

logger = logging.getLogger(__name__)


class ProfileStore(Protocol):
    """Read access to event participants and write access to their vectors."""

    def list_profile_vectors(self, event_id: str) -> list[ProfileVector]:
        """Return ``{id, embedding}`` for every profile in the event whose stored
        embedding is non-null, ordered by id.  A stored value that fails to parse
        comes back with ``embedding=None``."""
        ...

    def list_profiles(self, event_id: str) -> list[Profile]:
        """Return every profile in the event, ordered by id."""
        ...

    def get_profile(self, event_id: str, profile_id: str) -> Profile | None:
        ...

    def save_embedding(
        self, event_id: str, profile_id: str, embedding: list[float],
    ) -> None:
        """Overwrite the profile's embedding snapshot."""
        ...


class SimilarityStore(Protocol):
    """Persistence for ``profile_similarities`` rows."""

    def upsert_similarities(self, records: Sequence[SimilarityRecord]) -> None:
        """Write all records in one call; an existing row with the same
        ``(event_id, profile_id_1, profile_id_2)`` is overwritten."""
        ...

    def similarities_for_profile(
        self, event_id: str, profile_id: str,
    ) -> list[SimilarityRecord]:
        """Return rows where the profile is either member of the pair."""
        ...


class InMemoryStore:
    """Dict-backed implementation of both store protocols."""

    def __init__(self, profiles: Iterable[Profile] = ()):
        self._profiles: dict[tuple[str, str], Profile] = {}
        self._similarities: dict[PairKey, SimilarityRecord] = {}
        self.upsert_calls = 0
        for profile in profiles:
            self.add_profile(profile)

    @classmethod
    def from_json(cls, path: Path | str) -> InMemoryStore:
        with open(path) as f:
            raw = json.load(f)
        return cls(Profile(**p) for p in raw)

    # -- profiles ----------------------------------------------------------

    def add_profile(self, profile: Profile) -> None:
        self._profiles[(profile.event_id, profile.id)] = profile

    def list_profiles(self, event_id: str) -> list[Profile]:
        members = [p for (eid, _), p in self._profiles.items() if eid == event_id]
        return sorted(members, key=lambda p: p.id)

    def list_profile_vectors(self, event_id: str) -> list[ProfileVector]:
        return [
            ProfileVector(id=p.id, embedding=p.embedding)
            for p in self.list_profiles(event_id)
            if p.embedding is not None
        ]

    def get_profile(self, event_id: str, profile_id: str) -> Profile | None:
        return self._profiles.get((event_id, profile_id))

    def save_embedding(
        self, event_id: str, profile_id: str, embedding: list[float],
    ) -> None:
        profile = self._profiles.get((event_id, profile_id))
        if profile is None:
            raise KeyError(f"No profile {profile_id!r} in event {event_id!r}")
        self._profiles[(event_id, profile_id)] = profile.model_copy(
            update={"embedding": list(embedding)},
        )

    # -- similarities ------------------------------------------------------

    def upsert_similarities(self, records: Sequence[SimilarityRecord]) -> None:
        self.upsert_calls += 1
        staged = {r.key: r for r in records}
        self._similarities.update(staged)
        logger.debug("Upserted %d similarity rows in memory", len(staged))

    def similarities_for_profile(
        self, event_id: str, profile_id: str,
    ) -> list[SimilarityRecord]:
        return [
            r for (eid, _, _), r in self._similarities.items()
            if eid == event_id and r.involves(profile_id)
        ]

    def all_similarities(self, event_id: str) -> list[SimilarityRecord]:
        rows = [r for (eid, _, _), r in self._similarities.items() if eid == event_id]
        return sorted(rows, key=lambda r: (r.profile_id_1, r.profile_id_2))
