"""Profile embeddings using sentence-transformers.

Builds one structured text per profile and encodes it with a lazily loaded
local model.  This is the single embedding path: every stored vector comes
from ``embed_profile``.
"""

from __future__ import annotations

import logging

from src.networking.config import settings
from src.networking.models import Profile
from src.networking.stores import ProfileStore

logger = logging.getLogger(__name__)

_model = None


def _load_model():
    global _model
    if _model is None:
        from sentence_transformers import SentenceTransformer
        _model = SentenceTransformer(settings.embedding_model)
        logger.info("Loaded sentence-transformer model: %s", settings.embedding_model)
    return _model


def _flat(text: str) -> str:
    return " ".join(text.split())


def build_profile_text(profile: Profile) -> str:
    """Structured profile summary; skills and interests are repeated for weight."""
    parts: list[str] = []
    if profile.name:
        parts.append(f"Name: {profile.name}.")
    if profile.about_you:
        parts.append(f"About: {_flat(profile.about_you)}.")
    if profile.looking_for:
        parts.append(f"Looking for: {_flat(profile.looking_for)}.")
    if profile.skills:
        parts.append(f"Skills: {', '.join(profile.skills)}.")
        parts.extend(f"Has skill in: {s}." for s in profile.skills)
    if profile.interests:
        parts.append(f"Interests: {', '.join(profile.interests)}.")
        parts.extend(f"Interested in: {i}." for i in profile.interests)
    if profile.hobbies:
        parts.append(f"Hobbies: {_flat(profile.hobbies)}.")
    if profile.linkedin_url:
        parts.append(f"LinkedIn: {profile.linkedin_url}.")
    if profile.resume_text:
        resume = _flat(profile.resume_text)[: settings.resume_max_chars]
        parts.append(f"Resume content: {resume}.")

    text = " ".join(parts).strip()
    if not text:
        text = profile.name or "User profile"
    return text


def encode(text: str) -> list[float]:
    if not text or not text.strip():
        raise ValueError("Cannot generate embedding for empty text")
    truncated = text[: settings.embedding_max_chars]
    model = _load_model()
    vec = model.encode(truncated, show_progress_bar=False, normalize_embeddings=True)
    return [float(x) for x in vec]


def embed_profile(profile: Profile) -> list[float]:
    text = build_profile_text(profile)
    logger.debug("Profile text for %s: %d chars", profile.id, len(text))
    return encode(text)


def update_profile_embedding(
    store: ProfileStore, event_id: str, profile_id: str,
) -> list[float]:
    """Regenerate and store a profile's embedding, overwriting the old one."""
    profile = store.get_profile(event_id, profile_id)
    if profile is None:
        raise KeyError(f"No profile {profile_id!r} in event {event_id!r}")
    vector = embed_profile(profile)
    store.save_embedding(event_id, profile_id, vector)
    logger.info(
        "Updated embedding for %s in event %s (%d-dim)",
        profile_id, event_id, len(vector),
    )
    return vector


def reset() -> None:
    global _model
    _model = None
