"""Resume cleanup and skill / interest tagging.

Keyword matching over fixed vocabularies is always applied.  When a Claude
client is supplied, one fast-model call per profile adds tags the vocabulary
misses; results are cached by content hash.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from typing import Any

from anthropic import Anthropic

from src.networking.config import settings
from src.networking.models import Profile

logger = logging.getLogger(__name__)

_cache: dict[str, dict[str, Any]] = {}

SKILL_KEYWORDS: list[str] = [
    "javascript", "python", "react", "node", "html", "css", "sql", "java", "c++",
    "leadership", "management", "communication", "teamwork", "problem solving",
    "analytics", "excel", "powerpoint", "project management", "public speaking",
    "research", "design", "photoshop", "illustrator", "agile", "scrum",
]

INTEREST_KEYWORDS: list[str] = [
    "travel", "music", "sports", "reading", "photography", "cooking", "gaming",
    "hiking", "yoga", "meditation", "art", "dancing", "volunteering", "cycling",
    "running", "swimming", "chess", "writing", "blogging", "podcasting",
    "movies", "theater",
]

_LINKEDIN_RE = re.compile(
    r"(?:https?://)?(?:www\.)?linkedin\.com/in/[a-zA-Z0-9_-]+/?", re.IGNORECASE,
)
_NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7E\n\r\t]")
_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL)

_SYSTEM_PROMPT = """\
You tag attendee profiles for an event networking app.
Given a profile, return the attendee's professional skills and personal interests.

Return ONLY valid JSON:
{
  "skills": ["lowercase skill", ...],
  "interests": ["lowercase interest", ...]
}

RULES:
- At most 10 skills and 10 interests, each 1-3 words.
- Only include what the text supports. Never invent.
"""


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    # \b does not match after a trailing symbol such as "c++"
    tail = r"\b" if keyword[-1].isalnum() else r"(?!\w)"
    return re.compile(rf"\b{re.escape(keyword)}{tail}", re.IGNORECASE)


_SKILL_PATTERNS = [(k, _keyword_pattern(k)) for k in SKILL_KEYWORDS]
_INTEREST_PATTERNS = [(k, _keyword_pattern(k)) for k in INTEREST_KEYWORDS]


def clean_resume_text(raw: bytes | str, max_chars: int | None = None) -> str:
    """Best-effort text scrape: printable ASCII only, whitespace collapsed."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    text = _NON_PRINTABLE_RE.sub(" ", raw)
    text = " ".join(text.split())
    limit = max_chars if max_chars is not None else settings.resume_max_chars
    return text[:limit]


def extract_linkedin_url(text: str) -> str | None:
    m = _LINKEDIN_RE.search(text)
    return m.group(0) if m else None


def extract_skills(text: str) -> list[str]:
    return [k for k, pattern in _SKILL_PATTERNS if pattern.search(text)]


def extract_interests(text: str) -> list[str]:
    return [k for k, pattern in _INTEREST_PATTERNS if pattern.search(text)]


def extract_paragraph(text: str, max_words: int) -> str:
    return " ".join(text.split()[:max_words])


_ABOUT_MAX_WORDS = 50


def _source_text(profile: Profile, resume: str | None) -> str:
    parts = [profile.about_you, profile.looking_for, profile.hobbies, resume]
    return "\n".join(p for p in parts if p)


def _content_hash(text: str) -> str:
    return hashlib.sha256(text.encode()).hexdigest()[:16]


def _merge(*groups: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for group in groups:
        for tag in group:
            norm = tag.strip().lower()
            if norm:
                seen.setdefault(norm, None)
    return list(seen)


def make_client() -> Anthropic | None:
    if not settings.anthropic_api_key:
        return None
    return Anthropic(api_key=settings.anthropic_api_key)


def _parse_tag_reply(raw: str) -> dict[str, Any]:
    m = _FENCE_RE.search(raw)
    body = m.group(1) if m else raw
    try:
        data = json.loads(body.strip())
    except json.JSONDecodeError:
        logger.warning("Tagging reply was not JSON: %s", raw[:200])
        return {}
    if not isinstance(data, dict):
        logger.warning("Tagging reply was a %s, not an object", type(data).__name__)
        return {}
    return data


def _llm_tags(client: Anthropic, text: str) -> dict[str, Any]:
    h = _content_hash(text)
    if h in _cache:
        return _cache[h]
    resp = client.messages.create(
        model=settings.anthropic_fast_model,
        max_tokens=512,
        system=_SYSTEM_PROMPT,
        messages=[{"role": "user", "content": text}],
    )
    result = _parse_tag_reply(resp.content[0].text)
    if not result:
        logger.warning("Empty LLM tag response, using keyword tags only")
    _cache[h] = result
    return result


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


def extract_tags(profile: Profile, client: Anthropic | None = None) -> Profile:
    """Return a copy of the profile with skills, interests and LinkedIn filled in.

    Resume text is cleaned first; a profile with a resume but no ``about_you``
    gets the resume's opening words as its about text.
    """
    resume = clean_resume_text(profile.resume_text) if profile.resume_text else None
    text = _source_text(profile, resume)
    if not text:
        return profile

    skills = extract_skills(text)
    interests = extract_interests(text)
    if client is not None:
        data = _llm_tags(client, text)
        skills = _merge(skills, _string_list(data.get("skills")))
        interests = _merge(interests, _string_list(data.get("interests")))

    update: dict[str, Any] = {
        "skills": _merge(profile.skills, skills),
        "interests": _merge(profile.interests, interests),
        "linkedin_url": profile.linkedin_url or extract_linkedin_url(text),
    }
    if resume is not None:
        update["resume_text"] = resume
        if not profile.about_you:
            update["about_you"] = extract_paragraph(resume, _ABOUT_MAX_WORDS) or None
    updated = profile.model_copy(update=update)
    logger.info(
        "Tagged %s: %d skills, %d interests",
        profile.id, len(updated.skills), len(updated.interests),
    )
    return updated


def clear_cache() -> None:
    _cache.clear()
