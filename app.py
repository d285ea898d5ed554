"""Streamlit console for exercising the similarity engine on a sample event."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pandas as pd
import streamlit as st

sys.path.insert(0, str(Path(__file__).resolve().parent))

from src.networking.config import settings  # noqa: E402
from src.networking.embeddings import update_profile_embedding  # noqa: E402
from src.networking.engine import SimilarityEngine, load_sample_store  # noqa: E402
from src.networking.extraction.profile_extractor import extract_tags, make_client  # noqa: E402
from src.networking.handler import handle_calculate_similarity  # noqa: E402
from src.networking.models import Profile  # noqa: E402
from src.networking.stores import InMemoryStore  # noqa: E402

logging.basicConfig(level=logging.INFO)

st.set_page_config(page_title="Event Networking", layout="wide")
st.title("Event Networking — People You Might Connect With")

_UPLOAD_HELP = """\
Upload a JSON array of profiles for one event:

```json
[
  {
    "id": "p1",
    "event_id": "my-event",
    "name": "Amara Okafor",
    "about_you": "Data engineer building analytics pipelines",
    "looking_for": "Other data people",
    "skills": ["python", "sql"]
  }
]
```

Optional fields: `image_url`, `interests`, `hobbies`, `linkedin_url`,
`resume_text`, `embedding`.
"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _prepare(store: InMemoryStore, event_id: str, use_llm: bool) -> None:
    """Tag and embed every profile that has no embedding yet."""
    client = make_client() if use_llm else None
    profiles = store.list_profiles(event_id)
    progress = st.progress(0.0)
    for i, profile in enumerate(profiles):
        if profile.embedding is None:
            store.add_profile(extract_tags(profile, client))
            update_profile_embedding(store, event_id, profile.id)
        progress.progress((i + 1) / len(profiles))


def _run(store: InMemoryStore, event_id: str, use_llm: bool) -> SimilarityEngine | None:
    try:
        _prepare(store, event_id, use_llm)
    except Exception as e:
        st.error(f"Embedding error: {e}")
        return None

    engine = SimilarityEngine(store, store)
    status, body = handle_calculate_similarity(engine, {"eventId": event_id})
    if status != 200:
        st.error(f"Recompute failed: {body.get('error')}")
        return None
    st.success(body["message"])
    return engine


def _render_matrix(engine: SimilarityEngine, profiles: list[Profile]) -> None:
    names = {p.id: p.name or p.id for p in profiles}
    ids = list(names)
    matrix = {
        names[a]: {names[b]: engine.score_between(profiles[0].event_id, a, b) for b in ids}
        for a in ids
    }
    df = pd.DataFrame(matrix, index=list(names.values()), columns=list(names.values()))
    st.subheader("Similarity Matrix")
    try:
        styled = df.style.background_gradient(cmap="YlGn", vmin=0, vmax=1).format("{:.2f}")
        st.dataframe(styled, use_container_width=True)
    except ImportError:
        st.dataframe(df.round(2), use_container_width=True)


def _render_connections(engine: SimilarityEngine, profiles: list[Profile]) -> None:
    st.subheader("People You Might Connect With")
    labels = {f"{p.name} ({p.id})": p for p in profiles}
    choice = st.selectbox("Attendee", list(labels))
    me = labels[choice]
    ranked = engine.similar_profiles(me.event_id, me.id, limit=settings.top_k)
    if not ranked or all(r.similarity_score == 0 for r in ranked):
        st.info("No similar profiles yet. More participants may appear as they join.")
        return
    for match in ranked:
        cols = st.columns([3, 3, 1])
        cols[0].markdown(f"**{match.profile.name}**")
        cols[1].caption(", ".join(match.profile.skills[:3]) or "—")
        cols[2].metric(match.label, match.percentage)


def _render(store: InMemoryStore, event_id: str) -> None:
    use_llm = st.session_state.get("use_llm", False)
    if st.button("Compute Similarities", key=f"run_{event_id}", type="primary"):
        engine = _run(store, event_id, use_llm)
        if engine:
            st.session_state[f"engine_{event_id}"] = engine
    engine = st.session_state.get(f"engine_{event_id}")
    profiles = store.list_profiles(event_id)
    if engine and profiles:
        _render_matrix(engine, profiles)
        _render_connections(engine, profiles)


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------

with st.sidebar:
    st.header("Settings")
    st.session_state["use_llm"] = st.checkbox(
        "Tag skills with Claude", value=False,
        disabled=not settings.anthropic_api_key,
    )
    st.caption(f"Embedding model: `{settings.embedding_model}`")


# ---------------------------------------------------------------------------
# Main tabs
# ---------------------------------------------------------------------------

tab_sample, tab_upload = st.tabs(["Sample Event", "Upload JSON"])

with tab_sample:
    if "sample_store" not in st.session_state:
        st.session_state.sample_store = load_sample_store()
    sample: InMemoryStore = st.session_state.sample_store
    for p in sample.list_profiles("demo-summit"):
        st.markdown(f"- **{p.name}** — {p.about_you or ''}")
    _render(sample, "demo-summit")

with tab_upload:
    st.markdown(_UPLOAD_HELP)
    uploaded = st.file_uploader("Upload JSON", type=["json"])
    if uploaded:
        try:
            raw = json.loads(uploaded.getvalue())
            store = InMemoryStore(Profile(**p) for p in raw)
        except Exception as e:
            st.error(f"Error loading JSON: {e}")
        else:
            event_ids = sorted({p["event_id"] for p in raw})
            event_id = st.selectbox("Event", event_ids)
            st.success(f"Loaded {len(store.list_profiles(event_id))} profiles")
            _render(store, event_id)
