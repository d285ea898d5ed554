"""Vector primitives — cosine similarity and stored-embedding parsing.

Both functions degrade to "no similarity" instead of raising: a missing or
malformed embedding must never abort a batch.
"""

from __future__ import annotations

import json
import logging
import math
from numbers import Real
from typing import Any, Sequence

import numpy as np

logger = logging.getLogger(__name__)


def cosine_similarity(
    a: Sequence[float] | np.ndarray | None,
    b: Sequence[float] | np.ndarray | None,
) -> float:
    """Cosine of the angle between ``a`` and ``b``.

    Returns 0.0 when either vector is absent or empty, when the lengths
    differ, or when either norm is zero.  The result is not clamped.
    """
    if a is None or b is None:
        return 0.0
    try:
        va = np.asarray(a, dtype=np.float64)
        vb = np.asarray(b, dtype=np.float64)
    except (TypeError, ValueError):
        logger.debug("Non-numeric vector passed to cosine_similarity")
        return 0.0
    if va.ndim != 1 or vb.ndim != 1 or va.size == 0 or va.shape != vb.shape:
        return 0.0

    # rescale so large or tiny magnitudes cannot overflow or underflow
    scale_a = np.max(np.abs(va))
    scale_b = np.max(np.abs(vb))
    if scale_a == 0 or scale_b == 0 or not (np.isfinite(scale_a) and np.isfinite(scale_b)):
        return 0.0
    va = va / scale_a
    vb = vb / scale_b

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    result = float(np.dot(va, vb) / (norm_a * norm_b))
    return result if math.isfinite(result) else 0.0


def parse_embedding(raw: Any) -> list[float] | None:
    """Normalize a stored embedding into a list of floats.

    Accepts a sequence of numbers or the JSON text a Postgres ``vector``
    column returns (``"[0.1,0.2,...]"``).  Returns None for anything absent,
    empty, non-numeric, or non-finite.
    """
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            raw = json.loads(text)
        except json.JSONDecodeError:
            logger.debug("Unparseable embedding text: %s", text[:40])
            return None
    if isinstance(raw, np.ndarray):
        raw = raw.tolist()
    if not isinstance(raw, (list, tuple)) or not raw:
        return None

    values: list[float] = []
    for item in raw:
        if isinstance(item, bool) or not isinstance(item, Real):
            return None
        value = float(item)
        if not math.isfinite(value):
            return None
        values.append(value)
    return values
