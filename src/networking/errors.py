"""Error taxonomy for similarity recomputation.

Store-level failures abort a call and propagate to the caller.  Per-candidate
anomalies (absent or malformed vectors) never raise; they are skipped.
"""

from __future__ import annotations


class SimilarityError(Exception):
    """Base exception carrying a machine-readable code and an HTTP status."""

    def __init__(
        self,
        message: str,
        code: str = "SIMILARITY_ERROR",
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class InvalidRequest(SimilarityError):
    """Raised when identifiers are empty or the payload has the wrong shape."""

    def __init__(self, message: str):
        super().__init__(message, code="INVALID_REQUEST", status_code=400)


class MissingEmbedding(SimilarityError):
    """Raised when the target profile has no usable embedding yet."""

    def __init__(self, event_id: str, profile_id: str):
        super().__init__(
            "Target profile not found or has no embedding. "
            "Complete your profile first.",
            code="MISSING_EMBEDDING",
            status_code=400,
        )
        self.event_id = event_id
        self.profile_id = profile_id


class UpstreamReadFailure(SimilarityError):
    def __init__(self, message: str):
        super().__init__(message, code="UPSTREAM_READ_FAILURE", status_code=502)


class UpstreamWriteFailure(SimilarityError):
    def __init__(self, message: str):
        super().__init__(message, code="UPSTREAM_WRITE_FAILURE", status_code=502)
