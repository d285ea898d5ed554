"""Configuration — store connection, embedding model, display thresholds."""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class SimilarityBands(BaseModel):
    very_high: float = Field(default=0.8, ge=0.0, le=1.0)
    high: float = Field(default=0.6, ge=0.0, le=1.0)
    medium: float = Field(default=0.4, ge=0.0, le=1.0)
    low: float = Field(default=0.2, ge=0.0, le=1.0)


class Settings(BaseSettings):
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    profiles_table: str = "profiles"
    similarities_table: str = "profile_similarities"

    embedding_model: str = "all-MiniLM-L6-v2"
    embedding_max_chars: int = 2048
    resume_max_chars: int = 5000

    anthropic_api_key: str = ""
    anthropic_fast_model: str = "claude-3-haiku-20240307"

    similarity_bands: SimilarityBands = SimilarityBands()

    top_k: int = 5

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
