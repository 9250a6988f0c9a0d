"""Configuration management for manuscript-kb."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, loaded from environment and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MKB_",
    )

    # Storage
    store_backend: str = Field(default="sqlite", description="sqlite or neo4j")
    data_dir: Path = Field(default=Path("data"))
    database_path: Path | None = Field(default=None, description="SQLite file (defaults to data_dir)")

    # Neo4j connection
    neo4j_uri: str = Field(default="bolt://localhost:7687")
    neo4j_user: str = Field(default="neo4j")
    neo4j_password: str = Field(default="manuscriptkb")

    # Ollama (local LLM)
    ollama_base_url: str = Field(default="http://localhost:11434")
    ollama_model: str = Field(default="llama3.1:8b")

    # Hugging Face Inference API
    hf_api_key: str = Field(default="")
    hf_model: str = Field(default="meta-llama/Llama-3.1-70B-Instruct")
    llm_provider: str = Field(default="ollama", description="ollama or huggingface")
    llm_batch_size: int = Field(default=25, description="Candidates per classification request")
    llm_timeout: float = Field(default=60.0)

    # Extraction
    max_candidates: int = Field(default=200, description="Cap on returned extraction candidates")
    review_threshold: int = Field(default=50, description="Confidence below which candidates need review")

    log_level: str = Field(default="WARNING")

    @property
    def sqlite_path(self) -> Path:
        return self.database_path or self.data_dir / "manuscript_kb.db"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
