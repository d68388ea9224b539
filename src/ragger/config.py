"""Shared configuration loaded from environment / .env / TOML file."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.toml"

# Short keys accepted in config files for compatibility with older configs
FILE_KEY_ALIASES = {"dir": "html_dir", "k": "top_k", "q": "query"}


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars (``RAGGER_*``) or .env file.

    Pipelines never read settings from a global; an instance is passed to
    every constructor explicitly.
    """

    # Run mode
    mode: Literal["ingest", "search"] = "ingest"

    # Collection / chunking
    collection: str = "docs"
    embedding_dim: int = Field(default=1536, gt=0)
    chunk_size: int = Field(default=1200, gt=0)
    chunk_overlap: int = Field(default=250, ge=0)

    # Embedding
    model: str = Field(default="", description="Embedding model; falls back to default_model when empty")
    default_model: str = "text-embedding-3-small"
    embedding_backend: Literal["openai", "huggingface"] = "openai"
    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    embed_workers: int = Field(default=1, ge=1, description="Parallel embedding requests per file")
    embed_max_retries: int = Field(default=0, ge=0, description="Retries per embedding call (0 = fail fast)")

    # Ingest
    html_dir: str = "./html"
    ingest_lang: str = Field(default="ru", description="Language tag written into every point payload")
    continue_on_error: bool = False

    # Search
    query: str = ""
    top_k: int = Field(default=5, gt=0)
    lang: str = Field(default="", description="Optional payload.lang filter")

    # Vector store
    vector_backend: Literal["qdrant", "chroma"] = "qdrant"
    qdrant_host: str = "localhost"
    qdrant_port: int = 6333
    qdrant_grpc_port: int = 6334
    qdrant_prefer_grpc: bool = True
    chroma_host: str = "localhost"
    chroma_port: int = 8000

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="RAGGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _resolve_model(self) -> Settings:
        # back-compat: configs that only set default_model
        if not self.model and self.default_model:
            self.model = self.default_model
        return self

    @model_validator(mode="after")
    def _check_overlap(self) -> Settings:
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be < chunk_size ({self.chunk_size})"
            )
        return self


def _normalize_file_keys(raw: dict[str, Any]) -> dict[str, Any]:
    """Map short config-file keys onto ``Settings`` field names.

    ``dir``, ``k`` and ``q`` become ``html_dir``, ``top_k`` and ``query``;
    ``qdrant_grpc = "host:port"`` is split into ``qdrant_host`` and
    ``qdrant_grpc_port``. A full field name wins over its short form.
    """
    values = dict(raw)
    for short, field in FILE_KEY_ALIASES.items():
        if short in values:
            value = values.pop(short)
            values.setdefault(field, value)

    addr = values.pop("qdrant_grpc", None)
    if addr:
        host, sep, port = str(addr).rpartition(":")
        if not sep:
            host, port = port, ""
        if host:
            values.setdefault("qdrant_host", host)
        if port:
            if not port.isdigit():
                raise ValueError(f"qdrant_grpc: invalid port in {addr!r}")
            values.setdefault("qdrant_grpc_port", int(port))
    return values


def load_settings(config_path: str | Path | None = DEFAULT_CONFIG_PATH, **overrides: Any) -> Settings:
    """Merge defaults, env, a TOML config file and explicit overrides.

    Priority: defaults < env / .env < config file < ``overrides``.
    A missing config file is not an error; the other layers still apply.
    ``None`` overrides are ignored so unset CLI flags do not mask the file.
    """
    values: dict[str, Any] = {}
    if config_path:
        path = Path(config_path)
        if path.is_file():
            with path.open("rb") as fh:
                values.update(_normalize_file_keys(tomllib.load(fh)))
            logger.debug("Loaded config file %s", path)
        else:
            logger.debug("Config file %s not found, using defaults", path)

    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**values)
