"""
Central configuration for merklebatch.

Typed settings read from environment variables (12-factor style) using
pydantic-settings.

Usage:

    from merklebatch.core.settings import get_settings

    settings = get_settings()
    hasher = get_hasher(settings.hash_algorithm)
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from merklebatch.core.hashing import DEFAULT_HASH_ALGORITHM, available_hashers


class MerkleBatchSettings(BaseSettings):
    """
    Root configuration object.

    Every field maps to MERKLEBATCH_<FIELD> in the environment.
    """

    model_config = SettingsConfigDict(env_prefix="MERKLEBATCH_", extra="ignore")

    hash_algorithm: str = Field(
        default=DEFAULT_HASH_ALGORITHM,
        description="Compression function for leaves and nodes (see available_hashers()).",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level (DEBUG/INFO/WARNING/ERROR).",
    )
    workers: int = Field(
        default=1,
        ge=1,
        description="Thread count for pairwise hashing within a tree layer.",
    )
    output_dir: str = Field(
        default="results",
        description="Directory the demo writes its CSV summary and explanation into.",
    )
    demo_batch_size: int = Field(
        default=64,
        ge=1,
        description="Number of demo messages signed by `merklebatch demo`.",
    )

    @field_validator("hash_algorithm")
    @classmethod
    def _validate_hash_algorithm(cls, v: str) -> str:
        v = (v or DEFAULT_HASH_ALGORITHM).strip().lower()
        if v not in available_hashers():
            raise ValueError(f"hash_algorithm must be one of {available_hashers()}")
        return v

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        v = (v or "INFO").strip().upper()
        if v == "WARN":
            v = "WARNING"
        if not isinstance(logging.getLevelName(v), int):
            raise ValueError(f"Unknown log level {v!r}")
        return v


@lru_cache(maxsize=1)
def get_settings() -> MerkleBatchSettings:
    """
    Cached accessor for MerkleBatchSettings.

    Tests that change the environment should call get_settings.cache_clear().
    """
    return MerkleBatchSettings()
