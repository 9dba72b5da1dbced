"""
Construction options for a cache node.

Options can be passed directly or read from the environment with
``CacheOptions.from_env()``:

    TTL_CACHE_DEFAULT_LIFETIME_MS   default lifetime in ms, or "infinite"
    TTL_CACHE_STALE                 return expired values once more (bool)
    TTL_CACHE_CHANGEFEED            emit {old, new} on set (bool)
    TTL_CACHE_ID                    instance id (random when unset)
    TTL_CACHE_BYTE_MODE             JSON bytes on the transport boundary (bool)
"""

import base64
import os
import secrets
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .entry import decode_number

DEFAULT_LIFETIME_MS = 5 * 60 * 1000
ENV_PREFIX = "TTL_CACHE_"

_TRUTHY = {"1", "true", "yes", "on"}


def generate_instance_id(num_bytes: int = 12) -> str:
    """Random base64 id used as the origin tag of a store."""
    return base64.b64encode(secrets.token_bytes(num_bytes)).decode("ascii")


class CacheOptions(BaseModel):
    """Options shared by the store and its replication channel."""

    model_config = ConfigDict(frozen=True)

    default_lifetime: float = Field(DEFAULT_LIFETIME_MS, ge=0, description="Lifetime in ms for set() without one")
    stale: bool = Field(False, description="Return an expired value once more before purging it")
    changefeed: bool = Field(False, description="Emit {old, new} pairs on set")
    id: str = Field(default_factory=generate_instance_id, min_length=1, description="Origin tag of this instance")
    byte_mode: bool = Field(False, description="Exchange UTF-8 JSON bytes instead of dict records")

    @field_validator("default_lifetime", mode="before")
    @classmethod
    def _infinite_token(cls, v):
        return decode_number(v)

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, **overrides) -> "CacheOptions":
        """Build options from environment variables; keyword overrides win."""
        values = {}

        lifetime = os.getenv(f"{prefix}DEFAULT_LIFETIME_MS")
        if lifetime:
            values["default_lifetime"] = lifetime

        for field in ("stale", "changefeed", "byte_mode"):
            raw: Optional[str] = os.getenv(f"{prefix}{field.upper()}")
            if raw is not None:
                values[field] = raw.strip().lower() in _TRUTHY

        instance_id = os.getenv(f"{prefix}ID")
        if instance_id:
            values["id"] = instance_id

        values.update(overrides)
        return cls(**values)
