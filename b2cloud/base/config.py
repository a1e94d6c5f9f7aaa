"""
Pydantic configuration model for B2 connections.

Validates credentials and connection settings up front instead of
discovering a missing key on the first request.
"""

from __future__ import annotations

import os
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, model_validator

from b2cloud.base.protocol import DEFAULT_API_URL


class B2Config(BaseModel):
    """Configuration for a B2 session.

    Values are resolved in order:
    1. Explicit values passed in the config dict.
    2. Environment variables (B2_ACCOUNT_ID, B2_APPLICATION_KEY, B2_API_URL).
    3. Defaults (``api_url`` and ``timeout`` only).
    """

    model_config = ConfigDict(extra="forbid")

    account_id: str | None = Field(default=None, description="B2 account ID")
    application_key: str | None = Field(
        default=None, description="B2 application key", repr=False
    )
    api_url: str = Field(default=DEFAULT_API_URL, description="Authorization base URL")
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")

    @model_validator(mode="before")
    @classmethod
    def resolve_from_env(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Fall back to environment variables for missing values."""
        env_map = {
            "account_id": "B2_ACCOUNT_ID",
            "application_key": "B2_APPLICATION_KEY",
            "api_url": "B2_API_URL",
        }
        for field, env_var in env_map.items():
            if not values.get(field):
                env_value = os.environ.get(env_var)
                if env_value:
                    values[field] = env_value
        return values

    @model_validator(mode="after")
    def require_credentials(self) -> B2Config:
        """Ensure both halves of the credential pair are present."""
        if not self.account_id or not self.application_key:
            raise ValueError(
                "B2 account_id and application_key are required. Set them explicitly "
                "or via B2_ACCOUNT_ID / B2_APPLICATION_KEY environment variables."
            )
        self.api_url = self.api_url.rstrip("/")
        return self


def validate_config(config: dict | B2Config) -> B2Config:
    """Validate and return a typed config model.

    Args:
        config: Raw configuration dictionary, or an already-built config.

    Returns:
        A validated :class:`B2Config`.

    Raises:
        pydantic.ValidationError: If the config is invalid.
    """
    if isinstance(config, B2Config):
        return config
    return B2Config(**config)


__all__ = [
    "B2Config",
    "validate_config",
]
