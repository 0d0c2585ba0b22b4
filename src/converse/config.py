"""Converse configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_MAX_SIGNALS = 1000


class ConverseConfig(BaseModel):
    """Configuration for a Converse instance."""

    max_signals: int = Field(
        default=DEFAULT_MAX_SIGNALS,
        ge=1,
        title="Maximum Signals",
        examples=[100, 1000, 10_000],
    )
    """Number of signal entries retained before the oldest one gets evicted."""

    model_config = ConfigDict(use_attribute_docstrings=True, extra="forbid", frozen=True)
