"""Shared schema base classes."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StrictSchemaModel(BaseModel):
    """Base model with strict validation defaults."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, frozen=False)


class ModelResponse(BaseModel):
    """Base for payloads decoded from model output.

    Model output is read tolerantly (unknown keys are ignored) and is immutable
    once decoded.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)
