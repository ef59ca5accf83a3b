"""Helpers shared by the validation gate and the analysis services."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from puckcoach.ai.payload import MediaInput
from puckcoach.errors import AnalyzerError
from puckcoach.schemas.enums import AnalyzerErrorKind

LOGGER = logging.getLogger(__name__)

MODEL_T = TypeVar("MODEL_T", bound=BaseModel)

MediaSource = Path | MediaInput


def load_media(source: MediaSource, *, display_name: str | None = None) -> MediaInput:
    """Read a media file into memory, or pass through an in-memory attachment."""
    if isinstance(source, MediaInput):
        return source
    if not source.is_file():
        raise AnalyzerError(
            AnalyzerErrorKind.AI_PROCESSING_FAILED, f"Video file not found: {source}"
        )
    media = MediaInput.from_path(source)
    if display_name is None:
        return media
    return MediaInput(
        data=media.data,
        mime_type=media.mime_type,
        kind=media.kind,
        display_name=display_name,
    )


def decode_result(
    text: str, model: type[MODEL_T], *, kind: AnalyzerErrorKind, detail: str
) -> MODEL_T:
    try:
        return model.model_validate_json(text)
    except ValidationError as exc:
        LOGGER.warning("Could not decode %s: %s", model.__name__, exc.error_count())
        raise AnalyzerError(kind, detail) from exc
