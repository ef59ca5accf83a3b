"""Request part construction and the inline-vs-upload decision."""

from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import orjson

from puckcoach.constants import DEFAULT_MIME_TYPE
from puckcoach.errors import UploadError
from puckcoach.schemas.enums import MediaKind, TransferStrategy

_KIND_BY_MIME_PREFIX = {
    "image/": MediaKind.IMAGE,
    "audio/": MediaKind.AUDIO,
    "video/": MediaKind.VIDEO,
}


@dataclass(frozen=True)
class MediaInput:
    """One media attachment held in memory."""

    data: bytes
    mime_type: str
    kind: MediaKind
    display_name: str = "uploaded_media"

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path, *, mime_type: str | None = None) -> "MediaInput":
        """Read ``path`` and infer the MIME type and media kind from its suffix."""
        resolved = mime_type or mimetypes.guess_type(path.name)[0] or DEFAULT_MIME_TYPE
        kind = next(
            (
                media_kind
                for prefix, media_kind in _KIND_BY_MIME_PREFIX.items()
                if resolved.startswith(prefix)
            ),
            MediaKind.VIDEO,
        )
        return cls(
            data=path.read_bytes(),
            mime_type=resolved,
            kind=kind,
            display_name=path.name,
        )


def select_transfer_strategy(
    size_bytes: int,
    *,
    max_inline_bytes: int,
    max_upload_bytes: int | None = None,
) -> TransferStrategy:
    """Inline up to and including ``max_inline_bytes``; upload anything larger."""
    if size_bytes < 0:
        raise ValueError("size_bytes must be >= 0")
    if max_upload_bytes is not None and size_bytes > max_upload_bytes:
        raise UploadError(
            f"Media of {size_bytes} bytes exceeds the {max_upload_bytes}-byte upload limit"
        )
    if size_bytes <= max_inline_bytes:
        return TransferStrategy.INLINE
    return TransferStrategy.UPLOAD


def video_metadata(fps: int, *, max_fps: int) -> dict[str, int]:
    return {"fps": max(1, min(fps, max_fps))}


def inline_part(media: MediaInput, *, fps: int | None, max_fps: int) -> dict[str, Any]:
    part: dict[str, Any] = {
        "inlineData": {
            "mimeType": media.mime_type,
            "data": base64.b64encode(media.data).decode("ascii"),
        }
    }
    if media.kind == MediaKind.VIDEO and fps is not None:
        part["videoMetadata"] = video_metadata(fps, max_fps=max_fps)
    return part


def file_part(
    media: MediaInput, file_uri: str, *, fps: int | None, max_fps: int
) -> dict[str, Any]:
    part: dict[str, Any] = {
        "fileData": {"mimeType": media.mime_type, "fileUri": file_uri}
    }
    if media.kind == MediaKind.VIDEO and fps is not None:
        part["videoMetadata"] = video_metadata(fps, max_fps=max_fps)
    return part


def text_part(text: str) -> dict[str, str]:
    return {"text": text}


def build_upload_body(media: MediaInput, boundary: str) -> bytes:
    """Assemble a ``multipart/related`` body: JSON metadata, then the raw bytes."""
    metadata = orjson.dumps({"file": {"displayName": media.display_name}})
    return b"".join(
        [
            f"--{boundary}\r\n".encode(),
            b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
            metadata,
            b"\r\n",
            f"--{boundary}\r\n".encode(),
            f"Content-Type: {media.mime_type}\r\n\r\n".encode(),
            media.data,
            b"\r\n",
            f"--{boundary}--\r\n".encode(),
        ]
    )
