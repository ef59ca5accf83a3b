"""Package-wide constants and fixed policy values."""

from __future__ import annotations

PACKAGE_VERSION = "0.1.0"
SCHEMA_VERSION = "1.0.0"

MEGABYTE = 1024 * 1024

MAX_INLINE_BYTES = 20 * MEGABYTE
MAX_UPLOAD_BYTES = 2 * 1024 * MEGABYTE

ANALYSIS_FPS = 10
VALIDATION_FPS = 1
MAX_VIDEO_FPS = 24

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_UPLOAD_URL = "https://generativelanguage.googleapis.com/upload/v1beta/files"
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_MIME_TYPE = "video/mp4"
