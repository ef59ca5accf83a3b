"""Gemini client, request payloads and output sanitizing."""

from puckcoach.ai.client import GeminiClient
from puckcoach.ai.generation import GenerationConfig
from puckcoach.ai.payload import MediaInput, select_transfer_strategy
from puckcoach.ai.sanitize import decode_model_output, extract_json, sanitize_json

__all__ = [
    "GeminiClient",
    "GenerationConfig",
    "MediaInput",
    "decode_model_output",
    "extract_json",
    "sanitize_json",
    "select_transfer_strategy",
]
