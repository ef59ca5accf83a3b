"""HTTP client for the Gemini generateContent and file upload endpoints."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Callable, Mapping, Sequence, TypeVar

import httpx
import orjson

from puckcoach.ai.generation import GenerationConfig
from puckcoach.ai.payload import (
    MediaInput,
    build_upload_body,
    file_part,
    inline_part,
    select_transfer_strategy,
    text_part,
)
from puckcoach.ai.sanitize import sanitize_json
from puckcoach.config.models import AppConfig
from puckcoach.errors import (
    CircuitOpenError,
    GeminiError,
    OperationCancelledError,
    RequestTimeoutError,
    TransportError,
    UploadError,
    UpstreamHTTPError,
    UpstreamResponseError,
    is_retryable_failure,
)
from puckcoach.resilience import (
    CancellationToken,
    CircuitBreaker,
    RetryExecutor,
    RetryPolicy,
)
from puckcoach.runtime_env import read_secret
from puckcoach.schemas.enums import MediaKind, TransferStrategy
from puckcoach.security.redaction import redact_text

LOGGER = logging.getLogger(__name__)

SLOW_REQUEST_SECONDS = 30.0

T = TypeVar("T")


class GeminiClient:
    """Multi-modal client with upload branching, one retry and a circuit breaker.

    Every public call accepts an optional ``cancel_token``; it is checked before
    uploads, before each attempt and after each response. A request already
    handed to the transport runs to completion before cancellation is seen.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        api_key: str,
        http_client: httpx.Client | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        sleep_fn: Callable[[float], None] = time.sleep,
    ) -> None:
        if not api_key:
            raise ValueError("api_key must be non-empty")
        self.config = config
        self._api_key = api_key
        self._http = http_client or httpx.Client()
        self._owns_http = http_client is None
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=config.circuit_breaker.failure_threshold,
            recovery_seconds=config.circuit_breaker.recovery_seconds,
        )
        self._retry = RetryExecutor(
            RetryPolicy(
                max_retries=config.retries.max_retries,
                delay_seconds=config.retries.retry_delay_seconds,
            ),
            sleep_fn=sleep_fn,
        )

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        env: Mapping[str, str] | None = None,
        **kwargs: Any,
    ) -> "GeminiClient":
        """Build a client reading the API key from the configured env var."""
        api_key = read_secret(
            config.gemini.api_key_env, env, fallbacks=("GOOGLE_API_KEY",)
        )
        return cls(config, api_key=api_key, **kwargs)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "GeminiClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def generate_url(self) -> str:
        return f"{self.config.gemini.base_url}/models/{self.config.gemini.model}:generateContent"

    def upload_file(
        self,
        media: MediaInput,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Upload ``media`` and return the file URI to reference in a request."""
        token = cancel_token or CancellationToken()
        token.raise_if_cancelled("upload")
        self._admit()
        return self._report("upload", lambda: self._upload(media, token))

    def generate_content(
        self,
        parts: Sequence[dict[str, Any]],
        generation_config: GenerationConfig | None = None,
        *,
        has_video: bool = False,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Send one generateContent request and return the model's text."""
        token = cancel_token or CancellationToken()
        self._admit()
        return self._report(
            "generateContent",
            lambda: self._send(parts, generation_config, has_video, token),
        )

    def generate_from_media(
        self,
        prompt: str,
        media: Sequence[MediaInput],
        *,
        frame_rate: int | None = None,
        generation_config: GenerationConfig | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Attach ``media`` (inline or uploaded) and ``prompt`` in one request.

        With a single attachment the prompt follows the media; with several
        videos it leads, so the per-video instructions read first. The breaker
        admits the request once, before anything is uploaded.
        """
        if not media:
            raise ValueError("generate_from_media requires at least one attachment")
        token = cancel_token or CancellationToken()
        fps = frame_rate or self.config.media.analysis_fps
        strategies = [self._transfer_strategy(item) for item in media]
        self._admit()

        def send() -> str:
            parts = [
                self._media_part(item, strategy, fps=fps, token=token)
                for item, strategy in zip(media, strategies)
            ]
            token.raise_if_cancelled("media preparation")
            if len(media) > 1:
                parts.insert(0, text_part(prompt))
            else:
                parts.append(text_part(prompt))
            return self._send(
                parts,
                generation_config or GenerationConfig(),
                any(item.kind == MediaKind.VIDEO for item in media),
                token,
            )

        return self._report("generateContent", send)

    def generate_json(
        self,
        prompt: str,
        media: Sequence[MediaInput],
        *,
        frame_rate: int | None = None,
        generation_config: GenerationConfig | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Like ``generate_from_media`` but returns sanitized JSON text."""
        raw = self.generate_from_media(
            prompt,
            media,
            frame_rate=frame_rate,
            generation_config=generation_config,
            cancel_token=cancel_token,
        )
        return sanitize_json(raw)

    def generate_text(
        self,
        prompt: str,
        generation_config: GenerationConfig | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Send a text-only prompt; it uses the default (non-video) timeout."""
        return self.generate_content(
            [text_part(prompt)],
            generation_config or GenerationConfig(response_mime_type=None),
            cancel_token=cancel_token,
        )

    def _admit(self) -> None:
        if self.circuit_breaker.allow_request():
            return
        LOGGER.warning(
            "Request blocked by circuit breaker (%s)",
            self.circuit_breaker.status_text,
        )
        raise CircuitOpenError(
            "Service temporarily unavailable due to repeated failures. "
            "Please try again in a minute."
        )

    def _report(self, stage: str, call: Callable[[], T]) -> T:
        """Run an admitted request and report its outcome to the breaker."""
        try:
            result = call()
        except OperationCancelledError:
            raise
        except GeminiError as exc:
            self.circuit_breaker.record_failure()
            LOGGER.warning("%s failed: %s", stage, redact_text(str(exc)))
            raise
        self.circuit_breaker.record_success()
        return result

    def _transfer_strategy(self, media: MediaInput) -> TransferStrategy:
        return select_transfer_strategy(
            media.size,
            max_inline_bytes=self.config.media.max_inline_bytes,
            max_upload_bytes=self.config.media.max_upload_bytes,
        )

    def _media_part(
        self,
        media: MediaInput,
        strategy: TransferStrategy,
        *,
        fps: int | None,
        token: CancellationToken,
    ) -> dict[str, Any]:
        max_fps = self.config.media.max_fps
        if strategy == TransferStrategy.INLINE:
            LOGGER.debug("Inlining %s (%d bytes)", media.display_name, media.size)
            return inline_part(media, fps=fps, max_fps=max_fps)
        uri = self._upload(media, token)
        return file_part(media, uri, fps=fps, max_fps=max_fps)

    def _upload(self, media: MediaInput, token: CancellationToken) -> str:
        token.raise_if_cancelled("upload")
        boundary = f"Boundary-{uuid.uuid4().hex}"
        LOGGER.info(
            "Uploading %s (%.1f MB)", media.display_name, media.size / 1024 / 1024
        )
        try:
            response = self._http.post(
                self.config.gemini.upload_url,
                content=build_upload_body(media, boundary),
                headers={
                    "x-goog-api-key": self._api_key,
                    "X-Goog-Upload-Protocol": "multipart",
                    "Content-Type": f"multipart/related; boundary={boundary}",
                },
                timeout=self.config.timeouts.video_seconds,
            )
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(f"Upload timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise TransportError(f"Upload connection failed: {exc}") from exc
        token.raise_if_cancelled("upload")

        if response.status_code >= 400:
            raise UploadError(
                f"Upload failed with HTTP {response.status_code}: {_error_message(response)}"
            )
        try:
            uri = response.json()["file"]["uri"]
        except (ValueError, KeyError, TypeError) as exc:
            raise UploadError("Upload response did not include a file URI") from exc
        if not isinstance(uri, str) or not uri:
            raise UploadError("Upload response did not include a file URI")
        return uri

    def _send(
        self,
        parts: Sequence[dict[str, Any]],
        generation_config: GenerationConfig | None,
        has_video: bool,
        token: CancellationToken,
    ) -> str:
        body: dict[str, Any] = {"contents": [{"role": "user", "parts": list(parts)}]}
        if generation_config is not None:
            body["generationConfig"] = generation_config.to_payload()
        timeout = (
            self.config.timeouts.video_seconds
            if has_video
            else self.config.timeouts.default_seconds
        )
        content = orjson.dumps(body)

        started = time.monotonic()
        LOGGER.info(
            "POST %s (%d parts, %d bytes, timeout %.0fs)",
            redact_text(self.generate_url),
            len(parts),
            len(content),
            timeout,
        )
        response = self._retry.run(
            lambda: self._post_generate(content, timeout),
            stage_name="generateContent",
            should_retry=is_retryable_failure,
            cancel_token=token,
        )
        token.raise_if_cancelled("generateContent")
        text = _extract_text(response)

        elapsed = time.monotonic() - started
        if elapsed > SLOW_REQUEST_SECONDS:
            LOGGER.warning("Slow generateContent request: %.2fs", elapsed)
        else:
            LOGGER.info("generateContent completed in %.2fs", elapsed)
        return text

    def _post_generate(self, content: bytes, timeout: float) -> httpx.Response:
        try:
            response = self._http.post(
                self.generate_url,
                content=content,
                headers={
                    "x-goog-api-key": self._api_key,
                    "Content-Type": "application/json",
                },
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(
                f"Request timed out after {timeout:g} seconds"
            ) from exc
        except httpx.TransportError as exc:
            raise TransportError(f"Connection error: {exc}") from exc
        if response.status_code >= 400:
            raise UpstreamHTTPError(response.status_code, _error_message(response))
        return response


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
    return response.text[:200]


def _extract_text(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError as exc:
        raise UpstreamResponseError("Failed to decode response body") from exc
    if not isinstance(payload, dict):
        raise UpstreamResponseError("Invalid response from server")

    error = payload.get("error")
    if isinstance(error, dict):
        raise UpstreamResponseError(str(error.get("message", "Unknown API error")))

    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError) as exc:
        raise UpstreamResponseError("Invalid response from server") from exc
    texts = [
        part["text"]
        for part in parts
        if isinstance(part, dict)
        and isinstance(part.get("text"), str)
        and not part.get("thought")
    ]
    if not texts:
        raise UpstreamResponseError("Response contained no text")
    return "".join(texts)
