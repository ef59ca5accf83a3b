"""Pre-flight content check run before the full analysis."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from puckcoach.ai.client import GeminiClient
from puckcoach.ai.generation import GenerationConfig
from puckcoach.analysis.common import MediaSource, decode_result, load_media
from puckcoach.analysis.prompts import validation_prompt
from puckcoach.config.models import AppConfig
from puckcoach.errors import (
    AnalyzerError,
    GeminiError,
    OperationCancelledError,
    RequestTimeoutError,
)
from puckcoach.resilience import CancellationToken, call_with_timeout
from puckcoach.schemas.enums import AnalyzerErrorKind
from puckcoach.schemas.response_schema import to_response_schema
from puckcoach.schemas.results import ValidationResult

LOGGER = logging.getLogger(__name__)

VALIDATION_GENERATION = GenerationConfig(
    temperature=0.1,
    top_k=10,
    top_p=0.8,
    max_output_tokens=1024,
    response_schema=to_response_schema(ValidationResult, exclude={"assumed"}),
)


def aggregate_results(results: Sequence[ValidationResult]) -> ValidationResult:
    """Combine per-clip results: valid only if all are, at the lowest confidence.

    Only failing clips contribute to the combined reason.
    """
    if not results:
        raise ValueError("aggregate_results needs at least one result")
    if len(results) == 1:
        return results[0]
    reasons = [
        f"Video {number}: {result.reason}"
        for number, result in enumerate(results, start=1)
        if not result.is_valid and result.reason
    ]
    return ValidationResult(
        is_valid=all(result.is_valid for result in results),
        confidence=min(result.confidence for result in results),
        reason="; ".join(reasons) or None,
        has_front_angle=_any_flag(result.has_front_angle for result in results),
        has_side_angle=_any_flag(result.has_side_angle for result in results),
        assumed=any(result.assumed for result in results),
    )


def _any_flag(flags: Iterable[bool | None]) -> bool | None:
    seen = [flag for flag in flags if flag is not None]
    if not seen:
        return None
    return any(seen)


class ValidationGate:
    """Checks that clips show hockey content before the expensive analysis.

    Clips are checked one at a time in list order. Under the default
    fail-open policy a clip whose check times out or fails is assumed valid
    with capped confidence; with ``validation.fail_open`` off the error is
    raised instead.
    """

    def __init__(self, client: GeminiClient, config: AppConfig) -> None:
        self._client = client
        self._config = config

    def validate(
        self,
        source: MediaSource,
        *,
        with_angles: bool = False,
        cancel_token: CancellationToken | None = None,
    ) -> ValidationResult:
        """Run one validation request for a single clip."""
        media = load_media(source)
        try:
            text = self._client.generate_json(
                validation_prompt(with_angles=with_angles),
                [media],
                frame_rate=self._config.media.validation_fps,
                generation_config=VALIDATION_GENERATION,
                cancel_token=cancel_token,
            )
        except OperationCancelledError:
            raise
        except GeminiError as exc:
            raise AnalyzerError.from_exception(exc) from exc
        return decode_result(
            text,
            ValidationResult,
            kind=AnalyzerErrorKind.VALIDATION_PARSING_FAILED,
            detail="Unable to read the validation response.",
        )

    def preflight(
        self,
        sources: Sequence[MediaSource],
        *,
        with_angles: bool | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ValidationResult:
        """Validate every clip sequentially and aggregate the outcome."""
        if not sources:
            raise AnalyzerError(
                AnalyzerErrorKind.AI_PROCESSING_FAILED, "No videos to validate."
            )
        token = cancel_token or CancellationToken()
        angles = len(sources) > 1 if with_angles is None else with_angles
        results: list[ValidationResult] = []
        for number, source in enumerate(sources, start=1):
            token.raise_if_cancelled("validation")
            result = self._validate_clip(source, number, angles, token)
            LOGGER.info(
                "Video %d validation: valid=%s confidence=%.2f%s",
                number,
                result.is_valid,
                result.confidence,
                " (assumed)" if result.assumed else "",
            )
            results.append(result)
        return aggregate_results(results)

    def _validate_clip(
        self,
        source: MediaSource,
        number: int,
        with_angles: bool,
        token: CancellationToken,
    ) -> ValidationResult:
        policy = self._config.validation
        limit = self._config.timeouts.validation_clip_seconds
        media = load_media(source)
        clip_token = token.child()
        try:
            return call_with_timeout(
                lambda: self.validate(
                    media, with_angles=with_angles, cancel_token=clip_token
                ),
                timeout_seconds=limit,
                on_timeout=clip_token.cancel,
            )
        except TimeoutError as exc:
            if not policy.fail_open:
                raise AnalyzerError(
                    AnalyzerErrorKind.NETWORK_ISSUE,
                    f"Validation of video {number} timed out after {limit:g} seconds.",
                ) from exc
            LOGGER.warning("Video %d validation timed out; assuming valid", number)
            return _assumed_valid(policy.timeout_confidence)
        except AnalyzerError as exc:
            if not policy.fail_open:
                raise
            LOGGER.warning(
                "Video %d validation failed (%s); assuming valid", number, exc.kind.value
            )
            if isinstance(exc.__cause__, RequestTimeoutError):
                return _assumed_valid(policy.timeout_confidence)
            return _assumed_valid(policy.error_confidence)


def _assumed_valid(confidence: float) -> ValidationResult:
    return ValidationResult(
        is_valid=True,
        confidence=confidence,
        has_front_angle=True,
        has_side_angle=True,
        assumed=True,
    )
