"""Stick specification and model recommendations."""

from __future__ import annotations

import logging

from puckcoach.ai.client import GeminiClient
from puckcoach.ai.generation import GenerationConfig
from puckcoach.ai.sanitize import sanitize_json
from puckcoach.analysis.common import MediaSource, decode_result, load_media
from puckcoach.analysis.prompts import stick_analyzer_prompt
from puckcoach.config.models import AppConfig
from puckcoach.errors import AnalyzerError, GeminiError, OperationCancelledError
from puckcoach.resilience import CancellationToken
from puckcoach.schemas.enums import AnalyzerErrorKind
from puckcoach.schemas.profile import PlayerProfile, ShootingQuestionnaire
from puckcoach.schemas.response_schema import to_response_schema
from puckcoach.schemas.results import StickAnalysis

LOGGER = logging.getLogger(__name__)

STICK_GENERATION = GenerationConfig(
    temperature=0.1,
    top_k=10,
    top_p=0.8,
    max_output_tokens=8192,
    response_schema=to_response_schema(StickAnalysis),
)


class StickAnalyzerService:
    """Recommends flex, length, curve, kick point, lie and stick models.

    With a shot clip the request is multi-modal. Without one it is a
    text-only request built from the profile and questionnaire, sent with the
    shorter non-video timeout.
    """

    def __init__(self, client: GeminiClient, config: AppConfig) -> None:
        self._client = client
        self._config = config

    def analyze(
        self,
        source: MediaSource | None,
        profile: PlayerProfile,
        questionnaire: ShootingQuestionnaire,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> StickAnalysis:
        media = None if source is None else load_media(source, display_name="stick_shot")
        prompt = stick_analyzer_prompt(profile, questionnaire, with_video=media is not None)
        try:
            if media is None:
                LOGGER.info("Recommending a stick from profile and questionnaire")
                text = sanitize_json(
                    self._client.generate_text(
                        prompt, STICK_GENERATION, cancel_token=cancel_token
                    )
                )
            else:
                LOGGER.info("Recommending a stick from shot clip (%d bytes)", media.size)
                text = self._client.generate_json(
                    prompt,
                    [media],
                    frame_rate=self._config.media.analysis_fps,
                    generation_config=STICK_GENERATION,
                    cancel_token=cancel_token,
                )
        except OperationCancelledError:
            raise
        except GeminiError as exc:
            raise AnalyzerError.from_exception(exc) from exc
        return decode_result(
            text,
            StickAnalysis,
            kind=AnalyzerErrorKind.ANALYSIS_PARSING_FAILED,
            detail="Analysis completed but results couldn't be processed. Please try again.",
        )
