"""Single-clip review of any hockey skill."""

from __future__ import annotations

import logging

from puckcoach.ai.client import GeminiClient
from puckcoach.ai.generation import GenerationConfig
from puckcoach.analysis.common import MediaSource, decode_result, load_media
from puckcoach.analysis.prompts import skill_check_prompt
from puckcoach.config.models import AppConfig
from puckcoach.errors import AnalyzerError, GeminiError, OperationCancelledError
from puckcoach.resilience import CancellationToken
from puckcoach.schemas.enums import AnalyzerErrorKind
from puckcoach.schemas.response_schema import to_response_schema
from puckcoach.schemas.results import SkillAnalysis

LOGGER = logging.getLogger(__name__)

SKILL_GENERATION = GenerationConfig(
    temperature=0.1,
    top_k=10,
    max_output_tokens=4096,
    response_schema=to_response_schema(SkillAnalysis),
)


class SkillCheckService:
    """Identifies the skill in a clip and rates it, optionally around a question."""

    def __init__(self, client: GeminiClient, config: AppConfig) -> None:
        self._client = client
        self._config = config

    def analyze(
        self,
        source: MediaSource,
        *,
        focus_request: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> SkillAnalysis:
        media = load_media(source, display_name="skill_video")
        LOGGER.info("Checking skill clip (%d bytes)", media.size)
        try:
            text = self._client.generate_json(
                skill_check_prompt(focus_request),
                [media],
                frame_rate=self._config.media.analysis_fps,
                generation_config=SKILL_GENERATION,
                cancel_token=cancel_token,
            )
        except OperationCancelledError:
            raise
        except GeminiError as exc:
            raise AnalyzerError.from_exception(exc) from exc
        return decode_result(
            text,
            SkillAnalysis,
            kind=AnalyzerErrorKind.ANALYSIS_PARSING_FAILED,
            detail="Analysis completed but results couldn't be processed. Please try again.",
        )
