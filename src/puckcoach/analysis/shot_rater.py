"""Single-clip shot rating."""

from __future__ import annotations

import logging

from puckcoach.ai.client import GeminiClient
from puckcoach.ai.generation import GenerationConfig
from puckcoach.analysis.common import MediaSource, decode_result, load_media
from puckcoach.analysis.prompts import shot_rater_prompt
from puckcoach.config.models import AppConfig
from puckcoach.errors import AnalyzerError, GeminiError, OperationCancelledError
from puckcoach.resilience import CancellationToken
from puckcoach.schemas.enums import AnalyzerErrorKind, ShotType
from puckcoach.schemas.response_schema import to_response_schema
from puckcoach.schemas.results import ShotAnalysis

LOGGER = logging.getLogger(__name__)

SHOT_GENERATION = GenerationConfig(
    temperature=0.1,
    top_k=10,
    max_output_tokens=4096,
    response_schema=to_response_schema(ShotAnalysis),
)


class ShotRaterService:
    """Rates one recorded shot. Any failure is raised to the caller."""

    def __init__(self, client: GeminiClient, config: AppConfig) -> None:
        self._client = client
        self._config = config

    def analyze(
        self,
        source: MediaSource,
        shot_type: ShotType,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> ShotAnalysis:
        media = load_media(source, display_name=f"{shot_type.value}_shot")
        LOGGER.info("Rating %s (%d bytes)", shot_type.display_name, media.size)
        try:
            text = self._client.generate_json(
                shot_rater_prompt(shot_type),
                [media],
                frame_rate=self._config.media.analysis_fps,
                generation_config=SHOT_GENERATION,
                cancel_token=cancel_token,
            )
        except OperationCancelledError:
            raise
        except GeminiError as exc:
            raise AnalyzerError.from_exception(exc) from exc
        return decode_result(
            text,
            ShotAnalysis,
            kind=AnalyzerErrorKind.ANALYSIS_PARSING_FAILED,
            detail="Unable to read the shot analysis.",
        )
