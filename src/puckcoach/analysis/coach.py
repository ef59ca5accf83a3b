"""Two-angle coaching analysis."""

from __future__ import annotations

import logging

from puckcoach.ai.client import GeminiClient
from puckcoach.ai.generation import GenerationConfig
from puckcoach.analysis.common import MediaSource, decode_result, load_media
from puckcoach.analysis.prompts import coach_prompt
from puckcoach.config.models import AppConfig
from puckcoach.errors import AnalyzerError, GeminiError, OperationCancelledError
from puckcoach.resilience import CancellationToken
from puckcoach.schemas.enums import AnalyzerErrorKind, ShotType
from puckcoach.schemas.profile import PlayerProfile
from puckcoach.schemas.response_schema import to_response_schema
from puckcoach.schemas.results import CoachAnalysis

LOGGER = logging.getLogger(__name__)

COACH_GENERATION = GenerationConfig(
    temperature=0.1,
    top_k=10,
    max_output_tokens=8192,
    response_schema=to_response_schema(CoachAnalysis),
)


class CoachService:
    """Analyzes one shot filmed from behind the shooter and from the side."""

    def __init__(self, client: GeminiClient, config: AppConfig) -> None:
        self._client = client
        self._config = config

    def analyze(
        self,
        front: MediaSource,
        side: MediaSource,
        profile: PlayerProfile,
        *,
        shot_type: ShotType = ShotType.WRIST,
        cancel_token: CancellationToken | None = None,
    ) -> CoachAnalysis:
        media = [
            load_media(front, display_name="front_net_video"),
            load_media(side, display_name="side_angle_video"),
        ]
        LOGGER.info(
            "Coaching %s from 2 angles (%d bytes)",
            shot_type.display_name,
            sum(item.size for item in media),
        )
        try:
            text = self._client.generate_json(
                coach_prompt(shot_type, profile),
                media,
                frame_rate=self._config.media.analysis_fps,
                generation_config=COACH_GENERATION,
                cancel_token=cancel_token,
            )
        except OperationCancelledError:
            raise
        except GeminiError as exc:
            raise AnalyzerError.from_exception(exc) from exc
        return decode_result(
            text,
            CoachAnalysis,
            kind=AnalyzerErrorKind.ANALYSIS_PARSING_FAILED,
            detail="Unable to read the coaching analysis.",
        )
