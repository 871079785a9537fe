"""
Highlight Service Module
========================
Finds viral highlight clips using Google Gemini.

This service handles:
- Building the highlight request from frames and the duration window
- Calling the collaborator
- Repairing the response into Clip entities
- Substituting the fallback generator on any failure

The external contract of generate_viral_clips() is "always returns a usable
list of clips, never raises".
"""

import logging
from typing import Callable, List, Optional

from ..config import get_config
from ..exceptions import CollaboratorUnavailableError, ResponseFormatError
from ..logging_config import log_generation_decision
from ..models import AnalyzedFrame, GenerationResult, GenerationSource, IdGenerator
from .fallback import FallbackGenerator
from .gemini_client import GeminiCollaborator
from .request_builder import HighlightRequestBuilder
from .response_repair import repair_clips

logger = logging.getLogger(__name__)


class HighlightService:
    """
    Service for AI-powered highlight detection.

    Collaborator, builder and fallback can be injected for testing; by
    default they are built from the global configuration.
    """

    def __init__(
        self,
        collaborator: Optional[GeminiCollaborator] = None,
        builder: Optional[HighlightRequestBuilder] = None,
        fallback: Optional[FallbackGenerator] = None,
    ):
        self.collaborator = collaborator or GeminiCollaborator()
        self.builder = builder or HighlightRequestBuilder()
        self.fallback = fallback or FallbackGenerator()
        self.clip_config = get_config().clips

    def generate_viral_clips(
        self,
        duration: float,
        context: str,
        frames: List[AnalyzedFrame],
        min_duration: Optional[float] = None,
        max_duration: Optional[float] = None,
        make_id: Optional[Callable[[], str]] = None,
        video_name: str = "video",
    ) -> GenerationResult:
        """
        Generate highlight clips for a video.

        Args:
            duration: Total video duration in seconds
            context: User description of the video (may be empty)
            frames: Sampled frames; may be empty, then only the context is sent
            min_duration: Clip window lower bound (defaults to config)
            max_duration: Clip window upper bound (defaults to config)
            make_id: Identifier source; defaults to a private IdGenerator
            video_name: Used for the default context

        Returns:
            GenerationResult with repaired clips from Gemini, or fallback
            clips with the reason the collaborator was not used
        """
        min_duration = self.clip_config.min_duration_seconds if min_duration is None else min_duration
        max_duration = self.clip_config.max_duration_seconds if max_duration is None else max_duration
        make_id = make_id or IdGenerator().next_clip_id

        try:
            request = self.builder.build(
                duration, context, frames, min_duration, max_duration, video_name=video_name
            )
            raw = self.collaborator.request_json(request)
            clips = repair_clips(raw, min_duration, max_duration, make_id)
            if not clips:
                raise ResponseFormatError("No usable clip candidates in response", error_code="no_candidates")

        except CollaboratorUnavailableError as e:
            logger.warning(f"Gemini unavailable, using fallback clips: {e}")
            return self._fallback(duration, min_duration, max_duration, make_id, str(e))

        except Exception as e:
            logger.error(f"Gemini highlight request failed: {e}")
            return self._fallback(duration, min_duration, max_duration, make_id, str(e))

        log_generation_decision("clips", GenerationSource.GEMINI.value, count=len(clips))
        return GenerationResult(items=clips, source=GenerationSource.GEMINI)

    def _fallback(
        self,
        duration: float,
        min_duration: float,
        max_duration: float,
        make_id: Callable[[], str],
        reason: str,
    ) -> GenerationResult:
        clips = self.fallback.generate_clips(duration, min_duration, max_duration, make_id)
        log_generation_decision("clips", GenerationSource.FALLBACK.value, count=len(clips), reason=reason)
        return GenerationResult(items=clips, source=GenerationSource.FALLBACK, reason=reason)
