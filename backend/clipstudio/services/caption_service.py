"""
Caption Service Module
======================
Generates time-aligned caption segments with Google Gemini, falling back to
placeholder captions when the collaborator cannot be used.

Captions are generated independently of clips and replace the caption
collection wholesale.
"""

import logging
from typing import Callable, List, Optional

from ..exceptions import CollaboratorUnavailableError, ResponseFormatError
from ..logging_config import log_generation_decision
from ..models import AnalyzedFrame, GenerationResult, GenerationSource, IdGenerator
from .fallback import FallbackGenerator
from .gemini_client import GeminiCollaborator
from .request_builder import CaptionRequestBuilder
from .response_repair import repair_captions

logger = logging.getLogger(__name__)


class CaptionService:
    """Service for caption generation."""

    def __init__(
        self,
        collaborator: Optional[GeminiCollaborator] = None,
        builder: Optional[CaptionRequestBuilder] = None,
        fallback: Optional[FallbackGenerator] = None,
    ):
        self.collaborator = collaborator or GeminiCollaborator()
        self.builder = builder or CaptionRequestBuilder()
        self.fallback = fallback or FallbackGenerator()

    def generate_captions(
        self,
        frames: List[AnalyzedFrame],
        duration: float,
        context: str = "",
        make_id: Optional[Callable[[], str]] = None,
    ) -> GenerationResult:
        """
        Generate captions for the whole video.

        Never raises: any failure yields fallback captions.
        """
        make_id = make_id or IdGenerator().next_caption_id

        try:
            request = self.builder.build(duration, frames, context)
            raw = self.collaborator.request_json(request)
            captions = repair_captions(raw, make_id)
            if not captions:
                raise ResponseFormatError("No usable caption candidates in response", error_code="no_candidates")

        except CollaboratorUnavailableError as e:
            logger.warning(f"Gemini unavailable, using fallback captions: {e}")
            return self._fallback(duration, make_id, str(e))

        except Exception as e:
            logger.error(f"Gemini caption request failed: {e}")
            return self._fallback(duration, make_id, str(e))

        log_generation_decision("captions", GenerationSource.GEMINI.value, count=len(captions))
        return GenerationResult(items=captions, source=GenerationSource.GEMINI)

    def _fallback(self, duration: float, make_id: Callable[[], str], reason: str) -> GenerationResult:
        captions = self.fallback.generate_captions(duration, make_id)
        log_generation_decision("captions", GenerationSource.FALLBACK.value, count=len(captions), reason=reason)
        return GenerationResult(items=captions, source=GenerationSource.FALLBACK, reason=reason)
