"""
Generation Orchestration Module
===============================
Runs clip and caption generation against an EditorSession.

Each run:
1. Takes a ticket from the session (fails fast if no video is loaded)
2. Samples frames, or reuses the frames cached for the current video
3. Calls the highlight or caption service (which never raises)
4. Applies the result under the ticket; superseded results are discarded

Usage:
    from clipstudio.session import EditorSession, GenerationService

    session = EditorSession()
    service = GenerationService()
    result = service.generate_clips(session, context="Skateboarding tricks")
"""

import logging
import time
from typing import List, Optional

from ..logging_config import log_generation_decision
from ..models import AnalyzedFrame, GenerationResult, VideoMetadata
from ..services.caption_service import CaptionService
from ..services.frame_sampler import FrameSampler
from ..services.highlight_service import HighlightService
from .context import EditorSession, GenerationTicket

logger = logging.getLogger(__name__)


class GenerationService:
    """
    Orchestrates frame sampling and generation for a session.

    Sampler and services can be injected for testing.
    """

    def __init__(
        self,
        sampler: Optional[FrameSampler] = None,
        highlights: Optional[HighlightService] = None,
        captions: Optional[CaptionService] = None,
    ):
        self.sampler = sampler or FrameSampler()
        self.highlights = highlights or HighlightService()
        self.captions = captions or CaptionService()

    def _frames_for(
        self, session: EditorSession, ticket: GenerationTicket, video: VideoMetadata, duration: float
    ) -> List[AnalyzedFrame]:
        frames = session.cached_frames()
        if frames:
            logger.debug(f"Reusing {len(frames)} cached frames")
            return frames

        frames = self.sampler.sample(video.source, duration)
        session.apply_frames(ticket, frames)
        return frames

    def generate_clips(
        self,
        session: EditorSession,
        context: str = "",
        min_duration: Optional[float] = None,
        max_duration: Optional[float] = None,
    ) -> GenerationResult:
        """
        Generate and apply a new clip collection.

        Args:
            session: Session to generate for
            context: User description of the video; empty uses a default
            min_duration: Clip window lower bound; updates the session window
            max_duration: Clip window upper bound; updates the session window

        Raises:
            NoVideoLoadedError: If the session has no video
            ValueError: If the clip window is invalid
        """
        with session.lock:
            if min_duration is not None or max_duration is not None:
                session.set_clip_window(
                    session.min_clip_duration if min_duration is None else min_duration,
                    session.max_clip_duration if max_duration is None else max_duration,
                )

            ticket = session.begin_generation()
            if session.playback.is_playing:
                session.playback.pause()
            video = session.video
            duration = video.duration_seconds
            min_duration = session.min_clip_duration
            max_duration = session.max_clip_duration

        start_time = time.time()
        logger.info(f"Generating clips for {video.name} (request {ticket.sequence})")

        frames = self._frames_for(session, ticket, video, duration)
        result = self.highlights.generate_viral_clips(
            duration=duration,
            context=context,
            frames=frames,
            min_duration=min_duration,
            max_duration=max_duration,
            make_id=session.ids.next_clip_id,
            video_name=video.name,
        )
        result.applied = session.apply_clips(ticket, result.items)

        if not result.applied:
            log_generation_decision(
                "clips", result.source.value, count=len(result.items),
                reason="superseded", applied=False,
            )

        elapsed = time.time() - start_time
        logger.info(
            f"Clip generation finished in {elapsed:.2f}s: {len(result.items)} clips "
            f"from {result.source.value}, applied={result.applied}"
        )
        return result

    def generate_captions(self, session: EditorSession, context: str = "") -> GenerationResult:
        """
        Generate and apply a new caption collection.

        Raises:
            NoVideoLoadedError: If the session has no video
        """
        with session.lock:
            ticket = session.begin_generation()
            video = session.video
            duration = video.duration_seconds

        start_time = time.time()
        logger.info(f"Generating captions for {video.name} (request {ticket.sequence})")

        frames = self._frames_for(session, ticket, video, duration)
        result = self.captions.generate_captions(
            frames,
            duration,
            context=context,
            make_id=session.ids.next_caption_id,
        )
        result.applied = session.apply_captions(ticket, result.items)

        if not result.applied:
            log_generation_decision(
                "captions", result.source.value, count=len(result.items),
                reason="superseded", applied=False,
            )

        elapsed = time.time() - start_time
        logger.info(
            f"Caption generation finished in {elapsed:.2f}s: {len(result.items)} captions "
            f"from {result.source.value}, applied={result.applied}"
        )
        return result
