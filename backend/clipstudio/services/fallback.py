"""
Fallback Generator Module
=========================
Synthetic clips and captions used when the collaborator is unavailable or
fails. The structure is deterministic (always `clip_count` clips spread over
equal sections of the timeline), the timing is random.

The content is canned: the point is a plausible timeline for the editor,
not good highlights.
"""

import logging
import math
import random
from typing import Callable, List, Optional

from ..config import get_config
from ..models import CaptionSegment, Clip

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "High energy segment with strong visual hook and action."
FALLBACK_KEYWORDS = ("viral", "shorts", "fyp", "trending")


class FallbackGenerator:
    """Produces structurally valid clips and captions without a model."""

    def __init__(self, rng: Optional[random.Random] = None):
        config = get_config()
        self.clip_config = config.clips
        self.caption_config = config.captions
        if rng is None:
            rng = random.Random(config.logging.random_seed)
        self.rng = rng

    def generate_clips(
        self,
        duration: float,
        min_duration: float,
        max_duration: float,
        make_id: Callable[[], str],
    ) -> List[Clip]:
        """
        Spread `clip_count` clips over equal sections of the timeline.

        When the video is shorter than clip_count * max_duration the
        sections are computed over that longer safe duration, so clips can
        bunch up near the start; starts are never negative.
        """
        config = self.clip_config
        count = config.clip_count
        safe_duration = max(duration, max_duration * count)
        section_size = safe_duration / count

        clips: List[Clip] = []
        for i in range(count):
            clip_length = self.rng.uniform(min_duration, max_duration)
            section_start = i * section_size
            proposed = min(
                section_start + config.fallback_lead_in_seconds,
                duration - clip_length - config.fallback_tail_seconds
            )
            start = max(0.0, proposed)

            clips.append(Clip(
                clip_id=make_id(),
                start=start,
                end=start + clip_length,
                title=f"Viral Moment {i + 1} 🔥",
                virality_score=self.rng.randint(config.fallback_min_score, config.fallback_max_score),
                summary=FALLBACK_SUMMARY,
                keywords=FALLBACK_KEYWORDS,
            ))

        logger.info(f"Generated {len(clips)} fallback clips for {duration:.1f}s video")
        return clips

    def generate_captions(self, duration: float, make_id: Callable[[], str]) -> List[CaptionSegment]:
        """
        Back-to-back placeholder captions separated by a fixed gap.

        Produces up to max(min_segments, floor(duration / seconds_per_segment))
        segments and stops early once the next one would run past the end.
        """
        config = self.caption_config
        target = max(config.min_segments, math.floor(duration / config.seconds_per_segment))
        phrases = config.placeholder_phrases

        captions: List[CaptionSegment] = []
        cursor = 0.0
        for i in range(target):
            # random() is in [0, 1), so lengths stay below the maximum
            length = config.min_length_seconds + self.rng.random() * (
                config.max_length_seconds - config.min_length_seconds
            )
            if cursor + length > duration:
                break

            captions.append(CaptionSegment(
                caption_id=make_id(),
                start_time=cursor,
                end_time=cursor + length,
                text=phrases[i % len(phrases)],
            ))
            cursor += length + config.gap_seconds

        logger.info(f"Generated {len(captions)} fallback captions for {duration:.1f}s video")
        return captions
