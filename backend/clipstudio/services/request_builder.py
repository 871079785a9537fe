"""
Request Builder Module
======================
Turns sampled frames and user constraints into structured Gemini requests.

Two requests are built here:
- Highlight requests: exactly `clip_count` viral segments inside a
  [min_duration, max_duration] window, each with title, virality score,
  summary and keywords
- Caption requests: ordered, non-overlapping caption lines over the whole
  video

The response schemas are the contract the collaborator is asked to honor;
response_repair decides what happens when it does not.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..config import get_config
from ..models import AnalyzedFrame

logger = logging.getLogger(__name__)


CLIP_RESPONSE_SCHEMA: Dict[str, Any] = {
    'type': 'ARRAY',
    'items': {
        'type': 'OBJECT',
        'properties': {
            'start': {'type': 'NUMBER'},
            'end': {'type': 'NUMBER'},
            'title': {'type': 'STRING'},
            'viralityScore': {'type': 'NUMBER'},
            'summary': {'type': 'STRING'},
            'keywords': {'type': 'ARRAY', 'items': {'type': 'STRING'}},
        },
        'required': ['start', 'end', 'title', 'viralityScore', 'summary'],
    },
}

CAPTION_RESPONSE_SCHEMA: Dict[str, Any] = {
    'type': 'ARRAY',
    'items': {
        'type': 'OBJECT',
        'properties': {
            'startTime': {'type': 'NUMBER'},
            'endTime': {'type': 'NUMBER'},
            'text': {'type': 'STRING'},
        },
        'required': ['startTime', 'endTime', 'text'],
    },
}


@dataclass
class ModelRequest:
    """
    A single request to the generative collaborator.

    Attributes:
        duration: Total video duration in seconds
        context: Free-text description of the video
        frames: Sampled frames, each sent with its timestamp
        instruction: Task text appended after the frames
        response_schema: JSON schema the response must follow
        min_duration: Lower bound of the clip window (highlight requests)
        max_duration: Upper bound of the clip window (highlight requests)
    """
    duration: float
    context: str
    frames: List[AnalyzedFrame]
    instruction: str
    response_schema: Dict[str, Any]
    min_duration: Optional[float] = None
    max_duration: Optional[float] = None
    kind: str = "highlights"
    system_instruction: Optional[str] = None

    def to_contents(self) -> List[Any]:
        """Gemini content parts: a label and inline image per frame, then the task."""
        parts: List[Any] = []
        for index, frame in enumerate(self.frames):
            parts.append(f"Frame {index + 1} at timestamp {frame.timestamp:.1f}s:")
            parts.append({
                'mime_type': frame.mime_type,
                'data': base64.b64decode(frame.image),
            })
        parts.append(self.instruction)
        return parts

    def summary(self) -> Dict[str, Any]:
        """Loggable description without the image payloads."""
        return {
            'kind': self.kind,
            'duration': self.duration,
            'frame_count': len(self.frames),
            'min_duration': self.min_duration,
            'max_duration': self.max_duration,
        }


def default_context(video_name: str) -> str:
    return f"A video named {video_name}. Identify the most engaging parts."


class HighlightRequestBuilder:
    """Builds viral-highlight requests."""

    def __init__(self, clip_count: Optional[int] = None):
        config = get_config()
        self.clip_count = clip_count if clip_count is not None else config.clips.clip_count
        self.system_instruction = config.gemini.system_instruction

    def build(
        self,
        duration: float,
        context: str,
        frames: List[AnalyzedFrame],
        min_duration: float,
        max_duration: float,
        video_name: str = "video",
    ) -> ModelRequest:
        """
        Build the highlight request.

        Args:
            duration: Total video duration, must be > 0
            context: User description; empty means use the default template
            frames: Sampled frames (may be empty)
            min_duration: Minimum clip length, 0 < min_duration < max_duration
            max_duration: Maximum clip length
            video_name: Used by the default context template

        Raises:
            ValueError: If the duration or the window is invalid
        """
        if duration <= 0:
            raise ValueError(f"Video duration must be positive, got {duration}")
        if not 0 < min_duration < max_duration:
            raise ValueError(
                f"Invalid clip window: need 0 < min ({min_duration}) < max ({max_duration})"
            )

        context = context.strip() if context else ""
        if not context:
            context = default_context(video_name)

        instruction = f"""
Analyze the {len(frames)} provided frames from a {duration:g}-second video.
Context: "{context}".

Task: Identify exactly {self.clip_count} distinct, viral-worthy segments suitable for Shorts/TikTok.

Constraints:
1. Each clip MUST have a duration between {min_duration:g} seconds and {max_duration:g} seconds.
2. Select the most engaging, high-energy, or funny moments.
3. Ensure clips do not overlap significantly.

Output Requirements (JSON):
- start/end: Exact timestamps in seconds.
- title: Clickbait-style, short, punchy (max 5 words).
- viralityScore: 80-100 based on visual interest.
- summary: Why this part will go viral.
- keywords: 3-5 trending tags.
"""

        return ModelRequest(
            duration=duration,
            context=context,
            frames=list(frames),
            instruction=instruction,
            response_schema=CLIP_RESPONSE_SCHEMA,
            min_duration=min_duration,
            max_duration=max_duration,
            kind="highlights",
            system_instruction=self.system_instruction,
        )


class CaptionRequestBuilder:
    """Builds caption requests over the whole timeline."""

    def __init__(self):
        self.caption_config = get_config().captions

    def build(self, duration: float, frames: List[AnalyzedFrame], context: str = "") -> ModelRequest:
        if duration <= 0:
            raise ValueError(f"Video duration must be positive, got {duration}")

        config = self.caption_config
        context = context.strip() if context else ""
        context_line = f'Context: "{context}".' if context else ""

        instruction = f"""
These {len(frames)} frames come from a {duration:g}-second video.
{context_line}

Task: Write short, punchy on-screen captions for the whole video.

Constraints:
1. Captions appear in chronological order and never overlap.
2. Each caption lasts between {config.min_length_seconds:g} and {config.max_length_seconds:g} seconds.
3. No caption may end after {duration:g} seconds.
4. Keep every caption under 8 words.

Output Requirements (JSON):
- startTime/endTime: Timestamps in seconds.
- text: The caption line.
"""

        return ModelRequest(
            duration=duration,
            context=context,
            frames=list(frames),
            instruction=instruction,
            response_schema=CAPTION_RESPONSE_SCHEMA,
            kind="captions",
            system_instruction=get_config().gemini.system_instruction,
        )
