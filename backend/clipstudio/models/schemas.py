"""
Data Models and Schemas Module
==============================
Defines the structured data shared by the generation pipeline and the
timeline/playback engine.

This module provides:
- Dataclasses for every session entity (video, frames, clips, captions)
- Serialization to and from the camelCase JSON the front end speaks
- A session-scoped identifier generator

Clips and captions are immutable once created; a regeneration replaces the
whole collection instead of editing entries in place.

Usage:
    from clipstudio.models.schemas import Clip, CaptionSegment, IdGenerator

    ids = IdGenerator()
    clip = Clip(clip_id=ids.next_clip_id(), start=10.0, end=25.0, title="Epic fail")
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, List, Dict, Any
import itertools
import json
import math
import threading


# =============================================================================
# ENUMS
# =============================================================================

class PlaybackState(str, Enum):
    """States of the playback state machine."""
    STOPPED = "stopped"
    PLAYING = "playing"


class GenerationSource(str, Enum):
    """Where a generated collection came from."""
    GEMINI = "gemini"
    FALLBACK = "fallback"


class ExportQuality(str, Enum):
    """Export resolutions offered to the user."""
    HD = "1080p"
    UHD = "4k"


# =============================================================================
# BASE CLASSES
# =============================================================================

class BaseModel:
    """Mixin for all dataclass models with common serialization methods."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary, handling nested objects."""
        def convert(obj):
            if isinstance(obj, BaseModel):
                return obj.to_dict()
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, (list, tuple)):
                return [convert(item) for item in obj]
            elif isinstance(obj, dict):
                return {k: convert(v) for k, v in obj.items()}
            return obj

        return {k: convert(v) for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaseModel":
        """Create model from dictionary. Override in subclasses for wire names."""
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> "BaseModel":
        """Create model from JSON string."""
        return cls.from_dict(json.loads(json_str))


# =============================================================================
# VIDEO METADATA
# =============================================================================

@dataclass
class VideoMetadata(BaseModel):
    """
    Metadata for the video loaded into the session.

    The duration is unknown (0.0) until the media source reports it, and is
    then patched in place with update_duration().

    Attributes:
        name: Original filename of the video
        source: Locator of the playable media (file path or URL)
        duration_seconds: Total duration in seconds
        fps: Frames per second, if known
        width: Video width in pixels, if known
        height: Video height in pixels, if known
    """
    name: str
    source: str
    duration_seconds: float = 0.0
    fps: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def has_duration(self) -> bool:
        return self.duration_seconds > 0

    @property
    def duration_formatted(self) -> str:
        """Get duration as HH:MM:SS string."""
        hours = int(self.duration_seconds // 3600)
        minutes = int((self.duration_seconds % 3600) // 60)
        seconds = int(self.duration_seconds % 60)
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"

    def update_duration(self, duration: float) -> None:
        if not math.isfinite(duration) or duration < 0:
            raise ValueError(f"Duration must be a finite, non-negative number: {duration}")
        self.duration_seconds = float(duration)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'source': self.source,
            'duration': self.duration_seconds,
            'fps': self.fps,
            'width': self.width,
            'height': self.height,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VideoMetadata":
        return cls(
            name=data['name'],
            source=data.get('source', ''),
            duration_seconds=float(data.get('duration', 0.0)),
            fps=data.get('fps'),
            width=data.get('width'),
            height=data.get('height'),
        )

    @classmethod
    def from_video_info(cls, name: str, source: str, video_info: Dict) -> "VideoMetadata":
        """Create VideoMetadata from video_utils.get_video_info() output."""
        return cls(
            name=name,
            source=source,
            duration_seconds=video_info['duration'],
            fps=video_info['fps'],
            width=video_info['size'][0],
            height=video_info['size'][1]
        )


# =============================================================================
# FRAMES
# =============================================================================

@dataclass(frozen=True)
class AnalyzedFrame(BaseModel):
    """
    A still frame sampled from the video for AI context.

    Attributes:
        timestamp: Position of the frame in seconds
        image: Base64-encoded JPEG bytes
    """
    timestamp: float
    image: str
    mime_type: str = "image/jpeg"

    def to_dict(self) -> Dict[str, Any]:
        return {'time': self.timestamp, 'data': self.image, 'mimeType': self.mime_type}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalyzedFrame":
        return cls(
            timestamp=float(data['time']),
            image=data['data'],
            mime_type=data.get('mimeType', 'image/jpeg'),
        )


# =============================================================================
# TIMELINE ENTITIES
# =============================================================================

@dataclass(frozen=True)
class Clip(BaseModel):
    """
    An AI-identified highlight segment of the source video.

    Attributes:
        clip_id: Identifier, unique within the session
        start: Start time in seconds
        end: End time in seconds (end > start after repair)
        title: Short clickbait title
        virality_score: Intended range 0-100, not enforced
        summary: Why this part should perform well
        keywords: Ordered tags, may be empty
    """
    clip_id: str
    start: float
    end: float
    title: str = ""
    virality_score: int = 0
    summary: str = ""
    keywords: tuple = ()

    @property
    def duration(self) -> float:
        return self.end - self.start

    def contains(self, time: float) -> bool:
        return self.start <= time < self.end

    @property
    def time_range_formatted(self) -> str:
        """Get time range as 'MM:SS - MM:SS' string."""
        start_min, start_sec = divmod(int(self.start), 60)
        end_min, end_sec = divmod(int(self.end), 60)
        return f"{start_min:02d}:{start_sec:02d} - {end_min:02d}:{end_sec:02d}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.clip_id,
            'start': self.start,
            'end': self.end,
            'title': self.title,
            'viralityScore': self.virality_score,
            'summary': self.summary,
            'keywords': list(self.keywords),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Clip":
        return cls(
            clip_id=data['id'],
            start=float(data['start']),
            end=float(data['end']),
            title=data.get('title', ''),
            virality_score=int(data.get('viralityScore', 0)),
            summary=data.get('summary', ''),
            keywords=tuple(data.get('keywords', ())),
        )


@dataclass(frozen=True)
class CaptionSegment(BaseModel):
    """
    A time-bounded text overlay, independent of clips.

    Segments are expected not to overlap, but nothing enforces it.
    """
    caption_id: str
    start_time: float
    end_time: float
    text: str = ""

    def contains(self, time: float) -> bool:
        return self.start_time <= time < self.end_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.caption_id,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'text': self.text,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CaptionSegment":
        return cls(
            caption_id=data['id'],
            start_time=float(data['startTime']),
            end_time=float(data['endTime']),
            text=data.get('text', ''),
        )


# =============================================================================
# GENERATION RESULTS
# =============================================================================

@dataclass
class GenerationResult(BaseModel):
    """
    Output of one clip or caption generation call.

    Attributes:
        items: The repaired clips or caption segments
        source: "gemini" when the collaborator answered, else "fallback"
        reason: Why the fallback was used (None for gemini results)
        applied: Whether the session kept the result (False when a newer
            request or a new video superseded it)
    """
    items: List[Any] = field(default_factory=list)
    source: GenerationSource = GenerationSource.GEMINI
    reason: Optional[str] = None
    applied: bool = False

    @property
    def used_fallback(self) -> bool:
        return self.source == GenerationSource.FALLBACK

    def to_dict(self) -> Dict[str, Any]:
        return {
            'items': [item.to_dict() for item in self.items],
            'source': self.source.value,
            'reason': self.reason,
            'applied': self.applied,
        }


# =============================================================================
# EXPORT
# =============================================================================

@dataclass
class ExportSettings(BaseModel):
    """User-facing export preferences."""
    auto_subtitle: bool = True
    export_quality: ExportQuality = ExportQuality.HD
    show_watermark: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'autoSubtitle': self.auto_subtitle,
            'exportQuality': self.export_quality.value,
            'showWatermark': self.show_watermark,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportSettings":
        return cls(
            auto_subtitle=bool(data.get('autoSubtitle', True)),
            export_quality=ExportQuality(data.get('exportQuality', ExportQuality.HD.value)),
            show_watermark=bool(data.get('showWatermark', False)),
        )


@dataclass
class ExportRequest(BaseModel):
    """
    What the export command receives. Nothing is encoded; this is the
    placeholder acknowledgment handed back to the caller.
    """
    clip: Optional[Clip]
    settings: ExportSettings
    min_duration_seconds: float
    max_duration_seconds: float

    @property
    def output_name(self) -> str:
        title = self.clip.title if self.clip and self.clip.title else "Video"
        return f"{title}.mp4"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'clip': self.clip.to_dict() if self.clip else None,
            'settings': self.settings.to_dict(),
            'minDuration': self.min_duration_seconds,
            'maxDuration': self.max_duration_seconds,
            'outputName': self.output_name,
        }


# =============================================================================
# UTILITIES
# =============================================================================

class IdGenerator:
    """
    Session-scoped monotonic identifier source.

    Identifiers never repeat within one generator, whatever the wall clock
    resolution, so a clip id from an earlier generation can never collide
    with one from a later generation.
    """

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def _next(self) -> int:
        with self._lock:
            return next(self._counter)

    def next_clip_id(self) -> str:
        return f"clip-{self._next()}"

    def next_caption_id(self) -> str:
        return f"caption-{self._next()}"
