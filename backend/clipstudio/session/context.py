"""
Editor Session Module
=====================
Holds the state of one editing session: the loaded video, the sampled frames,
the clip and caption collections, export preferences and the playback
controller.

The EditorSession holds:
- The loaded video and its (possibly not yet known) duration
- Cached frames for the current video
- The current clip and caption collections
- Export settings and the user's clip duration window
- The playback controller and the media element it drives

Generation runs outside the session lock. Each run takes a ticket with
begin_generation() and hands it back when applying; results for an older
video, or older than what is already applied, are discarded.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import AppConfig, get_config
from ..exceptions import NoVideoLoadedError
from ..models import (
    AnalyzedFrame,
    CaptionSegment,
    Clip,
    ExportQuality,
    ExportRequest,
    ExportSettings,
    IdGenerator,
    VideoMetadata,
)
from ..timeline import MediaElement, MediaMirror, MetadataLoaded, PlaybackSyncController, TimelineIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationTicket:
    """Identifies one generation run: the video it was started for and its order."""
    epoch: int
    sequence: int


class EditorSession:
    """
    Single-user editing session.

    All mutations go through the session lock, so HTTP handlers running on
    different threads see a consistent state.
    """

    def __init__(self, config: Optional[AppConfig] = None, media: Optional[MediaElement] = None):
        self.config = config or get_config()
        self.ids = IdGenerator()
        self.media = media or MediaMirror()

        self.video: Optional[VideoMetadata] = None
        self.frames: List[AnalyzedFrame] = []
        self.clips: Tuple[Clip, ...] = ()
        self.captions: Tuple[CaptionSegment, ...] = ()

        self.export_settings = ExportSettings(
            auto_subtitle=self.config.export.auto_subtitle,
            export_quality=ExportQuality(self.config.export.export_quality),
            show_watermark=self.config.export.show_watermark,
        )
        self.min_clip_duration = self.config.clips.min_duration_seconds
        self.max_clip_duration = self.config.clips.max_duration_seconds

        self.epoch = 0
        self._sequence = 0
        self._applied: Dict[str, int] = {'frames': 0, 'clips': 0, 'captions': 0}
        self._lock = threading.RLock()

        self.playback = PlaybackSyncController(
            self.media,
            lambda: self.timeline,
            drift_tolerance=self.config.playback.drift_tolerance_seconds,
        )

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def timeline(self) -> TimelineIndex:
        return TimelineIndex(self.clips, self.captions)

    @property
    def active_caption(self) -> Optional[CaptionSegment]:
        return self.timeline.active_caption(self.playback.current_time)

    # -------------------------------------------------------------------------
    # Video lifecycle
    # -------------------------------------------------------------------------

    def load_video(self, video: VideoMetadata) -> None:
        """Replace the loaded video. Everything derived from the previous one is dropped."""
        with self._lock:
            self.epoch += 1
            self.video = video
            self.frames = []
            self.clips = ()
            self.captions = ()
            self.playback.reset()
            if video.has_duration:
                self.playback.dispatch(MetadataLoaded(video.duration_seconds))

            logger.info(f"Loaded video {video.name} (epoch {self.epoch}, duration {video.duration_seconds:.2f}s)")

    def update_duration(self, duration: float) -> VideoMetadata:
        """Duration reported by the media once its metadata is available."""
        with self._lock:
            video = self.require_video()
            video.update_duration(duration)
            self.playback.dispatch(MetadataLoaded(video.duration_seconds))
            return video

    def require_video(self) -> VideoMetadata:
        if self.video is None:
            raise NoVideoLoadedError("No video loaded", error_code="no_video")
        return self.video

    def set_clip_window(self, min_duration: float, max_duration: float) -> None:
        if not 0 < min_duration < max_duration:
            raise ValueError(
                f"Clip window must satisfy 0 < min < max, got {min_duration}/{max_duration}"
            )
        with self._lock:
            self.min_clip_duration = float(min_duration)
            self.max_clip_duration = float(max_duration)

    # -------------------------------------------------------------------------
    # Generation tickets
    # -------------------------------------------------------------------------

    def begin_generation(self) -> GenerationTicket:
        with self._lock:
            self.require_video()
            self._sequence += 1
            return GenerationTicket(epoch=self.epoch, sequence=self._sequence)

    def _accepts(self, ticket: GenerationTicket, collection: str) -> bool:
        if ticket.epoch != self.epoch:
            logger.info(f"Discarding {collection} for epoch {ticket.epoch}, current epoch is {self.epoch}")
            return False
        if ticket.sequence <= self._applied[collection]:
            logger.info(
                f"Discarding {collection} from request {ticket.sequence}, "
                f"request {self._applied[collection]} already applied"
            )
            return False
        self._applied[collection] = ticket.sequence
        return True

    def apply_frames(self, ticket: GenerationTicket, frames: Sequence[AnalyzedFrame]) -> bool:
        with self._lock:
            if not self._accepts(ticket, 'frames'):
                return False
            self.frames = list(frames)
            return True

    def apply_clips(self, ticket: GenerationTicket, clips: Sequence[Clip]) -> bool:
        """Replace the clip collection if the ticket is still current."""
        with self._lock:
            if not self._accepts(ticket, 'clips'):
                return False

            self.clips = tuple(clips)
            self.playback.on_clips_replaced()

            if self.config.clips.select_first_on_generate and self.clips:
                first = self.clips[0]
                self.playback.selected_clip_id = first.clip_id
                self.playback.seek(first.start)

            return True

    def apply_captions(self, ticket: GenerationTicket, captions: Sequence[CaptionSegment]) -> bool:
        """Replace the caption collection if the ticket is still current."""
        with self._lock:
            if not self._accepts(ticket, 'captions'):
                return False
            self.captions = tuple(captions)
            return True

    def cached_frames(self) -> List[AnalyzedFrame]:
        with self._lock:
            return list(self.frames)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def update_export_settings(self, data: Dict) -> ExportSettings:
        """Merge wire-format export settings into the current ones."""
        with self._lock:
            merged = self.export_settings.to_dict()
            merged.update({k: v for k, v in data.items() if k in merged})
            self.export_settings = ExportSettings.from_dict(merged)
            return self.export_settings

    def export_request(self) -> ExportRequest:
        with self._lock:
            self.require_video()
            request = ExportRequest(
                clip=self.playback.selected_clip,
                settings=self.export_settings,
                min_duration_seconds=self.min_clip_duration,
                max_duration_seconds=self.max_clip_duration,
            )
            logger.info(f"Export requested: {request.output_name} ({self.export_settings.export_quality.value})")
            return request

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> Dict:
        with self._lock:
            caption = self.active_caption
            return {
                'video': self.video.to_dict() if self.video else None,
                'clips': [clip.to_dict() for clip in self.clips],
                'captions': [c.to_dict() for c in self.captions],
                'frameCount': len(self.frames),
                'playback': self.playback.snapshot(),
                'activeCaption': caption.to_dict() if caption else None,
                'exportSettings': self.export_settings.to_dict(),
                'clipWindow': {
                    'minDuration': self.min_clip_duration,
                    'maxDuration': self.max_clip_duration,
                },
            }
