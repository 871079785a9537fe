"""
Timeline Index Module
=====================
Point lookups over the current clip and caption collections.

Collections hold tens of entities, so lookups are plain linear scans over
the collections as given; no interval structure is kept.
"""

from typing import Optional, Sequence

from ..models import CaptionSegment, Clip


class TimelineIndex:
    """
    Resolves which clip and caption cover a playback time.

    Both lookups use half-open intervals [start, end). When entities
    overlap the first one in input order wins.
    """

    def __init__(self, clips: Sequence[Clip] = (), captions: Sequence[CaptionSegment] = ()):
        self.clips = tuple(clips)
        self.captions = tuple(captions)

    def active_clip(self, time: float) -> Optional[Clip]:
        for clip in self.clips:
            if clip.contains(time):
                return clip
        return None

    def active_caption(self, time: float) -> Optional[CaptionSegment]:
        for caption in self.captions:
            if caption.contains(time):
                return caption
        return None

    def find_clip(self, clip_id: Optional[str]) -> Optional[Clip]:
        """Resolve a (possibly stale) clip identifier."""
        if clip_id is None:
            return None
        for clip in self.clips:
            if clip.clip_id == clip_id:
                return clip
        return None

    def __len__(self) -> int:
        return len(self.clips) + len(self.captions)
