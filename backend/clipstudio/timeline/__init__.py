"""
Timeline Package
================
Interval lookup and playback synchronization.

Usage:
    from clipstudio.timeline import TimelineIndex, PlaybackSyncController, MediaMirror
"""

from .index import TimelineIndex
from .playback import (
    MediaElement,
    MediaMirror,
    PlaybackSyncController,
    Play,
    Pause,
    TogglePlayback,
    Seek,
    SelectClip,
    TimeUpdate,
    MetadataLoaded,
)

__all__ = [
    'TimelineIndex',
    'MediaElement',
    'MediaMirror',
    'PlaybackSyncController',
    'Play',
    'Pause',
    'TogglePlayback',
    'Seek',
    'SelectClip',
    'TimeUpdate',
    'MetadataLoaded',
]
