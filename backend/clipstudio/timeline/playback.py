"""
Playback Synchronization Module
===============================
Keeps the session's time cursor, the selected clip and the media element in
agreement during playback.

State machine (STOPPED <-> PLAYING):

    Play / TogglePlayback   STOPPED -> PLAYING, starts the media
    Pause / TogglePlayback  PLAYING -> STOPPED, pauses the media
    SelectClip(id)          seek media to clip.start, -> PLAYING
    TimeUpdate(t)           cursor = t; if PLAYING and a clip is selected and
                            t >= clip.end: -> STOPPED, seek to clip.start
    Seek(t)                 cursor = t; the media is repositioned only when
                            it drifted further than the tolerance
    MetadataLoaded(d)       duration known, seeks are clamped to [0, d]

Media events arrive as discrete messages through dispatch(); the methods of
the same names are the direct API.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..config import get_config
from ..models import Clip, PlaybackState
from .index import TimelineIndex

logger = logging.getLogger(__name__)


# =============================================================================
# EVENTS
# =============================================================================

@dataclass(frozen=True)
class Play:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class TogglePlayback:
    pass


@dataclass(frozen=True)
class Seek:
    time: float


@dataclass(frozen=True)
class SelectClip:
    clip_id: Optional[str]


@dataclass(frozen=True)
class TimeUpdate:
    time: float


@dataclass(frozen=True)
class MetadataLoaded:
    duration: float


# =============================================================================
# MEDIA ELEMENTS
# =============================================================================

class MediaElement(ABC):
    """The playable media the controller drives."""

    @property
    @abstractmethod
    def current_time(self) -> float:
        pass

    @current_time.setter
    @abstractmethod
    def current_time(self, value: float) -> None:
        pass

    @abstractmethod
    def play(self) -> None:
        """Start playback. May raise PlaybackRejectedError."""

    @abstractmethod
    def pause(self) -> None:
        pass


class MediaMirror(MediaElement):
    """
    Server-side stand-in for a player running in the browser.

    Tracks the position the client reports and queues the commands the
    controller issues so they can be sent back with the next response.
    """

    def __init__(self):
        self._position = 0.0
        self.paused = True
        self._commands: List[Dict] = []

    @property
    def current_time(self) -> float:
        return self._position

    @current_time.setter
    def current_time(self, value: float) -> None:
        self._position = float(value)
        self._commands.append({'action': 'seek', 'time': self._position})

    def report_position(self, time: float) -> None:
        """Position reported by the client; issues no command."""
        self._position = float(time)

    def play(self) -> None:
        self.paused = False
        self._commands.append({'action': 'play'})

    def pause(self) -> None:
        self.paused = True
        self._commands.append({'action': 'pause'})

    def drain_commands(self) -> List[Dict]:
        commands, self._commands = self._commands, []
        return commands


# =============================================================================
# CONTROLLER
# =============================================================================

class PlaybackSyncController:
    """
    Playback state machine for one session.

    Args:
        media: The media element to drive
        timeline: Returns the TimelineIndex over the current collections;
            called on every lookup so regenerations are seen immediately
        drift_tolerance: Seconds of disagreement tolerated before the media
            is repositioned (defaults to PlaybackConfig)
    """

    def __init__(
        self,
        media: MediaElement,
        timeline: Callable[[], TimelineIndex],
        drift_tolerance: Optional[float] = None,
    ):
        self.media = media
        self._timeline = timeline
        if drift_tolerance is None:
            drift_tolerance = get_config().playback.drift_tolerance_seconds
        self.drift_tolerance = drift_tolerance

        self.state = PlaybackState.STOPPED
        self.current_time = 0.0
        self.duration = 0.0
        self.selected_clip_id: Optional[str] = None

        self._handlers = {
            Play: lambda e: self.play(),
            Pause: lambda e: self.pause(),
            TogglePlayback: lambda e: self.toggle(),
            Seek: lambda e: self.seek(e.time),
            SelectClip: lambda e: self.select_clip(e.clip_id),
            TimeUpdate: lambda e: self.on_time_update(e.time),
            MetadataLoaded: lambda e: self.on_metadata_loaded(e.duration),
        }

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def is_playing(self) -> bool:
        return self.state == PlaybackState.PLAYING

    @property
    def selected_clip(self) -> Optional[Clip]:
        """The selected clip, or None if nothing is selected or it no longer exists."""
        return self._timeline().find_clip(self.selected_clip_id)

    def dispatch(self, event) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported playback event: {event!r}")
        handler(event)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def play(self) -> None:
        self.state = PlaybackState.PLAYING
        try:
            self.media.play()
        except Exception as e:
            # Autoplay refusals and the like; the requested state is kept
            logger.warning(f"Media refused to play, state stays {self.state.value}: {e}")

    def pause(self) -> None:
        self.state = PlaybackState.STOPPED
        self.media.pause()

    def toggle(self) -> None:
        if self.is_playing:
            self.pause()
        else:
            self.play()

    def seek(self, time: float) -> None:
        """External seek (timeline scrub)."""
        self.current_time = self._clamp(time)
        self._reconcile()

    def select_clip(self, clip_id: Optional[str]) -> bool:
        """
        Select a clip, jump to its start and play.

        Returns False (and clears the selection) when the clip does not exist.
        """
        clip = self._timeline().find_clip(clip_id)
        if clip is None:
            if clip_id is not None:
                logger.info(f"Clip {clip_id} not found, clearing selection")
            self.selected_clip_id = None
            return False

        self.selected_clip_id = clip.clip_id
        self.current_time = clip.start
        self.media.current_time = clip.start
        self.play()
        return True

    def on_time_update(self, time: float) -> None:
        """Continuous position report from the media element."""
        self.current_time = self._clamp(time)

        if not self.is_playing:
            return

        clip = self.selected_clip
        if clip is not None and self.current_time >= clip.end:
            # Loop back to the start and pause; no auto-repeat
            self.pause()
            self.current_time = clip.start
            self.media.current_time = clip.start
            logger.debug(f"Reached end of clip {clip.clip_id}, rewound to {clip.start:.2f}s")

    def on_metadata_loaded(self, duration: float) -> None:
        self.duration = max(0.0, float(duration))
        self.current_time = self._clamp(self.current_time)

    def on_clips_replaced(self) -> None:
        """Drop a selection whose clip disappeared in a regeneration."""
        if self.selected_clip_id is not None and self.selected_clip is None:
            logger.info(f"Selected clip {self.selected_clip_id} was replaced, clearing selection")
            self.selected_clip_id = None

    def reset(self) -> None:
        """Back to a fresh session state (new video loaded)."""
        if self.is_playing:
            self.pause()
        self.current_time = 0.0
        self.duration = 0.0
        self.selected_clip_id = None

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _clamp(self, time: float) -> float:
        time = max(0.0, float(time))
        if self.duration > 0:
            time = min(time, self.duration)
        return time

    def _reconcile(self) -> None:
        if abs(self.media.current_time - self.current_time) > self.drift_tolerance:
            self.media.current_time = self.current_time

    def snapshot(self) -> Dict:
        """Current playback state in wire format."""
        clip = self.selected_clip
        return {
            'state': self.state.value,
            'isPlaying': self.is_playing,
            'currentTime': self.current_time,
            'duration': self.duration,
            'selectedClipId': clip.clip_id if clip else None,
        }
