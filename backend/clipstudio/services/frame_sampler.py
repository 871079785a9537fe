"""
Frame Sampling Module
=====================
Extracts a fixed number of evenly spaced still frames from a video to give
the generative model visual context.

Sampling rules:
- N frames at duration / (N + 1) * i for i = 1..N, so the first and last
  instants (black frames, leaders) are skipped
- Each seek waits at most `seek_timeout_seconds` for the decoder; after
  that the frame currently held by the decoder is captured anyway
- Frames are downscaled (0.25 on both axes by default) and JPEG-encoded
  (quality 60) to bound the request payload

A video that never opens yields an empty list. Callers treat zero frames as
"no AI context available"; sampling itself never raises.

Dependencies: OpenCV (cv2) for decoding and resizing, Pillow for JPEG
encoding, NumPy for frame buffers.
"""

import base64
import io
import logging
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Callable, List, Optional

import cv2
import numpy as np
from PIL import Image

from ..config import get_config
from ..models import AnalyzedFrame

logger = logging.getLogger(__name__)


# =============================================================================
# DECODING CONTEXTS
# =============================================================================

class FrameSource(ABC):
    """
    A detached decoding context for one video.

    The sampler owns the source for the duration of one sampling run and
    never touches the user-visible player.
    """

    @abstractmethod
    def open(self) -> bool:
        """Prepare the source. Returns False if it never becomes ready."""

    @abstractmethod
    def seek(self, seconds: float) -> None:
        """Start moving the decoder to `seconds`."""

    @abstractmethod
    def wait_for_frame(self, timeout: float) -> bool:
        """Block until the sought frame is decoded or `timeout` elapses."""

    @abstractmethod
    def current_frame(self) -> Optional[np.ndarray]:
        """The frame the decoder currently holds (BGR), or None."""

    @abstractmethod
    def close(self) -> None:
        """Release the decoding context."""


class OpenCVFrameSource(FrameSource):
    """
    FrameSource backed by cv2.VideoCapture.

    Decoding runs on a single worker thread so a slow seek can be abandoned
    after the timeout without blocking the sampler. The same capture is
    reused for every sample, which keeps memory flat but makes sampling
    strictly serial.
    """

    def __init__(self, video_path: str):
        self.video_path = video_path
        self._capture: Optional[cv2.VideoCapture] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: Optional[Future] = None
        self._frame: Optional[np.ndarray] = None

    def open(self) -> bool:
        self._capture = cv2.VideoCapture(self.video_path)
        if not self._capture.isOpened():
            logger.warning(f"Could not open video for sampling: {self.video_path}")
            return False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="frame-sampler")
        return True

    def _decode_at(self, seconds: float) -> bool:
        self._capture.set(cv2.CAP_PROP_POS_MSEC, seconds * 1000.0)
        ok, frame = self._capture.read()
        if ok and frame is not None:
            self._frame = frame
        return ok

    def seek(self, seconds: float) -> None:
        self._pending = self._executor.submit(self._decode_at, seconds)

    def wait_for_frame(self, timeout: float) -> bool:
        if self._pending is None:
            return False
        try:
            return bool(self._pending.result(timeout=timeout))
        except FutureTimeoutError:
            return False

    def current_frame(self) -> Optional[np.ndarray]:
        return self._frame

    def close(self) -> None:
        if self._executor is not None:
            # Release after any decode still in flight, without waiting for it
            self._executor.submit(self._capture.release)
            self._executor.shutdown(wait=False)
            self._executor = None
        elif self._capture is not None:
            self._capture.release()
        self._capture = None


# =============================================================================
# SAMPLER
# =============================================================================

def sample_times(duration: float, count: int) -> List[float]:
    """Evenly spaced sample positions that avoid both ends of the video."""
    if duration <= 0 or count <= 0:
        return []
    interval = duration / (count + 1)
    return [interval * i for i in range(1, count + 1)]


def encode_frame(frame: np.ndarray, scale: float, quality: int) -> str:
    """Downscale a BGR frame and return it as base64 JPEG."""
    height, width = frame.shape[:2]
    size = (max(1, int(width * scale)), max(1, int(height * scale)))
    small = cv2.resize(frame, size, interpolation=cv2.INTER_AREA)
    rgb = cv2.cvtColor(small, cv2.COLOR_BGR2RGB)

    buffer = io.BytesIO()
    Image.fromarray(rgb).save(buffer, format="JPEG", quality=quality)
    return base64.b64encode(buffer.getvalue()).decode("ascii")


class FrameSampler:
    """
    Produces AnalyzedFrame batches for generation requests.

    Uses configuration from SamplingConfig unless overridden.
    """

    def __init__(
        self,
        frame_count: Optional[int] = None,
        seek_timeout: Optional[float] = None,
        scale: Optional[float] = None,
        jpeg_quality: Optional[int] = None,
        source_factory: Callable[[str], FrameSource] = OpenCVFrameSource,
    ):
        config = get_config().sampling
        self.frame_count = frame_count if frame_count is not None else config.frame_count
        self.seek_timeout = seek_timeout if seek_timeout is not None else config.seek_timeout_seconds
        self.scale = scale if scale is not None else config.scale
        self.jpeg_quality = jpeg_quality if jpeg_quality is not None else config.jpeg_quality
        self.source_factory = source_factory

    def sample(self, video_source: str, duration: float) -> List[AnalyzedFrame]:
        """
        Sample frames from a video.

        Args:
            video_source: Locator handed to the source factory (a file path
                for the OpenCV source)
            duration: Known duration of the video in seconds

        Returns:
            Frames in timestamp order. May be partial or empty, never raises.
        """
        times = sample_times(duration, self.frame_count)
        if not times:
            logger.info(f"Nothing to sample (duration={duration}, count={self.frame_count})")
            return []

        frames: List[AnalyzedFrame] = []
        source = self.source_factory(video_source)
        try:
            if not source.open():
                return []

            for t in times:
                source.seek(t)
                if not source.wait_for_frame(self.seek_timeout):
                    logger.debug(f"Seek to {t:.2f}s not confirmed within {self.seek_timeout}s, capturing current frame")

                frame = source.current_frame()
                if frame is None:
                    logger.debug(f"No decodable frame at {t:.2f}s, skipping")
                    continue

                frames.append(AnalyzedFrame(
                    timestamp=t,
                    image=encode_frame(frame, self.scale, self.jpeg_quality)
                ))

        except Exception as e:
            logger.warning(f"Frame sampling stopped early after {len(frames)} frames: {e}")

        finally:
            try:
                source.close()
            except Exception as e:
                logger.warning(f"Failed to release decoding context: {e}")

        logger.info(f"Sampled {len(frames)}/{len(times)} frames from {video_source}")
        return frames
