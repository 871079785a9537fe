"""
Video Utilities Module
======================
File validation and metadata extraction for uploaded videos.
"""

import logging
import os
import traceback
import uuid

from moviepy.video.io.VideoFileClip import VideoFileClip

from ..config import get_config

logger = logging.getLogger(__name__)


# =============================================================================
# FILE VALIDATION
# =============================================================================

def allowed_file(filename: str) -> bool:
    """
    Check if a file extension is allowed for video upload.

    Args:
        filename: The name of the file to check

    Returns:
        True if the file extension is in the allowed set, False otherwise
    """
    allowed = get_config().video.allowed_extensions
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed


def unique_upload_name(filename: str) -> str:
    """Prefix a (sanitized) filename so repeated uploads never overwrite each other."""
    return f"{uuid.uuid4().hex[:8]}_{filename}"


def remove_file(filepath: str) -> None:
    if filepath and os.path.exists(filepath):
        os.remove(filepath)


# =============================================================================
# VIDEO METADATA
# =============================================================================

def get_video_info(filepath: str) -> dict:
    """
    Extract metadata from a video file.

    Args:
        filepath: Path to the video file

    Returns:
        Dictionary containing:
        - duration: Video length in seconds
        - fps: Frames per second
        - size: Tuple of (width, height)

    Raises:
        Exception: If video cannot be read or is corrupted
    """
    try:
        with VideoFileClip(filepath) as clip:
            return {
                'duration': clip.duration,
                'fps': clip.fps,
                'size': (clip.w, clip.h)
            }
    except Exception as e:
        logger.error(f"Error getting video info for {filepath}: {str(e)}")
        logger.error(traceback.format_exc())
        raise


# =============================================================================
# REQUEST VALIDATION
# =============================================================================

def validate_clip_window(min_duration: float, max_duration: float) -> tuple[bool, str]:
    """
    Validate a requested clip duration window.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if min_duration <= 0:
        return False, "Minimum duration must be positive"
    if min_duration >= max_duration:
        return False, "Minimum duration must be less than maximum duration"
    return True, ""
