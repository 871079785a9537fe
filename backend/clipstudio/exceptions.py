"""
Error Types Module
==================
Domain exceptions for Clip Studio.

Each error carries a machine-readable error_code; the Flask app returns
ClipStudioError subclasses as JSON with status 400. Collaborator errors are
caught by the generation services and turned into fallback results.
"""

from typing import Dict, Optional


class ClipStudioError(Exception):
    """Base exception for Clip Studio."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class CollaboratorUnavailableError(ClipStudioError):
    """Raised when no generative collaborator is configured (missing credentials)."""
    pass


class ResponseFormatError(ClipStudioError):
    """Raised when the collaborator's response cannot be decoded into candidates."""
    pass


class PlaybackRejectedError(ClipStudioError):
    """Raised by a media element that refuses to start playback."""
    pass


class NoVideoLoadedError(ClipStudioError):
    """Raised when an operation needs a loaded video and the session has none."""
    pass
