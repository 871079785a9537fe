"""
Services Package
================
Frame sampling, Gemini requests, response repair and fallback generation.

Usage:
    from clipstudio.services import HighlightService, CaptionService, FrameSampler
"""

from .caption_service import CaptionService
from .fallback import FallbackGenerator
from .frame_sampler import FrameSampler, FrameSource, OpenCVFrameSource
from .gemini_client import GeminiCollaborator
from .highlight_service import HighlightService
from .request_builder import CaptionRequestBuilder, HighlightRequestBuilder, ModelRequest

__all__ = [
    'CaptionService',
    'FallbackGenerator',
    'FrameSampler',
    'FrameSource',
    'OpenCVFrameSource',
    'GeminiCollaborator',
    'HighlightService',
    'CaptionRequestBuilder',
    'HighlightRequestBuilder',
    'ModelRequest',
]
