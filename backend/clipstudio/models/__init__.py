"""
Data Models Package
===================
Exports all data model classes for Clip Studio.

Usage:
    from clipstudio.models import Clip, CaptionSegment, VideoMetadata
    from clipstudio.models import AnalyzedFrame, IdGenerator
"""

from .schemas import (
    # Enums
    PlaybackState,
    GenerationSource,
    ExportQuality,

    # Base
    BaseModel,

    # Video
    VideoMetadata,
    AnalyzedFrame,

    # Timeline entities
    Clip,
    CaptionSegment,

    # Generation
    GenerationResult,

    # Export
    ExportSettings,
    ExportRequest,

    # Utilities
    IdGenerator,
)

__all__ = [
    # Enums
    'PlaybackState',
    'GenerationSource',
    'ExportQuality',

    # Base
    'BaseModel',

    # Video
    'VideoMetadata',
    'AnalyzedFrame',

    # Timeline entities
    'Clip',
    'CaptionSegment',

    # Generation
    'GenerationResult',

    # Export
    'ExportSettings',
    'ExportRequest',

    # Utilities
    'IdGenerator',
]
