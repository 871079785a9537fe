"""
Routes Package
==============
Flask blueprints for the REST API.
"""

from .video_routes import video_bp
from .generation_routes import generation_bp
from .playback_routes import playback_bp

__all__ = ['video_bp', 'generation_bp', 'playback_bp']
