"""
Session Package
===============
Editing session state and the generation runs that feed it.

Usage:
    from clipstudio.session import EditorSession, GenerationService
"""

from .context import EditorSession, GenerationTicket
from .generation import GenerationService

__all__ = [
    'EditorSession',
    'GenerationTicket',
    'GenerationService',
]
