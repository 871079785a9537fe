"""
Clip Studio
===========
Backend for an AI-assisted short-form video editor: samples frames from an
uploaded video, asks Gemini for viral clips and captions (with a placeholder
fallback), and keeps a playback timeline in sync with the browser player.
"""

__version__ = "1.0.0"
