"""
Generation Routes Module
========================
REST API endpoints for AI clip and caption generation.

Endpoints:
- POST /api/generate/clips      - Generate a new clip collection
- GET  /api/generate/clips      - Current clip collection
- POST /api/generate/captions   - Generate a new caption collection
- GET  /api/generate/captions   - Current caption collection
"""

from flask import Blueprint, request, jsonify, current_app
import logging

from ..exceptions import NoVideoLoadedError
from ..utils.video_utils import validate_clip_window

logger = logging.getLogger(__name__)

generation_bp = Blueprint('generation', __name__)


def _optional_float(data: dict, key: str):
    value = data.get(key)
    return None if value is None else float(value)


@generation_bp.route('/clips', methods=['POST'])
def generate_clips():
    """
    Generate viral clips for the session video.

    Request JSON:
        {
            "context": "Skateboarding tricks",   # Optional: user description
            "minDuration": 15,                   # Optional: clip window (seconds)
            "maxDuration": 59
        }

    Response JSON:
        {
            "clips": [...],
            "source": "gemini" | "fallback",
            "reason": null,
            "applied": true
        }
    """
    data = request.get_json(silent=True) or {}
    session = current_app.editor_session

    try:
        min_duration = _optional_float(data, 'minDuration')
        max_duration = _optional_float(data, 'maxDuration')
    except (TypeError, ValueError):
        return jsonify({'error': 'minDuration and maxDuration must be numbers'}), 400

    if min_duration is not None or max_duration is not None:
        is_valid, error_msg = validate_clip_window(
            session.min_clip_duration if min_duration is None else min_duration,
            session.max_clip_duration if max_duration is None else max_duration,
        )
        if not is_valid:
            return jsonify({'error': error_msg}), 400

    try:
        result = current_app.generation_service.generate_clips(
            session,
            context=data.get('context') or "",
            min_duration=min_duration,
            max_duration=max_duration,
        )
    except NoVideoLoadedError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify({
        'clips': [clip.to_dict() for clip in result.items],
        'source': result.source.value,
        'reason': result.reason,
        'applied': result.applied,
        'playback': session.playback.snapshot(),
        'commands': session.media.drain_commands(),
    }), 200


@generation_bp.route('/clips', methods=['GET'])
def get_clips():
    session = current_app.editor_session
    return jsonify({'clips': [clip.to_dict() for clip in session.clips]}), 200


@generation_bp.route('/captions', methods=['POST'])
def generate_captions():
    """
    Generate captions for the session video.

    Request JSON:
        {"context": "..."}   # Optional
    """
    data = request.get_json(silent=True) or {}
    session = current_app.editor_session

    try:
        result = current_app.generation_service.generate_captions(
            session, context=data.get('context') or ""
        )
    except NoVideoLoadedError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify({
        'captions': [caption.to_dict() for caption in result.items],
        'source': result.source.value,
        'reason': result.reason,
        'applied': result.applied,
    }), 200


@generation_bp.route('/captions', methods=['GET'])
def get_captions():
    session = current_app.editor_session
    return jsonify({'captions': [caption.to_dict() for caption in session.captions]}), 200
