"""
Playback Routes Module
======================
REST API endpoints that feed player events into the session's playback
controller.

Every response carries the playback snapshot, the caption active at the
current time, and the media commands (seek/play/pause) the player should
execute.

Endpoints:
- POST /api/playback/play       - Start playback
- POST /api/playback/pause      - Pause playback
- POST /api/playback/toggle     - Toggle play/pause
- POST /api/playback/seek       - Seek the timeline {time}
- POST /api/playback/time       - Position report from the player {time}
- POST /api/playback/select     - Select a clip {clipId}
- GET  /api/playback/state      - Current playback state
- GET  /api/playback/timeline   - Active clip and caption at ?time=
"""

from flask import Blueprint, request, jsonify, current_app
import logging

from ..timeline import Pause, Play, Seek, SelectClip, TimeUpdate, TogglePlayback

logger = logging.getLogger(__name__)

playback_bp = Blueprint('playback', __name__)


def _state_response(**extra):
    session = current_app.editor_session
    with session.lock:
        caption = session.active_caption
        body = {
            'playback': session.playback.snapshot(),
            'activeCaption': caption.to_dict() if caption else None,
            'commands': session.media.drain_commands(),
        }
    body.update(extra)
    return jsonify(body), 200


def _dispatch(event):
    session = current_app.editor_session
    with session.lock:
        session.playback.dispatch(event)


def _time_from_body():
    data = request.get_json(silent=True) or {}
    return float(data['time'])


@playback_bp.route('/play', methods=['POST'])
def play():
    _dispatch(Play())
    return _state_response()


@playback_bp.route('/pause', methods=['POST'])
def pause():
    _dispatch(Pause())
    return _state_response()


@playback_bp.route('/toggle', methods=['POST'])
def toggle():
    _dispatch(TogglePlayback())
    return _state_response()


@playback_bp.route('/seek', methods=['POST'])
def seek():
    try:
        time = _time_from_body()
    except (KeyError, TypeError, ValueError):
        return jsonify({'error': 'A numeric time is required'}), 400

    _dispatch(Seek(time))
    return _state_response()


@playback_bp.route('/time', methods=['POST'])
def time_update():
    """
    Position report from the player.

    The reported position is mirrored before the controller sees it so that
    drift checks compare against where the player actually is.
    """
    try:
        time = _time_from_body()
    except (KeyError, TypeError, ValueError):
        return jsonify({'error': 'A numeric time is required'}), 400

    session = current_app.editor_session
    with session.lock:
        report = getattr(session.media, 'report_position', None)
        if report is not None:
            report(time)
        session.playback.dispatch(TimeUpdate(time))
    return _state_response()


@playback_bp.route('/select', methods=['POST'])
def select_clip():
    """
    Select a clip and start playing it from its start.

    Request JSON:
        {"clipId": "clip-3"}   # null clears the selection
    """
    data = request.get_json(silent=True) or {}
    clip_id = data.get('clipId')

    session = current_app.editor_session
    with session.lock:
        session.playback.dispatch(SelectClip(clip_id))
        selected = session.playback.selected_clip_id is not None

    if clip_id is not None and not selected:
        return jsonify({'error': f'Clip not found: {clip_id}'}), 404

    return _state_response()


@playback_bp.route('/state', methods=['GET'])
def state():
    return _state_response()


@playback_bp.route('/timeline', methods=['GET'])
def timeline():
    """Active clip and caption at ?time= (defaults to the current time)."""
    session = current_app.editor_session
    try:
        time = float(request.args.get('time', session.playback.current_time))
    except ValueError:
        return jsonify({'error': 'time must be a number'}), 400

    with session.lock:
        index = session.timeline
        clip = index.active_clip(time)
        caption = index.active_caption(time)

    return jsonify({
        'time': time,
        'activeClip': clip.to_dict() if clip else None,
        'activeCaption': caption.to_dict() if caption else None,
    }), 200
