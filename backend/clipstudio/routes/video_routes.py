"""
Video Routes Module
===================
Handles video upload, duration reports, export settings and export.

Endpoints:
- POST /api/video/upload            - Upload a video and make it the session video
- POST /api/video/metadata          - Report the duration once the player knows it
- GET  /api/video/current           - Current video and session state
- GET  /api/video/export-settings   - Current export preferences
- PUT  /api/video/export-settings   - Update export preferences
- POST /api/video/export            - Placeholder export acknowledgment
- GET  /api/video/uploads/<name>    - Serve an uploaded video
"""

from flask import Blueprint, request, jsonify, send_from_directory, current_app
from werkzeug.utils import secure_filename
import os
import logging
import traceback

from ..exceptions import NoVideoLoadedError
from ..models import VideoMetadata
from ..utils.video_utils import allowed_file, get_video_info, remove_file, unique_upload_name

logger = logging.getLogger(__name__)

video_bp = Blueprint('video', __name__)


@video_bp.route('/upload', methods=['POST'])
def upload_video():
    """
    Upload a video and load it into the session.

    Loading a video discards all clips, captions and cached frames of the
    previous one. When the duration cannot be read on the server it stays
    unknown until the player reports it via /metadata.
    """
    if 'video' not in request.files:
        return jsonify({'error': 'No video file provided'}), 400

    file = request.files['video']

    if file.filename == '':
        return jsonify({'error': 'No selected file'}), 400

    if not allowed_file(file.filename):
        return jsonify({'error': 'Invalid file type'}), 400

    session = current_app.editor_session
    filepath = None
    try:
        filename = unique_upload_name(secure_filename(file.filename))
        filepath = os.path.join(current_app.config['UPLOAD_FOLDER'], filename)
        file.save(filepath)

        try:
            video = VideoMetadata.from_video_info(file.filename, filepath, get_video_info(filepath))
        except Exception as e:
            logger.warning(f"Duration of {filename} unknown until the player reports it: {e}")
            video = VideoMetadata(name=file.filename, source=filepath)

        session.load_video(video)
        logger.info(f"Uploaded video: {filename} (duration: {video.duration_seconds:.2f}s)")

        return jsonify({
            'message': 'Video uploaded successfully',
            'filename': filename,
            'video': video.to_dict(),
            'playback': session.playback.snapshot(),
            'commands': session.media.drain_commands(),
        }), 200

    except Exception as e:
        logger.error(f"Error during upload: {str(e)}")
        logger.error(traceback.format_exc())
        remove_file(filepath)
        return jsonify({'error': f'Error processing video: {str(e)}'}), 500


@video_bp.route('/metadata', methods=['POST'])
def report_metadata():
    """
    Patch the session video's duration.

    Request JSON:
        {"duration": 123.4}
    """
    data = request.get_json(silent=True) or {}
    try:
        duration = float(data['duration'])
    except (KeyError, TypeError, ValueError):
        return jsonify({'error': 'A numeric duration is required'}), 400

    try:
        video = current_app.editor_session.update_duration(duration)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify({'video': video.to_dict()}), 200


@video_bp.route('/current', methods=['GET'])
def current_video():
    return jsonify(current_app.editor_session.to_dict()), 200


@video_bp.route('/export-settings', methods=['GET'])
def get_export_settings():
    return jsonify(current_app.editor_session.export_settings.to_dict()), 200


@video_bp.route('/export-settings', methods=['PUT'])
def update_export_settings():
    """
    Update export preferences.

    Request JSON (any subset):
        {"autoSubtitle": true, "exportQuality": "4k", "showWatermark": false}
    """
    data = request.get_json(silent=True) or {}
    try:
        settings = current_app.editor_session.update_export_settings(data)
    except ValueError as e:
        return jsonify({'error': f'Invalid export settings: {e}'}), 400

    return jsonify(settings.to_dict()), 200


@video_bp.route('/export', methods=['POST'])
def export_video():
    """
    Acknowledge an export of the selected clip.

    Nothing is rendered; the response echoes what would be exported.
    """
    try:
        export_request = current_app.editor_session.export_request()
    except NoVideoLoadedError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify({
        'message': f'Export queued: {export_request.output_name}',
        'exportRequest': export_request.to_dict(),
    }), 200


@video_bp.route('/uploads/<filename>')
def serve_video(filename):
    """Serve uploaded video files."""
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)
