"""
Clip Studio - Short-Form Editor Backend
=======================================
Main application entry point that configures Flask and registers blueprints.

This module:
- Creates the Flask application factory
- Creates the editing session and generation service the routes share
- Registers all API blueprints
- Defines core routes (/health) and JSON error handlers

Route Organization:
- /health               -> Health check
- /api/video/*          -> Upload, duration reports, export settings, export
- /api/generate/*       -> AI clip and caption generation
- /api/playback/*       -> Player events and timeline lookups
"""

from flask import Flask, jsonify
from dotenv import load_dotenv
from flask_cors import CORS

from clipstudio import __version__
from clipstudio.routes import video_bp, generation_bp, playback_bp
from clipstudio.config import get_config, set_config, apply_environment_overrides
from clipstudio.exceptions import ClipStudioError
from clipstudio.logging_config import get_studio_logger
from clipstudio.session import EditorSession, GenerationService

# Load environment variables
load_dotenv()

# Configure logging
logger = get_studio_logger("app", log_to_file=False)


def create_app(config_override=None):
    """
    Application factory function.

    Creates and configures the Flask application with:
    - CORS support
    - Blueprint registration
    - Directory setup
    - File upload configuration
    - One EditorSession and GenerationService for the process

    Args:
        config_override: Optional AppConfig instance to use instead of the
            global config; it becomes the global config

    Returns:
        Configured Flask application instance
    """
    if config_override is not None:
        set_config(config_override)
        app_config = config_override
    else:
        app_config = apply_environment_overrides(get_config())

    app = Flask(__name__)
    CORS(app, origins=app_config.flask.cors_origins)

    app.app_config = app_config
    app.editor_session = EditorSession(app_config)
    app.generation_service = GenerationService()

    # ==========================================================================
    # REGISTER BLUEPRINTS
    # ==========================================================================

    app.register_blueprint(video_bp, url_prefix='/api/video')
    app.register_blueprint(generation_bp, url_prefix='/api/generate')
    app.register_blueprint(playback_bp, url_prefix='/api/playback')

    # ==========================================================================
    # CONFIGURE DIRECTORIES AND LIMITS
    # ==========================================================================

    app_config.paths.ensure_directories()

    app.config['MAX_CONTENT_LENGTH'] = app_config.video.max_file_size_bytes
    app.config['UPLOAD_FOLDER'] = str(app_config.paths.uploads)
    app.config['SECRET_KEY'] = app_config.flask.secret_key

    logger.info(
        "Initialized Flask app",
        extra={
            'session': app_config.logging.session_name,
            'model': app_config.gemini.model_name,
            'gemini_configured': app_config.gemini.is_configured,
        }
    )

    # ==========================================================================
    # CORE ROUTES
    # ==========================================================================

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint for monitoring."""
        return {
            'status': 'healthy',
            'geminiConfigured': app_config.gemini.is_configured,
            'version': __version__
        }, 200

    @app.route('/favicon.ico')
    def favicon():
        """Return empty favicon to prevent 404 errors."""
        return '', 204

    # ==========================================================================
    # ERROR HANDLERS
    # ==========================================================================

    @app.errorhandler(ClipStudioError)
    def studio_error(error):
        return jsonify({'error': str(error), 'code': error.error_code}), 400

    @app.errorhandler(413)
    def request_entity_too_large(error):
        """Handle file too large errors."""
        return jsonify({
            'error': f'File is too large. Maximum size is {app_config.video.max_file_size_bytes / (1024*1024*1024):.1f}GB.'
        }), 413

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return jsonify({'error': 'Resource not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        logger.error(f"Internal server error: {error}")
        return jsonify({'error': 'Internal server error'}), 500

    return app


if __name__ == '__main__':
    app = create_app()
    flask_config = get_config().flask
    app.run(
        debug=flask_config.debug,
        host=flask_config.host,
        port=flask_config.port
    )
