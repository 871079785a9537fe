"""
Configuration Management Module
===============================
Centralized configuration system for the Clip Studio back end.

This module provides:
- Type-safe configuration via dataclasses
- Environment variable overrides
- JSON save/load for reproducible sessions
- Default values with documentation

Usage:
    from clipstudio.config import get_config
    config = get_config()

    # Access configuration
    frame_count = config.sampling.frame_count
    max_clip = config.clips.max_duration_seconds
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Literal
import os
import json
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================

@dataclass
class PathConfig:
    """Configuration for file system paths."""

    # Base directory (defaults to the package directory)
    base_dir: Path = field(default_factory=lambda: Path(__file__).parent)

    # Runtime directories
    upload_dir: str = "uploads"
    logs_dir: str = "logs"

    @property
    def uploads(self) -> Path:
        return self.base_dir / self.upload_dir

    @property
    def logs(self) -> Path:
        return self.base_dir / self.logs_dir

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        for dir_path in [self.uploads, self.logs]:
            dir_path.mkdir(parents=True, exist_ok=True)


@dataclass
class GeminiConfig:
    """Configuration for the Google Gemini collaborator."""

    # Model selection
    model_name: str = "gemini-2.5-flash"

    # Generation parameters
    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 4096

    # API configuration (loaded from environment)
    api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY")
    )

    # Persona sent as the system instruction
    system_instruction: str = (
        "You are a professional video editor for a top social media agency. "
        "You specialize in identifying viral hooks in long-form content."
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass
class SamplingConfig:
    """
    Configuration for frame sampling.

    Frames are taken at duration / (frame_count + 1) * i so the very first
    and last instants (black frames, leaders) are never sampled.
    """

    frame_count: int = 9
    seek_timeout_seconds: float = 0.5
    scale: float = 0.25
    jpeg_quality: int = 60


@dataclass
class ClipConfig:
    """Configuration for highlight clip generation."""

    # Advisory duration window for every clip
    min_duration_seconds: float = 15.0
    max_duration_seconds: float = 59.0

    # Number of segments requested from the model and produced by the fallback
    clip_count: int = 3

    # Fallback placement
    fallback_lead_in_seconds: float = 10.0
    fallback_tail_seconds: float = 5.0
    fallback_min_score: int = 85
    fallback_max_score: int = 94

    # Select the first generated clip automatically
    select_first_on_generate: bool = False


@dataclass
class CaptionConfig:
    """Configuration for caption generation and its fallback."""

    min_segments: int = 3
    seconds_per_segment: float = 5.0
    min_length_seconds: float = 2.0
    max_length_seconds: float = 5.0
    gap_seconds: float = 0.5

    placeholder_phrases: list = field(default_factory=lambda: [
        "Wait for it...",
        "This is insane!",
        "Nobody expected this",
        "Watch till the end",
        "Here's the secret",
        "You won't believe it",
    ])


@dataclass
class PlaybackConfig:
    """Configuration for playback synchronization."""

    # Reposition the media element only when it drifts further than this
    drift_tolerance_seconds: float = 0.5


@dataclass
class ExportConfig:
    """Export preferences handed to the (placeholder) export command."""

    auto_subtitle: bool = True
    export_quality: Literal["1080p", "4k"] = "1080p"
    show_watermark: bool = False


@dataclass
class VideoConfig:
    """Configuration for video uploads."""

    # Allowed formats
    allowed_extensions: set = field(default_factory=lambda: {'mp4', 'avi', 'mov', 'mkv', 'webm'})

    # Upload limits
    max_file_size_bytes: int = 2 * 1024 * 1024 * 1024  # 2GB


@dataclass
class FlaskConfig:
    """Configuration for Flask web server."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = True

    # Security
    secret_key: str = field(default_factory=lambda: os.getenv("FLASK_SECRET_KEY", "dev-secret-key"))

    # CORS
    cors_origins: list = field(default_factory=lambda: ["*"])


@dataclass
class LoggingConfig:
    """Configuration for logging and reproducibility."""

    session_name: str = "default"
    log_level: str = "INFO"
    log_decisions: bool = True
    log_repairs: bool = True

    # None means nondeterministic fallback timing
    random_seed: Optional[int] = None


@dataclass
class AppConfig:
    """
    Master configuration class that aggregates all configuration sections.

    This is the main configuration object used throughout the application.
    """

    paths: PathConfig = field(default_factory=PathConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    clips: ClipConfig = field(default_factory=ClipConfig)
    captions: CaptionConfig = field(default_factory=CaptionConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    video: VideoConfig = field(default_factory=VideoConfig)
    flask: FlaskConfig = field(default_factory=FlaskConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        """Ensure all directories exist after initialization."""
        self.paths.ensure_directories()

    def to_dict(self) -> dict:
        """Convert configuration to dictionary for serialization."""
        def convert(obj):
            if hasattr(obj, '__dataclass_fields__'):
                return {k: convert(v) for k, v in obj.__dict__.items()}
            elif isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, set):
                return sorted(obj)
            return obj
        data = convert(self)
        # Never write credentials to disk
        data['gemini']['api_key'] = None
        return data

    def save(self, filepath: str) -> None:
        """Save configuration to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Configuration saved to {filepath}")

    @classmethod
    def from_dict(cls, data: dict) -> "AppConfig":
        """Create configuration from dictionary."""
        paths_data = dict(data.get('paths', {}))
        if 'base_dir' in paths_data and isinstance(paths_data['base_dir'], str):
            paths_data['base_dir'] = Path(paths_data['base_dir'])

        video_data = dict(data.get('video', {}))
        if 'allowed_extensions' in video_data and isinstance(video_data['allowed_extensions'], list):
            video_data['allowed_extensions'] = set(video_data['allowed_extensions'])

        gemini_data = dict(data.get('gemini', {}))
        if gemini_data.get('api_key') is None:
            # Fall back to the environment when the file carries no key
            gemini_data.pop('api_key', None)

        return cls(
            paths=PathConfig(**paths_data),
            gemini=GeminiConfig(**gemini_data),
            sampling=SamplingConfig(**data.get('sampling', {})),
            clips=ClipConfig(**data.get('clips', {})),
            captions=CaptionConfig(**data.get('captions', {})),
            playback=PlaybackConfig(**data.get('playback', {})),
            export=ExportConfig(**data.get('export', {})),
            video=VideoConfig(**video_data),
            flask=FlaskConfig(**data.get('flask', {})),
            logging=LoggingConfig(**data.get('logging', {}))
        )

    @classmethod
    def load(cls, filepath: str) -> "AppConfig":
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        logger.info(f"Configuration loaded from {filepath}")
        return cls.from_dict(data)


# =============================================================================
# GLOBAL CONFIGURATION SINGLETON
# =============================================================================

_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the global application configuration.

    Creates a default configuration on first access.

    Returns:
        The global AppConfig instance
    """
    global _config
    if _config is None:
        _config = AppConfig()
        logger.info("Initialized default application configuration")
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global application configuration."""
    global _config
    _config = config
    logger.info(f"Set global configuration (session: {config.logging.session_name})")


def reset_config() -> None:
    """Reset the global configuration to None (forces reload on next get_config)."""
    global _config
    _config = None
    logger.info("Reset global configuration")


# =============================================================================
# ENVIRONMENT VARIABLE OVERRIDES
# =============================================================================

_SECTIONS = (
    'gemini', 'sampling', 'clips', 'captions', 'playback',
    'export', 'video', 'flask', 'logging',
)


def apply_environment_overrides(config: AppConfig) -> AppConfig:
    """
    Apply environment variable overrides to configuration.

    Environment variables follow the pattern:
    CLIP_STUDIO_{SECTION}_{KEY}

    Examples:
        CLIP_STUDIO_SAMPLING_FRAME_COUNT=12
        CLIP_STUDIO_CLIPS_MAX_DURATION_SECONDS=45
        CLIP_STUDIO_LOGGING_LOG_LEVEL=DEBUG

    Also supports common simplified environment variables:
        GOOGLE_API_KEY / API_KEY (maps to gemini.api_key)
        PORT=8080 (maps to flask.port)

    Args:
        config: Base configuration to override

    Returns:
        Configuration with environment overrides applied
    """
    api_key = os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY")
    if api_key:
        config.gemini.api_key = api_key

    if os.getenv("PORT"):
        try:
            config.flask.port = int(os.getenv("PORT"))
            logger.info(f"Environment override: flask.port = {config.flask.port}")
        except ValueError:
            logger.warning(f"Ignoring non-integer PORT={os.getenv('PORT')!r}")

    prefix = "CLIP_STUDIO_"

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        parts = key[len(prefix):].lower().split('_', 1)
        if len(parts) != 2:
            continue

        section, attr = parts
        if section not in _SECTIONS:
            continue

        section_config = getattr(config, section, None)
        if section_config is None or not hasattr(section_config, attr):
            continue

        # Convert value to the type of the current default
        current_value = getattr(section_config, attr)
        try:
            if isinstance(current_value, bool):
                typed_value = value.lower() in ('true', '1', 'yes')
            elif isinstance(current_value, int):
                typed_value = int(value)
            elif isinstance(current_value, float):
                typed_value = float(value)
            else:
                typed_value = value

            setattr(section_config, attr, typed_value)
            logger.info(f"Environment override: {section}.{attr} = {typed_value}")

        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to apply environment override {key}: {e}")

    return config


# =============================================================================
# PRESET CONFIGURATIONS FOR COMMON SCENARIOS
# =============================================================================

def get_production_config() -> AppConfig:
    """Get configuration optimized for production."""
    config = AppConfig()
    config.flask.debug = False
    config.logging.log_level = "INFO"
    return config


def get_test_config(seed: int = 42) -> AppConfig:
    """Get a deterministic configuration with no collaborator credentials."""
    config = AppConfig()
    config.gemini.api_key = None
    config.logging.random_seed = seed
    config.logging.session_name = "test"
    return config
