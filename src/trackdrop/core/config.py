"""
Configuration management for trackdrop
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

VALID_AUDIO_QUALITIES = {"best", "192k", "128k"}


@dataclass
class LibraryConfig:
    """Configuration for the on-disk track library."""

    path: str = field(
        default_factory=lambda: str(get_data_dir() / "library")
    )


@dataclass
class DownloadConfig:
    """Configuration for audio acquisition."""

    audio_format: str = "m4a"
    audio_quality: str = "best"  # best, 192k or 128k
    format_selector: str = "bestaudio/best"
    progress_throttle_ms: int = 250

    def validate(self) -> None:
        """Validate download configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.audio_quality not in VALID_AUDIO_QUALITIES:
            raise ValueError(
                f"Invalid audio quality: {self.audio_quality!r}. "
                f"Valid values are: {sorted(VALID_AUDIO_QUALITIES)}"
            )


@dataclass
class AIConfig:
    """Configuration for AI classification."""

    openai_api_key: Optional[str] = None
    model: str = "gpt-4o-mini"
    web_search: bool = True
    timeout_seconds: float = 60.0


@dataclass
class CreditsConfig:
    """Configuration for the enrichment credit ledger."""

    initial: int = 10
    backfill_delay_ms: int = 250  # Rate limit guard between backfill calls


@dataclass
class HTTPConfig:
    """Configuration for metadata lookups and thumbnail downloads."""

    timeout_seconds: float = 10.0
    user_agent: str = "trackdrop/0.1"


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # Default: <data dir>/trackdrop.log
    console_output: bool = False


@dataclass
class Config:
    """Main configuration object."""

    library: LibraryConfig = field(default_factory=LibraryConfig)
    download: DownloadConfig = field(default_factory=DownloadConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    credits: CreditsConfig = field(default_factory=CreditsConfig)
    http: HTTPConfig = field(default_factory=HTTPConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "trackdrop"
    return Path.home() / ".config" / "trackdrop"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the current working directory first,
    then falls back to XDG_CONFIG_HOME/trackdrop (or ~/.config/trackdrop).
    """
    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config
    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "trackdrop"
    return Path.home() / ".local" / "share" / "trackdrop"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# trackdrop configuration

[library]
# Where imported tracks (audio, cover art, metadata.json) are stored
# path = "~/.local/share/trackdrop/library"

[download]
# Audio container produced by the download backend
audio_format = "m4a"

# Audio quality: best, 192k or 128k
audio_quality = "best"

# yt-dlp format selector
format_selector = "bestaudio/best"

# Minimum time between download progress updates
progress_throttle_ms = 250

[ai]
# OpenAI API key (OPENAI_API_KEY in the environment takes precedence)
# openai_api_key = "your-api-key-here"

# Model used for genre/mood classification
model = "gpt-4o-mini"

# Let the model search the web to identify the song
web_search = true

# Request timeout in seconds
timeout_seconds = 60

[credits]
# Starting balance for a new settings file
initial = 10

# Delay between calls when backfilling untagged tracks
backfill_delay_ms = 250

[http]
timeout_seconds = 10
user_agent = "trackdrop/0.1"

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/trackdrop/trackdrop.log)
# log_file = "/path/to/trackdrop.log"

# Also output logs to console (useful for debugging)
console_output = false
""".strip()


def parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML data, keeping defaults for missing keys."""
    config = Config()

    if "library" in toml_data:
        library_data = toml_data["library"]
        config.library = LibraryConfig(
            path=str(Path(library_data.get("path", config.library.path)).expanduser())
        )

    if "download" in toml_data:
        download_data = toml_data["download"]
        config.download = DownloadConfig(
            audio_format=download_data.get("audio_format", config.download.audio_format),
            audio_quality=download_data.get(
                "audio_quality", config.download.audio_quality
            ),
            format_selector=download_data.get(
                "format_selector", config.download.format_selector
            ),
            progress_throttle_ms=download_data.get(
                "progress_throttle_ms", config.download.progress_throttle_ms
            ),
        )
        try:
            config.download.validate()
        except ValueError as e:
            print(f"Warning: Invalid download configuration: {e}")
            print("Using default download configuration.")
            config.download = DownloadConfig()

    if "ai" in toml_data:
        ai_data = toml_data["ai"]
        config.ai = AIConfig(
            openai_api_key=ai_data.get("openai_api_key"),
            model=ai_data.get("model", config.ai.model),
            web_search=ai_data.get("web_search", config.ai.web_search),
            timeout_seconds=ai_data.get("timeout_seconds", config.ai.timeout_seconds),
        )

    if "credits" in toml_data:
        credits_data = toml_data["credits"]
        config.credits = CreditsConfig(
            initial=credits_data.get("initial", config.credits.initial),
            backfill_delay_ms=credits_data.get(
                "backfill_delay_ms", config.credits.backfill_delay_ms
            ),
        )

    if "http" in toml_data:
        http_data = toml_data["http"]
        config.http = HTTPConfig(
            timeout_seconds=http_data.get("timeout_seconds", config.http.timeout_seconds),
            user_agent=http_data.get("user_agent", config.http.user_agent),
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def _apply_env_overrides(config: Config) -> Config:
    """Environment variables override TOML values."""
    api_key = os.environ.get("OPENAI_API_KEY")
    if api_key:
        config.ai.openai_api_key = api_key

    library_path = os.environ.get("TRACKDROP_LIBRARY_PATH")
    if library_path:
        config.library.path = str(Path(library_path).expanduser())

    return config


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - OPENAI_API_KEY
    - TRACKDROP_LIBRARY_PATH
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        return _apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        return _apply_env_overrides(Config())

    return _apply_env_overrides(parse_config(toml_data))


def ensure_directories(config: Config) -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
    Path(config.library.path).mkdir(parents=True, exist_ok=True)
