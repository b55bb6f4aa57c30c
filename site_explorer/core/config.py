"""Configuration management."""
import os
import re
from collections.abc import Callable
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from pathlib import Path
from typing import TypeVar
from urllib.parse import urlparse

import yaml

from .exceptions import ConfigError

T = TypeVar("T", int, float)


def url_to_dirname(url: str) -> str:
    """Convert URL to safe directory name.

    Example: https://www.example.org/blog -> example_org
    """
    parsed = urlparse(url)
    hostname = parsed.netloc or parsed.path.split("/")[0]
    hostname = re.sub(r"^www\.", "", hostname)
    hostname = re.sub(r":\d+$", "", hostname)
    dirname = re.sub(r"[^a-zA-Z0-9]", "_", hostname)
    dirname = re.sub(r"_+", "_", dirname)
    return dirname.strip("_").lower() or "site"


def _env_bool(name: str, default: bool) -> bool:
    return os.environ.get(name, str(default)).lower() in ("1", "true", "yes")


def _env_number(name: str, cast: Callable[[str], T], default: str = "") -> T:
    raw = os.environ.get(name, default)
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}", config_key=name) from e


@dataclass
class OutputConfig:
    """Report output directory configuration."""
    base_dir: Path = field(default_factory=lambda: Path("./analysis_output"))

    @classmethod
    def from_env(cls) -> "OutputConfig":
        return cls(base_dir=Path(os.environ.get("EXPLORER_OUTPUT_DIR", "./analysis_output")))

    def get_session_dir(self, url: str, started_at: datetime) -> Path:
        """Get the per-session output directory.

        Format: {base_dir}/{url_dirname}_{timestamp}
        Example: ./analysis_output/example_com_20250116_153045
        """
        timestamp = started_at.strftime("%Y%m%d_%H%M%S")
        return self.base_dir / f"{url_to_dirname(url)}_{timestamp}"


@dataclass
class OpenAIConfig:
    """OpenAI-compatible API configuration for the decision oracle."""
    api_key: str
    model: str = "gpt-4o"
    temperature: float = 0.1
    timeout: float = 60.0
    base_url: str | None = None

    @classmethod
    def from_env(cls) -> "OpenAIConfig":
        """Load configuration from environment variables."""
        api_key = os.environ.get("OPENAI_API_KEY") or os.environ.get("OPENAI_KEY")
        if not api_key:
            raise ConfigError(
                "OpenAI API key not found. Set OPENAI_API_KEY or OPENAI_KEY environment variable",
                config_key="OPENAI_API_KEY",
            )
        return cls(
            api_key=api_key,
            model=os.environ.get("OPENAI_MODEL", "gpt-4o"),
            temperature=_env_number("OPENAI_TEMPERATURE", float, "0.1"),
            timeout=_env_number("OPENAI_TIMEOUT", float, "60"),
            base_url=os.environ.get("OPENAI_BASE_URL") or None,
        )


@dataclass
class BrowserConfig:
    """Chrome DevTools configuration.

    Supports two modes:
    1. URL mode: Set CDP_URL (e.g., http://localhost:9222)
    2. Host/Port mode: Set CDP_HOST and CDP_PORT separately

    CDP_URL takes precedence if both are set. With new_target enabled every
    session opens its own page target instead of reusing the first tab.
    """
    host: str = "localhost"
    port: int = 9222
    timeout: float = 30.0
    new_target: bool = True

    @classmethod
    def from_env(cls) -> "BrowserConfig":
        cdp_url = os.environ.get("CDP_URL")
        timeout = _env_number("CDP_TIMEOUT", float, "30")
        new_target = _env_bool("CDP_NEW_TARGET", True)

        if cdp_url:
            parsed = urlparse(cdp_url)
            return cls(
                host=parsed.hostname or "localhost",
                port=parsed.port or 9222,
                timeout=timeout,
                new_target=new_target,
            )

        return cls(
            host=os.environ.get("CDP_HOST", "localhost"),
            port=_env_number("CDP_PORT", int, "9222"),
            timeout=timeout,
            new_target=new_target,
        )

    @property
    def http_url(self) -> str:
        """Base URL of the DevTools HTTP endpoint."""
        return f"http://{self.host}:{self.port}"


@dataclass
class ExplorationConfig:
    """Bounds and pacing for an exploration session.

    All durations are in seconds.
    """
    max_steps: int = 15
    max_pages: int = 10
    step_delay: float = 1.5
    action_delay: float = 2.0
    settle_delay: float = 3.0
    network_idle_timeout: float = 10.0
    network_idle_time: float = 0.5
    navigation_timeout: float = 30.0
    oracle_timeout: float = 60.0
    history_window: int = 5
    max_element_text: int = 200
    max_markup_chars: int = 20000
    max_prompt_elements: int = 150

    def __post_init__(self) -> None:
        if self.max_steps < 1:
            raise ConfigError("max_steps must be at least 1", config_key="max_steps")
        if self.max_pages < 1:
            raise ConfigError("max_pages must be at least 1", config_key="max_pages")

    @classmethod
    def from_env(cls) -> "ExplorationConfig":
        """Load from environment, layered over an optional YAML profile.

        EXPLORER_PROFILE points at a YAML file whose keys match the field
        names; EXPLORER_MAX_STEPS, EXPLORER_MAX_PAGES and EXPLORER_STEP_DELAY
        override it.
        """
        profile = os.environ.get("EXPLORER_PROFILE")
        config = cls.from_yaml(Path(profile)) if profile else cls()

        overrides: dict[str, object] = {}
        if "EXPLORER_MAX_STEPS" in os.environ:
            overrides["max_steps"] = _env_number("EXPLORER_MAX_STEPS", int)
        if "EXPLORER_MAX_PAGES" in os.environ:
            overrides["max_pages"] = _env_number("EXPLORER_MAX_PAGES", int)
        if "EXPLORER_STEP_DELAY" in os.environ:
            overrides["step_delay"] = _env_number("EXPLORER_STEP_DELAY", float)
        return replace(config, **overrides) if overrides else config

    @classmethod
    def from_yaml(cls, config_path: Path) -> "ExplorationConfig":
        """Load an exploration profile from YAML.

        Raises:
            ConfigError: If the file is missing, malformed or has unknown keys.
        """
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise ConfigError(f"Profile not found: {config_path}", config_key="EXPLORER_PROFILE") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}", config_key="EXPLORER_PROFILE") from e

        if not isinstance(data, dict):
            raise ConfigError("Profile must be a mapping", config_key="EXPLORER_PROFILE")

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown profile keys: {sorted(unknown)}", config_key="EXPLORER_PROFILE")
        return cls(**data)


@dataclass
class AppConfig:
    """Main application configuration."""
    openai: OpenAIConfig
    browser: BrowserConfig
    exploration: ExplorationConfig
    output: OutputConfig
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls(
            openai=OpenAIConfig.from_env(),
            browser=BrowserConfig.from_env(),
            exploration=ExplorationConfig.from_env(),
            output=OutputConfig.from_env(),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
        )
