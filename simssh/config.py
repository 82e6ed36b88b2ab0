"""Centralized configuration for SimSSH.

Every setting is read from a SIMSSH_* environment variable; anything unset
falls back to the defaults below. A .env file in the working directory is
loaded first.

Example:
    export SIMSSH_USERNAME=admin
    export SIMSSH_LLM_MODEL=llama3.2
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _get_env(key: str, default: str) -> str:
    """Raw string value, or default when unset."""
    return os.environ.get(key, default)


def _get_env_int(key: str, default: int) -> int:
    """Integer value; unparsable input falls back to default."""
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


def _get_env_float(key: str, default: float) -> float:
    """Float value; unparsable input falls back to default."""
    try:
        return float(os.environ.get(key, str(default)))
    except ValueError:
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Accepts true/false, 1/0, yes/no, on/off in any case."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    if val in ("false", "0", "no", "off"):
        return False
    return default


# Base paths
PROJECT_ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = PROJECT_ROOT / "data"


@dataclass
class SessionConfig:
    """Simulated remote session configuration."""

    username: str = field(default_factory=lambda: _get_env("SIMSSH_USERNAME", "user"))
    hostname: str = field(
        default_factory=lambda: _get_env("SIMSSH_HOSTNAME", "ubuntu-server")
    )
    home: str = field(default_factory=lambda: _get_env("SIMSSH_HOME", "/home/user"))
    connect_delay: float = field(
        default_factory=lambda: _get_env_float("SIMSSH_CONNECT_DELAY", 1.5)
    )
    os_banner: str = field(
        default_factory=lambda: _get_env(
            "SIMSSH_OS_BANNER",
            "Ubuntu 22.04.3 LTS (GNU/Linux 5.15.0-91-generic x86_64)",
        )
    )

    @property
    def home_segments(self) -> list:
        """Home directory as a list of path segments."""
        return [p for p in self.home.split("/") if p]


@dataclass
class LLMConfig:
    """Chat assistant / Ollama configuration."""

    model: str = field(default_factory=lambda: _get_env("SIMSSH_LLM_MODEL", "llama3.2"))
    host: str = field(
        default_factory=lambda: _get_env("SIMSSH_LLM_HOST", "http://localhost:11434")
    )
    timeout: float = field(
        default_factory=lambda: _get_env_float("SIMSSH_LLM_TIMEOUT", 60.0)
    )
    temperature: float = field(
        default_factory=lambda: _get_env_float("SIMSSH_LLM_TEMPERATURE", 0.7)
    )
    check_interval: float = field(
        default_factory=lambda: _get_env_float("SIMSSH_LLM_CHECK_INTERVAL", 30.0)
    )


@dataclass
class UIConfig:
    """Streamlit web UI configuration."""

    host: str = field(default_factory=lambda: _get_env("SIMSSH_UI_HOST", "localhost"))
    port: int = field(default_factory=lambda: _get_env_int("SIMSSH_UI_PORT", 8501))


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: _get_env("SIMSSH_LOG_LEVEL", "INFO"))
    format: str = field(
        default_factory=lambda: _get_env(
            "SIMSSH_LOG_FORMAT",
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    )
    file: Optional[Path] = field(
        default_factory=lambda: (
            Path(_get_env("SIMSSH_LOG_FILE", ""))
            if _get_env("SIMSSH_LOG_FILE", "")
            else None
        )
    )


@dataclass
class MetricsConfig:
    """Prometheus metrics configuration."""

    enabled: bool = field(
        default_factory=lambda: _get_env_bool("SIMSSH_METRICS_ENABLED", False)
    )
    host: str = field(
        default_factory=lambda: _get_env("SIMSSH_METRICS_HOST", "127.0.0.1")
    )
    port: int = field(default_factory=lambda: _get_env_int("SIMSSH_METRICS_PORT", 9090))


@dataclass
class Config:
    """All SimSSH settings, one section per concern."""

    session: SessionConfig = field(default_factory=SessionConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)

    # Paths
    project_root: Path = PROJECT_ROOT
    data_dir: Path = DATA_DIR
    profiles_path: Path = field(
        default_factory=lambda: Path(
            _get_env("SIMSSH_PROFILES_PATH", str(DATA_DIR / "profiles.json"))
        )
    )
    system_prompt_path: Path = field(
        default_factory=lambda: DATA_DIR / "system_prompt.txt"
    )


# Process-wide instance, built on first use
_config: Optional[Config] = None


def get_config() -> Config:
    """Return the shared Config, reading the environment on first call."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Discard the shared Config and read the environment again.

    Tests call this after changing SIMSSH_* variables.
    """
    global _config
    _config = Config()
    return _config


# Section shortcuts
def get_session_config() -> SessionConfig:
    """Get simulated session configuration."""
    return get_config().session


def get_llm_config() -> LLMConfig:
    """Get LLM configuration."""
    return get_config().llm


def get_ui_config() -> UIConfig:
    """Get web UI configuration."""
    return get_config().ui


def get_logging_config() -> LoggingConfig:
    """Get logging configuration."""
    return get_config().logging


def get_metrics_config() -> MetricsConfig:
    """Get metrics configuration."""
    return get_config().metrics
