from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os
import logging

from dotenv import find_dotenv, load_dotenv

from appsettings.exceptions import ConfigError
from appsettings.store import DEFAULT_PREFIX

logger = logging.getLogger(__name__)

BACKENDS = ("file", "memory")


def default_settings_dir(prefix: str) -> Path:
    """Get the platform settings directory for the given namespace."""
    if os.name == "nt":  # Windows
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    else:  # Linux/Mac
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / prefix


@dataclass(frozen=True)
class Config:
    prefix: str = DEFAULT_PREFIX
    backend: str = "file"
    path: Optional[Path] = None
    log_level: str = "INFO"

    def __post_init__(self):
        if self.backend not in BACKENDS:
            raise ConfigError(f"Unknown backend '{self.backend}', expected one of {', '.join(BACKENDS)}")

    @property
    def settings_path(self) -> Path:
        if self.path is not None:
            return Path(self.path)
        return default_settings_dir(self.prefix) / "settings.json"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Config":
        """
        Build the configuration from environment variables, reading a .env file first
        """
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))

        path = os.getenv("APPSETTINGS_PATH")
        config = cls(
            prefix=os.getenv("APPSETTINGS_PREFIX", DEFAULT_PREFIX),
            backend=os.getenv("APPSETTINGS_BACKEND", "file").strip().lower(),
            path=Path(path).expanduser() if path else None,
            log_level=os.getenv("APPSETTINGS_LOG_LEVEL", "INFO").upper(),
        )
        logger.debug(f"Loaded config: {config}")
        return config
