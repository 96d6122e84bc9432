from typing import Callable, Optional
import logging

from appsettings.backends import Backend, JsonFileBackend, MemoryBackend
from appsettings.config import Config
from appsettings.store import DEFAULT_PREFIX, SettingsStore

logger = logging.getLogger(__name__)


def create_backend(config: Config) -> Backend:
    if config.backend == "memory":
        return MemoryBackend()
    return JsonFileBackend(config.settings_path)


def create_store(config: Optional[Config] = None,
                 clock: Optional[Callable[[], float]] = None) -> SettingsStore:
    """
    Build the settings store for the process.

    Call once at startup and hand the result to whoever needs settings;
    there is no shared instance behind this function.
    """
    config = config or Config.from_env()
    backend = create_backend(config)
    logger.info(f"Settings store '{config.prefix}' using {type(backend).__name__}")
    return SettingsStore(backend, prefix=config.prefix, clock=clock)


def create_test_store(prefix: str = DEFAULT_PREFIX,
                      clock: Optional[Callable[[], float]] = None) -> SettingsStore:
    """Fresh in-memory store, nothing shared with any other instance."""
    return SettingsStore(MemoryBackend(), prefix=prefix, clock=clock)
