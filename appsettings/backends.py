from abc import ABC, abstractmethod
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional, Union
import json
import logging
import os

from appsettings.exceptions import BackendError

logger = logging.getLogger(__name__)

class Backend(ABC):
    """
    A durable map of string keys to serialized values
    """
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, raw: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    @abstractmethod
    def contains(self, key: str) -> bool:
        ...

    @abstractmethod
    def keys(self) -> List[str]:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class MemoryBackend(Backend):
    """
    Process-local backend, nothing survives the process
    """
    def __init__(self):
        self._store: Dict[str, str] = {}
        self._lock = Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._store.get(key)

    def set(self, key: str, raw: str) -> None:
        with self._lock:
            self._store[key] = raw

    def remove(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._store

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._store.keys())

    def clear(self) -> None:
        with self._lock:
            self._store.clear()


class JsonFileBackend(Backend):
    """
    Backend persisted to a single JSON file.

    The file is read again on every access so several backends can share one
    path, and every mutation is written through before the call returns. A
    corrupt file is treated as an empty store. A failed write leaves both the
    file and the backend as they were.
    """
    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._lock = Lock()

    @property
    def path(self) -> Path:
        return self._path

    """
    -----------------------HELPERS-------------------------
    """
    def _load(self) -> Dict[str, str]:
        if not self._path.exists():
            logger.debug(f"No settings file at {self._path}, starting empty")
            return {}

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load settings from {self._path}, starting empty: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Settings file {self._path} does not hold an object, starting empty")
            return {}

        # values are serialized strings, drop anything else
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _flush(self, store: Dict[str, str]) -> None:
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(store, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self._path)
        except OSError as e:
            logger.error(f"Failed to save settings to {self._path}: {e}")
            try:
                tmp.unlink()
            except OSError:
                logger.debug(f"No temporary file to clean up at {tmp}")
            raise BackendError(self._path, e) from e

    """
    -----------------------OPERATIONS-------------------------
    """
    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, raw: str) -> None:
        with self._lock:
            store = self._load()
            store[key] = raw
            self._flush(store)

    def remove(self, key: str) -> None:
        with self._lock:
            store = self._load()
            if key not in store:
                return
            del store[key]
            self._flush(store)

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._load()

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._load().keys())

    def clear(self) -> None:
        with self._lock:
            self._flush({})
