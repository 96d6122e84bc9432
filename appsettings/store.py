from typing import Any, Callable, Dict, Optional
import math
import time
import logging

from appsettings import codec
from appsettings.backends import Backend
from appsettings.exceptions import InvalidValueError, SerializationError

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "AppSettings"
TIMESTAMP_SUFFIX = ".timestamp"
MIGRATED_SUFFIX = ".migrated"

class SettingsStore:
    """
    Persistent settings over a key-value backend, capable of updating
    objects or dictionaries with expiration.

    Every key is scoped under `prefix` in the backend. Keys written through
    `update_object` / `update_dictionary` carry a shadow entry holding the
    time they were last considered fresh.
    """
    def __init__(self, backend: Backend, prefix: str = DEFAULT_PREFIX,
                 clock: Optional[Callable[[], float]] = None):
        self._backend = backend
        self._prefix = prefix
        self._clock = clock

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def prefix(self) -> str:
        return self._prefix

    """
    -----------------------HELPERS-------------------------
    """
    def _now(self) -> float:
        return self._clock() if self._clock is not None else time.time()

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _timestamp_key(self, key: str) -> str:
        return self._key(key + TIMESTAMP_SUFFIX)

    def _read(self, backend_key: str) -> Optional[Any]:
        """
        Read and decode a backend entry
        Return None if it does not exist or cannot be decoded
        """
        raw = self._backend.get(backend_key)
        if raw is None:
            return None
        try:
            return codec.decode(raw)
        except SerializationError as e:
            logger.warning(f"Discarding unreadable value at '{backend_key}': {e}")
            return None

    def _write(self, backend_key: str, value: Any) -> None:
        self._backend.set(backend_key, codec.encode(value))

    def _timestamp(self, key: str) -> Optional[float]:
        stamp = self._read(self._timestamp_key(key))
        # bool is an int, but never a valid timestamp
        if isinstance(stamp, bool) or not isinstance(stamp, (int, float)):
            return None
        return float(stamp)

    def _touch(self, key: str) -> None:
        self._write(self._timestamp_key(key), self._now())

    def expired(self, key: str, ttl: float = 0) -> bool:
        """
        Check if the value at key is stale for the given ttl
        A missing timestamp counts as expired
        """
        if math.isnan(ttl) or ttl <= 0:
            return True
        stamp = self._timestamp(key)
        if stamp is None:
            return True
        return self._now() - stamp >= ttl

    """
    -----------------------BASIC OPERATIONS-------------------------
    """
    def get(self, key: str) -> Optional[Any]:
        """
        - Get the value stored at key
        - Return None if key does not exist or its value is unreadable
        """
        return self._read(self._key(key))

    def set(self, key: str, value: Any) -> None:
        """
        - Set the value at key, overwriting any prior value
        - Setting None removes the key
        """
        if value is None:
            self.remove(key)
            return
        self._write(self._key(key), value)
        self._backend.remove(self._timestamp_key(key))

    def remove(self, key: str) -> None:
        """
        - Remove key and its timestamp
        - No-op if key does not exist
        """
        logger.debug(f"Removing key '{key}'")
        self._backend.remove(self._key(key))
        self._backend.remove(self._timestamp_key(key))

    """
    -----------------------EXPIRING UPDATES-------------------------
    """
    def update_object(self, key: str, value: Any, ttl: float = 0) -> bool:
        """
        - Store value at key if it differs from the stored one or the ttl elapsed
        - Return True if the value was written, False otherwise
        - ttl <= 0 or NaN means every call writes
        """
        codec.validate(value)
        if not self.expired(key, ttl) and codec.same(self.get(key), value):
            logger.debug(f"Key '{key}' is fresh and unchanged")
            return False

        self._write(self._key(key), value)
        self._touch(key)
        logger.debug(f"Key '{key}' updated")
        return True

    def update_dictionary(self, values: Dict[str, Any], key: str, ttl: float = 0) -> Dict[str, Any]:
        """
        - Merge values into the dictionary stored at key
        - Replace it entirely if the ttl elapsed or nothing usable is stored
        - Return the full resulting dictionary
        """
        if not isinstance(values, dict):
            raise InvalidValueError(values, "update_dictionary expects a dict")
        codec.validate(values)

        current = self.get(key)
        if self.expired(key, ttl) or not isinstance(current, dict):
            result = dict(values)
            self._write(self._key(key), result)
            self._touch(key)
            logger.debug(f"Dictionary '{key}' replaced with {len(result)} entries")
            return dict(result)

        # merge keeps the freshness window anchored to the first write
        current.update(values)
        self._write(self._key(key), current)
        logger.debug(f"Dictionary '{key}' merged {len(values)} entries")
        return dict(current)

    """
    -----------------------MIGRATION-------------------------
    """
    def migrate_keys(self, migrated_keys: Dict[str, str], service_name: str) -> None:
        """
        - Move values from old keys to new keys, once per service
        - Never overwrite a value already present at a new key
        """
        flag_key = self._key(service_name + MIGRATED_SUFFIX)
        if self._backend.contains(flag_key):
            logger.debug(f"Keys for service '{service_name}' already migrated")
            return

        moved = 0
        for old_key, new_key in migrated_keys.items():
            if old_key == new_key:
                logger.debug(f"Key '{old_key}' maps to itself, skipping")
                continue
            value = self.get(old_key)
            if value is None:
                if self._backend.contains(self._key(old_key)):
                    logger.warning(f"Dropping unreadable value at '{old_key}' instead of migrating it")
                    self.remove(old_key)
                else:
                    logger.debug(f"Nothing to migrate at '{old_key}'")
                continue
            if self._backend.contains(self._key(new_key)):
                logger.debug(f"Key '{new_key}' already set, keeping it")
            else:
                self.set(new_key, value)
                moved += 1
            self.remove(old_key)

        self._write(flag_key, True)
        logger.info(f"Migrated {moved} key(s) for service '{service_name}'")
