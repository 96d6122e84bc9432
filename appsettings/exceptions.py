class SettingsException(Exception):
    """Base class for all settings store exceptions."""
    pass

class InvalidValueError(SettingsException, TypeError):
    """Raised when a value cannot be stored in the settings."""
    def __init__(self, value, message="Settings values must be str, int, float, bool or a dict of those"):
        self.value = value
        super().__init__(f"{message}, got {type(value).__name__}")

class SerializationError(SettingsException):
    """Raised when a stored value cannot be decoded."""
    pass

class BackendError(SettingsException):
    """Raised when the backend fails to persist a change."""
    def __init__(self, path, cause: Exception):
        self.path = path
        super().__init__(f"Failed to write settings to '{path}': {cause}")

class ConfigError(SettingsException):
    """Raised when the configuration is invalid."""
    pass
