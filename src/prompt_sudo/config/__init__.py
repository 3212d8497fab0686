from .settings import CONFIG_PATH, DEFAULT_TIMEOUT, LoggingConfig, Settings, load_settings

__all__ = ["CONFIG_PATH", "DEFAULT_TIMEOUT", "LoggingConfig", "Settings", "load_settings"]
