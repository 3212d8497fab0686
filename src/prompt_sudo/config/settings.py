"""
Pydantic Settings Configuration
===============================

Type-safe configuration for prompt-sudo, validated at startup so the tool
fails fast with a clear message before any network activity.

The config file lives at a fixed path. It is deliberately not settable from
the command line or the environment: whoever may run the tool must not be
able to point it at an approver list of their own.
"""

from pathlib import Path
from typing import List, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from prompt_sudo.core.exceptions import ConfigurationError, ErrorCode

CONFIG_PATH = Path("/etc/prompt-sudo/config.yaml")

DEFAULT_TIMEOUT = 300

_CHANGEME_PREFIXES = ("changeme", "change-me", "your_", "your-", "placeholder")


def _is_placeholder(value: str) -> bool:
    """Return True if value looks like an unfilled template placeholder."""
    v = value.lower()
    return any(v.startswith(p) or p in v for p in _CHANGEME_PREFIXES)


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = Field("WARNING", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: Literal["json", "text"] = Field("json", description="Log format (json, text)")

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(sorted(valid_levels))}")
        return v_upper

    model_config = ConfigDict(extra='forbid')


class Settings(BaseModel):
    """
    prompt-sudo settings.

    Example ``/etc/prompt-sudo/config.yaml``::

        bot_token: "123456:ABC-DEF..."
        approver_ids: [111111111, 222222222]
        timeout_seconds: 300
        approval_mode: buttons
        logging:
          level: WARNING
          format: json

    The file may also be plain JSON, which YAML accepts.
    """

    bot_token: str = Field(..., description="Telegram bot token from BotFather")
    approver_ids: List[str] = Field(..., description="User IDs allowed to approve or deny")
    timeout_seconds: int = Field(DEFAULT_TIMEOUT, description="Seconds to wait for a decision")
    approval_mode: Literal["buttons", "reactions"] = Field(
        "buttons", description="Approve via inline buttons or emoji reactions"
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra='forbid', frozen=True)

    @field_validator('bot_token')
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Validate bot token format"""
        v = v.strip()
        if not v:
            raise ValueError("bot_token is required")
        if _is_placeholder(v):
            raise ValueError(
                "bot_token is still set to a placeholder value. "
                "Set a real token from @BotFather."
            )
        if ':' not in v:
            raise ValueError("bot_token must be in format: 123456:ABC-DEF...")
        return v

    @field_validator('approver_ids', mode='before')
    @classmethod
    def coerce_approver_ids(cls, v):
        """Accept numeric IDs as written in YAML; compare as strings."""
        if isinstance(v, (list, tuple)):
            return [str(item).strip() for item in v]
        return v

    @field_validator('approver_ids')
    @classmethod
    def validate_approver_ids(cls, v: List[str]) -> List[str]:
        ids = [item for item in v if item]
        if not ids:
            raise ValueError("approver_ids is required")
        return ids

    @field_validator('timeout_seconds', mode='before')
    @classmethod
    def default_timeout(cls, v):
        """Missing or non-positive timeouts fall back to the default."""
        if v is None:
            return DEFAULT_TIMEOUT
        if isinstance(v, int) and not isinstance(v, bool) and v <= 0:
            return DEFAULT_TIMEOUT
        return v

    @property
    def approvers(self) -> frozenset[str]:
        return frozenset(self.approver_ids)


def load_settings(config_path: str | Path = CONFIG_PATH) -> Settings:
    """
    Load and validate settings from the config file.

    Args:
        config_path: Path to the YAML (or JSON) config file

    Returns:
        Validated Settings instance

    Raises:
        ConfigurationError: If the file is missing, unreadable, unparsable,
            or fails validation
    """
    config_path = Path(config_path)
    try:
        with open(config_path, encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(
            f"failed to read config: {e}",
            details={"path": str(config_path)},
            error_code=ErrorCode.CONFIG_UNREADABLE,
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"failed to parse config: {e}", details={"path": str(config_path)}
        ) from e

    if not isinstance(config_data, dict):
        raise ConfigurationError(
            "failed to parse config: top level must be a mapping",
            details={"path": str(config_path)},
        )

    try:
        return Settings(**config_data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(
            f"invalid config: {problems}", details={"path": str(config_path)}
        ) from e
