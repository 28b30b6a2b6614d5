"""
Configuration management for blobsas.

Configuration feeds the command-line interface only: default SAS settings,
logging, and account keys by account name. The signing and URL modules
never read configuration themselves; callers pass values explicitly.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

from blobsas.core.logging_config import REDACTED
from blobsas.sas.protocol import SASProtocol
from blobsas.sas.signer import DEFAULT_SAS_VERSION

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(BaseModel):
    """Where and how blobsas logs."""
    level: LogLevel = LogLevel.WARNING
    format: str = "text"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-logger levels, e.g. {'blobsas.sas.signer': 'DEBUG'}"
    )


class SASDefaults(BaseModel):
    """Defaults applied when a SAS is issued from the command line."""
    version: str = Field(
        default=DEFAULT_SAS_VERSION,
        description="Storage service version signed into 'sv'"
    )
    protocol: Optional[SASProtocol] = None
    expiry_minutes: int = Field(
        default=60,
        gt=0,
        description="Lifetime of a SAS when no explicit expiry is given"
    )

    @field_validator("version")
    @classmethod
    def validate_sas_version(cls, v: str) -> str:
        """Service versions are dates: YYYY-MM-DD."""
        parts = v.split("-")
        if [len(part) for part in parts] != [4, 2, 2] or not all(part.isdigit() for part in parts):
            raise ValueError("SAS version must be in format YYYY-MM-DD")
        return v


class BlobSASConfig(BaseModel):
    """Main blobsas configuration schema."""

    version: str = Field(default="0.1.0", description="Configuration schema version")

    sas: SASDefaults = Field(default_factory=SASDefaults)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    accounts: Dict[str, str] = Field(
        default_factory=dict,
        description="Account name to base64 account key"
    )

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        parts = v.split(".")
        if len(parts) != 3:
            raise ValueError("Version must be in format x.y.z")
        if not all(part.isdigit() for part in parts):
            raise ValueError("Version components must be numeric")
        return v

    model_config = ConfigDict(use_enum_values=True)


# Environment variable -> (section, key, transform)
ENV_SETTINGS: Dict[str, Tuple[str, str, Callable[[str], Any]]] = {
    "BLOBSAS_LOG_LEVEL": ("logging", "level", str.upper),
    "BLOBSAS_LOG_FILE": ("logging", "file", str),
    "BLOBSAS_SAS_VERSION": ("sas", "version", str),
    "BLOBSAS_SAS_PROTOCOL": ("sas", "protocol", str.lower),
}

FILE_LOADERS: Dict[str, Callable[[Any], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.load,
}


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; nested dicts merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """
    Loads and validates blobsas configuration.

    Sources, lowest precedence first:
    1. Defaults
    2. Configuration file (YAML/JSON)
    3. Environment variables (BLOBSAS_*)
    4. CLI overrides
    """

    def __init__(self):
        self._config: Optional[BlobSASConfig] = None
        self._config_file: Optional[Path] = None

    def load(
        self,
        config_file: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> BlobSASConfig:
        """
        Load configuration from every source and validate the result.

        Args:
            config_file: YAML or JSON file
            cli_overrides: Nested dict of values given on the command line

        Returns:
            Validated BlobSASConfig

        Raises:
            ValidationError: If the merged configuration is invalid
            FileNotFoundError: If ``config_file`` does not exist
            ValueError: If ``config_file`` has an unsupported extension
            yaml.YAMLError: If ``config_file`` is not valid YAML
        """
        layers = []
        if config_file:
            self._config_file = Path(config_file)
            layers.append(("file", self._read_file(self._config_file)))
        layers.append(("environment", self._read_env()))
        layers.append(("cli", cli_overrides or {}))

        merged: Dict[str, Any] = {}
        for source, values in layers:
            if values:
                logger.debug(f"Applying {source} configuration: {sorted(values)}")
                merged = deep_merge(merged, values)

        try:
            self._config = BlobSASConfig(**merged)
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

        logger.debug(f"Active configuration: {json.dumps(self.redacted(), indent=2)}")
        return self._config

    @staticmethod
    def _read_file(path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        loader = FILE_LOADERS.get(path.suffix.lower())
        if loader is None:
            raise ValueError(f"Unsupported config file format: {path.suffix}")
        with open(path, "r", encoding="utf-8") as f:
            return loader(f) or {}

    @staticmethod
    def _read_env() -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for name, (section, key, transform) in ENV_SETTINGS.items():
            raw = os.getenv(name)
            if raw:
                values.setdefault(section, {})[key] = transform(raw)

        # an account key is only useful together with its account name
        account_name = os.getenv("BLOBSAS_ACCOUNT_NAME")
        account_key = os.getenv("BLOBSAS_ACCOUNT_KEY")
        if account_name and account_key:
            values["accounts"] = {account_name: account_key}
        elif account_name or account_key:
            logger.warning("BLOBSAS_ACCOUNT_NAME and BLOBSAS_ACCOUNT_KEY must be set together; ignoring")
        return values

    def get_config(self) -> BlobSASConfig:
        """
        The configuration from the last ``load()``.

        Raises:
            RuntimeError: If nothing has been loaded yet
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def get_account_key(self, account_name: str) -> Optional[str]:
        """Account key configured for ``account_name``, or None."""
        return self.get_config().accounts.get(account_name)

    def redacted(self) -> Dict[str, Any]:
        """The loaded configuration as plain data, with account keys masked."""
        data = self.get_config().model_dump(mode="json")
        data["accounts"] = dict.fromkeys(data["accounts"], REDACTED)
        return data

    def reload(self) -> BlobSASConfig:
        """Load again from the same file (and the current environment)."""
        return self.load(config_file=str(self._config_file) if self._config_file else None)
