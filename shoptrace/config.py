"""Configuration file access and typed engine settings."""

import configparser
import logging
import os
import platform
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from shoptrace.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

APP_NAME = "shoptrace"

_home = os.path.expanduser("~")

xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(_home, ".config")

if platform.system() == "Darwin":
    # macOS
    config_dir = Path("~/Library/Application Support/shoptrace").expanduser()
else:
    # Linux or others
    config_dir = Path(os.path.join(xdg_config_home, APP_NAME))


def get_config_file() -> Path:
    return config_dir / f"{APP_NAME}.cfg"


class ConfigAccessor:
    """
    A dict-like accessor for configuration files.

    Missing files, sections and keys are not errors: lookups fall back to
    the given default.

    Usage:
        config = ConfigAccessor()
        value = config.get('session', 'timeout_seconds', default='300')
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize a ConfigAccessor with an optional config file path.

        Args:
            config_path: Path to the configuration file. If None, uses the default path.
        """
        self.config_path = Path(config_path) if config_path else get_config_file()

        self.config = configparser.ConfigParser()
        if self.config_path.exists():
            try:
                self.config.read(self.config_path)
            except configparser.Error as e:
                raise ConfigurationError(str(e), source=str(self.config_path)) from e

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a configuration value from the specified section and key.

        Returns:
            The configuration value if it exists, otherwise the default value
        """
        try:
            return self.config[section][key]
        except (KeyError, configparser.NoSectionError, configparser.NoOptionError):
            return default

    def set(self, section: str, key: str, value: str) -> None:
        if not self.config.has_section(section):
            self.config.add_section(section)

        self.config[section][key] = value

    def save(self) -> None:
        """
        Save the current configuration to the config file.

        Fails gracefully if the file cannot be written (e.g., read-only filesystem).
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as configfile:
                self.config.write(configfile)
        except OSError as e:
            logger.warning(
                f"Could not save configuration to {self.config_path}: {e}. "
                "Configuration changes will not persist."
            )

    def sections(self) -> list:
        return self.config.sections()

    def options(self, section: str) -> list:
        """Options in a section, or an empty list if the section doesn't exist."""
        try:
            return self.config.options(section)
        except configparser.NoSectionError:
            return []


class ExporterEnum(str, Enum):
    """Where finished spans are written."""

    CONSOLE = "console"
    JSONL = "jsonl"
    MEMORY = "memory"
    NONE = "none"


class ProcessorEnum(str, Enum):
    """When finished spans are exported."""

    SIMPLE = "simple"
    BATCH = "batch"


class SessionSettings(BaseModel):
    timeout_seconds: float = Field(default=300.0, gt=0)


class TelemetrySettings(BaseModel):
    service_name: str = "ecommerce-poc"
    service_version: str = "1.0.0"
    environment: str = "development"
    app_name: str = "E-Commerce POC"
    exporter: ExporterEnum = ExporterEnum.CONSOLE
    output: Optional[Path] = None
    processor: ProcessorEnum = ProcessorEnum.SIMPLE
    max_queue_size: int = Field(default=2048, gt=0)

    @model_validator(mode="after")
    def validate_output(self) -> "TelemetrySettings":
        if self.output is not None and self.exporter not in (
            ExporterEnum.JSONL,
            ExporterEnum.CONSOLE,
        ):
            raise ValueError(
                f"output is only used by the console and jsonl exporters, not '{self.exporter.value}'"
            )
        return self


class StorefrontSettings(BaseModel):
    # Multiplier for the simulated network delays; 0 disables them
    latency_scale: float = Field(default=0.0, ge=0)
    cart_abandonment_seconds: float = Field(default=300.0, gt=0)
    catalog_failure_rate: float = Field(default=0.1, ge=0, le=1)
    payment_success_rate: float = Field(default=0.7, ge=0, le=1)


class EngineSettings(BaseModel):
    """All settings of a TelemetryEngine and the storefront around it."""

    session: SessionSettings = Field(default_factory=SessionSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)
    storefront: StorefrontSettings = Field(default_factory=StorefrontSettings)


_SECTIONS = {
    "session": SessionSettings,
    "telemetry": TelemetrySettings,
    "storefront": StorefrontSettings,
}


def load_settings(config_path: Optional[Path] = None, **overrides: Any) -> EngineSettings:
    """
    Build EngineSettings from a config file.

    Args:
        config_path: Config file to read; the default location if None.
        overrides: ``section={"key": value}`` mappings applied on top of the file.

    Raises:
        ConfigurationError: if a value fails validation.
    """
    accessor = ConfigAccessor(config_path)
    data: dict = {}
    for section, model in _SECTIONS.items():
        values = {
            key: accessor.get(section, key)
            for key in model.model_fields
            if accessor.get(section, key) is not None
        }
        values.update(overrides.get(section) or {})
        data[section] = values

    unknown = sorted(set(accessor.sections()) - set(_SECTIONS))
    if unknown:
        logger.warning(
            f"Ignoring unknown config section(s) in {accessor.config_path}: {', '.join(unknown)}"
        )

    try:
        return EngineSettings(**data)
    except ValidationError as e:
        raise ConfigurationError(str(e), source=str(accessor.config_path)) from e


def set_setting(
    section: str, key: str, value: str, config_path: Optional[Path] = None
) -> bool:
    """
    Validate one setting against the typed settings and write it to the config file.

    Returns:
        True if the key was already present in the file, False if it was added.

    Raises:
        ConfigurationError: for an unknown section or key, or an invalid value.
    """
    accessor = ConfigAccessor(config_path)
    source = str(accessor.config_path)

    model = _SECTIONS.get(section)
    if model is None:
        raise ConfigurationError(
            f"unknown section '{section}' (expected one of: {', '.join(_SECTIONS)})",
            source=source,
        )
    if key not in model.model_fields:
        raise ConfigurationError(
            f"unknown key '{key}' in [{section}] (expected one of: {', '.join(model.model_fields)})",
            source=source,
        )

    load_settings(accessor.config_path, **{section: {key: value}})

    existed = key in accessor.options(section)
    accessor.set(section, key, value)
    accessor.save()
    logger.debug(f"{'Updated' if existed else 'Added'} [{section}] {key} = {value} in {source}")
    return existed
