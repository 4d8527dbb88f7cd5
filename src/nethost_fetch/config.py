"""
Resolver configuration.

All build-time state the pipeline needs (output directory, registry URL,
feature flags) is gathered into a single ``ResolverConfig`` that is passed to
the resolver entry point. Values are read from, in order of precedence:
explicit overrides, environment variables, a YAML config file, defaults.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping, Optional

import platformdirs
import yaml

from nethost_fetch.constants import (
    ALLOWED_EXTENSIONS,
    BUILD_OUT_DIR_ENV_VAR,
    CONFIG_DIR_NAME,
    CONFIG_FILE_NAME,
    DOWNLOAD_ENV_VAR,
    LIBRARY_NAME,
    LOG_LEVEL_ENV_VAR,
    NUGET_SERVICE_INDEX_URL,
    OUT_DIR_ENV_VAR,
    PACKAGE_ID_TEMPLATE,
    REGISTRATIONS_RESOURCE_TYPE,
    SERVICE_INDEX_ENV_VAR,
    TIMEOUT_ENV_VAR,
)
from nethost_fetch.exceptions import ConfigurationError
from nethost_fetch.log_utils import logger

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

# YAML key -> ResolverConfig field
_FILE_KEYS = {
    "OUT_DIR": "out_dir",
    "SERVICE_INDEX_URL": "service_index_url",
    "REGISTRATION_RESOURCE_TYPE": "registration_resource_type",
    "PACKAGE_ID_TEMPLATE": "package_id_template",
    "LIBRARY_NAME": "library_name",
    "ALLOWED_EXTENSIONS": "allowed_extensions",
    "REQUEST_TIMEOUT": "request_timeout",
    "DOWNLOAD_ENABLED": "download_enabled",
    "LOG_LEVEL": "log_level",
    "LOG_DIR": "log_dir",
}


def get_default_config_file() -> Path:
    """Return the platformdirs-managed location of the YAML config file."""
    return Path(platformdirs.user_config_dir(CONFIG_DIR_NAME)) / CONFIG_FILE_NAME


@dataclass(frozen=True)
class ResolverConfig:
    """
    Configuration for a single resolver run.

    Attributes:
        out_dir: Build output directory; artifacts land in ``out_dir/nethost/<target>``.
        service_index_url: Well-known registry service index document.
        registration_resource_type: Resource ``@type`` naming the registration service.
        package_id_template: Package id, formatted with ``target``.
        library_name: Substring an extracted file's stem must contain.
        allowed_extensions: File extensions (without dot) that may be extracted.
        request_timeout: Seconds per HTTP request; None leaves the transport default.
        download_enabled: When False the resolver never touches the network.
        log_level: Optional log level applied by the CLI.
        log_dir: Optional directory for rotating file logs.
    """

    out_dir: Path
    service_index_url: str = NUGET_SERVICE_INDEX_URL
    registration_resource_type: str = REGISTRATIONS_RESOURCE_TYPE
    package_id_template: str = PACKAGE_ID_TEMPLATE
    library_name: str = LIBRARY_NAME
    allowed_extensions: FrozenSet[str] = field(default=ALLOWED_EXTENSIONS)
    request_timeout: Optional[float] = None
    download_enabled: bool = True
    log_level: Optional[str] = None
    log_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        # Normalise loosely typed values from YAML/env into their field types
        object.__setattr__(self, "out_dir", Path(self.out_dir))
        if self.log_dir is not None:
            object.__setattr__(self, "log_dir", Path(self.log_dir))
        extensions = self.allowed_extensions
        if isinstance(extensions, str):
            extensions = extensions.split(",")
        object.__setattr__(
            self,
            "allowed_extensions",
            frozenset(
                str(ext).strip().lower().lstrip(".") for ext in extensions if str(ext).strip()
            ),
        )
        if self.request_timeout is not None:
            object.__setattr__(
                self, "request_timeout", _parse_timeout(self.request_timeout)
            )
        object.__setattr__(
            self, "download_enabled", _parse_bool(self.download_enabled, "download_enabled")
        )

    def package_id(self, target: str) -> str:
        return self.package_id_template.format(target=target)

    def with_overrides(self, **overrides: Any) -> "ResolverConfig":
        """Return a copy with every non-None override applied."""
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values) if values else self


def _parse_timeout(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Invalid request timeout: {value!r}", details="expected a number of seconds"
        ) from None
    if timeout <= 0:
        raise ConfigurationError(
            f"Invalid request timeout: {value!r}", details="must be greater than zero"
        )
    return timeout


def _parse_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {name}: {value!r}")


def load_config_file(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load resolver settings from a YAML file.

    Parameters:
        path: Explicit config file. When omitted the platformdirs location is used
            and a missing file yields an empty mapping.

    Returns:
        Dict[str, Any]: ResolverConfig field names mapped to values.

    Raises:
        ConfigurationError: If an explicit file is missing, unreadable, not valid
            YAML, or not a mapping.
    """
    explicit = path is not None
    config_path = Path(path) if explicit else get_default_config_file()

    if not config_path.exists():
        if explicit:
            raise ConfigurationError(f"Config file not found: {config_path}")
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Could not read config file {config_path}", details=str(e)
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping",
            details=f"got {type(data).__name__}",
        )

    values: Dict[str, Any] = {}
    for key, value in data.items():
        field_name = _FILE_KEYS.get(str(key).upper())
        if field_name is None:
            logger.warning(f"Ignoring unknown config key '{key}' in {config_path}")
            continue
        values[field_name] = value
    logger.debug(f"Loaded {len(values)} setting(s) from {config_path}")
    return values


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect ResolverConfig field values from environment variables."""
    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    out_dir = env.get(OUT_DIR_ENV_VAR) or env.get(BUILD_OUT_DIR_ENV_VAR)
    if out_dir:
        values["out_dir"] = out_dir
    if env.get(SERVICE_INDEX_ENV_VAR):
        values["service_index_url"] = env[SERVICE_INDEX_ENV_VAR]
    if env.get(TIMEOUT_ENV_VAR):
        values["request_timeout"] = env[TIMEOUT_ENV_VAR]
    if env.get(DOWNLOAD_ENV_VAR):
        values["download_enabled"] = env[DOWNLOAD_ENV_VAR]
    if env.get(LOG_LEVEL_ENV_VAR):
        values["log_level"] = env[LOG_LEVEL_ENV_VAR]
    return values


def load_config(
    config_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> ResolverConfig:
    """
    Build a ResolverConfig from file, environment and explicit overrides.

    Overrides whose value is None are ignored so CLI flags that were not given
    fall through to lower-precedence sources.

    Raises:
        ConfigurationError: If no output directory is configured or a value is invalid.
    """
    values = load_config_file(config_file)
    values.update(config_from_env(environ))
    values.update({key: value for key, value in overrides.items() if value is not None})

    if not values.get("out_dir"):
        raise ConfigurationError(
            "No output directory configured",
            details=f"pass --out-dir or set {OUT_DIR_ENV_VAR} / {BUILD_OUT_DIR_ENV_VAR}",
        )

    try:
        return ResolverConfig(**values)
    except TypeError as e:
        raise ConfigurationError("Invalid configuration", details=str(e)) from e
