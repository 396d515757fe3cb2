"""Configuration loading and validation.

Settings are merged from three sources, later ones winning:

1. environment variables (``OPENSHIFT_STS_*``),
2. the YAML config file (``openshift-sts-installer.yaml`` by default),
3. command-line flags.

Anything still unset falls back to the defaults in ``models``. The cluster
name is only ever taken from the command line.
"""

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from icecream import ic

from sts_installer.artifacts import parse_version_arch
from sts_installer.exceptions import ConfigurationError
from sts_installer.models import Configuration
from sts_installer.steps import STEP_CATALOG

CONFIG_FILE_NAME = "openshift-sts-installer.yaml"
ENV_PREFIX = "OPENSHIFT_STS_"

# Environment variable suffix -> Configuration field
_ENV_KEYS = {
    "RELEASE_IMAGE": "release_image",
    "AWS_REGION": "aws_region",
    "BASE_DOMAIN": "base_domain",
    "SSH_KEY_PATH": "ssh_key_path",
    "AWS_PROFILE": "aws_profile",
    "PULL_SECRET_PATH": "pull_secret_path",
    "PRIVATE_BUCKET": "private_bucket",
    "CONFIRM_EACH_STEP": "confirm_each_step",
    "INSTANCE_TYPE": "instance_type",
}

# Config file key -> Configuration field
_FILE_KEYS = {
    "releaseImage": "release_image",
    "awsRegion": "aws_region",
    "baseDomain": "base_domain",
    "sshKeyPath": "ssh_key_path",
    "awsProfile": "aws_profile",
    "pullSecretPath": "pull_secret_path",
    "privateBucket": "private_bucket",
    "startFromStep": "start_from_step",
    "confirmEachStep": "confirm_each_step",
    "instanceType": "instance_type",
}

_BOOL_FIELDS = frozenset({"private_bucket", "confirm_each_step"})
_INT_FIELDS = frozenset({"start_from_step"})

# OpenShift cluster names are DNS labels (RFC 1123)
_DNS_LABEL_MAX_LENGTH = 63
_DNS_LABEL_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"


def validate_cluster_name(name: str) -> bool | str:
    """Validate a cluster name (DNS label).

    Args:
        name: The name to validate.

    Returns:
        True if valid, or an error message string if invalid.

    """
    if not name:
        return "Cluster name cannot be empty"
    if len(name) > _DNS_LABEL_MAX_LENGTH:
        return f"Cluster name must be {_DNS_LABEL_MAX_LENGTH} characters or less"
    if not re.match(_DNS_LABEL_PATTERN, name):
        return (
            "Cluster name must consist of lowercase alphanumeric characters or '-', "
            "and must start and end with an alphanumeric character"
        )
    return True


def settings_from_env(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect settings from ``OPENSHIFT_STS_*`` environment variables.

    Boolean variables are enabled only by the exact value ``true``.
    """
    settings: dict[str, Any] = {}
    for suffix, field_name in _ENV_KEYS.items():
        value = environ.get(f"{ENV_PREFIX}{suffix}")
        if not value:
            continue
        settings[field_name] = value == "true" if field_name in _BOOL_FIELDS else value
    return settings


def _coerce(key: str, field_name: str, value: Any, path: Path) -> Any:
    if field_name in _BOOL_FIELDS:
        if not isinstance(value, bool):
            raise ConfigurationError(f"'{key}' in {path} must be true or false")
        return value
    if field_name in _INT_FIELDS:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigurationError(f"'{key}' in {path} must be an integer")
        return value
    if not isinstance(value, str | int | float):
        raise ConfigurationError(f"'{key}' in {path} must be a string")
    return str(value)


def settings_from_file(path: Path, *, required: bool = False) -> dict[str, Any]:
    """Read settings from a YAML config file.

    Args:
        path: Location of the config file.
        required: Whether a missing file is an error.

    Returns:
        Settings keyed by Configuration field name.

    Raises:
        ConfigurationError: If the file is required but missing, cannot be
            read or parsed, or holds values of the wrong type.

    """
    try:
        with open(path) as stream:
            data = yaml.safe_load(stream)
    except FileNotFoundError as err:
        if required:
            raise ConfigurationError(f"Config file '{path}' does not exist") from err
        return {}
    except OSError as err:
        raise ConfigurationError(f"Failed to read config file '{path}': {err.strerror}") from err
    except yaml.YAMLError as err:
        raise ConfigurationError(f"Config file '{path}' contains malformed YAML: {err}") from err

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file '{path}' does not contain a YAML mapping")

    settings: dict[str, Any] = {}
    for key, value in data.items():
        field_name = _FILE_KEYS.get(key)
        if field_name is None:
            ic(f"Ignoring unknown config key '{key}'")
            continue
        if value is None:
            continue
        settings[field_name] = _coerce(key, field_name, value, path)
    return settings


def validate_configuration(config: Configuration) -> None:
    """Check the invariants the pipeline relies on.

    Raises:
        ConfigurationError: If a required value is missing or invalid.

    """
    if not config.release_image:
        raise ConfigurationError(
            f"Release image is required (--release-image, releaseImage or {ENV_PREFIX}RELEASE_IMAGE)"
        )
    if not config.cluster_name:
        raise ConfigurationError("Cluster name is required (--cluster-name)")

    valid = validate_cluster_name(config.cluster_name)
    if valid is not True:
        raise ConfigurationError(f"Invalid cluster name '{config.cluster_name}': {valid}")

    parse_version_arch(config.release_image)

    if not 0 <= config.start_from_step <= len(STEP_CATALOG):
        raise ConfigurationError(f"Start step must be between 1 and {len(STEP_CATALOG)} (0 disables it)")


def load_configuration(
    flags: Mapping[str, Any],
    *,
    config_file: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Configuration:
    """Merge all configuration sources into a validated Configuration.

    Args:
        flags: Values given on the command line; None means "not given".
        config_file: Explicit config file; the default file is optional.
        environ: Environment to read; empty when None.

    Returns:
        The merged, validated configuration.

    Raises:
        ConfigurationError: If a source is unreadable or the result is invalid.

    """
    settings = settings_from_env(environ or {})
    ic(settings)

    path = config_file if config_file is not None else Path(CONFIG_FILE_NAME)
    settings.update(settings_from_file(path, required=config_file is not None))

    # The cluster name is never inherited from the environment or a file
    settings.pop("cluster_name", None)
    settings.update({key: value for key, value in flags.items() if value is not None})
    settings.setdefault("release_image", "")
    settings.setdefault("cluster_name", "")
    ic(settings)

    config = Configuration(**settings)
    validate_configuration(config)
    return config
