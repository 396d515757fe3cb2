"""Artifact layout and filesystem predicates.

Artifacts live under a single root directory (``./artifacts`` by default)
split into two families:

- ``shared/<versionArch>/`` holds binaries and credentials requests that are
  reusable by every cluster installed from the same release.
- ``clusters/<clusterName>/`` holds everything owned by one installation:
  install-config.yaml, generated manifests, TLS material, kubeconfig and the
  JSON metadata records.

The predicates in this module never raise: an unreadable path is reported
as missing so that the completion detector treats it as incomplete.
"""

import json
import re
from pathlib import Path
from typing import Any

import yaml
from icecream import ic

from sts_installer.exceptions import ArtifactError, ConfigurationError, MetadataError
from sts_installer.models import ClusterMetadata, InstallMetadata

DEFAULT_ARTIFACTS_ROOT = Path("artifacts")

INSTALL_CONFIG_NAME = "install-config.yaml"
INSTALL_METADATA_NAME = "install-metadata.json"
CLUSTER_METADATA_NAME = "metadata.json"
INSTALLER_STATE_NAME = ".openshift_install_state.json"
STAGING_DIR_NAME = "ccoctl-output"

OPENSHIFT_INSTALL = "openshift-install"
CCOCTL = "ccoctl"

# A path segment made only of safe characters
_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


def _validate_segment(value: str, what: str) -> str:
    if not value or value in (".", "..") or not _SEGMENT_PATTERN.match(value):
        raise ConfigurationError(f"Invalid {what} '{value}': not usable as a directory name")
    return value


def parse_version_arch(release_image: str) -> str:
    """Derive the version/architecture key from a release image reference.

    The key is the image tag, e.g. ``quay.io/openshift-release-dev/ocp-release:4.12.0-x86_64``
    yields ``4.12.0-x86_64``.

    Args:
        release_image: The release image reference.

    Returns:
        The version/architecture key.

    Raises:
        ConfigurationError: If the reference has no tag, is pinned by digest,
            or the tag cannot be used as a directory name.

    """
    if not release_image:
        raise ConfigurationError("Release image cannot be empty")
    if "@" in release_image:
        raise ConfigurationError(
            f"Release image '{release_image}' is pinned by digest; a tagged reference is required"
        )

    # The registry host may carry a port, so only look at the last path component
    last_component = release_image.rsplit("/", 1)[-1]
    if ":" not in last_component:
        raise ConfigurationError(f"Release image '{release_image}' has no version tag")

    tag = last_component.rsplit(":", 1)[1]
    return _validate_segment(tag, "release image tag")


def dir_has_files(path: Path) -> bool:
    """Check if a directory exists and contains at least one entry."""
    try:
        return path.is_dir() and any(path.iterdir())
    except OSError:
        return False


def file_exists(path: Path) -> bool:
    """Check if a regular file exists."""
    try:
        return path.is_file()
    except OSError:
        return False


def file_contains(path: Path, needle: str) -> bool:
    """Check if a file exists and contains the given substring."""
    if not needle:
        return False
    try:
        return needle in path.read_text()
    except (OSError, UnicodeDecodeError):
        return False


class ArtifactStore:
    """Resolves artifact paths for one release and one cluster.

    Attributes:
        root: Root of the artifacts tree.
        version_arch: Version/architecture key of the release.
        cluster_name: Name of the cluster being installed.

    """

    def __init__(self, *, version_arch: str, cluster_name: str, root: Path = DEFAULT_ARTIFACTS_ROOT) -> None:
        self.root: Path = Path(root)
        self.version_arch: str = _validate_segment(version_arch, "version/architecture key")
        self.cluster_name: str = _validate_segment(cluster_name, "cluster name")

    @classmethod
    def for_release(cls, release_image: str, cluster_name: str, root: Path = DEFAULT_ARTIFACTS_ROOT) -> "ArtifactStore":
        """Build a store from a release image reference.

        Raises:
            ConfigurationError: If the release image cannot be parsed.

        """
        return cls(version_arch=parse_version_arch(release_image), cluster_name=cluster_name, root=root)

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return (
            f"ArtifactStore(root={self.root!r}, version_arch={self.version_arch!r}, "
            f"cluster_name={self.cluster_name!r})"
        )

    # Shared, version-scoped paths

    @property
    def shared_dir(self) -> Path:
        return self.root / "shared" / self.version_arch

    @property
    def bin_dir(self) -> Path:
        return self.shared_dir / "bin"

    @property
    def credreqs_dir(self) -> Path:
        return self.shared_dir / "credreqs"

    def binary_path(self, name: str) -> Path:
        return self.bin_dir / name

    # Cluster-scoped paths

    @property
    def cluster_dir(self) -> Path:
        return self.root / "clusters" / self.cluster_name

    @property
    def install_config(self) -> Path:
        return self.cluster_dir / INSTALL_CONFIG_NAME

    @property
    def install_config_backup(self) -> Path:
        return self.cluster_dir / f"{INSTALL_CONFIG_NAME}.backup"

    @property
    def staging_dir(self) -> Path:
        return self.cluster_dir / STAGING_DIR_NAME

    @property
    def staging_manifests_dir(self) -> Path:
        return self.staging_dir / "manifests"

    @property
    def staging_tls_dir(self) -> Path:
        return self.staging_dir / "tls"

    @property
    def manifests_dir(self) -> Path:
        return self.cluster_dir / "manifests"

    @property
    def tls_dir(self) -> Path:
        return self.cluster_dir / "tls"

    @property
    def kubeconfig(self) -> Path:
        return self.cluster_dir / "auth" / "kubeconfig"

    @property
    def installer_state(self) -> Path:
        return self.cluster_dir / INSTALLER_STATE_NAME

    @property
    def cluster_metadata_path(self) -> Path:
        return self.cluster_dir / CLUSTER_METADATA_NAME

    @property
    def install_metadata_path(self) -> Path:
        return self.cluster_dir / INSTALL_METADATA_NAME


def write_install_metadata(store: ArtifactStore, metadata: InstallMetadata) -> Path:
    """Persist install-metadata.json into the cluster directory.

    Returns:
        The path of the written file.

    Raises:
        ArtifactError: If the file cannot be written.

    """
    path = store.install_metadata_path
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(metadata.to_dict(), indent=2))
    except OSError as err:
        raise ArtifactError(f"Cannot write install metadata to '{path}': {err.strerror}") from err
    return path


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text())
    except FileNotFoundError as err:
        raise MetadataError(f"{path.name} not found at {path}") from err
    except OSError as err:
        raise MetadataError(f"Failed to read {path}: {err.strerror}") from err
    except json.JSONDecodeError as err:
        raise MetadataError(f"Failed to parse {path}: {err}") from err
    if not isinstance(data, dict):
        raise MetadataError(f"{path} does not contain a JSON object")
    return data


def read_install_metadata(cluster_dir: Path) -> InstallMetadata:
    """Read install-metadata.json from a cluster directory.

    Raises:
        MetadataError: If the record is missing or malformed.

    """
    metadata = InstallMetadata.from_dict(_read_json(Path(cluster_dir) / INSTALL_METADATA_NAME))
    if not metadata.release_image:
        raise MetadataError(f"No release image recorded in {Path(cluster_dir) / INSTALL_METADATA_NAME}")
    return metadata


def read_cluster_metadata(cluster_dir: Path) -> ClusterMetadata:
    """Read metadata.json (written by openshift-install) from a cluster directory.

    Raises:
        MetadataError: If the record is missing or malformed.

    """
    return ClusterMetadata.from_dict(_read_json(Path(cluster_dir) / CLUSTER_METADATA_NAME))


def read_install_config(path: Path) -> dict[str, Any]:
    """Parse an install-config.yaml document.

    Raises:
        ArtifactError: If the file cannot be read, is not valid YAML,
            or is not a YAML mapping.

    """
    try:
        with open(path) as stream:
            doc = yaml.safe_load(stream)
    except FileNotFoundError as err:
        raise ArtifactError(f"install-config file '{path}' does not exist") from err
    except OSError as err:
        raise ArtifactError(f"Failed to read '{path}': {err.strerror}") from err
    except yaml.YAMLError as err:
        raise ArtifactError(f"install-config file '{path}' contains malformed YAML: {err}") from err

    if not isinstance(doc, dict):
        raise ArtifactError(f"install-config file '{path}' does not contain a YAML mapping")
    return doc


def region_from_install_config(store: ArtifactStore) -> str:
    """Find the AWS region recorded in the cluster's install-config.

    openshift-install consumes install-config.yaml when it creates the
    manifests, so the backup copy is consulted as well.

    Returns:
        The region, or an empty string if no readable config names one.

    """
    for candidate in (store.install_config, store.install_config_backup):
        if not file_exists(candidate):
            continue
        try:
            doc = read_install_config(candidate)
        except ArtifactError as exc:
            ic(exc)
            continue
        platform = doc.get("platform") or {}
        aws = platform.get("aws") if isinstance(platform, dict) else None
        region = aws.get("region") if isinstance(aws, dict) else None
        if region:
            return str(region)
    return ""
