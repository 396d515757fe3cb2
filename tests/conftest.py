"""Shared test fixtures for openshift-sts-installer tests."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from sts_installer.artifacts import ArtifactStore
from sts_installer.executor import CommandExecutor
from sts_installer.models import Configuration

RELEASE_IMAGE = "quay.io/openshift-release-dev/ocp-release:4.12.0-x86_64"
CLUSTER_NAME = "test-cluster"


@pytest.fixture
def artifacts_root(tmp_path):
    """Root of an empty artifacts tree."""
    return tmp_path / "artifacts"


@pytest.fixture
def config():
    """Minimal valid configuration."""
    return Configuration(release_image=RELEASE_IMAGE, cluster_name=CLUSTER_NAME, aws_region="us-east-2")


@pytest.fixture
def store(artifacts_root):
    """Artifact store for the default release and cluster."""
    return ArtifactStore.for_release(RELEASE_IMAGE, CLUSTER_NAME, root=artifacts_root)


@pytest.fixture
def populate():
    """Create a file (and its parents) with some content."""

    def _populate(path: Path, content: str = "data") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _populate


@pytest.fixture
def mock_executor():
    """CommandExecutor double that records calls without running anything."""
    executor = MagicMock(spec=CommandExecutor)
    executor.run.return_value = ""
    return executor


@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for command execution."""
    with patch("subprocess.run") as mock:
        mock.return_value = MagicMock(returncode=0, stdout="", stderr="")
        yield mock


@pytest.fixture
def no_aws_credentials():
    """Make AWS profile resolution report unavailable credentials."""
    with patch("sts_installer.steps.base.credential_env", return_value=None) as mock:
        yield mock


@pytest.fixture
def sample_install_config():
    """install-config.yaml as written by openshift-install."""
    return """apiVersion: v1
baseDomain: example.com
compute:
- architecture: amd64
  hyperthreading: Enabled
  name: worker
  platform: {}
  replicas: 3
controlPlane:
  architecture: amd64
  hyperthreading: Enabled
  name: master
  platform:
    aws:
      type: m6i.xlarge
  replicas: 3
metadata:
  name: test-cluster
platform:
  aws:
    region: eu-west-1
publish: External
pullSecret: '{"auths":{}}'
"""
