"""Steps that produce and adjust install-config.yaml."""

import json
import os
from contextlib import suppress
from pathlib import Path
from typing import Any

import yaml

from sts_installer import console
from sts_installer.artifacts import OPENSHIFT_INSTALL, read_install_config
from sts_installer.exceptions import ArtifactError
from sts_installer.models import Configuration
from sts_installer.steps.base import Step

MANUAL_CREDENTIALS_MODE = "Manual"

# Defaults of the generated install-config
DEFAULT_REPLICAS = {"master": 3, "worker": 3}
CLUSTER_NETWORK = {"cidr": "10.128.0.0/14", "hostPrefix": 23}
MACHINE_NETWORK = {"cidr": "10.0.0.0/16"}
SERVICE_NETWORK = "172.30.0.0/16"


def _dump(doc: dict[str, Any]) -> str:
    return yaml.safe_dump(doc, sort_keys=False, default_flow_style=False)


def _machine_pool(name: str, instance_type: str) -> dict[str, Any]:
    return {
        "architecture": "amd64",
        "hyperthreading": "Enabled",
        "name": name,
        "platform": {"aws": {"type": instance_type}},
        "replicas": DEFAULT_REPLICAS[name],
    }


def generate_install_config(config: Configuration, *, ssh_key: str, pull_secret: str) -> dict[str, Any]:
    """Build a complete install-config document for an AWS cluster.

    Args:
        config: The installer configuration; region, base domain and
            cluster name must be set.
        ssh_key: Public SSH key content.
        pull_secret: Pull secret content (compact JSON).

    Returns:
        The install-config as a mapping, ready to be serialized.

    """
    return {
        "additionalTrustBundlePolicy": "Proxyonly",
        "apiVersion": "v1",
        "baseDomain": config.base_domain,
        "compute": [_machine_pool("worker", config.instance_type)],
        "controlPlane": _machine_pool("master", config.instance_type),
        "metadata": {"creationTimestamp": None, "name": config.cluster_name},
        "networking": {
            "clusterNetwork": [dict(CLUSTER_NETWORK)],
            "machineNetwork": [dict(MACHINE_NETWORK)],
            "networkType": "OVNKubernetes",
            "serviceNetwork": [SERVICE_NETWORK],
        },
        "platform": {"aws": {"region": config.aws_region, "vpc": {}}},
        "publish": "External",
        "pullSecret": pull_secret,
        "sshKey": ssh_key,
    }


def _ensure_instance_type(pool: Any, instance_type: str) -> bool:
    """Set ``platform.aws.type`` on a machine pool if it is absent or empty."""
    if not isinstance(pool, dict):
        return False

    if pool.get("platform") is None:
        pool["platform"] = {}
    platform = pool["platform"]
    if not isinstance(platform, dict):
        return False

    if platform.get("aws") is None:
        platform["aws"] = {}
    aws = platform["aws"]
    if not isinstance(aws, dict) or aws.get("type"):
        return False

    aws["type"] = instance_type
    return True


def apply_manual_credentials(doc: dict[str, Any], instance_type: str) -> bool:
    """Switch an install-config to manual credentials mode in place.

    ``credentialsMode`` and every pool's instance type are only set when
    absent; values already present are left untouched.

    Args:
        doc: Parsed install-config.
        instance_type: Instance type for pools that do not name one.

    Returns:
        True if the document was modified.

    """
    changed = False
    if not doc.get("credentialsMode"):
        doc["credentialsMode"] = MANUAL_CREDENTIALS_MODE
        changed = True

    if _ensure_instance_type(doc.get("controlPlane"), instance_type):
        changed = True

    compute = doc.get("compute")
    if isinstance(compute, list):
        for pool in compute:
            if _ensure_instance_type(pool, instance_type):
                changed = True

    return changed


def write_atomically(path: Path, content: str) -> None:
    """Replace a file's content through a temporary file in the same directory.

    Raises:
        ArtifactError: If the file cannot be written.

    """
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        tmp_path.write_text(content)
        tmp_path.replace(path)
    except OSError as err:
        with suppress(OSError):
            tmp_path.unlink()
        raise ArtifactError(f"Failed to write '{path}': {err.strerror}") from err


class CreateInstallConfig(Step):
    """Produce install-config.yaml in the cluster directory.

    The document is generated directly when the configuration carries
    everything it needs; otherwise openshift-install asks the operator.
    """

    number = 4
    name = "Create install-config.yaml"

    def _read_inputs(self) -> tuple[str, str]:
        ssh_key_path = Path(self.config.ssh_key_path).expanduser()
        try:
            ssh_key = ssh_key_path.read_text().strip()
            pull_secret = json.loads(self.pull_secret.read_text())
        except OSError as err:
            raise ArtifactError(f"Failed to read '{err.filename}': {err.strerror}") from err
        except json.JSONDecodeError as err:
            raise ArtifactError(f"Pull secret '{self.pull_secret}' is not valid JSON: {err}") from err
        return ssh_key, json.dumps(pull_secret, separators=(",", ":"))

    def execute(self) -> None:
        cluster_dir = self.ensure_dir(self.store.cluster_dir)

        missing = self.config.missing_install_config_fields()
        if missing:
            console.info(f"Missing {', '.join(missing)}; openshift-install will prompt for the cluster settings")
            console.step(f"Use {console.highlight(self.config.cluster_name)} as the cluster name")
            self.executor.run_interactive(
                [str(self.store.binary_path(OPENSHIFT_INSTALL)), "create", "install-config", "--dir", str(cluster_dir)]
            )
            return

        ssh_key, pull_secret = self._read_inputs()
        doc = generate_install_config(self.config, ssh_key=ssh_key, pull_secret=pull_secret)
        write_atomically(self.store.install_config, _dump(doc))
        with suppress(OSError):
            os.chmod(self.store.install_config, 0o600)
        console.step(f"Generated {console.highlight(str(self.store.install_config))}")


class SetCredentialsMode(Step):
    """Set ``credentialsMode: Manual`` and instance types in install-config.yaml."""

    number = 5
    name = "Set credentialsMode"

    def execute(self) -> None:
        path = self.store.install_config
        doc = read_install_config(path)
        if not apply_manual_credentials(doc, self.config.instance_type):
            console.step("install-config.yaml already uses manual credentials")
            return

        write_atomically(path, _dump(doc))
        console.step(f"Set credentialsMode to {MANUAL_CREDENTIALS_MODE} in {console.highlight(str(path))}")
