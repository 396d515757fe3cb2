"""Data models for openshift-sts-installer.

This module provides type-safe data structures for the application:
the merged installer configuration, the outcome records produced by
the step pipeline and the small JSON records persisted next to each
cluster's artifacts.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_AWS_PROFILE = "default"
DEFAULT_PULL_SECRET_PATH = "pull-secret.json"
DEFAULT_INSTANCE_TYPE = "m5.4xlarge"


@dataclass(frozen=True, slots=True)
class Configuration:
    """Installer configuration, immutable once merged.

    Attributes:
        release_image: OpenShift release image reference.
        cluster_name: Name of the cluster; also the cluster artifact directory.
        aws_region: AWS region; may be derived from install-config.yaml later.
        base_domain: Base DNS domain of the cluster.
        ssh_key_path: Path to the public SSH key placed on the nodes.
        aws_profile: AWS profile used to resolve credentials.
        pull_secret_path: Path to the registry pull secret.
        instance_type: EC2 instance type for control plane and compute pools.
        private_bucket: Create a private S3 bucket fronted by CloudFront.
        start_from_step: Resume point; steps below it are skipped (0 disables).
        confirm_each_step: Ask the operator before executing each step.

    """

    release_image: str
    cluster_name: str
    aws_region: str = ""
    base_domain: str = ""
    ssh_key_path: str = ""
    aws_profile: str = DEFAULT_AWS_PROFILE
    pull_secret_path: str = DEFAULT_PULL_SECRET_PATH
    instance_type: str = DEFAULT_INSTANCE_TYPE
    private_bucket: bool = False
    start_from_step: int = 0
    confirm_each_step: bool = False

    def missing_install_config_fields(self) -> list[str]:
        """Return the fields needed to write install-config.yaml without prompts."""
        required = {
            "aws_region": self.aws_region,
            "base_domain": self.base_domain,
            "ssh_key_path": self.ssh_key_path,
            "pull_secret_path": self.pull_secret_path,
        }
        return [name for name, value in required.items() if not value]


class StepStatus(str, Enum):
    """Outcome of a single pipeline step.

    Inherits from str to allow direct use in string contexts
    (e.g., summary tables).
    """

    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SkipReason(str, Enum):
    """Why a step was skipped."""

    ALREADY_COMPLETED = "already completed"
    OPERATOR_DECLINED = "user choice"


class StepEvent(str, Enum):
    """Lifecycle events emitted by the pipeline for each step."""

    SKIPPED = "skipped"
    DECLINED = "declined"
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class StepRecord:
    """Outcome of one executed or skipped step.

    Attributes:
        number: Position of the step in the catalog (1-based).
        name: Human-readable step name.
        status: Final status of the step.
        skip_reason: Set when the step was skipped.
        error: Error detail when the step failed.

    """

    number: int
    name: str
    status: StepStatus
    skip_reason: SkipReason | None = None
    error: str | None = None


@dataclass
class Summary:
    """Ordered collection of step records produced by one pipeline run."""

    records: list[StepRecord] = field(default_factory=list)

    def add(self, record: StepRecord) -> None:
        self.records.append(record)

    @property
    def has_failures(self) -> bool:
        return any(r.status is StepStatus.FAILED for r in self.records)

    @property
    def succeeded(self) -> list[StepRecord]:
        return [r for r in self.records if r.status is StepStatus.SUCCEEDED]

    @property
    def skipped(self) -> list[StepRecord]:
        return [r for r in self.records if r.status is StepStatus.SKIPPED]

    @property
    def failed(self) -> list[StepRecord]:
        return [r for r in self.records if r.status is StepStatus.FAILED]


@dataclass(frozen=True, slots=True)
class InstallMetadata:
    """Installation facts persisted to install-metadata.json."""

    release_image: str

    def to_dict(self) -> dict[str, Any]:
        return {"releaseImage": self.release_image}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InstallMetadata":
        return cls(release_image=str(data.get("releaseImage", "")))


@dataclass(frozen=True, slots=True)
class ClusterMetadata:
    """Cluster facts written by openshift-install to metadata.json."""

    cluster_name: str
    cluster_id: str = ""
    infra_id: str = ""
    region: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClusterMetadata":
        aws = data.get("aws") or {}
        return cls(
            cluster_name=str(data.get("clusterName", "")),
            cluster_id=str(data.get("clusterID", "")),
            infra_id=str(data.get("infraID", "")),
            region=str(aws.get("region", "")) if isinstance(aws, dict) else "",
        )
