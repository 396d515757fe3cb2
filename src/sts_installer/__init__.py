"""openshift-sts-installer: resumable OpenShift on AWS installs with STS.

This package drives oc, openshift-install and ccoctl through an ordered
pipeline of steps. Every step detects its own output on disk, so an
interrupted installation can be restarted and only the missing work runs.

Example usage:
    from sts_installer import CommandExecutor, Configuration, StepPipeline

    config = Configuration(
        release_image="quay.io/openshift-release-dev/ocp-release:4.12.0-x86_64",
        cluster_name="my-cluster",
        aws_region="us-east-2",
    )
    summary = StepPipeline(config, CommandExecutor()).run()
"""

__version__ = "0.1.0"

from sts_installer.cli import cli
from sts_installer.exceptions import (
    ArtifactError,
    BinaryNotFoundError,
    CommandError,
    ConfigurationError,
    CredentialsError,
    InstallerError,
    MetadataError,
    PreconditionError,
    StepConstructionError,
)
from sts_installer.executor import CommandExecutor
from sts_installer.models import Configuration, Summary
from sts_installer.pipeline import StepPipeline

__all__ = [
    # Version
    "__version__",
    # Main CLI
    "cli",
    # Classes
    "CommandExecutor",
    "Configuration",
    "StepPipeline",
    "Summary",
    # Exceptions
    "InstallerError",
    "ArtifactError",
    "BinaryNotFoundError",
    "CommandError",
    "ConfigurationError",
    "CredentialsError",
    "MetadataError",
    "PreconditionError",
    "StepConstructionError",
]
