"""Removal of the AWS resources created by an installation.

Cleanup runs in two phases. When the cluster directory still holds the
installer state, ``openshift-install destroy cluster`` tears down the
infrastructure; a failure there is reported and cleanup continues. Then
``ccoctl aws delete`` removes the IAM roles, OIDC provider and S3 bucket;
a failure there is fatal.

The cluster name, region and release are read back from the metadata
records in the cluster directory so the operator does not have to
re-supply them.
"""

from dataclasses import dataclass
from pathlib import Path

from icecream import ic

from sts_installer import console
from sts_installer.artifacts import (
    CCOCTL,
    INSTALLER_STATE_NAME,
    OPENSHIFT_INSTALL,
    ArtifactStore,
    file_exists,
    read_cluster_metadata,
    read_install_metadata,
)
from sts_installer.exceptions import BinaryNotFoundError, CommandError, ConfigurationError, MetadataError
from sts_installer.executor import CommandExecutor


@dataclass(frozen=True, slots=True)
class CleanupPlan:
    """What to remove and with which binaries.

    Attributes:
        cluster_name: Cluster (and ccoctl resource) name.
        region: AWS region of the cluster.
        cluster_dir: Cluster artifact directory, if known.
        installer: openshift-install binary for the cluster's release, if known.
        ccoctl: ccoctl binary path, or its name to be resolved on PATH.

    """

    cluster_name: str
    region: str
    cluster_dir: Path | None = None
    installer: Path | None = None
    ccoctl: str = CCOCTL

    @property
    def installer_state(self) -> Path | None:
        return self.cluster_dir / INSTALLER_STATE_NAME if self.cluster_dir is not None else None


def _release_binaries(release_image: str, cluster_name: str, artifacts_root: Path) -> tuple[Path | None, str]:
    try:
        store = ArtifactStore.for_release(release_image, cluster_name, root=artifacts_root)
    except ConfigurationError as exc:
        ic(exc)
        return None, CCOCTL

    installer = store.binary_path(OPENSHIFT_INSTALL)
    ccoctl = store.binary_path(CCOCTL)
    return (
        installer if file_exists(installer) else None,
        str(ccoctl) if file_exists(ccoctl) else CCOCTL,
    )


def plan_from_artifacts(cluster_dir: Path, *, artifacts_root: Path) -> CleanupPlan:
    """Build a plan from the metadata records in a cluster directory.

    Args:
        cluster_dir: The cluster artifact directory.
        artifacts_root: Root of the artifacts tree holding the shared binaries.

    Returns:
        The cleanup plan.

    Raises:
        MetadataError: If metadata.json is missing or lacks the cluster name or region.

    """
    metadata = read_cluster_metadata(cluster_dir)
    if not metadata.cluster_name or not metadata.region:
        raise MetadataError(f"Could not find cluster name and region values in {Path(cluster_dir) / 'metadata.json'}")

    installer: Path | None = None
    ccoctl = CCOCTL
    try:
        install_metadata = read_install_metadata(cluster_dir)
    except MetadataError as exc:
        ic(exc)
    else:
        installer, ccoctl = _release_binaries(install_metadata.release_image, metadata.cluster_name, artifacts_root)

    return CleanupPlan(
        cluster_name=metadata.cluster_name,
        region=metadata.region,
        cluster_dir=Path(cluster_dir),
        installer=installer,
        ccoctl=ccoctl,
    )


def plan_from_flags(
    cluster_name: str,
    region: str,
    *,
    artifacts_root: Path,
    release_image: str | None = None,
) -> CleanupPlan:
    """Build a plan from explicitly supplied values."""
    cluster_dir = Path(artifacts_root) / "clusters" / cluster_name
    installer: Path | None = None
    ccoctl = CCOCTL
    if release_image:
        installer, ccoctl = _release_binaries(release_image, cluster_name, artifacts_root)

    return CleanupPlan(
        cluster_name=cluster_name,
        region=region,
        cluster_dir=cluster_dir if cluster_dir.is_dir() else None,
        installer=installer,
        ccoctl=ccoctl,
    )


def destroy_infrastructure(plan: CleanupPlan, executor: CommandExecutor, env: dict[str, str] | None) -> bool:
    """Run ``openshift-install destroy cluster`` if the installer state is available.

    Failures are reported but not raised.

    Returns:
        True if the infrastructure was destroyed.

    """
    state = plan.installer_state
    if state is None or not file_exists(state):
        console.info(f"No installer state found{f' at {state}' if state else ''}, skipping openshift-install destroy")
        return False
    if plan.installer is None:
        console.warning("openshift-install binary for this cluster's release not found, skipping destroy")
        return False

    console.action("Destroying OpenShift infrastructure")
    try:
        executor.run_interactive(
            [str(plan.installer), "destroy", "cluster", "--dir", str(plan.cluster_dir), "--log-level=debug"],
            env=env,
        )
    except (CommandError, BinaryNotFoundError) as e:
        console.error(f"Failed to destroy infrastructure: {e}")
        console.info("Continuing with ccoctl cleanup...")
        return False

    console.success("Infrastructure destroyed")
    return True


def delete_sts_resources(plan: CleanupPlan, executor: CommandExecutor, env: dict[str, str] | None) -> None:
    """Delete the IAM roles, OIDC provider and S3 bucket with ccoctl.

    Raises:
        CommandError: If ccoctl fails.
        BinaryNotFoundError: If ccoctl cannot be found.

    """
    with console.spinner("Cleaning up IAM roles and S3 bucket..."):
        output = executor.run(
            [plan.ccoctl, "aws", "delete", "--name", plan.cluster_name, "--region", plan.region],
            env=env,
        )
    ic(output)
    console.success("IAM roles and S3 bucket removed")


def run_cleanup(plan: CleanupPlan, executor: CommandExecutor, env: dict[str, str] | None = None) -> None:
    """Execute both cleanup phases.

    Raises:
        CommandError: If the ccoctl phase fails.
        BinaryNotFoundError: If ccoctl cannot be found.

    """
    ic(plan)
    destroy_infrastructure(plan, executor, env)
    delete_sts_resources(plan, executor, env)
