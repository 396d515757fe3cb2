"""Steps that render manifests and create the AWS-side STS resources.

ccoctl writes its manifests and the service account signing keys into a
staging directory inside the cluster directory. The copy steps merge that
output into the installer's ``manifests/`` and ``tls/`` directories; the
last of them removes the staging directory.
"""

import shutil
from pathlib import Path

from icecream import ic

from sts_installer import console
from sts_installer.artifacts import CCOCTL, OPENSHIFT_INSTALL, region_from_install_config
from sts_installer.exceptions import ArtifactError, ConfigurationError
from sts_installer.steps.base import Step


def copy_tree(source: Path, destination: Path) -> None:
    """Recursively copy a directory, merging into an existing destination.

    Raises:
        ArtifactError: If the source is missing or the copy fails.

    """
    if not source.is_dir():
        raise ArtifactError(f"Source directory '{source}' does not exist")
    try:
        shutil.copytree(source, destination, dirs_exist_ok=True)
    except (OSError, shutil.Error) as err:
        raise ArtifactError(f"Failed to copy '{source}' to '{destination}': {err}") from err


class CreateManifests(Step):
    """Render the installation manifests from install-config.yaml."""

    number = 6
    name = "Create manifests"

    def execute(self) -> None:
        with console.spinner("Creating manifests..."):
            output = self.executor.run(
                [str(self.store.binary_path(OPENSHIFT_INSTALL)), "create", "manifests", "--dir", str(self.store.cluster_dir)]
            )
        ic(output)
        console.step(f"Manifests written to {console.highlight(str(self.store.manifests_dir))}")


class CreateAwsResources(Step):
    """Create the OIDC provider, IAM roles and S3 bucket with ccoctl."""

    number = 7
    name = "Create AWS resources"

    def _region(self) -> str:
        region = self.config.aws_region or region_from_install_config(self.store)
        if not region:
            raise ConfigurationError(
                "AWS region is not configured and could not be read from install-config.yaml; "
                "pass --region or set OPENSHIFT_STS_AWS_REGION"
            )
        return region

    def execute(self) -> None:
        region = self._region()
        cmd = [
            str(self.store.binary_path(CCOCTL)),
            "aws",
            "create-all",
            "--name",
            self.config.cluster_name,
            "--region",
            region,
            "--credentials-requests-dir",
            str(self.store.credreqs_dir),
            "--output-dir",
            str(self.store.staging_dir),
        ]
        if self.config.private_bucket:
            cmd.append("--create-private-s3-bucket")

        console.action(f"Creating AWS resources for {console.highlight(self.config.cluster_name)} in {region}")
        self.executor.run_interactive(cmd, env=self.aws_env())


class CopyManifests(Step):
    """Merge the ccoctl manifests into the installer's manifests directory."""

    number = 8
    name = "Copy manifests"

    def execute(self) -> None:
        copy_tree(self.store.staging_manifests_dir, self.store.manifests_dir)
        console.step(f"Copied ccoctl manifests into {console.highlight(str(self.store.manifests_dir))}")


class CopyTls(Step):
    """Copy the bound service account signing key and remove the staging directory."""

    number = 9
    name = "Copy TLS"

    def execute(self) -> None:
        copy_tree(self.store.staging_tls_dir, self.store.tls_dir)
        console.step(f"Copied TLS material into {console.highlight(str(self.store.tls_dir))}")

        try:
            shutil.rmtree(self.store.staging_dir)
        except OSError as exc:
            ic(exc)
            console.warning(f"Could not remove staging directory '{self.store.staging_dir}': {exc}")
