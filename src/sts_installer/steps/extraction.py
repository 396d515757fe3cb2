"""Steps that extract release content into the shared artifact directory.

Everything produced here depends only on the release image, so it is
stored under ``shared/<versionArch>/`` and reused by every cluster
installed from the same release.
"""

import os
import tempfile
from pathlib import Path

from icecream import ic

from sts_installer import console
from sts_installer.artifacts import CCOCTL, OPENSHIFT_INSTALL
from sts_installer.exceptions import ArtifactError
from sts_installer.steps.base import Step

EXECUTABLE_MODE = 0o755

CCO_IMAGE_COMPONENT = "cloud-credential-operator"
CCOCTL_IMAGE_PATH = "/usr/bin/ccoctl"


def make_executable(path: Path) -> None:
    """Set 0755 permissions on an extracted binary.

    Raises:
        ArtifactError: If the binary is missing or cannot be chmod-ed.

    """
    if not path.is_file():
        raise ArtifactError(f"Expected binary '{path}' was not produced by the extraction")
    try:
        path.chmod(EXECUTABLE_MODE)
    except OSError as err:
        raise ArtifactError(f"Failed to make '{path}' executable: {err.strerror}") from err


def relocate_without_overwrite(source: Path, target: Path) -> None:
    """Move a file into place, refusing to replace an existing target.

    A hard link is created first so the target appears atomically and an
    existing file is never clobbered; the source is then unlinked.

    Args:
        source: The file to move.
        target: The destination path.

    Raises:
        ArtifactError: If the target already exists or the move fails.

    """
    try:
        os.link(source, target)
    except FileExistsError as err:
        raise ArtifactError(f"Refusing to overwrite existing file '{target}'") from err
    except OSError as err:
        raise ArtifactError(f"Failed to move '{source}' to '{target}': {err.strerror}") from err

    try:
        source.unlink()
    except OSError as err:
        ic(f"Could not remove '{source}' after relocation: {err}")


class ExtractCredentialsRequests(Step):
    """Extract the AWS CredentialsRequest manifests from the release."""

    number = 1
    name = "Extract credentials requests"

    def execute(self) -> None:
        credreqs_dir = self.ensure_dir(self.store.credreqs_dir)
        with console.spinner("Extracting credentials requests..."):
            self.executor.run(
                [
                    "oc",
                    "adm",
                    "release",
                    "extract",
                    "--credentials-requests",
                    "--cloud=aws",
                    f"--to={credreqs_dir}",
                    f"--registry-config={self.pull_secret}",
                    self.config.release_image,
                ]
            )
        console.step(f"Credentials requests saved to {console.highlight(str(credreqs_dir))}")


class ExtractInstaller(Step):
    """Extract the openshift-install binary from the release."""

    number = 2
    name = "Extract openshift-install"

    def execute(self) -> None:
        bin_dir = self.ensure_dir(self.store.bin_dir)
        with console.spinner("Extracting openshift-install..."):
            self.executor.run(
                [
                    "oc",
                    "adm",
                    "release",
                    "extract",
                    f"--command={OPENSHIFT_INSTALL}",
                    f"--to={bin_dir}",
                    f"--registry-config={self.pull_secret}",
                    self.config.release_image,
                ]
            )
        make_executable(self.store.binary_path(OPENSHIFT_INSTALL))


class ExtractCcoctl(Step):
    """Extract ccoctl from the cloud-credential-operator image of the release.

    ``oc image extract`` writes into its working directory, so it runs in a
    private temporary directory under the shared dir and the binary is then
    moved into ``bin/``.
    """

    number = 3
    name = "Extract ccoctl"

    def _cco_image(self) -> str:
        output = self.executor.run(
            [
                "oc",
                "adm",
                "release",
                "info",
                f"--image-for={CCO_IMAGE_COMPONENT}",
                f"--registry-config={self.pull_secret}",
                self.config.release_image,
            ]
        )
        image = output.strip()
        if not image:
            raise ArtifactError(f"Release '{self.config.release_image}' does not reference a {CCO_IMAGE_COMPONENT} image")
        ic(image)
        return image

    def execute(self) -> None:
        bin_dir = self.ensure_dir(self.store.bin_dir)
        target = self.store.binary_path(CCOCTL)

        with console.spinner("Extracting ccoctl..."):
            image = self._cco_image()
            with tempfile.TemporaryDirectory(dir=self.store.shared_dir, prefix=".ccoctl-") as workdir:
                self.executor.run(
                    [
                        "oc",
                        "image",
                        "extract",
                        image,
                        f"--file={CCOCTL_IMAGE_PATH}",
                        f"--registry-config={self.pull_secret}",
                    ],
                    cwd=Path(workdir),
                )
                extracted = Path(workdir) / CCOCTL
                if not extracted.is_file():
                    raise ArtifactError(f"ccoctl was not extracted from image '{image}'")
                relocate_without_overwrite(extracted, bin_dir / CCOCTL)

        make_executable(target)
