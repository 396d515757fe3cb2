"""Common base for installation steps.

Every step is built from the installer configuration and a command
executor. Building a step derives the artifact layout from the release
image, which is where construction can fail.
"""

from pathlib import Path
from typing import ClassVar

from sts_installer.artifacts import DEFAULT_ARTIFACTS_ROOT, ArtifactStore
from sts_installer.credentials import credential_env
from sts_installer.exceptions import ArtifactError, ConfigurationError, StepConstructionError
from sts_installer.executor import CommandExecutor
from sts_installer.models import Configuration


class Step:
    """A single unit of installation work.

    Subclasses set ``number`` and ``name`` and implement ``execute``.

    Attributes:
        config: The installer configuration.
        executor: Executor used for every external command.
        store: Artifact layout for the configured release and cluster.

    """

    number: ClassVar[int]
    name: ClassVar[str]

    def __init__(
        self,
        config: Configuration,
        executor: CommandExecutor,
        *,
        artifacts_root: Path = DEFAULT_ARTIFACTS_ROOT,
    ) -> None:
        """Initialize the step.

        Raises:
            StepConstructionError: If the release image has no usable
                version/architecture key.

        """
        self.config = config
        self.executor = executor
        try:
            self.store = ArtifactStore.for_release(config.release_image, config.cluster_name, root=artifacts_root)
        except ConfigurationError as err:
            raise StepConstructionError(f"Cannot build step {self.number} ({self.name}): {err}") from err

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"{type(self).__name__}(number={self.number}, store={self.store!r})"

    def execute(self) -> None:
        """Run the step.

        Raises:
            InstallerError: If the step fails.

        """
        raise NotImplementedError

    @property
    def pull_secret(self) -> Path:
        """Absolute path of the pull secret, usable from any working directory."""
        return Path(self.config.pull_secret_path).expanduser().absolute()

    @staticmethod
    def ensure_dir(path: Path) -> Path:
        """Create a directory and its parents.

        Raises:
            ArtifactError: If the directory cannot be created.

        """
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise ArtifactError(f"Failed to create directory '{path}': {err.strerror}") from err
        return path

    def aws_env(self) -> dict[str, str] | None:
        """Environment variables for the configured AWS profile, if resolvable.

        Returns:
            The variables, or None to rely on ambient credential resolution.

        """
        return credential_env(self.config.aws_profile)
