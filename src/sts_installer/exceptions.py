"""Custom exceptions for openshift-sts-installer.

This module defines the exception hierarchy used throughout the application
to provide meaningful error messages and proper error handling.
"""


class InstallerError(Exception):
    """Base exception for all openshift-sts-installer errors.

    All custom exceptions in this package inherit from this class,
    allowing callers to catch all installer errors with a single
    except clause if desired.
    """

    pass


class ConfigurationError(InstallerError):
    """Raised when the installer configuration is incomplete or invalid.

    This can occur when:
    - The release image or cluster name is missing
    - The release image carries no usable version/architecture tag
    - The configuration file cannot be read or parsed
    """

    pass


class PreconditionError(InstallerError):
    """Raised when the environment does not allow an installation to start.

    This typically means the cluster directory already exists, i.e. a
    cluster with the same name was previously installed.
    """

    pass


class StepConstructionError(InstallerError):
    """Raised when a pipeline step cannot be built from the configuration."""

    pass


class CommandError(InstallerError):
    """Raised when an external command exits with a non-zero status.

    Attributes:
        cmd: The command that was executed.
        returncode: The exit status reported by the process.
        stderr: Captured standard error, if any.

    """

    def __init__(self, cmd: list[str], returncode: int, stderr: str = "") -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        details = f" - {stderr}" if stderr else ""
        super().__init__(f"Command '{cmd[0]}' failed (exit code {returncode}){details}")


class BinaryNotFoundError(InstallerError):
    """Raised when a required binary (oc, openshift-install, ccoctl) is not found.

    This can occur when:
    - The binary is not installed
    - The binary is not in the system PATH
    - The binary was not extracted from the release image yet
    """

    pass


class ArtifactError(InstallerError):
    """Raised when an artifact cannot be read, written or relocated."""

    pass


class MetadataError(InstallerError):
    """Raised when a persisted metadata record is missing or malformed."""

    pass


class CredentialsError(InstallerError):
    """Raised when AWS credentials for the selected profile are not usable."""

    pass
