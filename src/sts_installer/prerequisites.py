"""Host prerequisite checks run before the installation starts."""

import json
import platform
import shutil
from pathlib import Path

from icecream import ic

from sts_installer.exceptions import BinaryNotFoundError, PreconditionError

# openshift-install and ccoctl are extracted from the release by the pipeline
REQUIRED_BINARIES = ("oc",)

PULL_SECRET_URL = "https://console.redhat.com/openshift/install/pull-secret"


def check_platform() -> str:
    """Return the host operating system if the release binaries support it.

    Raises:
        PreconditionError: If the operating system is not supported.

    """
    match platform.system():
        case "Linux":
            return "linux"
        case "Darwin":
            return "darwin"
        case _:
            raise PreconditionError(f"Unsupported operating system: {platform.system()}")


def check_required_binaries(binaries: tuple[str, ...] = REQUIRED_BINARIES) -> dict[str, str]:
    """Make sure every required binary is on PATH.

    Returns:
        Mapping of binary name to its resolved location.

    Raises:
        BinaryNotFoundError: If a binary cannot be found.

    """
    found: dict[str, str] = {}
    for binary in binaries:
        location = shutil.which(binary)
        if location is None:
            raise BinaryNotFoundError(f"{binary} not found; please install it and ensure it's on PATH")
        found[binary] = location
    ic(found)
    return found


def validate_pull_secret(path: Path) -> None:
    """Check that the pull secret exists and is a JSON object with registry auths.

    Raises:
        PreconditionError: If the file is missing, unreadable or malformed.

    """
    try:
        data = json.loads(Path(path).read_text())
    except FileNotFoundError as err:
        raise PreconditionError(f"Pull secret '{path}' not found; download it from {PULL_SECRET_URL}") from err
    except OSError as err:
        raise PreconditionError(f"Failed to read pull secret '{path}': {err.strerror}") from err
    except json.JSONDecodeError as err:
        raise PreconditionError(f"Pull secret '{path}' is not valid JSON: {err}") from err

    if not isinstance(data, dict) or not isinstance(data.get("auths"), dict):
        raise PreconditionError(f"Pull secret '{path}' has no 'auths' section")
