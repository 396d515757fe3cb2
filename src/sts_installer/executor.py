"""External command execution.

This module provides the CommandExecutor class used by every pipeline step
to invoke oc, openshift-install and ccoctl, either capturing their output
or streaming it straight to the operator's terminal.
"""

import os
import subprocess
from collections.abc import Mapping
from pathlib import Path

from icecream import ic

from sts_installer.exceptions import BinaryNotFoundError, CommandError

# Error message constants
_ERR_BINARY_NOT_FOUND = "{binary} not found; please install it and ensure it's on PATH"


class CommandExecutor:
    """Runs external processes one at a time.

    Every call blocks until the child process exits. Extra environment
    variables are layered over the current process environment.
    """

    @staticmethod
    def _environment(env: Mapping[str, str] | None) -> dict[str, str] | None:
        if not env:
            return None
        return {**os.environ, **env}

    def run(
        self,
        cmd: list[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> str:
        """Run a command and capture its output.

        Args:
            cmd: The command and its arguments.
            env: Extra environment variables for the child process.
            cwd: Working directory for the child process.

        Returns:
            The captured standard output.

        Raises:
            BinaryNotFoundError: If the executable does not exist.
            CommandError: If the command exits with a non-zero status.

        """
        ic(cmd)
        try:
            result = subprocess.run(
                cmd,
                env=self._environment(env),
                cwd=cwd,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as err:
            raise BinaryNotFoundError(_ERR_BINARY_NOT_FOUND.format(binary=cmd[0])) from err
        except subprocess.CalledProcessError as err:
            stderr_msg = err.stderr.strip() if err.stderr else ""
            raise CommandError(cmd, err.returncode, stderr_msg) from err

        return result.stdout

    def run_interactive(
        self,
        cmd: list[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> None:
        """Run a command attached to the operator's terminal.

        Standard input, output and error are inherited so that interactive
        prompts and live logs reach the operator verbatim.

        Raises:
            BinaryNotFoundError: If the executable does not exist.
            CommandError: If the command exits with a non-zero status.

        """
        ic(cmd)
        try:
            subprocess.run(cmd, env=self._environment(env), cwd=cwd, check=True)
        except FileNotFoundError as err:
            raise BinaryNotFoundError(_ERR_BINARY_NOT_FOUND.format(binary=cmd[0])) from err
        except subprocess.CalledProcessError as err:
            raise CommandError(cmd, err.returncode) from err
