"""
Azure CLI Runner.

Executes ``az`` commands and turns their outcome into JSON documents or
classified ``RemoteError`` exceptions.

Author: azac contributors
Date: 2026-10-19
"""

import json
import logging
import shutil
import subprocess
import threading
from typing import Any, List, Optional, Sequence

from .exceptions import (
    AzNotInstalledError,
    CommandFailureError,
    NotLoggedInError,
    RemoteError,
    ResponseParseError,
)

logger = logging.getLogger(__name__)

# Arguments whose following value must never reach the logs
_SECRET_FLAGS = {"--value"}


def describe_command(args: Sequence[str]) -> str:
    """Render a command line for logging with secret values masked."""
    rendered: List[str] = []
    mask_next = False
    for arg in args:
        if mask_next:
            rendered.append("***REDACTED***")
            mask_next = False
            continue
        flag, sep, _ = arg.partition("=")
        if sep and flag in _SECRET_FLAGS:
            rendered.append(f"{flag}=***REDACTED***")
            continue
        rendered.append(arg)
        if arg in _SECRET_FLAGS:
            mask_next = True
    return " ".join(rendered)


class AzCli:
    """
    Thin wrapper around the ``az`` executable.

    Authentication is checked with ``az account show`` the first time a
    command runs and the answer is cached for the lifetime of the runner.
    The runner is safe to share between import workers.

    Attributes:
        executable: Name or path of the az executable
    """

    def __init__(self, executable: str = "az", check_login: bool = True):
        """Initialize the runner.

        Args:
            executable: Name or path of the az executable
            check_login: Verify the login state before the first command
        """
        self.executable = executable
        self._check_login = check_login
        self._authenticated: Optional[bool] = None
        self._lock = threading.Lock()

    def _resolve_executable(self) -> str:
        return shutil.which(self.executable) or self.executable

    def _run(self, args: Sequence[str]) -> subprocess.CompletedProcess:
        cmd = [self._resolve_executable(), *args]
        logger.debug(f"Running az {describe_command(args)}")
        try:
            return subprocess.run(cmd, capture_output=True, text=True, check=False)
        except FileNotFoundError:
            raise AzNotInstalledError(self.executable)
        except OSError as e:
            raise RemoteError(f"Failed to execute Azure CLI: {e}", error_code="Io")

    def ensure_authenticated(self) -> None:
        """
        Make sure az has a logged-in account.

        Raises:
            AzNotInstalledError: If az is missing
            NotLoggedInError: If no account is logged in
        """
        if not self._check_login:
            return
        with self._lock:
            if self._authenticated is None:
                result = self._run(["account", "show", "-o", "json"])
                self._authenticated = result.returncode == 0
        if not self._authenticated:
            raise NotLoggedInError()

    def run_raw(self, args: Sequence[str]) -> str:
        """
        Run an az command and return its stdout.

        Raises:
            CommandFailureError: If az exits with a non-zero status
        """
        self.ensure_authenticated()
        result = self._run(args)
        if result.returncode == 0:
            return result.stdout

        stderr = (result.stderr or "").strip()
        logger.debug(f"az {args[0] if args else ''} failed with code {result.returncode}")
        raise CommandFailureError(result.returncode, stderr)

    def run_json(self, args: Sequence[str]) -> Any:
        """
        Run an az command with JSON output and decode it.

        Returns:
            Decoded JSON document, or None when az printed nothing

        Raises:
            ResponseParseError: If stdout is not valid JSON
        """
        stdout = self.run_raw([*args, "-o", "json"])
        if not stdout.strip():
            return None
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as e:
            raise ResponseParseError(str(e))
