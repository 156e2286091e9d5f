"""
Azure CLI Exceptions.

Errors raised by the remote store and vault clients. The rest of azac only
relies on ``RemoteError`` and ``KeyNotFoundError``; the finer classes exist so
the CLI can print an actionable message.

Author: azac contributors
Date: 2026-10-19
"""

from typing import Optional

from azac.core.exceptions import AzacError


class RemoteError(AzacError):
    """Base exception for remote store and vault failures."""

    def __init__(self, message: str, error_code: str = "RemoteError"):
        super().__init__(message, error_code=error_code)


class RemoteUnavailableError(RemoteError):
    """Raised when the remote service cannot be reached at all."""


class AzNotInstalledError(RemoteUnavailableError):
    """Raised when the az executable is missing."""

    def __init__(self, executable: str = "az"):
        super().__init__(
            f"Azure CLI ({executable}) executable not found. Install Azure CLI to continue.",
            error_code="AzNotInstalled",
        )
        self.executable = executable


class NotLoggedInError(RemoteUnavailableError):
    """Raised when az reports no logged-in account."""

    def __init__(self):
        super().__init__(
            "Azure CLI returned that you are not logged in. Run `az login`.",
            error_code="NotLoggedIn",
        )


class CommandFailureError(RemoteError):
    """Raised when an az command exits with a non-zero status."""

    def __init__(self, code: Optional[int], stderr: str):
        super().__init__(
            f"Azure CLI command failed with code {code}: {stderr}",
            error_code="CommandFailure",
        )
        self.code = code
        self.stderr = stderr


class ResponseParseError(RemoteError):
    """Raised when az output is not the JSON we expected."""

    def __init__(self, reason: str):
        super().__init__(
            f"Failed to parse Azure CLI response: {reason}",
            error_code="MalformedResponse",
        )
        self.reason = reason


class KeyNotFoundError(RemoteError):
    """Raised when a configuration key does not exist."""

    def __init__(self, key: str, label: Optional[str] = None):
        if label:
            message = f"Key '{key}' with label '{label}' not found"
        else:
            message = f"Key '{key}' not found"
        super().__init__(message, error_code="NotFound")
        self.key = key
        self.label = label


class SecretNotFoundError(RemoteError):
    """Raised when a Key Vault secret does not exist."""

    def __init__(self, secret_id: str):
        super().__init__(f"Secret '{secret_id}' not found", error_code="SecretNotFound")
        self.secret_id = secret_id
