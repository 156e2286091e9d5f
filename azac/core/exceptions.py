"""
azac Exceptions.

Error taxonomy shared by the context, import and key operations.

Author: azac contributors
Date: 2026-10-19
"""

from typing import Optional


class AzacError(Exception):
    """Base exception for all azac errors."""

    def __init__(self, message: str, error_code: str = "InternalError"):
        """Initialize azac error.

        Args:
            message: Human readable error message
            error_code: Stable error code
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ContextError(AzacError):
    """Base exception for active context problems."""


class NotConfiguredError(ContextError):
    """Raised when no context has been selected."""

    def __init__(self):
        super().__init__(
            "No active context. Run 'azac context add' and 'azac context use <alias>' first.",
            error_code="ContextMissing",
        )


class MissingApplicationError(ContextError):
    """Raised when an operation needs an application but none is selected."""

    def __init__(self, alias: str):
        super().__init__(
            f"Context '{alias}' has no application selected. "
            f"Run 'azac context edit {alias} --app <name>'.",
            error_code="ContextMissing",
        )
        self.alias = alias


class MissingLabelError(ContextError):
    """Raised when an operation needs a label but none is selected."""

    def __init__(self, alias: str):
        super().__init__(
            f"Context '{alias}' has no label selected. "
            f"Run 'azac context edit {alias} --label <label>'.",
            error_code="ContextMissing",
        )
        self.alias = alias


class MissingVaultError(ContextError):
    """Raised when a key needs Key Vault but the context has no vault."""

    def __init__(self, key: str, alias: Optional[str] = None):
        where = f"context '{alias}'" if alias else "the active context"
        super().__init__(
            f"Key '{key}' needs a Key Vault but no vault is configured for {where}.",
            error_code="ContextMissing",
        )
        self.key = key
        self.alias = alias


class DuplicateAliasError(ContextError):
    """Raised when a context alias is already taken."""

    def __init__(self, alias: str):
        super().__init__(f"Alias '{alias}' already exists", error_code="Conflict")
        self.alias = alias


class UnknownAliasError(ContextError):
    """Raised when a context alias does not exist."""

    def __init__(self, alias: str):
        super().__init__(f"Alias '{alias}' not found", error_code="NotFound")
        self.alias = alias


class CurrentContextMissingError(ContextError):
    """Raised when the current alias points to a context that was removed."""

    def __init__(self, alias: str):
        super().__init__(
            f"Current context '{alias}' not found in store", error_code="ContextMissing"
        )
        self.alias = alias


class ContextFileError(ContextError):
    """Raised when the context file cannot be read or written."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Context file '{path}': {reason}", error_code="ContextFile")
        self.path = path
        self.reason = reason


class ImportParseError(AzacError):
    """Raised when no import format could parse the input."""

    def __init__(self, filename: str, format_name: str, reason: str):
        super().__init__(
            f"Could not parse '{filename}' (last tried {format_name}): {reason}",
            error_code="ImportParseError",
        )
        self.filename = filename
        self.format_name = format_name
        self.reason = reason


class AlreadyIndirectionError(AzacError):
    """Raised when promoting a key that already points to Key Vault."""

    def __init__(self, key: str):
        super().__init__(
            f"Key '{key}' is already a Key Vault reference", error_code="Conflict"
        )
        self.key = key


class NotAnIndirectionError(AzacError):
    """Raised when demoting a key that holds a plain value."""

    def __init__(self, key: str):
        super().__init__(
            f"Key '{key}' is not a Key Vault reference", error_code="BadParameter"
        )
        self.key = key


class InvalidSecretNameError(AzacError):
    """Raised when no Key Vault secret name can be derived from a key."""

    def __init__(self, key: str):
        super().__init__(
            f"Key '{key}' has no letters or digits to build a Key Vault secret name from",
            error_code="BadParameter",
        )
        self.key = key
