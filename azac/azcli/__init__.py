"""
Azure CLI boundary.

Clients for Azure App Configuration and Azure Key Vault. The az-backed
clients shell out to the Azure CLI, which owns authentication; the in-memory
clients mirror their behavior for tests.

Author: azac contributors
Date: 2026-10-19
"""

from .appconfig import AzCliStoreClient, show_store
from .client import RemoteStoreClient, SecretVault
from .exceptions import (
    AzNotInstalledError,
    CommandFailureError,
    KeyNotFoundError,
    NotLoggedInError,
    RemoteError,
    RemoteUnavailableError,
    ResponseParseError,
    SecretNotFoundError,
)
from .keyvault import AzCliVaultClient
from .memory import InMemoryStoreClient, InMemoryVaultClient
from .models import KEYVAULT_REFERENCE_CONTENT_TYPE, ConfigEntry, SecretBundle, StoreInfo
from .runner import AzCli

__all__ = [
    # Clients
    "AzCli",
    "AzCliStoreClient",
    "AzCliVaultClient",
    "InMemoryStoreClient",
    "InMemoryVaultClient",
    "RemoteStoreClient",
    "SecretVault",
    "show_store",
    # Models
    "ConfigEntry",
    "SecretBundle",
    "StoreInfo",
    "KEYVAULT_REFERENCE_CONTENT_TYPE",
    # Exceptions
    "RemoteError",
    "RemoteUnavailableError",
    "AzNotInstalledError",
    "NotLoggedInError",
    "CommandFailureError",
    "ResponseParseError",
    "KeyNotFoundError",
    "SecretNotFoundError",
]
