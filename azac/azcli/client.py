"""
Remote Store Client Interface.

Defines the contract azac needs from App Configuration and Key Vault, so the
az-backed clients and the in-memory clients are interchangeable.

Author: azac contributors
Date: 2026-10-19
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import ConfigEntry, SecretBundle


class RemoteStoreClient(ABC):
    """
    Abstract base class for App Configuration access.

    Every method is one synchronous round trip. Failures are raised as
    ``RemoteError`` subclasses; nothing is retried.
    """

    @abstractmethod
    def list(self, key_filter: str = "*", label: Optional[str] = None) -> List[ConfigEntry]:
        """
        List entries whose key matches a filter.

        Args:
            key_filter: Key filter, ``*`` wildcard allowed at the end
            label: Only return entries stored under this label

        Returns:
            Matching entries

        Raises:
            RemoteError: If the store cannot be listed
        """

    @abstractmethod
    def show(self, key: str, label: Optional[str] = None) -> ConfigEntry:
        """
        Read a single entry.

        Raises:
            KeyNotFoundError: If the key does not exist under the label
            RemoteError: If the store cannot be read
        """

    @abstractmethod
    def set(
        self,
        key: str,
        value: str,
        label: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> ConfigEntry:
        """
        Create or overwrite an entry with a plain value.

        Args:
            key: Full key
            value: Value to store
            label: Label to store under
            content_type: Content type; an empty string clears it

        Returns:
            The stored entry
        """

    @abstractmethod
    def set_secret_reference(
        self, key: str, secret_uri: str, label: Optional[str] = None
    ) -> ConfigEntry:
        """
        Create or overwrite an entry as a Key Vault reference.

        Args:
            key: Full key
            secret_uri: Secret identifier the entry points to
            label: Label to store under

        Returns:
            The stored entry
        """

    @abstractmethod
    def delete(self, key: str, label: Optional[str] = None) -> None:
        """
        Delete an entry.

        Raises:
            KeyNotFoundError: If the key does not exist under the label
        """


class SecretVault(ABC):
    """Abstract base class for Key Vault secret access."""

    @abstractmethod
    def get_secret(self, secret_id: str) -> SecretBundle:
        """
        Read the live value of a secret.

        Args:
            secret_id: Secret identifier URL, with or without version

        Raises:
            SecretNotFoundError: If the secret does not exist
            RemoteError: If the vault cannot be read
        """

    @abstractmethod
    def set_secret(self, vault_base: str, name: str, value: str) -> SecretBundle:
        """
        Create a new version of a secret.

        Args:
            vault_base: Vault address, e.g. ``https://myvault.vault.azure.net``
            name: Secret name
            value: Secret value

        Returns:
            The new secret version
        """
