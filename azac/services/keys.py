"""
Single-key operations on the active context.
"""

import logging
from typing import Iterable, List, Tuple

from azac.azcli.client import RemoteStoreClient, SecretVault
from azac.azcli.exceptions import RemoteError
from azac.core import namespace
from azac.core.context import Context
from azac.core.exceptions import AlreadyIndirectionError, MissingVaultError, NotAnIndirectionError

from .exporter import list_in_scope
from .importer import WriteAction, write_entry
from .secret_reference import build_reference, decode, resolve_value
from .serializer import ExportEntry, ValueKind

logger = logging.getLogger(__name__)


class KeyService:
    """
    list/show/set/delete/promote/demote for application-relative keys.

    Keys passed in and returned are relative to the context's application.
    """

    def __init__(self, context: Context, store: RemoteStoreClient, vault: SecretVault):
        self._context = context
        self._store = store
        self._vault = vault

    def _full_key(self, key: str) -> str:
        return namespace.prefix(self._context.app, self._context.separator, key)

    def _relative_key(self, full_key: str) -> str:
        return namespace.strip(self._context.app, self._context.separator, full_key)

    def list_keys(self, reveal: bool = False) -> List[ExportEntry]:
        """List entries in scope; secret values are only read when ``reveal``."""
        result = []
        for entry in list_in_scope(self._context, self._store):
            value, is_indirection = resolve_value(entry, self._vault, fetch_secret=reveal)
            result.append(ExportEntry(self._relative_key(entry.key), value, is_indirection))
        return result

    def show_key(self, key: str) -> ExportEntry:
        """
        Show one key with its secret value resolved.

        Raises:
            KeyNotFoundError: If the key does not exist
        """
        entry = self._store.show(self._full_key(key), self._context.label)
        value, is_indirection = resolve_value(entry, self._vault, fetch_secret=True)
        return ExportEntry(key, value, is_indirection)

    def set_key(self, key: str, value: str, use_keyvault: bool = False) -> WriteAction:
        """
        Set a key, storing the value in Key Vault when ``use_keyvault``.

        A key that already points to Key Vault keeps doing so; its secret
        gets the new value.
        """
        if use_keyvault and not self._context.keyvault:
            raise MissingVaultError(key, self._context.alias)
        kind = ValueKind.SECRET if use_keyvault else ValueKind.PLAIN
        return write_entry(self._context, self._store, self._vault, key, value, kind)

    def delete_keys(self, keys: Iterable[str]) -> List[Tuple[str, str]]:
        """
        Delete keys one by one.

        Returns:
            ``(key, message)`` for each key that could not be deleted
        """
        failures = []
        for key in keys:
            try:
                self._store.delete(self._full_key(key), self._context.label)
                logger.info(f"Deleted '{key}'")
            except RemoteError as e:
                logger.error(f"Failed to delete key '{key}': {e.message}")
                failures.append((key, e.message))
        return failures

    def promote_key(self, key: str) -> str:
        """
        Move a plain value into Key Vault and point the key at it.

        Returns:
            The secret identifier the key now references
        """
        full_key = self._full_key(key)
        entry = self._store.show(full_key, self._context.label)
        if decode(entry) is not None:
            raise AlreadyIndirectionError(key)
        if not self._context.keyvault:
            raise MissingVaultError(key, self._context.alias)

        secret_uri = build_reference(self._vault, self._context.keyvault, full_key, entry.value or "")
        self._store.set_secret_reference(full_key, secret_uri, self._context.label)
        return secret_uri

    def demote_key(self, key: str) -> str:
        """
        Replace a Key Vault reference with the secret's current value.

        The secret itself is left in the vault.

        Returns:
            The value now stored in the key
        """
        full_key = self._full_key(key)
        entry = self._store.show(full_key, self._context.label)
        reference = decode(entry)
        if reference is None:
            raise NotAnIndirectionError(key)

        value = self._vault.get_secret(reference.uri).value
        self._store.set(full_key, value, self._context.label, content_type="")
        logger.info(f"Key '{key}' now holds the value of {reference.uri}")
        return value
