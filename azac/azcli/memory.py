"""
In-Memory Store and Vault Clients.

Dictionary-backed implementations of ``RemoteStoreClient`` and
``SecretVault`` with the same observable behavior as the az-backed clients.
Used for tests and dry runs.

Author: azac contributors
Date: 2026-10-19
"""

import fnmatch
import hashlib
import itertools
import json
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

from .client import RemoteStoreClient, SecretVault
from .exceptions import KeyNotFoundError, SecretNotFoundError
from .models import KEYVAULT_REFERENCE_CONTENT_TYPE, ConfigEntry, SecretBundle

_sequence = itertools.count()


def _generate_version_id(name: str, value: str) -> str:
    """Generate a unique 32 hex digit version id."""
    content = f"{name}:{value}:{datetime.now(timezone.utc).isoformat()}:{next(_sequence)}"
    return hashlib.sha256(content.encode()).hexdigest()[:32]


class InMemoryStoreClient(RemoteStoreClient):
    """
    In-memory App Configuration store.

    Storage structure:
        {(key, label): ConfigEntry}

    Omitting ``content_type`` on ``set`` keeps the stored content type; an
    empty string clears it.
    """

    def __init__(self):
        self._entries: Dict[Tuple[str, Optional[str]], ConfigEntry] = {}
        self._lock = threading.Lock()

    def list(self, key_filter: str = "*", label: Optional[str] = None) -> List[ConfigEntry]:
        with self._lock:
            entries = [
                entry.model_copy()
                for (key, entry_label), entry in self._entries.items()
                if fnmatch.fnmatchcase(key, key_filter) and (label is None or entry_label == label)
            ]
        return sorted(entries, key=lambda entry: (entry.key, entry.label or ""))

    def show(self, key: str, label: Optional[str] = None) -> ConfigEntry:
        with self._lock:
            entry = self._entries.get((key, label))
        if entry is None:
            raise KeyNotFoundError(key, label)
        return entry.model_copy()

    def _put(
        self, key: str, value: str, label: Optional[str], content_type: Optional[str]
    ) -> ConfigEntry:
        with self._lock:
            existing = self._entries.get((key, label))
            if content_type is None and existing is not None:
                content_type = existing.content_type
            entry = ConfigEntry(
                key=key,
                label=label,
                value=value,
                content_type=content_type or None,
                etag=_generate_version_id(key, value),
                last_modified=datetime.now(timezone.utc).isoformat(),
            )
            self._entries[(key, label)] = entry
        return entry.model_copy()

    def set(
        self,
        key: str,
        value: str,
        label: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> ConfigEntry:
        return self._put(key, value, label, content_type)

    def set_secret_reference(
        self, key: str, secret_uri: str, label: Optional[str] = None
    ) -> ConfigEntry:
        payload = json.dumps({"uri": secret_uri})
        return self._put(key, payload, label, KEYVAULT_REFERENCE_CONTENT_TYPE)

    def delete(self, key: str, label: Optional[str] = None) -> None:
        with self._lock:
            if self._entries.pop((key, label), None) is None:
                raise KeyNotFoundError(key, label)


class InMemoryVaultClient(SecretVault):
    """
    In-memory Key Vault.

    Storage structure:
        {vault_base: {secret_name: [SecretBundle, ...]}}, newest version last

    Vault addresses are compared case-insensitively.
    """

    def __init__(self):
        self._vaults: Dict[str, Dict[str, List[SecretBundle]]] = {}
        self._lock = threading.Lock()

    def get_secret(self, secret_id: str) -> SecretBundle:
        parsed = urlparse(secret_id)
        parts = [part for part in parsed.path.split("/") if part]
        if len(parts) not in (2, 3) or parts[0] != "secrets":
            raise SecretNotFoundError(secret_id)
        vault_base = f"{parsed.scheme}://{parsed.netloc}".lower()
        name = parts[1]
        version = parts[2] if len(parts) == 3 else None

        with self._lock:
            versions = self._vaults.get(vault_base, {}).get(name, [])
            if version is None:
                bundle = versions[-1] if versions else None
            else:
                bundle = next((b for b in versions if b.id.endswith(f"/{version}")), None)
        if bundle is None:
            raise SecretNotFoundError(secret_id)
        return bundle.model_copy()

    def set_secret(self, vault_base: str, name: str, value: str) -> SecretBundle:
        vault_base = vault_base.rstrip("/")
        version = _generate_version_id(name, value)
        bundle = SecretBundle(id=f"{vault_base}/secrets/{name}/{version}", value=value)
        with self._lock:
            self._vaults.setdefault(vault_base.lower(), {}).setdefault(name, []).append(bundle)
        return bundle.model_copy()

    def versions(self, vault_base: str, name: str) -> List[SecretBundle]:
        """Return every stored version of a secret, oldest first."""
        with self._lock:
            return [b.model_copy() for b in self._vaults.get(vault_base.rstrip("/").lower(), {}).get(name, [])]
