"""
Key Vault Reference Codec.

Detects configuration entries that point to a Key Vault secret instead of
holding a value, and builds such references. Three encodings are recognized:

- inline ``@Indirection(SecretUri=<uri>)`` or
  ``@Indirection(VaultName=<v>;SecretName=<n>;SecretVersion=<ver>)``
  (field names are case-insensitive)
- a JSON payload ``{"uri": "<uri>"}`` or ``{"secretUri": "<uri>"}``, which is
  what App Configuration stores for Key Vault references
- a bare secret address, only when the content type marks the entry as a
  Key Vault reference

Author: azac contributors
Date: 2026-10-19
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlparse

from azac.azcli.client import SecretVault
from azac.azcli.exceptions import RemoteError
from azac.azcli.models import KEYVAULT_REFERENCE_CONTENT_TYPE, ConfigEntry
from azac.core.exceptions import InvalidSecretNameError

logger = logging.getLogger(__name__)

VAULT_HOST_SUFFIX = ".vault.azure.net"
MAX_SECRET_NAME_LENGTH = 127

_INLINE_PATTERN = re.compile(r"@Indirection\((?P<fields>.*)\)", re.IGNORECASE | re.DOTALL)
_WORD_PATTERN = re.compile(r"[A-Za-z0-9]+")
_PAYLOAD_FIELDS = ("uri", "secreturi")


@dataclass(frozen=True)
class SecretReference:
    """Pointer to a Key Vault secret.

    Attributes:
        vault_base: Vault address without trailing slash
        name: Secret name
        version: Pinned secret version, None for the latest
    """

    vault_base: str
    name: str
    version: Optional[str] = None

    @property
    def uri(self) -> str:
        """Canonical secret identifier."""
        base = f"{self.vault_base}/secrets/{self.name}"
        if self.version:
            return f"{base}/{self.version}"
        return base

    @property
    def vault_name(self) -> str:
        """First host label of the vault address."""
        host = urlparse(self.vault_base).hostname or ""
        return host.split(".", 1)[0]

    @classmethod
    def parse(cls, address: str) -> Optional["SecretReference"]:
        """
        Parse ``<scheme>://<host>/secrets/<name>[/<version>]``.

        Returns:
            The reference, or None when the address is not a secret identifier
        """
        parsed = urlparse(address.strip())
        if parsed.scheme.lower() not in ("https", "http") or not parsed.netloc:
            return None
        if parsed.query or parsed.fragment:
            return None
        parts = [part for part in parsed.path.split("/") if part]
        if len(parts) not in (2, 3) or parts[0].lower() != "secrets":
            return None
        vault_base = f"{parsed.scheme.lower()}://{parsed.netloc}"
        version = parts[2] if len(parts) == 3 else None
        return cls(vault_base=vault_base, name=parts[1], version=version)

    def to_payload(self) -> str:
        """Encode as the JSON payload App Configuration stores."""
        return json.dumps({"uri": self.uri})

    def to_inline(self, named_fields: bool = False) -> str:
        """Encode in the inline ``@Indirection(...)`` syntax."""
        if not named_fields:
            return f"@Indirection(SecretUri={self.uri})"
        fields = f"VaultName={self.vault_name};SecretName={self.name}"
        if self.version:
            fields += f";SecretVersion={self.version}"
        return f"@Indirection({fields})"

    def versionless(self) -> "SecretReference":
        """Same secret, following its latest version."""
        return SecretReference(self.vault_base, self.name)


def normalize_vault_base(vault: str) -> str:
    """
    Turn a vault name or address into a vault address.

    ``myvault`` -> ``https://myvault.vault.azure.net``; an address that
    already has a scheme is only trimmed of trailing slashes.
    """
    vault = vault.strip()
    if "://" in vault:
        return vault.rstrip("/")
    return f"https://{vault}{VAULT_HOST_SUFFIX}"


def is_keyvault_content_type(content_type: Optional[str]) -> bool:
    """Whether a content type marks a Key Vault reference."""
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == KEYVAULT_REFERENCE_CONTENT_TYPE.split(";", 1)[0]


def _decode_inline(value: str) -> Optional[SecretReference]:
    match = _INLINE_PATTERN.fullmatch(value.strip())
    if not match:
        return None

    fields = {}
    for part in match.group("fields").split(";"):
        name, sep, field_value = part.partition("=")
        if sep:
            fields[name.strip().lower()] = field_value.strip()

    # A direct address wins over a vault/name pair
    if "secreturi" in fields:
        return SecretReference.parse(fields["secreturi"])

    vault_name = fields.get("vaultname")
    secret_name = fields.get("secretname")
    if not vault_name or not secret_name:
        return None
    return SecretReference(
        vault_base=normalize_vault_base(vault_name),
        name=secret_name,
        version=fields.get("secretversion") or None,
    )


def _decode_payload(value: str) -> Optional[SecretReference]:
    stripped = value.strip()
    if not stripped.startswith("{"):
        return None
    try:
        payload = json.loads(stripped)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None

    fields = {str(name).lower(): field_value for name, field_value in payload.items()}
    for name in _PAYLOAD_FIELDS:
        address = fields.get(name)
        if isinstance(address, str):
            return SecretReference.parse(address)
    return None


def decode_value(value: Optional[str], content_type: Optional[str] = None) -> Optional[SecretReference]:
    """
    Decode a raw value into a Key Vault reference.

    Returns:
        The reference, or None when the value is a plain string
    """
    if not value:
        return None
    reference = _decode_inline(value) or _decode_payload(value)
    if reference is None and is_keyvault_content_type(content_type):
        reference = SecretReference.parse(value)
    return reference


def decode(entry: ConfigEntry) -> Optional[SecretReference]:
    """Decode a configuration entry into a Key Vault reference, if it is one."""
    return decode_value(entry.value, entry.content_type)


def resolve_value(
    entry: ConfigEntry, vault: SecretVault, fetch_secret: bool = True
) -> Tuple[str, bool]:
    """
    Work out what to display for an entry.

    Args:
        entry: Entry to resolve
        vault: Vault used to read secret values
        fetch_secret: Read the live secret value for references

    Returns:
        ``(display_value, is_indirection)``. When the secret cannot be read
        the reference address is displayed instead.
    """
    reference = decode(entry)
    if reference is None:
        return entry.value or "", False
    if not fetch_secret:
        return reference.uri, True

    try:
        return vault.get_secret(reference.uri).value, True
    except RemoteError as e:
        logger.warning(f"Could not read secret for key '{entry.key}' from {reference.uri}: {e.message}")
        return reference.uri, True


def secret_name_for_key(full_key: str) -> str:
    """
    Derive a Key Vault secret name from a configuration key.

    Alphanumeric runs become the words of one camel-cased token:
    ``myapp:Db:ConnectionString`` -> ``myappDbConnectionString``,
    ``DB_HOST`` -> ``dbHost``.

    Raises:
        InvalidSecretNameError: If the key has no alphanumeric characters
    """
    words = _WORD_PATTERN.findall(full_key)
    if not words:
        raise InvalidSecretNameError(full_key)

    words = [word.lower() if word.isupper() else word for word in words]
    name = words[0][0].lower() + words[0][1:]
    name += "".join(word[0].upper() + word[1:] for word in words[1:])
    if name[0].isdigit():
        name = f"s{name}"
    return name[:MAX_SECRET_NAME_LENGTH]


def build_reference(vault: SecretVault, vault_base: str, full_key: str, value: str) -> str:
    """
    Store a value in Key Vault under a name derived from its key.

    Args:
        vault: Vault client
        vault_base: Vault name or address
        full_key: Full configuration key the secret backs
        value: Secret value

    Returns:
        Versionless secret identifier to store in App Configuration
    """
    reference = SecretReference(normalize_vault_base(vault_base), secret_name_for_key(full_key))
    vault.set_secret(reference.vault_base, reference.name, value)
    logger.info(f"Key '{full_key}' now backed by secret {reference.uri}")
    return reference.uri


def update_secret(vault: SecretVault, reference: SecretReference, value: str, key: str) -> None:
    """Write a new version of the secret an existing reference points to."""
    vault.set_secret(reference.vault_base, reference.name, value)
    if reference.version:
        logger.warning(
            f"Key '{key}' pins secret version {reference.version}; "
            f"the new value is stored as a newer version of '{reference.name}'"
        )
