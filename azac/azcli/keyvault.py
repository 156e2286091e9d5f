"""
Key Vault Client.

``SecretVault`` implementation backed by ``az keyvault secret``.

Author: azac contributors
Date: 2026-10-19
"""

import logging
from urllib.parse import urlparse

from pydantic import ValidationError

from .client import SecretVault
from .exceptions import CommandFailureError, ResponseParseError, SecretNotFoundError
from .models import SecretBundle
from .runner import AzCli

logger = logging.getLogger(__name__)


def vault_name_from_base(vault_base: str) -> str:
    """
    Extract the vault name from a vault address.

    ``https://myvault.vault.azure.net`` -> ``myvault``. A bare name is
    returned unchanged.
    """
    if "://" not in vault_base:
        return vault_base.strip("/")
    host = urlparse(vault_base).hostname or ""
    return host.split(".", 1)[0]


def _to_bundle(document) -> SecretBundle:
    try:
        return SecretBundle.model_validate(document)
    except ValidationError as e:
        raise ResponseParseError(f"unexpected secret document: {e}")


class AzCliVaultClient(SecretVault):
    """Key Vault access through ``az keyvault secret``."""

    def __init__(self, runner: AzCli):
        self._runner = runner

    def get_secret(self, secret_id: str) -> SecretBundle:
        try:
            document = self._runner.run_json(["keyvault", "secret", "show", "--id", secret_id])
        except CommandFailureError as e:
            if "secretnotfound" in e.stderr.lower().replace(" ", ""):
                raise SecretNotFoundError(secret_id)
            raise
        return _to_bundle(document)

    def set_secret(self, vault_base: str, name: str, value: str) -> SecretBundle:
        vault_name = vault_name_from_base(vault_base)
        document = self._runner.run_json(
            ["keyvault", "secret", "set", "--vault-name", vault_name, "--name", name, f"--value={value}"]
        )
        bundle = _to_bundle(document)
        logger.info(f"Stored secret '{name}' in vault '{vault_name}'")
        return bundle
