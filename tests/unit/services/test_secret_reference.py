"""
Unit tests for Key Vault reference decoding and creation.
"""

import json
import logging

import pytest

from azac.azcli.memory import InMemoryVaultClient
from azac.azcli.models import KEYVAULT_REFERENCE_CONTENT_TYPE, ConfigEntry
from azac.core.exceptions import InvalidSecretNameError
from azac.services.secret_reference import (
    MAX_SECRET_NAME_LENGTH,
    SecretReference,
    build_reference,
    decode,
    decode_value,
    normalize_vault_base,
    resolve_value,
    secret_name_for_key,
    update_secret,
)

VAULT = "https://shared-vault.vault.azure.net"
URI = f"{VAULT}/secrets/apiDbPassword"


class TestSecretReference:
    """Test suite for the SecretReference value."""

    def test_parse_versionless(self):
        """Test parsing an identifier without version."""
        ref = SecretReference.parse(URI)

        assert ref == SecretReference(VAULT, "apiDbPassword")
        assert ref.uri == URI
        assert ref.vault_name == "shared-vault"

    def test_parse_versioned(self):
        """Test parsing an identifier with version."""
        ref = SecretReference.parse(f"{URI}/0123abcd")

        assert ref.version == "0123abcd"
        assert ref.uri == f"{URI}/0123abcd"
        assert ref.versionless().uri == URI

    @pytest.mark.parametrize("address", [
        "apiDbPassword",
        "ftp://shared-vault.vault.azure.net/secrets/x",
        f"{VAULT}/keys/x",
        f"{VAULT}/secrets",
        f"{VAULT}/secrets/x/1/extra",
        f"{URI}?api-version=7.4",
    ])
    def test_parse_rejects(self, address):
        """Test addresses that are not secret identifiers."""
        assert SecretReference.parse(address) is None

    def test_encodings(self):
        """Test the payload and both inline encodings."""
        ref = SecretReference(VAULT, "apiDbPassword", "v1")

        assert json.loads(ref.to_payload()) == {"uri": f"{URI}/v1"}
        assert ref.to_inline() == f"@Indirection(SecretUri={URI}/v1)"
        assert ref.to_inline(named_fields=True) == (
            "@Indirection(VaultName=shared-vault;SecretName=apiDbPassword;SecretVersion=v1)"
        )


class TestDecode:
    """Test suite for decoding entry values."""

    def test_each_encoding_decodes_to_same_reference(self):
        """Test the three encodings of one secret decode identically."""
        ref = SecretReference(VAULT, "apiDbPassword", "v1")

        assert decode_value(ref.to_inline()) == ref
        assert decode_value(ref.to_inline(named_fields=True)) == ref
        assert decode_value(ref.to_payload()) == ref
        assert decode_value(ref.uri, KEYVAULT_REFERENCE_CONTENT_TYPE) == ref

    def test_inline_field_names_case_insensitive(self):
        """Test inline field names ignore case and surrounding blanks."""
        ref = decode_value("@indirection( vaultname = shared-vault ; SECRETNAME = apiDbPassword )")

        assert ref == SecretReference(VAULT, "apiDbPassword")

    def test_inline_secret_uri_wins(self):
        """Test a direct address beats the vault/name pair."""
        ref = decode_value(f"@Indirection(VaultName=other;SecretName=other;SecretUri={URI})")

        assert ref.uri == URI

    def test_inline_incomplete(self):
        """Test an inline reference without a secret name is plain text."""
        assert decode_value("@Indirection(VaultName=shared-vault)") is None

    def test_inline_must_be_whole_value(self):
        """Test text around an inline reference makes the value plain."""
        assert decode_value(f"prefix @Indirection(SecretUri={URI})") is None

    def test_payload_secret_uri_field(self):
        """Test the secretUri payload field."""
        assert decode_value(json.dumps({"secretUri": URI})).uri == URI

    def test_payload_without_address(self):
        """Test JSON values without an address are plain."""
        assert decode_value('{"feature": true}') is None
        assert decode_value('["a"]') is None

    def test_bare_address_needs_content_type(self):
        """Test a bare address without the Key Vault content type is plain."""
        assert decode_value(URI) is None
        assert decode_value(URI, "text/plain") is None

    def test_content_type_parameters_ignored(self):
        """Test the content type matches without charset and in any case."""
        content_type = "Application/vnd.microsoft.appconfig.keyvaultref+json"

        assert decode_value(URI, content_type).uri == URI

    @pytest.mark.parametrize("value", [None, "", "db.internal", "@Indirection", "{not json"])
    def test_plain_values(self, value):
        """Test ordinary values are not references."""
        assert decode_value(value) is None

    def test_decode_entry(self):
        """Test decoding a configuration entry."""
        entry = ConfigEntry(
            key="api:Db:Password",
            value=json.dumps({"uri": URI}),
            content_type=KEYVAULT_REFERENCE_CONTENT_TYPE,
        )

        assert decode(entry).name == "apiDbPassword"


class TestNormalizeVaultBase:
    """Test suite for vault address normalization."""

    @pytest.mark.parametrize("vault,expected", [
        ("shared-vault", VAULT),
        (" shared-vault ", VAULT),
        (f"{VAULT}/", VAULT),
        (VAULT, VAULT),
    ])
    def test_normalize(self, vault, expected):
        """Test names and addresses normalize to one address."""
        assert normalize_vault_base(vault) == expected


class TestSecretNameForKey:
    """Test suite for deriving secret names from keys."""

    @pytest.mark.parametrize("key,expected", [
        ("api:Db:ConnectionString", "apiDbConnectionString"),
        ("DB_HOST", "dbHost"),
        ("api:db.password", "apiDbPassword"),
        ("api:1st:Key", "api1stKey"),
        ("2fa:Secret", "s2faSecret"),
    ])
    def test_names(self, key, expected):
        """Test keys become camel-cased alphanumeric names."""
        assert secret_name_for_key(key) == expected

    def test_length_limit(self):
        """Test long keys are cut to the Key Vault name limit."""
        assert len(secret_name_for_key("a" * 300)) == MAX_SECRET_NAME_LENGTH

    def test_no_usable_characters(self):
        """Test keys with nothing usable are rejected."""
        with pytest.raises(InvalidSecretNameError) as exc_info:
            secret_name_for_key(":::")

        assert exc_info.value.key == ":::"


class TestResolveValue:
    """Test suite for resolving display values."""

    @pytest.fixture
    def vault(self):
        vault = InMemoryVaultClient()
        vault.set_secret(VAULT, "apiDbPassword", "s3cr3t")
        return vault

    def test_plain(self, vault):
        """Test plain values pass through."""
        entry = ConfigEntry(key="api:Db:Host", value="db.internal")

        assert resolve_value(entry, vault) == ("db.internal", False)

    def test_reference_resolved(self, vault):
        """Test references resolve to the secret value."""
        entry = ConfigEntry(key="api:Db:Password", value=json.dumps({"uri": URI}))

        assert resolve_value(entry, vault) == ("s3cr3t", True)

    def test_reference_not_fetched(self, vault):
        """Test references show their address when secrets are not read."""
        entry = ConfigEntry(key="api:Db:Password", value=f"@Indirection(SecretUri={URI})")

        assert resolve_value(entry, vault, fetch_secret=False) == (URI, True)

    def test_unreadable_secret_falls_back(self, vault, caplog):
        """Test an unreadable secret shows its address and logs a warning."""
        missing = f"{VAULT}/secrets/gone"
        entry = ConfigEntry(key="api:Gone", value=json.dumps({"uri": missing}))

        with caplog.at_level(logging.WARNING):
            assert resolve_value(entry, vault) == (missing, True)

        assert "api:Gone" in caplog.text


class TestBuildReference:
    """Test suite for creating secrets behind keys."""

    def test_build_reference(self):
        """Test the secret is stored and a versionless address returned."""
        vault = InMemoryVaultClient()

        uri = build_reference(vault, "shared-vault", "api:Db:Password", "s3cr3t")

        assert uri == URI
        assert vault.get_secret(uri).value == "s3cr3t"

    def test_update_pinned_secret_warns(self, caplog):
        """Test updating a pinned reference writes a new version and warns."""
        vault = InMemoryVaultClient()
        first = vault.set_secret(VAULT, "apiDbPassword", "one")
        pinned = SecretReference.parse(first.id)

        with caplog.at_level(logging.WARNING):
            update_secret(vault, pinned, "two", "api:Db:Password")

        assert vault.get_secret(URI).value == "two"
        assert vault.get_secret(first.id).value == "one"
        assert "pins secret version" in caplog.text
