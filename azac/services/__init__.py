"""
Key operations, Key Vault reference handling, and bulk import/export.

Author: azac contributors
Date: 2026-10-19
"""

from .exporter import build_export, export_to_file, list_in_scope
from .importer import (
    Decision,
    DecisionStrategy,
    FixedDecision,
    ImportOrchestrator,
    ImportSummary,
    WriteAction,
    write_entry,
)
from .keys import KeyService
from .secret_reference import (
    SecretReference,
    build_reference,
    decode,
    normalize_vault_base,
    resolve_value,
    secret_name_for_key,
)
from .serializer import (
    ExportEntry,
    ExportFormat,
    ImportEntry,
    ParseAttempt,
    ValueKind,
    parse_import,
    serialize,
)

__all__ = [
    # Key operations
    "KeyService",
    # Import
    "Decision",
    "DecisionStrategy",
    "FixedDecision",
    "ImportOrchestrator",
    "ImportSummary",
    "WriteAction",
    "write_entry",
    # Export
    "build_export",
    "export_to_file",
    "list_in_scope",
    # Key Vault references
    "SecretReference",
    "build_reference",
    "decode",
    "normalize_vault_base",
    "resolve_value",
    "secret_name_for_key",
    # Serialization
    "ExportEntry",
    "ExportFormat",
    "ImportEntry",
    "ParseAttempt",
    "ValueKind",
    "parse_import",
    "serialize",
]
