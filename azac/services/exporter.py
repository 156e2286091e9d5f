"""
Export Builder.

Collects the entries of the active scope, resolves Key Vault references and
renders them through the serializer.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from azac.azcli.client import RemoteStoreClient, SecretVault
from azac.azcli.models import ConfigEntry
from azac.core import namespace
from azac.core.context import Context

from .secret_reference import resolve_value
from .serializer import ExportEntry, ExportFormat, format_from_path, serialize

logger = logging.getLogger(__name__)


def list_in_scope(context: Context, store: RemoteStoreClient) -> List[ConfigEntry]:
    """
    List the entries of the context's application under its label.

    Without a selected label only unlabeled entries are in scope.
    """
    key_filter = namespace.scope_filter(context.app, context.separator)
    entries = store.list(key_filter, context.label)
    return [entry for entry in entries if (entry.label or None) == context.label]


def build_export(
    context: Context,
    store: RemoteStoreClient,
    vault: SecretVault,
    fetch_secrets: bool = True,
) -> List[ExportEntry]:
    """
    Build export entries for the active scope.

    Args:
        context: Active context
        store: App Configuration client
        vault: Key Vault client
        fetch_secrets: Export secret values instead of reference addresses

    Returns:
        Entries keyed by application-relative key
    """
    exported = []
    for entry in list_in_scope(context, store):
        value, is_indirection = resolve_value(entry, vault, fetch_secret=fetch_secrets)
        key = namespace.strip(context.app, context.separator, entry.key)
        exported.append(ExportEntry(key=key, value=value, is_indirection=is_indirection))
    logger.info(f"Prepared {len(exported)} entries for export from '{context.store_name}'")
    return exported


def export_to_file(
    path: Union[str, Path],
    context: Context,
    store: RemoteStoreClient,
    vault: SecretVault,
    fmt: Optional[ExportFormat] = None,
    fetch_secrets: bool = True,
) -> int:
    """
    Export the active scope to a file.

    The format defaults to the one implied by the file extension, then JSON.

    Returns:
        Number of entries written
    """
    path = Path(path)
    fmt = fmt or format_from_path(path) or ExportFormat.JSON
    entries = build_export(context, store, vault, fetch_secrets=fetch_secrets)
    path.write_text(serialize(entries, fmt), encoding="utf-8")
    logger.info(f"Exported {len(entries)} entries to {path} as {ExportFormat(fmt).value}")
    return len(entries)
