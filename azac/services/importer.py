"""
Bulk Import.

Writes a batch of imported entries to App Configuration with a bounded pool
of worker threads. Entries whose storage kind is undecided are settled one
by one before any write starts; after that, workers drain a shared FIFO
queue. A failing entry is reported and counted, and never stops the batch.

Author: azac contributors
Date: 2026-10-19
"""

import logging
import os
import queue
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple, Union

from azac.azcli.client import RemoteStoreClient, SecretVault
from azac.azcli.exceptions import KeyNotFoundError
from azac.core import namespace
from azac.core.context import Context
from azac.core.exceptions import AzacError, ImportParseError, MissingVaultError
from azac.core.logging_config import (
    IMPORT_THREAD_PREFIX,
    clear_correlation_id,
    log_with_context,
    set_correlation_id,
)

from .secret_reference import build_reference, decode, update_secret
from .serializer import ExportFormat, ImportEntry, ValueKind, parse_import

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    """Answer of a decision strategy for an undecided entry."""
    PLAIN = "plain"
    SECRET = "keyvault"
    SKIP = "skip"


DecisionStrategy = Callable[[str], Decision]


class FixedDecision:
    """Strategy that gives the same answer for every key."""

    def __init__(self, decision: Decision):
        self.decision = Decision(decision)

    def __call__(self, key: str) -> Decision:
        return self.decision


_DECISION_KINDS = {
    Decision.PLAIN: ValueKind.PLAIN,
    Decision.SECRET: ValueKind.SECRET,
}


class WriteAction(str, Enum):
    """What ``write_entry`` did."""
    PLAIN = "plain"
    SECRET_CREATED = "secret_created"
    SECRET_UPDATED = "secret_updated"


@dataclass
class ImportSummary:
    """Outcome of a bulk import.

    Attributes:
        total: Entries dispatched to workers
        succeeded: Entries written
        failed: Entries whose write failed
        skipped: Entries dropped before dispatch
        failures: ``(key, message)`` for each failed entry
        skips: ``(key, reason)`` for each skipped entry
        detected_format: Format the input was parsed as
    """
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)
    skips: List[Tuple[str, str]] = field(default_factory=list)
    detected_format: Optional[ExportFormat] = None
    _success_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
    _failure_lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_success(self) -> None:
        with self._success_lock:
            self.succeeded += 1

    def record_failure(self, key: str, message: str) -> None:
        with self._failure_lock:
            self.failed += 1
            self.failures.append((key, message))

    def record_skip(self, key: str, reason: str) -> None:
        self.skipped += 1
        self.skips.append((key, reason))

    @property
    def partial(self) -> bool:
        """Whether some entries failed."""
        return self.failed > 0

    def __str__(self) -> str:
        return (
            f"{self.succeeded} of {self.total} succeeded, "
            f"{self.skipped} skipped, {self.failed} failed"
        )


def write_entry(
    context: Context,
    store: RemoteStoreClient,
    vault: SecretVault,
    key: str,
    value: str,
    kind: ValueKind,
) -> WriteAction:
    """
    Write one application-relative key.

    When the key already exists as a Key Vault reference the secret behind
    it is updated and the entry is left untouched, whatever ``kind`` says.

    Raises:
        MissingVaultError: If a new secret is needed but no vault is configured
        RemoteError: If the store or vault rejects the write
    """
    full_key = namespace.prefix(context.app, context.separator, key)

    try:
        existing = store.show(full_key, context.label)
    except KeyNotFoundError:
        existing = None

    reference = decode(existing) if existing is not None else None
    if reference is not None:
        update_secret(vault, reference, value, full_key)
        logger.info(f"Updated secret behind '{full_key}'")
        return WriteAction.SECRET_UPDATED

    if kind == ValueKind.PLAIN:
        store.set(full_key, value, context.label)
        logger.info(f"Set '{full_key}'")
        return WriteAction.PLAIN

    if kind == ValueKind.SECRET:
        if not context.keyvault:
            raise MissingVaultError(key, context.alias)
        secret_uri = build_reference(vault, context.keyvault, full_key, value)
        store.set_secret_reference(full_key, secret_uri, context.label)
        return WriteAction.SECRET_CREATED

    raise ValueError(f"Key '{key}' has no plain/Key Vault decision")


class ImportOrchestrator:
    """
    Runs a bulk import against the active context.

    Attributes:
        workers: Upper bound on concurrent writers
    """

    def __init__(
        self,
        context: Context,
        store: RemoteStoreClient,
        vault: SecretVault,
        decide: Optional[DecisionStrategy] = None,
        workers: Optional[int] = None,
    ):
        """Initialize the orchestrator.

        Args:
            context: Active context
            store: App Configuration client
            vault: Key Vault client
            decide: Strategy settling entries with no type; without one
                    such entries are skipped
            workers: Maximum worker threads, defaults to the CPU count
        """
        self._context = context
        self._store = store
        self._vault = vault
        self._decide = decide
        self.workers = max(1, workers or os.cpu_count() or 1)

    def prepare(self, entries: Iterable[ImportEntry], summary: ImportSummary) -> List[ImportEntry]:
        """
        Settle every entry's kind, sequentially.

        Skipped entries are recorded on the summary and left out of the result.
        """
        ready = []
        for entry in entries:
            kind = entry.kind
            if kind == ValueKind.NEEDS_DECISION:
                if self._decide is None:
                    reason = "no plain/Key Vault decision available"
                    logger.warning(f"Skipping key '{entry.key}': {reason}")
                    summary.record_skip(entry.key, reason)
                    continue
                decision = Decision(self._decide(entry.key))
                if decision == Decision.SKIP:
                    logger.info(f"Skipping key '{entry.key}' as requested")
                    summary.record_skip(entry.key, "skipped by decision")
                    continue
                kind = _DECISION_KINDS[decision]

            if kind == ValueKind.SECRET and not self._context.keyvault:
                reason = MissingVaultError(entry.key, self._context.alias).message
                logger.warning(f"Skipping: {reason}")
                summary.record_skip(entry.key, reason)
                continue

            ready.append(ImportEntry(entry.key, entry.value, kind))
        return ready

    def _process(self, entry: ImportEntry, summary: ImportSummary) -> None:
        set_correlation_id(entry.key)
        try:
            write_entry(self._context, self._store, self._vault, entry.key, entry.value, entry.kind)
            summary.record_success()
        except Exception as e:
            message = e.message if isinstance(e, AzacError) else str(e)
            log_with_context(
                logger, logging.ERROR, f"Failed to import key '{entry.key}': {message}", key=entry.key
            )
            summary.record_failure(entry.key, message)
        finally:
            clear_correlation_id()

    def _drain(self, work: "queue.Queue[ImportEntry]", summary: ImportSummary) -> None:
        while True:
            try:
                entry = work.get_nowait()
            except queue.Empty:
                return
            self._process(entry, summary)

    def dispatch(self, entries: List[ImportEntry], summary: ImportSummary) -> None:
        """Write prepared entries with ``min(workers, len(entries))`` threads."""
        summary.total = len(entries)
        if not entries:
            return

        work: "queue.Queue[ImportEntry]" = queue.Queue()
        for entry in entries:
            work.put(entry)

        worker_count = max(1, min(self.workers, len(entries)))
        logger.debug(f"Importing {len(entries)} entries with {worker_count} workers")
        with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix=IMPORT_THREAD_PREFIX) as executor:
            futures = [executor.submit(self._drain, work, summary) for _ in range(worker_count)]
            for future in as_completed(futures):
                future.result()

    def run(self, entries: Iterable[ImportEntry]) -> ImportSummary:
        """Prepare and write a batch of entries."""
        summary = ImportSummary()
        ready = self.prepare(entries, summary)
        self.dispatch(ready, summary)
        logger.info(f"Import finished: {summary}")
        return summary

    def import_file(self, path: Union[str, Path]) -> ImportSummary:
        """
        Import a file, detecting its format.

        Raises:
            ImportParseError: If the file could not be read as UTF-8 text or
                parsed in any format
        """
        path = Path(path)
        try:
            contents = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ImportParseError(path.name, "text", f"not valid UTF-8: {e}")
        except OSError as e:
            raise ImportParseError(path.name, "text", e.strerror or str(e))
        attempt = parse_import(contents, path.name)
        logger.info(f"Read {len(attempt.entries)} entries from {path} as {attempt.format.value}")
        summary = self.run(attempt.entries)
        summary.detected_format = attempt.format
        return summary
