"""
App Configuration Client.

``RemoteStoreClient`` implementation that maps every operation onto one
``az appconfig`` command.

Author: azac contributors
Date: 2026-10-19
"""

import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from .client import RemoteStoreClient
from .exceptions import CommandFailureError, KeyNotFoundError, ResponseParseError
from .models import ConfigEntry, StoreInfo
from .runner import AzCli

logger = logging.getLogger(__name__)

_NOT_FOUND_MARKERS = ("does not exist", "not found")


def _is_not_found(error: CommandFailureError) -> bool:
    stderr = error.stderr.lower()
    return any(marker in stderr for marker in _NOT_FOUND_MARKERS)


def _to_entry(document: Any) -> ConfigEntry:
    try:
        return ConfigEntry.model_validate(document)
    except ValidationError as e:
        raise ResponseParseError(f"unexpected key-value document: {e}")


def show_store(runner: AzCli, name: str, subscription: Optional[str] = None) -> StoreInfo:
    """
    Look up an App Configuration store.

    Args:
        runner: az runner
        name: Store name
        subscription: Subscription id or name

    Returns:
        Store name and endpoint
    """
    args = ["appconfig", "show", "--name", name]
    if subscription:
        args += ["--subscription", subscription]
    document = runner.run_json(args)
    try:
        return StoreInfo.model_validate(document)
    except ValidationError as e:
        raise ResponseParseError(f"unexpected store document: {e}")


class AzCliStoreClient(RemoteStoreClient):
    """
    App Configuration access through ``az appconfig kv``.

    Attributes:
        store_name: App Configuration store name
        subscription: Subscription the store belongs to
    """

    def __init__(self, runner: AzCli, store_name: str, subscription: Optional[str] = None):
        self._runner = runner
        self.store_name = store_name
        self.subscription = subscription

    def _kv_args(self, operation: str, *extra: str) -> List[str]:
        args = ["appconfig", "kv", operation, "--name", self.store_name]
        if self.subscription:
            args += ["--subscription", self.subscription]
        args.extend(extra)
        return args

    # User data is passed as --flag=value so a leading "-" is not read as an option
    @staticmethod
    def _label_args(label: Optional[str]) -> List[str]:
        return [f"--label={label}"] if label else []

    def list(self, key_filter: str = "*", label: Optional[str] = None) -> List[ConfigEntry]:
        args = self._kv_args("list", f"--key={key_filter}", "--all", *self._label_args(label))
        documents = self._runner.run_json(args) or []
        if not isinstance(documents, list):
            raise ResponseParseError("expected a list of key-values")
        entries = [_to_entry(document) for document in documents]
        logger.debug(f"Listed {len(entries)} entries matching '{key_filter}'")
        return entries

    def show(self, key: str, label: Optional[str] = None) -> ConfigEntry:
        args = self._kv_args("show", f"--key={key}", *self._label_args(label))
        try:
            document = self._runner.run_json(args)
        except CommandFailureError as e:
            if _is_not_found(e):
                raise KeyNotFoundError(key, label)
            raise
        if document is None:
            raise KeyNotFoundError(key, label)
        return _to_entry(document)

    def set(
        self,
        key: str,
        value: str,
        label: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> ConfigEntry:
        args = self._kv_args("set", f"--key={key}", f"--value={value}", "--yes", *self._label_args(label))
        if content_type is not None:
            args.append(f"--content-type={content_type}")
        return _to_entry(self._runner.run_json(args))

    def set_secret_reference(
        self, key: str, secret_uri: str, label: Optional[str] = None
    ) -> ConfigEntry:
        args = self._kv_args(
            "set-keyvault",
            f"--key={key}",
            "--secret-identifier",
            secret_uri,
            "--yes",
            *self._label_args(label),
        )
        return _to_entry(self._runner.run_json(args))

    def delete(self, key: str, label: Optional[str] = None) -> None:
        args = self._kv_args("delete", f"--key={key}", "--yes", *self._label_args(label))
        try:
            deleted = self._runner.run_json(args)
        except CommandFailureError as e:
            if _is_not_found(e):
                raise KeyNotFoundError(key, label)
            raise
        if not deleted:
            raise KeyNotFoundError(key, label)
