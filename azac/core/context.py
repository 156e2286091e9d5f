"""
Active context management.

A context selects the subscription, App Configuration store, application
prefix, label and Key Vault every key operation works against. Contexts are
kept under aliases in a TOML file; the store is an explicit value that is
loaded, changed and saved around each command.
"""

import logging
import tomllib
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import click
import tomli_w
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import (
    ContextFileError,
    CurrentContextMissingError,
    DuplicateAliasError,
    MissingApplicationError,
    MissingLabelError,
    NotConfiguredError,
    UnknownAliasError,
)

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = ":"
CONTEXT_FILE_NAME = "contexts.toml"


class Context(BaseModel):
    """One named scope.

    Attributes:
        alias: Name the context is stored under
        subscription_id: Azure subscription id
        subscription_name: Azure subscription display name
        store_name: App Configuration store name
        store_endpoint: App Configuration endpoint URL
        separator: Separator between application prefix and key
        app: Selected application prefix
        label: Selected label
        keyvault: Key Vault name or address used for secret values
    """

    alias: str
    subscription_id: str = ""
    subscription_name: str = ""
    store_name: str
    store_endpoint: str = ""
    separator: str = DEFAULT_SEPARATOR
    app: Optional[str] = None
    label: Optional[str] = None
    keyvault: Optional[str] = None

    @field_validator("alias", "store_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty aliases and store names."""
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("separator")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        """Reject an empty separator."""
        if not v:
            raise ValueError("separator must not be empty")
        return v

    @property
    def subscription(self) -> Optional[str]:
        """Subscription argument for az, preferring the id."""
        return self.subscription_id or self.subscription_name or None


class ContextStore(BaseModel):
    """All saved contexts plus the alias of the current one."""

    current: Optional[str] = None
    contexts: Dict[str, Context] = Field(default_factory=dict)

    def add(self, ctx: Context) -> None:
        """Save a new context.

        Raises:
            DuplicateAliasError: If the alias is taken
        """
        if ctx.alias in self.contexts:
            raise DuplicateAliasError(ctx.alias)
        self.contexts[ctx.alias] = ctx

    def get(self, alias: str) -> Context:
        """Return a context by alias.

        Raises:
            UnknownAliasError: If no context has this alias
        """
        try:
            return self.contexts[alias]
        except KeyError:
            raise UnknownAliasError(alias)

    def use(self, alias: str) -> None:
        """Make a context the current one."""
        if alias not in self.contexts:
            raise UnknownAliasError(alias)
        self.current = alias

    def current_context(self) -> Optional[Context]:
        """Return the current context, or None when none is selected.

        Raises:
            CurrentContextMissingError: If the current alias no longer exists
        """
        if self.current is None:
            return None
        ctx = self.contexts.get(self.current)
        if ctx is None:
            raise CurrentContextMissingError(self.current)
        return ctx

    def list(self) -> List[Tuple[Context, bool]]:
        """Return ``(context, is_current)`` pairs sorted by alias."""
        return [
            (ctx, ctx.alias == self.current)
            for ctx in sorted(self.contexts.values(), key=lambda c: c.alias)
        ]

    def update(self, original_alias: str, ctx: Context) -> None:
        """Replace a context, following it if its alias changes."""
        if original_alias not in self.contexts:
            raise UnknownAliasError(original_alias)
        if original_alias != ctx.alias and ctx.alias in self.contexts:
            raise DuplicateAliasError(ctx.alias)

        del self.contexts[original_alias]
        self.contexts[ctx.alias] = ctx
        if self.current == original_alias:
            self.current = ctx.alias

    def rename(self, original_alias: str, new_alias: str) -> None:
        """Rename a context."""
        if original_alias == new_alias:
            return
        ctx = self.get(original_alias)
        self.update(original_alias, ctx.model_copy(update={"alias": new_alias}))

    def clone(self, source_alias: str, new_alias: str) -> None:
        """Copy a context under a new alias."""
        ctx = self.get(source_alias)
        self.add(ctx.model_copy(update={"alias": new_alias}))

    def remove(self, alias: str) -> None:
        """Delete a context; deleting the current one clears the selection."""
        if self.contexts.pop(alias, None) is None:
            raise UnknownAliasError(alias)
        if self.current == alias:
            self.current = None

    def active(self, require_app: bool = False, require_label: bool = False) -> Context:
        """
        Return the context key operations run against.

        Args:
            require_app: Fail when no application is selected
            require_label: Fail when no label is selected

        Raises:
            NotConfiguredError: If no context is selected
            MissingApplicationError: If ``require_app`` and no application
            MissingLabelError: If ``require_label`` and no label
        """
        ctx = self.current_context()
        if ctx is None:
            raise NotConfiguredError()
        if require_app and not ctx.app:
            raise MissingApplicationError(ctx.alias)
        if require_label and not ctx.label:
            raise MissingLabelError(ctx.alias)
        return ctx


def default_context_path() -> Path:
    """Return the per-user context file location."""
    return Path(click.get_app_dir("azac")) / CONTEXT_FILE_NAME


def load_store(path: Optional[Union[str, Path]] = None) -> ContextStore:
    """
    Load the context store.

    A missing or blank file yields an empty store.

    Raises:
        ContextFileError: If the file cannot be read or is invalid
    """
    path = Path(path) if path else default_context_path()
    if not path.exists():
        return ContextStore()

    try:
        payload = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ContextFileError(str(path), str(e))
    if not payload.strip():
        return ContextStore()

    try:
        return ContextStore.model_validate(tomllib.loads(payload))
    except (tomllib.TOMLDecodeError, ValidationError) as e:
        raise ContextFileError(str(path), str(e))


def save_store(store: ContextStore, path: Optional[Union[str, Path]] = None) -> None:
    """
    Write the context store, creating parent directories as needed.

    Raises:
        ContextFileError: If the file cannot be written
    """
    path = Path(path) if path else default_context_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(tomli_w.dumps(store.model_dump(exclude_none=True)), encoding="utf-8")
    except OSError as e:
        raise ContextFileError(str(path), str(e))
    logger.debug(f"Saved {len(store.contexts)} contexts to {path}")


def get_active(
    require_app: bool = False,
    require_label: bool = False,
    path: Optional[Union[str, Path]] = None,
) -> Context:
    """Load the context store and return its active context."""
    return load_store(path).active(require_app=require_app, require_label=require_label)
