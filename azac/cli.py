"""
azac Command-Line Interface

Manage App Configuration contexts and keys, and import/export keys in bulk.
"""

import sys
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import click
from pydantic import ValidationError

from azac import __version__
from azac.azcli import (
    AzCli,
    AzCliStoreClient,
    AzCliVaultClient,
    RemoteError,
    RemoteStoreClient,
    SecretVault,
    show_store,
)
from azac.core.config_manager import AzacConfig, ConfigManager, default_config_file
from azac.core.context import Context, load_store, save_store
from azac.core.exceptions import AzacError
from azac.core.logging_config import get_logger, setup_logging
from azac.services.exporter import export_to_file
from azac.services.importer import Decision, FixedDecision, ImportOrchestrator
from azac.services.keys import KeyService
from azac.services.serializer import ExportFormat

logger = get_logger("azac.cli")

ClientFactory = Callable[[Context], Tuple[RemoteStoreClient, SecretVault]]


def handle_errors(func):
    """Print azac errors and exit with status 1."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AzacError as e:
            click.echo(f"[ERROR] {e.message}", err=True)
            sys.exit(1)
    return wrapper


def _settings(ctx: click.Context) -> AzacConfig:
    return ctx.obj["config"]


def _context_file(ctx: click.Context) -> Optional[str]:
    return _settings(ctx).context.file


def _runner(ctx: click.Context) -> AzCli:
    settings = _settings(ctx).azcli
    return AzCli(executable=settings.executable, check_login=settings.check_login)


def _az_clients(ctx: click.Context) -> ClientFactory:
    def factory(context: Context) -> Tuple[RemoteStoreClient, SecretVault]:
        runner = _runner(ctx)
        return AzCliStoreClient(runner, context.store_name, context.subscription), AzCliVaultClient(runner)
    return factory


def _key_service(ctx: click.Context) -> Tuple[Context, RemoteStoreClient, SecretVault]:
    context = load_store(_context_file(ctx)).active()
    store, vault = ctx.obj["client_factory"](context)
    return context, store, vault


class PromptDecision:
    """Ask on the terminal whether an undecided key is plain or a Key Vault secret."""

    def __call__(self, key: str) -> Decision:
        answer = click.prompt(
            f"Store '{key}' as",
            type=click.Choice([decision.value for decision in Decision]),
            default=Decision.PLAIN.value,
        )
        return Decision(answer)


@click.group()
@click.version_option(version=__version__, prog_name="azac")
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level",
)
@click.pass_context
def cli(ctx, config_file: Optional[Path], log_level: Optional[str]):
    """
    azac - better Azure CLI App Configuration

    Opinionated tooling for managing Azure App Configuration contexts and
    keys, with Key Vault references handled transparently.
    """
    ctx.ensure_object(dict)

    overrides: Dict[str, Any] = {}
    if log_level:
        overrides["logging"] = {"level": log_level.upper()}

    config_path = config_file or default_config_file()
    try:
        config = ConfigManager().load(
            config_file=str(config_path) if config_path else None,
            cli_overrides=overrides,
        )
    except (ValidationError, ValueError) as e:
        click.echo(f"[ERROR] Invalid configuration: {e}", err=True)
        sys.exit(1)

    setup_logging(
        config.logging.level,
        format_type=config.logging.format,
        log_file=config.logging.file,
        rotation_size=config.logging.rotation_size,
        rotation_count=config.logging.rotation_count,
        module_levels=config.logging.module_levels,
    )
    ctx.obj["config"] = config
    ctx.obj.setdefault("client_factory", _az_clients(ctx))


# ========== Context Management Commands ==========

@cli.group()
def context():
    """
    Manage saved contexts.

    A context selects the subscription, App Configuration store,
    application, label and Key Vault that key commands work on.
    """
    pass


def _context_options(func):
    options = [
        click.option("--subscription", "subscription_id", help="Subscription id"),
        click.option("--subscription-name", help="Subscription display name"),
        click.option("--endpoint", "store_endpoint", help="App Configuration endpoint URL"),
        click.option("--app", help="Application prefix (empty string clears it)"),
        click.option("--label", help="Label (empty string clears it)"),
        click.option("--keyvault", help="Key Vault name or URL (empty string clears it)"),
        click.option("--separator", help="Separator between application and key"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _given(values: Dict[str, Optional[str]]) -> Dict[str, str]:
    """Keep only options that were given a non-empty value."""
    return {name: value for name, value in values.items() if value}


@context.command(name="list")
@click.pass_context
@handle_errors
def context_list(ctx):
    """List saved contexts; the current one is marked with '*'."""
    entries = load_store(_context_file(ctx)).list()
    if not entries:
        click.echo("No contexts saved. Run 'azac context add'.")
        return
    for saved, is_current in entries:
        marker = "*" if is_current else " "
        scope = f"{saved.store_name}/{saved.app or '-'}"
        label = saved.label or "(no label)"
        vault = saved.keyvault or "(no vault)"
        click.echo(f"{marker} {saved.alias:<20} {scope:<40} {label:<15} {vault}")


@context.command(name="current")
@click.pass_context
@handle_errors
def context_current(ctx):
    """Show the current context."""
    current = load_store(_context_file(ctx)).current_context()
    if current is None:
        click.echo("No current context set.")
        return
    click.echo(f"Current context: {current.alias}")
    click.echo(f"  Subscription: {current.subscription_name or current.subscription_id or '-'}")
    click.echo(f"  Store:        {current.store_name} {current.store_endpoint}".rstrip())
    click.echo(f"  Application:  {current.app or '-'} (separator '{current.separator}')")
    click.echo(f"  Label:        {current.label or '-'}")
    click.echo(f"  Key Vault:    {current.keyvault or '-'}")


@context.command(name="use")
@click.argument("alias")
@click.pass_context
@handle_errors
def context_use(ctx, alias: str):
    """Make ALIAS the current context."""
    path = _context_file(ctx)
    store = load_store(path)
    store.use(alias)
    save_store(store, path)
    click.echo(f"Current context set to '{alias}'.")


@context.command(name="add")
@click.argument("alias")
@click.option("--store", "store_name", required=True, help="App Configuration store name")
@_context_options
@click.option("--use/--no-use", "make_current", default=True, show_default=True,
              help="Make the new context current")
@click.pass_context
@handle_errors
def context_add(ctx, alias: str, store_name: str, make_current: bool, **options):
    """
    Save a new context as ALIAS.

    Examples:
        azac context add dev --store my-appconfig --app api --label dev --keyvault my-vault
    """
    fields = _given(options)
    if "store_endpoint" not in fields:
        try:
            fields["store_endpoint"] = show_store(
                _runner(ctx), store_name, fields.get("subscription_id")
            ).endpoint
        except RemoteError as e:
            logger.warning(f"Could not look up endpoint of store '{store_name}': {e.message}")

    try:
        new_context = Context(alias=alias, store_name=store_name, **fields)
    except ValidationError as e:
        click.echo(f"[ERROR] Invalid context: {e}", err=True)
        sys.exit(1)

    path = _context_file(ctx)
    store = load_store(path)
    store.add(new_context)
    if make_current:
        store.use(alias)
    save_store(store, path)
    suffix = " and set as current" if make_current else ""
    click.echo(f"Context saved{suffix}: '{alias}'.")


@context.command(name="edit")
@click.argument("alias")
@click.option("--store", "store_name", help="App Configuration store name")
@click.option("--alias", "new_alias", help="New alias")
@_context_options
@click.pass_context
@handle_errors
def context_edit(ctx, alias: str, **options):
    """Change fields of the context ALIAS."""
    path = _context_file(ctx)
    store = load_store(path)
    existing = store.get(alias)

    changes = {name: value for name, value in options.items() if value is not None}
    if "new_alias" in changes:
        changes["alias"] = changes.pop("new_alias")
    for optional in ("app", "label", "keyvault"):
        if optional in changes and not changes[optional]:
            changes[optional] = None

    try:
        updated = Context.model_validate({**existing.model_dump(), **changes})
    except ValidationError as e:
        click.echo(f"[ERROR] Invalid context: {e}", err=True)
        sys.exit(1)

    store.update(alias, updated)
    save_store(store, path)
    click.echo(f"Updated context '{updated.alias}'.")


@context.command(name="rename")
@click.argument("source")
@click.argument("target")
@click.pass_context
@handle_errors
def context_rename(ctx, source: str, target: str):
    """Rename context SOURCE to TARGET."""
    path = _context_file(ctx)
    store = load_store(path)
    store.rename(source, target)
    save_store(store, path)
    click.echo(f"Renamed context '{source}' -> '{target}'.")


@context.command(name="clone")
@click.argument("source")
@click.argument("target")
@click.pass_context
@handle_errors
def context_clone(ctx, source: str, target: str):
    """Copy context SOURCE to TARGET."""
    path = _context_file(ctx)
    store = load_store(path)
    store.clone(source, target)
    save_store(store, path)
    click.echo(f"Cloned context '{source}' -> '{target}'.")


@context.command(name="delete")
@click.argument("alias")
@click.pass_context
@handle_errors
def context_delete(ctx, alias: str):
    """Delete the context ALIAS."""
    path = _context_file(ctx)
    store = load_store(path)
    store.remove(alias)
    save_store(store, path)
    click.echo(f"Deleted context '{alias}'.")


# ========== Key Commands ==========

@cli.command(name="list")
@click.option("--reveal", is_flag=True, help="Read secret values from Key Vault")
@click.pass_context
@handle_errors
def list_keys(ctx, reveal: bool):
    """List keys of the current context."""
    active, store, vault = _key_service(ctx)
    entries = KeyService(active, store, vault).list_keys(reveal=reveal)
    if not entries:
        click.echo("No keys found.")
        return
    for entry in entries:
        marker = " (keyvault)" if entry.is_indirection else ""
        click.echo(f"{entry.key} = {entry.value}{marker}")


cli.add_command(list_keys, name="ls")


@cli.command()
@click.argument("key")
@click.pass_context
@handle_errors
def show(ctx, key: str):
    """Show the value of KEY, reading Key Vault references."""
    active, store, vault = _key_service(ctx)
    entry = KeyService(active, store, vault).show_key(key)
    click.echo(entry.value)


@cli.command(name="set")
@click.argument("key")
@click.argument("value")
@click.option("--keyvault", is_flag=True, help="Store the value in Key Vault and reference it")
@click.pass_context
@handle_errors
def set_key(ctx, key: str, value: str, keyvault: bool):
    """
    Set KEY to VALUE.

    Examples:
        azac set Db:Host db.internal
        azac set Db:Password s3cr3t --keyvault
    """
    active, store, vault = _key_service(ctx)
    action = KeyService(active, store, vault).set_key(key, value, use_keyvault=keyvault)
    click.echo(f"[OK] {key} ({action.value})")


@cli.command()
@click.argument("keys", nargs=-1, required=True)
@click.pass_context
@handle_errors
def delete(ctx, keys: Tuple[str, ...]):
    """Delete one or more KEYS."""
    active, store, vault = _key_service(ctx)
    failures = KeyService(active, store, vault).delete_keys(keys)
    for key, message in failures:
        click.echo(f"[ERROR] {key}: {message}", err=True)
    deleted = len(keys) - len(failures)
    click.echo(f"Deleted {deleted} of {len(keys)} keys.")
    if failures:
        sys.exit(1)


@cli.command()
@click.argument("key")
@click.pass_context
@handle_errors
def promote(ctx, key: str):
    """Move the value of KEY into Key Vault and reference it."""
    active, store, vault = _key_service(ctx)
    secret_uri = KeyService(active, store, vault).promote_key(key)
    click.echo(f"[OK] {key} -> {secret_uri}")


@cli.command()
@click.argument("key")
@click.pass_context
@handle_errors
def demote(ctx, key: str):
    """Replace the Key Vault reference of KEY with its value."""
    active, store, vault = _key_service(ctx)
    KeyService(active, store, vault).demote_key(key)
    click.echo(f"[OK] {key} is now a plain value")


# ========== Bulk Commands ==========

@cli.command(name="export")
@click.argument("file", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--output",
    "-o",
    "fmt",
    type=click.Choice([fmt.value for fmt in ExportFormat], case_sensitive=False),
    help="Output format (default: from file extension, then json)",
)
@click.option("--no-secrets", is_flag=True, help="Export Key Vault addresses instead of secret values")
@click.pass_context
@handle_errors
def export_command(ctx, file: Path, fmt: Optional[str], no_secrets: bool):
    """
    Export the keys of the current context to FILE.

    Examples:
        azac export settings.json
        azac export .env -o env
    """
    active, store, vault = _key_service(ctx)
    count = export_to_file(
        file,
        active,
        store,
        vault,
        fmt=ExportFormat(fmt.lower()) if fmt else None,
        fetch_secrets=not no_secrets,
    )
    click.echo(f"Exported {count} keys to {file}")


@cli.command(name="import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--as",
    "default_kind",
    type=click.Choice(["ask", "plain", "keyvault", "skip"], case_sensitive=False),
    default="ask",
    show_default=True,
    help="How to store keys the file does not type (env files)",
)
@click.option("--workers", type=click.IntRange(min=1), help="Maximum parallel writes")
@click.pass_context
@handle_errors
def import_command(ctx, file: Path, default_kind: str, workers: Optional[int]):
    """
    Import keys from FILE into the current context.

    The format is detected from the file name and contents. A failing key
    does not stop the import; failures are listed at the end.
    """
    active, store, vault = _key_service(ctx)
    decide = PromptDecision() if default_kind == "ask" else FixedDecision(Decision(default_kind.lower()))
    orchestrator = ImportOrchestrator(
        active,
        store,
        vault,
        decide=decide,
        workers=workers or _settings(ctx).importer.workers,
    )
    summary = orchestrator.import_file(file)

    for key, reason in summary.skips:
        click.echo(f"[SKIP] {key}: {reason}", err=True)
    for key, message in summary.failures:
        click.echo(f"[ERROR] {key}: {message}", err=True)
    click.echo(f"Import finished: {summary}")


def main():
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
