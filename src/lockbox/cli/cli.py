"""Main CLI implementation."""

from pathlib import Path
from typing import Optional

import click
import structlog
from rich.console import Console
from rich.table import Table

from ..audit import EventType, audit_event, setup_logging
from ..config import LOG_LEVELS, LockboxSettings
from ..exceptions import LockboxError
from ..service import VaultService
from ..storage import get_checksum_store, get_state_store

logger = structlog.get_logger(__name__)
console = Console()

CLI_CHECKSUM_BACKENDS = ("keyring", "file")


def print_table(title: str, rows: list[dict], columns: list[tuple[str, str]]) -> None:
    """Print data in a formatted table.

    Args:
        title: Table title
        rows: List of row dictionaries
        columns: List of (key, header) tuples defining columns
    """
    table = Table(title=title)
    for key, header in columns:
        table.add_column(header, style="cyan")

    for row in rows:
        values = [str(row.get(key, "")) for key, _ in columns]
        table.add_row(*values)

    console.print(table)


def get_service(settings: LockboxSettings) -> VaultService:
    """Build the vault service for the configured backends."""
    return VaultService(
        get_state_store(settings),
        get_checksum_store(settings),
        iterations=settings.iterations,
    )


master_password_option = click.option(
    "--password",
    prompt="Master password",
    hide_input=True,
    help="Master password (prompted if omitted).",
)


@click.group()
@click.version_option(package_name="lockbox-keychain")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Set logging level",
)
@click.option(
    "--state-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding vault files",
)
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], state_dir: Optional[Path]) -> None:
    """Lockbox encrypted password keychain.

    Vault names are local labels; each vault has its own master password.
    """
    try:
        settings = LockboxSettings.from_env()
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    updates = {}
    if log_level:
        updates["log_level"] = log_level.upper()
    if state_dir:
        updates["state_dir"] = state_dir
    settings = settings.model_copy(update=updates)
    if settings.checksum_backend not in CLI_CHECKSUM_BACKENDS:
        # Each command runs in a fresh process
        raise click.ClickException(
            f"Checksum backend '{settings.checksum_backend}' does not persist "
            "between commands; use one of: " + ", ".join(CLI_CHECKSUM_BACKENDS)
        )

    setup_logging(log_level=settings.log_level, base_dir=settings.log_dir)
    logger.debug(
        "cli_configured",
        state_dir=str(settings.state_dir),
        checksum_backend=settings.checksum_backend,
    )
    ctx.obj = settings


@cli.command()
@click.argument("name")
@click.password_option("--password", help="Master password for the new vault.")
@click.pass_obj
def init(settings: LockboxSettings, name: str, password: str) -> None:
    """Create an empty vault called NAME."""
    try:
        get_service(settings).setup(name, password).close()
    except LockboxError as e:
        raise click.ClickException(str(e))
    click.echo(f"Created vault: {name}")


@cli.command(name="set")
@click.argument("name")
@click.argument("domain")
@master_password_option
@click.option(
    "--value",
    prompt="Password to store",
    hide_input=True,
    confirmation_prompt=True,
    help="Password to store for DOMAIN (prompted if omitted).",
)
@click.pass_obj
def set_(settings: LockboxSettings, name: str, domain: str, password: str, value: str) -> None:
    """Store the password for DOMAIN in vault NAME."""
    try:
        service = get_service(settings)
        with service.login(name, password) as keychain:
            keychain.set(domain, value)
            service.save(name, keychain)
    except LockboxError as e:
        audit_event(event_type=EventType.RECORD_WRITE, user=name, success=False, error=e)
        raise click.ClickException(str(e))
    audit_event(event_type=EventType.RECORD_WRITE, user=name, success=True)
    click.echo(f"Stored password for {domain}")


@cli.command()
@click.argument("name")
@click.argument("domain")
@master_password_option
@click.pass_obj
def get(settings: LockboxSettings, name: str, domain: str, password: str) -> None:
    """Print the password stored for DOMAIN in vault NAME."""
    try:
        with get_service(settings).login(name, password) as keychain:
            value = keychain.get(domain)
    except LockboxError as e:
        audit_event(event_type=EventType.RECORD_READ, user=name, success=False, error=e)
        raise click.ClickException(str(e))

    audit_event(
        event_type=EventType.RECORD_READ,
        user=name,
        success=True,
        details={"found": value is not None},
    )
    if value is None:
        raise click.ClickException(f"No entry for {domain}")
    click.echo(value)


@cli.command()
@click.argument("name")
@click.argument("domain")
@master_password_option
@click.pass_obj
def remove(settings: LockboxSettings, name: str, domain: str, password: str) -> None:
    """Remove the password stored for DOMAIN from vault NAME."""
    try:
        service = get_service(settings)
        with service.login(name, password) as keychain:
            removed = keychain.remove(domain)
            if removed:
                service.save(name, keychain)
    except LockboxError as e:
        audit_event(event_type=EventType.RECORD_DELETE, user=name, success=False, error=e)
        raise click.ClickException(str(e))

    audit_event(event_type=EventType.RECORD_DELETE, user=name, success=removed)
    if not removed:
        raise click.ClickException(f"No entry for {domain}")
    click.echo(f"Removed password for {domain}")


@cli.command()
@click.argument("name")
@master_password_option
@click.pass_obj
def verify(settings: LockboxSettings, name: str, password: str) -> None:
    """Check the checksum, master password and every record of vault NAME."""
    try:
        with get_service(settings).login(name, password) as keychain:
            count = keychain.verify_records()
    except LockboxError as e:
        audit_event(event_type=EventType.VAULT_VERIFY, user=name, success=False, error=e)
        raise click.ClickException(str(e))
    audit_event(event_type=EventType.VAULT_VERIFY, user=name, success=True)
    click.echo(f"Vault {name} verified ({count} records)")


@cli.command(name="list")
@click.pass_obj
def list_(settings: LockboxSettings) -> None:
    """List stored vaults."""
    try:
        names = get_service(settings).list_vaults()
    except LockboxError as e:
        raise click.ClickException(str(e))

    if not names:
        click.echo("No vaults found")
        return
    print_table("Vaults", [{"name": n} for n in names], [("name", "Name")])


@cli.command()
@click.argument("name")
@click.confirmation_option(prompt="Delete this vault and all its passwords?")
@click.pass_obj
def destroy(settings: LockboxSettings, name: str) -> None:
    """Delete vault NAME."""
    try:
        deleted = get_service(settings).delete(name)
    except LockboxError as e:
        raise click.ClickException(str(e))
    if not deleted:
        raise click.ClickException(f"Vault not found: {name}")
    click.echo(f"Deleted vault: {name}")


def main() -> None:
    """CLI entry point."""
    cli()
