"""Command line interface for the git profile switcher."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .core.cipher_store import CipherStore, get_cipher_store
from .core.config_store import ProfileStore
from .core.errors import GitSwitchError
from .core.git_config import describe_outcome, read_git_config, update_git_config
from .core.keyring_source import KeyringKeySource
from .core.manager import ProfileManager
from .core.settings import SettingsStore
from .utils.logging import get_logging_manager

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(add_completion=False, help="Switch git identities and keep secrets sealed")

KeyOption = typer.Option(None, "--key", help="Key material; defaults to $GITSWITCH_KEY or the keyring")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo log output")) -> None:
    manager = get_logging_manager()
    if verbose:
        manager.enable_console()


@contextmanager
def _reporting_errors() -> Iterator[None]:
    try:
        yield
    except GitSwitchError as exc:
        err_console.print(f"[red]{type(exc).__name__}: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def _cipher(key: Optional[str], required: bool = True) -> CipherStore:
    cipher = get_cipher_store()
    material = key or KeyringKeySource().load()
    if material is None:
        if required:
            err_console.print("[red]No encryption key: pass --key, set GITSWITCH_KEY or run store-key[/red]")
            raise typer.Exit(code=1)
        return cipher
    cipher.set_key(material)
    return cipher


def _manager(key: Optional[str]) -> ProfileManager:
    settings = SettingsStore().load()
    # Sealed SSH key paths need real key material, never the all-zero default.
    store = ProfileStore(
        cipher=_cipher(key, required=settings.encrypt_ssh_key_paths),
        encrypt_ssh_key_paths=settings.encrypt_ssh_key_paths,
    )
    return ProfileManager(store=store, settings=settings)


@app.command("list")
def list_profiles(key: Optional[str] = KeyOption) -> None:
    """List configured git profiles."""
    with _reporting_errors():
        manager = _manager(key)
        table = Table(title="Git Profiles")
        table.add_column("ID")
        table.add_column("Name")
        table.add_column("Email")
        table.add_column("Active")
        table.add_column("Last used")
        for profile in manager.list_profiles():
            table.add_row(
                profile.id,
                profile.name,
                profile.email,
                "Yes" if profile.is_active else "No",
                profile.last_used.strftime("%Y-%m-%d %H:%M") if profile.last_used else "-",
            )
        console.print(table)


@app.command()
def activate(profile_id: str, key: Optional[str] = KeyOption) -> None:
    """Apply a profile to the global git config."""
    with _reporting_errors():
        outcome = _manager(key).activate(profile_id)
    console.print(f"[green]{describe_outcome(outcome)}[/green]")
    if outcome.backup_path:
        console.print(f"Backup written to {outcome.backup_path}")


@app.command()
def apply(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    no_backup: bool = typer.Option(False, "--no-backup", help="Skip the timestamped backup"),
    backup_dir: Optional[Path] = typer.Option(None, "--backup-dir", help="Where backups are written"),
) -> None:
    """Replace the global git config with the contents of SOURCE."""
    with _reporting_errors():
        settings = SettingsStore().load()
        if no_backup:
            settings.backup_enabled = False
        if backup_dir is not None:
            settings.backup_dir = backup_dir
        outcome = update_git_config(source.read_text(encoding="utf-8"), settings.to_policy())
    console.print(f"[green]{describe_outcome(outcome)}[/green]")
    if outcome.backup_path:
        console.print(f"Backup written to {outcome.backup_path}")


@app.command()
def show() -> None:
    """Print the current global git config."""
    with _reporting_errors():
        text = read_git_config()
    if text:
        typer.echo(text, nl=False)
    else:
        console.print("[dim](empty)[/dim]")


@app.command()
def encrypt(text: str, key: Optional[str] = KeyOption) -> None:
    """Seal TEXT and print the envelope."""
    with _reporting_errors():
        envelope = _cipher(key).encrypt(text)
    typer.echo(envelope)


@app.command()
def decrypt(envelope: str, key: Optional[str] = KeyOption) -> None:
    """Open an envelope and print the plaintext."""
    with _reporting_errors():
        plaintext = _cipher(key).decrypt(envelope)
    typer.echo(plaintext)


@app.command("encrypt-file")
def encrypt_file(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    destination: Path = typer.Argument(...),
    key: Optional[str] = KeyOption,
) -> None:
    """Seal the text of SOURCE into DESTINATION."""
    with _reporting_errors():
        _cipher(key).write_encrypted_file(destination, source.read_text(encoding="utf-8"))
    console.print(f"Encrypted {source} -> {destination}")


@app.command("decrypt-file")
def decrypt_file(source: Path = typer.Argument(...), key: Optional[str] = KeyOption) -> None:
    """Print the plaintext of an encrypted file."""
    with _reporting_errors():
        plaintext = _cipher(key).read_encrypted_file(source)
    typer.echo(plaintext, nl=False)


@app.command("store-key")
def store_key(material: str) -> None:
    """Keep key material in the OS keyring for later commands."""
    source = KeyringKeySource()
    if not source.save(material):
        err_console.print("[red]Keyring unavailable; key material not stored[/red]")
        raise typer.Exit(code=1)
    console.print("Key material stored in keyring")


def run_cli(argv: List[str] | None = None) -> int:
    try:
        app(args=argv, prog_name="gitswitch")
    except SystemExit as exc:
        if exc.code is None:
            return 0
        return exc.code if isinstance(exc.code, int) else 1
    return 0
