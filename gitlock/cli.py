"""CLI entry point for Gitlock."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.syntax import Syntax
from rich.table import Table

from gitlock_core.chain import InMemoryLockStore, SnapshotCache, SnapshotChain
from gitlock_core.config import GitlockConfig, load_config
from gitlock_core.config.loader import DEFAULT_CONFIG_TEMPLATE
from gitlock_core.diff import (
    DiffScript,
    apply_diff,
    compute_diff,
    decode_stored_diff,
    encode_diff,
    encode_stored_diff,
)
from gitlock_core.errors import GitlockError
from gitlock_core.interfaces import LockStore
from gitlock_core.snapshot import Snapshot
from gitlock_core.verify import export_proofs, verify_chain
from gitlock_lite.storage import SQLiteLockStore

app = typer.Typer(
    name="gitlock",
    help="Tamper-evident lock chain over a commit history.",
)

config_app = typer.Typer(help="Manage Gitlock configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: GitlockConfig | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _configure_logging(cfg: GitlockConfig) -> None:
    handler = logging.StreamHandler()
    if cfg.log_format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logging.basicConfig(level=_LOG_LEVELS[cfg.log_level], handlers=[handler], force=True)


def _get_config() -> GitlockConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to gitlock.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]error:[/red] {e}")
        raise typer.Exit(1)
    _configure_logging(_config)


def _read_text(path: str) -> str:
    # Bytes in, bytes out: universal-newline translation would alter hashes
    return Path(path).read_bytes().decode("utf-8")


def _open_store(cfg: GitlockConfig, db: str | None) -> LockStore:
    if db is not None:
        return SQLiteLockStore(db)
    if cfg.store.provider == "memory":
        return InMemoryLockStore()
    return SQLiteLockStore(cfg.store.path)


def _open_chain(db: str | None) -> SnapshotChain:
    cfg = _get_config()
    return SnapshotChain(
        store=_open_store(cfg, db),
        cache=SnapshotCache(evict_processed=cfg.chain.evict_processed),
    )


# ---------------------------------------------------------------------------
# Diff / apply
# ---------------------------------------------------------------------------


@app.command()
def diff(
    base: Annotated[str, typer.Argument(help="Base snapshot file")],
    target: Annotated[str, typer.Argument(help="Target snapshot file")],
    stored: Annotated[
        bool, typer.Option("--stored", help="Write 'no-diff' for an empty diff")
    ] = False,
) -> None:
    """Print the diff turning BASE into TARGET."""
    try:
        script = compute_diff(
            Snapshot.from_text(_read_text(base)), Snapshot.from_text(_read_text(target))
        )
    except (GitlockError, OSError, UnicodeDecodeError) as e:
        rprint(f"[red]error:[/red] {e}")
        raise typer.Exit(1)
    typer.echo(encode_stored_diff(script) if stored else encode_diff(script), nl=False)


@app.command()
def apply(
    base: Annotated[str, typer.Argument(help="Base snapshot file")],
    diff_file: Annotated[str, typer.Argument(help="Diff file produced by 'gitlock diff'")],
    output: Annotated[
        str | None, typer.Option("--output", "-o", help="Write the result to a file")
    ] = None,
) -> None:
    """Apply a diff to BASE and print the resulting snapshot."""
    try:
        raw = _read_text(diff_file)
        script = decode_stored_diff(raw) if raw else DiffScript()
        result = apply_diff(Snapshot.from_text(_read_text(base)), script).to_text()
    except (GitlockError, OSError, UnicodeDecodeError) as e:
        rprint(f"[red]error:[/red] {e}")
        raise typer.Exit(1)

    if output is None:
        typer.echo(result, nl=False)
    else:
        Path(output).write_bytes(result.encode("utf-8"))
        rprint(f"[green]Wrote[/green] {output}")


# ---------------------------------------------------------------------------
# Chain commands (show, verify, list, proof)
# ---------------------------------------------------------------------------


@app.command()
def show(
    commit: Annotated[str, typer.Argument(help="Commit id")],
    db: Annotated[str | None, typer.Option("--db", help="Lock database path")] = None,
) -> None:
    """Reconstruct and print the snapshot locked for COMMIT."""
    try:
        snapshot = _open_chain(db).get_full_snapshot(commit)
    except GitlockError as e:
        rprint(f"[red]error:[/red] {e}")
        raise typer.Exit(1)
    typer.echo(snapshot.to_text(), nl=False)


@app.command()
def verify(
    commits: Annotated[
        list[str] | None, typer.Argument(help="Commit ids (default: every lock)")
    ] = None,
    db: Annotated[str | None, typer.Option("--db", help="Lock database path")] = None,
    ci: Annotated[bool, typer.Option("--ci", help="Machine-readable output")] = False,
) -> None:
    """Reconstruct locked snapshots and check them against their hashes."""
    try:
        report = verify_chain(_open_chain(db), commits or None)
    except GitlockError as e:
        rprint(f"[red]error:[/red] {e}")
        raise typer.Exit(1)

    if ci:
        for commit_id in report.verified:
            typer.echo(f"OK {commit_id}")
        for failure in report.failures:
            typer.echo(f"FAIL {failure.commit_id} {failure.kind}")
    else:
        table = Table(title=f"Lock Verification ({report.total} commits)")
        table.add_column("Commit", style="cyan")
        table.add_column("Status", justify="center")
        table.add_column("Detail", style="dim")
        for commit_id in report.verified:
            table.add_row(commit_id, "[green]ok[/green]", "")
        for failure in report.failures:
            table.add_row(failure.commit_id, f"[red]{failure.kind}[/red]", failure.detail)
        rprint(table)

        if report.ok:
            rprint(f"\n[green]All {report.total} lock(s) verified.[/green]")
        else:
            rprint(f"\n[red]{len(report.failures)} lock(s) failed verification.[/red]")

    if not report.ok:
        raise typer.Exit(code=1)


@app.command("list")
def list_locks(
    db: Annotated[str | None, typer.Option("--db", help="Lock database path")] = None,
    ci: Annotated[bool, typer.Option("--ci", help="Machine-readable output")] = False,
) -> None:
    """List every stored lock in the order it was recorded."""
    try:
        records = list(_open_chain(db).lock_records())
    except GitlockError as e:
        rprint(f"[red]error:[/red] {e}")
        raise typer.Exit(1)

    if ci:
        for record in records:
            typer.echo(f"{record.commit_id} {record.kind} {record.snapshot_hash}")
        return

    table = Table(title=f"Locks ({len(records)})")
    table.add_column("Commit", style="cyan")
    table.add_column("Kind")
    table.add_column("Snapshot hash", style="dim")
    table.add_column("Recorded")
    for record in records:
        table.add_row(
            record.commit_id,
            record.kind,
            record.snapshot_hash,
            record.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    rprint(table)


@app.command()
def proof(
    out_dir: Annotated[str, typer.Argument(help="Directory to write proof files into")],
    commits: Annotated[list[str] | None, typer.Argument(help="Commit ids to export")] = None,
    all_locks: Annotated[bool, typer.Option("--all", help="Export every stored lock")] = False,
    db: Annotated[str | None, typer.Option("--db", help="Lock database path")] = None,
) -> None:
    """Write each snapshot as <hash>.txt plus a list.txt index into OUT_DIR."""
    if not commits and not all_locks:
        rprint("[red]error:[/red] name at least one commit or pass --all")
        raise typer.Exit(1)

    try:
        chain = _open_chain(db)
        ids = chain.known_commit_ids() if all_locks else commits
        export = export_proofs(chain, ids, out_dir)
    except (GitlockError, OSError) as e:
        rprint(f"[red]error:[/red] {e}")
        raise typer.Exit(1)
    rprint(f"[green]Exported[/green] {len(export.entries)} proof(s) to {export.out_dir}")


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default gitlock.yaml in current directory."""
    target = Path("gitlock.yaml")
    if target.exists() and not force:
        rprint("[yellow]gitlock.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


if __name__ == "__main__":
    app()
