"""delegate_registry.cli

Admin console CLI for the participant directory.

Modes (--mode):
  file_import   : import an uploaded CSV export (default)
  sheet_import  : import a shared / published Google Sheet
  reset         : delete every participant (admin password required)

Usage (file_import):
    python -m delegate_registry.cli \\
        --mode file_import \\
        --config config/settings.yml \\
        --csv-path "uploads/registrations.csv" \\
        --dry-run

Usage (sheet_import):
    python -m delegate_registry.cli \\
        --mode sheet_import \\
        --db-dsn "$DELEGATE_DB_DSN" \\
        --sheet-url "https://docs.google.com/spreadsheets/d/<id>/edit#gid=0"

Imports are reconciled by email against the participant table, then written
one record at a time.  Records written before a failure stay written.
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import click
import psycopg

from delegate_registry.reconcile import (
    ReconciledBatch,
    SyncCounters,
    apply_batch,
    reconcile,
)
from delegate_registry.settings import (
    SettingsValidationError,
    check_admin_password,
    load_settings,
)
from delegate_registry.sheets import SheetFetchError, fetch_sheet_rows, read_csv_rows
from delegate_registry.shared import RejectWriter, utc_now_iso, write_run_report
from delegate_registry.store import ParticipantStore

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Import run
# ---------------------------------------------------------------------------

def _run_import(
    run_id: str,
    db_dsn: str,
    rows: list[Mapping[str, Any]],
    counters: SyncCounters,
    rejects: RejectWriter,
    dry_run: bool,
    fail_fast: bool = False,
) -> ReconciledBatch:
    """Reconcile rows against the participant table and persist them.

    Dry runs stop after reconciliation.  Applied writes are committed even
    when a fail_fast error is re-raised.
    """
    conn = psycopg.connect(db_dsn, autocommit=False)
    try:
        store = ParticipantStore(conn)
        batch = reconcile(rows, store.list_all())

        for row in batch.dropped:
            rejects.write(row, "missing_email")

        click.echo(
            f"[{run_id}] {batch.total} rows: {len(batch.to_insert)} new, "
            f"{batch.duplicate_count} existing, {batch.dropped_count} without email"
        )

        if dry_run:
            counters.rows_read += batch.total
            counters.rows_dropped += batch.dropped_count
            conn.rollback()
            click.echo(f"[{run_id}] [dry-run] Nothing written.")
            return batch

        try:
            apply_batch(
                batch,
                insert=store.insert,
                update=store.update,
                on_progress=lambda msg: click.echo(f"[{run_id}] {msg}"),
                fail_fast=fail_fast,
                counters=counters,
            )
        finally:
            conn.commit()
        return batch
    finally:
        conn.close()
        rejects.close()


def _run_reset(run_id: str, db_dsn: str) -> int:
    conn = psycopg.connect(db_dsn, autocommit=False)
    try:
        removed = ParticipantStore(conn).reset()
        conn.commit()
    finally:
        conn.close()
    click.echo(f"[{run_id}] Reset: {removed} participants deleted.")
    return removed


def _load_rows(
    mode: str,
    run_id: str,
    csv_path: str | None,
    sheet_url: str | None,
    timeout: int,
) -> list[dict[str, str]]:
    if mode == "file_import":
        if not csv_path:
            click.echo(f"[{run_id}] FATAL: --csv-path is required for file_import", err=True)
            sys.exit(1)
        path = Path(csv_path)
        if not path.exists():
            click.echo(f"[{run_id}] FATAL: CSV not found: {path}", err=True)
            sys.exit(1)
        return read_csv_rows(path)

    if not sheet_url:
        click.echo(
            f"[{run_id}] FATAL: --sheet-url (or sheet_url in settings) is required "
            "for sheet_import",
            err=True,
        )
        sys.exit(1)
    try:
        return fetch_sheet_rows(sheet_url, timeout=timeout)
    except SheetFetchError as exc:
        click.echo(f"[{run_id}] FATAL: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# Unified CLI
# ---------------------------------------------------------------------------

@click.command()
@click.option(
    "--mode",
    default="file_import",
    type=click.Choice(["file_import", "sheet_import", "reset"]),
    show_default=True,
    help="Console operation",
)
@click.option("--config", "config_path", default=None, type=click.Path(), help="YAML settings file")
@click.option("--db-dsn", envvar="DELEGATE_DB_DSN", default=None, help="PostgreSQL DSN (overrides settings)")
@click.option("--csv-path", default=None, type=click.Path(), help="[file_import] Input CSV")
@click.option("--sheet-url", default=None, help="[sheet_import] Sheet URL (overrides settings)")
@click.option("--dry-run", is_flag=True, default=False, help="Reconcile and report without writing")
@click.option("--fail-fast", is_flag=True, default=False, help="Stop at the first failed write")
@click.option("--rejects-path", default=None, help="CSV for rows dropped without an email")
@click.option("--run-id", default=None, help="Override UUID for log correlation")
@click.option("--yes", is_flag=True, default=False, help="[reset] Skip the confirmation prompt")
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    show_default=True,
)
def main(
    mode: str,
    config_path: str | None,
    db_dsn: str | None,
    csv_path: str | None,
    sheet_url: str | None,
    dry_run: bool,
    fail_fast: bool,
    rejects_path: str | None,
    run_id: str | None,
    yes: bool,
    log_level: str,
) -> None:
    """Participant directory admin console."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_id = run_id or str(uuid.uuid4())
    started_at = utc_now_iso()

    try:
        settings = load_settings(Path(config_path) if config_path else None)
    except (SettingsValidationError, FileNotFoundError) as exc:
        click.echo(f"[{run_id}] FATAL: settings: {exc}", err=True)
        sys.exit(1)

    db_dsn = db_dsn or settings.db_dsn
    if not db_dsn:
        click.echo(f"[{run_id}] FATAL: --db-dsn (or db_dsn in settings) is required", err=True)
        sys.exit(1)

    click.echo(f"[{run_id}] Starting {mode} run (dry_run={dry_run})")

    if mode == "reset":
        password = click.prompt("Admin password", hide_input=True)
        if not check_admin_password(settings, password):
            click.echo(f"[{run_id}] FATAL: admin password rejected", err=True)
            sys.exit(1)
        if not yes:
            click.confirm("This deletes ALL participants. Continue?", abort=True)
        if dry_run:
            click.echo(f"[{run_id}] [dry-run] Reset skipped.")
            return
        _run_reset(run_id, db_dsn)
        return

    sheet_url = sheet_url or settings.sheet_url
    rows = _load_rows(mode, run_id, csv_path, sheet_url, settings.request_timeout_seconds)

    counters = SyncCounters()
    rejects = RejectWriter(Path(rejects_path or settings.rejects_path))
    exit_code = 0
    try:
        _run_import(run_id, db_dsn, rows, counters, rejects, dry_run, fail_fast)
    except Exception as exc:
        log.exception("import aborted")
        click.echo(f"[{run_id}] FATAL: import aborted: {exc}", err=True)
        exit_code = 1

    if counters.failed:
        exit_code = 1
        for warning in counters.warnings:
            click.echo(f"[{run_id}] WARN: {warning}", err=True)

    report_path = write_run_report(
        run_id=run_id,
        started_at=started_at,
        mode=mode,
        dry_run=dry_run,
        source={"csv_path": csv_path, "sheet_url": sheet_url},
        counters=counters,
    )
    click.echo(
        f"[{run_id}] Done: {counters.rows_read} rows read, "
        f"{counters.rows_dropped} dropped, {counters.inserted} inserted, "
        f"{counters.updated} updated, {counters.failed} failed. Report: {report_path}"
    )
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
