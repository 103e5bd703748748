"""delegate_registry.reconcile

Email-keyed reconciliation of imported rows against the participant table.

reconcile() is pure: it tags every row as an insert, an update of an
existing participant, or drops it when no email can be found.  apply_batch()
then hands the tagged records to insert/update callables one at a time.

Row flow:
  1. Resolve the email through the header aliases; drop the row if blank.
  2. Normalize the row into a canonical Participant.
  3. Match the lower-cased email against the existing records.
  4. Tag for update (duplicate) or insert.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from delegate_registry.normalize import normalize_email
from delegate_registry.records import (
    FIELD_ALIASES,
    Participant,
    StoredParticipant,
    fold_row,
    lookup_alias,
    normalize_record,
)

log = logging.getLogger(__name__)

EMAIL_ALIASES = FIELD_ALIASES["email"]


# ---------------------------------------------------------------------------
# Batch types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PendingUpdate:
    id: str
    data: Participant


@dataclass(frozen=True)
class ReconciledItem:
    record: Participant
    existing_id: str | None = None

    @property
    def is_update(self) -> bool:
        return self.existing_id is not None


@dataclass
class ReconciledBatch:
    """Reconciled rows in source order, ready for sequential persistence."""

    items: list[ReconciledItem] = field(default_factory=list)
    dropped: list[Mapping[str, Any]] = field(default_factory=list)
    duplicate_count: int = 0
    total: int = 0

    @property
    def to_insert(self) -> list[Participant]:
        return [item.record for item in self.items if not item.is_update]

    @property
    def to_update(self) -> list[PendingUpdate]:
        return [
            PendingUpdate(id=item.existing_id, data=item.record)
            for item in self.items
            if item.existing_id is not None
        ]

    @property
    def dropped_count(self) -> int:
        return len(self.dropped)


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

def row_email(row: Mapping[str, Any]) -> str | None:
    """Return the normalized email of a raw row, or None."""
    value = lookup_alias(fold_row(row), EMAIL_ALIASES)
    if value is None:
        return None
    return normalize_email(str(value))


def build_email_index(existing: Iterable[StoredParticipant]) -> dict[str, str]:
    """Map normalized email -> participant id.  The first id seen wins."""
    index: dict[str, str] = {}
    for participant in existing:
        key = normalize_email(participant.email)
        if key:
            index.setdefault(key, participant.id)
    return index


def reconcile(
    rows: Iterable[Mapping[str, Any]],
    existing: Iterable[StoredParticipant],
) -> ReconciledBatch:
    """Partition raw rows into inserts and updates keyed by email."""
    rows = list(rows)
    email_to_id = build_email_index(existing)
    batch = ReconciledBatch(total=len(rows))

    for idx, row in enumerate(rows):
        email = row_email(row)
        if not email:
            log.debug("row %d dropped: no email under %s", idx, EMAIL_ALIASES)
            batch.dropped.append(row)
            continue

        record = normalize_record(row)
        existing_id = email_to_id.get(email)
        batch.items.append(ReconciledItem(record=record, existing_id=existing_id))
        if existing_id is not None:
            batch.duplicate_count += 1

    log.info(
        "reconciled %d rows: %d insert, %d update, %d dropped",
        batch.total, len(batch.items) - batch.duplicate_count,
        batch.duplicate_count, batch.dropped_count,
    )
    return batch


# ---------------------------------------------------------------------------
# Sequential persistence
# ---------------------------------------------------------------------------

@dataclass
class SyncCounters:
    rows_read: int = 0
    rows_dropped: int = 0
    inserted: int = 0
    updated: int = 0
    merged_within_batch: int = 0
    failed: int = 0
    skipped_repeats: int = 0
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_read": self.rows_read,
            "rows_dropped": self.rows_dropped,
            "inserted": self.inserted,
            "updated": self.updated,
            "merged_within_batch": self.merged_within_batch,
            "failed": self.failed,
            "skipped_repeats": self.skipped_repeats,
            "warnings": self.warnings[:50],
        }


def _returned_id(stored: Any) -> str | None:
    if stored is None:
        return None
    if isinstance(stored, Mapping):
        value = stored.get("id")
    else:
        value = getattr(stored, "id", None)
    return str(value) if value is not None else None


def apply_batch(
    batch: ReconciledBatch,
    insert: Callable[[Participant], Any],
    update: Callable[[str, Participant], Any],
    on_progress: Callable[[str], None] | None = None,
    fail_fast: bool = False,
    counters: SyncCounters | None = None,
) -> SyncCounters:
    """Persist a reconciled batch one record at a time.

    Writes are strictly sequential.  A row whose email was inserted earlier
    in the same batch is applied as an update of that new id, so a batch
    never inserts the same email twice; when insert returns no id the
    repeat is skipped and counted in skipped_repeats instead.  Failures are
    counted and logged; with fail_fast the first failure is re-raised.
    Records already written stay written either way.
    """
    if counters is None:
        counters = SyncCounters()
    counters.rows_read += batch.total
    counters.rows_dropped += batch.dropped_count

    inserted_ids: dict[str, str | None] = {}
    n = len(batch.items)
    for idx, item in enumerate(batch.items, start=1):
        if on_progress is not None:
            on_progress(f"Syncing {idx} / {n}...")
        email = item.record.email
        target_id = item.existing_id or inserted_ids.get(email)
        if target_id is None and email in inserted_ids:
            counters.skipped_repeats += 1
            log.warning("item %d (%s) skipped: earlier insert returned no id", idx, email)
            continue
        try:
            if target_id is not None:
                update(target_id, item.record)
                counters.updated += 1
                if item.existing_id is None:
                    counters.merged_within_batch += 1
            else:
                new_id = _returned_id(insert(item.record))
                counters.inserted += 1
                inserted_ids[email] = new_id
        except Exception as exc:
            counters.failed += 1
            counters.warnings.append(
                f"item {idx} email={email!r} {type(exc).__name__}: {exc}"
            )
            log.warning("sync of item %d (%s) failed: %s", idx, email, exc)
            if fail_fast:
                raise
    return counters
