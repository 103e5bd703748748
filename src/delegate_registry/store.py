"""delegate_registry.store

PostgreSQL-backed participant table (schema in migrations/0001_participants.sql).

Every write runs inside conn.transaction(): on a connection that already
has a transaction open this is a savepoint, so one rejected write does not
abort the rest of an import.  Callers own the outer commit.
"""

from __future__ import annotations

import json
from dataclasses import fields
from typing import Any

import psycopg
from psycopg.rows import dict_row

from delegate_registry.countries import Country
from delegate_registry.records import Participant, StoredParticipant, from_row

_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(Participant))
_JSON_COLUMNS = frozenset({"country", "nationality"})
_SELECT = "id::text AS id, " + ", ".join(_COLUMNS)


class ParticipantNotFoundError(LookupError):
    """Raised when an update targets an id that is not in the table."""


def _placeholder(column: str) -> str:
    return "%s::jsonb" if column in _JSON_COLUMNS else "%s"


def _params(record: Participant) -> list[Any]:
    values: list[Any] = []
    for column in _COLUMNS:
        value = getattr(record, column)
        if isinstance(value, Country):
            value = json.dumps(value.to_dict(), ensure_ascii=False)
        values.append(value)
    return values


class ParticipantStore:
    """insert / update / list_all over a psycopg connection."""

    def __init__(self, conn: psycopg.Connection) -> None:
        self._conn = conn

    def _cursor(self) -> psycopg.Cursor:
        return self._conn.cursor(row_factory=dict_row)

    def insert(self, record: Participant) -> StoredParticipant:
        cols = ", ".join(_COLUMNS)
        placeholders = ", ".join(_placeholder(c) for c in _COLUMNS)
        with self._conn.transaction():
            row = self._cursor().execute(
                f"INSERT INTO participant ({cols}) VALUES ({placeholders}) "
                f"RETURNING {_SELECT}",
                _params(record),
            ).fetchone()
        return from_row(row)

    def update(self, participant_id: str, record: Participant) -> StoredParticipant:
        assignments = ", ".join(f"{c} = {_placeholder(c)}" for c in _COLUMNS)
        with self._conn.transaction():
            row = self._cursor().execute(
                f"UPDATE participant SET {assignments}, updated_at = now() "
                f"WHERE id = %s::uuid RETURNING {_SELECT}",
                [*_params(record), participant_id],
            ).fetchone()
        if row is None:
            raise ParticipantNotFoundError(f"participant_not_found: id={participant_id!r}")
        return from_row(row)

    def get(self, participant_id: str) -> StoredParticipant | None:
        row = self._cursor().execute(
            f"SELECT {_SELECT} FROM participant WHERE id = %s::uuid",
            (participant_id,),
        ).fetchone()
        return from_row(row) if row else None

    def find_by_email(self, email: str) -> StoredParticipant | None:
        row = self._cursor().execute(
            f"SELECT {_SELECT} FROM participant WHERE email = %s "
            "ORDER BY created_at ASC, id ASC LIMIT 1",
            (email.strip().lower(),),
        ).fetchone()
        return from_row(row) if row else None

    def list_all(self) -> list[StoredParticipant]:
        rows = self._cursor().execute(
            f"SELECT {_SELECT} FROM participant ORDER BY name ASC, created_at ASC"
        ).fetchall()
        return [from_row(row) for row in rows]

    def delete(self, participant_id: str) -> bool:
        with self._conn.transaction():
            cur = self._conn.execute(
                "DELETE FROM participant WHERE id = %s::uuid", (participant_id,)
            )
        return cur.rowcount > 0

    def reset(self) -> int:
        """Delete every participant.  Returns the number of rows removed."""
        with self._conn.transaction():
            cur = self._conn.execute("DELETE FROM participant")
        return cur.rowcount
