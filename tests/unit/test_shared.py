"""Unit tests for delegate_registry.shared (reject CSV and run report)."""

from __future__ import annotations

import csv
import json

from delegate_registry.reconcile import SyncCounters
from delegate_registry.shared import RejectWriter, utc_now_iso, write_run_report


class TestRejectWriter:
    def test_nothing_written_without_rejects(self, tmp_path):
        path = tmp_path / "rejects" / "out.csv"
        writer = RejectWriter(path)
        writer.close()
        assert not path.exists()
        assert writer.count == 0

    def test_writes_header_and_reason(self, tmp_path):
        path = tmp_path / "rejects" / "out.csv"
        writer = RejectWriter(path)
        writer.write({"name": "Ghost", "email": ""}, "missing_email")
        writer.write({"name": "Müller", "email": "", "extra": "dropped"}, "missing_email")
        writer.close()

        with path.open(encoding="utf-8", newline="") as fh:
            rows = list(csv.DictReader(fh))
        assert writer.count == 2
        assert rows[0] == {"name": "Ghost", "email": "", "_reject_reason": "missing_email"}
        assert rows[1]["name"] == "Müller"
        assert "extra" not in rows[1]


class TestWriteRunReport:
    def test_report_contents(self, tmp_path):
        counters = SyncCounters(rows_read=3, inserted=2, rows_dropped=1)
        started = utc_now_iso()
        path = write_run_report(
            run_id="run-1",
            started_at=started,
            mode="file_import",
            dry_run=False,
            source={"csv_path": "in.csv", "sheet_url": None},
            counters=counters,
            report_dir=tmp_path,
        )
        assert path == tmp_path / "run-1.json"
        report = json.loads(path.read_text(encoding="utf-8"))
        assert report["run_id"] == "run-1"
        assert report["mode"] == "file_import"
        assert report["started_at"] == started
        assert report["csv_path"] == "in.csv"
        assert report["sheet_url"] is None
        assert report["counters"]["inserted"] == 2
        assert report["counters"]["rows_dropped"] == 1
        assert report["counters"]["warnings"] == []
