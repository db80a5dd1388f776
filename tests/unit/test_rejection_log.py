from __future__ import annotations

import json
import re
from pathlib import Path

from dashboard_import.logging.error_log import RejectionLogBuffer
from dashboard_import.models.error_record import RejectionRecord
from dashboard_import.services.pipeline import parse_and_validate


def test_record_create_uses_utc_z_timestamp():
    rec = RejectionRecord.create(file="a.csv", target="shops", row=3, error_type="INVALID_DATA", message="bad")
    assert rec.timestamp.endswith("Z")
    assert "+00:00" not in rec.timestamp


def test_record_json_line_has_fixed_keys():
    rec = RejectionRecord.create(file="a.csv", target="shops", row=-1, error_type="PARSE_ERROR", message="Línea rota")
    data = json.loads(rec.to_json_line())
    assert list(data) == ["timestamp", "file", "target", "row", "error_type", "message"]
    assert data["message"] == "Línea rota"
    assert "Línea" in rec.to_json_line()


def test_add_plan_records_each_rejected_row(reference, mixed_shops_csv, tmp_path: Path):
    plan = parse_and_validate(mixed_shops_csv, "shops", reference, file_name="shops.csv")
    buf = RejectionLogBuffer(tmp_path / "logs")

    assert buf.add_plan(plan) == 3
    recs = buf.records
    assert [(r.row, r.error_type) for r in recs] == [(5, "DUPLICATE"), (6, "DUPLICATE"), (7, "INVALID_DATA")]
    assert all(r.file == "shops.csv" and r.target == "shops" for r in recs)


def test_flush_writes_json_lines_once(tmp_path: Path):
    buf = RejectionLogBuffer(tmp_path / "logs")
    buf.add_file_error("d.csv", "deposits", "INVALID_FORMAT", "missing amount")
    buf.add_file_error("w.csv", "withdrawals", "PARSE_ERROR", "unterminated quote")

    path = buf.flush()

    assert path is not None and path.exists()
    assert re.fullmatch(r"rejections-\d{8}-\d{6}\.log", path.name)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["row"] == -1
    assert first["error_type"] == "INVALID_FORMAT"
    # buffer is emptied; a second flush does nothing
    assert buf.records == []
    assert buf.flush() is None


def test_flush_without_records_creates_nothing(tmp_path: Path):
    buf = RejectionLogBuffer(tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()
