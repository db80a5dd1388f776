from __future__ import annotations

import json
from pathlib import Path

import pytest

from dashboard_import.cli.__main__ import main
from tests.conftest import FakeCursor

"""End-to-end preview runs (no DB writes)."""

pytestmark = pytest.mark.integration


def test_preview_prints_every_row(cli_workspace: Path, capsys):
    code = main(["--reference", "ref.yml", "preview", "shops", "shops.csv"])
    out = capsys.readouterr().out

    assert code == 0
    assert "Shop ID 'S-001' already exists." in out
    assert "Agent 'Unknown Agent' not found." in out
    assert "Ready to Import" in out
    assert "INFO rejections written to" in out


def test_preview_writes_rejection_log(cli_workspace: Path):
    main(["--reference", "ref.yml", "preview", "shops", "mixed.csv"])
    logs = list((cli_workspace / "logs").glob("rejections-*.log"))
    assert len(logs) == 1
    entries = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert [(e["row"], e["error_type"]) for e in entries] == [
        (5, "DUPLICATE"),
        (6, "DUPLICATE"),
        (7, "INVALID_DATA"),
    ]


def test_preview_does_not_need_database_with_snapshot(cli_workspace: Path, live_cursor):
    assert main(["--reference", "ref.yml", "preview", "shops", "shops.csv"]) == 0
    assert live_cursor.opened == 0


def test_preview_reads_reference_from_database(cli_workspace: Path, live_cursor, capsys):
    live_cursor.cursor = FakeCursor(
        select_results={
            "agents": [("Alice Cruz",)],
            "clients": [("S-001", "Golden Mart")],
            "inventory": [],
        }
    )
    code = main(["preview", "shops", "shops.csv"])
    out = capsys.readouterr().out
    assert code == 0
    assert live_cursor.opened == 1
    assert "ready=1 duplicate=1 invalid=1" in out
    assert not any(s.startswith(("BEGIN", "INSERT")) for s in live_cursor.cursor.statements)


def test_preview_invalid_format_file(cli_workspace: Path, capsys):
    (cli_workspace / "no_status.csv").write_text(
        "shopId,clientName,agent,kycCompletedDate\nS-1,Shop,Alice Cruz,2024-01-01\n", encoding="utf-8"
    )
    code = main(["--reference", "ref.yml", "preview", "shops", "no_status.csv", "shops.csv"])
    out = capsys.readouterr().out

    assert code == 1
    assert "ERROR Invalid CSV format: CSV for 'shops' must contain the headers:" in out
    # the other file is still previewed
    assert "file=shops.csv" in out
    log = next((cli_workspace / "logs").glob("rejections-*.log"))
    first = json.loads(log.read_text(encoding="utf-8").splitlines()[0])
    assert first["row"] == -1
    assert first["error_type"] == "INVALID_FORMAT"


def test_preview_parse_error_file(cli_workspace: Path, capsys):
    (cli_workspace / "broken.csv").write_text('shopId,clientName\n"S-1,abc\n', encoding="utf-8")
    code = main(["--reference", "ref.yml", "preview", "shops", "broken.csv"])
    assert code == 1
    assert "ERROR CSV parsing error in broken.csv" in capsys.readouterr().out


def test_preview_missing_file(cli_workspace: Path, capsys):
    code = main(["--reference", "ref.yml", "preview", "shops", "nope.csv"])
    assert code == 1
    assert "cannot read file" in capsys.readouterr().out


def test_preview_deposits_with_config(cli_workspace: Path, capsys):
    (cli_workspace / "import.yml").write_text("timezone: Asia/Manila\n", encoding="utf-8")
    (cli_workspace / "deposits.csv").write_text(
        "ShopID,Agent,Date,Amount,Payment\n"
        "S-002,Ben Lim,Mon Jan 15 2024 10:30:00 GMT+0800 (Philippine Standard Time),1500,Crypto\n"
        "S-002,Ben Lim,2024-01-16,-5,Crypto\n",
        encoding="utf-8",
    )
    code = main(["--config", "import.yml", "--reference", "ref.yml", "preview", "deposits", "deposits.csv"])
    out = capsys.readouterr().out
    assert code == 0
    assert "ready=1 duplicate=0 invalid=1" in out
    assert "Amount must be a positive number." in out
