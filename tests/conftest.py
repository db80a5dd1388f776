# Shared pytest fixtures
from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from dashboard_import.logging.init import reset_logging
from dashboard_import.models.config_models import TargetConfig
from dashboard_import.models.reference import ReferenceData, ShopRef


class FakeCursor:
    """Stand-in for a psycopg2 cursor with transaction semantics.

    Rows inserted inside BEGIN..COMMIT only become visible (`inserted`) on
    COMMIT; ROLLBACK drops them. `fail_on` makes one statement kind raise:
    "BEGIN", "INSERT" or "COMMIT".
    """

    def __init__(self, fail_on: str | None = None, select_results: dict[str, list[tuple]] | None = None) -> None:
        self.fail_on = fail_on
        self.select_results = select_results or {}
        self.statements: list[str] = []
        self.templates: list[str | None] = []
        self.inserted: list[list[Any]] = []
        self._pending: list[list[Any]] = []
        self._last_select: list[tuple] = []

    def execute(self, sql: str, params: Any = None) -> None:
        self.statements.append(sql)
        if self.fail_on and sql.startswith(self.fail_on):
            raise RuntimeError(f"simulated {self.fail_on} failure")
        if sql == "BEGIN":
            self._pending = []
        elif sql == "COMMIT":
            self.inserted.extend(self._pending)
            self._pending = []
        elif sql == "ROLLBACK":
            self._pending = []
        elif sql.startswith("SELECT"):
            table = sql.rsplit(" ", 1)[-1]
            self._last_select = list(self.select_results.get(table, []))

    def fetchall(self) -> list[tuple]:
        return self._last_select


@pytest.fixture()
def patch_execute_values(monkeypatch):
    """Replace execute_values so batch inserts land in FakeCursor._pending."""
    import dashboard_import.db.batch_insert as bi

    def fake_execute_values(cursor, sql, rows, template=None, page_size=100):  # noqa: D401
        cursor.statements.append(sql)
        cursor.templates.append(template)
        if cursor.fail_on == "INSERT":
            raise RuntimeError("simulated INSERT failure")
        cursor._pending.extend(list(r) for r in rows)

    monkeypatch.setattr(bi, "execute_values", fake_execute_values)
    return fake_execute_values


@pytest.fixture(autouse=True)
def clean_logging():
    # handler は生成時の sys.stdout を保持するため、テスト毎に作り直す
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch, tmp_path: Path) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("PGDSN", raising=False)
    return tmp_path


@pytest.fixture()
def reference() -> ReferenceData:
    return ReferenceData.build(
        agents=["Alice Cruz", "Ben Lim"],
        shops=[
            ShopRef(shop_id="S-001", client_name="Golden Mart"),
            ShopRef(shop_id="S-002", client_name="Sunrise Store"),
        ],
        inventory_imeis=["356938035643809"],
    )


@pytest.fixture()
def shops_target() -> TargetConfig:
    return TargetConfig(name="shops", table="clients", timestamp_columns=("created_at",))


@pytest.fixture()
def shops_csv() -> str:
    return (
        "shopId,clientName,agent,kycCompletedDate,status\n"
        "S-001,Golden Mart,Alice Cruz,2024-01-15,Active\n"
        "S-100,New Shop,Unknown Agent,2024-02-01,Active\n"
        "S-101,Fresh Foods,alice cruz,2024-03-10,active\n"
    )


@pytest.fixture()
def mixed_shops_csv() -> str:
    """3 ready, 2 duplicate (one persisted, one earlier in file), 1 invalid."""
    return (
        "shopId,clientName,agent,kycCompletedDate,status\n"
        "S-200,Shop Two Hundred,Alice Cruz,2024-04-01,Active\n"
        "S-201,Shop Two Oh One,Ben Lim,2024-04-02,In Process\n"
        "S-202,Shop Two Oh Two,Ben Lim,2024-04-03,Inactive\n"
        "S-001,Golden Mart Again,Alice Cruz,2024-04-04,Active\n"
        "s-200,Shop Two Hundred Copy,Alice Cruz,2024-04-05,Active\n"
        "S-203,Shop Two Oh Three,Alice Cruz,2024-04-06,Pending\n"
    )


@pytest.fixture()
def reference_yaml() -> str:
    return """agents:
  - Alice Cruz
  - Ben Lim
shops:
  - {shop_id: S-001, client_name: Golden Mart}
  - {shop_id: S-002, client_name: Sunrise Store}
inventory_imeis:
  - "356938035643809"
"""


@pytest.fixture()
def cli_workspace(temp_workdir: Path, monkeypatch, reference_yaml: str, shops_csv: str, mixed_shops_csv: str) -> Path:
    """tmp cwd with ref.yml, shops.csv and mixed.csv; no DB settings leak in."""
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    (temp_workdir / "ref.yml").write_text(reference_yaml, encoding="utf-8")
    (temp_workdir / "shops.csv").write_text(shops_csv, encoding="utf-8")
    (temp_workdir / "mixed.csv").write_text(mixed_shops_csv, encoding="utf-8")
    return temp_workdir


@pytest.fixture()
def live_cursor(monkeypatch, patch_execute_values):
    """Route the CLI's db_cursor() to a FakeCursor; set `.cursor` before main()."""
    from contextlib import contextmanager

    import dashboard_import.cli.__main__ as cli_module

    holder = SimpleNamespace(cursor=FakeCursor(), opened=0)

    @contextmanager
    def fake_db_cursor(db_cfg):
        holder.opened += 1
        yield holder.cursor

    monkeypatch.setattr(cli_module, "db_cursor", fake_db_cursor)
    return holder
