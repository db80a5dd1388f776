from __future__ import annotations

import pytest

from dashboard_import.errors import CommitFailure
from dashboard_import.models.commit_result import CommitStatus
from dashboard_import.models.config_models import TargetConfig
from dashboard_import.services.commit import commit_plan
from dashboard_import.services.pipeline import parse_and_validate
from tests.conftest import FakeCursor

pytestmark = pytest.mark.usefixtures("patch_execute_values")


def test_commit_writes_only_ready_rows_in_one_batch(reference, mixed_shops_csv, shops_target):
    plan = parse_and_validate(mixed_shops_csv, "shops", reference)
    cur = FakeCursor()

    result = commit_plan(cur, plan, shops_target)

    assert result.status is CommitStatus.COMMITTED
    assert result.inserted_rows == 3 == plan.ready_count
    assert result.table == "clients"
    assert len(cur.inserted) == 3
    assert [row[0] for row in cur.inserted] == ["S-200", "S-201", "S-202"]
    assert cur.statements[0] == "BEGIN"
    assert cur.statements[1].startswith('INSERT INTO clients ("shop_id","client_name","agent"')
    assert cur.statements[1].endswith('"created_at") VALUES %s')
    assert cur.statements[-1] == "COMMIT"
    assert cur.templates == ["(%s,%s,%s,%s,%s,%s,now())"]


def test_commit_nothing_to_import_does_no_write(reference, shops_target):
    plan = parse_and_validate(
        "shopId,clientName,agent,kycCompletedDate,status\nS-001,Golden Mart,Alice Cruz,2024-01-15,Active\n",
        "shops",
        reference,
    )
    cur = FakeCursor()

    result = commit_plan(cur, plan, shops_target)

    assert result.status is CommitStatus.NOTHING_TO_IMPORT
    assert result.inserted_rows == 0
    assert cur.statements == []
    assert result.message == "No valid rows to import."


@pytest.mark.parametrize("fail_on", ["INSERT", "COMMIT"])
def test_commit_failure_rolls_back_everything(reference, mixed_shops_csv, shops_target, fail_on):
    plan = parse_and_validate(mixed_shops_csv, "shops", reference)
    cur = FakeCursor(fail_on=fail_on)

    with pytest.raises(CommitFailure, match="batch import into clients failed"):
        commit_plan(cur, plan, shops_target)

    assert cur.inserted == []
    assert cur.statements[-1] == "ROLLBACK"
    # plan is untouched and can be retried
    assert plan.ready_count == 3


def test_commit_begin_failure(reference, mixed_shops_csv, shops_target):
    plan = parse_and_validate(mixed_shops_csv, "shops", reference)
    cur = FakeCursor(fail_on="BEGIN")
    with pytest.raises(CommitFailure, match="failed to begin transaction"):
        commit_plan(cur, plan, shops_target)
    assert cur.inserted == []


def test_commit_mock_mode_without_cursor(reference, mixed_shops_csv, shops_target):
    plan = parse_and_validate(mixed_shops_csv, "shops", reference)
    result = commit_plan(None, plan, shops_target)
    assert result.status is CommitStatus.COMMITTED
    assert result.dry_run is True
    assert result.inserted_rows == 3
    assert result.message == "3 rows would be imported into clients."


def test_commit_inventory_gets_two_server_timestamps(reference):
    plan = parse_and_validate(
        "agent,imei,model,color,appleIdUsername,appleIdPassword,remarks\n"
        "Alice Cruz,490154203237519,iPhone 15,White,,,\n",
        "inventory",
        reference,
    )
    cur = FakeCursor()
    target = TargetConfig(name="inventory", table="inventory", timestamp_columns=("created_at", "updated_at"))
    commit_plan(cur, plan, target)
    assert cur.templates == ["(%s,%s,%s,%s,%s,%s,%s,now(),now())"]
    assert cur.inserted == [["Alice Cruz", "490154203237519", "iPhone 15", "White", "", "", ""]]
