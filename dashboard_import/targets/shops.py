from __future__ import annotations

from typing import Any

from ..models.reference import ReferenceData
from ..models.row_data import ImportRow
from .base import RowRejected, TargetSchema, match_choice, parse_date, require_text, resolve_agent

"""Shop details (clients collection) import rules."""

CLIENT_STATUSES = ("In Process", "Active", "Inactive", "Eliminated")


def normalize_shop(row: ImportRow, reference: ReferenceData, timezone: str) -> dict[str, Any]:
    agent = resolve_agent(row, reference)
    client_name = require_text(
        row, "clientName", "Client name must be at least 2 characters.", min_length=2
    )
    kyc_date = parse_date(row.get("kycCompletedDate"), timezone)
    if kyc_date is None:
        raise RowRejected("Invalid date format for kycCompletedDate.")
    status = match_choice(row.get("status"), CLIENT_STATUSES)
    if status is None:
        raise RowRejected(f"Status must be one of: {', '.join(CLIENT_STATUSES)}")
    return {
        "shop_id": row.get("shopId"),
        "client_name": client_name,
        "agent": agent,
        "kyc_completed_date": kyc_date,
        "status": status,
        "client_details": row.get("clientDetails"),
    }


SHOPS = TargetSchema(
    name="shops",
    default_table="clients",
    required_columns=("shopId", "clientName", "agent", "kycCompletedDate", "status"),
    normalize=normalize_shop,
    key_column="shopId",
    key_label="Shop ID",
    existing_keys=lambda ref: ref.shops.keys(),
)
