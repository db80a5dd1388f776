from __future__ import annotations

from typing import Any

from ..models.reference import ReferenceData
from ..models.row_data import ImportRow
from .base import RowRejected, TargetSchema, require_text, resolve_agent

"""Device inventory import rules.

IMEI is the natural key. Apple ID credentials and remarks are required as
columns but may be blank.
"""

IMEI_MIN_LENGTH = 15
IMEI_MAX_LENGTH = 17


def normalize_device(row: ImportRow, reference: ReferenceData, timezone: str) -> dict[str, Any]:
    agent = resolve_agent(row, reference)
    imei = row.get("imei")
    if not IMEI_MIN_LENGTH <= len(imei) <= IMEI_MAX_LENGTH:
        raise RowRejected(f"IMEI must be {IMEI_MIN_LENGTH} to {IMEI_MAX_LENGTH} characters.")
    model = require_text(row, "model", "Model is required.")
    color = require_text(row, "color", "Color is required.")
    return {
        "agent": agent,
        "imei": imei,
        "model": model,
        "color": color,
        "apple_id_username": row.get("appleIdUsername"),
        "apple_id_password": row.get("appleIdPassword"),
        "remarks": row.get("remarks"),
    }


INVENTORY = TargetSchema(
    name="inventory",
    default_table="inventory",
    required_columns=(
        "agent",
        "imei",
        "model",
        "color",
        "appleIdUsername",
        "appleIdPassword",
        "remarks",
    ),
    normalize=normalize_device,
    key_column="imei",
    key_label="IMEI",
    existing_keys=lambda ref: ref.inventory_imeis,
    timestamp_columns=("created_at", "updated_at"),
)
