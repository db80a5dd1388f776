from __future__ import annotations

from typing import Any

from ..models.reference import ReferenceData, normalize_key
from ..models.row_data import ImportRow
from .base import RowRejected, TargetSchema, parse_date, parse_positive_amount, resolve_agent

"""Deposit / withdrawal import rules.

Transactions have no natural key; every row references an existing shop and
an existing agent. The stored shop id and client name come from the shop
reference, not from the uploaded text.
"""

EWALLET = "Ewallet/Online Banking"
CRYPTO = "Crypto"

PAYMENT_ALIASES = {
    "ewallet": EWALLET,
    "online banking": EWALLET,
    "ewallet/online banking": EWALLET,
    "crypto": CRYPTO,
}

TRANSACTION_COLUMNS = ("shopid", "agent", "date", "amount", "payment")


def normalize_transaction(row: ImportRow, reference: ReferenceData, timezone: str) -> dict[str, Any]:
    typed_shop = row.get("shopid")
    shop = reference.resolve_shop(typed_shop)
    if shop is None:
        raise RowRejected(f"Shop ID '{typed_shop}' not found.")
    agent = resolve_agent(row, reference)

    date = parse_date(row.get("date"), timezone)
    if date is None:
        raise RowRejected("Invalid date format.")
    payment_mode = PAYMENT_ALIASES.get(normalize_key(row.get("payment")))
    if payment_mode is None:
        raise RowRejected("Invalid payment mode. Use Ewallet, Online Banking, or Crypto.")
    amount = parse_positive_amount(row.get("amount"))
    if amount is None:
        raise RowRejected("Amount must be a positive number.")

    return {
        "shop_id": shop.shop_id,
        "client_name": shop.client_name,
        "agent": agent,
        "date": date,
        "amount": amount,
        "payment_mode": payment_mode,
    }


DEPOSITS = TargetSchema(
    name="deposits",
    default_table="deposits",
    required_columns=TRANSACTION_COLUMNS,
    normalize=normalize_transaction,
)

WITHDRAWALS = TargetSchema(
    name="withdrawals",
    default_table="withdrawals",
    required_columns=TRANSACTION_COLUMNS,
    normalize=normalize_transaction,
)
