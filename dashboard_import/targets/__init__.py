"""Import target registry."""

from .base import RowRejected, TargetSchema
from .inventory import INVENTORY
from .shops import SHOPS
from .transactions import DEPOSITS, WITHDRAWALS

TARGETS: dict[str, TargetSchema] = {
    t.name: t for t in (SHOPS, INVENTORY, DEPOSITS, WITHDRAWALS)
}


def get_target(name: str) -> TargetSchema:
    try:
        return TARGETS[name.strip().lower()]
    except KeyError:
        raise KeyError(
            f"unknown import target: {name} (expected one of: {', '.join(TARGETS)})"
        ) from None


__all__ = [
    "TARGETS",
    "get_target",
    "RowRejected",
    "TargetSchema",
]
