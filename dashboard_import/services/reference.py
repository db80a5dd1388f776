from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from ..models.config_models import ReferenceTablesConfig
from ..models.reference import ReferenceData, ShopRef

"""Reference-data provider.

Builds the ReferenceData snapshot the pipeline validates against, either from
PostgreSQL or from a YAML snapshot file (offline preview / tests). The
pipeline itself never fetches reference data.

YAML snapshot format:

    agents: [Alice Cruz, Ben Lim]
    shops:
      - {shop_id: S-001, client_name: Golden Mart}
    inventory_imeis: ["356938035643809"]
"""

__all__ = [
    "ReferenceLoadError",
    "load_reference_from_db",
    "load_reference_snapshot",
]

logger = logging.getLogger(__name__)


class ReferenceLoadError(Exception):
    pass


def load_reference_from_db(cursor: Any, tables: ReferenceTablesConfig) -> ReferenceData:
    """Read agents, shops and inventory IMEIs with three plain SELECTs."""
    try:
        cursor.execute(f"SELECT name FROM {tables.agents}")
        agents = [r[0] for r in cursor.fetchall() if r[0] is not None]
        cursor.execute(f"SELECT shop_id, client_name FROM {tables.clients}")
        shops = [
            ShopRef(shop_id=str(r[0]), client_name=r[1] or "")
            for r in cursor.fetchall()
            if r[0] is not None
        ]
        cursor.execute(f"SELECT imei FROM {tables.inventory}")
        imeis = [str(r[0]) for r in cursor.fetchall() if r[0] is not None]
    except Exception as e:
        raise ReferenceLoadError(f"failed loading reference data: {e}") from e
    ref = ReferenceData.build(agents=agents, shops=shops, inventory_imeis=imeis)
    logger.debug(
        "reference loaded agents=%d shops=%d imeis=%d",
        len(ref.agents),
        len(ref.shops),
        len(ref.inventory_imeis),
    )
    return ref


def load_reference_snapshot(path: Path) -> ReferenceData:
    if not path.exists():
        raise ReferenceLoadError(f"reference snapshot not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ReferenceLoadError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ReferenceLoadError("reference snapshot must be a mapping")
    try:
        shops = [
            ShopRef(shop_id=str(s["shop_id"]), client_name=str(s.get("client_name") or ""))
            for s in data.get("shops") or []
        ]
    except (KeyError, TypeError, AttributeError) as e:
        raise ReferenceLoadError(f"invalid shops entry in snapshot: {e}") from e
    return ReferenceData.build(
        agents=[str(a) for a in data.get("agents") or []],
        shops=shops,
        inventory_imeis=[str(i) for i in data.get("inventory_imeis") or []],
    )
