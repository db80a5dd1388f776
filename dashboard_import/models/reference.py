from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

"""Reference snapshot models.

ReferenceData is the read-only view of already-persisted records that the
pipeline validates against. It is built once (from PostgreSQL or a YAML
snapshot) and passed in explicitly; lookup keys are normalized here, once.
"""

__all__ = [
    "ShopRef",
    "ReferenceData",
    "normalize_key",
]


def normalize_key(value: object) -> str:
    """Lookup key form used for every case-insensitive comparison."""
    if value is None:
        return ""
    return str(value).strip().lower()


@dataclass(frozen=True)
class ShopRef:
    """An existing shop (client) record, as stored."""
    shop_id: str
    client_name: str


@dataclass(frozen=True)
class ReferenceData:
    """Immutable reference snapshot.

    Attributes:
        agents: normalized agent name -> canonical (stored) agent name
        shops: normalized shop id -> ShopRef
        inventory_imeis: normalized IMEIs already in inventory
    """
    agents: dict[str, str] = field(default_factory=dict)
    shops: dict[str, ShopRef] = field(default_factory=dict)
    inventory_imeis: frozenset[str] = frozenset()

    @classmethod
    def build(
        cls,
        agents: Iterable[str] = (),
        shops: Iterable[ShopRef] = (),
        inventory_imeis: Iterable[str] = (),
    ) -> ReferenceData:
        agent_map: dict[str, str] = {}
        for name in agents:
            key = normalize_key(name)
            # 先勝ち: 大文字小文字違いの重複は最初の表記を正とする
            if key and key not in agent_map:
                agent_map[key] = str(name).strip()
        shop_map: dict[str, ShopRef] = {}
        for shop in shops:
            key = normalize_key(shop.shop_id)
            if key and key not in shop_map:
                shop_map[key] = shop
        imeis = frozenset(k for k in (normalize_key(i) for i in inventory_imeis) if k)
        return cls(agents=agent_map, shops=shop_map, inventory_imeis=imeis)

    def resolve_agent(self, name: str) -> str | None:
        return self.agents.get(normalize_key(name))

    def resolve_shop(self, shop_id: str) -> ShopRef | None:
        return self.shops.get(normalize_key(shop_id))
