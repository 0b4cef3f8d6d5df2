"""Item multiset carried by a player."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, Mapping


@dataclass(slots=True)
class Inventory:
    """Item id -> quantity. Only positive quantities are ever stored."""

    items: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, int]) -> "Inventory":
        inventory = cls()
        for item_id, quantity in mapping.items():
            inventory.add(item_id, quantity)
        return inventory

    def count(self, item_id: str) -> int:
        return self.items.get(item_id, 0)

    def has(self, item_id: str, quantity: int = 1) -> bool:
        return self.count(item_id) >= quantity

    def add(self, item_id: str, quantity: int = 1) -> int:
        """Add items and return the new count."""
        if quantity <= 0:
            return self.count(item_id)
        self.items[item_id] = self.items.get(item_id, 0) + quantity
        return self.items[item_id]

    def remove(self, item_id: str, quantity: int = 1) -> int:
        """Remove up to ``quantity`` items and return how many were removed."""
        current = self.items.get(item_id, 0)
        if quantity <= 0 or current == 0:
            return 0
        new_value = current - quantity
        if new_value <= 0:
            self.items.pop(item_id, None)
            return current
        self.items[item_id] = new_value
        return quantity

    def as_dict(self) -> Dict[str, int]:
        return dict(self.items)

    def __iter__(self) -> Iterator[str]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
