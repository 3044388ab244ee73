"""Loot rolling for defeated enemies.

A kill drops at most one item:
  * 40% chance that anything drops at all.
  * RARE items are only eligible if a second, independent 10% roll passes.
  * The drop is picked uniformly from the eligible pool.

`rng` may be any object with ``random()`` and ``choice()`` (``random`` module,
``random.Random`` or a scripted test stub).
"""

from __future__ import annotations

import random
from typing import Optional

from lattice.dungeon import catalog

DROP_CHANCE = 0.4
RARE_UNLOCK_CHANCE = 0.1


def eligible_pool(include_rare: bool) -> list[str]:
    return [item.id for item in catalog.ITEM_DEFS if include_rare or item.rarity != catalog.RARE]


def roll_loot(rng=None) -> Optional[str]:
    """Return the dropped item id, or None when nothing drops."""
    rng = rng or random
    if rng.random() >= DROP_CHANCE:
        return None
    include_rare = rng.random() < RARE_UNLOCK_CHANCE
    pool = eligible_pool(include_rare)
    if not pool:
        return None
    return rng.choice(pool)


__all__ = ["roll_loot", "eligible_pool", "DROP_CHANCE", "RARE_UNLOCK_CHANCE"]
