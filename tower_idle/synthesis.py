"""
Tower Idle - Synthesis
======================
Merging identical items into stronger ones.

Two items with the same (type, tier, name, rank, plus) merge into one:
    +0..+4  ->  +1
    +5      ->  next rank at +0
    S+5     ->  terminal, never merges

The survivor keeps the base item's id. Equipped items are always chosen as
the base so the equipped copy survives and stays equipped.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .core.constants import MAX_SYNTHESIS_PASSES
from .equipment import Equipment, Equipped
from .state import LogEntry, LogType, create_log

logger = logging.getLogger(__name__)


@dataclass
class SynthesisResult:
    """Output of a bulk synthesis run."""
    inventory: List[Equipment]
    equipped: Equipped
    logs: List[LogEntry] = field(default_factory=list)
    loop_count: int = 0
    merges: int = 0

    @property
    def changed(self) -> bool:
        """Passes beyond the first only happen after a merge."""
        return self.loop_count > 1


def merge_items(base: Equipment, material: Equipment) -> Optional[Equipment]:
    """
    Merge two identical items.

    Returns:
        The upgraded base (same id), or None if base is S+5
    """
    upgraded = base.enhanced()
    if upgraded is None:
        return None
    return upgraded.with_equipped(base.is_equipped or material.is_equipped)


def _build_pool(inventory: List[Equipment], equipped: Equipped) -> List[Equipment]:
    pool: Dict[str, Equipment] = {}
    for item in inventory:
        pool[item.id] = item
    for item in equipped.values():
        if item is not None:
            pool[item.id] = item
    return list(pool.values())


def _merge_pass(pool: List[Equipment]) -> Tuple[List[Equipment], int]:
    """One grouping pass. Returns the next pool and how many merges happened."""
    groups: Dict[tuple, List[Equipment]] = {}
    for item in pool:
        groups.setdefault(item.merge_key, []).append(item)

    next_pool: List[Equipment] = []
    merges = 0
    for items in groups.values():
        # Stable sort: equipped first, otherwise keep pool order
        items.sort(key=lambda i: not i.is_equipped)
        queue = list(items)
        while len(queue) >= 2:
            base = queue[0]
            if base.is_terminal:
                next_pool.append(queue.pop(0))
                continue
            material = queue[1]
            del queue[:2]
            merged = merge_items(base, material)
            if merged is None:
                next_pool.extend([base, material])
                continue
            next_pool.append(merged)
            merges += 1
        next_pool.extend(queue)
    return next_pool, merges


def perform_bulk_synthesis(
    inventory: List[Equipment],
    equipped: Equipped,
    max_passes: int = MAX_SYNTHESIS_PASSES,
) -> SynthesisResult:
    """
    Merge everything that can be merged, repeating until nothing changes.

    The pool is inventory plus equipped, deduplicated by id. Each pass groups
    identical items and merges them pairwise; the run stops on the first pass
    with no merges or after max_passes.

    loop_count counts passes, so 1 means nothing merged. The summary log is
    only added when loop_count > 1.

    Args:
        inventory: Current inventory (includes equipped copies)
        equipped: Slot -> equipped item
        max_passes: Safety cap

    Returns:
        SynthesisResult with rebuilt inventory and equipped map
    """
    pool = _build_pool(inventory, equipped)
    loop_count = 0
    total_merges = 0
    changed = True

    while changed and loop_count < max_passes:
        loop_count += 1
        pool, merges = _merge_pass(pool)
        total_merges += merges
        changed = merges > 0

    logs: List[LogEntry] = []
    if loop_count > 1:
        logs.append(create_log(f"Bulk enhance complete (chain: {loop_count})", LogType.GAIN))
        logger.debug("Bulk synthesis: %d merges over %d passes", total_merges, loop_count)

    new_equipped: Equipped = {}
    for item in pool:
        if item.is_equipped:
            new_equipped[item.type] = item

    return SynthesisResult(
        inventory=pool,
        equipped=new_equipped,
        logs=logs,
        loop_count=loop_count,
        merges=total_merges,
    )


def find_material(inventory: List[Equipment], base: Equipment) -> Optional[Equipment]:
    """First other item that can be merged into base."""
    for item in inventory:
        if item.id != base.id and item.merge_key == base.merge_key:
            return item
    return None


def synthesize_pair(
    inventory: List[Equipment],
    equipped: Equipped,
    base: Equipment,
) -> Optional[Tuple[List[Equipment], Equipped, Equipment]]:
    """
    Merge base with the first matching item in the inventory.

    Returns:
        (inventory, equipped, upgraded item), or None when there is no
        material or base is S+5
    """
    if base.is_terminal:
        return None
    material = find_material(inventory, base)
    if material is None:
        return None

    upgraded = base.enhanced()
    if upgraded is None:
        return None
    # A consumed equipped material leaves its slot empty
    new_equipped = dict(equipped)
    if material.is_equipped and new_equipped.get(material.type) is not None \
            and new_equipped[material.type].id == material.id:
        del new_equipped[material.type]
        upgraded = upgraded.with_equipped(True)

    new_inventory = []
    for item in inventory:
        if item.id == material.id:
            continue
        new_inventory.append(upgraded if item.id == base.id else item)
    if upgraded.is_equipped:
        new_equipped[upgraded.type] = upgraded
    return new_inventory, new_equipped, upgraded
