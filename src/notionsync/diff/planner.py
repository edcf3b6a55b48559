"""Diff planner: reconcile an existing block sequence with a desired one.

The walk is a two-pointer alignment. Matching blocks are kept, same-type
mismatches become in-place updates, and anything else is bounded by the
nearest resynchronization point and turned into deletes plus one insert
batch. Every insert is anchored after the most recently aligned existing
block, or at the start of the document when none has been aligned yet.

:func:`prepare_for_remote` then adapts a plan to what the remote
positioning API can express.
"""

from __future__ import annotations

from bisect import bisect_left
from collections import defaultdict

from notionsync.models import Block, BlockDelete, BlockInsert, BlockUpdate, DiffOperations

from .comparable import comparable

STRATEGY_DIFF = "diff"
STRATEGY_REWRITE = "rewrite"


class DiffPlanner:
    """Compute update/delete/insert operations between two block sequences."""

    def plan(self, existing: list[Block], desired: list[Block]) -> DiffOperations:
        """Return the operations that turn *existing* into *desired*.

        Parameters
        ----------
        existing:
            Remote blocks in document order. Each must carry an ``id``.
        desired:
            Locally authored blocks in document order.

        Returns
        -------
        DiffOperations
            Applied as updates, then deletes, then inserts, the operations
            reproduce a sequence whose comparable strings equal *desired*'s.
            Identical inputs yield no operations and ``noops == len(desired)``.
        """
        ops = DiffOperations()
        old_keys = [comparable(b) for b in existing]
        new_keys = [comparable(b) for b in desired]

        # Sorted positions of each desired key, for the resync search.
        positions: dict[str, list[int]] = defaultdict(list)
        for index, key in enumerate(new_keys):
            positions[key].append(index)

        n, m = len(existing), len(desired)
        i = j = 0
        anchor: str | None = None

        while i < n and j < m:
            if old_keys[i] == new_keys[j]:
                ops.noops += 1
                anchor = existing[i].id
                i += 1
                j += 1
                continue

            if existing[i].type == desired[j].type:
                ops.updates.append(BlockUpdate(block_id=existing[i].id, block=desired[j]))
                anchor = existing[i].id
                i += 1
                j += 1
                continue

            resync = _find_resync(old_keys, positions, i, j)
            if resync is None:
                break

            k, l = resync
            ops.deletes.extend(BlockDelete(block_id=b.id) for b in existing[i:k])
            if l > j:
                ops.inserts.append(BlockInsert(children=list(desired[j:l]), after=anchor))
            i, j = k, l

        ops.deletes.extend(BlockDelete(block_id=b.id) for b in existing[i:])
        if j < m:
            ops.inserts.append(BlockInsert(children=list(desired[j:]), after=anchor))
        return ops


def _find_resync(
    old_keys: list[str],
    positions: dict[str, list[int]],
    i: int,
    j: int,
) -> tuple[int, int] | None:
    """Nearest ``(k, l)`` with ``k >= i``, ``l >= j`` and equal keys.

    Scans ``k`` upward from *i* and, for each ``k``, takes the smallest
    ``l >= j``: fewest deletions first, then fewest insertions.
    """
    for k in range(i, len(old_keys)):
        candidates = positions.get(old_keys[k])
        if not candidates:
            continue
        idx = bisect_left(candidates, j)
        if idx < len(candidates):
            return k, candidates[idx]
    return None


def compute_diff_operations(existing: list[Block], desired: list[Block]) -> DiffOperations:
    """Shortcut for ``DiffPlanner().plan(existing, desired)``."""
    return DiffPlanner().plan(existing, desired)


# ---------------------------------------------------------------------------
# Remote adaptation
# ---------------------------------------------------------------------------

def _ancestors(block_id: str | None, parents: dict[str, str | None]) -> list[str]:
    """Ancestors of *block_id*, nearest first."""
    chain: list[str] = []
    parent = parents.get(block_id) if block_id else None
    while parent is not None and parent not in chain:
        chain.append(parent)
        parent = parents.get(parent)
    return chain


def _place_after(
    anchor: str,
    survivors: list[Block],
    parents: dict[str, str | None],
) -> tuple[str, str | None] | None:
    """Where to insert so new blocks follow *anchor* in document order.

    Returns ``(after, container)`` with ``container`` ``None`` for the page,
    or ``None`` when a surviving descendant of *anchor* would end up after
    the new blocks. The anchor is lifted to an ancestor while it is the last
    surviving block of that ancestor's subtree, so an insert that follows a
    whole nested list stays at the list's level.
    """
    ids = [b.id for b in survivors]
    position = ids.index(anchor)
    following = ids[position + 1] if position + 1 < len(ids) else None
    enclosing = set(_ancestors(following, parents))
    if anchor in enclosing:
        return None

    after = anchor
    for ancestor in _ancestors(anchor, parents):
        if ancestor in enclosing:
            break
        after = ancestor
    return after, parents.get(after)


def plan_rewrite(existing: list[Block], desired: list[Block]) -> DiffOperations:
    """Delete every top-level existing block and insert *desired* whole."""
    return DiffOperations(
        deletes=[BlockDelete(block_id=b.id) for b in existing if b.parent_id is None and b.id],
        inserts=[BlockInsert(children=list(desired), after=None)] if desired else [],
    )


def prepare_for_remote(
    ops: DiffOperations,
    existing: list[Block],
    desired: list[Block],
) -> tuple[DiffOperations, str]:
    """Adapt *ops* to the remote's positioning rules.

    * The remote places new blocks after a sibling inside one container, so
      each anchored insert is assigned the container (page or nested block)
      holding its anchor. See :func:`_place_after`.
    * Deleting a block removes its descendants, so deletes of blocks whose
      ancestor is also deleted are dropped. A kept or updated block whose
      ancestor is deleted would vanish with it, so the page is rewritten.
    * The remote can only insert *after* a block or append at the end. A
      start-of-document insert is therefore only expressible when no
      existing top-level block survives; otherwise the page is rewritten.
      The same holds for an insert between a block and its first surviving
      child.

    Returns
    -------
    tuple[DiffOperations, str]
        The adapted operations and ``"diff"`` or ``"rewrite"``.
    """
    parents = {b.id: b.parent_id for b in existing if b.id}
    deleted = {d.block_id for d in ops.deletes}

    def has_deleted_ancestor(block_id: str) -> bool:
        return any(a in deleted for a in _ancestors(block_id, parents))

    survivors = [b for b in existing if b.id and b.id not in deleted]
    top_level_survivor = any(b.parent_id is None for b in survivors)
    orphaned = any(b.parent_id is not None and has_deleted_ancestor(b.id) for b in survivors)
    if orphaned or (top_level_survivor and any(batch.after is None for batch in ops.inserts)):
        return plan_rewrite(existing, desired), STRATEGY_REWRITE

    inserts: list[BlockInsert] = []
    for batch in ops.inserts:
        if batch.after is None:
            inserts.append(BlockInsert(children=batch.children))
            continue
        placement = _place_after(batch.after, survivors, parents)
        if placement is None:
            return plan_rewrite(existing, desired), STRATEGY_REWRITE
        after, container = placement
        inserts.append(BlockInsert(children=batch.children, after=after, parent=container))

    adapted = DiffOperations(
        updates=list(ops.updates),
        deletes=[d for d in ops.deletes if not has_deleted_ancestor(d.block_id)],
        inserts=inserts,
        noops=ops.noops,
    )
    return adapted, STRATEGY_DIFF
