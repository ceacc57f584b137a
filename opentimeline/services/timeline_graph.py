"""Timeline graph resolver - flattens a timeline and its nested sub-timelines.

The subtimeline relation may contain cycles in storage. Acyclicity is enforced
only here, at traversal time, with a path-local ancestor set: reaching an
already finished timeline through a second path (a diamond) is benign and
skipped, while re-entering a timeline that is still on the current path is a
true cycle and fails the whole resolution.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from opentimeline.memory.timeline_store import TimelineStore
from opentimeline.utils.exceptions import CycleError, NotFoundError

logger = logging.getLogger(__name__)


def resolve_contributing(
    store: TimelineStore,
    root_id: str,
    *,
    strict_references: bool = False,
    warnings: list[str] | None = None,
) -> list[str]:
    """Collect the root and every timeline reachable from it.

    Traversal is depth-first; the result lists each timeline once, in
    preorder, with the root first.

    Args:
        store: Store (usually a snapshot) to read timelines and edges from.
        root_id: Root timeline ID.
        strict_references: Raise instead of skipping edges to missing timelines.
        warnings: Optional list that receives a message per skipped edge.

    Returns:
        Contributing timeline IDs.

    Raises:
        NotFoundError: If the root timeline does not exist, or a child is
            missing while ``strict_references`` is set.
        CycleError: If a timeline is reachable from itself. ``path`` holds the
            full cycle, e.g. ``[A, B, A]``.
    """
    if store.get_timeline(root_id) is None:
        raise NotFoundError("timeline", root_id)

    contributing = [root_id]
    visited = {root_id}
    path = [root_id]
    on_path = {root_id}
    pending: list[Iterator[str]] = [iter(store.list_subtimeline_children(root_id))]

    while pending:
        child_id = next(pending[-1], None)
        if child_id is None:
            pending.pop()
            on_path.discard(path.pop())
            continue

        if child_id in on_path:
            cycle = path[path.index(child_id) :] + [child_id]
            logger.warning("Subtimeline cycle under %s: %s", root_id, " -> ".join(cycle))
            raise CycleError(cycle)

        if child_id in visited:
            continue

        parent_id = path[-1]
        if store.get_timeline(child_id) is None:
            if strict_references:
                raise NotFoundError("timeline", child_id, referenced_by=parent_id)
            message = f"Timeline {parent_id} has missing subtimeline {child_id}; skipped"
            logger.warning(message)
            if warnings is not None:
                warnings.append(message)
            continue

        visited.add(child_id)
        contributing.append(child_id)
        path.append(child_id)
        on_path.add(child_id)
        pending.append(iter(store.list_subtimeline_children(child_id)))

    logger.debug("Timeline %s has %d contributing timelines", root_id, len(contributing))
    return contributing
