"""Node table — the source index every derived node is linked through.

Nodes never hold a reference to their parent object. Each node gets an
integer id, and the parent is recorded here as an id. Walking the chain
is an iterative lookup over this table, so it is bounded and a broken or
cyclic link simply ends the walk.
"""

from __future__ import annotations

import itertools
import weakref

# node_id -> node (weak; entries vanish when the node is collected)
nodes: weakref.WeakValueDictionary[int, object] = weakref.WeakValueDictionary()

# node_id -> parent node_id (None for roots)
sources: dict[int, int | None] = {}

# ID generation — itertools.count is thread-safe (C-level GIL atomic)
_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)


def register(node: object, node_id: int, source_id: int | None = None) -> None:
    """Add a node to the table and drop its index entry when it is collected."""
    nodes[node_id] = node
    sources[node_id] = source_id
    weakref.finalize(node, sources.pop, node_id, None)


def node_id_of(obj: object) -> int | None:
    """Node id of a registered node, None for foreign subscribables."""
    node_id = getattr(obj, "_node_id", None)
    if node_id is not None and nodes.get(node_id) is obj:
        return node_id
    return None


def lineage(node_id: int) -> list:
    """Nodes from node_id up to its root, nearest first."""
    chain = []
    seen: set[int] = set()
    current: int | None = node_id
    while current is not None and current not in seen:
        seen.add(current)
        node = nodes.get(current)
        if node is None:
            break
        chain.append(node)
        current = sources.get(current)
    return chain


def release_chain(node_id: int) -> None:
    """Release node_id, then its parent, and so on up to the root."""
    for node in lineage(node_id):
        node._release()
