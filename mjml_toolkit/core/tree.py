from __future__ import annotations

"""Persistent helpers over :class:`EditorNode` trees.

Every function here is pure: lookups return nodes from the given tree and
modifications return a *new* root, sharing every untouched subtree with the
input.  The input tree is never mutated.

Functions that modify a tree return ``None`` when the target id cannot be
found so callers can report a no-match without comparing trees.
"""

from dataclasses import replace
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Set, Tuple

from mjml_toolkit.core.models import EditorNode
from mjml_toolkit.core.utils import generate_node_id, is_unset, normalize_attribute_value

__all__ = [
    "find_node",
    "find_parent",
    "find_path",
    "walk",
    "collect_ids",
    "count_nodes",
    "contains_id",
    "is_descendant",
    "is_locked",
    "insert_child",
    "remove_subtree",
    "replace_node",
    "update_node",
    "merge_attributes",
    "clone_with_new_ids",
    "nodes_equivalent",
    "ids_unique",
    "duplicate_ids",
]


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def walk(root: EditorNode) -> Iterator[Tuple[int, EditorNode]]:
    """Yield ``(depth, node)`` depth-first, parent before children."""
    stack: List[Tuple[int, EditorNode]] = [(0, root)]
    while stack:
        depth, node = stack.pop()
        yield depth, node
        for child in reversed(node.children):
            stack.append((depth + 1, child))


def find_path(root: EditorNode, node_id: str) -> Optional[List[EditorNode]]:
    """Return the nodes from *root* down to *node_id* (inclusive) or None."""
    if root.id == node_id:
        return [root]
    for child in root.children:
        sub = find_path(child, node_id)
        if sub is not None:
            return [root] + sub
    return None


def find_node(root: EditorNode, node_id: str) -> Optional[EditorNode]:
    for _depth, node in walk(root):
        if node.id == node_id:
            return node
    return None


def find_parent(root: EditorNode, node_id: str) -> Optional[Tuple[EditorNode, int]]:
    """Return ``(parent, index)`` of *node_id*, or None for the root or a miss."""
    for _depth, node in walk(root):
        for index, child in enumerate(node.children):
            if child.id == node_id:
                return node, index
    return None


def collect_ids(root: EditorNode) -> List[str]:
    return [node.id for _depth, node in walk(root)]


def count_nodes(root: EditorNode) -> int:
    return sum(1 for _ in walk(root))


def contains_id(root: EditorNode, node_id: str) -> bool:
    return find_node(root, node_id) is not None


def is_descendant(root: EditorNode, ancestor_id: str, node_id: str) -> bool:
    """Return True if *node_id* lies inside the subtree of *ancestor_id* (itself included)."""
    ancestor = find_node(root, ancestor_id)
    if ancestor is None:
        return False
    return contains_id(ancestor, node_id)


def is_locked(root: EditorNode, node_id: str) -> bool:
    """Return True if *node_id* or any of its ancestors is locked."""
    path = find_path(root, node_id)
    if not path:
        return False
    return any(node.locked for node in path)


# ---------------------------------------------------------------------------
# Persistent modifications
# ---------------------------------------------------------------------------

def _rebuild(
    node: EditorNode,
    target_id: str,
    transform: Callable[[EditorNode], Optional[EditorNode]],
) -> Tuple[Optional[EditorNode], bool]:
    """Apply *transform* to the node with *target_id*; copy the path to it.

    Returns ``(new_node, found)``.  *transform* returning None removes the
    node from its parent.
    """
    if node.id == target_id:
        return transform(node), True
    for index, child in enumerate(node.children):
        new_child, found = _rebuild(child, target_id, transform)
        if found:
            children = list(node.children)
            if new_child is None:
                del children[index]
            else:
                children[index] = new_child
            return replace(node, children=tuple(children)), True
    return node, False


def replace_node(root: EditorNode, node_id: str, new_node: EditorNode) -> Optional[EditorNode]:
    """Return a new root where *node_id* is replaced by *new_node*."""
    new_root, found = _rebuild(root, node_id, lambda _old: new_node)
    return new_root if found else None


def update_node(root: EditorNode, node_id: str, **changes: Any) -> Optional[EditorNode]:
    """Return a new root where the fields of *node_id* are updated with *changes*."""
    new_root, found = _rebuild(root, node_id, lambda old: replace(old, **changes))
    return new_root if found else None


def insert_child(
    root: EditorNode,
    parent_id: str,
    child: EditorNode,
    index: Optional[int] = None,
) -> Optional[EditorNode]:
    """Return a new root with *child* inserted under *parent_id*.

    *index* defaults to append and is clamped to ``[0, len(children)]``.
    """
    def _insert(parent: EditorNode) -> EditorNode:
        children = list(parent.children)
        position = len(children) if index is None else max(0, min(index, len(children)))
        children.insert(position, child)
        return replace(parent, children=tuple(children))

    new_root, found = _rebuild(root, parent_id, _insert)
    return new_root if found else None


def remove_subtree(root: EditorNode, node_id: str) -> Optional[Tuple[EditorNode, EditorNode]]:
    """Detach *node_id* and return ``(new_root, removed_subtree)``.

    Returns None if *node_id* is the root or does not exist.
    """
    if root.id == node_id:
        return None
    removed: List[EditorNode] = []

    def _remove(node: EditorNode) -> None:
        removed.append(node)
        return None

    new_root, found = _rebuild(root, node_id, _remove)
    if not found or new_root is None:
        return None
    return new_root, removed[0]


def merge_attributes(
    attributes: Mapping[str, Any],
    partial: Mapping[str, Any],
) -> Dict[str, Any]:
    """Shallow-merge *partial* into *attributes*; unset values delete the key.

    Existing keys keep their position, new keys are appended.
    """
    merged = dict(attributes)
    for key, value in partial.items():
        if is_unset(value):
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


def clone_with_new_ids(node: EditorNode, *, keep_locks: bool = True) -> EditorNode:
    """Deep-copy *node* assigning a fresh id to every node of the subtree."""
    return replace(
        node,
        id=generate_node_id(),
        attributes=dict(node.attributes),
        children=tuple(clone_with_new_ids(c, keep_locks=keep_locks) for c in node.children),
        locked=node.locked if keep_locks else False,
    )


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------

def _normalized_attributes(node: EditorNode) -> Dict[str, str]:
    return {
        key: normalize_attribute_value(value)
        for key, value in node.attributes.items()
        if not is_unset(value)
    }


def _normalized_content(node: EditorNode) -> Optional[str]:
    if node.content is None:
        return None
    text = node.content.strip()
    return text or None


def nodes_equivalent(a: EditorNode, b: EditorNode) -> bool:
    """Compare two trees the way markup sees them.

    Ids are ignored, attribute values are compared as strings with unset
    values dropped, attribute order is ignored and content is compared
    trimmed.
    """
    if a.type != b.type or a.locked != b.locked:
        return False
    if _normalized_attributes(a) != _normalized_attributes(b):
        return False
    if _normalized_content(a) != _normalized_content(b):
        return False
    if len(a.children) != len(b.children):
        return False
    return all(nodes_equivalent(x, y) for x, y in zip(a.children, b.children))


def ids_unique(root: EditorNode) -> bool:
    ids = collect_ids(root)
    return len(ids) == len(set(ids))


def duplicate_ids(root: EditorNode, other: EditorNode) -> Set[str]:
    """Return ids present in both trees."""
    return set(collect_ids(root)) & set(collect_ids(other))
