"""
Category Tree Builder

Turns the flat Categories tab into a forest. Records whose parent id
points nowhere become roots: stale or half-migrated sheets still
render instead of losing categories.
"""

from typing import Iterator, Optional, Sequence

from lumina.models.category import CategoryNode, CategoryRecord


PATH_SEPARATOR = " > "


def build_tree(records: Sequence[CategoryRecord]) -> list[CategoryNode]:
    """
    Build the category forest.

    Roots and children keep the order of `records`. Pure: the same
    records always give a structurally identical forest.
    """
    nodes = {
        record.id: CategoryNode(id=record.id, name=record.name, parent_id=record.parent_id)
        for record in records
    }

    roots: list[CategoryNode] = []
    for record in records:
        node = nodes[record.id]
        parent = nodes.get(record.parent_id) if record.parent_id else None
        if parent is not None and parent is not node:
            parent.children.append(node)
        else:
            roots.append(node)
    return roots


def iter_nodes(forest: Sequence[CategoryNode]) -> Iterator[CategoryNode]:
    """Walk every node depth-first, parents before children."""
    for node in forest:
        yield node
        yield from iter_nodes(node.children)


def find_node(forest: Sequence[CategoryNode], category_id: str) -> Optional[CategoryNode]:
    for node in iter_nodes(forest):
        if node.id == category_id:
            return node
    return None


def descendant_names(forest: Sequence[CategoryNode], category_id: str) -> set[str]:
    """
    Names of a category and everything below it.

    Expenses reference categories by name, so this is what a category
    filter matches against. Empty when the id is unknown.
    """
    node = find_node(forest, category_id)
    if node is None:
        return set()
    return {n.name for n in iter_nodes([node])}


def category_path(records: Sequence[CategoryRecord], category_id: str) -> str:
    """
    Human-readable path, e.g. "Food > Groceries".

    Stops at a missing parent or a cycle; "" for an unknown id.
    """
    by_id = {record.id: record for record in records}
    names: list[str] = []
    seen: set[str] = set()
    current = by_id.get(category_id)
    while current is not None and current.id not in seen:
        seen.add(current.id)
        names.append(current.name)
        current = by_id.get(current.parent_id) if current.parent_id else None
    return PATH_SEPARATOR.join(reversed(names))
