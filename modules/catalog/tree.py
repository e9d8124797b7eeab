"""
Catalog Module - Category Tree
================================
Pure functions over flat category rows: nested tree building,
descendant collection and subtree product-count aggregation.
No database access here.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger("stroymarket.catalog")


def _node(row) -> dict:
    data = row.to_dict() if hasattr(row, "to_dict") else dict(row)
    data["subcategories"] = []
    return data


def build_category_tree(rows: Iterable) -> List[dict]:
    """
    Convert flat category rows into nested dicts with `subcategories`.

    Rows are expected to be active-filtered and ordered by sort_order; that
    order is kept among siblings. A row whose parent is not among the rows
    (inactive or missing parent) is left out of the tree.
    """
    nodes: Dict[int, dict] = {}
    for row in rows:
        node = _node(row)
        nodes[node["id"]] = node

    roots: List[dict] = []
    orphans: List[int] = []
    for node in nodes.values():
        parent_id = node.get("parent_id")
        if parent_id is None:
            roots.append(node)
        elif parent_id in nodes:
            nodes[parent_id]["subcategories"].append(node)
        else:
            orphans.append(node["id"])

    if orphans:
        logger.warning(f"Categories left out of tree (parent not active/found): {orphans}")

    return roots


def children_map(edges: Iterable[Tuple[int, Optional[int]]]) -> Dict[Optional[int], List[int]]:
    """{parent_id: [child ids in row order]} from (id, parent_id) pairs."""
    children: Dict[Optional[int], List[int]] = defaultdict(list)
    for cat_id, parent_id in edges:
        children[parent_id].append(cat_id)
    return children


def collect_descendant_ids(edges, category_id: int, children: Dict = None) -> List[int]:
    """
    The category's own id followed by all descendant ids, depth-first.
    `edges` are (id, parent_id) pairs; pass a prebuilt `children` map to
    reuse it across calls. Each id appears once even on malformed data.
    """
    if children is None:
        children = children_map(edges)

    ids: List[int] = []
    seen = set()
    stack = [category_id]
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        ids.append(current)
        # reversed so the first child is visited first
        stack.extend(reversed(children.get(current, [])))
    return ids


def subtree_counts(edges, direct_counts: Dict[int, int], category_ids: Iterable[int]) -> Dict[int, int]:
    """
    Aggregate per-category counts over each requested category's subtree.
    `direct_counts` maps category_id -> count of its own products.
    """
    children = children_map(edges)
    result = {}
    for cat_id in category_ids:
        ids = collect_descendant_ids(None, cat_id, children=children)
        result[cat_id] = sum(direct_counts.get(i, 0) for i in ids)
    return result


def attach_counts(tree: List[dict], counts: Dict[int, int]) -> List[dict]:
    """Set `product_count` on every node of a built tree (in place)."""
    stack = list(tree)
    while stack:
        node = stack.pop()
        node["product_count"] = counts.get(node["id"], 0)
        stack.extend(node["subcategories"])
    return tree
