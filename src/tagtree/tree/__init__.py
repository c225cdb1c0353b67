"""Tag tree model and construction."""

from tagtree.tree.model import TagId, TagRecord, TreeNode, count_nodes
from tagtree.tree.builder import TreeBuilder, build_tree

__all__ = [
    "TagId",
    "TagRecord",
    "TreeNode",
    "count_nodes",
    "TreeBuilder",
    "build_tree",
]
