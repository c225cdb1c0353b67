"""JSON renderer for tag forests."""

import json
from typing import Union

from tagtree.tree.model import TreeNode
from tagtree.renderers.base import OutputFormat

# Work items: literal text, or (node, indent level, tree depth)
_Item = Union[str, tuple[TreeNode, int, int]]


class JSONRenderer:
    """Renders a tag forest as JSON under a "data" key.

    The document is written from an explicit stack rather than through
    json.dumps, whose encoder recurses once per nesting level and fails on
    long tag chains. Scalars still go through json.dumps, and the layout
    matches json.dumps for the same indent.
    """

    format = OutputFormat.JSON

    def render(
        self,
        forest: list[TreeNode],
        *,
        depth: int | None = None,
        **options,
    ) -> str:
        """Render the forest as JSON.

        Args:
            forest: Root nodes to render
            depth: Maximum depth to render (0 keeps only the roots)
            **options: Additional options (indent, etc.)

        Returns:
            JSON string of the form {"data": [...]}
        """
        indent = options.get("indent", 2)
        if isinstance(indent, int):
            indent = " " * indent
        self._indent = indent
        self._item_sep = ", " if indent is None else ","

        parts: list[str] = []
        stack: list[_Item] = [self._newline(0) + "}"]
        stack.extend(reversed(self._list_items(forest, level=1, node_depth=0)))
        stack.append("{" + self._newline(1) + '"data": ')

        while stack:
            item = stack.pop()
            if isinstance(item, str):
                parts.append(item)
                continue

            node, level, node_depth = item
            stack.extend(reversed(self._node_items(node, level, node_depth, depth)))

        return "".join(parts)

    def _newline(self, level: int) -> str:
        if self._indent is None:
            return ""
        return "\n" + self._indent * level

    def _list_items(
        self,
        nodes: list[TreeNode],
        level: int,
        node_depth: int,
    ) -> list[_Item]:
        """Items for a JSON array whose opening bracket sits at `level`."""
        if not nodes:
            return ["[]"]

        items: list[_Item] = ["[" + self._newline(level + 1)]
        for index, node in enumerate(nodes):
            if index:
                items.append(self._item_sep + self._newline(level + 1))
            items.append((node, level + 1, node_depth))
        items.append(self._newline(level) + "]")
        return items

    def _node_items(
        self,
        node: TreeNode,
        level: int,
        node_depth: int,
        max_depth: int | None,
    ) -> list[_Item]:
        """Items for one node object; children are left as work items."""
        field_sep = self._item_sep + self._newline(level + 1)
        head = (
            "{" + self._newline(level + 1)
            + '"id": ' + json.dumps(node.id, default=str) + field_sep
            + '"name": ' + json.dumps(node.name) + field_sep
            + '"children": '
        )
        tail = self._newline(level) + "}"

        if max_depth is not None and node_depth >= max_depth:
            if node.children:
                head += (
                    "[]" + field_sep
                    + f'"childrenCount": {len(node.children)}' + field_sep
                    + '"childrenTruncated": true'
                )
            else:
                head += "[]"
            return [head, tail]

        return [head, *self._list_items(node.children, level + 1, node_depth + 1), tail]
