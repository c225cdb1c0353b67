"""ASCII tree renderer using Rich for terminal output."""

import io
from collections import Counter

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from tagtree.tree.model import TagId, TreeNode
from tagtree.renderers.base import OutputFormat


class ASCIIRenderer:
    """Renders a tag forest as ASCII art using Rich."""

    format = OutputFormat.ASCII

    def render(
        self,
        forest: list[TreeNode],
        *,
        depth: int | None = None,
        **options,
    ) -> str:
        """Render the forest as ASCII.

        Args:
            forest: Root nodes to render
            depth: Maximum depth to render (0 keeps only the roots)
            **options: Additional options (width, title)

        Returns:
            ASCII string representation of the forest
        """
        occurrences = Counter(node.id for root in forest for node in root.walk())

        rich_tree = Tree(Text(options.get("title", "Tags"), style="bold"))
        if not forest:
            rich_tree.add(Text("(no tags)", style="dim"))

        deepest = self._add_forest(rich_tree, forest, occurrences=occurrences, max_depth=depth)

        # Each level of guides takes 4 cells; keep room for labels on deep chains
        width = max(options.get("width", 120), 4 * (deepest + 2) + 40)

        console = Console(
            file=io.StringIO(),
            force_terminal=True,
            width=width,
            record=True,
        )
        console.print(rich_tree)

        return console.export_text()

    def _add_forest(
        self,
        rich_tree: Tree,
        forest: list[TreeNode],
        *,
        occurrences: Counter,
        max_depth: int | None,
    ) -> int:
        """Attach every node to the Rich tree and return the deepest level shown."""
        deepest = 0
        stack = [(root, rich_tree, 0) for root in reversed(forest)]

        while stack:
            node, parent, current_depth = stack.pop()
            branch = parent.add(self._build_label(node, occurrences, is_root=current_depth == 0))
            deepest = max(deepest, current_depth)

            if max_depth is None or current_depth < max_depth:
                for child in reversed(node.children):
                    stack.append((child, branch, current_depth + 1))
            elif node.children:
                branch.add(Text(f"… {len(node.children)} more", style="dim"))
                deepest = max(deepest, current_depth + 1)

        return deepest

    def _build_label(
        self,
        node: TreeNode,
        occurrences: Counter[TagId],
        *,
        is_root: bool,
    ) -> Text:
        """Build the label text for a node."""
        text = Text()
        text.append(node.name, style="bold" if is_root else None)
        text.append(f" #{node.id}", style="dim")

        # Tags with several parents are replicated under each of them
        if occurrences[node.id] > 1:
            text.append(f" (x{occurrences[node.id]})", style="cyan")

        return text
