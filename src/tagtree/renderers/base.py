"""Base renderer and output format definitions."""

from enum import Enum
from typing import Protocol

from tagtree.tree.model import TreeNode


class OutputFormat(str, Enum):
    """Output format for rendering."""

    ASCII = "ascii"
    JSON = "json"


class TreeRenderer(Protocol):
    """Protocol for tag forest renderers."""

    format: OutputFormat

    def render(
        self,
        forest: list[TreeNode],
        *,
        depth: int | None = None,
        **options,
    ) -> str:
        """Render the forest to the target format.

        Args:
            forest: Root nodes to render
            depth: Maximum depth to render (None for unlimited)
            **options: Additional format-specific options

        Returns:
            Rendered output
        """
        ...
