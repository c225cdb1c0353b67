"""Renderers for visualizing tag forests."""

from tagtree.renderers.base import OutputFormat, TreeRenderer
from tagtree.renderers.ascii import ASCIIRenderer
from tagtree.renderers.json_renderer import JSONRenderer
from tagtree.tree.model import TreeNode


def render_tree(
    forest: list[TreeNode],
    *,
    format: OutputFormat = OutputFormat.ASCII,
    depth: int | None = None,
    **options,
) -> str:
    """Render a tag forest to the specified format.

    Args:
        forest: Root nodes to render
        format: Output format (ASCII or JSON)
        depth: Maximum tree depth to render
        **options: Format-specific options

    Returns:
        Rendered output
    """
    if format == OutputFormat.JSON:
        renderer = JSONRenderer()
    else:
        renderer = ASCIIRenderer()

    return renderer.render(forest, depth=depth, **options)


__all__ = [
    "OutputFormat",
    "TreeRenderer",
    "ASCIIRenderer",
    "JSONRenderer",
    "render_tree",
]
