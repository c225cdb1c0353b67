# Copyright 2026 Pennyworth Technologies, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tree builder for constructing a tag forest from flat tag records."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tagtree.tree.model import TagId, TagRecord, TreeNode, count_nodes

logger = logging.getLogger(__name__)


class TreeBuilder:
    """Builds a forest of TreeNodes from a flat collection of TagRecords.

    Tags without (effective) parents become roots. Every other tag is
    nested under each of its parents as an independent subtree, so a tag
    with two parents shows up twice. A tag is never expanded below itself
    on the same root-to-node path, which keeps cyclic relations finite.
    """

    def build(self, tags: Iterable[TagRecord]) -> list[TreeNode]:
        """Build the forest.

        Args:
            tags: The complete tag collection for one request

        Returns:
            Root nodes in input order, each with its full subtree attached
        """
        records = list(tags)
        known = {tag.id for tag in records}

        roots: list[TagRecord] = []
        children_by_parent: dict[TagId, list[TagRecord]] = {}
        for tag in records:
            parents = self._effective_parents(tag, known)
            if not parents:
                roots.append(tag)
            for parent_id in parents:
                children_by_parent.setdefault(parent_id, []).append(tag)

        forest = self._expand(roots, children_by_parent)

        logger.info(
            "Built tag tree: %d roots, %d nodes from %d tags",
            len(forest), count_nodes(forest), len(records),
        )
        return forest

    def _effective_parents(self, tag: TagRecord, known: set[TagId]) -> list[TagId]:
        """Distinct parent ids that name another tag in the collection."""
        parents = []
        for parent_id in dict.fromkeys(tag.parents):
            if parent_id == tag.id:
                logger.debug("Ignoring self-parent reference on tag %r", tag.id)
            elif parent_id not in known:
                logger.debug("Ignoring dangling parent %r on tag %r", parent_id, tag.id)
            else:
                parents.append(parent_id)
        return parents

    def _expand(
        self,
        roots: list[TagRecord],
        children_by_parent: dict[TagId, list[TagRecord]],
    ) -> list[TreeNode]:
        """Depth-first expansion with a visited set scoped to the current path.

        Work items carry the sibling list to append into and the ids already
        on their path. Items are pushed in reverse so they pop in input order.
        """
        forest: list[TreeNode] = []
        stack: list[tuple[TagRecord, list[TreeNode], frozenset]] = [
            (tag, forest, frozenset()) for tag in reversed(roots)
        ]

        while stack:
            tag, siblings, path = stack.pop()
            if tag.id in path:
                logger.debug("Dropping cyclic edge back to tag %r", tag.id)
                continue

            node = TreeNode(id=tag.id, name=tag.name)
            siblings.append(node)

            child_path = path | {tag.id}
            for child in reversed(children_by_parent.get(tag.id, [])):
                stack.append((child, node.children, child_path))

        return forest


def build_tree(tags: Iterable[TagRecord]) -> list[TreeNode]:
    """Convenience function to build a tag forest.

    Args:
        tags: The complete tag collection

    Returns:
        Root TreeNodes with children attached
    """
    builder = TreeBuilder()
    return builder.build(tags)
