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

"""Tag tree model - input records and output tree nodes."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Union

TagId = Union[int, str]


def _relation_id(value: Any) -> TagId:
    """Accept a bare id or a populated relation object like {"id": 3, ...}."""
    if isinstance(value, dict):
        if "id" not in value:
            raise ValueError(f"Relation entry has no 'id': {value!r}")
        return value["id"]
    return value


@dataclass(frozen=True)
class TagRecord:
    """A tag as fetched from storage, with its parent references resolved."""

    id: TagId
    name: str
    parents: tuple[TagId, ...] = ()

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "parents": list(self.parents)}

    @classmethod
    def from_dict(cls, data: dict) -> TagRecord:
        if "id" not in data:
            raise ValueError(f"Tag record has no 'id': {data!r}")
        if "name" not in data:
            raise ValueError(f"Tag record {data['id']!r} has no 'name'")
        parents = data.get("parents") or []
        return cls(
            id=data["id"],
            name=data["name"],
            parents=tuple(_relation_id(p) for p in parents),
        )


@dataclass
class TreeNode:
    id: TagId
    name: str
    children: list[TreeNode] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return len(self.children) == 0

    def walk(self) -> Iterator[TreeNode]:
        """Yield this node and every descendant, depth-first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def to_dict(self) -> dict:
        """Nested dict form. Built with a stack so depth is not limited."""
        result = {"id": self.id, "name": self.name, "children": []}
        stack = [(self, result)]
        while stack:
            node, data = stack.pop()
            for child in node.children:
                child_data = {"id": child.id, "name": child.name, "children": []}
                data["children"].append(child_data)
                stack.append((child, child_data))
        return result

    @classmethod
    def from_dict(cls, data: dict) -> TreeNode:
        root = cls(id=data["id"], name=data["name"])
        stack = [(data, root)]
        while stack:
            item, node = stack.pop()
            for child_data in item.get("children", []):
                child = cls(id=child_data["id"], name=child_data["name"])
                node.children.append(child)
                stack.append((child_data, child))
        return root


def count_nodes(forest: list[TreeNode]) -> int:
    """Total number of nodes in a forest, replicated occurrences included."""
    return sum(1 for root in forest for _ in root.walk())
