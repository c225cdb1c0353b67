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

"""Tests for tree/builder.py."""

import logging

from tagtree.tree.builder import TreeBuilder, build_tree
from tagtree.tree.model import TagRecord, TreeNode


def _tag(id, parents=()):
    return TagRecord(id=id, name=f"Tag {id}", parents=tuple(parents))


def _ids(nodes):
    return [n.id for n in nodes]


def _assert_no_id_repeats_on_any_path(forest):
    def _check(node, path):
        assert node.id not in path, f"{node.id} repeated on path {path}"
        for child in node.children:
            _check(child, path | {node.id})

    for root in forest:
        _check(root, frozenset())


def test_empty_input_returns_empty_list():
    assert build_tree([]) == []


def test_diamond_example(diamond_tags):
    forest = build_tree(diamond_tags)

    assert _ids(forest) == ["A"]
    a = forest[0]
    assert _ids(a.children) == ["B", "C"]
    b, c = a.children
    assert _ids(b.children) == ["D"]
    assert _ids(c.children) == ["D"]
    assert b.children[0].children == []
    assert c.children[0].children == []


def test_multi_parent_nodes_are_independent_instances(diamond_tags):
    forest = build_tree(diamond_tags)
    b, c = forest[0].children
    d_under_b = b.children[0]
    d_under_c = c.children[0]

    assert d_under_b is not d_under_c
    d_under_b.children.append(TreeNode(id="X", name="X"))
    assert d_under_c.children == []


def test_multi_parent_with_two_rootless_parents():
    forest = build_tree([_tag("A"), _tag("B"), _tag("C", parents=["A", "B"])])

    assert _ids(forest) == ["A", "B"]
    assert _ids(forest[0].children) == ["C"]
    assert _ids(forest[1].children) == ["C"]
    assert forest[0].children[0] is not forest[1].children[0]


def test_roots_preserve_input_order():
    forest = build_tree([_tag("T1"), _tag("T2"), _tag("T3")])
    assert _ids(forest) == ["T1", "T2", "T3"]


def test_children_preserve_input_order():
    tags = [
        _tag("z", parents=["root"]),
        _tag("root"),
        _tag("a", parents=["root"]),
        _tag("m", parents=["root"]),
    ]
    forest = build_tree(tags)
    assert _ids(forest) == ["root"]
    assert _ids(forest[0].children) == ["z", "a", "m"]


def test_every_rootless_tag_appears_once_at_top_level():
    tags = [
        _tag(1),
        _tag(2, parents=[1]),
        _tag(3),
        _tag(4, parents=[2, 3]),
        _tag(5),
    ]
    forest = build_tree(tags)
    assert _ids(forest) == [1, 3, 5]


def test_tag_with_parents_is_never_a_root():
    forest = build_tree([_tag(1), _tag(2, parents=[1]), _tag(3, parents=[2])])
    assert _ids(forest) == [1]
    assert _ids(forest[0].children) == [2]
    assert _ids(forest[0].children[0].children) == [3]


def test_two_tag_cycle_without_root_yields_empty_forest():
    forest = build_tree([_tag("A", parents=["B"]), _tag("B", parents=["A"])])
    assert forest == []


def test_cycle_below_a_root_is_cut_on_the_path():
    tags = [
        _tag("root"),
        _tag("B", parents=["root", "C"]),
        _tag("C", parents=["B"]),
    ]
    forest = build_tree(tags)

    assert _ids(forest) == ["root"]
    b = forest[0].children[0]
    assert b.id == "B"
    assert _ids(b.children) == ["C"]
    # C lists B as a child too, but B is already on the path
    assert b.children[0].children == []
    _assert_no_id_repeats_on_any_path(forest)


def test_cycle_with_no_rooted_ancestor_is_omitted():
    ring = [_tag(i, parents=[(i - 1) % 50]) for i in range(50)]
    assert build_tree(ring) == []


def test_ring_entered_from_root_is_walked_once_around():
    tags = [_tag("root")]
    tags.append(_tag(0, parents=["root", 4]))
    tags.extend(_tag(i, parents=[i - 1]) for i in range(1, 5))

    forest = build_tree(tags)

    depth = 0
    node = forest[0]
    while node.children:
        assert len(node.children) == 1
        node = node.children[0]
        depth += 1
    assert depth == 5
    assert node.id == 4
    _assert_no_id_repeats_on_any_path(forest)


def test_self_parent_does_not_recurse():
    forest = build_tree([_tag("S", parents=["S"])])

    assert _ids(forest) == ["S"]
    assert forest[0].children == []


def test_self_parent_alongside_real_parent():
    forest = build_tree([_tag("P"), _tag("S", parents=["S", "P"])])

    assert _ids(forest) == ["P"]
    s = forest[0].children[0]
    assert s.id == "S"
    assert s.children == []


def test_dangling_parent_becomes_root():
    forest = build_tree([_tag("A"), _tag("orphan", parents=["missing"])])
    assert _ids(forest) == ["A", "orphan"]


def test_dangling_parent_is_ignored_when_a_real_parent_exists():
    forest = build_tree([_tag("A"), _tag("B", parents=["missing", "A"])])
    assert _ids(forest) == ["A"]
    assert _ids(forest[0].children) == ["B"]


def test_duplicate_parent_entries_emit_once():
    forest = build_tree([_tag("A"), _tag("B", parents=["A", "A", "A"])])
    assert _ids(forest[0].children) == ["B"]


def test_same_tag_nested_under_replicated_parent_keeps_full_subtree():
    tags = [
        _tag("A"),
        _tag("B"),
        _tag("C", parents=["A", "B"]),
        _tag("D", parents=["C"]),
        _tag("E", parents=["D"]),
    ]
    forest = build_tree(tags)
    for root in forest:
        c = root.children[0]
        assert c.id == "C"
        assert _ids(c.children) == ["D"]
        assert _ids(c.children[0].children) == ["E"]


def test_input_records_are_not_mutated(diamond_tags):
    snapshot = [t.to_dict() for t in diamond_tags]
    build_tree(diamond_tags)
    assert [t.to_dict() for t in diamond_tags] == snapshot


def test_each_call_returns_a_fresh_forest(diamond_tags):
    builder = TreeBuilder()
    first = builder.build(diamond_tags)
    second = builder.build(diamond_tags)

    assert first == second
    assert first[0] is not second[0]


def test_accepts_any_iterable():
    forest = build_tree(t for t in [_tag(1), _tag(2, parents=[1])])
    assert _ids(forest) == [1]
    assert _ids(forest[0].children) == [2]


def test_deep_chain_does_not_hit_recursion_limit():
    chain = [_tag(0)] + [_tag(i, parents=[i - 1]) for i in range(1, 2000)]
    forest = build_tree(chain)

    depth = 0
    node = forest[0]
    while node.children:
        node = node.children[0]
        depth += 1
    assert depth == 1999


def test_builder_logs_summary(caplog, diamond_tags):
    with caplog.at_level(logging.INFO, logger="tagtree.tree.builder"):
        build_tree(diamond_tags)
    assert any(
        "Built tag tree: 1 roots, 5 nodes from 4 tags" in r.message
        for r in caplog.records
    )


def test_builder_logs_ignored_references(caplog):
    with caplog.at_level(logging.DEBUG, logger="tagtree.tree.builder"):
        build_tree([_tag("S", parents=["S"]), _tag("O", parents=["gone"])])
    messages = [r.message for r in caplog.records]
    assert any("self-parent" in m for m in messages)
    assert any("dangling parent 'gone'" in m for m in messages)
