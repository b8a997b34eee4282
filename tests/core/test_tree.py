from dataclasses import replace

from mjml_toolkit.core import tree
from mjml_toolkit.core.models import EditorNode


# ---------------------------
# Reads
# ---------------------------

def test_walk_is_depth_first_parent_before_children(sample_document):
    order = [(depth, node.id) for depth, node in tree.walk(sample_document)]
    assert order == [
        (0, "body"),
        (1, "s1"),
        (2, "c1"),
        (3, "t1"),
        (3, "b1"),
        (3, "sp1"),
        (1, "s2"),
        (2, "c2"),
        (3, "i1"),
    ]


def test_find_node_and_parent(sample_document):
    assert tree.find_node(sample_document, "b1").content == "Go"
    assert tree.find_node(sample_document, "missing") is None

    parent, index = tree.find_parent(sample_document, "b1")
    assert parent.id == "c1"
    assert index == 1
    assert tree.find_parent(sample_document, "body") is None


def test_find_path_returns_root_to_node(sample_document):
    path = tree.find_path(sample_document, "i1")
    assert [n.id for n in path] == ["body", "s2", "c2", "i1"]
    assert tree.find_path(sample_document, "nope") is None


def test_is_descendant_includes_self(sample_document):
    assert tree.is_descendant(sample_document, "s1", "t1")
    assert tree.is_descendant(sample_document, "s1", "s1")
    assert not tree.is_descendant(sample_document, "s1", "i1")


# ---------------------------
# Persistent modifications
# ---------------------------

def test_insert_child_leaves_original_untouched(sample_document):
    new = EditorNode(type="mj-divider", id="d1")
    result = tree.insert_child(sample_document, "c1", new, 1)

    assert [c.id for c in tree.find_node(result, "c1").children] == ["t1", "d1", "b1", "sp1"]
    assert [c.id for c in tree.find_node(sample_document, "c1").children] == ["t1", "b1", "sp1"]
    # Untouched subtrees are shared
    assert tree.find_node(result, "s2") is tree.find_node(sample_document, "s2")


def test_insert_child_clamps_index_and_reports_missing_parent(sample_document):
    new = EditorNode(type="mj-divider", id="d1")
    result = tree.insert_child(sample_document, "c2", new, 99)
    assert tree.find_node(result, "c2").child_ids() == ["i1", "d1"]
    assert tree.insert_child(sample_document, "missing", new) is None


def test_remove_subtree_returns_removed_node(sample_document):
    new_root, removed = tree.remove_subtree(sample_document, "s1")
    assert removed.id == "s1"
    assert new_root.child_ids() == ["s2"]
    assert tree.remove_subtree(sample_document, "body") is None
    assert tree.remove_subtree(sample_document, "missing") is None


def test_merge_attributes_deletes_unset_values():
    merged = tree.merge_attributes({"a": "1", "b": "2"}, {"b": "", "c": "3", "a": None})
    assert merged == {"c": "3"}
    merged = tree.merge_attributes({"a": "1", "b": "2"}, {"a": "9"})
    assert list(merged.items()) == [("a", "9"), ("b", "2")]


def test_clone_with_new_ids_regenerates_every_id(sample_document):
    clone = tree.clone_with_new_ids(sample_document)
    original_ids = tree.collect_ids(sample_document)
    clone_ids = tree.collect_ids(clone)

    assert len(clone_ids) == len(original_ids)
    assert len(set(clone_ids)) == len(clone_ids)
    assert not set(clone_ids) & set(original_ids)
    assert clone == sample_document


def test_clone_keeps_or_strips_locks():
    locked = EditorNode(type="mj-section", locked=True, children=(EditorNode(type="mj-column", locked=True),))
    assert tree.clone_with_new_ids(locked).locked
    unlocked = tree.clone_with_new_ids(locked, keep_locks=False)
    assert not unlocked.locked
    assert not unlocked.children[0].locked


def test_is_locked_checks_ancestors(sample_document):
    locked_doc = tree.update_node(sample_document, "s1", locked=True)
    assert tree.is_locked(locked_doc, "t1")
    assert tree.is_locked(locked_doc, "s1")
    assert not tree.is_locked(locked_doc, "i1")
    assert not tree.is_locked(locked_doc, "missing")


# ---------------------------
# Comparison
# ---------------------------

def test_equality_ignores_ids(sample_document):
    other = replace(sample_document, id="another")
    assert other == sample_document


def test_nodes_equivalent_normalises_values():
    a = EditorNode(type="mj-spacer", attributes={"height": 20, "x": ""})
    b = EditorNode(type="mj-spacer", attributes={"height": "20"})
    assert a != b
    assert tree.nodes_equivalent(a, b)
    assert not tree.nodes_equivalent(a, EditorNode(type="mj-spacer", attributes={"height": "21"}))
    assert tree.nodes_equivalent(
        EditorNode(type="mj-text", content="  Hi "),
        EditorNode(type="mj-text", content="Hi"),
    )
