"""Tests for the node tree model and its helpers."""

import pytest

from xmlnav import (
    Attr,
    Name,
    Node,
    NodeType,
    TreeConsistencyError,
    add_attr,
    add_child,
    add_sibling,
    check_tree,
    remove_from_tree,
)
from xmlnav.testing import cdata, comment, document, element, text


def child_data(node):
    return [child.data for child in node.children()]


def test_add_child_links_both_directions():
    """Children appended in order are reachable forwards and backwards."""
    parent = Node(NodeType.ELEMENT, data="p")
    first = add_child(parent, Node(NodeType.ELEMENT, data="c1"))
    second = add_child(parent, Node(NodeType.ELEMENT, data="c2"))
    third = add_child(parent, Node(NodeType.TEXT, data="t"))

    assert parent.first_child is first
    assert parent.last_child is third
    assert first.next_sibling is second and second.prev_sibling is first
    assert second.next_sibling is third and third.prev_sibling is second
    assert first.prev_sibling is None and third.next_sibling is None
    assert all(c.parent is parent for c in (first, second, third))
    check_tree(parent)


def test_add_child_rejects_leaf_parent():
    leaf = text("hello")
    with pytest.raises(TreeConsistencyError):
        add_child(leaf, Node(NodeType.ELEMENT, data="x"))


def test_add_child_rejects_attached_node():
    a = element("a")
    b = add_child(a, element("b"))
    other = element("other")
    with pytest.raises(TreeConsistencyError):
        add_child(other, b)


def test_add_sibling_appends_to_parent():
    a = element("a", None, element("b"))
    add_sibling(a.first_child, element("c"))
    assert child_data(a) == ["b", "c"]
    check_tree(a)


def test_add_sibling_without_parent():
    first = element("b")
    add_sibling(first, element("c"))
    add_sibling(first, element("d"))
    assert first.next_sibling.data == "c"
    assert first.next_sibling.next_sibling.data == "d"
    assert first.next_sibling.next_sibling.prev_sibling is first.next_sibling


@pytest.mark.parametrize("victim", ["b", "c", "d"])
def test_remove_from_tree_keeps_invariants(victim):
    a = element("a", None, element("b"), element("c"), element("d"))
    node = next(child for child in a.children() if child.data == victim)
    remove_from_tree(node)

    assert victim not in child_data(a)
    assert node.parent is None
    assert node.prev_sibling is None and node.next_sibling is None
    check_tree(a)


def test_remove_only_child():
    a = element("a", None, element("b"))
    remove_from_tree(a.first_child)
    assert a.first_child is None and a.last_child is None


def test_add_attr_preserves_order_and_rejects_duplicates():
    b = element("b")
    add_attr(b, "id", "1")
    add_attr(b, "x:kind", "k", "urn:x")
    assert [str(a.name) for a in b.attr] == ["id", "x:kind"]
    assert b.attr[1] == Attr(Name("x", "kind"), "k", "urn:x")

    with pytest.raises(TreeConsistencyError):
        add_attr(b, "id", "2")


def test_add_attr_on_text_node_fails():
    with pytest.raises(TreeConsistencyError):
        add_attr(text("t"), "id", "1")


def test_name_parse():
    assert Name.parse("id") == Name("", "id")
    assert Name.parse("xml:lang") == Name("xml", "lang")
    assert str(Name("xml", "lang")) == "xml:lang"


def test_inner_text_concatenates_in_document_order():
    a = element("a", None,
                "one ",
                element("b", None, "two ", comment("skip me"), cdata("three")),
                " four")
    assert a.inner_text() == "one two three four"


def test_inner_text_of_text_node_is_its_data():
    assert text("abc").inner_text() == "abc"
    assert element("empty").inner_text() == ""


def test_select_attr():
    b = element("b", {"id": "2", "x:kind": "k"})
    assert b.select_attr("id") == "2"
    assert b.select_attr("x:kind") == "k"
    assert b.select_attr("kind") == ""
    # Lookup is case-sensitive and never raises for a missing name
    assert b.select_attr("ID") == ""
    assert b.select_attr("missing") == ""


def test_select_attr_on_attribute_node():
    attr = Node(NodeType.ATTRIBUTE, data="id")
    add_value = Node(NodeType.TEXT, data="7")
    attr.first_child = attr.last_child = add_value
    add_value.parent = attr

    assert attr.select_attr("id") == "7"
    assert attr.select_attr("other") == ""


def test_select_elements_and_select_element(ab_doc):
    a = ab_doc.first_child
    assert [b.select_attr("id") for b in a.select_elements("b")] == ["1", "2"]
    assert a.select_element("b").select_attr("id") == "1"
    assert a.select_element("missing") is None


def test_descendants_pre_order():
    doc = document(element("a", None, element("b", None, "t"), element("c")))
    assert [n.data for n in doc.descendants()] == ["a", "b", "t", "c"]


class TestCheckTree:
    """check_tree() catches corrupted links."""

    def test_valid_tree_passes(self, catalog):
        check_tree(catalog)

    def test_broken_back_link(self):
        a = element("a", None, element("b"), element("c"))
        a.last_child.prev_sibling = None
        with pytest.raises(TreeConsistencyError):
            check_tree(a)

    def test_wrong_parent(self):
        a = element("a", None, element("b"))
        a.first_child.parent = element("elsewhere")
        with pytest.raises(TreeConsistencyError):
            check_tree(a)

    def test_leaf_with_children(self):
        t = text("t")
        child = element("x")
        t.first_child = t.last_child = child
        child.parent = t
        with pytest.raises(TreeConsistencyError):
            check_tree(t)

    def test_duplicate_attribute_names(self):
        b = element("b", {"id": "1"})
        b.attr.append(Attr(Name("", "id"), "2"))
        with pytest.raises(TreeConsistencyError):
            check_tree(b)


def test_select_attr_on_prefixed_attribute_match(catalog):
    kind = catalog.last_child.select_element("x:note/@x:kind")
    assert kind.type == NodeType.ATTRIBUTE
    assert kind.select_attr("x:kind") == "meta"
    assert kind.select_attr("kind") == ""


def test_descendants_of_deep_chain():
    top = chain = element("n")
    for _ in range(2000):
        chain = add_child(chain, element("n"))
    add_child(chain, text("bottom"))

    assert sum(1 for _ in top.descendants()) == 2001
    assert top.inner_text() == "bottom"
