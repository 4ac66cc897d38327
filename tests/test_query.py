"""
Tests for the high-level query API.

Tests query_all/query, the compiled-selector variants, evaluate(), the
aborting find()/find_one() pair and the deprecated callback helpers.
"""

import logging
import sys
import unittest
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from xmlnav import (
    CompileOptions,
    Node,
    NodeType,
    QueryAbortError,
    TreeConsistencyError,
    XPathCompileError,
    XPathError,
    XPathEvaluationError,
    add_child,
    evaluate,
    find,
    find_each,
    find_each_with_break,
    find_one,
    get_query,
    query,
    query_all,
    query_all_with_options,
    query_selector,
    query_selector_all,
    query_with_options,
    select_attr,
)
from xmlnav.testing import document, element, sample_document


def ab_document():
    return document(
        element("a", None,
                element("b", {"id": "1"}, "x"),
                element("b", {"id": "2"}, "y")),
    )


class TestBasicQueries(unittest.TestCase):
    """The <a><b id="1">x</b><b id="2">y</b></a> scenarios."""

    def setUp(self):
        self.doc = ab_document()
        self.a = self.doc.first_child

    def test_query_all_descendants(self):
        found = query_all(self.doc, "//b")
        self.assertEqual(len(found), 2)
        self.assertEqual([b.inner_text() for b in found], ["x", "y"])
        self.assertIs(found[0], self.a.first_child)
        self.assertIs(found[1], self.a.last_child)

    def test_query_with_predicate(self):
        b = query(self.doc, "//b[@id='2']")
        self.assertIs(b, self.a.last_child)
        self.assertEqual(b.inner_text(), "y")

    def test_query_attributes(self):
        attrs = query_all(self.doc, "//b/@id")
        self.assertEqual(len(attrs), 2)
        for attr, value in zip(attrs, ["1", "2"]):
            self.assertEqual(attr.type, NodeType.ATTRIBUTE)
            self.assertEqual(attr.data, "id")
            self.assertEqual(attr.first_child.type, NodeType.TEXT)
            self.assertEqual(attr.inner_text(), value)
            self.assertEqual(select_attr(attr, "id"), value)
        self.assertIs(attrs[0].parent, self.a.first_child)

    def test_no_match(self):
        self.assertEqual(query_all(self.doc, "//c"), [])
        self.assertIsNone(query(self.doc, "//c"))

    def test_query_from_subtree(self):
        # Absolute paths resolve against the node the query starts from
        b = self.a.last_child
        self.assertEqual(query_all(b, "/"), [b])
        self.assertEqual(query_all(b, "/self::b"), [b])
        self.assertEqual(query_all(b, "//b"), [])
        self.assertEqual(query_all(self.a, "b/@id")[1].inner_text(), "2")

    def test_root_only(self):
        self.assertEqual(query_all(self.doc, "/"), [self.doc])

    def test_results_are_deterministic(self):
        first = query_all(self.doc, "//b | //b/@id | //a")
        second = query_all(self.doc, "//b | //b/@id | //a")
        self.assertEqual(len(first), 5)
        self.assertEqual([n.data for n in first], ["a", "b", "id", "b", "id"])
        for a, b in zip(first, second):
            if a.type == NodeType.ATTRIBUTE:
                # Fabricated per call, but for the same owner and name
                self.assertIsNot(a, b)
                self.assertIs(a.parent, b.parent)
                self.assertEqual(a.data, b.data)
            else:
                self.assertIs(a, b)


@pytest.mark.parametrize("expr", [
    "//b", "//b[@id='2']", "//c", "/a/b[1]", "//b/@id", "//b[. = 'y']",
])
def test_query_is_first_of_query_all(expr):
    doc = ab_document()
    all_matches = query_all(doc, expr)
    first = query(doc, expr)
    if not all_matches:
        assert first is None
    elif all_matches[0].type == NodeType.ATTRIBUTE:
        # Attribute nodes are fabricated per call
        assert (first.data, first.inner_text()) == (all_matches[0].data,
                                                    all_matches[0].inner_text())
    else:
        assert first is all_matches[0]


def test_errors_raise_from_query_all():
    doc = ab_document()
    with pytest.raises(XPathCompileError):
        query_all(doc, "//b[")
    with pytest.raises(XPathCompileError):
        query(doc, "//b[")
    with pytest.raises(XPathEvaluationError):
        query_all(doc, "count(//b)")


def test_query_with_options(catalog):
    options = CompileOptions(namespaces={"n": "urn:x"})
    assert [n.data for n in query_all_with_options(catalog, "//n:note", options)] == ["note"]
    assert query_with_options(catalog, "//n:note/@n:kind", options).inner_text() == "meta"


def test_compiled_selectors(catalog):
    selector = get_query("//book/title")
    assert [t.inner_text() for t in query_selector_all(catalog, selector)] == ["Python", "XPath"]
    assert query_selector(catalog, selector).inner_text() == "Python"
    assert query_selector(catalog, get_query("//missing")) is None


class TestEvaluate:

    def test_node_set_result(self, ab_doc):
        nodes = evaluate(ab_doc, "//b")
        assert [n.inner_text() for n in nodes] == ["x", "y"]

    def test_scalar_results(self, ab_doc):
        assert evaluate(ab_doc, "count(//b)") == 2.0
        assert evaluate(ab_doc, "string(//b[2])") == "y"
        assert evaluate(ab_doc, "//b/@id = '2'") is True

    def test_options(self, catalog):
        options = CompileOptions(variables={"n": 2})
        assert evaluate(catalog, "string(//book[$n]/@id)", options) == "bk2"


class TestFind:

    def test_find_matches_query_all(self, catalog):
        assert find(catalog, "//book") == query_all(catalog, "//book")
        assert find_one(catalog, "//book") is query(catalog, "//book")
        assert find_one(catalog, "//missing") is None
        assert find(catalog, "//missing") == []

    def test_find_aborts_on_malformed_expression(self, catalog, caplog):
        with caplog.at_level(logging.ERROR, logger="xmlnav.api"):
            with pytest.raises(QueryAbortError) as excinfo:
                find(catalog, "//book[")
        assert isinstance(excinfo.value.__cause__, XPathCompileError)
        assert "//book[" in caplog.text

    def test_find_one_aborts_on_malformed_expression(self, catalog):
        with pytest.raises(QueryAbortError):
            find_one(catalog, "no-such-function()")

    def test_abort_is_not_an_xpath_error(self, catalog):
        with pytest.raises(QueryAbortError) as excinfo:
            find(catalog, "//book[")
        assert not isinstance(excinfo.value, XPathError)
        assert isinstance(excinfo.value, RuntimeError)

    def test_find_aborts_on_non_node_set(self, catalog):
        with pytest.raises(QueryAbortError):
            find(catalog, "count(//book)")


class TestDeprecatedCallbacks:

    def test_find_each(self, catalog):
        seen = []
        with pytest.warns(DeprecationWarning):
            find_each(catalog, "//book", lambda i, node: seen.append((i, node.select_attr("id"))))
        assert seen == [(0, "bk1"), (1, "bk2")]

    def test_find_each_with_break(self, catalog):
        seen = []

        def callback(index, node):
            seen.append(index)
            return False

        with pytest.warns(DeprecationWarning):
            find_each_with_break(catalog, "//book", callback)
        assert seen == [0]

    def test_find_each_with_break_runs_to_end(self, catalog):
        seen = []
        with pytest.warns(DeprecationWarning):
            find_each_with_break(catalog, "//title", lambda i, n: seen.append(n.inner_text()) or True)
        assert seen == ["Python", "XPath"]

    def test_find_each_aborts(self, catalog):
        with pytest.warns(DeprecationWarning):
            with pytest.raises(QueryAbortError):
                find_each(catalog, "//book[", lambda i, n: None)


@pytest.mark.slow
class TestLargeTree:
    """Document-order handling on a wide tree."""

    def test_descendant_query_on_wide_tree(self):
        items = [element("item", {"n": str(i)}, element("v", None, str(i % 7)))
                 for i in range(1000)]
        doc = document(element("list", None, *items))

        found = query_all(doc, "//item[v = '3']")
        numbers = [int(item.select_attr("n")) for item in found]
        assert numbers == [i for i in range(1000) if i % 7 == 3]

        assert evaluate(doc, "count(//item)") == 1000.0
        assert query(doc, "//item[last()]").select_attr("n") == "999"
        attrs = query_all(doc, "//item/@n")
        assert [a.inner_text() for a in attrs[:3]] == ["0", "1", "2"]
        assert len(attrs) == 1000


def test_sample_document_queries():
    doc = sample_document()
    assert find_one(doc, "//book[price > 20]").select_attr("id") == "bk1"
    assert [t.inner_text() for t in find(doc, "//book[@id='bk2']/title")] == ["XPath"]


def test_inconsistent_tree_is_fatal():
    doc = ab_document()
    add_child(doc.first_child, Node(NodeType.ATTRIBUTE, data="stray"))
    with pytest.raises(TreeConsistencyError):
        query_all(doc, "//*")
    # Not an XPath error, so find() does not turn it into an abort
    with pytest.raises(TreeConsistencyError):
        find(doc, "//*")


class TestVariableBindings:
    """Values bound through CompileOptions.variables."""

    def test_node_set_rebinding_is_not_served_from_cache(self, ab_doc):
        b1, b2 = query_all(ab_doc, "//b")
        first = evaluate(ab_doc, "string($v)", CompileOptions(variables={"v": [b1]}))
        second = evaluate(ab_doc, "string($v)", CompileOptions(variables={"v": [b2]}))
        assert (first, second) == ("x", "y")

    def test_bind_query_results(self, ab_doc):
        options = CompileOptions(variables={"v": query_all(ab_doc, "//b")})
        assert evaluate(ab_doc, "count($v)", options) == 2.0
        assert evaluate(ab_doc, "string($v/@id)", options) == "1"
        assert [n.inner_text() for n in query_all(ab_doc, "$v[2]", options)] == ["y"]

    def test_bind_attribute_results(self, ab_doc):
        options = CompileOptions(variables={"ids": query_all(ab_doc, "//b/@id")})
        assert evaluate(ab_doc, "$ids = '2'", options) is True
        assert [b.inner_text() for b in query_all(ab_doc, "$ids/..", options)] == ["x", "y"]

    def test_node_set_is_put_in_document_order(self, ab_doc):
        b1, b2 = query_all(ab_doc, "//b")
        options = CompileOptions(variables={"v": [b2, b1, b2]})
        assert [n.inner_text() for n in query_all(ab_doc, "$v", options)] == ["x", "y"]

    def test_rebinding_after_scalar_change(self, ab_doc):
        for value, expected in (("1", "x"), ("2", "y"), (2, "y")):
            options = CompileOptions(variables={"id": value})
            assert evaluate(ab_doc, "string(//b[@id = $id])", options) == expected

    def test_list_of_non_nodes_is_rejected(self, ab_doc):
        with pytest.raises(XPathCompileError):
            evaluate(ab_doc, "$v = 1", CompileOptions(variables={"v": [1, 2]}))

    def test_unsupported_value_is_rejected(self, ab_doc):
        with pytest.raises(XPathCompileError):
            evaluate(ab_doc, "$v", CompileOptions(variables={"v": {"a": 1}}))


def test_deep_tree_queries():
    """Nesting deeper than the recursion limit still queries."""
    depth = 1500
    chain = top = element("n")
    for _ in range(depth - 1):
        chain = add_child(chain, element("n"))
    add_child(chain, element("leaf", None, "deep"))
    doc = document(element("root", None, top, element("after")))

    assert doc.inner_text() == "deep"
    assert [leaf.inner_text() for leaf in query_all(doc, "//leaf")] == ["deep"]
    assert evaluate(doc, "count(//n)") == float(depth)
    assert evaluate(doc, "count(//after/preceding::n)") == float(depth)
    assert evaluate(doc, "count(//leaf/ancestor::n)") == float(depth)
