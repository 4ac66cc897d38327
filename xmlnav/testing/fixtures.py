"""Tree-building fixtures for xmlnav consumers.

Parsing serialized XML is outside this package, so tests (ours and those
of projects that consume xmlnav) build trees in code with these helpers.
All links are set through the construction helpers in
``xmlnav.core.node``, so the resulting trees satisfy the tree invariants.

Example:
    doc = document(
        element("a", None,
                element("b", {"id": "1"}, "x"),
                element("b", {"id": "2"}, "y")),
    )
"""

from typing import Dict, Optional, Union

from ..core.node import Attr, Name, Node, NodeType, add_attr, add_child

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

Child = Union[Node, str]


def _resolve(prefix: str, nsmap: Optional[Dict[str, str]]) -> str:
    if prefix == "xml":
        return XML_NAMESPACE
    if prefix and nsmap:
        return nsmap.get(prefix, "")
    return ""


def _append(parent: Node, children) -> Node:
    for child in children:
        if isinstance(child, str):
            child = text(child)
        add_child(parent, child)
    return parent


def document(*children: Child) -> Node:
    """Create a DOCUMENT node holding ``children``."""
    return _append(Node(NodeType.DOCUMENT), children)


def element(name: str,
            attrs: Optional[Dict[str, str]] = None,
            *children: Child,
            nsmap: Optional[Dict[str, str]] = None,
            namespace_uri: Optional[str] = None) -> Node:
    """Create an ELEMENT node.

    Args:
        name: Qualified element name, e.g. ``"b"`` or ``"h:td"``
        attrs: Attribute name -> value, in document order
        *children: Child nodes; plain strings become TEXT nodes
        nsmap: Prefix -> namespace URI used to qualify the element and
            its prefixed attributes
        namespace_uri: Explicit namespace of the element (overrides nsmap)

    Returns:
        The new element
    """
    prefix, sep, local = name.partition(":")
    if not sep:
        prefix, local = "", name
    if namespace_uri is None:
        namespace_uri = _resolve(prefix, nsmap)
        if not prefix and nsmap:
            namespace_uri = nsmap.get("", "")
    node = Node(NodeType.ELEMENT, data=local, prefix=prefix,
                namespace_uri=namespace_uri)
    for attr_name, value in (attrs or {}).items():
        attr_prefix = attr_name.partition(":")[0] if ":" in attr_name else ""
        add_attr(node, attr_name, value, _resolve(attr_prefix, nsmap))
    return _append(node, children)


def text(data: str) -> Node:
    return Node(NodeType.TEXT, data=data)


def cdata(data: str) -> Node:
    return Node(NodeType.CHAR_DATA, data=data)


def comment(data: str) -> Node:
    return Node(NodeType.COMMENT, data=data)


def declaration(version: str = "1.0") -> Node:
    """Create the ``<?xml ...?>`` DECLARATION node."""
    node = Node(NodeType.DECLARATION, data="xml")
    node.attr.append(Attr(Name("", "version"), version))
    return node


def notation(data: str) -> Node:
    return Node(NodeType.NOTATION, data=data)


def sample_document() -> Node:
    """Return the small catalogue document used across the test suite.

    Layout (whitespace text nodes shown as ``~``)::

        <?xml version="1.0"?>
        <catalog xmlns:x="urn:x">
        ~ <!-- books -->
        ~ <book id="bk1" lang="en"><title>Python</title><price>30</price></book>
        ~ <book id="bk2"><title>XPath</title><price>12.5</price></book>
        ~ <x:note x:kind="meta">n</x:note>
        ~</catalog>
    """
    nsmap = {"x": "urn:x"}
    return document(
        declaration(),
        element(
            "catalog", {"xmlns:x": "urn:x"},
            "\n  ",
            comment(" books "),
            "\n  ",
            element("book", {"id": "bk1", "lang": "en"},
                    element("title", None, "Python"),
                    element("price", None, "30")),
            "\n  ",
            element("book", {"id": "bk2"},
                    element("title", None, "XPath"),
                    element("price", None, "12.5")),
            "\n  ",
            element("x:note", {"x:kind": "meta"}, "n", nsmap=nsmap),
            "\n",
        ),
    )
