"""Node tree model for xmlnav.

The Node is intentionally kept simple - it's a data container with
doubly-linked tree links. Navigation logic for the XPath engine lives in
the navigator (see ``xmlnav.adapters.xml``), which is the key to making
the engine work without knowing this representation.

Invariants every tree must satisfy (see ``check_tree``):
- Following first_child -> next_sibling yields exactly the reverse of
  following last_child -> prev_sibling.
- Sibling links are mutual; boundary links are None.
- Every non-root node's parent is the node whose child list contains it.
- Only DOCUMENT and ELEMENT nodes own children.
- Attribute names are unique per element, in document order.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

from ..errors import TreeConsistencyError


class NodeType(Enum):
    """Type tag of a tree node. Exactly one per node."""
    DOCUMENT = "document"
    DECLARATION = "declaration"
    ELEMENT = "element"
    TEXT = "text"
    CHAR_DATA = "chardata"
    COMMENT = "comment"
    NOTATION = "notation"
    ATTRIBUTE = "attribute"


# Node types allowed to own children
CONTAINER_TYPES = frozenset({NodeType.DOCUMENT, NodeType.ELEMENT})

# Node types contributing to inner_text()
TEXT_TYPES = frozenset({NodeType.TEXT, NodeType.CHAR_DATA})


@dataclass(frozen=True)
class Name:
    """Qualified name. ``space`` holds the prefix, empty when unqualified."""
    space: str = ""
    local: str = ""

    @classmethod
    def parse(cls, qualified_name: str) -> 'Name':
        """Split ``"prefix:local"`` into a Name.

        Args:
            qualified_name: Name with an optional prefix

        Returns:
            Name with the prefix in ``space``
        """
        prefix, sep, local = qualified_name.partition(":")
        if not sep:
            return cls("", qualified_name)
        return cls(prefix, local)

    def __str__(self) -> str:
        if self.space:
            return f"{self.space}:{self.local}"
        return self.local


@dataclass
class Attr:
    """One attribute record of an element."""
    name: Name
    value: str = ""
    namespace_uri: str = ""


class Node:
    """A single node of a document tree.

    ``data`` is the local name for ELEMENT/ATTRIBUTE nodes and the literal
    text for TEXT/CHAR_DATA/COMMENT nodes.
    """

    __slots__ = (
        "type", "data", "prefix", "namespace_uri", "attr",
        "parent", "first_child", "last_child", "prev_sibling", "next_sibling",
        "__weakref__",
    )

    def __init__(self,
                 type: NodeType,
                 data: str = "",
                 prefix: str = "",
                 namespace_uri: str = "",
                 attr: Optional[List[Attr]] = None):
        self.type = type
        self.data = data
        self.prefix = prefix
        self.namespace_uri = namespace_uri
        self.attr: List[Attr] = list(attr) if attr else []
        self.parent: Optional['Node'] = None
        self.first_child: Optional['Node'] = None
        self.last_child: Optional['Node'] = None
        self.prev_sibling: Optional['Node'] = None
        self.next_sibling: Optional['Node'] = None

    def __repr__(self) -> str:
        return f"Node(type={self.type.name}, data={self.data!r})"

    def children(self) -> Iterator['Node']:
        """Iterate over direct children in document order."""
        child = self.first_child
        while child is not None:
            yield child
            child = child.next_sibling

    def descendants(self) -> Iterator['Node']:
        """Iterate over all descendants in document order (pre-order)."""
        stack = [self.children()]
        while stack:
            child = next(stack[-1], None)
            if child is None:
                stack.pop()
                continue
            yield child
            stack.append(child.children())

    def inner_text(self) -> str:
        """Return the concatenated text of all descendant text nodes.

        The text is collected in document order from TEXT and CHAR_DATA
        nodes. A node that is itself a text node contributes its own data.

        Returns:
            Concatenated text, empty string if there is none
        """
        if self.type in TEXT_TYPES:
            return self.data
        return "".join(n.data for n in self.descendants() if n.type in TEXT_TYPES)

    def select_attr(self, name: str) -> str:
        """Return the value of the attribute with the given qualified name.

        Lookup is case-sensitive. Called on an ATTRIBUTE node (such as the
        synthetic node returned for attribute matches), returns that node's
        own value when ``name`` equals its name.

        Args:
            name: Qualified attribute name, e.g. ``"id"`` or ``"xml:lang"``

        Returns:
            Attribute value, or empty string if the attribute is absent
        """
        xml_name = Name.parse(name)
        if self.type == NodeType.ATTRIBUTE:
            if Name(self.prefix, self.data) == xml_name:
                return self.inner_text()
            return ""
        for attr in self.attr:
            if attr.name == xml_name:
                return attr.value
        return ""

    def select_elements(self, name: str) -> List['Node']:
        """Find all nodes matching ``name`` relative to this node."""
        from ..api import find
        return find(self, name)

    def select_element(self, name: str) -> Optional['Node']:
        """Find the first node matching ``name`` relative to this node."""
        from ..api import find_one
        return find_one(self, name)


# Tree construction helpers. The document parser (outside this package)
# and the test fixtures build trees with these so links stay consistent.

def add_child(parent: Node, child: Node) -> Node:
    """Append ``child`` as the last child of ``parent``.

    Args:
        parent: DOCUMENT or ELEMENT node
        child: Detached node to append

    Returns:
        The appended child

    Raises:
        TreeConsistencyError: If parent cannot own children or child is
            already attached
    """
    if parent.type not in CONTAINER_TYPES:
        raise TreeConsistencyError(
            f"{parent.type.name} node cannot own children"
        )
    _check_detached(child)
    child.parent = parent
    if parent.first_child is None:
        parent.first_child = child
    else:
        parent.last_child.next_sibling = child
        child.prev_sibling = parent.last_child
    parent.last_child = child
    return child


def add_sibling(node: Node, sibling: Node) -> Node:
    """Append ``sibling`` after the last sibling of ``node``."""
    if node.parent is not None:
        return add_child(node.parent, sibling)
    _check_detached(sibling)
    last = node
    while last.next_sibling is not None:
        last = last.next_sibling
    last.next_sibling = sibling
    sibling.prev_sibling = last
    return sibling


def add_attr(node: Node, name: str, value: str, namespace_uri: str = "") -> Attr:
    """Append an attribute to an element.

    Raises:
        TreeConsistencyError: If node is not an element or already carries
            an attribute with the same qualified name
    """
    if node.type != NodeType.ELEMENT:
        raise TreeConsistencyError(
            f"{node.type.name} node cannot carry attributes"
        )
    xml_name = Name.parse(name)
    if any(a.name == xml_name for a in node.attr):
        raise TreeConsistencyError(f"duplicate attribute {name!r} on <{node.data}>")
    attr = Attr(xml_name, value, namespace_uri)
    node.attr.append(attr)
    return attr


def remove_from_tree(node: Node) -> None:
    """Unlink ``node`` (and its subtree) from its parent and siblings."""
    parent = node.parent
    if parent is not None:
        if parent.first_child is node:
            parent.first_child = node.next_sibling
        if parent.last_child is node:
            parent.last_child = node.prev_sibling
    if node.prev_sibling is not None:
        node.prev_sibling.next_sibling = node.next_sibling
    if node.next_sibling is not None:
        node.next_sibling.prev_sibling = node.prev_sibling
    node.parent = None
    node.prev_sibling = None
    node.next_sibling = None


def _check_detached(node: Node) -> None:
    if node.parent is not None or node.prev_sibling is not None \
            or node.next_sibling is not None:
        raise TreeConsistencyError(f"{node!r} is already linked into a tree")


def check_tree(root: Node) -> None:
    """Verify the tree model invariants below ``root``.

    Raises:
        TreeConsistencyError: Naming the first violation found
    """
    stack = [root]
    seen = set()
    while stack:
        node = stack.pop()
        if id(node) in seen:
            raise TreeConsistencyError(f"{node!r} is reachable twice")
        seen.add(id(node))

        names = [a.name for a in node.attr]
        if len(names) != len(set(names)):
            raise TreeConsistencyError(f"duplicate attribute names on {node!r}")

        forward = list(node.children())
        backward = []
        child = node.last_child
        while child is not None:
            backward.append(child)
            child = child.prev_sibling
        if [id(n) for n in forward] != [id(n) for n in reversed(backward)]:
            raise TreeConsistencyError(
                f"child list of {node!r} differs between directions"
            )
        if forward and node.type not in CONTAINER_TYPES:
            raise TreeConsistencyError(f"leaf {node!r} owns children")

        for child in forward:
            if child.parent is not node:
                raise TreeConsistencyError(f"{child!r} has a wrong parent link")
            if child.next_sibling is not None and child.next_sibling.prev_sibling is not child:
                raise TreeConsistencyError(f"broken sibling link after {child!r}")
            stack.append(child)
