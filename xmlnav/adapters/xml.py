"""XML node navigator for xmlnav.

This adapter lets the XPath engine walk a ``Node`` tree. It emulates the
flat, namespace-aware document view the engine expects:

- Attributes are positions of their owning element (``attr`` index), not
  tree nodes. ``current()`` fabricates a detached ATTRIBUTE node for them.
- Whitespace-only TEXT siblings are skipped by ``move_to_next`` and
  ``move_to_previous``, but not by ``move_to_child`` or ``move_to_first``.
"""

from typing import Tuple

from ..core.navigator import NodeNavigator, XPathNodeType
from ..core.node import Name, Node, NodeType
from ..errors import TreeConsistencyError


# Mapping from tree node tags to XPath kinds. ELEMENT is resolved by the
# navigator since it depends on the attribute index.
_KIND_MAP = {
    NodeType.DOCUMENT: XPathNodeType.ROOT,
    NodeType.DECLARATION: XPathNodeType.ROOT,
    NodeType.COMMENT: XPathNodeType.COMMENT,
    NodeType.TEXT: XPathNodeType.TEXT,
    NodeType.CHAR_DATA: XPathNodeType.TEXT,
    NodeType.NOTATION: XPathNodeType.TEXT,
}


def _is_whitespace_text(node: Node) -> bool:
    return node.type == NodeType.TEXT and not node.data.strip()


def attribute_node(owner: Node, index: int) -> Node:
    """Build the detached node standing for an attribute of ``owner``.

    The node has a single TEXT child holding the value. Its parent link
    points at the owning element for context, but the element never links
    back to it, so the source tree is left untouched.
    """
    attr = owner.attr[index]
    node = Node(
        NodeType.ATTRIBUTE,
        data=attr.name.local,
        prefix=attr.name.space,
        namespace_uri=attr.namespace_uri,
    )
    text = Node(NodeType.TEXT, data=attr.value)
    text.parent = node
    node.first_child = text
    node.last_child = text
    node.parent = owner
    return node


class XmlNodeNavigator(NodeNavigator):
    """Cursor over a ``Node`` tree.

    State is ``(root, curr, attr)``: ``attr == -1`` means positioned on
    ``curr`` itself, ``attr >= 0`` means on that attribute of ``curr``.
    The navigator never owns the nodes it references.
    """

    __slots__ = ("root", "curr", "attr")

    def __init__(self, top: Node):
        self.root = top
        self.curr = top
        self.attr = -1

    def __repr__(self) -> str:
        return f"XmlNodeNavigator(curr={self.curr!r}, attr={self.attr})"

    def current(self) -> Node:
        if self.attr != -1:
            return attribute_node(self.curr, self.attr)
        return self.curr

    def node_type(self) -> XPathNodeType:
        node_type = self.curr.type
        if node_type == NodeType.ELEMENT:
            if self.attr != -1:
                return XPathNodeType.ATTRIBUTE
            return XPathNodeType.ELEMENT
        kind = _KIND_MAP.get(node_type)
        if kind is None:
            raise TreeConsistencyError(f"unknown XML node type: {node_type!r}")
        return kind

    def local_name(self) -> str:
        if self.attr != -1:
            return self.curr.attr[self.attr].name.local
        return self.curr.data

    def prefix(self) -> str:
        if self.attr != -1:
            return self.curr.attr[self.attr].name.space
        return self.curr.prefix

    def namespace_uri(self) -> str:
        if self.attr != -1:
            return self.curr.attr[self.attr].namespace_uri
        return self.curr.namespace_uri

    def value(self) -> str:
        node_type = self.curr.type
        if node_type == NodeType.ELEMENT:
            if self.attr != -1:
                return self.curr.attr[self.attr].value
            return self.curr.inner_text()
        if node_type in (NodeType.COMMENT, NodeType.TEXT):
            return self.curr.data
        return ""

    def copy(self) -> 'XmlNodeNavigator':
        nav = XmlNodeNavigator(self.root)
        nav.curr = self.curr
        nav.attr = self.attr
        return nav

    def move_to_root(self) -> None:
        self.curr = self.root
        self.attr = -1

    def move_to_parent(self) -> bool:
        if self.attr != -1:
            self.attr = -1
            return True
        if self.curr.parent is not None:
            self.curr = self.curr.parent
            return True
        return False

    def move_to_next_attribute(self) -> bool:
        if self.attr >= len(self.curr.attr) - 1:
            return False
        self.attr += 1
        return True

    def move_to_child(self) -> bool:
        if self.attr != -1:
            return False
        if self.curr.first_child is not None:
            self.curr = self.curr.first_child
            return True
        return False

    def move_to_first(self) -> bool:
        if self.attr != -1 or self.curr.prev_sibling is None:
            return False
        node = self.curr
        while node.prev_sibling is not None:
            node = node.prev_sibling
        self.curr = node
        return True

    def move_to_next(self) -> bool:
        if self.attr != -1:
            return False
        node = self.curr.next_sibling
        while node is not None:
            if not _is_whitespace_text(node):
                self.curr = node
                return True
            node = node.next_sibling
        return False

    def move_to_previous(self) -> bool:
        if self.attr != -1:
            return False
        node = self.curr.prev_sibling
        while node is not None:
            if not _is_whitespace_text(node):
                self.curr = node
                return True
            node = node.prev_sibling
        return False

    def move_to(self, other: NodeNavigator) -> bool:
        if not isinstance(other, XmlNodeNavigator) or other.root is not self.root:
            return False
        self.curr = other.curr
        self.attr = other.attr
        return True

    def is_same_position(self, other: NodeNavigator) -> bool:
        if not isinstance(other, XmlNodeNavigator):
            return super().is_same_position(other)
        return self.curr is other.curr and self.attr == other.attr

    def document_order_key(self) -> Tuple:
        # Child indexes counted over the real sibling links, so whitespace
        # text nodes keep their own slot.
        key = []
        node = self.curr
        while node is not None:
            index = 0
            sibling = node.prev_sibling
            while sibling is not None:
                index += 1
                sibling = sibling.prev_sibling
            key.append(index)
            node = node.parent
        key.reverse()
        if self.attr != -1:
            key.extend((-1, self.attr))
        return tuple(key)


def create_navigator(top: Node) -> XmlNodeNavigator:
    """Create a navigator positioned on (and rooted at) ``top``."""
    return XmlNodeNavigator(top)


def navigator_for(node: Node) -> XmlNodeNavigator:
    """Create a navigator positioned on ``node`` and rooted at its tree top.

    A synthetic ATTRIBUTE node (as returned for attribute matches) maps
    back to the attribute position of its owning element.

    Raises:
        TreeConsistencyError: If an ATTRIBUTE node does not belong to its
            parent element
    """
    owner, attr = node, -1
    if node.type == NodeType.ATTRIBUTE:
        owner = node.parent
        name = Name(node.prefix, node.data)
        if owner is not None:
            attr = next((i for i, a in enumerate(owner.attr) if a.name == name), -1)
        if attr == -1:
            raise TreeConsistencyError(f"{node!r} is not an attribute of its parent")
    top = owner
    while top.parent is not None:
        top = top.parent
    nav = XmlNodeNavigator(top)
    nav.curr = owner
    nav.attr = attr
    return nav
