"""Core abstractions for xmlnav.

This module contains the node tree model and the abstract navigator
contract the XPath engine is written against.
"""

from .node import (
    Attr,
    Name,
    Node,
    NodeType,
    add_attr,
    add_child,
    add_sibling,
    check_tree,
    remove_from_tree,
)
from .navigator import NodeNavigator, XPathNodeType

__all__ = [
    "Attr",
    "Name",
    "Node",
    "NodeType",
    "add_attr",
    "add_child",
    "add_sibling",
    "check_tree",
    "remove_from_tree",
    "NodeNavigator",
    "XPathNodeType",
]
