"""NodeNavigator abstraction for xmlnav.

The NodeNavigator is what lets the XPath engine walk ANY tree model. The
engine never touches nodes directly: it moves a navigator around and asks
it to report on its current position. A concrete navigator (see
``xmlnav.adapters.xml``) knows how the specific tree is linked.

A navigator is mutable, single-owner state. The engine forks traversal
state with ``copy()`` instead of sharing a navigator between branches.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Tuple


class XPathNodeType(Enum):
    """Node kinds as seen by the XPath engine."""
    ROOT = "root"
    ELEMENT = "element"
    ATTRIBUTE = "attribute"
    TEXT = "text"
    COMMENT = "comment"
    ALL = "all"  # Only used by node() tests, never reported by a navigator


class NodeNavigator(ABC):
    """Abstract cursor over a tree, as required by the XPath engine.

    All ``move_*`` methods return True and reposition the navigator on
    success. On failure they return False and leave the position unchanged.
    """

    @abstractmethod
    def current(self) -> Any:
        """Return the tree node at the current position."""
        pass

    @abstractmethod
    def node_type(self) -> XPathNodeType:
        """Return the XPath kind of the current position."""
        pass

    @abstractmethod
    def local_name(self) -> str:
        pass

    @abstractmethod
    def prefix(self) -> str:
        pass

    @abstractmethod
    def namespace_uri(self) -> str:
        pass

    @abstractmethod
    def value(self) -> str:
        """Return the XPath string-value of the current position."""
        pass

    @abstractmethod
    def copy(self) -> 'NodeNavigator':
        """Return an independent navigator at the same position."""
        pass

    @abstractmethod
    def move_to_root(self) -> None:
        """Move to the root of the tree. Always succeeds."""
        pass

    @abstractmethod
    def move_to_parent(self) -> bool:
        pass

    @abstractmethod
    def move_to_next_attribute(self) -> bool:
        """Move to the next attribute of the current element.

        Starting from the element itself this moves to its first attribute.
        """
        pass

    @abstractmethod
    def move_to_child(self) -> bool:
        pass

    @abstractmethod
    def move_to_first(self) -> bool:
        """Move to the first sibling of the current node."""
        pass

    @abstractmethod
    def move_to_next(self) -> bool:
        pass

    @abstractmethod
    def move_to_previous(self) -> bool:
        pass

    @abstractmethod
    def move_to(self, other: 'NodeNavigator') -> bool:
        """Move to the position of ``other`` if it navigates the same tree."""
        pass

    # Position identity hooks. The defaults only use the contract above;
    # navigators can override them with cheaper, exact versions.

    def is_same_position(self, other: 'NodeNavigator') -> bool:
        """Check whether two navigators point at the same position.

        Args:
            other: Navigator to compare with

        Returns:
            True if both report the same document order key
        """
        return self.document_order_key() == other.document_order_key()

    def document_order_key(self) -> Tuple:
        """Return a sortable key placing this position in document order.

        Default implementation walks up to the root, counting preceding
        siblings at each level. Attributes sort after their element and
        before its children.

        Returns:
            Tuple usable for ordering positions of the same tree
        """
        nav = self.copy()
        key = []
        if nav.node_type() == XPathNodeType.ATTRIBUTE:
            index = 0
            local_name = nav.local_name()
            nav.move_to_parent()
            probe = nav.copy()
            while probe.move_to_next_attribute():
                if probe.local_name() == local_name:
                    break
                index += 1
            key = [-1, index]
        while True:
            index = 0
            sibling = nav.copy()
            while sibling.move_to_previous():
                index += 1
            key.insert(0, index)
            if not nav.move_to_parent():
                break
        return tuple(key)

    def __str__(self) -> str:
        return self.value()
