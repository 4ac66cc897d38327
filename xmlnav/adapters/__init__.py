"""Navigator implementations for concrete tree models."""

from .xml import XmlNodeNavigator, attribute_node, create_navigator, navigator_for

__all__ = [
    'XmlNodeNavigator',
    'attribute_node',
    'create_navigator',
    'navigator_for',
]
