"""Testing utilities for xmlnav."""

from .fixtures import document, element, text, cdata, comment, declaration, notation, sample_document

__all__ = [
    'document',
    'element',
    'text',
    'cdata',
    'comment',
    'declaration',
    'notation',
    'sample_document',
]
