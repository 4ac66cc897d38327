"""XPath 1.0 engine for xmlnav.

Expressions are parsed by eulxml and evaluated purely through the
NodeNavigator contract, so any tree with a navigator can be queried.
"""

from .expression import Expr, NodeIterator, compile
from .functions import FUNCTIONS

__all__ = [
    "Expr",
    "NodeIterator",
    "compile",
    "FUNCTIONS",
]
