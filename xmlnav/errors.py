"""Exception hierarchy for xmlnav.

Two families matter to callers:

- ``XPathError`` and its subclasses are recoverable query errors raised by
  the error-returning API (``query``, ``query_all``, ``evaluate``).
- ``QueryAbortError`` is raised only by the abort-style convenience API
  (``find``, ``find_one``) for call sites that treat a malformed query as a
  programming error. It is intentionally not an ``XPathError``.

``TreeConsistencyError`` signals a broken tree (an upstream invariant
violation) and is never caught inside the package.
"""

from typing import Optional


class XmlNavError(Exception):
    """Base class for all xmlnav errors."""
    pass


class XPathError(XmlNavError):
    """Base class for recoverable XPath compile/evaluate errors."""
    pass


class XPathCompileError(XPathError, ValueError):
    """Raised when an expression string cannot be compiled."""

    def __init__(self, message: str, expr: Optional[str] = None):
        self.expr = expr
        if expr is not None:
            message = f"{message} (expression: {expr!r})"
        super().__init__(message)


class XPathEvaluationError(XPathError):
    """Raised when a compiled expression cannot be evaluated."""
    pass


class TreeConsistencyError(XmlNavError, RuntimeError):
    """Raised when a node tree violates the tree model invariants."""
    pass


class QueryAbortError(XmlNavError, RuntimeError):
    """Raised by find()/find_one() when the expression is invalid."""
    pass


class ConfigurationError(XmlNavError, ValueError):
    """Raised when a QueryConfig fails validation."""
    pass
