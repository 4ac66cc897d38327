"""High-level query API for xmlnav.

This module provides simple, functional interfaces for querying a node
tree with XPath. These functions wrap the navigator and the XPath engine
for ease of use.

Two families are offered:

- ``query_all``/``query``/``evaluate`` raise ``XPathError`` subclasses for
  malformed expressions; callers may handle them.
- ``find``/``find_one`` treat a malformed expression as a programming
  error and raise ``QueryAbortError`` instead.
"""

import logging
import warnings
from typing import Any, Callable, List, Optional, Union

from .adapters.xml import create_navigator
from .cache import ExpressionCache
from .config import CompileOptions, get_config
from .core.node import Node
from .errors import QueryAbortError, XPathError
from .xpath import Expr, NodeIterator
from .xpath import compile as compile_expr

logger = logging.getLogger(__name__)

# Process-wide compiled expression cache, sized from the active QueryConfig
_cache = ExpressionCache(get_config().cache_max_entries)


def get_cache() -> ExpressionCache:
    """Return the process-wide compiled expression cache."""
    return _cache


def get_query(expr: str, options: Optional[CompileOptions] = None) -> Expr:
    """Compile ``expr``, reusing a cached compilation when possible.

    Args:
        expr: XPath expression
        options: Compile options (defaults to none)

    Returns:
        Compiled expression

    Raises:
        XPathCompileError: If the expression is malformed
    """
    if options is None:
        options = CompileOptions()
    config = get_config()
    if not config.caching:
        return compile_expr(expr, options)

    if _cache.max_entries != config.cache_max_entries:
        _cache.max_entries = config.cache_max_entries
    return _cache.get_or_compile(
        (expr, options.cache_key()),
        lambda: compile_expr(expr, options),
    )


def query_selector_all(top: Node, selector: Expr) -> List[Node]:
    """Return all nodes matching a compiled expression, in engine order.

    Attribute matches are returned as detached ATTRIBUTE nodes.
    """
    iterator = selector.select(create_navigator(top))
    return [nav.current() for nav in iterator]


def query_selector(top: Node, selector: Expr) -> Optional[Node]:
    """Return the first node matching a compiled expression, or None."""
    iterator = selector.select(create_navigator(top))
    if iterator.move_next():
        return iterator.current().current()
    return None


def query_all(top: Node, expr: str,
              options: Optional[CompileOptions] = None) -> List[Node]:
    """Find all nodes matching the XPath expression.

    Args:
        top: Node the expression is evaluated from (also the root for
            absolute paths)
        expr: XPath expression
        options: Compile options

    Returns:
        Matching nodes, empty list if none match

    Raises:
        XPathError: If the expression cannot be compiled or evaluated

    Example:
        >>> for b in query_all(doc, "//b[@id]"):
        ...     print(b.select_attr("id"))
    """
    return query_selector_all(top, get_query(expr, options))


def query(top: Node, expr: str,
          options: Optional[CompileOptions] = None) -> Optional[Node]:
    """Find the first node matching the XPath expression.

    Returns:
        First matching node, or None if nothing matches

    Raises:
        XPathError: If the expression cannot be compiled or evaluated
    """
    return query_selector(top, get_query(expr, options))


# Names kept for callers that spell the options variant explicitly
query_all_with_options = query_all
query_with_options = query


def evaluate(top: Node, expr: str,
             options: Optional[CompileOptions] = None) -> Union[List[Node], str, float, bool]:
    """Evaluate any XPath expression, not only node-set ones.

    Example:
        >>> evaluate(doc, "count(//b)")
        2.0

    Returns:
        List of nodes for node-set results, else a str, float or bool
    """
    value = get_query(expr, options).evaluate(create_navigator(top))
    if isinstance(value, NodeIterator):
        return [nav.current() for nav in value]
    return value


def find(top: Node, expr: str) -> List[Node]:
    """Like query_all, but an invalid expression aborts with QueryAbortError."""
    try:
        return query_all(top, expr)
    except XPathError as e:
        logger.error("Aborting on invalid XPath expression %r: %s", expr, e)
        raise QueryAbortError(str(e)) from e


def find_one(top: Node, expr: str) -> Optional[Node]:
    """Like query, but an invalid expression aborts with QueryAbortError."""
    try:
        return query(top, expr)
    except XPathError as e:
        logger.error("Aborting on invalid XPath expression %r: %s", expr, e)
        raise QueryAbortError(str(e)) from e


def find_each(top: Node, expr: str, callback: Callable[[int, Node], Any]) -> None:
    """Call ``callback(index, node)`` for every match.

    Deprecated: iterate over ``find(top, expr)`` instead.
    """
    warnings.warn("find_each() is deprecated, iterate over find() instead",
                  DeprecationWarning, stacklevel=2)
    for index, node in enumerate(find(top, expr)):
        callback(index, node)


def find_each_with_break(top: Node, expr: str,
                         callback: Callable[[int, Node], bool]) -> None:
    """Like find_each, but stops as soon as ``callback`` returns False.

    Deprecated: iterate over ``find(top, expr)`` instead.
    """
    warnings.warn("find_each_with_break() is deprecated, iterate over find() instead",
                  DeprecationWarning, stacklevel=2)
    for index, node in enumerate(find(top, expr)):
        if not callback(index, node):
            break


def select_attr(node: Node, name: str) -> str:
    """Return the value of attribute ``name`` on ``node``, or ``""``."""
    return node.select_attr(name)

