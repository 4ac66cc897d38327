"""Compiling and running XPath expressions.

``compile()`` parses an expression with eulxml and builds a reusable
``Expr``. An ``Expr`` holds no per-evaluation state, so one instance can
be shared between threads; every ``select()`` works on copies of the
navigator it is given.
"""

import logging
import threading
from typing import Iterator, List, Optional, Union

from eulxml import xpath as eulxpath

from ..config import CompileOptions
from ..core.navigator import NodeNavigator
from ..errors import XPathCompileError, XPathEvaluationError
from .builder import QueryBuilder
from .query import Context, Query

logger = logging.getLogger(__name__)

# eulxml drives one module-level ply lexer/parser pair, which is not
# reentrant.
_parse_lock = threading.Lock()


class NodeIterator:
    """Forward-only iterator over matching navigator positions.

    Use either ``move_next()``/``current()`` or plain Python iteration.
    """

    def __init__(self, nodes: List[NodeNavigator]):
        self._nodes = nodes
        self._index = -1

    def move_next(self) -> bool:
        """Advance to the next match. Returns False when exhausted."""
        if self._index + 1 >= len(self._nodes):
            self._index = len(self._nodes)
            return False
        self._index += 1
        return True

    def current(self) -> NodeNavigator:
        """Return the navigator at the current match."""
        if not 0 <= self._index < len(self._nodes):
            raise XPathEvaluationError("iterator is not positioned on a match")
        return self._nodes[self._index]

    def __iter__(self) -> Iterator[NodeNavigator]:
        while self.move_next():
            yield self.current()

    def __len__(self) -> int:
        return len(self._nodes)


class Expr:
    """A compiled XPath expression."""

    def __init__(self, expr: str, query: Query, options: CompileOptions):
        self.expr = expr
        self.query = query
        self.options = options

    def __repr__(self) -> str:
        return f"Expr({self.expr!r})"

    def __str__(self) -> str:
        return self.expr

    def _run(self, nav: NodeNavigator):
        ctx = Context(nav.copy())
        return self.query.evaluate(ctx)

    def evaluate(self, nav: NodeNavigator) -> Union[NodeIterator, str, float, bool]:
        """Evaluate against ``nav``.

        Returns:
            NodeIterator for node-set results, else a str, float or bool
        """
        value = self._run(nav)
        if isinstance(value, list):
            return NodeIterator(value)
        return value

    def select(self, nav: NodeNavigator) -> NodeIterator:
        """Evaluate against ``nav`` and iterate over the matching nodes.

        Raises:
            XPathEvaluationError: If the expression is not a node-set
        """
        value = self._run(nav)
        if not isinstance(value, list):
            raise XPathEvaluationError(
                f"expression {self.expr!r} does not evaluate to a node-set"
            )
        return NodeIterator(value)


def compile(expr: str, options: Optional[CompileOptions] = None) -> Expr:
    """Compile an XPath 1.0 expression.

    Args:
        expr: Expression string
        options: Namespace/variable bindings (defaults to none)

    Returns:
        Reusable compiled expression

    Raises:
        XPathCompileError: If the expression is malformed or refers to an
            unknown axis, function or variable
    """
    if options is None:
        options = CompileOptions()
    if not isinstance(expr, str) or not expr.strip():
        raise XPathCompileError("empty XPath expression", expr)

    with _parse_lock:
        try:
            syntax_tree = eulxpath.parse(expr)
        except Exception as e:
            # eulxml reports lexer and parser failures with builtin
            # exception types.
            raise XPathCompileError(f"invalid XPath expression: {e}", expr) from e

    query = QueryBuilder(expr, options).build(syntax_tree)
    logger.debug("Compiled XPath expression %r", expr)
    return Expr(expr, query, options)
