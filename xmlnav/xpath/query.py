"""Query objects for the XPath engine.

A compiled expression is a tree of Query objects. Each one evaluates
against a Context and returns an XPath value:

- node-set: a list of navigators, deduplicated and in document order
- string: ``str``
- number: ``float``
- boolean: ``bool``

Queries only ever move copies of the context navigator, so the caller's
navigator keeps its position.
"""

import math
import operator
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from ..core.navigator import NodeNavigator, XPathNodeType
from ..errors import XPathEvaluationError


class Context:
    """Evaluation context: node and proximity position/size.

    Variables are resolved when the expression is compiled, so they are
    not part of the context.
    """

    __slots__ = ("nav", "position", "size")

    def __init__(self, nav: NodeNavigator, position: int = 1, size: int = 1):
        self.nav = nav
        self.position = position
        self.size = size

    def derive(self, nav: NodeNavigator, position: int, size: int) -> 'Context':
        return Context(nav, position, size)


# Value conversions (XPath 1.0 section 4)

_NUMBER_RE = re.compile(r"^\s*-?(\d+(\.\d*)?|\.\d+)\s*$")


def format_number(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == int(value):
        return str(int(value))
    text = repr(value)
    if "e" in text or "E" in text:
        text = f"{value:.20f}".rstrip("0").rstrip(".")
    return text


def to_string(value: Any) -> str:
    if isinstance(value, list):
        return value[0].value() if value else ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    return value


def string_to_number(text: str) -> float:
    if _NUMBER_RE.match(text):
        return float(text)
    return math.nan


def to_number(value: Any) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, float):
        return value
    return string_to_number(to_string(value))


def to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return not (value == 0 or math.isnan(value))
    return len(value) > 0


def require_node_set(value: Any, what: str) -> List[NodeNavigator]:
    if not isinstance(value, list):
        raise XPathEvaluationError(f"{what} must evaluate to a node-set")
    return value


def document_order(navs: Sequence[NodeNavigator]) -> List[NodeNavigator]:
    """Deduplicate navigators by position and sort them in document order."""
    keyed = {}
    for nav in navs:
        keyed.setdefault(nav.document_order_key(), nav)
    return [keyed[key] for key in sorted(keyed)]


# Axes

def iter_children(nav: NodeNavigator) -> Iterator[NodeNavigator]:
    child = nav.copy()
    if not child.move_to_child():
        return
    yield child.copy()
    while child.move_to_next():
        yield child.copy()


def iter_descendants(nav: NodeNavigator) -> Iterator[NodeNavigator]:
    # Explicit stack: tree depth must not be bounded by the recursion limit
    stack = [iter_children(nav)]
    while stack:
        child = next(stack[-1], None)
        if child is None:
            stack.pop()
            continue
        yield child
        stack.append(iter_children(child))


def iter_reverse_descendants(nav: NodeNavigator) -> Iterator[NodeNavigator]:
    # Each entry is (node to yield once its subtree is done, its children
    # in reverse order)
    stack = [(None, reversed(list(iter_children(nav))))]
    while stack:
        owner, children = stack[-1]
        child = next(children, None)
        if child is None:
            stack.pop()
            if owner is not None:
                yield owner
            continue
        stack.append((child, reversed(list(iter_children(child)))))


def _axis_self(nav):
    yield nav.copy()


def _axis_parent(nav):
    parent = nav.copy()
    if parent.move_to_parent():
        yield parent


def _axis_ancestor(nav):
    node = nav.copy()
    while node.move_to_parent():
        yield node.copy()


def _axis_ancestor_or_self(nav):
    yield nav.copy()
    yield from _axis_ancestor(nav)


def _axis_descendant_or_self(nav):
    yield nav.copy()
    yield from iter_descendants(nav)


def _axis_attribute(nav):
    if nav.node_type() != XPathNodeType.ELEMENT:
        return
    node = nav.copy()
    while node.move_to_next_attribute():
        yield node.copy()


def _axis_following_sibling(nav):
    node = nav.copy()
    while node.move_to_next():
        yield node.copy()


def _axis_preceding_sibling(nav):
    node = nav.copy()
    while node.move_to_previous():
        yield node.copy()


def _axis_following(nav):
    node = nav.copy()
    if node.node_type() == XPathNodeType.ATTRIBUTE:
        node.move_to_parent()
        yield from iter_descendants(node)
    while True:
        sibling = node.copy()
        while sibling.move_to_next():
            yield sibling.copy()
            yield from iter_descendants(sibling)
        if not node.move_to_parent():
            break


def _axis_preceding(nav):
    node = nav.copy()
    if node.node_type() == XPathNodeType.ATTRIBUTE:
        node.move_to_parent()
    while True:
        sibling = node.copy()
        while sibling.move_to_previous():
            yield from iter_reverse_descendants(sibling)
            yield sibling.copy()
        if not node.move_to_parent():
            break


def _axis_namespace(nav):
    # Namespace nodes are not modelled.
    return iter(())


AXES: Dict[str, Callable[[NodeNavigator], Iterator[NodeNavigator]]] = {
    "self": _axis_self,
    "child": iter_children,
    "parent": _axis_parent,
    "ancestor": _axis_ancestor,
    "ancestor-or-self": _axis_ancestor_or_self,
    "descendant": iter_descendants,
    "descendant-or-self": _axis_descendant_or_self,
    "attribute": _axis_attribute,
    "following-sibling": _axis_following_sibling,
    "preceding-sibling": _axis_preceding_sibling,
    "following": _axis_following,
    "preceding": _axis_preceding,
    "namespace": _axis_namespace,
}


# Node tests

class NodeTest(ABC):

    @abstractmethod
    def matches(self, nav: NodeNavigator, principal: XPathNodeType) -> bool:
        pass


class NameTest(NodeTest):
    """Matches nodes of the principal kind by (optionally prefixed) name.

    A prefix bound in the compile options is compared by namespace URI;
    an unbound prefix is compared against the node's own prefix. Without
    a prefix only the local name is compared.
    """

    def __init__(self, local: str, prefix: Optional[str] = None,
                 namespace_uri: Optional[str] = None):
        self.local = local
        self.prefix = prefix
        self.namespace_uri = namespace_uri

    def __repr__(self) -> str:
        if self.prefix:
            return f"NameTest({self.prefix}:{self.local})"
        return f"NameTest({self.local})"

    def matches(self, nav: NodeNavigator, principal: XPathNodeType) -> bool:
        if nav.node_type() != principal:
            return False
        if self.local != "*" and nav.local_name() != self.local:
            return False
        if self.namespace_uri is not None:
            return nav.namespace_uri() == self.namespace_uri
        if self.prefix:
            return nav.prefix() == self.prefix
        return True


class KindTest(NodeTest):
    """Matches node(), text(), comment() and processing-instruction()."""

    def __init__(self, kind: Optional[XPathNodeType]):
        # None stands for processing-instruction(), which never matches
        self.kind = kind

    def __repr__(self) -> str:
        return f"KindTest({self.kind})"

    def matches(self, nav: NodeNavigator, principal: XPathNodeType) -> bool:
        if self.kind is None:
            return False
        if self.kind == XPathNodeType.ALL:
            return True
        return nav.node_type() == self.kind


# Queries

class Query(ABC):

    @abstractmethod
    def evaluate(self, ctx: Context) -> Any:
        pass


def apply_predicate(predicate: Query, nodes: List[NodeNavigator],
                    ctx: Context) -> List[NodeNavigator]:
    size = len(nodes)
    kept = []
    for position, nav in enumerate(nodes, 1):
        value = predicate.evaluate(ctx.derive(nav, position, size))
        if isinstance(value, float):
            if value == position:
                kept.append(nav)
        elif to_boolean(value):
            kept.append(nav)
    return kept


class ContextQuery(Query):
    """The context node itself (``.``)."""

    def evaluate(self, ctx):
        return [ctx.nav.copy()]


class RootQuery(Query):
    """The root of the tree (``/``)."""

    def evaluate(self, ctx):
        nav = ctx.nav.copy()
        nav.move_to_root()
        return [nav]


class StepQuery(Query):
    """One location step: axis, node test and predicates."""

    def __init__(self, axis: str, test: NodeTest, predicates: Sequence[Query] = ()):
        self.axis = axis
        self.test = test
        self.predicates = list(predicates)
        self.principal = (XPathNodeType.ATTRIBUTE if axis == "attribute"
                          else XPathNodeType.ELEMENT)
        self._iter_axis = AXES[axis]

    def __repr__(self) -> str:
        return f"StepQuery({self.axis}, {self.test!r}, {len(self.predicates)} predicates)"

    def evaluate(self, ctx):
        nodes = [nav for nav in self._iter_axis(ctx.nav)
                 if self.test.matches(nav, self.principal)]
        # Predicates see proximity positions in axis order
        for predicate in self.predicates:
            nodes = apply_predicate(predicate, nodes, ctx)
        return document_order(nodes)


class PathQuery(Query):
    """``left/right``: evaluates ``right`` from every node of ``left``."""

    def __init__(self, left: Query, right: Query):
        self.left = left
        self.right = right

    def evaluate(self, ctx):
        left = require_node_set(self.left.evaluate(ctx), "left side of a path")
        size = len(left)
        results = []
        for position, nav in enumerate(left, 1):
            value = self.right.evaluate(ctx.derive(nav, position, size))
            results.extend(require_node_set(value, "path step"))
        return document_order(results)


class FilterQuery(Query):
    """A filter expression: primary expression followed by predicates."""

    def __init__(self, base: Query, predicates: Sequence[Query]):
        self.base = base
        self.predicates = list(predicates)

    def evaluate(self, ctx):
        nodes = require_node_set(self.base.evaluate(ctx), "filtered expression")
        for predicate in self.predicates:
            nodes = apply_predicate(predicate, nodes, ctx)
        return nodes


class UnionQuery(Query):

    def __init__(self, left: Query, right: Query):
        self.left = left
        self.right = right

    def evaluate(self, ctx):
        left = require_node_set(self.left.evaluate(ctx), "union operand")
        right = require_node_set(self.right.evaluate(ctx), "union operand")
        return document_order(left + right)


class LiteralQuery(Query):

    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"LiteralQuery({self.value!r})"

    def evaluate(self, ctx):
        return self.value


class VariableQuery(Query):
    """``$name``, holding the XPath value bound at compile time."""

    def __init__(self, name: str, value: Any):
        self.name = name
        self.value = value

    def __repr__(self) -> str:
        return f"VariableQuery(${self.name})"

    def evaluate(self, ctx):
        if isinstance(self.value, list):
            return [nav.copy() for nav in self.value]
        return self.value


def coerce_scalar(value: Any) -> Any:
    """Convert a Python scalar bound to a variable into an XPath value."""
    if isinstance(value, (bool, str)):
        return value
    return float(value)


class FunctionQuery(Query):

    def __init__(self, name: str, function: Callable, args: Sequence[Query]):
        self.name = name
        self.function = function
        self.args = list(args)

    def __repr__(self) -> str:
        return f"FunctionQuery({self.name}, {len(self.args)} args)"

    def evaluate(self, ctx):
        return self.function(ctx, *[arg.evaluate(ctx) for arg in self.args])


class NegateQuery(Query):

    def __init__(self, operand: Query):
        self.operand = operand

    def evaluate(self, ctx):
        return -to_number(self.operand.evaluate(ctx))


class LogicalQuery(Query):
    """``and`` / ``or`` with short-circuit evaluation."""

    def __init__(self, op: str, left: Query, right: Query):
        self.op = op
        self.left = left
        self.right = right

    def evaluate(self, ctx):
        left = to_boolean(self.left.evaluate(ctx))
        if self.op == "and":
            return left and to_boolean(self.right.evaluate(ctx))
        return left or to_boolean(self.right.evaluate(ctx))


def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _modulo(a: float, b: float) -> float:
    if b == 0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
        return math.nan
    return math.fmod(a, b)


ARITHMETIC_OPS = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "div": _divide,
    "mod": _modulo,
}


class ArithmeticQuery(Query):

    def __init__(self, op: str, left: Query, right: Query):
        self.op = op
        self.left = left
        self.right = right
        self._apply = ARITHMETIC_OPS[op]

    def evaluate(self, ctx):
        left = to_number(self.left.evaluate(ctx))
        right = to_number(self.right.evaluate(ctx))
        try:
            return self._apply(left, right)
        except OverflowError:
            return math.copysign(math.inf, left)


RELATIONAL_OPS = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

COMPARISON_OPS = ("=", "!=") + tuple(RELATIONAL_OPS)


def compare_atomic(op: str, left: Any, right: Any) -> bool:
    if op in ("=", "!="):
        if isinstance(left, bool) or isinstance(right, bool):
            left, right = to_boolean(left), to_boolean(right)
        elif isinstance(left, float) or isinstance(right, float):
            left, right = to_number(left), to_number(right)
        else:
            left, right = to_string(left), to_string(right)
        return left == right if op == "=" else left != right
    return RELATIONAL_OPS[op](to_number(left), to_number(right))


def compare(op: str, left: Any, right: Any) -> bool:
    """Compare two XPath values following the node-set rules of XPath 1.0."""
    left_nodes = isinstance(left, list)
    right_nodes = isinstance(right, list)
    if left_nodes and right_nodes:
        right_values = [nav.value() for nav in right]
        return any(compare_atomic(op, node.value(), other)
                   for node in left for other in right_values)
    if left_nodes:
        if isinstance(right, bool):
            return compare_atomic(op, to_boolean(left), right)
        if isinstance(right, float):
            return any(compare_atomic(op, string_to_number(n.value()), right) for n in left)
        return any(compare_atomic(op, n.value(), right) for n in left)
    if right_nodes:
        if isinstance(left, bool):
            return compare_atomic(op, left, to_boolean(right))
        if isinstance(left, float):
            return any(compare_atomic(op, left, string_to_number(n.value())) for n in right)
        return any(compare_atomic(op, left, n.value()) for n in right)
    return compare_atomic(op, left, right)


class ComparisonQuery(Query):

    def __init__(self, op: str, left: Query, right: Query):
        self.op = op
        self.left = left
        self.right = right

    def evaluate(self, ctx):
        return compare(self.op, self.left.evaluate(ctx), self.right.evaluate(ctx))
