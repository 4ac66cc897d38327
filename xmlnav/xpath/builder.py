"""Build Query trees from eulxml XPath syntax trees.

eulxml parses an expression into plain AST objects (``Step``,
``BinaryExpression``, ``FunctionCall``...) but does not evaluate them.
The builder walks that AST once at compile time, resolving axes, node
tests, namespace prefixes, variables and functions, and produces the
Query objects evaluated against a navigator.
"""

from typing import Any, List

from eulxml.xpath import ast

from ..adapters.xml import navigator_for
from ..config import CompileOptions
from ..core.navigator import NodeNavigator, XPathNodeType
from ..core.node import Node
from ..errors import XPathCompileError
from .functions import FUNCTIONS
from .query import (
    AXES,
    COMPARISON_OPS,
    ARITHMETIC_OPS,
    ArithmeticQuery,
    ComparisonQuery,
    ContextQuery,
    FilterQuery,
    FunctionQuery,
    KindTest,
    LiteralQuery,
    LogicalQuery,
    NameTest,
    NegateQuery,
    NodeTest,
    PathQuery,
    Query,
    RootQuery,
    StepQuery,
    UnionQuery,
    VariableQuery,
    coerce_scalar,
    document_order,
)


KIND_TESTS = {
    "node": XPathNodeType.ALL,
    "text": XPathNodeType.TEXT,
    "comment": XPathNodeType.COMMENT,
    "processing-instruction": None,
}


def _descendant_or_self() -> StepQuery:
    return StepQuery("descendant-or-self", KindTest(XPathNodeType.ALL))


class QueryBuilder:
    """Translates one parsed expression into a Query tree.

    Args:
        expr: Source expression, used in error messages
        options: Namespace and variable bindings
    """

    def __init__(self, expr: str, options: CompileOptions):
        self.expr = expr
        self.options = options

    def error(self, message: str) -> XPathCompileError:
        return XPathCompileError(message, self.expr)

    def build(self, node: Any) -> Query:
        # Literals come through as plain Python values
        if isinstance(node, bool):
            raise self.error(f"unexpected boolean literal {node!r}")
        if isinstance(node, str):
            return LiteralQuery(node)
        if isinstance(node, (int, float)):
            return LiteralQuery(float(node))

        if isinstance(node, ast.AbsolutePath):
            return self.build_absolute_path(node)
        if isinstance(node, ast.BinaryExpression):
            return self.build_binary(node)
        if isinstance(node, ast.UnaryExpression):
            if node.op != "-":
                raise self.error(f"unsupported unary operator {node.op!r}")
            return NegateQuery(self.build(node.right))
        if isinstance(node, ast.PredicatedExpression):
            return FilterQuery(self.build(node.base),
                               self.build_predicates(node.predicates))
        if isinstance(node, ast.Step):
            return self.build_step(node.axis, node.node_test, node.predicates)
        if isinstance(node, ast.AbbreviatedStep):
            if node.abbr == ".":
                return ContextQuery()
            return StepQuery("parent", KindTest(XPathNodeType.ALL))
        if isinstance(node, (ast.NameTest, ast.NodeType)):
            return self.build_step(None, node, [])
        if isinstance(node, ast.FunctionCall):
            return self.build_function(node)
        if isinstance(node, ast.VariableReference):
            return self.build_variable(node)

        raise self.error(f"unsupported expression {type(node).__name__}")

    def build_predicates(self, predicates) -> List[Query]:
        return [self.build(predicate) for predicate in predicates or []]

    def build_absolute_path(self, node) -> Query:
        root = RootQuery()
        if node.relative is None:
            return root
        if node.op == "//":
            root = PathQuery(root, _descendant_or_self())
        return PathQuery(root, self.build(node.relative))

    def build_binary(self, node) -> Query:
        op = node.op
        left = self.build(node.left)
        right = self.build(node.right)
        if op == "/":
            return PathQuery(left, right)
        if op == "//":
            return PathQuery(PathQuery(left, _descendant_or_self()), right)
        if op == "|":
            return UnionQuery(left, right)
        if op in ("and", "or"):
            return LogicalQuery(op, left, right)
        if op in COMPARISON_OPS:
            return ComparisonQuery(op, left, right)
        if op in ARITHMETIC_OPS:
            return ArithmeticQuery(op, left, right)
        raise self.error(f"unsupported operator {op!r}")

    def build_step(self, axis, node_test, predicates) -> StepQuery:
        if axis is None:
            axis = "child"
        elif axis == "@":
            axis = "attribute"
        if axis not in AXES:
            raise self.error(f"unknown axis {axis!r}")
        return StepQuery(axis, self.build_node_test(node_test),
                         self.build_predicates(predicates))

    def build_node_test(self, node_test) -> NodeTest:
        if isinstance(node_test, ast.NodeType):
            if node_test.name not in KIND_TESTS:
                raise self.error(f"unknown node type test {node_test.name}()")
            return KindTest(KIND_TESTS[node_test.name])
        if isinstance(node_test, ast.NameTest):
            prefix = node_test.prefix or None
            namespace_uri = None
            if prefix is not None:
                namespace_uri = self.options.namespaces.get(prefix)
            return NameTest(node_test.name, prefix, namespace_uri)
        raise self.error(f"unsupported node test {type(node_test).__name__}")

    def build_function(self, node) -> Query:
        name = node.name
        if node.prefix:
            raise self.error(f"unknown function {node.prefix}:{name}()")
        args = node.args or []

        # Some grammars hand back node type tests as function calls
        if name in KIND_TESTS:
            if len(args) > (1 if name == "processing-instruction" else 0):
                raise self.error(f"{name}() takes no arguments")
            return StepQuery("child", KindTest(KIND_TESTS[name]))

        spec = FUNCTIONS.get(name)
        if spec is None:
            raise self.error(f"unknown function {name}()")
        if len(args) < spec.min_args or (spec.max_args is not None
                                         and len(args) > spec.max_args):
            raise self.error(f"wrong number of arguments to {name}(): {len(args)}")
        return FunctionQuery(name, spec.function, [self.build(arg) for arg in args])

    def build_variable(self, node) -> Query:
        name = node.name
        if isinstance(name, tuple):
            prefix, local = name
            name = f"{prefix}:{local}" if prefix else local
        if name not in self.options.variables:
            raise self.error(f"unbound variable ${name}")
        return VariableQuery(name, self.bind_value(name, self.options.variables[name]))

    def bind_value(self, name: str, value: Any) -> Any:
        """Convert a bound Python value into an XPath value.

        Scalars become strings, numbers or booleans. A list or tuple becomes
        a node-set and may hold ``Node`` objects (for example results of
        ``query_all``) or navigators.
        """
        if isinstance(value, (bool, str, int, float)):
            return coerce_scalar(value)
        if not isinstance(value, (list, tuple)):
            raise self.error(
                f"unsupported value for variable ${name}: {type(value).__name__}"
            )
        navs = []
        for item in value:
            if isinstance(item, Node):
                navs.append(navigator_for(item))
            elif isinstance(item, NodeNavigator):
                navs.append(item.copy())
            else:
                raise self.error(
                    f"variable ${name} must hold nodes, got {type(item).__name__}"
                )
        return document_order(navs)
