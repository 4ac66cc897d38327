"""xmlnav - XPath queries over an already-parsed XML node tree.

xmlnav lets callers select nodes of a document tree declaratively instead
of walking it by hand. The XPath engine never sees the tree directly: it
drives a navigator (cursor) that knows how the tree is linked.

Quick start:
━━━━━━━━━━━━━━━━━━━━━━━━━━
    from xmlnav import query_all, find_one

    for book in query_all(doc, "//book[price > 20]"):
        print(book.select_attr("id"))

    title = find_one(doc, "//book[@id='bk2']/title")
━━━━━━━━━━━━━━━━━━━━━━━━━━
"""

__version__ = "0.1.0"

from .core.node import (
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
from .core.navigator import NodeNavigator, XPathNodeType
from .adapters.xml import XmlNodeNavigator, create_navigator, navigator_for
from .config import CompileOptions, QueryConfig, configure, get_config
from .errors import (
    ConfigurationError,
    QueryAbortError,
    TreeConsistencyError,
    XmlNavError,
    XPathCompileError,
    XPathError,
    XPathEvaluationError,
)
from .xpath import Expr, NodeIterator
from .xpath import compile
from .api import (
    evaluate,
    find,
    find_each,
    find_each_with_break,
    find_one,
    get_cache,
    get_query,
    query,
    query_all,
    query_all_with_options,
    query_selector,
    query_selector_all,
    query_with_options,
    select_attr,
)

__all__ = [
    "__version__",
    # Tree model
    "Attr",
    "Name",
    "Node",
    "NodeType",
    "add_attr",
    "add_child",
    "add_sibling",
    "check_tree",
    "remove_from_tree",
    # Navigation
    "NodeNavigator",
    "XPathNodeType",
    "XmlNodeNavigator",
    "create_navigator",
    "navigator_for",
    # Config
    "CompileOptions",
    "QueryConfig",
    "configure",
    "get_config",
    # Errors
    "ConfigurationError",
    "QueryAbortError",
    "TreeConsistencyError",
    "XmlNavError",
    "XPathCompileError",
    "XPathError",
    "XPathEvaluationError",
    # Engine
    "Expr",
    "NodeIterator",
    "compile",
    # API
    "evaluate",
    "find",
    "find_each",
    "find_each_with_break",
    "find_one",
    "get_cache",
    "get_query",
    "query",
    "query_all",
    "query_all_with_options",
    "query_selector",
    "query_selector_all",
    "query_with_options",
    "select_attr",
]
