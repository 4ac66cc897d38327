"""XPath 1.0 core function library.

Every function takes the evaluation Context followed by its already
evaluated arguments. ``FUNCTIONS`` maps a function name to the callable
and its accepted argument counts; the builder checks arity at compile
time.
"""

import math
from typing import Any, Callable, Dict, NamedTuple, Optional

from ..core.navigator import XPathNodeType
from .query import (
    Context,
    require_node_set,
    to_boolean,
    to_number,
    to_string,
)


class FunctionSpec(NamedTuple):
    function: Callable
    min_args: int
    max_args: Optional[int]  # None = variadic


def _context_or_first(ctx: Context, node_set: Any = None):
    if node_set is None:
        return ctx.nav
    nodes = require_node_set(node_set, "function argument")
    return nodes[0] if nodes else None


def _string_arg(ctx: Context, value: Any = None) -> str:
    if value is None:
        return ctx.nav.value()
    return to_string(value)


# Node-set functions

def fn_last(ctx):
    return float(ctx.size)


def fn_position(ctx):
    return float(ctx.position)


def fn_count(ctx, node_set):
    return float(len(require_node_set(node_set, "count() argument")))


def fn_local_name(ctx, node_set=None):
    nav = _context_or_first(ctx, node_set)
    if nav is None or nav.node_type() in (XPathNodeType.ROOT, XPathNodeType.TEXT,
                                          XPathNodeType.COMMENT):
        return ""
    return nav.local_name()


def fn_name(ctx, node_set=None):
    local = fn_local_name(ctx, node_set)
    if not local:
        return ""
    prefix = _context_or_first(ctx, node_set).prefix()
    return f"{prefix}:{local}" if prefix else local


def fn_namespace_uri(ctx, node_set=None):
    nav = _context_or_first(ctx, node_set)
    if nav is None or nav.node_type() not in (XPathNodeType.ELEMENT,
                                              XPathNodeType.ATTRIBUTE):
        return ""
    return nav.namespace_uri()


# String functions

def fn_string(ctx, value=None):
    return _string_arg(ctx, value)


def fn_concat(ctx, *values):
    return "".join(to_string(v) for v in values)


def fn_starts_with(ctx, text, prefix):
    return to_string(text).startswith(to_string(prefix))


def fn_ends_with(ctx, text, suffix):
    return to_string(text).endswith(to_string(suffix))


def fn_contains(ctx, text, part):
    return to_string(part) in to_string(text)


def fn_substring_before(ctx, text, part):
    text, part = to_string(text), to_string(part)
    index = text.find(part)
    return text[:index] if index >= 0 else ""


def fn_substring_after(ctx, text, part):
    text, part = to_string(text), to_string(part)
    index = text.find(part)
    return text[index + len(part):] if index >= 0 else ""


def fn_substring(ctx, text, start, length=None):
    # Character positions are 1-based and compared as floats, so NaN and
    # infinite bounds fall out of the comparisons naturally.
    text = to_string(text)
    first = _round(to_number(start))
    if length is None:
        last = math.inf
    else:
        last = first + _round(to_number(length))
    return "".join(ch for pos, ch in enumerate(text, 1)
                   if pos >= first and pos < last)


def fn_string_length(ctx, value=None):
    return float(len(_string_arg(ctx, value)))


def fn_normalize_space(ctx, value=None):
    return " ".join(_string_arg(ctx, value).split())


def fn_translate(ctx, text, source, target):
    text, source, target = to_string(text), to_string(source), to_string(target)
    table = {}
    for index, ch in enumerate(source):
        if ord(ch) in table:
            continue
        table[ord(ch)] = target[index] if index < len(target) else None
    return text.translate(table)


def fn_lower_case(ctx, value):
    return to_string(value).lower()


def fn_upper_case(ctx, value):
    return to_string(value).upper()


# Boolean functions

def fn_boolean(ctx, value):
    return to_boolean(value)


def fn_not(ctx, value):
    return not to_boolean(value)


def fn_true(ctx):
    return True


def fn_false(ctx):
    return False


def fn_lang(ctx, language):
    language = to_string(language).lower()
    nav = ctx.nav.copy()
    while True:
        if nav.node_type() == XPathNodeType.ELEMENT:
            attr = nav.copy()
            while attr.move_to_next_attribute():
                if attr.local_name() == "lang" and attr.prefix() == "xml":
                    value = attr.value().lower()
                    return value == language or value.startswith(language + "-")
        if not nav.move_to_parent():
            return False


# Number functions

def _round(value: float) -> float:
    if math.isnan(value) or math.isinf(value):
        return value
    return float(math.floor(value + 0.5))


def fn_number(ctx, value=None):
    if value is None:
        return to_number(ctx.nav.value())
    return to_number(value)


def fn_sum(ctx, node_set):
    nodes = require_node_set(node_set, "sum() argument")
    return float(sum(to_number(nav.value()) for nav in nodes))


def fn_floor(ctx, value):
    number = to_number(value)
    if math.isnan(number) or math.isinf(number):
        return number
    return float(math.floor(number))


def fn_ceiling(ctx, value):
    number = to_number(value)
    if math.isnan(number) or math.isinf(number):
        return number
    return float(math.ceil(number))


def fn_round(ctx, value):
    return _round(to_number(value))


FUNCTIONS: Dict[str, FunctionSpec] = {
    "last": FunctionSpec(fn_last, 0, 0),
    "position": FunctionSpec(fn_position, 0, 0),
    "count": FunctionSpec(fn_count, 1, 1),
    "local-name": FunctionSpec(fn_local_name, 0, 1),
    "name": FunctionSpec(fn_name, 0, 1),
    "namespace-uri": FunctionSpec(fn_namespace_uri, 0, 1),
    "string": FunctionSpec(fn_string, 0, 1),
    "concat": FunctionSpec(fn_concat, 2, None),
    "starts-with": FunctionSpec(fn_starts_with, 2, 2),
    "ends-with": FunctionSpec(fn_ends_with, 2, 2),
    "contains": FunctionSpec(fn_contains, 2, 2),
    "substring-before": FunctionSpec(fn_substring_before, 2, 2),
    "substring-after": FunctionSpec(fn_substring_after, 2, 2),
    "substring": FunctionSpec(fn_substring, 2, 3),
    "string-length": FunctionSpec(fn_string_length, 0, 1),
    "normalize-space": FunctionSpec(fn_normalize_space, 0, 1),
    "translate": FunctionSpec(fn_translate, 3, 3),
    "lower-case": FunctionSpec(fn_lower_case, 1, 1),
    "upper-case": FunctionSpec(fn_upper_case, 1, 1),
    "boolean": FunctionSpec(fn_boolean, 1, 1),
    "not": FunctionSpec(fn_not, 1, 1),
    "true": FunctionSpec(fn_true, 0, 0),
    "false": FunctionSpec(fn_false, 0, 0),
    "lang": FunctionSpec(fn_lang, 1, 1),
    "number": FunctionSpec(fn_number, 0, 1),
    "sum": FunctionSpec(fn_sum, 1, 1),
    "floor": FunctionSpec(fn_floor, 1, 1),
    "ceiling": FunctionSpec(fn_ceiling, 1, 1),
    "round": FunctionSpec(fn_round, 1, 1),
}
