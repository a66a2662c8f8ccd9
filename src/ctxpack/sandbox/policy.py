"""What sandboxed scripts may touch.

Scripts get an allow-list of builtins, a handful of pure-computation
modules (as attribute-only proxies, so no submodule is reachable through
them) and a source check that rejects private or frame-walking attribute
access, including access spelled inside format strings. The child process
boundary is what bounds time; this module bounds reach.
"""

import ast
import builtins
import importlib
import string
from types import ModuleType, SimpleNamespace
from typing import Any, Iterator

SCRIPT_FILENAME = "<script>"

SAFE_BUILTINS = {
    "abs", "all", "any", "bin", "bool", "chr", "dict", "divmod",
    "enumerate", "filter", "float", "format", "frozenset", "hash",
    "hex", "int", "isinstance", "issubclass", "iter", "len", "list",
    "map", "max", "min", "next", "oct", "ord", "pow", "range",
    "repr", "reversed", "round", "set", "slice", "sorted", "str",
    "sum", "tuple", "type", "zip",
    "ArithmeticError", "AssertionError", "Exception", "IndexError",
    "KeyError", "LookupError", "RuntimeError", "StopIteration",
    "TypeError", "ValueError", "ZeroDivisionError",
}

SAFE_MODULES = {
    "collections", "datetime", "functools", "itertools", "json", "math",
    "random", "re", "statistics", "textwrap",
}

# Attributes that lead from ordinary objects back to interpreter frames.
FRAME_ATTRIBUTES = {
    "ag_code", "ag_frame", "cr_code", "cr_frame", "f_back", "f_builtins",
    "f_code", "f_globals", "f_locals", "gi_code", "gi_frame", "gi_yieldfrom",
    "tb_frame", "tb_next",
}

# String methods whose replacement fields can walk attributes and items.
FORMAT_METHODS = {"format", "format_map"}


class ScriptPolicyError(Exception):
    """Script source uses something the sandbox does not allow."""

    def __init__(self, message: str, lineno: int):
        super().__init__(message)
        self.lineno = lineno


def validate_script(code: str) -> ast.Module:
    """Parse ``code`` and reject disallowed names and attributes.

    Raises:
        SyntaxError: the code does not parse
        ScriptPolicyError: the code reaches for private or frame attributes,
            directly or through a format string
    """
    tree = ast.parse(code, filename=SCRIPT_FILENAME, mode="exec")
    for node in ast.walk(tree):
        if isinstance(node, ast.Attribute):
            if node.attr.startswith("_") or node.attr in FRAME_ATTRIBUTES:
                raise ScriptPolicyError(
                    f"Access to attribute '{node.attr}' is not allowed", node.lineno
                )
            if node.attr in FORMAT_METHODS:
                _check_format_template(node)
        elif isinstance(node, ast.Name) and node.id.startswith("__"):
            raise ScriptPolicyError(f"Use of name '{node.id}' is not allowed", node.lineno)
    return tree


def _check_format_template(node: ast.Attribute) -> None:
    """Allow ``format``/``format_map`` only on literals with plain field names.

    A field such as ``{0.attr}`` or ``{0[key]}`` is an attribute or item
    lookup the source check never sees, so templates must be literals and
    their fields bare names or positions.
    """
    template = node.value
    if not (isinstance(template, ast.Constant) and isinstance(template.value, str)):
        raise ScriptPolicyError(f"'{node.attr}' is only allowed on string literals", node.lineno)
    try:
        fields = list(_format_fields(template.value))
    except ValueError as e:
        raise ScriptPolicyError(f"Malformed format string: {e}", node.lineno) from e
    for field in fields:
        if "." in field or "[" in field or field.startswith("_"):
            raise ScriptPolicyError(f"Format field '{field}' is not allowed", node.lineno)


def _format_fields(template: str) -> Iterator[str]:
    for _, field, spec, _ in string.Formatter().parse(template):
        if field:
            yield field
        if spec and "{" in spec:
            yield from _format_fields(spec)


def module_proxy(module: ModuleType) -> SimpleNamespace:
    """Expose a module's public, non-module attributes only."""
    public = {
        name: value
        for name, value in vars(module).items()
        if not name.startswith("_") and not isinstance(value, ModuleType)
    }
    return SimpleNamespace(**public)


def restricted_import(name: str, globals=None, locals=None, fromlist=(), level=0) -> Any:
    """Only allow importing safe modules."""
    if level != 0 or name not in SAFE_MODULES:
        allowed = ", ".join(sorted(SAFE_MODULES))
        raise ImportError(f"Import of '{name}' is not allowed. Safe modules: {allowed}")
    return module_proxy(importlib.import_module(name))


def build_builtins(**extra: Any) -> dict[str, Any]:
    """Allow-listed builtins plus the sandbox's own callables."""
    safe = {name: getattr(builtins, name) for name in SAFE_BUILTINS}
    # Needed by ``class`` statements; the source check keeps scripts from
    # naming it directly.
    safe["__build_class__"] = builtins.__build_class__
    safe["__import__"] = restricted_import
    safe.update(extra)
    return safe
