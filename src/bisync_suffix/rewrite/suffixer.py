import ast
import logging
from copy import deepcopy
from typing import List

from typing_extensions import cast

from bisync_suffix.parse.ast_util import copy_ast_line_info

__all__ = ["AwaitMethodSuffixer", "suffix_awaited_methods"]

log = logging.getLogger(__name__)


class AwaitMethodSuffixer(ast.NodeTransformer):
    """
    Rename the method in every `await recv.method(...)` by appending a suffix, giving `await recv.method<suffix>(...)`.

    Only an await whose operand is *directly* a method call is rewritten. These are left as they are:

      * `await func()` (a plain function call)
      * `await obj.field` (no call)
      * `await (await obj.method())` (the outer await, that is. The inner one is rewritten)

    The walk never stops at a match: receivers, arguments and everything else below an await are visited too, so
    nested awaits are each considered once.

    The tree is modified in place. Use `suffix_awaited_methods()` to leave the input untouched.
    """

    suffix: str
    """Appended verbatim. The caller includes any separator, e.g. '_async'"""

    renamed: List[ast.Attribute]
    """The new method nodes, in the order they were created"""

    def __init__(self, suffix: str) -> None:
        self.suffix = suffix
        self.renamed = []

    def visit_Await(self, node: ast.Await) -> ast.AST:
        call = node.value
        if isinstance(call, ast.Call) and isinstance(call.func, ast.Attribute):
            method = call.func
            call.func = ast.Attribute(
                value=method.value,
                attr=method.attr + self.suffix,
                ctx=method.ctx,
                **copy_ast_line_info(method),
            )
            self.renamed.append(call.func)
            log.debug("line %s: renamed awaited method %r to %r", method.lineno, method.attr, call.func.attr)

        return self.generic_visit(node)


def suffix_awaited_methods(expression: ast.expr, suffix: str) -> ast.expr:
    """Return a rewritten copy of `expression` (see `AwaitMethodSuffixer`). The given tree is not modified"""
    transformed = deepcopy(expression)
    return cast(ast.expr, AwaitMethodSuffixer(suffix).visit(transformed))
