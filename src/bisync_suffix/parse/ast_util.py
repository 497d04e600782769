import ast
from copy import copy
from typing import Any
from typing import Mapping
from typing import Union

import ast_comments  # type: ignore
from typing_extensions import cast

__all__ = ["parse", "unparse", "copy_ast_line_info", "ast_rename_function", "same_structure", "shift_columns"]

_FunctionDefType = Union[ast.FunctionDef, ast.AsyncFunctionDef]


def parse(source: Union[str, bytes], filename: str = "<unknown>", mode: str = "exec") -> ast.AST:
    """
    Replace the ast.parse method with one which picks up comments, so that a module can be expanded and written back
    out without losing them.

    The resulting tree contains `ast_comments.Comment` nodes and so it can be unparsed but not compiled. Use plain
    `ast.parse()` when the tree is headed for `compile()`.
    """
    return cast(ast.AST, ast_comments.parse(source, filename, mode))


def unparse(ast_obj: ast.AST) -> str:
    """Counterpart of `parse()`. Comment nodes are written back out as comments"""
    return cast(str, ast_comments.unparse(ast_obj))


def copy_ast_line_info(node: ast.AST) -> Mapping[str, Any]:
    """Extract the line and position attributes from a node so they can initialize a new node"""
    return dict(
        lineno=node.lineno,
        col_offset=node.col_offset,
        end_lineno=node.end_lineno,
        end_col_offset=node.end_col_offset,
    )


def shift_columns(tree: ast.AST, lineno: int, delta: int) -> ast.AST:
    """
    Move every column offset found on the given line by `delta`.  Used after source has been parsed inside a small
    wrapper (e.g. `_(` ... `)`) so that node positions line up with the unwrapped text again.
    """
    for node in ast.walk(tree):
        if getattr(node, "lineno", None) == lineno:
            node.col_offset += delta  # type: ignore[attr-defined]
        if getattr(node, "end_lineno", None) == lineno and node.end_col_offset is not None:  # type: ignore
            node.end_col_offset += delta  # type: ignore[attr-defined]
    return tree


def same_structure(node_a: ast.AST, node_b: ast.AST) -> bool:
    """True if both trees have the same shape and values. Positions are not compared"""
    return ast.dump(node_a) == ast.dump(node_b)


def ast_rename_function(tree: ast.Module, new_function_name: str) -> ast.Module:
    """
    Take a body which contains a single function def (sync or async). Alter the function definition node to use a
    new name.

    Decorators are dropped: the definition is re-executed on its own and the original decorators have already been
    applied to the original function.
    """
    assert isinstance(tree, ast.Module)
    assert len(tree.body) == 1
    old_func = tree.body[0]
    assert isinstance(old_func, (ast.FunctionDef, ast.AsyncFunctionDef))
    new_func: _FunctionDefType = copy(old_func)
    new_func.name = new_function_name
    new_func.decorator_list = []
    new_module = ast.Module(body=[new_func], type_ignores=tree.type_ignores)

    return new_module
