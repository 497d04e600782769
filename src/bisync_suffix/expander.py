"""
Expanding `suffix(...)` calls across a whole module or function, for one build configuration.

This is the step a compiler would perform at every macro call site: each call is parsed into a `SuffixInvocation`,
turned into a `DualBranch`, and replaced in the tree by the alternative the enabled features select.  Each call site
is expanded on its own; the first malformed one aborts the expansion with `MalformedInvocation`.
"""
import ast
import logging
from typing import Any
from typing import Callable
from typing import Optional
from typing import TypeVar

from typing_extensions import cast

from bisync_suffix.emit import DualBranch
from bisync_suffix.features import Features
from bisync_suffix.parse import ast_util
from bisync_suffix.parse import MalformedInvocation
from bisync_suffix.parse import source_lines
from bisync_suffix.parse import SuffixInvocation
from bisync_suffix.runner import name_of
from bisync_suffix.runner import SourceUnit

__all__ = ["SuffixMacroExpander", "expand_tree", "expand_source", "expand_function", "MACRO_NAME"]

log = logging.getLogger(__name__)

MACRO_NAME = "suffix"

_TreeT = TypeVar("_TreeT", bound=ast.AST)


class SuffixMacroExpander(ast.NodeTransformer):
    """
    Replace every call to the macro (a bare-name call such as `suffix("_async", await x.read())`) with the selected
    alternative.  A macro call may not contain another macro call.
    """

    features: Features
    macro_name: str
    filename: str
    source: Optional[str]
    """Full source of the tree, when available. Only used to quote the offending line in errors"""

    expanded: int
    """Number of call sites expanded so far"""

    def __init__(
        self,
        features: Features,
        macro_name: str = MACRO_NAME,
        filename: str = "<unknown>",
        source: Optional[str] = None,
    ) -> None:
        self.features = features
        self.macro_name = macro_name
        self.filename = filename
        self.source = source
        self.expanded = 0

    def is_macro_call(self, node: ast.AST) -> bool:
        return isinstance(node, ast.Call) and isinstance(node.func, ast.Name) and node.func.id == self.macro_name

    def visit_Call(self, node: ast.Call) -> ast.AST:
        if not self.is_macro_call(node):
            return self.generic_visit(node)

        invocation = SuffixInvocation.from_call(node, self.filename, self.source)
        for inner in ast.walk(invocation.expression):
            if self.is_macro_call(inner):
                raise MalformedInvocation.at_node(
                    f"'{self.macro_name}' calls can not be nested",
                    inner,
                    self.filename,
                    source_lines(self.source) if self.source is not None else None,
                )

        dual = DualBranch.from_invocation(invocation)
        selected = dual.select(self.features)
        self.expanded += 1
        log.debug(
            "%s:%s: expanded %s(%r, ...) with %d rename(s), features: %s",
            self.filename,
            node.lineno,
            self.macro_name,
            invocation.suffix,
            dual.renamed,
            self.features,
        )
        return selected


def expand_tree(
    tree: _TreeT,
    features: Features,
    filename: str = "<unknown>",
    source: Optional[str] = None,
    macro_name: str = MACRO_NAME,
) -> _TreeT:
    """Expand all macro calls in the tree, in place. The tree is returned for convenience"""
    expander = SuffixMacroExpander(features, macro_name, filename, source)
    result = expander.visit(tree)
    log.info("%s: expanded %d %s() call(s)", filename, expander.expanded, macro_name)
    return cast(_TreeT, ast.fix_missing_locations(result))


def expand_source(
    source: str, features: Features, filename: str = "<unknown>", macro_name: str = MACRO_NAME
) -> str:
    """Expand all macro calls in a module's source. Comments are kept"""
    tree = ast_util.parse(source, filename)
    return ast_util.unparse(expand_tree(tree, features, filename, source, macro_name))


def expand_function(
    func: Callable[..., Any], features: Features, macro_name: str = MACRO_NAME
) -> Callable[..., Any]:
    """
    Define an expanded copy of `func` next to it (in the same module namespace, under a new name) and return it.

    Methods come back as plain functions: pass the instance explicitly. Decorators are not re-applied.
    """
    unit = SourceUnit(name_of(func), func)
    expand_tree(unit.source_ast, features, unit.filename, unit.source_code, macro_name)
    return unit.add_new_function(unit.source_ast)
