"""
In this subpackage, we focus on reading source: the arguments of a `suffix` macro call (into a `SuffixInvocation`)
and whole modules (with comments kept, so that an expanded module can be written back out).

During troubleshooting, any tree can be inspected using `ast.dump()` or written as code using `unparse()`.
"""

from .ast_util import parse, unparse
from .invocation import MalformedInvocation, source_lines, SuffixInvocation

__all__ = ["parse", "unparse", "MalformedInvocation", "SuffixInvocation", "source_lines"]
