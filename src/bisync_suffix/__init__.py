from ._version import version as __version__

__all__ = [
    "__version__",
    "suffix",
    "Features",
    "SuffixInvocation",
    "MalformedInvocation",
    "AwaitMethodSuffixer",
    "suffix_awaited_methods",
    "DualBranch",
    "NoBranchSelected",
    "expand_source",
    "expand_tree",
    "expand_function",
]

from .emit import DualBranch, NoBranchSelected
from .expander import expand_function, expand_source, expand_tree
from .features import Features
from .macro import suffix
from .parse import MalformedInvocation, SuffixInvocation
from .rewrite import AwaitMethodSuffixer, suffix_awaited_methods
