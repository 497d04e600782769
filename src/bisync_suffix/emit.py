"""
In this module, one macro invocation becomes two alternative expressions, each guarded by a build-time predicate over
the enabled features:

  * the *async* alternative: the expression with awaited method calls renamed (see `bisync_suffix.rewrite`)
  * the *blocking* alternative: the expression exactly as written

Selecting an alternative is a build step, done once per build configuration.  The generated code never tests a
feature at run time.
"""
import ast
from copy import deepcopy
from dataclasses import dataclass
from dataclasses import field
from typing import FrozenSet
from typing import List
from typing import Tuple

from typing_extensions import Self

from bisync_suffix.features import Features
from bisync_suffix.parse import SuffixInvocation
from bisync_suffix.parse.ast_util import same_structure
from bisync_suffix.rewrite import AwaitMethodSuffixer

__all__ = ["Guard", "Branch", "DualBranch", "NoBranchSelected", "ASYNC_GUARD", "BLOCKING_GUARD"]


class NoBranchSelected(Exception):
    """The enabled features satisfy none of the guards, so the macro would expand to nothing"""

    def __init__(self, features: Features, guards: Tuple["Guard", ...]) -> None:
        self.features = features
        self.guards = guards

    def __str__(self) -> str:
        wanted = " or ".join(f"[{g}]" for g in self.guards)
        return f"no suffix macro alternative is enabled by features {self.features}; enable one of {wanted}"


@dataclass(frozen=True)
class Guard:
    """Satisfied when every feature in `all_of` is enabled and none in `none_of` is"""

    all_of: FrozenSet[str] = field(default_factory=frozenset)
    none_of: FrozenSet[str] = field(default_factory=frozenset)

    def satisfied_by(self, features: Features) -> bool:
        return all(f in features for f in self.all_of) and not any(f in features for f in self.none_of)

    def __str__(self) -> str:
        terms = [f"+{f}" for f in sorted(self.all_of)] + [f"-{f}" for f in sorted(self.none_of)]
        return " ".join(terms)


ASYNC_GUARD = Guard(all_of=frozenset({Features.ASYNC}))
BLOCKING_GUARD = Guard(all_of=frozenset({Features.BLOCKING}), none_of=frozenset({Features.ASYNC}))


@dataclass(frozen=True)
class Branch:
    guard: Guard
    expression: ast.expr

    @property
    def source(self) -> str:
        return ast.unparse(self.expression)


@dataclass(frozen=True)
class DualBranch:
    """
    The two alternatives produced by one macro invocation.  The guards are mutually exclusive, so at most one of them
    holds for any build: with both features on, the async alternative wins.
    """

    async_branch: Branch
    blocking_branch: Branch
    renamed: int = 0
    """How many awaited method calls were renamed in the async alternative"""

    @classmethod
    def from_invocation(cls, invocation: SuffixInvocation) -> Self:
        """Parse once, rewrite a copy, keep the original for the blocking alternative"""
        suffixer = AwaitMethodSuffixer(invocation.suffix)
        transformed = suffixer.visit(deepcopy(invocation.expression))
        assert isinstance(transformed, ast.expr)
        return cls(
            Branch(ASYNC_GUARD, transformed),
            Branch(BLOCKING_GUARD, invocation.expression),
            renamed=len(suffixer.renamed),
        )

    @property
    def branches(self) -> Tuple[Branch, Branch]:
        return self.async_branch, self.blocking_branch

    @property
    def async_source(self) -> str:
        return self.async_branch.source

    @property
    def blocking_source(self) -> str:
        return self.blocking_branch.source

    @property
    def identical(self) -> bool:
        """True when the rewrite changed nothing (there were no awaited method calls)"""
        return same_structure(self.async_branch.expression, self.blocking_branch.expression)

    def select(self, features: Features) -> ast.expr:
        """
        Resolve the build configuration to one alternative.  Raises `NoBranchSelected` rather than expanding to
        nothing when neither feature is enabled.
        """
        enabled: List[Branch] = [b for b in self.branches if b.guard.satisfied_by(features)]
        if not enabled:
            raise NoBranchSelected(features, tuple(b.guard for b in self.branches))
        assert len(enabled) == 1, "guards are mutually exclusive"
        return enabled[0].expression

    def render(self) -> str:
        """The composite block, both alternatives listed under their guards. For inspection and debugging"""
        return "\n".join(f"# features: {branch.guard}\n{branch.source}" for branch in self.branches)
