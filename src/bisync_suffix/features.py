"""
Build configuration: which features are switched on for the code being generated.

Two features matter to the suffix macro, `async` and `blocking`. They are meant to be mutually exclusive, but
nothing here enforces that; see `bisync_suffix.emit` for how each combination resolves.
"""
import logging
import os
from dataclasses import dataclass
from dataclasses import field
from typing import ClassVar
from typing import FrozenSet
from typing import Iterable
from typing import Iterator
from typing import Mapping
from typing import Optional

from typing_extensions import Self

__all__ = ["Features", "ENV_VAR"]

log = logging.getLogger(__name__)

ENV_VAR = "BISYNC_SUFFIX_FEATURES"
"""Comma separated feature names, used when features are not given explicitly"""


@dataclass(frozen=True)
class Features:
    """An immutable set of enabled feature names"""

    ASYNC: ClassVar[str] = "async"
    BLOCKING: ClassVar[str] = "blocking"
    KNOWN: ClassVar[FrozenSet[str]] = frozenset({ASYNC, BLOCKING})

    enabled: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, *names: str) -> Self:
        return cls.from_names(names)

    @classmethod
    def from_names(cls, names: Iterable[str]) -> Self:
        """Whitespace around names is dropped, as are empty names"""
        enabled = frozenset(n.strip() for n in names if n.strip())
        unknown = enabled - cls.KNOWN
        if unknown:
            log.warning("unknown feature(s) %s will not select any branch", ", ".join(sorted(unknown)))
        return cls(enabled)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Self:
        """Read features from the `BISYNC_SUFFIX_FEATURES` environment variable. Unset means no features"""
        if environ is None:
            environ = os.environ
        return cls.from_names(environ.get(ENV_VAR, "").split(","))

    def __contains__(self, name: object) -> bool:
        return name in self.enabled

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.enabled))

    def __str__(self) -> str:
        return ", ".join(self) if self.enabled else "(none)"
