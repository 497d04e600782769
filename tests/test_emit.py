import ast

import pytest

from bisync_suffix import DualBranch
from bisync_suffix import Features
from bisync_suffix import NoBranchSelected
from bisync_suffix import SuffixInvocation
from bisync_suffix.emit import ASYNC_GUARD
from bisync_suffix.emit import BLOCKING_GUARD
from bisync_suffix.emit import Guard
from bisync_suffix.parse.ast_util import same_structure


def _dual(arguments: str) -> DualBranch:
    return DualBranch.from_invocation(SuffixInvocation.parse(arguments))


@pytest.mark.parametrize(
    ("arguments", "async_source", "blocking_source"),
    [
        ('"_async", await self.sensor.read()', "await self.sensor.read_async()", "await self.sensor.read()"),
        ('"_x", await self.a() + await self.b()', "await self.a_x() + await self.b_x()", "await self.a() + await self.b()"),
        ('"_x", await obj.field', "await obj.field", "await obj.field"),
    ],
)
def test_end_to_end(arguments: str, async_source: str, blocking_source: str) -> None:
    dual = _dual(arguments)
    assert dual.async_source == async_source
    assert dual.blocking_source == blocking_source


def test_blocking_branch_is_the_original_tree() -> None:
    invocation = SuffixInvocation.parse('"_async", await self.sensor.read()')
    dual = DualBranch.from_invocation(invocation)

    assert dual.blocking_branch.expression is invocation.expression
    assert dual.async_branch.expression is not invocation.expression
    assert ast.unparse(invocation.expression) == "await self.sensor.read()"


def test_blocking_source_reparses_to_the_original() -> None:
    invocation = SuffixInvocation.parse('"_async", (await self.sensor.read(1)).value + await other.get(k=2)')
    dual = DualBranch.from_invocation(invocation)

    reparsed = ast.parse(dual.blocking_source, mode="eval").body
    assert same_structure(reparsed, invocation.expression)


def test_identical_and_renamed() -> None:
    assert _dual('"_x", await obj.field').identical
    assert _dual('"_x", await obj.field').renamed == 0

    dual = _dual('"_x", await self.a() + await self.b()')
    assert not dual.identical
    assert dual.renamed == 2


@pytest.mark.parametrize(
    ("features", "expected"),
    [
        (Features.of("async"), "await self.sensor.read_async()"),
        (Features.of("blocking"), "await self.sensor.read()"),
        (Features.of("async", "blocking"), "await self.sensor.read_async()"),
        (Features.of("async", "extra"), "await self.sensor.read_async()"),
    ],
)
def test_select(features: Features, expected: str) -> None:
    dual = _dual('"_async", await self.sensor.read()')
    assert ast.unparse(dual.select(features)) == expected


@pytest.mark.parametrize("features", [Features(), Features.of("extra")])
def test_select_without_mode_is_an_error(features: Features) -> None:
    dual = _dual('"_async", await self.sensor.read()')
    with pytest.raises(NoBranchSelected) as exc_info:
        dual.select(features)

    assert exc_info.value.features == features
    assert exc_info.value.guards == (ASYNC_GUARD, BLOCKING_GUARD)
    assert "[+async] or [+blocking -async]" in str(exc_info.value)


def test_guards() -> None:
    assert ASYNC_GUARD.satisfied_by(Features.of("async"))
    assert ASYNC_GUARD.satisfied_by(Features.of("async", "blocking"))
    assert not ASYNC_GUARD.satisfied_by(Features.of("blocking"))

    assert BLOCKING_GUARD.satisfied_by(Features.of("blocking"))
    assert not BLOCKING_GUARD.satisfied_by(Features.of("blocking", "async"))
    assert not BLOCKING_GUARD.satisfied_by(Features())

    assert Guard().satisfied_by(Features())
    assert str(BLOCKING_GUARD) == "+blocking -async"


def test_render() -> None:
    dual = _dual('"_async", await self.sensor.read()')
    assert dual.render() == (
        "# features: +async\n"
        "await self.sensor.read_async()\n"
        "# features: +blocking -async\n"
        "await self.sensor.read()"
    )
