"""Expanding macro calls across whole modules"""
import ast
from textwrap import dedent

import pytest

from bisync_suffix import DualBranch
from bisync_suffix import expand_source
from bisync_suffix import expand_tree
from bisync_suffix import Features
from bisync_suffix import MalformedInvocation
from bisync_suffix import NoBranchSelected
from bisync_suffix.expander import SuffixMacroExpander

MODULE_SOURCE = dedent(
    """\
    from bisync_suffix import suffix


    class Device:
        async def temperature(self):
            # raw sensor reading
            raw = suffix("_async", await self.sensor.read())
            return raw * 0.5

        async def status(self):
            return suffix("_async", await self.bus.read_register(0x01) & await self.flags.get())
    """
)


def test_expand_async() -> None:
    expanded = expand_source(MODULE_SOURCE, Features.of("async"))

    assert "raw = await self.sensor.read_async()" in expanded
    assert "return await self.bus.read_register_async(1) & await self.flags.get_async()" in expanded
    assert "suffix(" not in expanded
    assert "# raw sensor reading" in expanded


def test_expand_blocking() -> None:
    expanded = expand_source(MODULE_SOURCE, Features.of("blocking"))

    assert "raw = await self.sensor.read()" in expanded
    assert "return await self.bus.read_register(1) & await self.flags.get()" in expanded
    assert "_async" not in expanded


def test_expand_without_mode() -> None:
    with pytest.raises(NoBranchSelected):
        expand_source(MODULE_SOURCE, Features())


def test_each_call_site_expanded_once(mocker) -> None:
    spy = mocker.spy(DualBranch, "from_invocation")
    expand_source(MODULE_SOURCE, Features.of("async"))
    assert spy.call_count == 2


def test_expanded_count_and_code_outside_macros_untouched() -> None:
    source = dedent(
        """\
        async def f(self):
            await self.before()
            value = suffix("_async", await self.read())
            await self.after()
            return value
        """
    )
    tree = ast.parse(source)
    expander = SuffixMacroExpander(Features.of("async"))
    tree = expander.visit(tree)

    assert expander.expanded == 1
    assert ast.unparse(tree) == dedent(
        """\
        async def f(self):
            await self.before()
            value = await self.read_async()
            await self.after()
            return value"""
    )


def test_other_macro_name() -> None:
    source = 'x = sfx("Async", await self.load())\ny = suffix("_async", await self.load())\n'
    expanded = expand_source(source, Features.of("async"), macro_name="sfx")

    assert "x = await self.loadAsync()" in expanded
    assert "y = suffix('_async', await self.load())" in expanded


def test_method_call_named_suffix_is_not_a_macro() -> None:
    source = 'x = self.suffix("_async", await self.load())\n'
    assert expand_source(source, Features.of("async")) == "x = self.suffix('_async', await self.load())"


def test_malformed_call_reports_file_position() -> None:
    source = dedent(
        """\
        async def f(self):
            ok = suffix("_async", await self.read())
            bad = suffix(name, await self.read())
        """
    )
    with pytest.raises(MalformedInvocation) as exc_info:
        expand_source(source, Features.of("async"), filename="device.py")

    error = exc_info.value
    assert (error.filename, error.lineno, error.offset) == ("device.py", 3, 18)
    assert error.text == "    bad = suffix(name, await self.read())"


def test_nested_macro_calls_are_rejected() -> None:
    source = 'x = suffix("_a", await self.get(suffix("_b", await self.key())))\n'
    with pytest.raises(MalformedInvocation) as exc_info:
        expand_source(source, Features.of("async"))

    assert "can not be nested" in exc_info.value.msg
    assert exc_info.value.offset == 33


def test_expand_tree_fills_locations() -> None:
    tree = ast.parse('x = suffix("_async", await self.read())')
    tree = expand_tree(tree, Features.of("async"))
    # The tree is ready to compile
    _ = compile(tree, "<test>", "exec", flags=ast.PyCF_ALLOW_TOP_LEVEL_AWAIT)


def test_error_quotes_line_after_form_feed() -> None:
    source = 'x = 1\n\x0c\nbad = suffix(name, await self.read())\n'
    with pytest.raises(MalformedInvocation) as exc_info:
        expand_source(source, Features.of("async"))

    error = exc_info.value
    assert (error.lineno, error.offset) == (3, 14)
    assert error.text == "bad = suffix(name, await self.read())"


def test_concatenated_suffix_is_rejected() -> None:
    with pytest.raises(MalformedInvocation) as exc_info:
        expand_source('v = suffix("_a" "_b", await x.y())\n', Features.of("async"))

    assert "implicitly concatenated" in exc_info.value.msg
    assert exc_info.value.offset == 12
