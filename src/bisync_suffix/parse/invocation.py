"""
Reading a `suffix` macro call into a `SuffixInvocation`.

The macro takes exactly two arguments, in this order:

    suffix("_async", await self.sensor.read())
           ^^^^^^^^  ^^^^^^^^^^^^^^^^^^^^^^^^^
           a plain string literal (the suffix), then any single Python expression

Anything else is rejected with `MalformedInvocation`, which is a `SyntaxError` so that it carries the file name,
line, column and source line of the offending token.
"""
import ast
import io
import tokenize
from dataclasses import dataclass
from typing import Iterator
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple

from more_itertools import peekable
from typing_extensions import Self

from bisync_suffix.parse.ast_util import shift_columns

__all__ = ["MalformedInvocation", "SuffixInvocation", "source_lines"]

_WRAPPER_PREFIX = "_("
"""
Argument text is tokenized and parsed as the argument list of a call to this placeholder name. Inside the parens,
line breaks between arguments behave as they do at a real call site.
"""

_SKIPPED_TOKENS = frozenset({tokenize.NL, tokenize.COMMENT, tokenize.INDENT, tokenize.DEDENT, tokenize.ENCODING})
_END_TOKENS = frozenset({tokenize.NEWLINE, tokenize.ENDMARKER})
_OPENERS = frozenset("([{")
_CLOSERS = frozenset(")]}")


class MalformedInvocation(SyntaxError):
    """The arguments of a `suffix` macro call do not have the expected shape"""

    @classmethod
    def at(
        cls, msg: str, filename: str, lineno: int, col_offset: int, source_lines: Optional[Sequence[str]] = None
    ) -> Self:
        """Build the error for a zero based column on a one based line. The source line is attached when known"""
        text = None
        if source_lines is not None and 0 < lineno <= len(source_lines):
            text = source_lines[lineno - 1].rstrip("\r\n")
        return cls(msg, (filename, lineno, col_offset + 1, text))

    @classmethod
    def at_token(
        cls, msg: str, token: tokenize.TokenInfo, filename: str, source_lines: Optional[Sequence[str]] = None
    ) -> Self:
        lineno, col = token.start
        return cls.at(msg, filename, lineno, col, source_lines)

    @classmethod
    def at_node(cls, msg: str, node: ast.AST, filename: str, source_lines: Optional[Sequence[str]] = None) -> Self:
        return cls.at(msg, filename, node.lineno, node.col_offset, source_lines)


def _describe(token: tokenize.TokenInfo) -> str:
    if token.type in _END_TOKENS:
        return "end of input"
    return f"{tokenize.tok_name[token.type]} {token.string!r}"


def _tokenize(source: str, filename: str, source_lines: Sequence[str]) -> List[tokenize.TokenInfo]:
    """Tokenize, dropping layout-only tokens and turning tokenizer errors into MalformedInvocation"""
    try:
        return [
            token
            for token in tokenize.generate_tokens(io.StringIO(source).readline)
            if token.type not in _SKIPPED_TOKENS
        ]
    except SyntaxError as e:
        raise MalformedInvocation.at(
            f"could not tokenize macro arguments: {e.msg}", filename, e.lineno or 1, (e.offset or 1) - 1, source_lines
        ) from e
    except tokenize.TokenError as e:
        lineno, col = e.args[1] if len(e.args) > 1 else (1, 0)
        raise MalformedInvocation.at(
            f"could not tokenize macro arguments: {e.args[0]}", filename, lineno, col, source_lines
        ) from e


def _argument_tokens(arguments: str, filename: str, source_lines: Sequence[str]) -> Iterator[tokenize.TokenInfo]:
    """
    Tokens of the argument text, with positions relative to `arguments`. The wrapper call's closing paren is replaced
    by an ENDMARKER.
    """
    tokens = _tokenize(f"{_WRAPPER_PREFIX}{arguments}\n)", filename, source_lines)
    # Drop the placeholder name and its opening paren
    tokens = tokens[2:]
    closer_index = max(i for i, t in enumerate(tokens) if t.type == tokenize.OP and t.string == ")")
    closer = tokens[closer_index]
    # Report the end of input just after the last argument token, not on the wrapper's extra line
    end = tokens[closer_index - 1].end if closer_index else (1, len(_WRAPPER_PREFIX))
    tokens[closer_index:] = [tokenize.TokenInfo(tokenize.ENDMARKER, "", end, end, closer.line)]

    shift = len(_WRAPPER_PREFIX)
    for token in tokens:
        (start_line, start_col), (end_line, end_col) = token.start, token.end
        yield token._replace(
            start=(start_line, start_col - shift if start_line == 1 else start_col),
            end=(end_line, end_col - shift if end_line == 1 else end_col),
        )


@dataclass(frozen=True)
class SuffixInvocation:
    """A parsed macro call: the suffix to append and the expression to rewrite"""

    suffix: str
    """Appended verbatim to matched method names. Any separator (e.g. '_') must be part of it"""

    expression: ast.expr
    """The expression exactly as written at the call site. Never mutated"""

    @classmethod
    def parse(cls, arguments: str, filename: str = "<unknown>") -> Self:
        """
        Parse the argument text of a macro call, ie everything between the parentheses of
        `suffix(...)`. For example: `"_async", await self.sensor.read()`
        """
        return cls._parse(arguments, filename, source_lines(arguments))

    @classmethod
    def parse_call(cls, source: str, filename: str = "<unknown>", name: str = "suffix") -> Self:
        """
        Parse a complete call, eg `suffix("_async", await self.sensor.read())`.  The callee must be the bare name
        `name`.
        """
        lines = source_lines(source)
        tokens = peekable(_tokenize(source, filename, lines))

        callee = next(tokens)
        if callee.type != tokenize.NAME or callee.string != name:
            raise MalformedInvocation.at_token(
                f"expected a call to '{name}', found {_describe(callee)}", callee, filename, lines
            )
        opener = next(tokens)
        if opener.type != tokenize.OP or opener.string != "(":
            raise MalformedInvocation.at_token(
                f"expected '(' after '{name}', found {_describe(opener)}", opener, filename, lines
            )

        depth = 1
        closer = opener
        for closer in tokens:
            if closer.type in _END_TOKENS:
                raise MalformedInvocation.at_token("'(' was never closed", opener, filename, lines)
            if closer.type == tokenize.OP and closer.string in _OPENERS:
                depth += 1
            elif closer.type == tokenize.OP and closer.string in _CLOSERS:
                depth -= 1
                if depth == 0:
                    break

        trailing = tokens.peek(None)
        if trailing is not None and trailing.type not in _END_TOKENS:
            raise MalformedInvocation.at_token(
                f"unexpected {_describe(trailing)} after the macro call", trailing, filename, lines
            )

        # Keep the arguments at their original line and column by blanking out everything up to the opening paren
        start = _offset_of(lines, opener.end)
        end = _offset_of(lines, closer.start)
        blanked = "".join(c if c in "\r\n" else " " for c in source[:start])
        return cls._parse(blanked + source[start:end], filename, lines)

    @classmethod
    def from_call(cls, node: ast.Call, filename: str = "<unknown>", source: Optional[str] = None) -> Self:
        """
        Build the invocation from a macro call that has already been parsed as part of a larger tree.  Positions are
        those of the enclosing file.  Pass `source` so that errors can quote the offending line.

        The parser has already merged implicitly concatenated literals (`"_a" "_b"`) into one constant by the time the
        tree is built, so they can only be told apart, and rejected, when `source` is given.
        """
        lines = source_lines(source) if source is not None else None
        if not node.args:
            raise MalformedInvocation.at_node(
                "expected a string literal suffix and an expression", node, filename, lines
            )

        literal = node.args[0]
        if not isinstance(literal, ast.Constant) or not isinstance(literal.value, str):
            raise MalformedInvocation.at_node(
                "expected a string literal suffix as the first argument", literal, filename, lines
            )
        if not literal.value:
            raise MalformedInvocation.at_node("suffix must not be empty", literal, filename, lines)
        if source is not None and _string_token_count(ast.get_source_segment(source, literal) or "") > 1:
            raise MalformedInvocation.at_node(
                "expected a single string literal suffix, found implicitly concatenated literals",
                literal,
                filename,
                lines,
            )

        return cls(literal.value, cls._single_expression(node, literal, filename, lines))

    @classmethod
    def _parse(cls, arguments: str, filename: str, source_lines: Sequence[str]) -> Self:
        tokens = peekable(_argument_tokens(arguments, filename, source_lines))

        literal = next(tokens)
        if literal.type != tokenize.STRING:
            raise MalformedInvocation.at_token(
                f"expected a string literal suffix, found {_describe(literal)}", literal, filename, source_lines
            )
        try:
            value = ast.literal_eval(literal.string)
        except ValueError as e:
            # f-strings tokenize as STRING before Python 3.12
            raise MalformedInvocation.at_token(
                f"expected a plain string literal suffix, found {literal.string!r}", literal, filename, source_lines
            ) from e
        if not isinstance(value, str):
            raise MalformedInvocation.at_token(
                f"expected a string literal suffix, found {type(value).__name__} literal",
                literal,
                filename,
                source_lines,
            )
        if not value:
            raise MalformedInvocation.at_token("suffix must not be empty", literal, filename, source_lines)

        separator = next(tokens)
        if separator.type != tokenize.OP or separator.string != ",":
            raise MalformedInvocation.at_token(
                f"expected ',' after the suffix literal, found {_describe(separator)}",
                separator,
                filename,
                source_lines,
            )
        if tokens.peek().type in _END_TOKENS:
            raise MalformedInvocation.at_token("expected an expression after ','", separator, filename, source_lines)

        call = cls._parse_argument_list(arguments, filename, source_lines)
        return cls(value, cls._single_expression(call, call.args[0], filename, source_lines))

    @staticmethod
    def _single_expression(
        call: ast.Call, literal: ast.expr, filename: str, source_lines: Optional[Sequence[str]]
    ) -> ast.expr:
        """Pick the expression argument out of an argument list whose first entry is the suffix literal"""
        if call.keywords:
            raise MalformedInvocation.at_node(
                "keyword arguments are not accepted by the suffix macro", call.keywords[0].value, filename, source_lines
            )
        if len(call.args) < 2:
            raise MalformedInvocation.at_node("expected an expression after the suffix", literal, filename, source_lines)
        if len(call.args) > 2:
            raise MalformedInvocation.at_node(
                "expected a single expression, found an extra argument", call.args[2], filename, source_lines
            )

        expression = call.args[1]
        if isinstance(expression, ast.Starred):
            raise MalformedInvocation.at_node(
                "expected an expression, found a starred argument", expression, filename, source_lines
            )
        return expression

    @staticmethod
    def _parse_argument_list(arguments: str, filename: str, source_lines: Sequence[str]) -> ast.Call:
        # The closing paren goes on its own line so a trailing comment can't swallow it
        wrapped = f"{_WRAPPER_PREFIX}{arguments}\n)"
        try:
            tree = ast.parse(wrapped, filename, mode="eval")
        except SyntaxError as e:
            lineno = e.lineno or 1
            offset = (e.offset or 1) - 1
            if lineno == 1:
                offset -= len(_WRAPPER_PREFIX)
            raise MalformedInvocation.at(e.msg, filename, lineno, max(offset, 0), source_lines) from e

        call = tree.body
        assert isinstance(call, ast.Call)
        shift_columns(call, 1, -len(_WRAPPER_PREFIX))
        return call


def source_lines(source: str) -> List[str]:
    """
    Split source into lines the way the tokenizer does: only at '\\n', line endings kept.  `str.splitlines()` also
    breaks at form feeds and other separators that Python treats as whitespace.
    """
    return io.StringIO(source).readlines()


def _offset_of(lines: Sequence[str], position: Tuple[int, int]) -> int:
    """Convert a tokenizer (line, column) position into an index into the source `lines` were split from"""
    lineno, col = position
    return sum(len(line) for line in lines[: lineno - 1]) + col


def _string_token_count(segment: str) -> int:
    # Parenthesized so a literal continued over several lines tokenizes as one logical line
    tokens = tokenize.generate_tokens(io.StringIO(f"({segment}\n)").readline)
    return sum(1 for token in tokens if token.type == tokenize.STRING)
