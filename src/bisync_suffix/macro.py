from typing import TypeVar

__all__ = ["suffix"]

_T = TypeVar("_T")


def suffix(suffix_str: str, value: _T) -> _T:
    """
    Run-time stand-in for the `suffix` macro, so that code which has not been expanded still imports and runs.

    By the time this is called, `value` has already been computed with the original method names. So unexpanded code
    always behaves like the blocking alternative.

    >>> async def get_temperature(self):
    ...     return suffix("_async", await self.sensor.read())

    See `bisync_suffix.expand_source()` / `expand_function()` for the build step that performs the rename.
    """
    _ = suffix_str
    return value
