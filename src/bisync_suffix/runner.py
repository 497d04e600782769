import ast
import inspect
from functools import partial
from textwrap import dedent
from types import ModuleType
from typing import Any
from typing import Callable
from typing import Iterable
from typing import MutableMapping
from typing import Optional
from typing import Union

from bisync_suffix.parse import ast_util
from bisync_suffix.util import not_optional

__all__ = ["SourceUnit", "name_of"]


class SourceUnit:
    """
    The source of one function (or a raw block of code), parsed for compilation.

    Keep track of the file and module the code came from and facilitate declaring new copies of the function in the
    same namespace, so that an expanded copy can see the same globals as the original.
    """

    name: str

    filename: str = "<unknown>"
    """The filename, if applicable.  As with `module` property, this is a placeholder if source was a raw string"""

    module: Optional[ModuleType] = None
    """The module that the original source code came from. Or, None if source was a raw string (e.g. in a test case)"""

    source_ast: ast.Module
    """
    The parsed source, with line numbers matching the file it came from.  Parsed with plain `ast.parse()` since it is
    destined for `compile()`
    """

    source_code: str
    """
    The original source code, as a string. This will include all code lines starting at line 1 (ie a full module) and
    usually will include more than just the code from the individual function
    """

    namespace: MutableMapping[str, Any]
    """New definitions land here: the module's globals, or a private dict when there is no module"""

    def __init__(self, name: str, code: Union[Callable[..., Any], str, Iterable[str]]) -> None:
        self.name = name

        if isinstance(code, str):
            self.source_code = code
            self.source_ast = ast.parse(code, self.filename)
        elif isinstance(code, Iterable):
            self.source_code = "\n".join(code)
            self.source_ast = ast.parse(self.source_code, self.filename)
        else:
            if isinstance(code, partial):
                func = code.func
            elif isinstance(code, (staticmethod, classmethod)):
                func = code.__func__
            else:
                func = code

            self.filename = not_optional(inspect.getsourcefile(func))
            self.module = inspect.getmodule(func)
            self.source_code = inspect.getsource(not_optional(self.module))

            lines, line_no = inspect.getsourcelines(func)

            try:
                self.source_ast = ast.parse(dedent("".join(lines)), self.filename)
            except SyntaxError as e:
                if e.lineno is not None:
                    e.lineno += line_no - 1
                raise

            ast.increment_lineno(self.source_ast, line_no - 1)

        self.namespace = self.module.__dict__ if self.module else dict()

    def add_new_function(self, func: Union[str, ast.Module]) -> Callable[..., Any]:
        """
        Take the given function and 'add' it into the module by executing the definition code within the namespace
        of the module.  This ensures that, if the function makes reference to names or globals imported or defined
        in the module, then the new function will be able to run.

        A fresh (and guaranteed-unused) function name is chosen, derived from the unit's name.
        """
        # Find a function name that is not yet used
        function_name_suffix = 1
        while (function_name := f"__bisync_{self.name}_{function_name_suffix}") in self.namespace:
            function_name_suffix += 1

        if isinstance(func, str):
            func = ast.parse(func, self.filename)

        assert isinstance(func, ast.Module)

        # Build a new def with the new name
        new_func = ast_util.ast_rename_function(func, function_name)

        # Execute the new function definition, in the proper namespace. Return the new callable created there
        compiled_new_func = compile(new_func, self.filename, mode="exec")
        exec(compiled_new_func, self.namespace)  # type: ignore[arg-type]

        new_callable: Callable[..., Any] = self.namespace[function_name]
        return new_callable


def name_of(code: Any) -> str:
    """A usable name for whatever was handed to `SourceUnit`"""
    if isinstance(code, partial):
        code = code.func
    elif isinstance(code, (staticmethod, classmethod)):
        code = code.__func__
    name: str = getattr(code, "__name__", "unnamed")
    return name

