from __future__ import annotations

import logging
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Iterator
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any
from typing import overload

from strata.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

type TemplateFunction = Callable[..., Any]
type FunctionsLike = (
    FunctionTable
    | Mapping[str, TemplateFunction]
    | Iterable[TemplateFunction])


class FunctionTable(Mapping[str, TemplateFunction]):
    """Function tables collect the functions made available to every
    template in the engine. They can be assembled from any number of
    registration calls; the last registration for a particular name
    always wins.

    The engine takes a frozen snapshot of the table when it's built, so
    registering functions afterwards has no effect on existing engines.
    """
    _functions: dict[str, TemplateFunction]

    def __init__(
            self,
            functions: Mapping[str, TemplateFunction] | None = None):
        self._functions = {}
        if functions is not None:
            self.update(functions)

    @overload
    def register(
            self,
            function: TemplateFunction,
            *,
            name: str | None = None
            ) -> TemplateFunction: ...
    @overload
    def register(
            self,
            function: None = None,
            *,
            name: str | None = None
            ) -> Callable[[TemplateFunction], TemplateFunction]: ...
    def register(
            self,
            function: TemplateFunction | None = None,
            *,
            name: str | None = None
            ) -> (
                TemplateFunction
                | Callable[[TemplateFunction], TemplateFunction]):
        """Adds a function to the table, under its ``__name__`` unless
        an explicit name is given. Returns the function unchanged, so
        this can also be used as a decorator (with or without a call).
        """
        if function is None:
            def decorator(function: TemplateFunction) -> TemplateFunction:
                return self.register(function, name=name)
            return decorator

        if not callable(function):
            raise ConfigurationError(
                'Template functions must be callable!', name, function)

        if name is None:
            name = getattr(function, '__name__', None)
            if name is None:
                raise ConfigurationError(
                    'Cannot infer name for template function!', function)

        if name in self._functions:
            logger.debug('Replacing template function %s', name)

        self._functions[name] = function
        return function

    def update(self, functions: Mapping[str, TemplateFunction]):
        for name, function in functions.items():
            self.register(function, name=name)

    def freeze(self) -> Mapping[str, TemplateFunction]:
        """Returns a read-only snapshot of the table's current state."""
        return MappingProxyType(dict(self._functions))

    @classmethod
    def coerce(cls, functions: FunctionsLike | None) -> FunctionTable:
        """Converts any of the accepted ways of specifying template
        functions into a function table. Existing tables are returned
        as-is.
        """
        if functions is None:
            return cls()
        if isinstance(functions, FunctionTable):
            return functions
        if isinstance(functions, Mapping):
            return cls(functions)

        table = cls()
        for function in functions:
            table.register(function)
        return table

    def __getitem__(self, name: str) -> TemplateFunction:
        return self._functions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def __len__(self) -> int:
        return len(self._functions)
