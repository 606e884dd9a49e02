from __future__ import annotations


class StrataError(Exception):
    """Base class for all errors raised by strata."""


class ConfigurationError(StrataError):
    """Raised when the engine is missing required configuration (most
    notably the asset source), or when configuration values cannot be
    used (for example, non-callable template functions).
    """


class TemplateConstructionError(StrataError):
    """Base class for errors encountered while loading and composing
    template namespaces. These always abort engine construction.
    """


class SourceReadError(TemplateConstructionError):
    """Raised when a listed template source could not be read (or
    decoded) from the asset source.
    """

    def __init__(self, message: str, path: str):
        super().__init__(message, path)
        self.path = path


class ParseError(TemplateConstructionError):
    """Raised when jinja rejects a template source. Always identifies
    the logical name of the offending template.
    """

    def __init__(
            self,
            message: str,
            logical_name: str,
            path: str,
            lineno: int | None = None):
        super().__init__(message, logical_name, path, lineno)
        self.logical_name = logical_name
        self.path = path
        self.lineno = lineno


class NameCollisionError(TemplateConstructionError):
    """Raised in strict naming mode when two sources within the same
    namespace resolve to the same logical name.
    """

    def __init__(self, logical_name: str, paths: tuple[str, str]):
        super().__init__(
            'Multiple template sources resolve to the same logical name!',
            logical_name, paths)
        self.logical_name = logical_name
        self.paths = paths


class NotFoundError(StrataError, LookupError):
    """Raised when a render targets a logical name that isn't present
    in any namespace the name could dispatch to.
    """

    def __init__(self, logical_name: str):
        super().__init__('Template not found!', logical_name)
        self.logical_name = logical_name


class ExecutionError(StrataError):
    """Raised when jinja fails while executing a template that was
    found. The underlying exception is always chained as the cause.
    Anything already written to the sink stays written.
    """

    def __init__(self, message: str, logical_name: str):
        super().__init__(message, logical_name)
        self.logical_name = logical_name


class NestedNotFoundError(ExecutionError, NotFoundError):
    """Raised when a template that was found references another
    template (or the base entry point) that doesn't exist in its
    namespace.
    """

    def __init__(self, logical_name: str, missing_name: str):
        StrataError.__init__(
            self,
            'Template references a missing template!',
            logical_name,
            missing_name)
        self.logical_name = logical_name
        self.missing_name = missing_name
