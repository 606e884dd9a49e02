from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType
from typing import Annotated
from typing import Any

import jinja2
from docnote import ClcNote

from strata.exceptions import ConfigurationError

_MANAGED_OPTIONS = frozenset({
    'loader',
    'autoescape',
    'undefined',
    'trim_blocks',
    'lstrip_blocks',
    'extensions',
    'enable_async',
    'cache_size',
    'auto_reload'})


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Engine configs control both how template sources are compiled
    and how renders are dispatched. They're shared by every namespace
    in the engine, so that templates compiled in one layer behave
    identically when executed from another.
    """
    base_entry_point: Annotated[
        str,
        ClcNote(
            '''The logical name of the template that wraps every page
            render. It must be visible from page namespaces, so it
            normally lives in the ``layout`` (or ``component``) layer.
            ''')
    ] = 'layout/base'
    page_entry_global: Annotated[
        str,
        ClcNote(
            '''Within a page namespace, the logical name of the page
            itself is exposed to templates under this global name, so
            that the base entry point can ``{% include page_entry %}``.
            ''')
    ] = 'page_entry'
    data_global: Annotated[
        str,
        ClcNote(
            '''Render data that isn't a mapping (a dataclass, a model
            object, a list, etc) is passed through untouched, under this
            name in the render context, for example ``{{ data.title }}``.
            Mappings are used as the render context directly.
            ''')
    ] = 'data'
    encoding: Annotated[
        str,
        ClcNote(
            '''Used both to decode template sources and to encode
            rendered output before it's written to the sink.
            ''')
    ] = 'utf-8'
    autoescape: bool = True
    strict_undefined: Annotated[
        bool,
        ClcNote(
            '''If True, accessing an undefined variable or attribute is
            an execution error instead of rendering as an empty string.
            ''')
    ] = True
    strict_names: Annotated[
        bool,
        ClcNote(
            '''If True, two sources resolving to the same logical name
            within one namespace abort construction. Otherwise, the
            later-listed source silently replaces the earlier one.
            ''')
    ] = False
    enable_async: Annotated[
        bool,
        ClcNote(
            '''Compiles templates for jinja's async mode, which is
            required for ``render_async``. Sync rendering still works,
            but must not be called from within a running event loop.
            ''')
    ] = False
    trim_blocks: bool = False
    lstrip_blocks: bool = False
    extensions: tuple[str | type[jinja2.ext.Extension], ...] = ()
    environment_options: Annotated[
        Mapping[str, Any],
        ClcNote(
            '''Any additional keyword arguments to pass through to
            ``jinja2.Environment``. These may not override the options
            that the engine itself manages (loader, cache, reloading).
            ''')
    ] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        overridden = _MANAGED_OPTIONS.intersection(self.environment_options)
        if overridden:
            raise ConfigurationError(
                'Environment options may not override managed options!',
                sorted(overridden))

    def make_environment(
            self,
            functions: Mapping[str, object],
            loader: jinja2.BaseLoader | None = None,
            ) -> jinja2.Environment:
        """Creates a jinja environment for this config, with every
        template function registered both as a global and as a filter.
        """
        undefined = (
            jinja2.StrictUndefined if self.strict_undefined
            else jinja2.Undefined)
        environment = jinja2.Environment(
            **self.environment_options,
            loader=loader,
            autoescape=self.autoescape,
            undefined=undefined,
            trim_blocks=self.trim_blocks,
            lstrip_blocks=self.lstrip_blocks,
            extensions=self.extensions,
            enable_async=self.enable_async,
            # Namespaces are fixed at construction, so the cache never
            # needs evicting or revalidating. Note that an unbounded cache
            # is a plain dict; concurrent first loads may both create the
            # same template, and the last one is kept.
            cache_size=-1,
            auto_reload=False)
        environment.globals.update(functions)
        environment.filters.update(functions)
        return environment
