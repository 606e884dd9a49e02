from __future__ import annotations

import logging
from collections.abc import Callable
from collections.abc import Mapping
from collections.abc import MutableMapping
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from types import CodeType
from types import MappingProxyType
from typing import Any

import jinja2

from strata.assets import AssetSource
from strata.assets import Layer
from strata.assets import list_assets
from strata.assets import resolve_name
from strata.config import EngineConfig
from strata.exceptions import NameCollisionError
from strata.exceptions import ParseError
from strata.exceptions import SourceReadError

logger = logging.getLogger(__name__)


class _NamespaceLoader(jinja2.BaseLoader):
    """Serves already-compiled entries to a namespace's environment.
    Since the entries are code objects, this never re-parses anything;
    jinja just needs to execute the module code to create a template.
    """
    has_source_access = False

    def __init__(self, entries: Mapping[str, CodeType]):
        self._entries = entries

    def load(
            self,
            environment: jinja2.Environment,
            name: str,
            globals: MutableMapping[str, Any] | None = None  # noqa: A002
            ) -> jinja2.Template:
        try:
            code = self._entries[name]
        except KeyError:
            raise jinja2.TemplateNotFound(name) from None

        if globals is None:
            globals = environment.make_globals(None)  # noqa: A001
        return environment.template_class.from_code(
            environment, code, globals, _always_uptodate)

    def list_templates(self) -> list[str]:
        return sorted(self._entries)


def _always_uptodate() -> bool:
    return True


@dataclass(frozen=True, slots=True)
class Namespace:
    """A composed set of compiled template entries, along with the
    jinja environment used to execute them. Entries inherited from the
    parent namespace are shared code objects, which are immutable, so
    a namespace can never affect its parent or its siblings.
    """
    label: str
    entries: Mapping[str, CodeType]
    environment: jinja2.Environment = field(compare=False, repr=False)

    def __contains__(self, logical_name: object) -> bool:
        return logical_name in self.entries

    def get_template(self, logical_name: str) -> jinja2.Template:
        return self.environment.get_template(logical_name)


@dataclass(frozen=True, slots=True)
class Composition:
    """The result of composing all three layers. The shared namespace
    contains every layout and component entry; each page namespace adds
    exactly one page source on top of that.
    """
    shared: Namespace
    pages: tuple[Namespace, ...]


def load_layer(
        label: str,
        source: AssetSource,
        paths: Sequence[str],
        functions: Mapping[str, Callable[..., Any]],
        config: EngineConfig,
        parent: Namespace | None = None,
        extra_globals: Mapping[str, object] | None = None,
        compiler: jinja2.Environment | None = None,
        ) -> Namespace:
    """Compiles every source in ``paths`` into a new namespace, which
    starts from a copy of ``parent``'s entries (if any). Paths are
    processed in order, so the last-listed of two colliding sources
    wins (unless we're in strict naming mode, in which case collisions
    raise). A compiler environment may be shared between calls, as long
    as it was created from the same config and functions.
    """
    if compiler is None:
        compiler = config.make_environment(functions)
    entries: dict[str, CodeType] = {}
    if parent is not None:
        entries.update(parent.entries)
    entry_paths: dict[str, str] = {}

    for path in paths:
        try:
            raw = source.read_bytes(path)
            text = raw.decode(config.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceReadError(
                'Failed to read template source!', path) from exc

        logical_name = resolve_name(path)
        try:
            code = compiler.compile(text, name=logical_name, filename=path)
        except jinja2.TemplateSyntaxError as exc:
            raise ParseError(
                exc.message or 'Failed to parse template source!',
                logical_name,
                path,
                exc.lineno
            ) from exc

        if logical_name in entry_paths:
            previous_path = entry_paths[logical_name]
            if config.strict_names:
                raise NameCollisionError(logical_name, (previous_path, path))
            logger.warning(
                'Template source %s replaces %s (both are named %s)',
                path, previous_path, logical_name)

        entries[logical_name] = code
        entry_paths[logical_name] = path

    frozen_entries = MappingProxyType(entries)
    environment = config.make_environment(
        functions, loader=_NamespaceLoader(frozen_entries))
    if extra_globals:
        environment.globals.update(extra_globals)

    logger.debug(
        'Loaded namespace %s with %s own and %s total entries',
        label, len(entry_paths), len(entries))
    return Namespace(
        label=label,
        entries=frozen_entries,
        environment=environment)


def compose(
        source: AssetSource,
        functions: Mapping[str, Callable[..., Any]],
        config: EngineConfig,
        ) -> Composition:
    """Builds the layered namespaces: layouts first, then components
    on top of layouts, then one independent namespace per page on top
    of components. Pages are therefore visible to nothing but
    themselves.
    """
    compiler = config.make_environment(functions)
    layout_ns = load_layer(
        Layer.LAYOUT,
        source,
        list_assets(source, Layer.LAYOUT),
        functions,
        config,
        compiler=compiler)
    component_ns = load_layer(
        Layer.COMPONENT,
        source,
        list_assets(source, Layer.COMPONENT),
        functions,
        config,
        parent=layout_ns,
        compiler=compiler)

    page_paths = list_assets(source, Layer.PAGE)
    page_namespaces: list[Namespace] = []
    seen_pages: dict[str, str] = {}
    for path in page_paths:
        logical_name = resolve_name(path)
        if logical_name in seen_pages:
            if config.strict_names:
                raise NameCollisionError(
                    logical_name, (seen_pages[logical_name], path))
            # Renders scan pages in order, so this one is unreachable
            logger.warning(
                'Page source %s is shadowed by %s (both are named %s)',
                path, seen_pages[logical_name], logical_name)
        else:
            seen_pages[logical_name] = path

        page_namespaces.append(load_layer(
            path,
            source,
            (path,),
            functions,
            config,
            parent=component_ns,
            extra_globals={config.page_entry_global: logical_name},
            compiler=compiler))

    if not (component_ns.entries or page_namespaces):
        logger.warning('Asset source contains no templates at all')

    logger.debug(
        'Composed %s shared entries and %s pages',
        len(component_ns.entries), len(page_namespaces))
    return Composition(shared=component_ns, pages=tuple(page_namespaces))
