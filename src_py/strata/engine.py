from __future__ import annotations

import logging
import typing
from collections.abc import AsyncIterator
from collections.abc import Iterator
from collections.abc import Mapping
from functools import partial
from typing import Annotated
from typing import Any
from typing import Protocol

import jinja2
from anyio import to_thread
from docnote import ClcNote

from strata.assets import AssetSource
from strata.assets import Layer
from strata.assets import is_asset_source
from strata.config import EngineConfig
from strata.exceptions import ConfigurationError
from strata.exceptions import ExecutionError
from strata.exceptions import NestedNotFoundError
from strata.exceptions import NotFoundError
from strata.functions import FunctionsLike
from strata.functions import FunctionTable
from strata.namespaces import Namespace
from strata.namespaces import compose

if typing.TYPE_CHECKING:
    from anyio.abc import ByteSendStream

logger = logging.getLogger(__name__)

# Mappings become the render context; anything else is bound under the
# configured data global.
type RenderData = Mapping[str, Any] | object


class ByteSink(Protocol):

    def write(self, data: bytes, /) -> object:
        """Byte sinks receive rendered output in chunks, as soon as it's
        produced. Files opened in binary mode, ``io.BytesIO``, and most
        HTTP response bodies all qualify. Sinks that report a partial
        write (like unbuffered socket files) are written to again until
        the whole chunk is accepted.
        """
        ...


class TemplateEngine:
    """Template engines discover every template source from an asset
    source, compose them into layered namespaces, and then render them
    by logical name. All of the loading happens within ``__init__``; if
    it returns, the engine is ready, and it never changes afterwards.
    This makes it safe to share a single engine between any number of
    concurrent renders.

    Namespaces are layered as follows:
    ++  ``layout/`` templates can see only other layouts
    ++  ``component/`` templates can see layouts and components
    ++  every ``page/`` template gets its own namespace, which can see
        layouts, components, and itself -- but never other pages.

    Components and layouts are rendered directly. Pages are rendered
    by executing the base entry point (by default, ``layout/base``)
    within the page's namespace, where the page's own logical name is
    available as the ``page_entry`` global.
    """
    _config: EngineConfig
    _functions: Mapping[str, Any]
    _shared: Namespace
    _pages: tuple[Namespace, ...]

    def __init__(
            self,
            asset_source: Annotated[
                AssetSource | None,
                ClcNote(
                    '''The virtual filesystem to discover templates in.
                    Templates are loaded from its ``layout``,
                    ``component``, and ``page`` roots, any of which may
                    be missing.
                    ''')],
            functions: Annotated[
                FunctionsLike | None,
                ClcNote(
                    '''Functions to make available to every template,
                    as a function table, a mapping of names to
                    callables, or an iterable of callables (which will
                    be registered under their ``__name__``).
                    ''')] = None,
            config: EngineConfig | None = None):
        if asset_source is None:
            raise ConfigurationError('Template engines need an asset source!')
        if not is_asset_source(asset_source):
            raise ConfigurationError(
                'Asset source must implement walk() and read_bytes()!',
                asset_source)

        if config is None:
            config = EngineConfig()

        self._config = config
        self._functions = FunctionTable.coerce(functions).freeze()
        composition = compose(asset_source, self._functions, config)
        self._shared = composition.shared
        self._pages = composition.pages
        logger.info(
            'Template engine ready with %s shared templates and %s pages',
            len(self._shared.entries), len(self._pages))

    @classmethod
    async def build_async(
            cls,
            asset_source: AssetSource | None,
            functions: FunctionsLike | None = None,
            config: EngineConfig | None = None
            ) -> TemplateEngine:
        """Construction reads every template source synchronously, so
        when building an engine from within an event loop (for example,
        during server startup), use this to run it in a worker thread
        instead.
        """
        return await to_thread.run_sync(
            partial(cls, asset_source, functions, config))

    @property
    def config(self) -> EngineConfig:
        return self._config

    def render(
            self,
            sink: ByteSink,
            name: str,
            data: RenderData | None = None):
        """Renders the template with logical name ``name`` into the
        sink. Mapping data is used as the render context; any other
        value is available to templates under the configured data
        global. Output is encoded and written chunk by chunk; if
        execution fails partway through, whatever was already written
        stays written.

        Raises NotFoundError (without writing anything) if there's no
        such template, or ExecutionError if jinja fails during the
        render.
        """
        namespace, entry_point = self._locate(name)
        encoding = self._config.encoding
        chunks = _encode(
            _execute(namespace, entry_point, self._context(data)), encoding)
        for chunk in _guard_execution(chunks, name):
            _write_all(sink, chunk)

    def render_str(self, name: str, data: RenderData | None = None) -> str:
        """Same as render, but collects the result into a string
        instead of writing it to a sink.
        """
        namespace, entry_point = self._locate(name)
        chunks = _execute(namespace, entry_point, self._context(data))
        return ''.join(_guard_execution(chunks, name))

    async def render_async(
            self,
            sink: ByteSendStream,
            name: str,
            data: RenderData | None = None):
        """The async equivalent of render, sending each chunk to an
        anyio byte stream as it's produced. The engine must have been
        configured with ``enable_async=True``.
        """
        if not self._config.enable_async:
            raise ConfigurationError(
                'Async rendering requires enable_async in the engine config!')

        namespace, entry_point = self._locate(name)
        encoding = self._config.encoding
        chunks = _encode_async(
            _execute_async(namespace, entry_point, self._context(data)),
            encoding)
        async for chunk in _guard_execution_async(chunks, name):
            await sink.send(chunk)

    def has_template(self, name: str) -> bool:
        try:
            self._locate(name)
        except NotFoundError:
            return False
        return True

    def template_names(self) -> list[str]:
        """Returns every logical name that can be rendered, shared
        templates first, and then pages in construction order.
        """
        names = list(self._shared.entries)
        seen_pages = set()
        for namespace in self._pages:
            for logical_name in namespace.entries:
                if (
                    Layer.PAGE.owns(logical_name)
                    and logical_name not in seen_pages
                ):
                    seen_pages.add(logical_name)
                    names.append(logical_name)
        return names

    def _locate(self, name: str) -> tuple[Namespace, str]:
        """Finds the namespace that the template should be rendered
        from, along with the name of the template to execute within it.
        """
        if Layer.PAGE.owns(name):
            for namespace in self._pages:
                if name in namespace:
                    return namespace, self._config.base_entry_point

            raise NotFoundError(name)

        if name not in self._shared:
            raise NotFoundError(name)

        return self._shared, name

    def _context(self, data: RenderData | None) -> Mapping[str, Any]:
        if data is None:
            return {}
        if isinstance(data, Mapping):
            return data
        return {self._config.data_global: data}


def _execute(
        namespace: Namespace,
        entry_point: str,
        context: Mapping[str, Any]
        ) -> Iterator[str]:
    # Note that this is a generator, so the template isn't even loaded
    # until the first chunk is requested, which keeps loading errors
    # within the execution guard.
    template = namespace.get_template(entry_point)
    yield from template.generate(context)


async def _execute_async(
        namespace: Namespace,
        entry_point: str,
        context: Mapping[str, Any]
        ) -> AsyncIterator[str]:
    template = namespace.get_template(entry_point)
    async for chunk in template.generate_async(context):
        yield chunk


def _encode(chunks: Iterator[str], encoding: str) -> Iterator[bytes]:
    for chunk in chunks:
        yield chunk.encode(encoding)


async def _encode_async(
        chunks: AsyncIterator[str],
        encoding: str
        ) -> AsyncIterator[bytes]:
    async for chunk in chunks:
        yield chunk.encode(encoding)


def _write_all(sink: ByteSink, data: bytes):
    written = sink.write(data)
    # Sinks that don't report a byte count own the whole chunk
    while isinstance(written, int) and 0 < written < len(data):
        data = data[written:]
        written = sink.write(data)


def _guard_execution[T](chunks: Iterator[T], name: str) -> Iterator[T]:
    """Converts any errors from jinja (or from encoding its output)
    into execution errors. Errors raised by the consumer of the chunks
    (ie, the sink) aren't affected.
    """
    try:
        yield from chunks
    except jinja2.TemplateNotFound as exc:
        raise NestedNotFoundError(name, exc.name) from exc
    except Exception as exc:
        raise ExecutionError('Failed to execute template!', name) from exc


async def _guard_execution_async[T](
        chunks: AsyncIterator[T],
        name: str
        ) -> AsyncIterator[T]:
    try:
        async for chunk in chunks:
            yield chunk
    except jinja2.TemplateNotFound as exc:
        raise NestedNotFoundError(name, exc.name) from exc
    except Exception as exc:
        raise ExecutionError('Failed to execute template!', name) from exc
