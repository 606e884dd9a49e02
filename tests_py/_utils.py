from __future__ import annotations

from collections.abc import Mapping

from anyio.abc import ByteSendStream

from strata.prebaked.sources import DictAssetSource

BASE_LAYOUT = (
    '<html><head><title>{{ title }}</title></head>'
    '<body>{% include page_entry %}</body></html>')
NAV_COMPONENT = (
    '<nav>{% for item in nav %}<a>{{ item }}</a>{% endfor %}</nav>')
HOME_PAGE = (
    "{% include 'component/nav' %}<main>Hello, {{ user | shout }}</main>")
ABOUT_PAGE = "<main>{{ title }}: {{ shout('about') }}</main>"

SITE_FILES = {
    'layout/base.html': BASE_LAYOUT,
    'component/nav.html': NAV_COMPONENT,
    'page/home.html': HOME_PAGE,
    'page/about.html': ABOUT_PAGE}

SITE_DATA = {
    'title': 'Site',
    'user': 'world',
    'nav': ['one', 'two']}


def shout(value: str) -> str:
    """A fake template function."""
    return value.upper()


def make_site_source(
        overrides: Mapping[str, str | None] | None = None
        ) -> DictAssetSource:
    """Creates an in-memory source for the standard fake site. Any
    overrides replace the file at that path, or remove it if None.
    """
    files: dict[str, str] = dict(SITE_FILES)
    if overrides is not None:
        for path, contents in overrides.items():
            if contents is None:
                files.pop(path, None)
            else:
                files[path] = contents
    return DictAssetSource(files)


class CollectingByteStream(ByteSendStream):
    """A fake byte stream that collects everything sent to it."""

    def __init__(self):
        self.chunks: list[bytes] = []
        self.closed = False

    async def send(self, item: bytes) -> None:
        self.chunks.append(item)

    async def aclose(self) -> None:
        self.closed = True

    @property
    def value(self) -> bytes:
        return b''.join(self.chunks)
