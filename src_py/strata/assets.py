from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import StrEnum
from typing import NamedTuple
from typing import Protocol

from typing_extensions import TypeIs

from strata.exceptions import SourceReadError

logger = logging.getLogger(__name__)


class Layer(StrEnum):
    """The three discovery roots. Every logical name begins with the
    prefix of the layer it was discovered in.
    """
    LAYOUT = 'layout'
    COMPONENT = 'component'
    PAGE = 'page'

    @property
    def prefix(self) -> str:
        return f'{self.value}/'

    def owns(self, logical_name: str) -> bool:
        return logical_name.startswith(self.prefix)


class AssetEntry(NamedTuple):
    path: str
    is_dir: bool


class AssetSource(Protocol):
    """Asset sources are the read-only virtual filesystem that template
    sources are discovered from. Paths are always slash-separated and
    relative to the root of the source, for example
    ``component/nav.html``.
    """

    def walk(self, root: str) -> Iterable[AssetEntry]:
        """Recursively walks everything beneath ``root``, yielding both
        files and directories. The order must be deterministic for any
        particular source, since it decides which of two colliding
        templates wins. If ``root`` doesn't exist, raise
        FileNotFoundError.
        """
        ...

    def read_bytes(self, path: str) -> bytes:
        """Returns the full contents of the file at ``path``."""
        ...


def is_asset_source(obj: object) -> TypeIs[AssetSource]:
    """We don't use @runtime_checkable here, since it only checks for
    the attribute names, and we'd like the error for a missing source
    to be reasonably specific.
    """
    return (
        callable(getattr(obj, 'walk', None))
        and callable(getattr(obj, 'read_bytes', None)))


def list_assets(source: AssetSource, root: str | Layer) -> list[str]:
    """Returns the paths of every file beneath ``root``, in traversal
    order. A missing root is treated the same as an empty one, since
    every layer is optional.
    """
    root = str(root)
    paths: list[str] = []
    try:
        for entry in source.walk(root):
            if not entry.is_dir:
                paths.append(entry.path)

    except FileNotFoundError:
        logger.debug('No assets found for root %s', root)
        return []
    except OSError as exc:
        raise SourceReadError(
            'Failed to walk asset source root!', root) from exc

    logger.debug('Listed %s assets under %s', len(paths), root)
    return paths


def resolve_name(path: str) -> str:
    """Converts a path into its logical name: everything up to the
    first dot, with the layer prefix left intact. So both
    ``component/nav.html`` and ``component/nav.html.j2`` become
    ``component/nav``.

    Note that this is the first dot anywhere in the path, and not just
    within the final segment.
    """
    logical_name, _, _ = path.partition('.')
    return logical_name
