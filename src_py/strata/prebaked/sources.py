from __future__ import annotations

from collections.abc import Iterator
from collections.abc import Mapping
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from pathlib import PurePosixPath

from strata.assets import AssetEntry


class DictAssetSource:
    """A barebones asset source that serves files from a dictionary of
    slash-separated paths. Directories are implied by the paths. Walks
    are depth-first in lexical order, the same as walking a sorted
    directory tree would be.
    """
    _files: dict[str, bytes]

    def __init__(self, files: Mapping[str, str | bytes] | None = None):
        if files is None:
            files = {}

        self._files = {}
        for path, contents in files.items():
            if isinstance(contents, str):
                contents = contents.encode('utf-8')
            self._files[_normalize(path)] = contents

    def walk(self, root: str) -> Iterator[AssetEntry]:
        root = _normalize(root)
        root_parts = PurePosixPath(root).parts
        matching = sorted(
            parts for parts in map(_split, self._files)
            if parts[:len(root_parts)] == root_parts)
        if not matching:
            raise FileNotFoundError(root)

        # A file is allowed to be the root, but then it's the only entry
        if matching == [root_parts]:
            yield AssetEntry(root, is_dir=False)
            return

        yield AssetEntry(root, is_dir=True)
        emitted_dirs = {root_parts}
        for parts in matching:
            for depth in range(len(root_parts) + 1, len(parts)):
                dir_parts = parts[:depth]
                if dir_parts not in emitted_dirs:
                    emitted_dirs.add(dir_parts)
                    yield AssetEntry('/'.join(dir_parts), is_dir=True)

            yield AssetEntry('/'.join(parts), is_dir=False)

    def read_bytes(self, path: str) -> bytes:
        try:
            return self._files[_normalize(path)]
        except KeyError:
            raise FileNotFoundError(path) from None


class TraversableAssetSource:
    """Serves assets from anything implementing the importlib
    ``Traversable`` protocol, which includes ``pathlib.Path``. Entries
    within each directory are walked in lexical order.
    """

    def __init__(self, base: Traversable):
        self._base = base

    def walk(self, root: str) -> Iterator[AssetEntry]:
        root = _normalize(root)
        node = self._resolve(root)
        if node.is_dir():
            yield AssetEntry(root, is_dir=True)
            yield from _walk_traversable(node, root)
        elif node.is_file():
            yield AssetEntry(root, is_dir=False)
        else:
            raise FileNotFoundError(root)

    def read_bytes(self, path: str) -> bytes:
        return self._resolve(_normalize(path)).read_bytes()

    def _resolve(self, path: str) -> Traversable:
        return self._base.joinpath(*PurePosixPath(path).parts)


class DirectoryAssetSource(TraversableAssetSource):
    """Serves assets from a directory on disk."""

    def __init__(self, directory: str | Path):
        super().__init__(Path(directory))


class PackageAssetSource(TraversableAssetSource):
    """Serves assets bundled as package data, for example
    ``PackageAssetSource('myapp', 'templates')`` for templates located
    at ``myapp/templates/page/...``.
    """

    def __init__(self, package: str, subdirectory: str = ''):
        base = resources.files(package)
        if subdirectory:
            base = base.joinpath(*PurePosixPath(subdirectory).parts)
        super().__init__(base)


def _walk_traversable(node: Traversable, path: str) -> Iterator[AssetEntry]:
    for child in sorted(node.iterdir(), key=lambda child: child.name):
        child_path = f'{path}/{child.name}'
        if child.is_dir():
            yield AssetEntry(child_path, is_dir=True)
            yield from _walk_traversable(child, child_path)
        else:
            yield AssetEntry(child_path, is_dir=False)


def _normalize(path: str) -> str:
    return str(PurePosixPath(path))


def _split(path: str) -> tuple[str, ...]:
    return PurePosixPath(path).parts
