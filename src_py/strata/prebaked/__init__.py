from strata.prebaked.sources import DictAssetSource
from strata.prebaked.sources import DirectoryAssetSource
from strata.prebaked.sources import PackageAssetSource
from strata.prebaked.sources import TraversableAssetSource

__all__ = [
    'DictAssetSource',
    'DirectoryAssetSource',
    'PackageAssetSource',
    'TraversableAssetSource',
]
