import strata.prebaked as prebaked  # noqa: PLR0402
from strata.assets import AssetEntry
from strata.assets import AssetSource
from strata.assets import Layer
from strata.config import EngineConfig
from strata.engine import ByteSink
from strata.engine import TemplateEngine
from strata.exceptions import ConfigurationError
from strata.exceptions import ExecutionError
from strata.exceptions import NameCollisionError
from strata.exceptions import NestedNotFoundError
from strata.exceptions import NotFoundError
from strata.exceptions import ParseError
from strata.exceptions import SourceReadError
from strata.exceptions import StrataError
from strata.functions import FunctionTable

__all__ = [
    'AssetEntry',
    'AssetSource',
    'ByteSink',
    'ConfigurationError',
    'EngineConfig',
    'ExecutionError',
    'FunctionTable',
    'Layer',
    'NameCollisionError',
    'NestedNotFoundError',
    'NotFoundError',
    'ParseError',
    'SourceReadError',
    'StrataError',
    'TemplateEngine',
    'prebaked',
]
