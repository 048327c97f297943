from importlib import metadata

__version__: str = metadata.version("vmprobe")

from .check import Check  # noqa: E402
from .context import Context, Contexts, MappingContext, ThresholdContext  # noqa: E402
from .error import (  # noqa: E402
    CheckError,
    ConfigurationConflict,
    ConfigurationError,
    EvaluationGap,
    MissingRequiredAttribute,
    Timeout,
    UpstreamDataUnavailable,
)
from .filters import FilterCriteria  # noqa: E402
from .inventory import Inventory, load_inventory  # noqa: E402
from .metric import Metric  # noqa: E402
from .performance import Performance  # noqa: E402
from .resource import Resource  # noqa: E402
from .result import Result, Results  # noqa: E402
from .runtime import Runtime, guarded  # noqa: E402
from .state import ServiceState, critical, ok, unknown, warn, worst  # noqa: E402
from .summary import InventorySummary, Summary  # noqa: E402
from .threshold import Direction, ThresholdPair, classify  # noqa: E402

__all__ = [
    "Check",
    "CheckError",
    "ConfigurationConflict",
    "ConfigurationError",
    "Context",
    "Contexts",
    "Direction",
    "EvaluationGap",
    "FilterCriteria",
    "Inventory",
    "InventorySummary",
    "MappingContext",
    "Metric",
    "MissingRequiredAttribute",
    "Performance",
    "Resource",
    "Result",
    "Results",
    "Runtime",
    "ServiceState",
    "Summary",
    "ThresholdContext",
    "ThresholdPair",
    "Timeout",
    "UpstreamDataUnavailable",
    "classify",
    "critical",
    "guarded",
    "load_inventory",
    "ok",
    "unknown",
    "warn",
    "worst",
]
