"""Three-state classification of scalar metrics.

A :class:`ThresholdPair` holds a warning and a critical boundary of the
same unit. Both boundaries are inclusive: a value exactly equal to a
boundary triggers that boundary's severity. The critical boundary is
always tested first and the two boundaries are never reordered, so a
pair whose critical boundary is *lower* than its warning boundary is
legitimate and simply makes every value that reaches the critical
boundary critical.
"""

import enum
import logging
import numbers
import typing

from .error import ConfigurationConflict, ConfigurationError
from .state import ServiceState, critical, ok, warn

_log = logging.getLogger(__name__)


class Direction(enum.Enum):
    """Which side of a boundary is the bad one."""

    HIGHER_IS_WORSE = ">="
    LOWER_IS_WORSE = "<="

    def crossed(self, value: float, boundary: float) -> bool:
        if self is Direction.HIGHER_IS_WORSE:
            return value >= boundary
        return value <= boundary


class ThresholdPair:
    warning: float

    critical: float

    unit: str

    direction: Direction

    def __init__(
        self,
        warning: float,
        critical: float,
        unit: str = "",
        direction: Direction = Direction.HIGHER_IS_WORSE,
    ) -> None:
        """Creates a threshold pair.

        :param warning: boundary whose crossing yields WARNING
        :param critical: boundary whose crossing yields CRITICAL
        :param unit: unit shared by both boundaries (``d``, ``GB``,
            ``%`` or empty for plain counts)
        :param direction: whether high or low values are bad
        """
        for boundary in (warning, critical):
            if not isinstance(boundary, numbers.Real) or isinstance(boundary, bool):
                raise ConfigurationError(
                    "threshold boundary must be a number", boundary
                )
        self.warning = warning
        self.critical = critical
        self.unit = unit
        self.direction = direction

    @classmethod
    def from_options(
        cls,
        warning: typing.Optional[float],
        critical: typing.Optional[float],
        default: "ThresholdPair",
        option: str = "threshold",
        ascending: bool = True,
        minimum: float = 0,
    ) -> "ThresholdPair":
        """Builds a pair from command line values.

        Both values omitted selects *default*. Only one of them given is a
        :exc:`~.error.ConfigurationConflict`.

        :param option: option stem used in error messages, for example
            ``snapshot-age`` for ``--snapshot-age-warning``
        :param ascending: require the critical boundary to be greater
            than the warning boundary
        :param minimum: smallest accepted boundary value
        """
        if warning is None and critical is None:
            return default
        if warning is None or critical is None:
            given = "critical" if warning is None else "warning"
            missing = "warning" if warning is None else "critical"
            raise ConfigurationConflict(
                "{0} {1} threshold specified, but not {2} threshold; "
                "both --{0}-warning and --{0}-critical must be set".format(
                    option, given, missing
                )
            )
        for name, value in (("warning", warning), ("critical", critical)):
            if value < minimum:
                raise ConfigurationError(
                    "invalid {0} {1} threshold {2}: must not be lower than {3}".format(
                        option, name, value, minimum
                    )
                )
        if ascending and not critical > warning:
            raise ConfigurationError(
                "{0} critical threshold {1} must be greater than "
                "warning threshold {2}".format(option, critical, warning)
            )
        return cls(warning, critical, default.unit, default.direction)

    def classify(self, value: float) -> ServiceState:
        """Maps *value* to ok, warn or critical."""
        if self.direction.crossed(value, self.critical):
            return critical
        if self.direction.crossed(value, self.warning):
            return warn
        return ok

    def violation(self, value: float) -> typing.Optional[str]:
        """Human-readable description of the boundary *value* crossed."""
        state = self.classify(value)
        if state == critical:
            boundary = self.critical
        elif state == warn:
            boundary = self.warning
        else:
            return None
        return "{0} {1}{2}".format(self.direction.value, boundary, self.unit)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ThresholdPair):
            return False
        return (
            self.warning == other.warning
            and self.critical == other.critical
            and self.unit == other.unit
            and self.direction == other.direction
        )

    def __repr__(self) -> str:
        return "ThresholdPair({0!r}, {1!r}, {2!r}, {3})".format(
            self.warning, self.critical, self.unit, self.direction
        )


def classify(
    metric: float,
    thresholds: ThresholdPair,
    direction: typing.Optional[Direction] = None,
) -> ServiceState:
    """Classifies *metric* against *thresholds*.

    *direction* overrides the direction stored in the pair.
    """
    if direction is not None and direction != thresholds.direction:
        thresholds = ThresholdPair(
            thresholds.warning, thresholds.critical, thresholds.unit, direction
        )
    state = thresholds.classify(metric)
    _log.debug("%s classified as %s against %r", metric, state, thresholds)
    return state
