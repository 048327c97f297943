"""Structured representation for data points.

This module contains the :class:`Metric` class whose instances are
passed as value objects between most of vmprobe's core classes.
Typically, :class:`~.resource.Resource` objects emit a list of metrics
as result of their :meth:`~.resource.Resource.probe` methods. A metric
that describes one inventory object carries a reference to it in
:attr:`Metric.obj`; aggregate metrics leave it unset.
"""

import numbers
import typing

import typing_extensions

from .performance import Performance

if typing.TYPE_CHECKING:
    from .context import Context
    from .inventory import InventoryObject
    from .resource import Resource
    from .result import Result
    from .state import ServiceState


class MetricKwargs(typing.TypedDict, total=False):
    name: str
    value: typing.Any
    uom: str
    min: float
    max: float
    context: str
    contextobj: "Context"
    resource: "Resource"
    obj: "InventoryObject"


class Metric:
    """Single measured value.

    The value should be expressed in terms of the unit its thresholds use,
    so Metric('snapshot_age', 3.5, 'd') for an age compared against days.
    """

    name: str
    value: typing.Any
    uom: typing.Optional[str] = None
    min: typing.Optional[float] = None
    max: typing.Optional[float] = None
    context: str
    contextobj: typing.Optional["Context"] = None
    resource: typing.Optional["Resource"] = None
    obj: typing.Optional["InventoryObject"] = None

    # pylint: disable-next=redefined-builtin
    def __init__(
        self,
        name: str,
        value: typing.Any,
        uom: typing.Optional[str] = None,
        min: typing.Optional[float] = None,
        max: typing.Optional[float] = None,
        context: typing.Optional[str] = None,
        contextobj: typing.Optional["Context"] = None,
        resource: typing.Optional["Resource"] = None,
        obj: typing.Optional["InventoryObject"] = None,
    ) -> None:
        """Creates new Metric instance.

        :param name: short internal identifier for the value -- appears
            also in the performance data
        :param value: data point, usually numeric, but other types are
            also possible (pairing outcomes, status keywords)
        :param uom: :term:`unit of measure`
        :param min: minimum value or None if there is no known minimum
        :param max: maximum value or None if there is no known maximum
        :param context: name of the associated context (defaults to the
            metric's name if left out)
        :param contextobj: reference to the associated context object
            (set automatically by :class:`~vmprobe.check.Check`)
        :param resource: reference to the originating
            :class:`~vmprobe.resource.Resource` (set automatically
            by :class:`~vmprobe.check.Check`)
        :param obj: inventory object the value was observed on
        """
        self.name = name
        self.value = value
        self.uom = uom
        self.min = min
        self.max = max
        if context is not None:
            self.context = context
        else:
            self.context = name
        self.contextobj = contextobj
        self.resource = resource
        self.obj = obj

    def __str__(self):
        """Same as :attr:`valueunit`."""
        return self.valueunit

    def __repr__(self) -> str:
        return "Metric({0!r}, {1!r}, obj={2!r})".format(
            self.name, self.value, self.obj.id if self.obj else None
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Metric):
            return False
        return (
            self.name == other.name
            and self.value == other.value
            and self.uom == other.uom
            and self.context == other.context
            and self.obj == other.obj
        )

    def __hash__(self) -> int:
        return hash((self.name, self.context, self.obj))

    def replace(
        self, **attr: typing_extensions.Unpack[MetricKwargs]
    ) -> typing_extensions.Self:
        """Creates new instance with updated attributes."""
        for key, value in attr.items():
            setattr(self, key, value)
        return self

    @property
    def description(self):
        """Human-readable, detailed string representation.

        Delegates to the :class:`~.context.Context` to format the value.

        :returns: :meth:`~.context.Context.describe` output or
            :attr:`valueunit` if no context has been associated yet
        """
        if self.contextobj:
            return self.contextobj.describe(self)
        return str(self)

    @property
    def valueunit(self) -> str:
        """Compact string representation.

        This is just the value and the unit. If the value is a real
        number, express the value with a limited number of digits to
        improve readability.
        """
        return "%s%s" % (self._human_readable_value, self.uom or "")

    @property
    def _human_readable_value(self) -> str:
        """Limit number of digits for floats."""
        if isinstance(self.value, numbers.Real) and not isinstance(
            self.value, numbers.Integral
        ):
            return "%.4g" % self.value
        return str(self.value)

    def evaluate(self) -> typing.Union["Result", "ServiceState"]:
        """Evaluates this instance according to the context.

        :return: :class:`~vmprobe.result.Result` object
        :raise RuntimeError: if no context has been associated yet
        """
        if not self.contextobj:
            raise RuntimeError("no context set for metric", self.name)
        if not self.resource:
            raise RuntimeError("no resource set for metric", self.name)
        return self.contextobj.evaluate(self, self.resource)

    def performance(self) -> typing.Optional[Performance]:
        """Generates performance data according to the context.

        :return: :class:`~vmprobe.performance.Performance` object
        :raise RuntimeError: if no context has been associated yet
        """
        if not self.contextobj:
            raise RuntimeError("no context set for metric", self.name)
        if not self.resource:
            raise RuntimeError("no resource set for metric", self.name)
        return self.contextobj.performance(self, self.resource)
