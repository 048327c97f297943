"""Metadata about metrics to perform data :term:`evaluation`.

This module contains the :class:`Context` class, which is the base for
all contexts. :class:`ThresholdContext` covers scalar metrics with a
warning and a critical boundary, :class:`MappingContext` covers metrics
whose value is a keyword or flag with a fixed severity. The
:class:`~.check.Check` controller selects a context for each
:class:`~.metric.Metric` by matching the metric's `context` attribute with
the context's `name`. The same context may be used for several metrics.
"""

import typing

from .performance import Performance
from .result import Result
from .state import ServiceState, critical, ok, unknown, warn
from .threshold import ThresholdPair, classify

if typing.TYPE_CHECKING:
    from .metric import Metric
    from .resource import Resource


FmtMetric = str | typing.Callable[["Metric", "Context"], str]


class Context:
    name: str
    fmt_metric: typing.Optional[FmtMetric]
    result_cls: type[Result]

    def __init__(
        self,
        name: str,
        fmt_metric: typing.Optional[FmtMetric] = None,
        result_cls: type[Result] = Result,
    ) -> None:
        """Creates generic context identified by `name`.

        Generic contexts just format associated metrics and evaluate
        always to :obj:`~vmprobe.state.ok`. Metric formatting is
        controlled with the :attr:`fmt_metric` attribute. It can either
        be a string or a callable. See the :meth:`describe` method for
        how formatting is done.

        :param name: A context name that is matched by the context
            attribute of :class:`~vmprobe.metric.Metric`
        :param fmt_metric: string or callable to convert
            context and associated metric to a human readable string
        :param result_cls: use this class (usually a
            :class:`~.result.Result` subclass) to represent the
            evaluation outcome
        """
        self.name = name
        self.fmt_metric = fmt_metric
        self.result_cls = result_cls

    def evaluate(
        self, metric: "Metric", resource: "Resource"
    ) -> typing.Union[Result, ServiceState]:
        """Determines state of a given metric.

        This base implementation returns :class:`~vmprobe.state.ok`
        in all cases.

        :param metric: associated metric that is to be evaluated
        :param resource: resource that produced the associated metric
            (may optionally be consulted)
        :returns: :class:`~.result.Result` or
            :class:`~.state.ServiceState` object
        """
        return self.result_cls(ok, metric=metric)

    def ok(
        self,
        hint: typing.Optional[str] = None,
        metric: typing.Optional["Metric"] = None,
    ) -> Result:
        return self.result_cls(ok, hint=hint, metric=metric)

    def warn(
        self,
        hint: typing.Optional[str] = None,
        metric: typing.Optional["Metric"] = None,
    ) -> Result:
        return self.result_cls(warn, hint=hint, metric=metric)

    def critical(
        self,
        hint: typing.Optional[str] = None,
        metric: typing.Optional["Metric"] = None,
    ) -> Result:
        return self.result_cls(critical, hint=hint, metric=metric)

    def unknown(
        self,
        hint: typing.Optional[str] = None,
        metric: typing.Optional["Metric"] = None,
    ) -> Result:
        return self.result_cls(unknown, hint=hint, metric=metric)

    # pylint: disable-next=no-self-use
    def performance(
        self, metric: "Metric", resource: "Resource"
    ) -> typing.Optional[Performance]:
        """Derives performance data from a given metric.

        This base implementation just returns none.

        :param metric: associated metric from which performance data are
            derived
        :param resource: resource that produced the associated metric
            (may optionally be consulted)
        :returns: :class:`~.performance.Performance` object or `None`
        """
        return None

    def describe(self, metric: "Metric") -> typing.Optional[str]:
        """Provides human-readable metric description.

        Formats the metric according to the :attr:`fmt_metric`
        attribute. If :attr:`fmt_metric` is a string, it is evaluated as
        format string with all metric attributes in the root namespace
        (plus ``obj``, the inventory object's name). If :attr:`fmt_metric`
        is callable, it is called with the metric and this context as
        arguments. If :attr:`fmt_metric` is not set, this default
        implementation does not return a description.

        :param metric: associated metric
        :returns: description string or None
        """
        if not self.fmt_metric:
            return None

        if isinstance(self.fmt_metric, str):
            return self.fmt_metric.format(
                name=metric.name,
                value=metric.value,
                uom=metric.uom,
                valueunit=metric.valueunit,
                min=metric.min,
                max=metric.max,
                obj=metric.obj.name if metric.obj else "",
            )

        return self.fmt_metric(metric, self)


class ThresholdContext(Context):
    thresholds: typing.Optional[ThresholdPair]

    perfdata: bool

    def __init__(
        self,
        name: str,
        thresholds: typing.Optional[ThresholdPair] = None,
        fmt_metric: FmtMetric = "{name} is {valueunit}",
        result_cls: type[Result] = Result,
        perfdata: bool = True,
    ) -> None:
        """Ready-to-use :class:`Context` subclass for scalar values.

        :param thresholds: warning and critical boundaries; without
            them every value is ok
        :param perfdata: emit performance data for evaluated metrics.
            Per-object metrics usually switch this off and leave the
            perfdata section to aggregate metrics.
        """
        super().__init__(name, fmt_metric, result_cls)
        self.thresholds = thresholds
        self.perfdata = perfdata

    def evaluate(self, metric: "Metric", resource: "Resource") -> Result:
        """Classifies the metric's value against :attr:`thresholds`.

        :param metric: metric that is to be evaluated
        :param resource: not used
        :returns: :class:`~vmprobe.result.Result` object
        """
        if self.thresholds is None:
            return self.result_cls(ok, None, metric)
        state = classify(metric.value, self.thresholds)
        return self.result_cls(state, self.thresholds.violation(metric.value), metric)

    def performance(
        self, metric: "Metric", resource: "Resource"
    ) -> typing.Optional[Performance]:
        if not self.perfdata:
            return None
        return Performance(
            metric.name,
            metric.value,
            metric.uom,
            self.thresholds.warning if self.thresholds else None,
            self.thresholds.critical if self.thresholds else None,
            metric.min,
            metric.max,
        )


class MappingContext(Context):
    """Maps keyword or flag values to a fixed state.

    Values missing from :attr:`states` evaluate to :attr:`fallback`.
    """

    states: typing.Mapping[typing.Any, ServiceState]

    fallback: ServiceState

    def __init__(
        self,
        name: str,
        states: typing.Mapping[typing.Any, ServiceState],
        fallback: ServiceState = critical,
        fmt_metric: typing.Optional[FmtMetric] = None,
        result_cls: type[Result] = Result,
    ) -> None:
        super().__init__(name, fmt_metric, result_cls)
        self.states = states
        self.fallback = fallback

    def evaluate(self, metric: "Metric", resource: "Resource") -> Result:
        try:
            state = self.states[metric.value]
        except KeyError:
            return self.result_cls(
                self.fallback, "unrecognised value {0!r}".format(metric.value), metric
            )
        return self.result_cls(state, None, metric)


class Contexts:
    """Container for collecting all generated contexts."""

    by_name: dict[str, Context]

    def __init__(self) -> None:
        self.by_name = dict(default=ThresholdContext("default"), null=Context("null"))

    def add(self, context: Context) -> None:
        self.by_name[context.name] = context

    def __getitem__(self, context_name: str) -> Context:
        try:
            return self.by_name[context_name]
        except KeyError:
            raise KeyError(
                "cannot find context",
                context_name,
                "known contexts: {0}".format(", ".join(self.by_name.keys())),
            )

    def __contains__(self, context_name: str) -> bool:
        return context_name in self.by_name

    def __iter__(self) -> typing.Iterator[str]:
        return iter(self.by_name)
