"""Check controller.

A :class:`Check` wires one or more resources to the contexts that
evaluate their metrics and to the summary that phrases the outcome.
Calling it runs the evaluation. Commands hand a function that builds
the check to :meth:`~.runtime.Runtime.launch`, which runs it, prints the
plugin output and exits. :meth:`Check.main` does the same for a check
that is already built.

Each resource is evaluated as a unit. Its results only reach
:attr:`Check.results` once every object named by
:meth:`~.resource.Resource.scope` has exactly one result. A resource
that fails half way contributes a single UNKNOWN result instead.
"""

import logging
import typing
from typing import Any, NoReturn, Optional

from .context import Context, Contexts
from .error import CheckError
from .metric import Metric
from .resource import Resource
from .result import Result, Results
from .runtime import Runtime
from .state import ServiceState, ok, unknown
from .summary import Summary

_log = logging.getLogger(__name__)

Component = typing.Union[Resource, Context, Summary, Results]


class Check:
    resources: list[Resource]
    contexts: Contexts
    summary: Summary
    results: Results
    perfdata: list[str]
    name: str

    def __init__(self, *components: Component, name: Optional[str] = None) -> None:
        """Creates a check from its *components*.

        Resources, contexts, a summary and a results container may be
        passed in any order, see :meth:`add`. The status line prefix is
        *name*, or the name of the first resource.
        """
        self.resources = []
        self.contexts = Contexts()
        self.summary = Summary()
        self.results = Results()
        self.perfdata = []
        self.name = name or ""
        self.add(*components)

    def add(self, *components: Component) -> "Check":
        for component in components:
            if isinstance(component, Resource):
                self.resources.append(component)
                self.name = self.name or component.name
            elif isinstance(component, Context):
                self.contexts.add(component)
            elif isinstance(component, Summary):
                self.summary = component
            elif isinstance(component, Results):
                self.results = component
            else:
                raise TypeError(
                    "cannot add type {0} to check".format(type(component)), component
                )
        return self

    @staticmethod
    def _evaluate(metric: Metric) -> Result:
        outcome = metric.evaluate()
        if isinstance(outcome, ServiceState):
            outcome = Result(outcome, metric=metric)
        if not isinstance(outcome, Result):
            raise ValueError(
                "evaluate() returned neither Result nor ServiceState object",
                metric.name,
                outcome,
            )
        return outcome

    def _evaluate_resource(self, resource: Resource) -> None:
        produced = Results()
        perfdata: list[str] = []
        current: Optional[Metric] = None
        try:
            metrics = resource.probe()
            if isinstance(metrics, Metric):
                metrics = [metrics]
            for current in metrics:
                current = current.replace(
                    contextobj=self.contexts[current.context], resource=resource
                )
                produced.add(self._evaluate(current))
                perfdata.append(str(current.performance() or ""))
            current = None
            if not produced:
                _log.warning("resource %s did not produce any metric", resource.name)
            produced.verify(resource.scope())
        except CheckError as e:
            _log.debug("resource %s aborted: %s", resource.name, e)
            self.results.add(Result(unknown, str(e), current))
            return
        _log.debug("resource %s: %d results", resource.name, len(produced))
        self.results.add(*produced.results)
        self.perfdata.extend(p for p in perfdata if p)

    def __call__(self) -> None:
        """Runs the resources and fills :attr:`results` and :attr:`perfdata`."""
        for resource in self.resources:
            self._evaluate_resource(resource)
        self.perfdata.sort()

    def main(self, verbose: Any = None, timeout: Any = None) -> NoReturn:
        """Runs the check inside the :class:`~.runtime.Runtime` and exits.

        :param verbose: output verbosity level between 0 and 3
        :param timeout: seconds after which the run is aborted with a
            :exc:`~.error.Timeout` (0 disables the limit)
        """
        Runtime().execute(self, verbose, timeout)

    @property
    def state(self) -> ServiceState:
        """Worst state among :attr:`results`, unknown before the run."""
        if not self.results:
            return unknown
        return self.results.most_significant_state

    @property
    def summary_str(self) -> str:
        if not self.results:
            return self.summary.empty() or ""
        if self.state == ok:
            return self.summary.ok(self.results) or ""
        return self.summary.problem(self.results) or ""

    @property
    def verbose_str(self):
        return self.summary.verbose(self.results) or ""

    @property
    def exitcode(self) -> int:
        return int(self.state)
