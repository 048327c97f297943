"""Outcomes from evaluating metrics in contexts.

The :class:`Result` class is the per-object evaluation record. The
:class:`Results` class (plural form) is the aggregator: it retains every
result, indexes them, reduces them to one overall state and verifies
that every in-scope object was evaluated exactly once.
"""

import collections
import typing
from typing import Optional, Union

from .error import EvaluationGap
from .state import ServiceState

if typing.TYPE_CHECKING:
    from .context import Context
    from .inventory import InventoryObject
    from .metric import Metric
    from .resource import Resource


class Result:
    """Evaluation outcome consisting of state and explanation.

    A Result object is typically emitted by a
    :class:`~vmprobe.context.Context` object. It contains a
    :class:`~vmprobe.state.ServiceState`, a reason (:attr:`hint`) and
    the metric that was evaluated, which in turn references the
    inventory object and the observed value.
    """

    state: "ServiceState"

    hint: Optional[str]

    metric: Optional["Metric"]

    def __init__(
        self,
        state: "ServiceState",
        hint: Optional[str] = None,
        metric: Optional["Metric"] = None,
    ) -> None:
        self.state = state
        self.hint = hint
        self.metric = metric

    def __str__(self) -> str:
        """Textual result explanation.

        The result explanation is taken from :attr:`metric.description`
        (if a metric has been passed to the constructur), followed
        optionally by the value of :attr:`hint`.

        :returns: result explanation or empty string
        """
        if self.metric and self.metric.description:
            desc = self.metric.description
        else:
            desc = None

        if self.hint and desc:
            return "{0} ({1})".format(desc, self.hint)
        if self.hint:
            return self.hint
        if desc:
            return desc
        return ""

    def __repr__(self) -> str:
        return "Result({0!r}, {1!r}, {2!r})".format(self.state, self.hint, self.metric)

    @property
    def resource(self) -> Optional["Resource"]:
        """Reference to the resource used to generate this result."""
        if not self.metric:
            return None
        return self.metric.resource

    @property
    def context(self) -> Optional["Context"]:
        """Reference to the context used to generate this result."""
        if not self.metric:
            return None
        return self.metric.contextobj

    @property
    def obj(self) -> Optional["InventoryObject"]:
        """The inventory object this result is about."""
        if not self.metric:
            return None
        return self.metric.obj

    @property
    def value(self) -> typing.Any:
        """The observed value or key."""
        if not self.metric:
            return None
        return self.metric.value

    def __eq__(self, value: object) -> bool:
        if not isinstance(value, Result):
            return False
        return (
            self.state == value.state
            and self.hint == value.hint
            and self.metric == value.metric
        )

    def __hash__(self) -> int:
        return hash((self.state, self.hint, self.metric))


class Results:
    """Container for result sets.

    This class manages a set of results and provides convenient access
    methods by index, name, inventory object, or result state. It is
    meant to make queries in :class:`~.summary.Summary` implementations
    compact and readable.

    The constructor accepts an arbitrary number of result objects and
    adds them to the container.
    """

    results: list[Result]
    by_state: dict["ServiceState", list[Result]]
    by_name: dict[str, Result]
    by_object: dict[str, list[Result]]

    def __init__(self, *results: Result) -> None:
        self.results = []
        self.by_state = collections.defaultdict(list)
        self.by_name = {}
        self.by_object = collections.defaultdict(list)
        if results:
            self.add(*results)

    def add(self, *results: Result):
        """Adds more results to the container.

        :raises ValueError: if `result` is not a :class:`Result` object
        """
        for result in results:
            if not isinstance(result, Result):  # type: ignore
                raise ValueError(
                    "trying to add non-Result to Results container", result
                )
            self.results.append(result)
            self.by_state[result.state].append(result)
            if result.metric is not None:
                self.by_name[result.metric.name] = result
            if result.obj is not None:
                self.by_object[result.obj.id].append(result)
        return self

    def __iter__(self):
        """Iterates over all results.

        The iterator is sorted in order of decreasing state
        significance (unknown > critical > warning > ok).

        :returns: result object iterator
        """
        for state in reversed(sorted(self.by_state)):
            for result in self.by_state[state]:
                yield result

    def __len__(self):
        """Number of results in this container."""
        return len(self.results)

    def __getitem__(self, item: Union[int, str]) -> Result:
        """Access result by index or name.

        :returns: :class:`Result` object
        :raises KeyError: if no matching result is found
        """
        if isinstance(item, int):
            return self.results[item]
        return self.by_name[item]

    def __contains__(self, name: str) -> bool:
        """Tests if a result with given name is present."""
        return name in self.by_name

    def count(self, state: "ServiceState") -> int:
        """Number of results with *state*."""
        return len(self.by_state.get(state, ()))

    def objects(self, state: "ServiceState") -> list["InventoryObject"]:
        """Inventory objects whose result has *state*."""
        return [r.obj for r in self.by_state.get(state, ()) if r.obj is not None]

    def verify(self, expected: typing.Iterable[str]) -> None:
        """Checks that every id in *expected* has exactly one result.

        :raises ~vmprobe.error.EvaluationGap: listing the ids without a
            result and the ids with more than one
        """
        missing: list[str] = []
        duplicated: list[str] = []
        for obj_id in expected:
            produced = len(self.by_object.get(obj_id, ()))
            if produced == 0:
                missing.append(obj_id)
            elif produced > 1:
                duplicated.append(obj_id)
        if missing or duplicated:
            problems: list[str] = []
            if missing:
                problems.append("no result for {0}".format(", ".join(missing)))
            if duplicated:
                problems.append(
                    "multiple results for {0}".format(", ".join(duplicated))
                )
            raise EvaluationGap("incomplete evaluation: " + "; ".join(problems))

    @property
    def most_significant_state(self) -> "ServiceState":
        """The "worst" state found in all results.

        :returns: :obj:`~vmprobe.state.ServiceState` object
        :raises ValueError: if no results are present
        """
        return max(self.by_state.keys())

    @property
    def most_significant(self) -> list[Result]:
        """Returns list of results with most significant state.

        :returns: list of :class:`Result` objects or empty list if no
            results are present
        """
        try:
            return self.by_state[self.most_significant_state]
        except ValueError:
            return []

    @property
    def first_significant(self) -> Result:
        """Selects one of the results with most significant state.

        :returns: :class:`Result` object
        :raises IndexError: if no results are present
        """
        return self.most_significant[0]
