"""Create status line from results.

This module contains the :class:`Summary` class which serves as base
class to get a status line from the check's :class:`~.result.Results`. A
Summary object is used by :class:`~.check.Check` to obtain a suitable data
:term:`presentation` depending on the check's overall state. Every probe
subclasses it to phrase the status line in its own terms.
"""

import typing

from .state import critical, ok, unknown, warn

if typing.TYPE_CHECKING:
    from .result import Results


class Summary:
    """Creates a summary formatter object.

    This base class takes no parameters in its constructor, but subclasses may
    provide more elaborate constructors that accept parameters to influence
    output creation.
    """

    # pylint: disable-next=no-self-use
    def ok(self, results: "Results") -> str:
        """Formats status line when overall state is ok.

        The default implementation returns a string representation of
        the first result.

        :param results: :class:`~vmprobe.result.Results` container
        :returns: status line
        """
        return "{0}".format(results[0])

    # pylint: disable-next=no-self-use
    def problem(self, results: "Results") -> str:
        """Formats status line when overall state is not ok.

        The default implementation returns a string representation of the
        first significant result, i.e. the result with the "worst"
        state.

        :param results: :class:`~.result.Results` container
        :returns: status line
        """
        return "{0}".format(results.first_significant)

    # pylint: disable-next=no-self-use
    def verbose(self, results: "Results") -> list[str]:
        """Provides extra lines if verbose execution is requested.

        The default implementation lists every non-ok result, prefixed by
        the inventory object it is about.

        :param results: :class:`~.result.Results` container
        :returns: list of strings
        """
        msgs: list[str] = []
        for result in results:
            if result.state == ok:
                continue
            if result.obj is not None:
                msgs.append("{0}: {1}: {2}".format(result.state, result.obj, result))
            else:
                msgs.append("{0}: {1}".format(result.state, result))
        return msgs

    # pylint: disable-next=no-self-use
    def empty(self) -> str:
        """Formats status line when the result set is empty.

        :returns: status line
        """
        return "no check results"


class InventorySummary(Summary):
    """Status line phrased in terms of evaluated inventory objects.

    :param noun: plural name of the evaluated objects, e.g. ``VMs``
    """

    noun: str

    def __init__(self, noun: str = "objects") -> None:
        self.noun = noun

    def _evaluated(self, results: "Results") -> int:
        return len(results.by_object)

    def ok(self, results: "Results") -> str:
        return "{0} {1} evaluated, no problems detected".format(
            self._evaluated(results), self.noun
        )

    def problem(self, results: "Results") -> str:
        first = results.first_significant
        counts = [
            "{0} {1}".format(results.count(state), state)
            for state in (critical, warn)
            if results.count(state)
        ]
        if first.obj is None:
            return "{0}".format(first)
        if first.state == unknown or not counts:
            return "{0}: {1}".format(first.obj, first)
        return "{0} of {1} {2} ({3}: {4})".format(
            ", ".join(counts), self._evaluated(results), self.noun, first.obj, first
        )
