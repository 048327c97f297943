"""Domain model for data :term:`acquisition`.

:class:`Resource` is the base class for every probe's view on the
inventory. The :class:`~.check.Check` controller calls
:meth:`Resource.probe` on all passed resource objects to acquire
metrics, and :meth:`Resource.scope` to learn which inventory objects
must each end up with exactly one result.
"""

import typing

if typing.TYPE_CHECKING:
    from .metric import Metric


class Resource:
    """Base class for inventory views.

    Subclasses add arguments to the constructor to parametrize
    information retrieval, usually the loaded
    :class:`~vmprobe.inventory.Inventory` and a
    :class:`~vmprobe.filters.FilterCriteria`.
    """

    @property
    def name(self) -> str:
        return self.__class__.__name__

    # pylint: disable=no-self-use
    def probe(
        self,
    ) -> typing.Union[list["Metric"], "Metric", typing.Generator["Metric", None, None]]:
        """Query inventory state and return metrics.

        :return: list of :class:`~vmprobe.metric.Metric` objects,
            or generator that emits :class:`~vmprobe.metric.Metric`
            objects, or single :class:`~vmprobe.metric.Metric`
            object
        """
        return []

    def scope(self) -> typing.Iterable[str]:
        """Identifiers of the in-scope inventory objects.

        The default implementation declares no objects, which disables
        the completeness check for this resource.
        """
        return ()
