"""Datastore space usage."""

import typing

from vmprobe import __version__
from vmprobe.check import Check
from vmprobe.cli import (
    add_common_options,
    add_datastore_filter_options,
    add_threshold_options,
    criteria_from_args,
    setup_argparser,
    thresholds_from_args,
)
from vmprobe.context import ThresholdContext
from vmprobe.filters import FilterCriteria, filter_datastores
from vmprobe.inventory import Datastore, GB, Inventory, load_inventory
from vmprobe.metric import Metric
from vmprobe.resource import Resource
from vmprobe.result import Result
from vmprobe.runtime import Runtime, guarded
from vmprobe.summary import InventorySummary
from vmprobe.threshold import ThresholdPair

DEFAULT_USAGE = ThresholdPair(90, 95, "%")


class DatastoreSpace(Resource):
    def __init__(self, inventory: Inventory, criteria: FilterCriteria) -> None:
        self.datastores = filter_datastores(inventory.datastores, criteria)

    @property
    def name(self) -> str:
        return "VMware Datastores"

    def probe(self) -> typing.Generator[Metric, None, None]:
        for ds in self.datastores:
            yield Metric("space_used", ds.used_percent, "%", 0, 100, obj=ds)
        yield Metric(
            "datastores_evaluated", len(self.datastores), min=0, context="default"
        )
        yield Metric(
            "capacity",
            round(sum(ds.capacity for ds in self.datastores) / GB, 2),
            "GB",
            min=0,
            context="default",
        )

    def scope(self) -> list[str]:
        return [ds.id for ds in self.datastores]


class DatastoreSpaceContext(ThresholdContext):
    """Inaccessible datastores are critical regardless of their usage."""

    def evaluate(self, metric: Metric, resource: Resource) -> Result:
        ds: Datastore = metric.obj  # type: ignore
        if not ds.accessible:
            return self.critical("datastore is not accessible", metric)
        return super().evaluate(metric, resource)


@guarded
def main(argv: typing.Optional[list[str]] = None) -> None:
    parser = setup_argparser(
        "vmware_datastore_space",
        __version__,
        description="Evaluates the used space of each datastore in percent.",
    )
    add_common_options(parser)
    add_datastore_filter_options(parser)
    add_threshold_options(parser, "usage", DEFAULT_USAGE, int)
    args = parser.parse_args(argv)
    thresholds = thresholds_from_args(args, "usage", DEFAULT_USAGE)
    criteria = criteria_from_args(args)

    def build() -> Check:
        return Check(
            DatastoreSpace(load_inventory(args.inventory), criteria),
            DatastoreSpaceContext(
                "space_used", thresholds, fmt_metric="{valueunit} used", perfdata=False
            ),
            InventorySummary("datastores"),
        )

    Runtime().launch(build, args.verbose, args.timeout)
