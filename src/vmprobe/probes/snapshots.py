"""Snapshot age, count and size of virtual machines."""

import datetime
import typing

from vmprobe import __version__
from vmprobe.check import Check
from vmprobe.cli import (
    add_common_options,
    add_threshold_options,
    add_vm_filter_options,
    criteria_from_args,
    setup_argparser,
    thresholds_from_args,
)
from vmprobe.context import ThresholdContext
from vmprobe.filters import FilterCriteria, filter_vms
from vmprobe.inventory import GB, Inventory, VirtualMachine, load_inventory
from vmprobe.metric import Metric
from vmprobe.resource import Resource
from vmprobe.runtime import Runtime, guarded
from vmprobe.summary import InventorySummary
from vmprobe.threshold import ThresholdPair

DEFAULT_AGE = ThresholdPair(1, 2, "d")
DEFAULT_COUNT = ThresholdPair(4, 25)
DEFAULT_SIZE = ThresholdPair(20, 40, "GB")


class Snapshots(Resource):
    """One snapshot metric per in-scope VM.

    VMs without snapshots are evaluated too; their age, count and size
    are zero.
    """

    metric: typing.ClassVar[str] = ""
    uom: typing.ClassVar[typing.Optional[str]] = None

    def __init__(
        self,
        inventory: Inventory,
        criteria: FilterCriteria,
        now: typing.Optional[datetime.datetime] = None,
    ) -> None:
        self.inventory = inventory
        self.vms = filter_vms(inventory.vms, criteria)
        self.now = now or inventory.collected or datetime.datetime.now(
            datetime.timezone.utc
        )

    @property
    def name(self) -> str:
        return "VMware Snapshots"

    def value(self, vm: VirtualMachine) -> float:
        raise NotImplementedError

    def probe(self) -> typing.Generator[Metric, None, None]:
        for vm in self.vms:
            yield Metric(self.metric, self.value(vm), self.uom, min=0, obj=vm)
        yield Metric("vms_evaluated", len(self.vms), min=0, context="default")
        yield Metric(
            "vms_with_snapshots",
            sum(1 for vm in self.vms if vm.snapshots),
            min=0,
            context="default",
        )

    def scope(self) -> list[str]:
        return [vm.id for vm in self.vms]


class SnapshotsAge(Snapshots):
    metric = "snapshot_age"
    uom = "d"

    def value(self, vm: VirtualMachine) -> float:
        if not vm.snapshots:
            return 0.0
        return max(s.age_days(self.now) for s in vm.snapshots)


class SnapshotsCount(Snapshots):
    metric = "snapshot_count"

    def value(self, vm: VirtualMachine) -> int:
        return len(vm.snapshots)


class SnapshotsSize(Snapshots):
    metric = "snapshot_size"
    uom = "GB"

    def value(self, vm: VirtualMachine) -> float:
        return vm.snapshots_size / GB


def _run(
    argv: typing.Optional[list[str]],
    name: str,
    description: str,
    stem: str,
    default: ThresholdPair,
    resource_cls: type[Snapshots],
    ascending: bool = True,
) -> None:
    parser = setup_argparser(name, __version__, description=description)
    add_common_options(parser)
    add_vm_filter_options(parser)
    add_threshold_options(
        parser, stem, default, float if resource_cls.uom else int
    )
    args = parser.parse_args(argv)
    thresholds = thresholds_from_args(args, stem, default, ascending)
    criteria = criteria_from_args(args)

    def build() -> Check:
        return Check(
            resource_cls(load_inventory(args.inventory), criteria),
            ThresholdContext(
                resource_cls.metric,
                thresholds,
                fmt_metric="{name} is {valueunit}",
                perfdata=False,
            ),
            InventorySummary("VMs"),
        )

    Runtime().launch(build, args.verbose, args.timeout)


@guarded
def main_age(argv: typing.Optional[list[str]] = None) -> None:
    _run(
        argv,
        "vmware_snapshots_age",
        "Evaluates the age of the oldest snapshot of each VM in days.",
        "age",
        DEFAULT_AGE,
        SnapshotsAge,
    )


@guarded
def main_count(argv: typing.Optional[list[str]] = None) -> None:
    _run(
        argv,
        "vmware_snapshots_count",
        "Evaluates the number of snapshots of each VM.",
        "count",
        DEFAULT_COUNT,
        SnapshotsCount,
        ascending=False,
    )


@guarded
def main_size(argv: typing.Optional[list[str]] = None) -> None:
    _run(
        argv,
        "vmware_snapshots_size",
        "Evaluates the cumulative size of all snapshots of each VM in GB.",
        "size",
        DEFAULT_SIZE,
        SnapshotsSize,
    )
