"""Per-VM health: power cycle uptime, VMware Tools, disk consolidation and
pending questions."""

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
from vmprobe.context import MappingContext, ThresholdContext
from vmprobe.filters import FilterCriteria, filter_vms
from vmprobe.inventory import Inventory, VirtualMachine, load_inventory
from vmprobe.metric import Metric
from vmprobe.resource import Resource
from vmprobe.runtime import Runtime, guarded
from vmprobe.state import critical, ok, unknown, warn
from vmprobe.summary import InventorySummary
from vmprobe.threshold import ThresholdPair

DEFAULT_UPTIME = ThresholdPair(60, 90, "d")

TOOLS_STATES = {
    "toolsOk": ok,
    "toolsOld": warn,
    "toolsNotRunning": critical,
    "toolsNotInstalled": critical,
}


class VMAttribute(Resource):
    """One metric per in-scope VM, read from a VM attribute."""

    metric: typing.ClassVar[str] = ""
    uom: typing.ClassVar[typing.Optional[str]] = None
    title: typing.ClassVar[str] = "VMware VMs"

    def __init__(self, inventory: Inventory, criteria: FilterCriteria) -> None:
        self.inventory = inventory
        self.vms = filter_vms(inventory.vms, criteria)

    @property
    def name(self) -> str:
        return self.title

    def value(self, vm: VirtualMachine) -> typing.Any:
        raise NotImplementedError

    def probe(self) -> typing.Generator[Metric, None, None]:
        for vm in self.vms:
            yield Metric(self.metric, self.value(vm), self.uom, obj=vm)
        yield Metric("vms_evaluated", len(self.vms), min=0, context="default")

    def scope(self) -> list[str]:
        return [vm.id for vm in self.vms]


class PowerUptime(VMAttribute):
    metric = "uptime"
    uom = "d"
    title = "VMware VM Power Uptime"

    def value(self, vm: VirtualMachine) -> float:
        return vm.uptime_days


class ToolsStatus(VMAttribute):
    metric = "tools_status"
    title = "VMware Tools"

    def value(self, vm: VirtualMachine) -> str:
        return vm.tools_status


class DiskConsolidation(VMAttribute):
    metric = "consolidation_needed"
    title = "VMware Disk Consolidation"

    def value(self, vm: VirtualMachine) -> bool:
        return vm.consolidation_needed


class Questions(VMAttribute):
    metric = "question"
    title = "VMware Interactive Question"

    def value(self, vm: VirtualMachine) -> bool:
        return vm.question is not None


def _describe_question(metric: Metric, context: typing.Any) -> str:
    vm: VirtualMachine = metric.obj  # type: ignore
    if vm.question is None:
        return "no pending question"
    return "pending question: {0}".format(vm.question)


def _parser(name: str, description: str):
    parser = setup_argparser(name, __version__, description=description)
    add_common_options(parser)
    add_vm_filter_options(parser)
    return parser


@guarded
def main_uptime(argv: typing.Optional[list[str]] = None) -> None:
    parser = _parser(
        "vmware_vm_power_uptime",
        "Evaluates how long each VM has been running since its last power cycle.",
    )
    add_threshold_options(parser, "uptime", DEFAULT_UPTIME, int)
    args = parser.parse_args(argv)
    thresholds = thresholds_from_args(args, "uptime", DEFAULT_UPTIME)
    criteria = criteria_from_args(args)

    def build() -> Check:
        return Check(
            PowerUptime(load_inventory(args.inventory), criteria),
            ThresholdContext("uptime", thresholds, perfdata=False),
            InventorySummary("VMs"),
        )

    Runtime().launch(build, args.verbose, args.timeout)


@guarded
def main_tools(argv: typing.Optional[list[str]] = None) -> None:
    parser = _parser("vmware_tools", "Evaluates the VMware Tools status of each VM.")
    args = parser.parse_args(argv)
    criteria = criteria_from_args(args)

    def build() -> Check:
        return Check(
            ToolsStatus(load_inventory(args.inventory), criteria),
            MappingContext(
                "tools_status",
                TOOLS_STATES,
                fallback=unknown,
                fmt_metric="VMware Tools status is {value}",
            ),
            InventorySummary("VMs"),
        )

    Runtime().launch(build, args.verbose, args.timeout)


@guarded
def main_disk_consolidation(argv: typing.Optional[list[str]] = None) -> None:
    parser = _parser(
        "vmware_disk_consolidation",
        "Reports VMs whose virtual disks need consolidation.",
    )
    args = parser.parse_args(argv)
    criteria = criteria_from_args(args)

    def build() -> Check:
        return Check(
            DiskConsolidation(load_inventory(args.inventory), criteria),
            MappingContext(
                "consolidation_needed",
                {False: ok, True: warn},
                fmt_metric=lambda metric, context: (
                    "disk consolidation needed" if metric.value else "disks consolidated"
                ),
            ),
            InventorySummary("VMs"),
        )

    Runtime().launch(build, args.verbose, args.timeout)


@guarded
def main_question(argv: typing.Optional[list[str]] = None) -> None:
    parser = _parser(
        "vmware_question",
        "Reports VMs blocked by a question that needs an interactive answer.",
    )
    args = parser.parse_args(argv)
    criteria = criteria_from_args(args)

    def build() -> Check:
        return Check(
            Questions(load_inventory(args.inventory), criteria),
            MappingContext(
                "question", {False: ok, True: critical}, fmt_metric=_describe_question
            ),
            InventorySummary("VMs"),
        )

    Runtime().launch(build, args.verbose, args.timeout)
