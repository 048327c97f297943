"""Aggregate allocation checks: resource pool memory and virtual CPUs."""

import typing

from vmprobe import __version__
from vmprobe.check import Check
from vmprobe.cli import (
    add_common_options,
    add_pool_options,
    add_threshold_options,
    add_vm_filter_options,
    criteria_from_args,
    setup_argparser,
    thresholds_from_args,
)
from vmprobe.context import ThresholdContext
from vmprobe.error import ConfigurationError
from vmprobe.filters import FilterCriteria, filter_resource_pools, filter_vms
from vmprobe.inventory import Inventory, load_inventory
from vmprobe.metric import Metric
from vmprobe.resource import Resource
from vmprobe.runtime import Runtime, guarded
from vmprobe.summary import Summary
from vmprobe.threshold import ThresholdPair

DEFAULT_MEMORY = ThresholdPair(95, 100, "%")
DEFAULT_VCPUS = ThresholdPair(95, 100, "%")


def _positive(value: float, option: str) -> float:
    if value <= 0:
        raise ConfigurationError(
            "invalid value for --{0}: must be greater than 0".format(option)
        )
    return value


class PoolsMemory(Resource):
    """Memory used by the eligible resource pools relative to an allowed maximum."""

    def __init__(
        self, inventory: Inventory, criteria: FilterCriteria, max_allowed_gb: float
    ) -> None:
        self.pools = filter_resource_pools(inventory.resource_pools, criteria)
        self.max_allowed_gb = max_allowed_gb

    @property
    def name(self) -> str:
        return "VMware Resource Pools Memory"

    @property
    def used_gb(self) -> float:
        return sum(rp.memory_usage_mb for rp in self.pools) / 1024

    def probe(self) -> list[Metric]:
        used = self.used_gb
        return [
            Metric(
                "memory_usage", used / self.max_allowed_gb * 100, "%", min=0
            ),
            Metric(
                "memory_used",
                round(used, 2),
                "GB",
                min=0,
                max=self.max_allowed_gb,
                context="default",
            ),
            Metric("pools_evaluated", len(self.pools), min=0, context="default"),
        ]


class VirtualCPUs(Resource):
    """Virtual CPUs allocated to the in-scope VMs relative to an allowed maximum."""

    def __init__(
        self, inventory: Inventory, criteria: FilterCriteria, max_allowed: int
    ) -> None:
        self.vms = filter_vms(inventory.vms, criteria)
        self.max_allowed = max_allowed

    @property
    def name(self) -> str:
        return "VMware vCPUs"

    @property
    def allocated(self) -> int:
        return sum(vm.num_cpu for vm in self.vms)

    def probe(self) -> list[Metric]:
        allocated = self.allocated
        return [
            Metric("vcpus_usage", allocated / self.max_allowed * 100, "%", min=0),
            Metric(
                "vcpus_allocated",
                allocated,
                min=0,
                max=self.max_allowed,
                context="default",
            ),
            Metric("vms_evaluated", len(self.vms), min=0, context="default"),
        ]


class AllocationSummary(Summary):
    """Status line of an aggregate allocation check."""

    def __init__(self, usage: str, allocated: str, evaluated: str, noun: str) -> None:
        self.usage = usage
        self.allocated = allocated
        self.evaluated = evaluated
        self.noun = noun

    def ok(self, results) -> str:
        usage = results[self.usage]
        line = "{0} of allowed maximum used ({1} across {2} {3})".format(
            usage.metric.valueunit,
            results[self.allocated].metric.valueunit,
            results[self.evaluated].metric.value,
            self.noun,
        )
        if usage.hint:
            line += ", {0}".format(usage.hint)
        return line

    def problem(self, results) -> str:
        if self.usage not in results:
            return super().problem(results)
        return self.ok(results)


@guarded
def main_memory(argv: typing.Optional[list[str]] = None) -> None:
    parser = setup_argparser(
        "vmware_rps_memory",
        __version__,
        description="Evaluates the memory used by resource pools against an "
        "allowed maximum.",
    )
    add_common_options(parser)
    add_pool_options(parser)
    parser.add_argument(
        "--memory-max-allowed",
        type=float,
        required=True,
        help="memory in GB the resource pools may use in total",
    )
    add_threshold_options(parser, "memory-use", DEFAULT_MEMORY, int)
    args = parser.parse_args(argv)
    thresholds = thresholds_from_args(args, "memory-use", DEFAULT_MEMORY)
    max_allowed = _positive(args.memory_max_allowed, "memory-max-allowed")
    criteria = criteria_from_args(args)

    def build() -> Check:
        return Check(
            PoolsMemory(load_inventory(args.inventory), criteria, max_allowed),
            ThresholdContext("memory_usage", thresholds),
            AllocationSummary(
                "memory_usage", "memory_used", "pools_evaluated", "resource pools"
            ),
        )

    Runtime().launch(build, args.verbose, args.timeout)


@guarded
def main_vcpus(argv: typing.Optional[list[str]] = None) -> None:
    parser = setup_argparser(
        "vmware_vcpus",
        __version__,
        description="Evaluates the virtual CPUs allocated to VMs against an "
        "allowed maximum.",
    )
    add_common_options(parser)
    add_vm_filter_options(parser)
    parser.add_argument(
        "--vcpus-max-allowed",
        type=int,
        required=True,
        help="number of virtual CPUs that may be allocated in total",
    )
    add_threshold_options(parser, "vcpus", DEFAULT_VCPUS, int)
    args = parser.parse_args(argv)
    thresholds = thresholds_from_args(args, "vcpus", DEFAULT_VCPUS)
    max_allowed = int(_positive(args.vcpus_max_allowed, "vcpus-max-allowed"))
    criteria = criteria_from_args(args)

    def build() -> Check:
        return Check(
            VirtualCPUs(load_inventory(args.inventory), criteria, max_allowed),
            ThresholdContext("vcpus_usage", thresholds),
            AllocationSummary("vcpus_usage", "vcpus_allocated", "vms_evaluated", "VMs"),
        )

    Runtime().launch(build, args.verbose, args.timeout)
