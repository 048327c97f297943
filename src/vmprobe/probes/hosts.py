"""Host CPU and memory usage."""

import typing

from vmprobe import __version__
from vmprobe.check import Check
from vmprobe.cli import (
    add_common_options,
    add_threshold_options,
    setup_argparser,
    thresholds_from_args,
)
from vmprobe.context import ThresholdContext
from vmprobe.inventory import Host, Inventory, load_inventory
from vmprobe.metric import Metric
from vmprobe.multiarg import MultiArg
from vmprobe.resource import Resource
from vmprobe.runtime import Runtime, guarded
from vmprobe.summary import InventorySummary
from vmprobe.threshold import ThresholdPair

DEFAULT_CPU = ThresholdPair(80, 95, "%")
DEFAULT_MEMORY = ThresholdPair(80, 95, "%")


class HostUsage(Resource):
    """Usage percentage of every host, optionally limited to named hosts."""

    metric: typing.ClassVar[str] = ""

    def __init__(
        self, inventory: Inventory, host_names: typing.Iterable[str] = ()
    ) -> None:
        wanted = {name.lower() for name in host_names}
        self.hosts = tuple(
            h for h in inventory.hosts if not wanted or h.name.lower() in wanted
        )

    @property
    def name(self) -> str:
        return "VMware Hosts"

    def value(self, host: Host) -> float:
        raise NotImplementedError

    def probe(self) -> typing.Generator[Metric, None, None]:
        for host in self.hosts:
            yield Metric(self.metric, self.value(host), "%", 0, 100, obj=host)
        yield Metric("hosts_evaluated", len(self.hosts), min=0, context="default")

    def scope(self) -> list[str]:
        return [h.id for h in self.hosts]


class HostCPU(HostUsage):
    metric = "cpu_usage"

    def value(self, host: Host) -> float:
        return host.cpu_usage_percent


class HostMemory(HostUsage):
    metric = "memory_usage"

    def value(self, host: Host) -> float:
        return host.memory_usage_percent


def _run(
    argv: typing.Optional[list[str]],
    name: str,
    description: str,
    stem: str,
    default: ThresholdPair,
    resource_cls: type[HostUsage],
) -> None:
    parser = setup_argparser(name, __version__, description=description)
    add_common_options(parser)
    parser.add_argument(
        "--host-name", default="", help="comma separated host names to evaluate"
    )
    add_threshold_options(parser, stem, default, int)
    args = parser.parse_args(argv)
    thresholds = thresholds_from_args(args, stem, default)

    def build() -> Check:
        return Check(
            resource_cls(load_inventory(args.inventory), MultiArg(args.host_name)),
            ThresholdContext(
                resource_cls.metric,
                thresholds,
                fmt_metric="{valueunit} used",
                perfdata=False,
            ),
            InventorySummary("hosts"),
        )

    Runtime().launch(build, args.verbose, args.timeout)


@guarded
def main_cpu(argv: typing.Optional[list[str]] = None) -> None:
    _run(
        argv,
        "vmware_host_cpu",
        "Evaluates the CPU usage of each host in percent.",
        "cpu-usage",
        DEFAULT_CPU,
        HostCPU,
    )


@guarded
def main_memory(argv: typing.Optional[list[str]] = None) -> None:
    _run(
        argv,
        "vmware_host_memory",
        "Evaluates the memory usage of each host in percent.",
        "memory-usage",
        DEFAULT_MEMORY,
        HostMemory,
    )
