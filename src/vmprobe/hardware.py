"""Virtual hardware version compliance.

Exactly one of four modes is active per probe run:

* :class:`Homogeneous` (default): every VM should be at the newest
  version observed among the in-scope VMs; older VMs are WARNING.
* :class:`OutdatedBy`: how many versions a VM is behind the newest
  observed version is classified against a warning/critical pair.
* :class:`MinimumRequired`: VMs below a fixed version are CRITICAL.
* :class:`DefaultIsMinimum`: VMs below the default version of their host
  or cluster are WARNING.

The "newest observed" baseline of the first two modes is taken from the
in-scope VMs only. It is not the newest version the hosts support, so a
cluster in which every VM is equally outdated is reported as compliant.
"""

import collections
import dataclasses
import logging
import typing

from .context import Context
from .error import CheckError, ConfigurationConflict, ConfigurationError
from .filters import FilterCriteria, filter_vms
from .inventory import Host, Inventory, VirtualMachine
from .metric import Metric
from .resource import Resource
from .result import Result
from .state import ServiceState, critical, ok, warn
from .threshold import ThresholdPair

_log = logging.getLogger(__name__)

VERSION_PREFIX = "vmx-"


def parse_version(value: typing.Optional[str]) -> int:
    """Version number of a ``vmx-NN`` string, -1 if it cannot be parsed."""
    if not value:
        return -1
    try:
        return int(value.lower().removeprefix(VERSION_PREFIX))
    except ValueError:
        return -1


def format_version(version: int) -> str:
    return "{0}{1:02d}".format(VERSION_PREFIX, version)


class HardwareVersionsIndex:
    """Number of VMs per hardware version."""

    counts: collections.Counter[int]

    def __init__(self, versions: typing.Iterable[int] = ()) -> None:
        self.counts = collections.Counter(versions)

    @classmethod
    def from_vms(cls, vms: typing.Iterable[VirtualMachine]) -> "HardwareVersionsIndex":
        return cls(parse_version(vm.hardware_version) for vm in vms)

    def __len__(self) -> int:
        return len(self.counts)

    @property
    def newest(self) -> typing.Optional[int]:
        return max(self.counts) if self.counts else None

    @property
    def oldest(self) -> typing.Optional[int]:
        return min(self.counts) if self.counts else None

    def outdated(self) -> list[int]:
        """Versions older than the newest one, oldest first."""
        newest = self.newest
        return sorted(v for v in self.counts if newest is not None and v < newest)

    def meets_min_version(self, minimum: int) -> bool:
        return all(v >= minimum for v in self.counts)

    def __str__(self) -> str:
        return ", ".join(
            "{0} ({1})".format(format_version(v), self.counts[v])
            for v in sorted(self.counts, reverse=True)
        )


class HardwareMode:
    """Base class of the compliance modes."""

    name: typing.ClassVar[str] = ""

    def baseline(
        self,
        vm: VirtualMachine,
        index: HardwareVersionsIndex,
        inventory: Inventory,
    ) -> typing.Optional[int]:
        return index.newest

    def classify(self, version: int, baseline: int) -> ServiceState:
        raise NotImplementedError


@dataclasses.dataclass(frozen=True)
class Homogeneous(HardwareMode):
    name: typing.ClassVar[str] = "homogeneous"

    def classify(self, version: int, baseline: int) -> ServiceState:
        return warn if version < baseline else ok


@dataclasses.dataclass(frozen=True)
class OutdatedBy(HardwareMode):
    name: typing.ClassVar[str] = "outdated-by"

    warning: int
    critical: int

    def classify(self, version: int, baseline: int) -> ServiceState:
        return ThresholdPair(self.warning, self.critical).classify(baseline - version)


@dataclasses.dataclass(frozen=True)
class MinimumRequired(HardwareMode):
    name: typing.ClassVar[str] = "minimum"

    minimum: int

    def baseline(self, vm, index, inventory) -> int:
        return self.minimum

    def classify(self, version: int, baseline: int) -> ServiceState:
        return critical if version < baseline else ok


@dataclasses.dataclass(frozen=True)
class DefaultIsMinimum(HardwareMode):
    """Compare against the host or cluster default version.

    With *host_name* or *cluster_name* one default applies to all VMs.
    Otherwise each VM uses its own host's default, falling back to the
    host's cluster and then to the inventory-wide default.
    """

    name: typing.ClassVar[str] = "default-is-min"

    host_name: typing.Optional[str] = None
    cluster_name: typing.Optional[str] = None

    def baseline(self, vm, index, inventory) -> int:
        if self.host_name:
            host = inventory.host_by_name(self.host_name)
            if host is None:
                raise CheckError("host {0!r} not found".format(self.host_name))
            default = _host_default(host, inventory)
        elif self.cluster_name:
            cluster = inventory.cluster_by_name(self.cluster_name)
            if cluster is None:
                raise CheckError("cluster {0!r} not found".format(self.cluster_name))
            default = cluster.default_hardware_version
        else:
            host = inventory.host(vm.host)
            default = _host_default(host, inventory) if host else None
        default = default or inventory.default_hardware_version
        version = parse_version(default)
        if version < 0:
            raise CheckError(
                "failed to obtain default hardware version for {0}".format(vm.name)
            )
        return version

    def classify(self, version: int, baseline: int) -> ServiceState:
        return warn if version < baseline else ok


def _host_default(host: Host, inventory: Inventory) -> typing.Optional[str]:
    if host.default_hardware_version:
        return host.default_hardware_version
    cluster = inventory.cluster_by_name(host.cluster)
    return cluster.default_hardware_version if cluster else None


def select_mode(
    outdated_by_warning: typing.Optional[int] = None,
    outdated_by_critical: typing.Optional[int] = None,
    minimum: typing.Optional[int] = None,
    default_is_min: bool = False,
    host_name: typing.Optional[str] = None,
    cluster_name: typing.Optional[str] = None,
) -> HardwareMode:
    """Validates the mode options and returns the selected mode.

    :raises ~vmprobe.error.ConfigurationConflict: if options of more
        than one mode are given, one outdated-by threshold is given
        without the other, or both host and cluster name are given
    :raises ~vmprobe.error.ConfigurationError: for out of range values
    """
    if host_name and cluster_name:
        raise ConfigurationConflict("only one of cluster or host name supported")

    outdated_by = outdated_by_warning is not None or outdated_by_critical is not None
    selected = [
        name
        for name, active in (
            ("outdated-by", outdated_by),
            ("minimum", minimum is not None),
            ("default-is-min", default_is_min),
        )
        if active
    ]
    if len(selected) > 1:
        raise ConfigurationConflict(
            "unsupported plugin mode requested: only one of {0} may be "
            "specified".format(", ".join(selected))
        )

    if minimum is not None:
        # ESX 2.x and older products use hardware version 3
        if minimum < 3:
            raise ConfigurationError(
                "invalid value specified for minimum virtual hardware version"
            )
        return MinimumRequired(minimum)

    if outdated_by:
        if outdated_by_warning is None or outdated_by_critical is None:
            given = "critical" if outdated_by_warning is None else "warning"
            missing = "warning" if outdated_by_warning is None else "critical"
            raise ConfigurationConflict(
                "outdated by {0} threshold specified, but not {1} threshold; "
                "both critical and warning thresholds must be set if using "
                "outdated-by plugin mode".format(given, missing)
            )
        if outdated_by_critical < 1:
            raise ConfigurationError(
                "invalid value specified for outdated by critical threshold"
            )
        if outdated_by_warning < 1:
            raise ConfigurationError(
                "invalid value specified for outdated by warning threshold"
            )
        if outdated_by_critical <= outdated_by_warning:
            raise ConfigurationError(
                "outdated by critical threshold set lower than or equal to "
                "warning threshold"
            )
        return OutdatedBy(outdated_by_warning, outdated_by_critical)

    if default_is_min:
        return DefaultIsMinimum(host_name, cluster_name)

    return Homogeneous()


class HardwareContext(Context):
    """Classifies a VM's version under the mode of its resource."""

    def __init__(self, name: str = "hardware_version") -> None:
        super().__init__(name)

    def evaluate(self, metric: Metric, resource: Resource) -> Result:
        if not isinstance(resource, HardwareVersions):
            raise TypeError(
                "{0} evaluates HardwareVersions metrics, not {1}".format(
                    type(self).__name__, type(resource).__name__
                )
            )
        baseline = resource.baseline(metric.obj)  # type: ignore
        state = resource.mode.classify(metric.value, baseline)
        if state == ok:
            return self.ok(None, metric)
        if isinstance(resource.mode, OutdatedBy):
            hint = "{0} versions behind {1}".format(
                baseline - metric.value, format_version(baseline)
            )
        else:
            hint = "below {0} baseline {1}".format(
                resource.mode.name, format_version(baseline)
            )
        return self.result_cls(state, hint, metric)

    def describe(self, metric: Metric) -> str:
        return "{0} is at {1}".format(metric.obj, format_version(metric.value))


class HardwareVersions(Resource):
    """Hardware version of every in-scope VM."""

    def __init__(
        self, inventory: Inventory, criteria: FilterCriteria, mode: HardwareMode
    ) -> None:
        self.inventory = inventory
        self.criteria = criteria
        self.mode = mode
        self.vms = filter_vms(inventory.vms, criteria)
        self.index = HardwareVersionsIndex.from_vms(self.vms)
        _log.info(
            "hardware versions in scope: %s (mode %s)", self.index or "none", mode.name
        )

    @property
    def name(self) -> str:
        return "VMware Virtual Hardware"

    def baseline(self, vm: VirtualMachine) -> int:
        baseline = self.mode.baseline(vm, self.index, self.inventory)
        if baseline is None:
            raise CheckError("no baseline hardware version for {0}".format(vm.name))
        _log.debug("VM %s baseline %s", vm.name, format_version(baseline))
        return baseline

    def probe(self) -> typing.Generator[Metric, None, None]:
        for vm in self.vms:
            yield Metric(
                "hardware_version",
                parse_version(vm.hardware_version),
                context="hardware_version",
                obj=vm,
            )
        yield Metric("vms_evaluated", len(self.vms), min=0, context="default")
        yield Metric(
            "hardware_versions", len(self.index), min=0, context="default"
        )

    def scope(self) -> list[str]:
        return [vm.id for vm in self.vms]
