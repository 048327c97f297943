"""Host/datastore/VM pairing by custom attribute.

Hosts and datastores are tagged with an operator-defined custom
attribute. A comparison key is derived from the attribute value, by
default the whole value, or only the part before the first occurrence of
a separator character. A VM is correctly placed if every datastore
backing it has the same key as the host the VM currently runs on. Keys
are compared case-insensitively.

The evaluation is split in two steps: :func:`resolve_pairings` is a pure
function that produces a :class:`PairingReport`, and
:class:`HostDatastorePairings` turns that report into metrics.
"""

import dataclasses
import logging
import typing

from .context import Context
from .error import ConfigurationConflict, ConfigurationError, MissingRequiredAttribute
from .filters import FilterCriteria, filter_datastores, filter_vms
from .inventory import (
    CustomAttributes,
    Datastore,
    Host,
    Inventory,
    InventoryObject,
    VirtualMachine,
)
from .metric import Metric
from .resource import Resource
from .result import Result

_log = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class PairingConfig:
    """Resolved attribute names and separators.

    Whether the operator configured a shared attribute or one per
    resource kind is no longer visible here.
    """

    host_attribute: str
    datastore_attribute: str
    host_separator: typing.Optional[str] = None
    datastore_separator: typing.Optional[str] = None
    ignore_missing: bool = False

    @classmethod
    def resolve(
        cls,
        shared_attribute: typing.Optional[str] = None,
        host_attribute: typing.Optional[str] = None,
        datastore_attribute: typing.Optional[str] = None,
        shared_separator: typing.Optional[str] = None,
        host_separator: typing.Optional[str] = None,
        datastore_separator: typing.Optional[str] = None,
        ignore_missing: bool = False,
    ) -> "PairingConfig":
        """Validates the attribute options and resolves them.

        :raises ~vmprobe.error.ConfigurationConflict: if shared and
            per-resource settings are mixed, or only one of the
            per-resource settings is given
        """
        shared_attribute = shared_attribute or None
        host_attribute = host_attribute or None
        datastore_attribute = datastore_attribute or None
        shared_separator = shared_separator or None
        host_separator = host_separator or None
        datastore_separator = datastore_separator or None

        if shared_attribute and (host_attribute or datastore_attribute):
            raise ConfigurationConflict(
                "only one of shared or resource-specific Custom Attribute name "
                "may be specified"
            )
        if not shared_attribute and not (host_attribute or datastore_attribute):
            raise ConfigurationError(
                "Custom Attribute name for host and datastore not specified"
            )
        if not shared_attribute and not (host_attribute and datastore_attribute):
            raise ConfigurationConflict(
                "resource-specific Custom Attribute names must be specified for "
                "both host and datastore"
            )

        if shared_separator and (host_separator or datastore_separator):
            raise ConfigurationConflict(
                "only one of shared or resource-specific Custom Attribute prefix "
                "separator may be specified"
            )
        if bool(host_separator) != bool(datastore_separator):
            raise ConfigurationConflict(
                "resource-specific Custom Attribute prefix separators must be "
                "specified for both host and datastore"
            )
        for separator in (shared_separator, host_separator, datastore_separator):
            if separator is not None and len(separator) != 1:
                raise ConfigurationError(
                    "Custom Attribute prefix separator must be a single character, "
                    "got {0!r}".format(separator)
                )

        return cls(
            host_attribute=host_attribute or shared_attribute,  # type: ignore
            datastore_attribute=datastore_attribute or shared_attribute,  # type: ignore
            host_separator=host_separator or shared_separator,
            datastore_separator=datastore_separator or shared_separator,
            ignore_missing=ignore_missing,
        )


def derive_key(value: str, separator: typing.Optional[str] = None) -> str:
    """Comparison key of a custom attribute *value*.

    With a *separator*, the part before its first occurrence; the whole
    value if the separator does not occur.
    """
    if separator:
        return value.split(separator, 1)[0]
    return value


def object_key(
    obj: InventoryObject,
    attributes: CustomAttributes,
    attribute: str,
    separator: typing.Optional[str] = None,
) -> str:
    """Derives the comparison key of *obj*.

    :raises ~vmprobe.error.MissingRequiredAttribute: if *obj* has no
        value for *attribute*
    """
    value = attributes.get(obj.id, attribute)
    if value is None:
        raise MissingRequiredAttribute(obj.name, attribute)
    return derive_key(value, separator)


@dataclasses.dataclass(frozen=True)
class VMPairing:
    """Pairing outcome of one VM."""

    vm: VirtualMachine
    host: typing.Optional[Host]
    host_key: typing.Optional[str]
    mismatched: tuple[Datastore, ...] = ()

    @property
    def evaluated(self) -> bool:
        return self.host_key is not None

    def __str__(self) -> str:
        if not self.evaluated:
            return "not evaluated"
        if self.mismatched:
            return "mismatched"
        return "paired"


@dataclasses.dataclass(frozen=True)
class PairingReport:
    vms: tuple[VMPairing, ...]
    missing: tuple[tuple[InventoryObject, MissingRequiredAttribute], ...]
    host_keys: dict[str, str]
    datastore_keys: dict[str, str]

    @property
    def mismatched(self) -> tuple[VMPairing, ...]:
        return tuple(p for p in self.vms if p.mismatched)

    def pairings(
        self, hosts: typing.Iterable[Host], datastores: typing.Iterable[Datastore]
    ) -> dict[str, list[str]]:
        """Host name to the names of the datastores sharing its key."""
        datastores = list(datastores)
        paired: dict[str, list[str]] = {}
        for host in hosts:
            key = self.host_keys.get(host.id)
            if key is None:
                continue
            paired[host.name] = sorted(
                ds.name for ds in datastores if self.datastore_keys.get(ds.id) == key
            )
        return paired


def _key_index(
    objects: typing.Iterable[InventoryObject],
    attributes: CustomAttributes,
    attribute: str,
    separator: typing.Optional[str],
    ignore_missing: bool,
) -> tuple[dict[str, str], list[tuple[InventoryObject, MissingRequiredAttribute]]]:
    keys: dict[str, str] = {}
    missing: list[tuple[InventoryObject, MissingRequiredAttribute]] = []
    for obj in objects:
        try:
            keys[obj.id] = object_key(obj, attributes, attribute, separator).lower()
        except MissingRequiredAttribute as e:
            if ignore_missing:
                _log.debug("%s skipped from pairing: %s", obj.name, e)
            else:
                missing.append((obj, e))
    return keys, missing


def resolve_pairings(
    vms: typing.Iterable[VirtualMachine],
    hosts: typing.Iterable[Host],
    datastores: typing.Iterable[Datastore],
    attributes: CustomAttributes,
    config: PairingConfig,
    ignore_datastore_names: typing.Iterable[str] = (),
) -> PairingReport:
    """Compares the host key of every VM with its datastores' keys.

    *datastores* must already be reduced by the datastore ignore list;
    *ignore_datastore_names* additionally drops those names from the
    per-VM comparison.
    """
    hosts = tuple(hosts)
    datastores = tuple(datastores)
    ignored = {name.lower() for name in ignore_datastore_names}
    host_keys, missing_hosts = _key_index(
        hosts,
        attributes,
        config.host_attribute,
        config.host_separator,
        config.ignore_missing,
    )
    ds_keys, missing_ds = _key_index(
        datastores,
        attributes,
        config.datastore_attribute,
        config.datastore_separator,
        config.ignore_missing,
    )
    hosts_by_id = {host.id: host for host in hosts}
    ds_by_id = {ds.id: ds for ds in datastores}

    results: list[VMPairing] = []
    for vm in vms:
        host = hosts_by_id.get(vm.host) if vm.host else None
        host_key = host_keys.get(host.id) if host else None
        if host_key is None:
            _log.debug("VM %s: host without pairing key, not evaluated", vm.name)
            results.append(VMPairing(vm, host, None))
            continue
        mismatched: list[Datastore] = []
        for ds_id in vm.datastores:
            ds = ds_by_id.get(ds_id)
            if ds is None:
                _log.debug("VM %s: datastore %s not in scope", vm.name, ds_id)
                continue
            if ds.name.lower() in ignored:
                continue
            ds_key = ds_keys.get(ds.id)
            if ds_key is None:
                continue
            if ds_key != host_key:
                mismatched.append(ds)
        mismatched.sort(key=lambda ds: ds.name)
        if mismatched:
            _log.debug(
                "VM %s on host %s: mismatched datastores %s",
                vm.name,
                host.name,  # type: ignore
                ", ".join(ds.name for ds in mismatched),
            )
        results.append(VMPairing(vm, host, host_key, tuple(mismatched)))

    return PairingReport(
        vms=tuple(results),
        missing=tuple(missing_hosts + missing_ds),
        host_keys=host_keys,
        datastore_keys=ds_keys,
    )


class PairingContext(Context):
    def __init__(self, name: str = "pairing") -> None:
        super().__init__(name)

    def evaluate(self, metric: Metric, resource: Resource) -> Result:
        pairing: VMPairing = metric.value
        if not pairing.evaluated:
            host = pairing.host.name if pairing.host else "unknown host"
            return self.ok("not evaluated, {0} has no pairing key".format(host), metric)
        if pairing.mismatched:
            return self.critical(
                "datastores {0} not paired with host {1}".format(
                    ", ".join(ds.name for ds in pairing.mismatched),
                    pairing.host.name,  # type: ignore
                ),
                metric,
            )
        return self.ok(None, metric)

    def describe(self, metric: Metric) -> str:
        return "{0} {1}".format(metric.obj, metric.value)


class MissingAttributeContext(Context):
    def __init__(self, name: str = "missing_attribute") -> None:
        super().__init__(name)

    def evaluate(self, metric: Metric, resource: Resource) -> Result:
        return self.critical(str(metric.value), metric)


class HostDatastorePairings(Resource):
    """Pairing findings for every in-scope VM.

    Hosts and datastores lacking the attribute get a finding of their
    own unless missing attributes are ignored.
    """

    def __init__(
        self, inventory: Inventory, criteria: FilterCriteria, config: PairingConfig
    ) -> None:
        self.inventory = inventory
        self.criteria = criteria
        self.config = config
        self.vms = filter_vms(inventory.vms, criteria)
        self.datastores = filter_datastores(inventory.datastores, criteria)
        self._report: typing.Optional[PairingReport] = None

    @property
    def name(self) -> str:
        return "VMware Host/Datastore/VM Pairings"

    @property
    def report(self) -> PairingReport:
        if self._report is None:
            self._report = resolve_pairings(
                self.vms,
                self.inventory.hosts,
                self.datastores,
                self.inventory.custom_attributes,
                self.config,
                self.criteria.ignore_datastore_names,
            )
        return self._report

    def probe(self) -> typing.Generator[Metric, None, None]:
        for obj, error in self.report.missing:
            yield Metric("custom_attribute", error, context="missing_attribute", obj=obj)
        for pairing in self.report.vms:
            yield Metric("pairing", pairing, context="pairing", obj=pairing.vm)
        yield Metric("vms_evaluated", len(self.vms), min=0, context="default")
        yield Metric(
            "vms_mismatched", len(self.report.mismatched), min=0, context="default"
        )

    def scope(self) -> list[str]:
        return [vm.id for vm in self.vms] + [obj.id for obj, _ in self.report.missing]
