"""Point-in-time snapshot of a vSphere inventory.

Objects are materialized fresh for every probe invocation and never
mutated afterwards. The snapshot is read from a JSON document written by
an external collector, see :func:`load_inventory`.

Relations between objects are plain identifiers (a VM names its host and
datastores by id). Nothing in a snapshot owns anything else.
"""

import dataclasses
import datetime
import json
import logging
import typing

from . import snapshot
from .error import UpstreamDataUnavailable

_log = logging.getLogger(__name__)

POWERED_ON = "poweredOn"
POWERED_OFF = "poweredOff"
SUSPENDED = "suspended"

HOST = "HostSystem"
DATASTORE = "Datastore"
VIRTUAL_MACHINE = "VirtualMachine"
RESOURCE_POOL = "ResourcePool"
CLUSTER = "ClusterComputeResource"
ALARM = "Alarm"

GB = 1024**3


@dataclasses.dataclass(frozen=True, kw_only=True)
class InventoryObject:
    kind: typing.ClassVar[str] = ""

    id: str
    name: str
    datacenter: typing.Optional[str] = None

    def __str__(self) -> str:
        return self.name


@dataclasses.dataclass(frozen=True, kw_only=True)
class Cluster(InventoryObject):
    kind: typing.ClassVar[str] = CLUSTER

    default_hardware_version: typing.Optional[str] = None


@dataclasses.dataclass(frozen=True, kw_only=True)
class Host(InventoryObject):
    kind: typing.ClassVar[str] = HOST

    cluster: typing.Optional[str] = None
    default_hardware_version: typing.Optional[str] = None
    cpu_usage_mhz: int = 0
    cpu_total_mhz: int = 0
    memory_usage_mb: int = 0
    memory_total_mb: int = 0

    @property
    def cpu_usage_percent(self) -> float:
        if not self.cpu_total_mhz:
            return 0.0
        return self.cpu_usage_mhz / self.cpu_total_mhz * 100

    @property
    def memory_usage_percent(self) -> float:
        if not self.memory_total_mb:
            return 0.0
        return self.memory_usage_mb / self.memory_total_mb * 100


@dataclasses.dataclass(frozen=True, kw_only=True)
class Datastore(InventoryObject):
    kind: typing.ClassVar[str] = DATASTORE

    capacity: int = 0
    free_space: int = 0
    accessible: bool = True

    @property
    def used_percent(self) -> float:
        if not self.capacity:
            return 0.0
        return 100 - self.free_space / self.capacity * 100


@dataclasses.dataclass(frozen=True, kw_only=True)
class Snapshot:
    id: str
    name: str
    created: datetime.datetime
    size: int = 0

    def age_days(self, now: datetime.datetime) -> float:
        return (now - self.created).total_seconds() / 86400


@dataclasses.dataclass(frozen=True, kw_only=True)
class VirtualMachine(InventoryObject):
    kind: typing.ClassVar[str] = VIRTUAL_MACHINE

    power_state: str = POWERED_ON
    host: typing.Optional[str] = None
    resource_pool: typing.Optional[str] = None
    datastores: tuple[str, ...] = ()
    hardware_version: str = ""
    snapshots: tuple[Snapshot, ...] = ()
    tools_status: str = "toolsOk"
    uptime_seconds: int = 0
    consolidation_needed: bool = False
    question: typing.Optional[str] = None
    num_cpu: int = 0

    @property
    def powered_on(self) -> bool:
        return self.power_state == POWERED_ON

    @property
    def uptime_days(self) -> float:
        return self.uptime_seconds / 86400

    @property
    def snapshots_size(self) -> int:
        return sum(s.size for s in self.snapshots)


@dataclasses.dataclass(frozen=True, kw_only=True)
class ResourcePool(InventoryObject):
    kind: typing.ClassVar[str] = RESOURCE_POOL

    memory_usage_mb: int = 0


@dataclasses.dataclass(frozen=True, kw_only=True)
class AlarmEntity:
    id: str
    name: str
    kind: str


@dataclasses.dataclass(frozen=True, kw_only=True)
class Alarm(InventoryObject):
    kind: typing.ClassVar[str] = ALARM

    description: str = ""
    entity: AlarmEntity
    status: str = "red"
    acknowledged: bool = False
    triggered: typing.Optional[datetime.datetime] = None


class CustomAttributes:
    """Custom attribute values keyed by object id and attribute name.

    An absent value is reported as ``None``, which is distinct from a
    value that is set to the empty string.
    """

    values: dict[str, dict[str, str]]

    def __init__(
        self, values: typing.Optional[typing.Mapping[str, typing.Mapping[str, str]]] = None
    ) -> None:
        self.values = {
            obj_id: dict(attrs) for obj_id, attrs in (values or {}).items()
        }

    def get(self, obj_id: str, name: str) -> typing.Optional[str]:
        return self.values.get(obj_id, {}).get(name)

    def __contains__(self, key: tuple[str, str]) -> bool:
        return self.get(*key) is not None

    def __len__(self) -> int:
        return sum(len(attrs) for attrs in self.values.values())


@dataclasses.dataclass(frozen=True, kw_only=True)
class Inventory:
    hosts: tuple[Host, ...] = ()
    clusters: tuple[Cluster, ...] = ()
    datastores: tuple[Datastore, ...] = ()
    vms: tuple[VirtualMachine, ...] = ()
    resource_pools: tuple[ResourcePool, ...] = ()
    alarms: tuple[Alarm, ...] = ()
    custom_attributes: CustomAttributes = dataclasses.field(
        default_factory=CustomAttributes
    )
    default_hardware_version: typing.Optional[str] = None
    collected: typing.Optional[datetime.datetime] = None

    def host(self, host_id: typing.Optional[str]) -> typing.Optional[Host]:
        for host in self.hosts:
            if host.id == host_id:
                return host
        return None

    def host_by_name(self, name: str) -> typing.Optional[Host]:
        for host in self.hosts:
            if host.name.lower() == name.lower():
                return host
        return None

    def cluster_by_name(self, name: typing.Optional[str]) -> typing.Optional[Cluster]:
        if name is None:
            return None
        for cluster in self.clusters:
            if cluster.name.lower() == name.lower():
                return cluster
        return None

    def datastore(self, ds_id: str) -> typing.Optional[Datastore]:
        for datastore in self.datastores:
            if datastore.id == ds_id:
                return datastore
        return None

    @classmethod
    def from_dict(cls, data: typing.Mapping[str, typing.Any]) -> "Inventory":
        """Builds an inventory from a decoded JSON document.

        :raises UpstreamDataUnavailable: if required fields are missing,
            unknown fields are present or a field has the wrong type
        """
        try:
            doc = snapshot.InventoryDocument.model_validate(data)
        except snapshot.ValidationError as e:
            raise UpstreamDataUnavailable(
                "malformed inventory snapshot: {0}".format(snapshot.describe(e))
            )
        return cls(
            hosts=tuple(Host(**h.model_dump()) for h in doc.hosts),
            clusters=tuple(Cluster(**c.model_dump()) for c in doc.clusters),
            datastores=tuple(Datastore(**d.model_dump()) for d in doc.datastores),
            vms=tuple(_vm_from_document(vm) for vm in doc.vms),
            resource_pools=tuple(
                ResourcePool(**rp.model_dump()) for rp in doc.resource_pools
            ),
            alarms=tuple(_alarm_from_document(a) for a in doc.alarms),
            custom_attributes=CustomAttributes(doc.custom_attributes),
            default_hardware_version=doc.default_hardware_version,
            collected=doc.collected,
        )


def _vm_from_document(doc: snapshot.VMDocument) -> VirtualMachine:
    return VirtualMachine(
        **doc.model_dump(exclude={"datastores", "snapshots"}),
        datastores=tuple(doc.datastores),
        snapshots=tuple(Snapshot(**s.model_dump()) for s in doc.snapshots),
    )


def _alarm_from_document(doc: snapshot.AlarmDocument) -> Alarm:
    return Alarm(
        **doc.model_dump(exclude={"entity"}),
        entity=AlarmEntity(**doc.entity.model_dump()),
    )


def load_inventory(path: str) -> Inventory:
    """Reads an inventory snapshot from the JSON file at *path*.

    :raises UpstreamDataUnavailable: if the file cannot be read or
        decoded
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise UpstreamDataUnavailable(
            "cannot read inventory snapshot {0}: {1}".format(path, e)
        )
    if not isinstance(data, dict):
        raise UpstreamDataUnavailable(
            "inventory snapshot {0} is not a JSON object".format(path)
        )
    inventory = Inventory.from_dict(data)
    _log.info(
        "loaded inventory: %d hosts, %d datastores, %d VMs, %d resource pools, "
        "%d alarms",
        len(inventory.hosts),
        len(inventory.datastores),
        len(inventory.vms),
        len(inventory.resource_pools),
        len(inventory.alarms),
    )
    return inventory
