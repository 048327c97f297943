"""Wire format of the inventory snapshot document.

The collector writes a single JSON object. The models below validate its
decoded form strictly: numbers must be JSON numbers, names and versions
must be JSON strings and lists must be JSON arrays. Unknown keys are
rejected. :meth:`vmprobe.inventory.Inventory.from_dict` turns a validated
document into inventory objects.
"""

import datetime
import typing

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
)

__all__ = ["InventoryDocument", "ValidationError", "describe"]


def _assume_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


Timestamp = typing.Annotated[datetime.datetime, AfterValidator(_assume_utc)]
Count = typing.Annotated[StrictInt, Field(ge=0)]


class _Document(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ObjectDocument(_Document):
    id: StrictStr
    name: StrictStr
    datacenter: typing.Optional[StrictStr] = None


class ClusterDocument(ObjectDocument):
    default_hardware_version: typing.Optional[StrictStr] = None


class HostDocument(ObjectDocument):
    cluster: typing.Optional[StrictStr] = None
    default_hardware_version: typing.Optional[StrictStr] = None
    cpu_usage_mhz: Count = 0
    cpu_total_mhz: Count = 0
    memory_usage_mb: Count = 0
    memory_total_mb: Count = 0


class DatastoreDocument(ObjectDocument):
    capacity: Count = 0
    free_space: Count = 0
    accessible: StrictBool = True


class SnapshotDocument(_Document):
    id: StrictStr
    name: StrictStr
    created: Timestamp
    size: Count = 0


class VMDocument(ObjectDocument):
    power_state: StrictStr = "poweredOn"
    host: typing.Optional[StrictStr] = None
    resource_pool: typing.Optional[StrictStr] = None
    datastores: list[StrictStr] = []
    hardware_version: StrictStr = ""
    snapshots: list[SnapshotDocument] = []
    tools_status: StrictStr = "toolsOk"
    uptime_seconds: Count = 0
    consolidation_needed: StrictBool = False
    question: typing.Optional[StrictStr] = None
    num_cpu: Count = 0


class ResourcePoolDocument(ObjectDocument):
    memory_usage_mb: Count = 0


class AlarmEntityDocument(_Document):
    id: StrictStr
    name: StrictStr
    kind: StrictStr


class AlarmDocument(ObjectDocument):
    description: StrictStr = ""
    entity: AlarmEntityDocument
    status: StrictStr = "red"
    acknowledged: StrictBool = False
    triggered: typing.Optional[Timestamp] = None


class InventoryDocument(_Document):
    collected: typing.Optional[Timestamp] = None
    default_hardware_version: typing.Optional[StrictStr] = None
    hosts: list[HostDocument] = []
    clusters: list[ClusterDocument] = []
    datastores: list[DatastoreDocument] = []
    vms: list[VMDocument] = []
    resource_pools: list[ResourcePoolDocument] = []
    alarms: list[AlarmDocument] = []
    custom_attributes: dict[StrictStr, dict[StrictStr, StrictStr]] = {}


def describe(error: ValidationError) -> str:
    """Condenses *error* into one line naming the first offending field."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "document"
    more = error.error_count() - 1
    text = "{0}: {1}".format(location, first["msg"])
    if more:
        text += " (and {0} more)".format(more)
    return text
