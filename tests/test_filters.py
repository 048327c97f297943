import pytest

from vmprobe.error import ConfigurationConflict, ConfigurationError
from vmprobe.filters import (
    FilterCriteria,
    filter_alarms,
    filter_datastores,
    filter_resource_pools,
    filter_vms,
    in_pool_scope,
)
from vmprobe.inventory import (
    Alarm,
    AlarmEntity,
    Datastore,
    ResourcePool,
    VirtualMachine,
)

VMS = (
    VirtualMachine(id="vm-1", name="web01", resource_pool="Production"),
    VirtualMachine(id="vm-2", name="db01", resource_pool="Production"),
    VirtualMachine(
        id="vm-3", name="test01", resource_pool="Test", power_state="poweredOff"
    ),
    VirtualMachine(id="vm-4", name="builder"),
    VirtualMachine(
        id="vm-5", name="paused", resource_pool="Test", power_state="suspended"
    ),
)


def names(objects):
    return [o.name for o in objects]


class TestFilterCriteria:
    def test_pool_conflict(self):
        with pytest.raises(ConfigurationConflict, match="include-rp"):
            FilterCriteria(
                include_resource_pools={"Production"},
                exclude_resource_pools={"Test"},
            )

    def test_type_conflict(self):
        with pytest.raises(ConfigurationConflict, match="include-type"):
            FilterCriteria(
                include_managed_types={"Datastore"},
                exclude_managed_types={"HostSystem"},
            )

    def test_lower_cased(self):
        criteria = FilterCriteria(ignore_vm_names=["WEB01"])
        assert frozenset({"web01"}) == criteria.ignore_vm_names

    def test_status_aliases(self):
        criteria = FilterCriteria(include_alarm_statuses=["critical", "Yellow"])
        assert frozenset({"red", "yellow"}) == criteria.include_alarm_statuses

    def test_invalid_status(self):
        with pytest.raises(ConfigurationError, match="purple"):
            FilterCriteria(exclude_alarm_statuses=["purple"])


class TestPoolScope:
    def test_no_lists(self):
        assert in_pool_scope(None, FilterCriteria())

    def test_include_drops_vms_without_pool(self):
        criteria = FilterCriteria(include_resource_pools={"production"})
        assert in_pool_scope("Production", criteria)
        assert not in_pool_scope("Test", criteria)
        assert not in_pool_scope(None, criteria)

    def test_exclude_keeps_vms_without_pool(self):
        criteria = FilterCriteria(exclude_resource_pools={"test"})
        assert in_pool_scope(None, criteria)
        assert not in_pool_scope("Test", criteria)


class TestFilterVMs:
    def test_default_powered_on_only(self):
        results = filter_vms(VMS, FilterCriteria())
        assert ["web01", "db01", "builder"] == names(results)
        assert 2 == results.excluded_by_power

    def test_powered_off_includes_suspended(self):
        results = filter_vms(VMS, FilterCriteria(include_powered_off=True))
        assert 5 == len(results)

    def test_stages(self):
        criteria = FilterCriteria(
            include_resource_pools={"Production", "Test"},
            ignore_vm_names={"DB01"},
        )
        results = filter_vms(VMS, criteria)
        assert 1 == results.excluded_by_pools
        assert 1 == results.excluded_by_names
        assert 2 == results.excluded_by_power
        assert ["web01"] == names(results.vms)

    def test_exclude_pool(self):
        results = filter_vms(VMS, FilterCriteria(exclude_resource_pools={"production"}))
        assert ["builder"] == names(results)

    def test_pure(self):
        criteria = FilterCriteria(ignore_vm_names={"web01"})
        assert filter_vms(VMS, criteria) == filter_vms(VMS, criteria)


class TestFilterOthers:
    def test_datastores(self):
        datastores = (
            Datastore(id="ds-1", name="ds-rack-a-01"),
            Datastore(id="ds-2", name="ISO-Library"),
        )
        criteria = FilterCriteria(ignore_datastore_names={"iso-library"})
        assert ["ds-rack-a-01"] == names(filter_datastores(datastores, criteria))

    def test_resource_pools(self):
        pools = (
            ResourcePool(id="rp-1", name="Production"),
            ResourcePool(id="rp-2", name="Test"),
        )
        criteria = FilterCriteria(exclude_resource_pools={"test"})
        assert ["Production"] == names(filter_resource_pools(pools, criteria))


def alarm(name, kind="HostSystem", status="red", acknowledged=False, description=""):
    return Alarm(
        id="alarm-" + name,
        name=name,
        description=description,
        entity=AlarmEntity(id="obj-1", name="esx01", kind=kind),
        status=status,
        acknowledged=acknowledged,
    )


ALARMS = (
    alarm("Host CPU usage", description="Default alarm to monitor host CPU"),
    alarm("Datastore usage on disk", kind="Datastore", status="yellow"),
    alarm("Host memory usage", status="gray", acknowledged=True),
)


class TestFilterAlarms:
    def test_acknowledged_dropped_by_default(self):
        assert 2 == len(filter_alarms(ALARMS, FilterCriteria()))

    def test_acknowledged_included(self):
        criteria = FilterCriteria(include_acknowledged_alarms=True)
        assert 3 == len(filter_alarms(ALARMS, criteria))

    def test_entity_type(self):
        criteria = FilterCriteria(include_managed_types={"datastore"})
        assert ["Datastore usage on disk"] == names(filter_alarms(ALARMS, criteria))

    def test_name_substring(self):
        criteria = FilterCriteria(exclude_alarm_names={"cpu"})
        assert ["Datastore usage on disk"] == names(filter_alarms(ALARMS, criteria))

    def test_description_substring(self):
        criteria = FilterCriteria(include_alarm_descriptions={"monitor host"})
        assert ["Host CPU usage"] == names(filter_alarms(ALARMS, criteria))

    def test_status_alias(self):
        criteria = FilterCriteria(include_alarm_statuses={"warning"})
        assert ["Datastore usage on disk"] == names(filter_alarms(ALARMS, criteria))
