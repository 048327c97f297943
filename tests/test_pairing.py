import pytest

from vmprobe.check import Check
from vmprobe.error import (
    ConfigurationConflict,
    ConfigurationError,
    MissingRequiredAttribute,
)
from vmprobe.filters import FilterCriteria
from vmprobe.inventory import CustomAttributes, Datastore, Host, Inventory, VirtualMachine
from vmprobe.pairing import (
    HostDatastorePairings,
    MissingAttributeContext,
    PairingConfig,
    PairingContext,
    derive_key,
    object_key,
    resolve_pairings,
)
from vmprobe.state import critical, ok

HOST = Host(id="host-1", name="esx01")
DS_A = Datastore(id="ds-1", name="ds-rack-a-01")
DS_B = Datastore(id="ds-2", name="ds-rack-b-01")
VM = VirtualMachine(id="vm-1", name="web01", host="host-1", datastores=("ds-1", "ds-2"))


def attributes(host="DC1-RackA", ds_a="DC1-RackA", ds_b="DC1-RackB"):
    values = {}
    for obj_id, value in (("host-1", host), ("ds-1", ds_a), ("ds-2", ds_b)):
        if value is not None:
            values[obj_id] = {"Location": value}
    return CustomAttributes(values)


def config(**kwargs):
    kwargs.setdefault("shared_attribute", "Location")
    return PairingConfig.resolve(**kwargs)


class TestPairingConfig:
    def test_shared(self):
        cfg = config()
        assert "Location" == cfg.host_attribute
        assert "Location" == cfg.datastore_attribute
        assert cfg.host_separator is None

    def test_resource_specific(self):
        cfg = PairingConfig.resolve(
            host_attribute="Rack", datastore_attribute="Shelf", shared_separator="-"
        )
        assert "Rack" == cfg.host_attribute
        assert "Shelf" == cfg.datastore_attribute
        assert "-" == cfg.datastore_separator

    def test_shared_and_specific(self):
        with pytest.raises(ConfigurationConflict, match="only one of shared"):
            PairingConfig.resolve(shared_attribute="Location", host_attribute="Rack")

    def test_no_attribute(self):
        with pytest.raises(ConfigurationError):
            PairingConfig.resolve()

    def test_only_host_attribute(self):
        with pytest.raises(ConfigurationConflict):
            PairingConfig.resolve(host_attribute="Rack")

    def test_separator_conflict(self):
        with pytest.raises(ConfigurationConflict):
            config(shared_separator="-", host_separator="_")

    def test_only_host_separator(self):
        with pytest.raises(ConfigurationConflict):
            config(host_separator="-")

    def test_separator_single_character(self):
        with pytest.raises(ConfigurationError):
            config(shared_separator="--")


class TestKeys:
    def test_whole_value(self):
        assert "DC1-RackA" == derive_key("DC1-RackA")

    def test_prefix(self):
        assert "DC1" == derive_key("DC1-RackA-Row2", "-")

    def test_separator_absent(self):
        assert "DC1" == derive_key("DC1", "-")

    def test_missing_attribute(self):
        with pytest.raises(MissingRequiredAttribute) as e:
            object_key(HOST, CustomAttributes(), "Location")
        assert "missing required attribute 'Location' on esx01" == str(e.value)

    def test_empty_value_is_a_key(self):
        assert "" == object_key(HOST, CustomAttributes({"host-1": {"Location": ""}}), "Location")


class TestResolvePairings:
    def test_mismatch_without_separator(self):
        report = resolve_pairings([VM], [HOST], [DS_A, DS_B], attributes(), config())
        assert [DS_B] == list(report.vms[0].mismatched)
        assert 1 == len(report.mismatched)

    def test_prefix_separator_pairs(self):
        report = resolve_pairings(
            [VM], [HOST], [DS_A, DS_B], attributes(), config(shared_separator="-")
        )
        assert () == report.mismatched

    def test_case_insensitive(self):
        report = resolve_pairings(
            [VM],
            [HOST],
            [DS_A, DS_B],
            attributes(ds_a="dc1-racka", ds_b="DC1-RACKA"),
            config(),
        )
        assert () == report.mismatched

    def test_ignored_datastore(self):
        report = resolve_pairings(
            [VM],
            [HOST],
            [DS_A, DS_B],
            attributes(),
            config(),
            ignore_datastore_names=["DS-RACK-B-01"],
        )
        assert () == report.mismatched

    def test_missing_host_attribute(self):
        report = resolve_pairings(
            [VM], [HOST], [DS_A, DS_B], attributes(host=None), config()
        )
        assert [HOST] == [obj for obj, _ in report.missing]
        assert not report.vms[0].evaluated

    def test_missing_ignored(self):
        report = resolve_pairings(
            [VM],
            [HOST],
            [DS_A, DS_B],
            attributes(host=None),
            config(ignore_missing=True),
        )
        assert () == report.missing
        assert not report.vms[0].evaluated

    def test_resource_specific_attributes(self):
        attrs = CustomAttributes(
            {"host-1": {"Rack": "X_1"}, "ds-1": {"Shelf": "x/2"}, "ds-2": {"Shelf": "x/7"}}
        )
        cfg = PairingConfig.resolve(
            host_attribute="Rack",
            datastore_attribute="Shelf",
            host_separator="_",
            datastore_separator="/",
        )
        report = resolve_pairings([VM], [HOST], [DS_A, DS_B], attrs, cfg)
        assert () == report.mismatched
        assert report.vms[0].evaluated

    def test_resource_specific_attributes_mismatch(self):
        attrs = CustomAttributes({"host-1": {"Rack": "X_1"}, "ds-1": {"Shelf": "y/2"}})
        cfg = PairingConfig.resolve(
            host_attribute="Rack",
            datastore_attribute="Shelf",
            host_separator="_",
            datastore_separator="/",
            ignore_missing=True,
        )
        report = resolve_pairings([VM], [HOST], [DS_A, DS_B], attrs, cfg)
        assert [DS_A] == list(report.vms[0].mismatched)

    def test_missing_datastore_attribute(self):
        report = resolve_pairings(
            [VM], [HOST], [DS_A, DS_B], attributes(ds_b=None), config()
        )
        assert [DS_B] == [obj for obj, _ in report.missing]
        assert report.vms[0].evaluated
        assert () == report.mismatched

    def test_missing_datastore_attribute_ignored(self):
        report = resolve_pairings(
            [VM],
            [HOST],
            [DS_A, DS_B],
            attributes(ds_b=None),
            config(ignore_missing=True),
        )
        assert () == report.missing
        assert () == report.mismatched

    def test_pairings_table(self):
        report = resolve_pairings([VM], [HOST], [DS_A, DS_B], attributes(), config())
        assert {"esx01": ["ds-rack-a-01"]} == report.pairings([HOST], [DS_A, DS_B])


def run(attrs, cfg, criteria=None):
    inventory = Inventory(
        hosts=(HOST,), datastores=(DS_A, DS_B), vms=(VM,), custom_attributes=attrs
    )
    check = Check(
        HostDatastorePairings(inventory, criteria or FilterCriteria(), cfg),
        PairingContext(),
        MissingAttributeContext(),
    )
    check()
    return check


class TestHostDatastorePairings:
    def test_mismatch_is_critical(self):
        check = run(attributes(), config())
        assert critical == check.state
        result = check.results["pairing"]
        assert "web01 mismatched (datastores ds-rack-b-01 not paired with host esx01)" == str(result)

    def test_paired_is_ok(self):
        check = run(attributes(), config(shared_separator="-"))
        assert ok == check.state
        assert 0 == check.results["vms_mismatched"].value

    def test_missing_attribute_is_critical(self):
        check = run(attributes(host=None), config())
        assert critical == check.state
        assert "missing required attribute 'Location' on esx01" in str(
            check.results["custom_attribute"]
        )
        assert ok == check.results["pairing"].state

    def test_missing_attribute_ignored(self):
        check = run(attributes(host=None), config(ignore_missing=True))
        assert ok == check.state
        assert "custom_attribute" not in check.results

    def test_resource_specific_attributes(self):
        attrs = CustomAttributes(
            {"host-1": {"Rack": "X_1"}, "ds-1": {"Shelf": "x/2"}, "ds-2": {"Shelf": "X/3"}}
        )
        cfg = PairingConfig.resolve(
            host_attribute="Rack",
            datastore_attribute="Shelf",
            host_separator="_",
            datastore_separator="/",
        )
        check = run(attrs, cfg)
        assert ok == check.state
        assert 0 == check.results["vms_mismatched"].value

    def test_missing_datastore_attribute_is_critical(self):
        check = run(attributes(ds_b=None), config())
        assert critical == check.state
        assert "missing required attribute 'Location' on ds-rack-b-01" in str(
            check.results["custom_attribute"]
        )
        assert ok == check.results["pairing"].state

    def test_missing_datastore_attribute_ignored(self):
        check = run(attributes(ds_b=None), config(ignore_missing=True))
        assert ok == check.state
        assert "custom_attribute" not in check.results
        assert ok == check.results["pairing"].state

    def test_repeatable(self):
        first = run(attributes(), config())
        second = run(attributes(), config())
        assert first.state == second.state
        assert [str(r) for r in first.results] == [str(r) for r in second.results]
