import pytest

from vmprobe.context import ThresholdContext
from vmprobe.inventory import VirtualMachine
from vmprobe.metric import Metric


class TestMetric:
    def test_description(self):
        assert (
            "time is 1s"
            == Metric("time", 1, "s", contextobj=ThresholdContext("ctx")).description
        )

    def test_description_with_object(self):
        vm = VirtualMachine(id="vm-1", name="web01")
        ctx = ThresholdContext("ctx", fmt_metric="{obj}: {valueunit}")
        assert "web01: 3d" == Metric("age", 3, "d", contextobj=ctx, obj=vm).description

    def test_valueunit_float(self):
        assert "1.302s" == Metric("time", 1.30234876, "s").valueunit

    def test_valueunit_scientific(self):
        assert "1.3e+04s" == Metric("time", 13000.0, "s").valueunit

    def test_valueunit_should_not_use_scientific_for_large_ints(self):
        assert "13000s" == Metric("time", 13000, "s").valueunit

    def test_valueunit_nonfloat(self):
        assert "text" == Metric("text", "text").valueunit

    def test_context_defaults_to_name(self):
        assert "snapshot_age" == Metric("snapshot_age", 1).context

    def test_equality_includes_object(self):
        vm1 = VirtualMachine(id="vm-1", name="web01")
        vm2 = VirtualMachine(id="vm-2", name="web02")
        assert Metric("m", 1, obj=vm1) == Metric("m", 1, obj=vm1)
        assert Metric("m", 1, obj=vm1) != Metric("m", 1, obj=vm2)

    def test_evaluate_fails_if_no_context(self):
        with pytest.raises(RuntimeError):
            Metric("time", 1, "s").evaluate()

    def test_performance_fails_if_no_context(self):
        with pytest.raises(RuntimeError):
            Metric("time", 1, "s").performance()
