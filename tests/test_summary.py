from vmprobe.inventory import VirtualMachine
from vmprobe.metric import Metric
from vmprobe.result import Result, Results
from vmprobe.state import critical, ok, unknown, warn
from vmprobe.summary import InventorySummary, Summary


def vm_result(name: str, state=ok, hint=None) -> Result:
    return Result(state, hint, Metric("m", 1, obj=VirtualMachine(id=name, name=name)))


class TestSummary:
    def test_ok_returns_first_result(self):
        results = Results(Result(ok, "result 1"), Result(ok, "result 2"))
        assert "result 1" == Summary().ok(results)

    def test_problem_returns_first_significant(self):
        results = Results(Result(ok, "result 1"), Result(critical, "result 2"))
        assert "result 2" == Summary().problem(results)

    def test_verbose(self):
        assert ["critical: reason1", "warning: reason2"] == Summary().verbose(
            Results(
                Result(critical, "reason1"),
                Result(ok, "ignore"),
                Result(warn, "reason2"),
            )
        )

    def test_verbose_names_object(self):
        assert ["warning: web01: 1 (old)"] == Summary().verbose(
            Results(vm_result("web01", warn, "old"), vm_result("db01"))
        )


class TestInventorySummary:
    def test_ok(self):
        results = Results(vm_result("a"), vm_result("b"), Result(ok, "aggregate"))
        assert "2 VMs evaluated, no problems detected" == InventorySummary("VMs").ok(
            results
        )

    def test_problem(self):
        results = Results(
            vm_result("a", warn, "w"),
            vm_result("b", critical, "c"),
            vm_result("c"),
        )
        assert "1 critical, 1 warning of 3 VMs (b: 1 (c))" == InventorySummary(
            "VMs"
        ).problem(results)

    def test_problem_without_object(self):
        results = Results(vm_result("a"), Result(critical, "snapshot unreadable"))
        assert "snapshot unreadable" == InventorySummary("VMs").problem(results)

    def test_problem_unknown_object(self):
        results = Results(vm_result("a"), vm_result("b", unknown, "no baseline"))
        assert "b: 1 (no baseline)" == InventorySummary("VMs").problem(results)

    def test_unknown_outranks_counts(self):
        results = Results(
            vm_result("a", warn, "old"), vm_result("b", unknown, "no baseline")
        )
        assert "b: 1 (no baseline)" == InventorySummary("VMs").problem(results)
