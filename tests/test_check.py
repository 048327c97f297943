from typing import Optional

import pytest

from vmprobe.check import Check
from vmprobe.context import Context, ThresholdContext
from vmprobe.error import CheckError, UpstreamDataUnavailable
from vmprobe.inventory import VirtualMachine
from vmprobe.metric import Metric
from vmprobe.resource import Resource
from vmprobe.result import Result, Results
from vmprobe.runtime import Runtime
from vmprobe.state import ServiceState, critical, ok, unknown, warn
from vmprobe.summary import Summary
from vmprobe.threshold import ThresholdPair

VMS = [VirtualMachine(id="vm-%d" % i, name="vm%d" % i) for i in range(3)]


class CountingSummary(Summary):
    def ok(self, results: Results):
        return "all %d fine" % len(results)

    def problem(self, results: Results):
        return "%d need attention" % (len(results) - results.count(ok))


class VMsEvaluated(Resource):
    def probe(self):
        return [Metric("vms_evaluated", 3, context="default")]


class Uptime(Resource):
    """One uptime metric per VM in *emit*; all of VMS are in scope."""

    def __init__(self, emit: list[VirtualMachine], days: float = 1) -> None:
        self.emit = emit
        self.days = days

    def probe(self):
        return [Metric("uptime", self.days, "d", obj=vm, context="null") for vm in self.emit]

    def scope(self):
        return [vm.id for vm in VMS]


class TestAdd:
    def test_resources(self) -> None:
        r1 = Resource()
        r2 = Resource()
        assert [r1, r2] == Check().add(r1, r2).resources

    def test_context(self) -> None:
        ctx = ThresholdContext("uptime")
        assert "uptime" in Check(ctx).contexts

    def test_summary(self) -> None:
        s = CountingSummary()
        assert s is Check(s).summary

    def test_results(self) -> None:
        r = Results()
        assert r is Check(r).results

    def test_unknown_type(self) -> None:
        with pytest.raises(TypeError):
            Check(object())  # type: ignore

    def test_first_resource_sets_name(self) -> None:
        class VMwareSnapshots(Resource):
            pass

        c = Check()
        assert "" == c.name
        c.add(VMwareSnapshots(), Resource())
        assert "VMwareSnapshots" == c.name

    def test_explicit_name(self) -> None:
        assert "vhw" == Check(Resource(), name="vhw").name


class TestEvaluation:
    def test_bare_metric(self) -> None:
        class Single(Resource):
            def probe(self) -> Metric:
                return Metric("vms_evaluated", 0, context="default")

        c = Check(Single())
        c()
        assert 1 == len(c.results)

    def test_results_and_perfdata(self) -> None:
        c = Check()
        c._evaluate_resource(VMsEvaluated())  # type: ignore
        assert "vms_evaluated" == c.results[0].metric.name  # type: ignore
        assert ["vms_evaluated=3"] == c.perfdata

    def test_context_lookup(self) -> None:
        class Usage(Resource):
            def probe(self):
                return [Metric("space_used", 96, "%")]

        ctx = ThresholdContext("space_used", ThresholdPair(90, 95, "%"))
        c = Check(ctx)
        c._evaluate_resource(Usage())  # type: ignore
        assert ctx is c.results[0].context
        assert critical == c.results[0].state

    def test_checkerror_becomes_unknown(self) -> None:
        class Unreadable(Resource):
            def probe(self):
                raise UpstreamDataUnavailable("inventory snapshot not readable")

        c = Check()
        c._evaluate_resource(Unreadable())  # type: ignore
        assert unknown == c.results[0].state
        assert "inventory snapshot not readable" == c.results[0].hint

    def test_perfdata_sorted_and_compacted(self) -> None:
        c = Check(VMsEvaluated(), Uptime(VMS))
        c()
        names = [r.metric.name for r in c.results if r.metric is not None]
        assert ["vms_evaluated", "uptime", "uptime", "uptime"] == names
        assert ["vms_evaluated=3"] == c.perfdata

    def test_bare_state_is_wrapped(self) -> None:
        class Flag(Resource):
            def probe(self) -> list[Metric]:
                return [Metric("question", False)]

        class AlwaysWarn(Context):
            def evaluate(self, metric: Metric, resource: Resource) -> ServiceState:
                return warn

        c = Check(Flag(), AlwaysWarn("question"))
        c()
        assert warn == c.results[0].state
        assert "question" == c.results[0].metric.name  # type: ignore

    def test_evaluation_error_propagates(self) -> None:
        class Broken(Context):
            def evaluate(self, metric, resource):
                raise CheckError("no baseline hardware version for vm0")

        c = Check(Uptime(VMS[:1]), Broken("null"))
        c()
        assert unknown == c.state
        assert "vm0" in str(c.results[0])


class TestState:
    def test_no_results_is_unknown(self) -> None:
        assert unknown == Check().state

    def test_no_results_summary(self) -> None:
        assert "no check results" == Check().summary_str

    def test_resource_without_metrics(self) -> None:
        c = Check(Resource())
        c()
        assert unknown == c.state
        assert 3 == c.exitcode

    def test_summary_ok(self) -> None:
        c = Check(CountingSummary())
        c._evaluate_resource(VMsEvaluated())  # type: ignore
        assert "all 1 fine" == c.summary_str

    def test_summary_problem(self) -> None:
        c = Check(CountingSummary())
        c.results.add(Result(ok), Result(critical))
        assert "1 need attention" == c.summary_str
        assert 2 == c.exitcode

    def test_main_delegates_to_runtime(self) -> None:
        def fake_execute(
            check: Check,
            verbose: Optional[int] = None,
            timeout: Optional[int] = None,
        ) -> None:
            assert 2 == verbose
            assert 20 == timeout

        Runtime.instance = None
        r = Runtime()
        r.execute = fake_execute  # type: ignore
        Check().main(2, 20)
        Runtime.instance = None


class TestCompleteness:
    def test_complete_scope(self) -> None:
        c = Check(Uptime(VMS))
        c()
        assert ok == c.state
        assert 3 == len(c.results)

    def test_missing_result_is_unknown(self) -> None:
        c = Check(Uptime(VMS[:2]))
        c()
        assert unknown == c.state
        assert 1 == len(c.results)
        assert "incomplete evaluation: no result for vm-2" == c.results[0].hint

    def test_duplicate_result_is_unknown(self) -> None:
        c = Check(Uptime(VMS + VMS[:1]))
        c()
        assert unknown == c.state
        assert "multiple results for vm-0" in str(c.results[0])

    def test_partial_results_are_discarded(self) -> None:
        c = Check(VMsEvaluated(), Uptime(VMS[:1]))
        c()
        assert ["vms_evaluated=3"] == c.perfdata
        assert [unknown, ok] == [r.state for r in c.results]

    def test_repeatable(self) -> None:
        first = Check(Uptime(VMS, 80), ThresholdContext("null", ThresholdPair(60, 90)))
        second = Check(Uptime(VMS, 80), ThresholdContext("null", ThresholdPair(60, 90)))
        first()
        second()
        assert first.state == second.state == warn
        assert [str(r) for r in first.results] == [str(r) for r in second.results]
