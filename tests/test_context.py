from typing import Optional

import pytest

from vmprobe.context import Context, Contexts, MappingContext, ThresholdContext
from vmprobe.metric import Metric
from vmprobe.performance import Performance
from vmprobe.resource import Resource
from vmprobe.result import Result
from vmprobe.state import ServiceState, critical, ok, unknown, warn
from vmprobe.threshold import ThresholdPair


class TestContext:
    def test_description_should_be_empty_by_default(self) -> None:
        c = Context("ctx")
        assert c.describe(Metric("m", 0)) is None

    def test_fmt_template(self) -> None:
        m1 = Metric("foo", 1, "s", min=0)
        c = Context("describe_template", "{name} is {valueunit} (min {min})")
        assert "foo is 1s (min 0)" == c.describe(m1)

    def test_fmt_callable(self) -> None:
        def format_metric(metric: Metric, context: Context) -> str:
            return "{0} formatted by {1}".format(metric.name, context.name)

        m1 = Metric("foo", 1, "s", min=0)
        c = Context("describe_callable", fmt_metric=format_metric)
        assert "foo formatted by describe_callable" == c.describe(m1)

    def test_evaluates_to_ok(self) -> None:
        m = Metric("foo", 1)
        assert Result(ok, None, m) == Context("foo").evaluate(m, Resource())


class MyContext(Context):
    def evaluate(self, metric: Metric, resource: Resource) -> Result | ServiceState:
        if metric.value == 3:
            return self.unknown(hint="3 is unknown", metric=metric)
        if metric.value == 2:
            return self.critical(hint="2 is critical", metric=metric)
        if metric.value == 1:
            return self.warn(hint="1 is warn", metric=metric)
        return self.ok(hint="is ok", metric=metric)


class TestSubclassesContext:
    my_context = MyContext("my_context")

    def evaluate(self, value: int) -> Result:
        result = self.my_context.evaluate(Metric(f"value {value}", value), Resource())
        assert isinstance(result, Result)
        return result

    def test_ok(self) -> None:
        result: Result = self.evaluate(0)
        assert result.state == ok
        assert result.hint == "is ok"

    def test_warn(self) -> None:
        result: Result = self.evaluate(1)
        assert result.state == warn
        assert result.hint == "1 is warn"

    def test_critical(self) -> None:
        result: Result = self.evaluate(2)
        assert result.state == critical
        assert result.hint == "2 is critical"

    def test_unknwon(self) -> None:
        result: Result = self.evaluate(3)
        assert result.state == unknown
        assert result.hint == "3 is unknown"


class TestThresholdContext:
    def test_states_and_hints(self) -> None:
        test_cases: list[tuple[float, ServiceState, Optional[str]]] = [
            (50, ok, None),
            (92, warn, ">= 90%"),
            (97, critical, ">= 95%"),
        ]
        c = ThresholdContext("usage", ThresholdPair(90, 95, "%"))
        for value, exp_state, exp_reason in test_cases:
            m = Metric("usage", value, "%")
            assert Result(exp_state, exp_reason, m) == c.evaluate(m, Resource())

    def test_without_thresholds_everything_is_ok(self) -> None:
        m = Metric("usage", 10**6)
        assert ok == ThresholdContext("usage").evaluate(m, Resource()).state

    def test_performance(self) -> None:
        c = ThresholdContext("usage", ThresholdPair(90, 95, "%"))
        perf = c.performance(Metric("usage", 50, "%", 0, 100), Resource())
        assert isinstance(perf, Performance)
        assert "usage=50%;90;95;0;100" == str(perf)

    def test_performance_switched_off(self) -> None:
        c = ThresholdContext("usage", ThresholdPair(90, 95, "%"), perfdata=False)
        assert c.performance(Metric("usage", 50), Resource()) is None


class TestMappingContext:
    def test_mapped_values(self) -> None:
        c = MappingContext("flag", {False: ok, True: warn})
        assert warn == c.evaluate(Metric("flag", True), Resource()).state
        assert ok == c.evaluate(Metric("flag", False), Resource()).state

    def test_fallback(self) -> None:
        c = MappingContext("tools", {"toolsOk": ok}, fallback=unknown)
        result = c.evaluate(Metric("tools", "toolsBroken"), Resource())
        assert unknown == result.state
        assert "unrecognised value 'toolsBroken'" == result.hint


class TestContexts:
    def test_keyerror(self) -> None:
        ctx = Contexts()
        ctx.add(Context("foo"))
        with pytest.raises(KeyError):
            ctx["bar"]

    def test_contains(self) -> None:
        ctx = Contexts()
        ctx.add(Context("foo"))
        assert "foo" in ctx
        assert "bar" not in ctx

    def test_iter(self) -> None:
        ctx = Contexts()
        ctx.add(Context("foo"))
        # includes default contexts
        assert ["default", "foo", "null"] == sorted(list(ctx))
