"""Triggered alarms."""

import typing

from vmprobe import __version__
from vmprobe.check import Check
from vmprobe.cli import add_common_options, criteria_from_args, setup_argparser
from vmprobe.context import MappingContext
from vmprobe.filters import FilterCriteria, filter_alarms
from vmprobe.inventory import Alarm, Inventory, load_inventory
from vmprobe.metric import Metric
from vmprobe.multiarg import MultiArg
from vmprobe.resource import Resource
from vmprobe.runtime import Runtime, guarded
from vmprobe.state import critical, ok, warn
from vmprobe.summary import InventorySummary

# gray: vSphere could not determine the entity status
ALARM_STATES = {
    "green": ok,
    "yellow": warn,
    "gray": warn,
    "red": critical,
}


class TriggeredAlarms(Resource):
    def __init__(self, inventory: Inventory, criteria: FilterCriteria) -> None:
        self.all_alarms = inventory.alarms
        self.alarms = filter_alarms(inventory.alarms, criteria)

    @property
    def name(self) -> str:
        return "VMware Alarms"

    def probe(self) -> typing.Generator[Metric, None, None]:
        for alarm in self.alarms:
            yield Metric("alarm", alarm.status, context="alarm", obj=alarm)
        yield Metric("alarms_triggered", len(self.all_alarms), min=0, context="default")
        yield Metric("alarms_evaluated", len(self.alarms), min=0, context="default")
        yield Metric(
            "alarms_excluded",
            len(self.all_alarms) - len(self.alarms),
            min=0,
            context="default",
        )

    def scope(self) -> list[str]:
        return [alarm.id for alarm in self.alarms]


def _describe_alarm(metric: Metric, context: typing.Any) -> str:
    alarm: Alarm = metric.obj  # type: ignore
    return "{0} on {1} {2} ({3})".format(
        alarm.name, alarm.entity.kind, alarm.entity.name, alarm.status
    )


@guarded
def main(argv: typing.Optional[list[str]] = None) -> None:
    parser = setup_argparser(
        "vmware_alarms",
        __version__,
        description="Evaluates triggered alarms of the inventory.",
    )
    add_common_options(parser)
    parser.add_argument(
        "--eval-acknowledged",
        action="store_true",
        help="also evaluate acknowledged alarms",
    )
    for axis, what in (
        ("type", "managed entity types (e.g. HostSystem, Datastore)"),
        ("name", "alarm name substrings"),
        ("desc", "alarm description substrings"),
        ("status", "alarm statuses (red, yellow, gray, green or critical, "
         "warning, unknown, ok)"),
    ):
        parser.add_argument(
            "--include-{0}".format(axis),
            default="",
            help="comma separated {0} to evaluate exclusively".format(what),
        )
        parser.add_argument(
            "--exclude-{0}".format(axis),
            default="",
            help="comma separated {0} to ignore".format(what),
        )
    args = parser.parse_args(argv)
    criteria = criteria_from_args(
        args,
        include_acknowledged_alarms=args.eval_acknowledged,
        include_managed_types=MultiArg(args.include_type),
        exclude_managed_types=MultiArg(args.exclude_type),
        include_alarm_names=MultiArg(args.include_name),
        exclude_alarm_names=MultiArg(args.exclude_name),
        include_alarm_descriptions=MultiArg(args.include_desc),
        exclude_alarm_descriptions=MultiArg(args.exclude_desc),
        include_alarm_statuses=MultiArg(args.include_status),
        exclude_alarm_statuses=MultiArg(args.exclude_status),
    )

    def build() -> Check:
        return Check(
            TriggeredAlarms(load_inventory(args.inventory), criteria),
            MappingContext("alarm", ALARM_STATES, fmt_metric=_describe_alarm),
            InventorySummary("alarms"),
        )

    Runtime().launch(build, args.verbose, args.timeout)
