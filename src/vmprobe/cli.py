"""Command line handling shared by all probes.

:func:`setup_argparser` creates a parser that follows the `Monitoring
Plugin Guidelines
<https://github.com/monitoring-plugins/monitoring-plugin-guidelines/blob/main/monitoring_plugins_interface/02.Input.md>`__.
The ``add_*`` helpers register the option groups most probes share, and
:func:`criteria_from_args` turns parsed options into a validated
:class:`~vmprobe.filters.FilterCriteria`.
"""

import argparse
import sys
import typing

from .filters import FilterCriteria
from .multiarg import MultiArg
from .threshold import ThresholdPair

DEFAULT_TIMEOUT = 10


class _CustomArgumentParser(argparse.ArgumentParser):
    """
    Override the exit method for the options ``--help``, ``-h`` and ``--version``,
    ``-V`` with ``Unknown`` (exit code 3), according to the
    `Monitoring Plugin Guidelines
    <https://github.com/monitoring-plugins/monitoring-plugin-guidelines/blob/main/monitoring_plugins_interface/02.Input.md>`__.
    """

    def exit(
        self, status: int = 3, message: typing.Optional[str] = None
    ) -> typing.NoReturn:
        if message:
            self._print_message(message, sys.stderr)
        sys.exit(status)

    def error(self, message: str) -> typing.NoReturn:
        self.print_usage(sys.stderr)
        self.exit(3, "{0}: error: {1}\n".format(self.prog, message))


def setup_argparser(
    name: typing.Optional[str],
    version: typing.Optional[str] = None,
    description: typing.Optional[str] = None,
    epilog: typing.Optional[str] = None,
) -> argparse.ArgumentParser:
    """
    Set up and configure an argument parser for a probe.

    :param name: The name of the probe. If provided and doesn't start with
        ``check``, it will be prefixed with ``check_``.
    :param version: The version number of the probe. If provided, it will be
        included in the parser description and a ``--version`` option is
        added.
    :param description: A detailed description of the probe's functionality.
    :param epilog: Additional information to display after the help message.
    """
    description_lines: list[str] = []

    if name is not None and not name.startswith("check"):
        name = f"check_{name}"

    if version is not None:
        description_lines.append(f"version {version}")

    if description is not None:
        description_lines.append("")
        description_lines.append(description)

    parser: argparse.ArgumentParser = _CustomArgumentParser(
        prog=name,
        formatter_class=lambda prog: argparse.RawDescriptionHelpFormatter(
            prog, width=80
        ),
        description="\n".join(description_lines),
        epilog=epilog,
    )

    if version is not None:
        parser.add_argument(
            "-V",
            "--version",
            action="version",
            version=f"%(prog)s {version}",
        )

    return parser


def add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--inventory",
        required=True,
        metavar="PATH",
        help="JSON inventory snapshot written by the collector",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=int,
        default=DEFAULT_TIMEOUT,
        help="abort execution after so many seconds (default: %(default)s)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="increase output verbosity (use up to 3 times)",
    )


def add_pool_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--include-rp",
        default="",
        help="comma separated resource pools whose VMs are evaluated exclusively",
    )
    parser.add_argument(
        "--exclude-rp",
        default="",
        help="comma separated resource pools whose VMs are not evaluated",
    )


def add_vm_filter_options(parser: argparse.ArgumentParser) -> None:
    add_pool_options(parser)
    parser.add_argument(
        "--ignore-vm", default="", help="comma separated VM names to ignore"
    )
    parser.add_argument(
        "--powered-off",
        action="store_true",
        help="also evaluate powered off and suspended VMs",
    )


def add_datastore_filter_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--ignore-ds", default="", help="comma separated datastore names to ignore"
    )


def add_threshold_options(
    parser: argparse.ArgumentParser,
    stem: str,
    default: ThresholdPair,
    value_type: typing.Callable[[str], typing.Any] = float,
) -> None:
    """Registers ``--<stem>-warning`` and ``--<stem>-critical``."""
    unit = " ({0})".format(default.unit.strip()) if default.unit.strip() else ""
    parser.add_argument(
        "--{0}-warning".format(stem),
        type=value_type,
        help="warning threshold{0} (default: {1})".format(unit, default.warning),
    )
    parser.add_argument(
        "--{0}-critical".format(stem),
        type=value_type,
        help="critical threshold{0} (default: {1})".format(unit, default.critical),
    )


def thresholds_from_args(
    args: argparse.Namespace,
    stem: str,
    default: ThresholdPair,
    ascending: bool = True,
) -> ThresholdPair:
    dest = stem.replace("-", "_")
    return ThresholdPair.from_options(
        getattr(args, dest + "_warning"),
        getattr(args, dest + "_critical"),
        default,
        option=stem,
        ascending=ascending,
    )


def criteria_from_args(args: argparse.Namespace, **overrides: typing.Any) -> FilterCriteria:
    """Builds filter criteria from the options present in *args*.

    Options a probe did not register keep their defaults. *overrides*
    take precedence over parsed values.
    """
    values: dict[str, typing.Any] = dict(
        include_resource_pools=MultiArg(getattr(args, "include_rp", "")),
        exclude_resource_pools=MultiArg(getattr(args, "exclude_rp", "")),
        ignore_vm_names=MultiArg(getattr(args, "ignore_vm", "")),
        ignore_datastore_names=MultiArg(getattr(args, "ignore_ds", "")),
        include_powered_off=getattr(args, "powered_off", False),
    )
    values.update(overrides)
    return FilterCriteria(**values)
