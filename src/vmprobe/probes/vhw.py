"""Virtual hardware version compliance."""

import typing

from vmprobe import __version__
from vmprobe.check import Check
from vmprobe.cli import (
    add_common_options,
    add_vm_filter_options,
    criteria_from_args,
    setup_argparser,
)
from vmprobe.hardware import HardwareContext, HardwareVersions, select_mode
from vmprobe.inventory import load_inventory
from vmprobe.runtime import Runtime, guarded
from vmprobe.summary import InventorySummary


@guarded
def main(argv: typing.Optional[list[str]] = None) -> None:
    parser = setup_argparser(
        "vmware_vhw",
        __version__,
        description="Evaluates the virtual hardware version of each VM. Without "
        "mode options, all VMs are expected to share the newest version observed.",
    )
    add_common_options(parser)
    add_vm_filter_options(parser)
    parser.add_argument(
        "--outdated-by-warning",
        type=int,
        help="versions behind the newest observed one that yield WARNING",
    )
    parser.add_argument(
        "--outdated-by-critical",
        type=int,
        help="versions behind the newest observed one that yield CRITICAL",
    )
    parser.add_argument(
        "--minimum-version", type=int, help="VMs below this version are CRITICAL"
    )
    parser.add_argument(
        "--default-is-min-version",
        action="store_true",
        help="VMs below the host or cluster default version are WARNING",
    )
    parser.add_argument("--host-name", help="host that provides the default version")
    parser.add_argument(
        "--cluster-name", help="cluster that provides the default version"
    )
    args = parser.parse_args(argv)
    mode = select_mode(
        outdated_by_warning=args.outdated_by_warning,
        outdated_by_critical=args.outdated_by_critical,
        minimum=args.minimum_version,
        default_is_min=args.default_is_min_version,
        host_name=args.host_name,
        cluster_name=args.cluster_name,
    )
    criteria = criteria_from_args(args)

    def build() -> Check:
        return Check(
            HardwareVersions(load_inventory(args.inventory), criteria, mode),
            HardwareContext(),
            InventorySummary("VMs"),
        )

    Runtime().launch(build, args.verbose, args.timeout)
