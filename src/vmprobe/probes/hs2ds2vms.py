"""Host/datastore/VM pairings by custom attribute."""

import typing

from vmprobe import __version__
from vmprobe.check import Check
from vmprobe.cli import (
    add_common_options,
    add_datastore_filter_options,
    add_vm_filter_options,
    criteria_from_args,
    setup_argparser,
)
from vmprobe.inventory import load_inventory
from vmprobe.pairing import (
    HostDatastorePairings,
    MissingAttributeContext,
    PairingConfig,
    PairingContext,
)
from vmprobe.result import Results
from vmprobe.runtime import Runtime, guarded
from vmprobe.state import critical
from vmprobe.summary import Summary


class PairingSummary(Summary):
    def ok(self, results: Results) -> str:
        return "No mismatched Host/Datastore/VM pairings detected ({0})".format(
            self._evaluated(results)
        )

    def problem(self, results: Results) -> str:
        if "vms_mismatched" not in results:
            return super().problem(results)
        missing = sum(
            1 for r in results.by_state.get(critical, ()) if r.context
            and r.context.name == "missing_attribute"
        )
        line = "{0} mismatched Host/Datastore/VM pairings detected ({1})".format(
            results["vms_mismatched"].metric.value, self._evaluated(results)
        )
        if missing:
            line += ", {0} hosts or datastores missing the Custom Attribute".format(
                missing
            )
        return line

    @staticmethod
    def _evaluated(results: Results) -> str:
        return "evaluated {0} VMs".format(results["vms_evaluated"].metric.value)


@guarded
def main(argv: typing.Optional[list[str]] = None) -> None:
    parser = setup_argparser(
        "vmware_hs2ds2vms",
        __version__,
        description="Verifies that every VM runs on a host whose Custom Attribute "
        "matches the one of the datastores backing the VM.",
    )
    add_common_options(parser)
    add_vm_filter_options(parser)
    add_datastore_filter_options(parser)
    parser.add_argument("--ca-name", help="Custom Attribute shared by hosts and datastores")
    parser.add_argument("--host-ca-name", help="Custom Attribute of hosts")
    parser.add_argument("--ds-ca-name", help="Custom Attribute of datastores")
    parser.add_argument(
        "--ca-prefix-sep",
        help="separator character; only the value before it is compared",
    )
    parser.add_argument("--host-ca-prefix-sep", help="separator for host values")
    parser.add_argument("--ds-ca-prefix-sep", help="separator for datastore values")
    parser.add_argument(
        "--ignore-missing-ca",
        action="store_true",
        help="skip hosts and datastores lacking the Custom Attribute",
    )
    args = parser.parse_args(argv)
    config = PairingConfig.resolve(
        shared_attribute=args.ca_name,
        host_attribute=args.host_ca_name,
        datastore_attribute=args.ds_ca_name,
        shared_separator=args.ca_prefix_sep,
        host_separator=args.host_ca_prefix_sep,
        datastore_separator=args.ds_ca_prefix_sep,
        ignore_missing=args.ignore_missing_ca,
    )
    criteria = criteria_from_args(args)

    def build() -> Check:
        return Check(
            HostDatastorePairings(load_inventory(args.inventory), criteria, config),
            PairingContext(),
            MissingAttributeContext(),
            PairingSummary(),
        )

    Runtime().launch(build, args.verbose, args.timeout)
