"""Command line probes.

Each probe module holds the :class:`~vmprobe.resource.Resource`
subclasses for one family of checks plus ``main`` functions that are
installed as ``check_vmware_*`` console scripts.
"""
