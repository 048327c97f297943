"""Reduce a raw inventory to the objects a probe evaluates.

All functions here are pure: they take objects plus a
:class:`FilterCriteria` and return new tuples. Invalid criteria are
rejected when :class:`FilterCriteria` is constructed, before any object
is looked at.
"""

import dataclasses
import logging
import typing

from .error import ConfigurationConflict, ConfigurationError
from .inventory import (
    Alarm,
    Datastore,
    POWERED_OFF,
    POWERED_ON,
    ResourcePool,
    SUSPENDED,
    VirtualMachine,
)

_log = logging.getLogger(__name__)

# keyword -> entity status colour
ALARM_STATUSES = {
    "red": "red",
    "critical": "red",
    "yellow": "yellow",
    "warning": "yellow",
    "green": "green",
    "ok": "green",
    "gray": "gray",
    "unknown": "gray",
}


def _names(values: typing.Optional[typing.Iterable[str]]) -> frozenset[str]:
    return frozenset(v.lower() for v in values or ())


@dataclasses.dataclass(frozen=True, kw_only=True)
class FilterCriteria:
    """Declarative inclusion and exclusion rules.

    All name, type and keyword sets are stored lower-cased; matching is
    case-insensitive throughout.
    """

    include_resource_pools: frozenset[str] = frozenset()
    exclude_resource_pools: frozenset[str] = frozenset()
    ignore_vm_names: frozenset[str] = frozenset()
    ignore_datastore_names: frozenset[str] = frozenset()
    include_powered_off: bool = False
    include_managed_types: frozenset[str] = frozenset()
    exclude_managed_types: frozenset[str] = frozenset()
    include_acknowledged_alarms: bool = False
    include_alarm_names: frozenset[str] = frozenset()
    exclude_alarm_names: frozenset[str] = frozenset()
    include_alarm_descriptions: frozenset[str] = frozenset()
    exclude_alarm_descriptions: frozenset[str] = frozenset()
    include_alarm_statuses: frozenset[str] = frozenset()
    exclude_alarm_statuses: frozenset[str] = frozenset()

    # (include field, exclude field, include option, exclude option)
    _exclusive: typing.ClassVar[tuple[tuple[str, str, str, str], ...]] = (
        ("include_resource_pools", "exclude_resource_pools", "include-rp", "exclude-rp"),
        ("include_managed_types", "exclude_managed_types", "include-type", "exclude-type"),
        ("include_alarm_names", "exclude_alarm_names", "include-name", "exclude-name"),
        (
            "include_alarm_descriptions",
            "exclude_alarm_descriptions",
            "include-desc",
            "exclude-desc",
        ),
        (
            "include_alarm_statuses",
            "exclude_alarm_statuses",
            "include-status",
            "exclude-status",
        ),
    )

    def __post_init__(self) -> None:
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if not isinstance(value, bool):
                object.__setattr__(self, field.name, _names(value))
        for include, exclude, include_opt, exclude_opt in self._exclusive:
            if getattr(self, include) and getattr(self, exclude):
                raise ConfigurationConflict(
                    "only one of {0!r} or {1!r} flags may be specified".format(
                        include_opt, exclude_opt
                    )
                )
        for field_name in ("include_alarm_statuses", "exclude_alarm_statuses"):
            statuses = getattr(self, field_name)
            invalid = sorted(statuses - ALARM_STATUSES.keys())
            if invalid:
                raise ConfigurationError(
                    "invalid triggered alarm status keyword(s): {0}".format(
                        ", ".join(invalid)
                    )
                )
            object.__setattr__(
                self, field_name, frozenset(ALARM_STATUSES[s] for s in statuses)
            )


@dataclasses.dataclass(frozen=True)
class VMsFilterResults:
    """VM lists after each filter stage."""

    all: tuple[VirtualMachine, ...]
    after_pools: tuple[VirtualMachine, ...]
    after_names: tuple[VirtualMachine, ...]
    after_power: tuple[VirtualMachine, ...]

    @property
    def vms(self) -> tuple[VirtualMachine, ...]:
        return self.after_power

    @property
    def excluded_by_pools(self) -> int:
        return len(self.all) - len(self.after_pools)

    @property
    def excluded_by_names(self) -> int:
        return len(self.after_pools) - len(self.after_names)

    @property
    def excluded_by_power(self) -> int:
        return len(self.after_names) - len(self.after_power)

    def __len__(self) -> int:
        return len(self.after_power)

    def __iter__(self) -> typing.Iterator[VirtualMachine]:
        return iter(self.after_power)


def in_pool_scope(pool: typing.Optional[str], criteria: FilterCriteria) -> bool:
    """Decides whether membership in *pool* keeps a VM in scope.

    With an include list, VMs outside any pool are out of scope. With an
    exclude list, they stay in scope.
    """
    if criteria.include_resource_pools:
        return pool is not None and pool.lower() in criteria.include_resource_pools
    if criteria.exclude_resource_pools:
        return pool is None or pool.lower() not in criteria.exclude_resource_pools
    return True


def filter_vms(
    vms: typing.Iterable[VirtualMachine], criteria: FilterCriteria
) -> VMsFilterResults:
    """Applies pool scoping, then name exclusion, then power state."""
    all_vms = tuple(vms)
    after_pools = tuple(vm for vm in all_vms if in_pool_scope(vm.resource_pool, criteria))
    after_names = tuple(
        vm for vm in after_pools if vm.name.lower() not in criteria.ignore_vm_names
    )
    if criteria.include_powered_off:
        wanted = {POWERED_ON, POWERED_OFF, SUSPENDED}
    else:
        wanted = {POWERED_ON}
    after_power = tuple(vm for vm in after_names if vm.power_state in wanted)
    results = VMsFilterResults(all_vms, after_pools, after_names, after_power)
    _log.info(
        "filtered VMs: %d total, %d excluded by resource pool, %d by name, "
        "%d by power state, %d remaining",
        len(all_vms),
        results.excluded_by_pools,
        results.excluded_by_names,
        results.excluded_by_power,
        len(results),
    )
    return results


def filter_datastores(
    datastores: typing.Iterable[Datastore], criteria: FilterCriteria
) -> tuple[Datastore, ...]:
    kept = tuple(
        ds for ds in datastores if ds.name.lower() not in criteria.ignore_datastore_names
    )
    _log.info("filtered datastores: %d remaining", len(kept))
    return kept


def filter_resource_pools(
    pools: typing.Iterable[ResourcePool], criteria: FilterCriteria
) -> tuple[ResourcePool, ...]:
    kept = tuple(rp for rp in pools if in_pool_scope(rp.name, criteria))
    _log.info("filtered resource pools: %d remaining", len(kept))
    return kept


def _substring_scope(
    text: str, include: frozenset[str], exclude: frozenset[str]
) -> bool:
    text = text.lower()
    if include:
        return any(s in text for s in include)
    if exclude:
        return not any(s in text for s in exclude)
    return True


def _set_scope(value: str, include: frozenset[str], exclude: frozenset[str]) -> bool:
    value = value.lower()
    if include:
        return value in include
    if exclude:
        return value not in exclude
    return True


def filter_alarms(
    alarms: typing.Iterable[Alarm], criteria: FilterCriteria
) -> tuple[Alarm, ...]:
    """Retains alarms that pass every configured alarm filter."""
    kept: list[Alarm] = []
    for alarm in alarms:
        if alarm.acknowledged and not criteria.include_acknowledged_alarms:
            _log.debug("alarm %s on %s: acknowledged", alarm.name, alarm.entity.name)
            continue
        if not _set_scope(
            alarm.entity.kind,
            criteria.include_managed_types,
            criteria.exclude_managed_types,
        ):
            _log.debug("alarm %s on %s: entity type", alarm.name, alarm.entity.name)
            continue
        if not _substring_scope(
            alarm.name, criteria.include_alarm_names, criteria.exclude_alarm_names
        ):
            _log.debug("alarm %s on %s: name", alarm.name, alarm.entity.name)
            continue
        if not _substring_scope(
            alarm.description,
            criteria.include_alarm_descriptions,
            criteria.exclude_alarm_descriptions,
        ):
            _log.debug("alarm %s on %s: description", alarm.name, alarm.entity.name)
            continue
        if not _set_scope(
            alarm.status,
            criteria.include_alarm_statuses,
            criteria.exclude_alarm_statuses,
        ):
            _log.debug("alarm %s on %s: status", alarm.name, alarm.entity.name)
            continue
        kept.append(alarm)
    _log.info("filtered alarms: %d remaining", len(kept))
    return tuple(kept)
