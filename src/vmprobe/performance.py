import re
import typing


def quote(label: str) -> str:
    if re.match(r"^\w+$", label):
        return label
    return f"'{label}'"


class Performance:
    """
    Performance data (perfdata) representation.

    :term:`Performance data` are created during metric evaluation in a context
    and are written into the *perfdata* section of the probe's output.

    For sake of consistency, performance data should represent their values in
    their respective base unit.
    https://github.com/monitoring-plugins/monitoring-plugin-guidelines/blob/main/monitoring_plugins_interface/03.Output.md#performance-data
    """

    label: str
    """short identifier, results in graph titles for example (20 chars or less recommended)"""

    value: typing.Any
    """measured value (usually an int, float, or bool)"""

    uom: typing.Optional[str]
    """unit of measure -- use base units whereever possible"""

    warn: typing.Optional[float]
    """warning boundary"""

    crit: typing.Optional[float]
    """critical boundary"""

    min: typing.Optional[float]
    """known value minimum (None for no minimum)"""

    max: typing.Optional[float]
    """known value maximum (None for no maximum)"""

    # pylint: disable-next=redefined-builtin,too-many-arguments
    def __init__(
        self,
        label: str,
        value: typing.Any,
        uom: typing.Optional[str] = None,
        warn: typing.Optional[float] = None,
        crit: typing.Optional[float] = None,
        min: typing.Optional[float] = None,
        max: typing.Optional[float] = None,
    ) -> None:
        if "'" in label or "=" in label:
            raise RuntimeError("label contains illegal characters", label)
        self.label = label
        self.value = value
        self.uom = uom
        self.warn = warn
        self.crit = crit
        self.min = min
        self.max = max

    def __str__(self) -> str:
        """String representation conforming to the plugin API.

        Labels containing spaces or special characters will be quoted.
        Empty fields between set fields are kept so that every value
        stays at its positional slot.
        """
        fields = [self.warn, self.crit, self.min, self.max]
        while fields and fields[-1] is None:
            fields.pop()
        out = ["{0}={1}{2}".format(quote(self.label), _fmt(self.value), self.uom or "")]
        out.extend("" if f is None else _fmt(f) for f in fields)
        return ";".join(out)


def _fmt(value: typing.Any) -> str:
    if isinstance(value, float):
        return "%.4g" % value if not value.is_integer() else str(int(value))
    return str(value)
