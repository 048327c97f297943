"""Exceptions with special meanings for vmprobe.

Errors that make it impossible to determine the state of the monitored
inventory derive from :class:`CheckError`. They abort the probe and are
reported with an UNKNOWN (3) status. Problems that concern a single
inventory object are not exceptions at the check level: they are turned
into findings by the evaluator that detects them.
"""


class CheckError(RuntimeError):
    """Abort check execution.

    This exception should be raised if it becomes clear for a probe
    that it is not able to determine the system status. Raising this
    exception will make the probe display the exception's argument and
    exit with an UNKNOWN (3) status.
    """

    pass


class Timeout(RuntimeError):
    """Maximum check run time exceeded.

    This exception is raised internally by vmprobe if the check's
    run time takes longer than allowed. Check execution is aborted and
    the probe exits with an UNKNOWN (3) status.
    """

    pass


class ConfigurationError(CheckError):
    """An option value is out of its permitted range."""


class ConfigurationConflict(ConfigurationError):
    """Mutually exclusive options were given together.

    Also raised if an option is given without the partner option it
    requires, for example a warning threshold without a critical one.
    """


class EvaluationGap(CheckError):
    """An in-scope object did not produce exactly one result.

    This always points to a defect in an evaluator.
    """


class UpstreamDataUnavailable(CheckError):
    """The inventory snapshot could not be obtained."""


class MissingRequiredAttribute(LookupError):
    """An inventory object lacks a configured custom attribute.

    Raised while deriving comparison keys. The pairing resolver converts
    it into a per-object finding, it never aborts a probe.
    """

    def __init__(self, obj_name: str, attribute: str) -> None:
        super().__init__(obj_name, attribute)
        self.obj_name = obj_name
        self.attribute = attribute

    def __str__(self) -> str:
        return "missing required attribute {0!r} on {1}".format(
            self.attribute, self.obj_name
        )
