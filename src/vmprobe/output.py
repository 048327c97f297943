"""Text handed to the monitoring supervisor.

The first line is the status line. With ``-v`` and above, the long
output, captured log messages and the performance data follow on lines
of their own. Otherwise the performance data ends the status line. The
pipe character separates text from performance data in the plugin API,
so it is removed from every text part and a warning line says so.
"""

import io
import typing
from logging import StreamHandler
from typing import Iterable, Optional, Union

if typing.TYPE_CHECKING:
    from .check import Check


class Output:
    ILLEGAL = "|"

    logchan: StreamHandler[io.StringIO]
    verbose: int
    status: str
    details: list[str]
    warnings: list[str]
    perfdata: str

    def __init__(self, logchan: StreamHandler[io.StringIO], verbose: int = 0) -> None:
        self.logchan = logchan
        self.verbose = verbose
        self.status = ""
        self.details = []
        self.warnings = []
        self.perfdata = ""

    def add(self, check: "Check") -> None:
        """Takes status line, long output and perfdata from *check*."""
        words = [check.name.upper()] if check.name else []
        words.append(str(check.state).upper())
        status = " ".join(words)
        summary = check.summary_str.strip()
        if summary:
            status += " - " + summary
        self.status = self.screen(status, "status line")
        if self.verbose:
            self.add_longoutput(check.verbose_str)
        perfdata = self.screen(" ".join(check.perfdata or []), "perfdata")
        if not perfdata:
            return
        if self.verbose:
            self.perfdata = "| " + perfdata
        else:
            self.status += " | " + perfdata

    def add_longoutput(self, text: Union[str, Iterable[str]]) -> None:
        lines = [text] if isinstance(text, str) else text
        self.details.extend(self.screen(line, "long output") for line in lines)

    def screen(self, text: str, where: str) -> str:
        """Returns *text* without illegal characters, noting any removal."""
        text, warning = self._remove_illegal(text, where)
        if warning:
            self.warnings.append(warning)
        return text

    def _remove_illegal(self, text: str, where: str) -> tuple[str, Optional[str]]:
        text = text.rstrip("\n")
        found = sorted(set(text) & set(self.ILLEGAL))
        if not found:
            return text, None
        codes = ", ".join("0x{0:x}".format(ord(c)) for c in found)
        return (
            "".join(c for c in text if c not in self.ILLEGAL),
            "warning: removed illegal characters ({0}) from {1}".format(codes, where),
        )

    def __str__(self) -> str:
        log, log_warning = self._remove_illegal(
            self.logchan.stream.getvalue(), "logging output"
        )
        lines = [self.status, *self.details, log, *self.warnings, log_warning]
        lines.append(self.perfdata)
        return "".join(line + "\n" for line in lines if line)
