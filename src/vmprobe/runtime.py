"""Process level plumbing: exit codes, time limit and log capture.

A command's main function is decorated with :func:`guarded`. Whatever
escapes it becomes an ``UNKNOWN`` status line and exit code 3. The
command then hands a *build* function to :meth:`Runtime.launch`. Reading
the inventory snapshot, probing and evaluating all happen in that call,
so the ``--timeout`` limit covers each of them.
"""

from __future__ import annotations

import functools
import io
import logging
import os
import signal
import sys
import threading
import traceback
import typing
from typing import Any, Callable, NoReturn, Optional, ParamSpec, TypeVar

from typing_extensions import Self

from .error import CheckError, Timeout
from .output import Output

if typing.TYPE_CHECKING:
    from .check import Check


P = ParamSpec("P")
R = TypeVar("R")

# -v count -> level of the captured log messages
_LOG_LEVELS = {2: logging.INFO, 3: logging.DEBUG}


def with_timeout(
    seconds: int, func: Callable[P, Any], *args: P.args, **kwargs: P.kwargs
) -> None:
    """Calls *func* and raises :exc:`~.error.Timeout` after *seconds*.

    POSIX systems use ``SIGALRM``. Windows has no alarm signal, so *func*
    runs in a daemon thread there and is abandoned when it overruns.
    """
    if os.name == "nt":
        failures: list[BaseException] = []

        def target() -> None:
            try:
                func(*args, **kwargs)
            except BaseException as exc:
                failures.append(exc)

        worker = threading.Thread(target=target, daemon=True)
        worker.start()
        worker.join(seconds)
        if worker.is_alive():
            raise Timeout("{0}s".format(seconds))
        if failures:
            raise failures[0]
        return

    def expire(signum: int, frame: Any) -> NoReturn:
        raise Timeout("{0}s".format(seconds))

    previous = signal.signal(signal.SIGALRM, expire)
    signal.alarm(seconds)
    try:
        func(*args, **kwargs)
    finally:
        signal.alarm(0)
        signal.signal(signal.SIGALRM, previous)


def guarded(
    original_function: Optional[Callable[P, R]] = None, verbose: Optional[int] = None
) -> Callable[P, R]:
    """Turns anything escaping the decorated function into ``UNKNOWN``.

    A :exc:`~.error.CheckError` prints its message alone. A
    :exc:`~.error.Timeout` names the limit that was hit. Any other
    exception prints its type and, from ``-v`` on, the traceback.

    :param verbose: verbosity in effect until the command sets its own,
        e.g. ``@guarded(verbose=0)`` hides tracebacks of argument errors
    """

    def _decorate(func: Callable[P, R]):
        @functools.wraps(func)
        # pylint: disable-next=inconsistent-return-statements
        def wrapper(*args: Any, **kwds: Any):
            runtime = Runtime()
            if verbose is not None:
                runtime.verbose = verbose
            try:
                return func(*args, **kwds)
            except Timeout as exc:
                runtime.abort("Timeout: check execution aborted after {0}".format(exc))
            except CheckError as exc:
                runtime.abort(str(exc), with_traceback=False)
            except Exception:
                runtime.abort()

        return wrapper

    if original_function is not None:
        assert callable(original_function), (
            'Function {!r} not callable. Forgot to add "verbose=" keyword?'.format(
                original_function
            )
        )
        return _decorate(original_function)
    return _decorate  # type: ignore


class Runtime:
    """State shared by everything that runs in one plugin invocation.

    There is a single instance per process. Creating it attaches a
    handler to the ``vmprobe`` logger whose messages end up in the
    plugin output.
    """

    instance: Optional["Runtime"] = None
    check: Optional["Check"] = None
    timeout: Optional[int] = None
    logchan: logging.StreamHandler[io.StringIO]
    output: Output
    stdout = None
    exitcode: int = 70  # EX_SOFTWARE
    _verbose = 1

    def __new__(cls) -> Self:
        if cls.instance is None:
            cls.instance = super().__new__(cls)
            cls.instance._capture_log()
        return cls.instance

    def _capture_log(self) -> None:
        self.logchan = logging.StreamHandler(io.StringIO())
        self.logchan.setFormatter(logging.Formatter("%(message)s"))
        self.logchan.setLevel(logging.WARNING)
        package_logger = logging.getLogger(__name__.split(".", 1)[0])
        package_logger.setLevel(logging.DEBUG)
        package_logger.addHandler(self.logchan)
        self.output = Output(self.logchan)

    @property
    def verbose(self) -> int:
        return self._verbose

    @verbose.setter
    def verbose(self, verbose: Any) -> None:
        """Accepts a count (``2``) or repeated flag letters (``"vv"``)."""
        if isinstance(verbose, (int, float)):
            count = int(verbose)
        else:
            count = len(verbose or "")
        self._verbose = min(count, 3)
        self.logchan.setLevel(_LOG_LEVELS.get(self._verbose, logging.WARNING))
        self.output.verbose = self._verbose

    def abort(
        self, statusline: Optional[str] = None, with_traceback: bool = True
    ) -> NoReturn:
        """Prints an ``UNKNOWN`` status for the exception being handled."""
        exc_type, value = sys.exc_info()[0:2]
        if statusline is None:
            statusline = traceback.format_exception_only(exc_type, value)[0].strip()
        prefix = self.check.name.upper() + " " if self.check and self.check.name else ""
        self.output.status = "{0}UNKNOWN: {1}".format(prefix, statusline)
        if with_traceback and self.verbose > 0:
            self.output.add_longoutput(traceback.format_exc())
        self.exitcode = 3
        self.flush()

    def run(self, build: Callable[[], "Check"]) -> None:
        self.check = build()
        self.check()
        self.output.add(self.check)
        self.exitcode = self.check.exitcode

    def launch(
        self,
        build: Callable[[], "Check"],
        verbose: Any = None,
        timeout: Any = None,
    ) -> NoReturn:
        """Builds a check with *build*, runs it, prints the output and exits.

        :param verbose: output verbosity level between 0 and 3
        :param timeout: seconds after which *build* and the run are
            aborted with a :exc:`~.error.Timeout` (0 disables the limit)
        """
        if verbose is not None:
            self.verbose = verbose
        if timeout is not None:
            self.timeout = int(timeout)
        if self.timeout:
            with_timeout(self.timeout, self.run, build)
        else:
            self.run(build)
        self.flush()

    def execute(
        self, check: "Check", verbose: Any = None, timeout: Any = None
    ) -> NoReturn:
        """Like :meth:`launch` for a check that is already built."""
        self.launch(lambda: check, verbose, timeout)

    def flush(self) -> NoReturn:
        print(self.output, end="", file=self.stdout)
        self.sysexit()

    def sysexit(self) -> NoReturn:
        sys.exit(self.exitcode)
