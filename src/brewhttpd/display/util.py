"""brewhttpd display.

This module should be used whenever progress information is displayed to
the user on the terminal. Each step of a run prints a blue ``==>`` line
when it starts and a green check mark line when it completes.

Errors are not displayed here: they are raised as `brewhttpd.errors.Error`
and reported by the exception hook installed in `brewhttpd._internal.log`.
Other messages can use the `logging` module.

"""
import logging
import sys
from typing import Optional
from typing import TextIO

from brewhttpd import util

logger = logging.getLogger(__name__)

STEP_PREFIX = "==> "
SUCCESS_PREFIX = "✓ "


def _colored(outfile: TextIO, color: str, msg: str) -> str:
    isatty = getattr(outfile, "isatty", None)
    if isatty is not None and isatty():
        return "".join((color, msg, util.ANSI_SGR_RESET))
    return msg


def _write(msg: str, color: str, outfile: Optional[TextIO]) -> None:
    outfile = outfile if outfile is not None else sys.stdout
    outfile.write(_colored(outfile, color, msg) + "\n")
    outfile.flush()


def step(msg: str, outfile: Optional[TextIO] = None) -> None:
    """Announce the start of a step.

    :param str msg: what is about to happen
    :param outfile: stream to write to, stdout by default

    """
    logger.debug("Step: %s", msg)
    _write(STEP_PREFIX + msg, util.ANSI_SGR_BLUE, outfile)


def success(msg: str, outfile: Optional[TextIO] = None) -> None:
    """Report that a step completed.

    :param str msg: outcome of the step
    :param outfile: stream to write to, stdout by default

    """
    logger.debug("Success: %s", msg)
    _write(SUCCESS_PREFIX + msg, util.ANSI_SGR_GREEN, outfile)


def notify(msg: str, outfile: Optional[TextIO] = None) -> None:
    """Display a basic status message in blue."""
    _write(msg, util.ANSI_SGR_BLUE, outfile)
