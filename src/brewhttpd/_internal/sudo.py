"""Privilege escalation through sudo.

`prime` asks for the password once, `KeepAlive` refreshes the cached
credentials in the background so the remaining steps never prompt again.

"""
import logging
import threading
from typing import Callable
from typing import Optional

from brewhttpd import errors
from brewhttpd import util
from brewhttpd._internal import constants

logger = logging.getLogger(__name__)

SUDO = "sudo"


def prime() -> None:
    """Validate sudo credentials, prompting for the password if needed.

    :raises .errors.Error: if sudo refuses

    """
    logger.debug("Validating sudo credentials")
    try:
        util.run_script([SUDO, "-v"])
    except errors.SubprocessError as error:
        raise errors.Error("Unable to obtain sudo privileges: {0}".format(error))


class KeepAlive:
    """Refreshes the sudo timestamp until stopped.

    The refresh runs on a daemon thread and is stopped at exit.

    :ivar int interval: seconds between two refreshes

    """
    def __init__(self, interval: int = constants.SUDO_KEEPALIVE_INTERVAL) -> None:
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start refreshing in the background and stop at program exit."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name="sudo-keepalive", daemon=True)
        self._thread.start()
        util.atexit_register(self.stop)

    def stop(self) -> None:
        """Stop refreshing and wait for the thread to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                util.run_script([SUDO, "-n", "true"], log=logger.debug)
            except errors.SubprocessError:
                logger.debug("Unable to refresh sudo credentials", exc_info=True)


def run(params: list[str], log: Callable[[str], None] = logger.error,
        stdin_data: Optional[str] = None) -> tuple[str, str]:
    """Run params as root.

    :returns: stdout and stderr of the process
    :rtype: tuple

    :raises .errors.SubprocessError: if the command fails

    """
    return util.run_script([SUDO] + params, log=log, stdin_data=stdin_data)


def makedirs(path: str) -> None:
    """Create path and its parents, escalating when permission is denied."""
    try:
        util.make_or_verify_dir(path, 0o755)
    except PermissionError:
        logger.debug("Permission denied creating %s, retrying with sudo", path)
        run(["mkdir", "-p", path])


def write_file(path: str, contents: str) -> None:
    """Replace the contents of path, escalating when permission is denied.

    Files under the Homebrew prefix normally belong to the user running
    brewhttpd; anything else is written through ``sudo tee``.

    """
    try:
        util.write_file(path, contents)
    except PermissionError:
        logger.debug("Permission denied writing %s, retrying with sudo tee", path)
        run(["tee", path], stdin_data=contents)
