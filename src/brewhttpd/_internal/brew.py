"""Homebrew package manager."""
import logging
import os
from typing import Iterable
from typing import Optional

import requests

from brewhttpd import errors
from brewhttpd import util
from brewhttpd._internal import constants

logger = logging.getLogger(__name__)

BREW = "brew"

# Where the official installer puts brew on Apple silicon and Intel Macs.
KNOWN_LOCATIONS = ["/opt/homebrew/bin/brew", "/usr/local/bin/brew"]


def find_brew() -> Optional[str]:
    """Locate the brew executable.

    :returns: ``"brew"`` if it is on the PATH, else the first known install
        location holding an executable, else ``None``
    :rtype: str or None

    """
    if util.exe_exists(BREW):
        return BREW
    for location in KNOWN_LOCATIONS:
        if util.is_executable(location):
            return location
    return None


class Homebrew:
    """Thin wrapper around the brew command line.

    :ivar str exe: brew executable used for every call

    """
    def __init__(self, exe: str = BREW) -> None:
        self.exe = exe

    @classmethod
    def ensure_installed(cls) -> "Homebrew":
        """Return a `Homebrew` for the installed brew, installing it if needed.

        :raises .errors.HomebrewError: if Homebrew cannot be installed

        """
        exe = find_brew()
        if exe is not None:
            logger.debug("Using Homebrew at %s", exe)
            return cls(exe)

        logger.info("Homebrew not found, running the official installer")
        try:
            response = requests.get(constants.HOMEBREW_INSTALL_URL,
                                    timeout=constants.REQUEST_TIMEOUT)
            response.raise_for_status()
            util.run_attached(["/bin/bash", "-c", response.text])
        except (requests.RequestException, errors.SubprocessError):
            raise errors.HomebrewError("Failed to install Homebrew.")

        exe = find_brew()
        if exe is None:
            raise errors.HomebrewError("Failed to install Homebrew.")
        return cls(exe)

    def _run(self, *args: str) -> str:
        stdout, _ = util.run_script([self.exe] + list(args))
        return stdout

    def _run_attached(self, *args: str) -> None:
        util.run_attached([self.exe] + list(args))

    def prefix(self) -> str:
        """Output of ``brew --prefix``."""
        try:
            prefix = self._run("--prefix").strip()
        except errors.SubprocessError:
            raise errors.HomebrewError("Unable to determine the Homebrew prefix.")
        if not prefix or not os.path.isabs(prefix):
            raise errors.HomebrewError(
                "Unexpected Homebrew prefix {0!r}.".format(prefix))
        return prefix

    def update(self) -> None:
        """Fetch the newest Homebrew and formulae."""
        try:
            self._run_attached("update")
        except errors.SubprocessError:
            raise errors.HomebrewError("Failed brew update.")

    def install(self, packages: Iterable[str]) -> None:
        """Install or upgrade packages.

        :raises .errors.HomebrewError: if brew install fails

        """
        packages = list(packages)
        logger.debug("Installing %s", ", ".join(packages))
        try:
            self._run_attached("install", *packages)
        except errors.SubprocessError:
            raise errors.HomebrewError("Failed brew install.")

    def restart_service(self, name: str) -> None:
        """Restart a brew service (``brew services restart``).

        :raises .errors.MisconfigurationError: if the service cannot be
            restarted

        """
        try:
            self._run("services", "restart", name)
        except errors.SubprocessError as err:
            raise errors.MisconfigurationError(str(err))
