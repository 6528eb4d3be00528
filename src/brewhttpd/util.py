"""Helpers shared by the brewhttpd modules: processes, files and platform."""
import atexit
import errno
import getpass
import logging
import os
import platform
import stat
import subprocess
from typing import Any
from typing import Callable
from typing import IO
from typing import Optional

from brewhttpd import errors

logger = logging.getLogger(__name__)


# Terminal colours, see display.util
ANSI_SGR_RED = "\033[31m"
ANSI_SGR_GREEN = "\033[32m"
ANSI_SGR_BLUE = "\033[34m"
ANSI_SGR_RESET = "\033[0m"


PERM_ERR_FMT = os.linesep.join((
    "brewhttpd could not create one of its directories:", "{0}",
    "Fix the permissions, or point --config-dir and --logs-dir "
    "somewhere writable."))


# pid of the process that imported brewhttpd; see atexit_register
_INITIAL_PID = os.getpid()


def run_script(params: list[str], log: Callable[[str], None] = logger.error,
               stdin_data: Optional[str] = None) -> tuple[str, str]:
    """Run a command to completion and return what it printed.

    :param list params: the command and its arguments
    :param callable log: called with the message when the command fails
    :param str stdin_data: text written to the command's stdin

    :returns: stdout and stderr of the command
    :rtype: tuple

    :raises .errors.SubprocessError: if the command could not be started
        or exited with a nonzero status

    """
    command = " ".join(params)
    logger.debug("Running %s", command)
    try:
        proc = subprocess.run(params, input=stdin_data, capture_output=True,
                              text=True, check=False)
    except (OSError, ValueError) as error:
        msg = "Could not start {0}: {1}".format(command, error)
        log(msg)
        raise errors.SubprocessError(msg)

    if proc.returncode:
        msg = "{0} exited with status {1}.\n{2}\n{3}".format(
            command, proc.returncode, proc.stdout, proc.stderr)
        log(msg)
        raise errors.SubprocessError(msg)
    return proc.stdout, proc.stderr


def run_attached(params: list[str]) -> None:
    """Run a command on the user's terminal, without capturing anything.

    For long or interactive commands whose progress and prompts the user
    must see.

    :raises .errors.SubprocessError: if the command could not be started
        or exited with a nonzero status

    """
    command = " ".join(params)
    logger.debug("Running %s attached to the terminal", command)
    try:
        subprocess.check_call(params)
    except (OSError, ValueError) as error:
        raise errors.SubprocessError("Could not start {0}: {1}".format(command, error))
    except subprocess.CalledProcessError as error:
        raise errors.SubprocessError("{0} exited with status {1}.".format(
            command, error.returncode))


def is_executable(path: str) -> bool:
    """Is path a regular file we may execute?"""
    return os.path.isfile(path) and os.access(path, os.X_OK)


def exe_exists(exe: str) -> bool:
    """Whether exe can be run, either as given or found on ``$PATH``.

    :param str exe: a path, or a bare program name
    :rtype: bool

    """
    if os.path.dirname(exe):
        return is_executable(exe)
    search_path = os.environ.get("PATH", "").split(os.pathsep)
    return any(is_executable(os.path.join(entry, exe)) for entry in search_path)


def check_permissions(path: str, mode: int) -> bool:
    """Is path owned by the current user with exactly the given mode?"""
    stats = os.stat(path)
    return stats.st_uid == os.getuid() and stat.S_IMODE(stats.st_mode) == mode


def make_or_verify_dir(directory: str, mode: int = 0o755, strict: bool = False) -> None:
    """Create directory with mode, or accept it if it is already there.

    With strict, an existing directory must also be ours and have exactly
    mode.

    :raises .errors.Error: if strict and the existing directory does not
        pass `check_permissions`
    :raises OSError: for any failure other than the directory existing

    """
    try:
        os.makedirs(directory, mode)
        return
    except OSError as error:
        if error.errno != errno.EEXIST:
            raise
    if strict and not check_permissions(directory, mode):
        raise errors.Error("{0} must be owned by {1} with mode {2}".format(
            directory, current_user(), oct(mode)))


def set_up_core_dir(directory: str, mode: int, strict: bool) -> None:
    """`make_or_verify_dir`, turning OS failures into `errors.Error`."""
    try:
        make_or_verify_dir(directory, mode, strict)
    except OSError as error:
        logger.debug("Cannot set up %s", directory, exc_info=True)
        raise errors.Error(PERM_ERR_FMT.format(error))


def safe_open(path: str, mode: str = "w", chmod: Optional[int] = None) -> IO:
    """Create path and open it, failing if it already exists.

    :param str path: file to create
    :param str mode: mode passed on to `os.fdopen`
    :param int chmod: permissions of the new file, subject to the umask

    :raises OSError: if path exists

    """
    flags = os.O_CREAT | os.O_EXCL | os.O_RDWR
    if chmod is None:
        fd = os.open(path, flags)
    else:
        fd = os.open(path, flags, chmod)
    return os.fdopen(fd, mode)


def write_file(path: str, contents: str, chmod: Optional[int] = None) -> None:
    """Write contents to path, replacing the file, then apply chmod if given."""
    with open(path, "w") as f:
        f.write(contents)
    if chmod is not None:
        os.chmod(path, chmod)


def safely_remove(path: str) -> None:
    """Remove a file that may not exist."""
    try:
        os.remove(path)
    except OSError as err:
        if err.errno != errno.ENOENT:
            raise


def is_macos() -> bool:
    """Are we running on macOS?"""
    return platform.system() == "Darwin"


def current_user() -> str:
    """Login name of the user running brewhttpd (``whoami``)."""
    return getpass.getuser()


def atexit_register(func: Callable, *args: Any, **kwargs: Any) -> None:
    """Call func at interpreter exit, in the importing process only.

    Children forked by brewhttpd inherit the atexit table; they skip func.

    """
    atexit.register(_atexit_call, func, *args, **kwargs)


def _atexit_call(func: Callable, *args: Any, **kwargs: Any) -> None:
    if os.getpid() == _INITIAL_PID:
        func(*args, **kwargs)
